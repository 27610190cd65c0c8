from rg_linker_mcp.query import (
    BASE_ARGS,
    build_exclude_globs,
    build_pattern,
    build_search_request,
    escape_term,
    normalize_folder_path,
    parse_folder_list,
)


def test_escape_term_escapes_metacharacters():
    assert escape_term("c++") == r"c\+\+"
    assert escape_term("a.b/c-d") == r"a\.b\/c\-d"
    assert escape_term("(x|y)[z]{2}^$*?") == r"\(x\|y\)\[z\]\{2\}\^\$\*\?"


def test_build_pattern_joins_with_alternation():
    assert build_pattern(["foo", "a.b"]) == r"foo|a\.b"


def test_normalize_and_parse_folder_list():
    assert normalize_folder_path("/Archive/old/") == "Archive/old"
    assert normalize_folder_path("Tmp\\sub") == "Tmp/sub"
    assert parse_folder_list(" /Archive/ ,\nPrivate\r\n, ,/") == ["Archive", "Private"]


def test_exclude_globs_expand_folders_and_patterns():
    globs = build_exclude_globs(
        ["Archive", "/Projects/old/", "Tmp\\sub"],
        [".git", "*.tmp", "!drafts", "docs/private", "logs\\*.txt"],
    )
    assert globs == [
        "Archive/**",
        "**/Archive/**",
        "Projects/old/**",
        "Tmp/sub/**",
        ".git/**",
        "**/.git/**",
        "*.tmp",
        "drafts/**",
        "**/drafts/**",
        "docs/private/**",
        "logs/*.txt",
    ]


def test_exclude_globs_are_deduplicated():
    assert build_exclude_globs(["Archive"], ["Archive", "/Archive/"]) == [
        "Archive/**",
        "**/Archive/**",
    ]


def test_no_terms_means_no_request():
    assert build_search_request("rg", "/vault", []) is None


def test_request_argument_order():
    request = build_search_request(
        "rg",
        "/vault",
        ["alpha", "c++"],
        ignore_folders=["Archive"],
    )
    assert request is not None
    args = list(request.args)
    assert args[: len(BASE_ARGS)] == list(BASE_ARGS)
    assert args[-2:] == [r"alpha|c\+\+", "/vault"]
    assert "!**/*.png" in args and "!**/*.pdf" in args
    assert "!Archive/**" in args and "!**/Archive/**" in args
    last_glob = max(i for i, arg in enumerate(args) if arg == "-g")
    assert args.index("-i") > last_glob
    assert "-s" not in args
    assert "-w" not in args
    assert request.argv[0] == "rg"


def test_request_case_sensitive_and_word_flags():
    request = build_search_request(
        "rg", "/vault", ["alpha"], case_sensitive=True, word_regexp=True
    )
    assert request is not None
    args = list(request.args)
    assert "-s" in args and "-i" not in args
    assert args.index("-w") == args.index("-s") + 1
