"""FastMCP server exposing the similar-notes linker."""

from __future__ import annotations

import logging
import os
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, TypeVar, cast

from dotenv import load_dotenv
from fastmcp import FastMCP
from starlette.middleware import Middleware
from starlette.requests import Request
from starlette.responses import JSONResponse

from .errors import LinkerError, NoActiveNoteError
from .linker import find_and_insert_links
from .paths import Vault, locate_note, parse_vault_paths
from .security import HEALTH_PATH, build_security_middleware
from .settings import (
    Settings,
    SettingsError,
    load_settings_file,
    save_settings_file,
    update_settings,
)
from .vault import VaultNotes

TToolFunc = TypeVar("TToolFunc", bound=Callable[..., Any])

load_dotenv()

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class ServerConfig:
    vaults: Mapping[str, Vault]
    host: str
    port: int
    shared_secret: str | None
    log_level: str
    settings_path: Path | None = None


@dataclass(slots=True)
class LinkerService:
    """Runs the linker against the configured vaults."""

    vaults: Mapping[str, Vault]
    settings: Settings = field(default_factory=Settings)
    settings_path: Path | None = None

    async def insert_similar_links(self, path: str | None) -> dict[str, Any]:
        snapshot = self.settings
        try:
            if not path:
                raise NoActiveNoteError()
            vault, target = locate_note(path, self.vaults)
            host = VaultNotes(vault, target)
            result = await find_and_insert_links(host, snapshot)
        except LinkerError as exc:
            logger.info("Linker stopped for %r: %s", path, exc)
            return {
                "ok": False,
                "error": exc.notice,
                "detail": str(exc),
                "kind": type(exc).__name__,
            }
        except Exception as exc:
            logger.exception("Linker failed for %r", path)
            return {"ok": False, "error": str(exc)}

        return {
            "ok": True,
            "path": result.path,
            "links": result.links,
            "inserted": len(result.links),
            "fallback": result.used_fallback,
            "notice": result.notice,
        }

    def get_settings(self) -> dict[str, Any]:
        return {"ok": True, "settings": self.settings.to_dict()}

    def configure(self, **changes: Any) -> dict[str, Any]:
        try:
            updated = update_settings(self.settings, **changes)
        except SettingsError as exc:
            return {"ok": False, "error": str(exc)}
        self.settings = updated
        if self.settings_path is not None:
            save_settings_file(self.settings_path, updated)
        return {"ok": True, "settings": updated.to_dict()}


def load_config() -> ServerConfig:
    """Load configuration from environment variables."""

    raw_vaults = os.environ.get("VAULT_PATHS", "")
    vaults = parse_vault_paths(raw_vaults)

    host = os.environ.get("HOST", "0.0.0.0")  # noqa: S104 (intentional bind)
    port = int(os.environ.get("PORT", "8000"))
    shared_secret = os.environ.get("MCP_SHARED_SECRET")
    raw_settings_path = os.environ.get("RG_LINKER_SETTINGS")
    settings_path = Path(raw_settings_path).expanduser() if raw_settings_path else None

    log_level = os.environ.get("LOG_LEVEL", "info").upper()
    logging.basicConfig(level=getattr(logging, log_level, logging.INFO))

    return ServerConfig(
        vaults=vaults,
        host=host,
        port=port,
        shared_secret=shared_secret,
        log_level=log_level,
        settings_path=settings_path,
    )


def create_server(config: ServerConfig | None = None) -> tuple[FastMCP, list[Middleware]]:
    """Create a configured :class:`FastMCP` instance and its security middleware."""

    config = config or load_config()
    server = FastMCP(
        "RG Linker",
        instructions="Find notes similar to a note with ripgrep and insert links to them",
    )

    security_middleware = build_security_middleware(config.shared_secret)

    service = LinkerService(
        config.vaults,
        settings=load_settings_file(config.settings_path),
        settings_path=config.settings_path,
    )

    def tool(*args: Any, **kwargs: Any) -> Callable[[TToolFunc], TToolFunc]:
        decorator = server.tool(*args, **kwargs)
        return cast(Callable[[TToolFunc], TToolFunc], decorator)

    @tool()
    async def insert_similar_links(path: str) -> dict[str, Any]:
        """Find notes similar to the note at *path* and insert links to them."""
        return await service.insert_similar_links(path)

    @tool()
    async def get_settings() -> dict[str, Any]:
        return service.get_settings()

    @tool()
    async def configure_linker(
        rg_path: str | None = None,
        max_links: int | None = None,
        min_score: int | None = None,
        insert_place: str | None = None,
        case_sensitive: bool | None = None,
        word_regexp: bool | None = None,
        ignore_patterns: str | list[str] | None = None,
        ignore_search_folders: str | list[str] | None = None,
        min_keyword_overlap: int | None = None,
        title_weight: int | None = None,
        search_timeout: float | None = None,
    ) -> dict[str, Any]:
        changes = {
            name: value
            for name, value in {
                "rg_path": rg_path,
                "max_links": max_links,
                "min_score": min_score,
                "insert_place": insert_place,
                "case_sensitive": case_sensitive,
                "word_regexp": word_regexp,
                "ignore_patterns": ignore_patterns,
                "ignore_search_folders": ignore_search_folders,
                "min_keyword_overlap": min_keyword_overlap,
                "title_weight": title_weight,
                "search_timeout": search_timeout,
            }.items()
            if value is not None
        }
        return service.configure(**changes)

    @server.custom_route(HEALTH_PATH, methods=["GET"])
    async def health(request: Request) -> JSONResponse:
        return JSONResponse({"status": "ok"})

    return cast(FastMCP, server), security_middleware


def main() -> None:
    """Run the FastMCP server."""

    config = load_config()
    server, security_middleware = create_server(config)
    server.run(
        transport="http",
        host=config.host,
        port=config.port,
        middleware=security_middleware,
    )


if __name__ == "__main__":
    main()
