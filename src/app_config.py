"""Centralized configuration helpers for the MCP chat host."""

from __future__ import annotations

import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional, Tuple


ROOT_DIR = Path(__file__).resolve().parents[1]
DEFAULT_CONFIG_FILE = ROOT_DIR / "server-config.json"
DEFAULT_MODEL = "deepseek-chat"
DEFAULT_BASE_URL = "https://api.deepseek.com"
API_KEY_NAME = "DEEPSEEK_API_KEY"


class ConfigError(RuntimeError):
    """Base exception for configuration issues."""


class MissingSettingError(ConfigError):
    """Raised when a required environment variable is missing."""


class InvalidServerConfigError(ConfigError):
    """Raised when the MCP server config file is absent or malformed."""


def _resolve_path(path_value: str, root: Path) -> Path:
    path = Path(path_value)
    if not path.is_absolute():
        path = root / path
    return path


def _load_env_file(project_dir: Path) -> None:
    try:
        from dotenv import load_dotenv
    except ImportError as exc:  # pragma: no cover
        raise ConfigError(
            "python-dotenv is required. Install it via `pip install python-dotenv`."
        ) from exc

    try:
        load_dotenv(dotenv_path=project_dir / ".env", override=False)
    except PermissionError:  # pragma: no cover - filesystem specific
        pass


def _load_config_file(config_path: Path) -> dict[str, Any]:
    try:
        with config_path.open("r", encoding="utf-8") as fh:
            return json.load(fh)
    except FileNotFoundError as exc:
        raise InvalidServerConfigError(f"MCP Config file not found: {config_path}") from exc
    except json.JSONDecodeError as exc:
        raise InvalidServerConfigError(f"Invalid MCP Config file: {config_path}") from exc


@dataclass(frozen=True)
class ServerConfig:
    name: str
    command: str
    args: Tuple[str, ...]
    timeout: Optional[float] = None


@dataclass(frozen=True)
class Settings:
    model: str
    api_key: str
    base_url: str
    project_dir: Path
    server_config_path: Path
    server: ServerConfig
    history_dir: Path
    log_level: str = "WARNING"

    @property
    def tool_timeout(self) -> Optional[float]:
        return self.server.timeout


def parse_server_config(config: Any) -> ServerConfig:
    """Pick the first entry of ``mcpServers`` and validate it."""
    servers = config.get("mcpServers") if isinstance(config, dict) else None
    if not servers or not isinstance(servers, dict):
        raise InvalidServerConfigError("Config must contain at least one server in 'mcpServers'")

    name, server = next(iter(servers.items()))
    if not isinstance(server, dict):
        raise InvalidServerConfigError(f"Server '{name}' must be an object")

    missing = [field for field in ("command", "args") if field not in server]
    if missing:
        raise InvalidServerConfigError(
            f"Server '{name}' missing required fields: {', '.join(missing)}"
        )

    command = server["command"]
    if not isinstance(command, str) or not command.strip():
        raise InvalidServerConfigError(f"Server '{name}' must have a non-empty 'command'")

    args = server["args"]
    if not isinstance(args, list) or not args:
        raise InvalidServerConfigError(f"Server '{name}' must have a non-empty 'args' list")

    timeout = server.get("timeout")
    if timeout is not None and (not isinstance(timeout, (int, float)) or timeout <= 0):
        raise InvalidServerConfigError(f"Server '{name}' has an invalid 'timeout': {timeout!r}")

    return ServerConfig(
        name=name,
        command=command,
        args=tuple(str(arg) for arg in args),
        timeout=float(timeout) if timeout is not None else None,
    )


def load_settings(project_dir: Optional[Path] = None) -> Settings:
    """Load settings from ``.env`` + ``server-config.json`` + env overrides."""
    root = Path(project_dir) if project_dir is not None else ROOT_DIR
    _load_env_file(root)

    api_key = os.getenv(API_KEY_NAME)
    if not api_key:
        raise MissingSettingError(
            f"DeepSeek API key is required. Please set {API_KEY_NAME} in your .env file."
        )

    env_config = os.getenv("MCP_CHAT_CONFIG")
    config_path = _resolve_path(env_config, root) if env_config else root / DEFAULT_CONFIG_FILE.name
    server = parse_server_config(_load_config_file(config_path))

    env_history = os.getenv("MCP_CHAT_HISTORY_DIR")
    history_dir = _resolve_path(env_history, root) if env_history else root / "history"

    return Settings(
        model=os.getenv("MCP_CHAT_MODEL", DEFAULT_MODEL),
        api_key=api_key,
        base_url=os.getenv("MCP_CHAT_BASE_URL", DEFAULT_BASE_URL),
        project_dir=root,
        server_config_path=config_path,
        server=server,
        history_dir=history_dir,
        log_level=os.getenv("MCP_CHAT_LOG_LEVEL", "WARNING"),
    )


__all__ = [
    "ConfigError",
    "MissingSettingError",
    "InvalidServerConfigError",
    "ServerConfig",
    "Settings",
    "load_settings",
    "parse_server_config",
]
