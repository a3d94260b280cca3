from __future__ import annotations

import json
import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any

from platformdirs import user_config_path

from gem2arch.exceptions import ConfigError
from gem2arch.registry.arch import AUR_RPC_URL
from gem2arch.registry.http_client import DEFAULT_TIMEOUT
from gem2arch.registry.rubygems import RUBYGEMS_URL
from gem2arch.tools.shell import DEFAULT_COMMAND_TIMEOUT

# Gems shipped with the ruby package itself; depending on them would conflict.
DEFAULT_CONFLICT_GEMS = ("rake", "rdoc")


@dataclass(frozen=True)
class Config:
    rubygems_url: str = RUBYGEMS_URL
    aur_rpc_url: str = AUR_RPC_URL
    package_prefix: str = "ruby"
    conflict_gems: tuple[str, ...] = DEFAULT_CONFLICT_GEMS
    timeout_s: float = DEFAULT_TIMEOUT
    command_timeout_s: float = DEFAULT_COMMAND_TIMEOUT
    upload_command: str = "burp"


def config_path(path_override: str | Path | None = None) -> Path:
    if path_override is not None:
        return Path(path_override).expanduser()
    if env := os.getenv("GEM2ARCH_CONFIG_PATH"):
        return Path(env).expanduser()
    return user_config_path("gem2arch") / "config.json"


def load_config(path_override: str | Path | None = None) -> Config:
    path = config_path(path_override)
    cfg = Config()
    if path.exists():
        try:
            raw = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            raise ConfigError(f"Cannot read {path}: {exc}") from exc
        if isinstance(raw, dict):
            allowed = {f.name for f in Config.__dataclass_fields__.values()}  # type: ignore[attr-defined]
            filtered: dict[str, Any] = {
                k: _coerce(k, v, path) for k, v in raw.items() if k in allowed
            }
            cfg = Config(**filtered)  # type: ignore[arg-type]

    # Environment wins over the file.
    if url := os.getenv("GEM2ARCH_RUBYGEMS_URL"):
        cfg = replace(cfg, rubygems_url=url)
    if timeout := os.getenv("GEM2ARCH_TIMEOUT"):
        try:
            cfg = replace(cfg, timeout_s=float(timeout))
        except ValueError as exc:
            raise ConfigError(f"GEM2ARCH_TIMEOUT must be a number, got {timeout!r}") from exc
    return cfg


_FLOAT_KEYS = frozenset({"timeout_s", "command_timeout_s"})


def _coerce(key: str, value: Any, path: Path) -> Any:
    """Check one value read from the config file against its field type."""
    if key in _FLOAT_KEYS:
        if isinstance(value, bool):
            raise ConfigError(f"{path}: {key} must be a number, got {value!r}")
        try:
            return float(value)
        except (TypeError, ValueError) as exc:
            raise ConfigError(f"{path}: {key} must be a number, got {value!r}") from exc
    if key == "conflict_gems":
        if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
            raise ConfigError(f"{path}: conflict_gems must be a list of gem names, got {value!r}")
        return tuple(value)
    if not isinstance(value, str):
        raise ConfigError(f"{path}: {key} must be a string, got {value!r}")
    return value
