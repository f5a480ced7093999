"""
peerdb configuration loader.

Goals
-----
- Zero external deps (stdlib only).
- Layered config with clear precedence:
    1) Explicit overrides passed to `load()` (highest)
    2) Environment variables (PEERDB_*)
    3) Config file (TOML or JSON)
    4) Built-in defaults (lowest)
- Typed dataclasses with validation (invalid values raise ConfigError).
- OS-specific default data dir (XDG/APPDATA/~/Library).

Sections:
  paths: { data_dir, logs_dir }
  db:    { uri }
  log:   { level, format }

Env vars: PEERDB_DATA_DIR, PEERDB_LOGS_DIR, PEERDB_DB_URI, PEERDB_LOG_LEVEL,
PEERDB_LOG_FORMAT.
"""

from __future__ import annotations

import json
import os
import platform
import sys
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional

from .errors import ConfigError

# -- Optional TOML support (Python 3.11+ has tomllib).
try:
    import tomllib as _toml  # type: ignore[attr-defined]
except ImportError:  # py310
    _toml = None  # type: ignore[assignment]


DEFAULT_DB_FILENAME = "peerdb.db"
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
LOG_FORMATS = ("auto", "json", "text")


def _expand(p: str | Path) -> Path:
    return Path(p).expanduser().resolve()


def _os_default_data_root() -> Path:
    system = platform.system()
    if system == "Darwin":
        return _expand("~/Library/Application Support")
    if system == "Windows":
        appdata = os.environ.get("APPDATA") or os.environ.get("LOCALAPPDATA")
        return _expand(appdata) if appdata else _expand("~\\AppData\\Roaming")
    xdg = os.environ.get("XDG_DATA_HOME")
    return _expand(xdg) if xdg else _expand("~/.local/share")


def _default_data_dir() -> Path:
    return _os_default_data_root() / "peerdb"


# ------------------------------
# Typed configuration model
# ------------------------------

@dataclass
class PathsConfig:
    data_dir: Path
    logs_dir: Path

    @staticmethod
    def defaults() -> "PathsConfig":
        root = _default_data_dir()
        return PathsConfig(data_dir=root, logs_dir=root / "logs")


@dataclass
class DBConfig:
    uri: str  # e.g. sqlite:////home/user/.local/share/peerdb/peerdb.db

    @staticmethod
    def sqlite_default(paths: PathsConfig) -> "DBConfig":
        return DBConfig(uri=f"sqlite:///{paths.data_dir / DEFAULT_DB_FILENAME}")


@dataclass
class LogConfig:
    level: str = "INFO"
    format: str = "auto"


@dataclass
class Config:
    paths: PathsConfig
    db: DBConfig
    log: LogConfig

    def ensure_dirs(self) -> None:
        self.paths.data_dir.mkdir(parents=True, exist_ok=True)
        self.paths.logs_dir.mkdir(parents=True, exist_ok=True)

    def to_dict(self) -> Dict[str, Any]:
        d = asdict(self)
        d["paths"] = {k: str(v) for k, v in d["paths"].items()}
        return d


# ------------------------------
# File loader (TOML / JSON)
# ------------------------------

def _load_file(path: Path) -> Dict[str, Any]:
    if not path.exists():
        raise ConfigError("config file not found", path=str(path))
    suffix = path.suffix.lower()
    with path.open("rb") as f:
        if suffix in {".toml", ".tml"}:
            if not _toml:
                raise ConfigError("tomllib is unavailable (Python < 3.11); use a JSON config", path=str(path))
            try:
                return _toml.load(f)
            except _toml.TOMLDecodeError as e:
                raise ConfigError(f"invalid TOML: {e}", path=str(path)) from e
        if suffix == ".json":
            try:
                return json.load(f)
            except json.JSONDecodeError as e:
                raise ConfigError(f"invalid JSON: {e}", path=str(path)) from e
    raise ConfigError(f"unsupported config format: {suffix}", path=str(path))


def _merge_dict(a: Dict[str, Any], b: Dict[str, Any]) -> Dict[str, Any]:
    """Nested dict merge: values in b override a."""
    out = dict(a)
    for k, v in b.items():
        if isinstance(v, dict) and isinstance(out.get(k), dict):
            out[k] = _merge_dict(out[k], v)
        else:
            out[k] = v
    return out


def _env_layer() -> Dict[str, Any]:
    layer: Dict[str, Dict[str, Any]] = {"paths": {}, "db": {}, "log": {}}
    env = os.environ
    if env.get("PEERDB_DATA_DIR"):
        layer["paths"]["data_dir"] = env["PEERDB_DATA_DIR"]
    if env.get("PEERDB_LOGS_DIR"):
        layer["paths"]["logs_dir"] = env["PEERDB_LOGS_DIR"]
    if env.get("PEERDB_DB_URI"):
        layer["db"]["uri"] = env["PEERDB_DB_URI"].strip()
    if env.get("PEERDB_LOG_LEVEL"):
        layer["log"]["level"] = env["PEERDB_LOG_LEVEL"].strip()
    if env.get("PEERDB_LOG_FORMAT"):
        layer["log"]["format"] = env["PEERDB_LOG_FORMAT"].strip()
    return {k: v for k, v in layer.items() if v}


# ------------------------------
# Main loader
# ------------------------------

def load(config_file: Optional[str | Path] = None, **overrides: Any) -> Config:
    """
    Load the configuration.

    Precedence: overrides > env > file > defaults.

    A data_dir set by a higher layer moves the derived defaults (logs_dir and
    the sqlite DB file) along with it unless those are set explicitly too.

    overrides : Any
        Keyword overrides, e.g. load(db={"uri": "memory://"}, log={"level": "DEBUG"})
    """
    layers: List[Dict[str, Any]] = []
    if config_file:
        layers.append(_load_file(_expand(config_file)))
    layers.append(_env_layer())
    if overrides:
        layers.append(overrides)

    merged: Dict[str, Any] = {}
    for layer in layers:
        merged = _merge_dict(merged, layer)

    paths_in = merged.get("paths") or {}
    defaults = PathsConfig.defaults()
    data_dir = _expand(paths_in["data_dir"]) if paths_in.get("data_dir") else defaults.data_dir
    logs_dir = _expand(paths_in["logs_dir"]) if paths_in.get("logs_dir") else data_dir / "logs"
    paths = PathsConfig(data_dir=data_dir, logs_dir=logs_dir)

    db_in = merged.get("db") or {}
    db = DBConfig(uri=str(db_in["uri"])) if db_in.get("uri") else DBConfig.sqlite_default(paths)

    log_in = merged.get("log") or {}
    log = LogConfig(
        level=str(log_in.get("level", "INFO")).upper(),
        format=str(log_in.get("format", "auto")).lower(),
    )

    cfg = Config(paths=paths, db=db, log=log)
    _validate_config(cfg)
    return cfg


def _validate_db_uri(uri: str) -> None:
    if uri.startswith("sqlite:///") or uri.startswith("memory://"):
        return
    if "://" not in uri and uri.endswith(".db"):
        return
    raise ConfigError(
        "unsupported DB URI scheme; use sqlite:///path/to.db or memory://", uri=uri
    )


def _validate_config(cfg: Config) -> None:
    _validate_db_uri(cfg.db.uri)
    if cfg.log.level not in LOG_LEVELS:
        raise ConfigError("invalid log level", level=cfg.log.level, allowed=list(LOG_LEVELS))
    if cfg.log.format not in LOG_FORMATS:
        raise ConfigError("invalid log format", format=cfg.log.format, allowed=list(LOG_FORMATS))


# ------------------------------
# CLI helper
# ------------------------------

def main(argv: List[str] | None = None) -> int:
    """
    CLI usage:

        python -m core.config                      # load defaults/env; print JSON
        python -m core.config path/to/config.toml  # load file; print JSON
    """
    argv = list(sys.argv[1:] if argv is None else argv)
    path = argv[0] if argv else None
    try:
        cfg = load(path)
    except ConfigError as e:
        print(f"config error: {e}", file=sys.stderr)
        return 2
    print(json.dumps(cfg.to_dict(), indent=2, sort_keys=True))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
