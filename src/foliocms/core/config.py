from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class AppPaths:
    project_root: Path
    folio_dir: Path
    db_path: Path
    storage_dir: Path


@dataclass(frozen=True)
class AppSettings:
    public_base_url: str = "http://127.0.0.1:8765"
    admin_identifier: str = "admin"
    admin_password_hash: str | None = None
    purge_function_url: str | None = None
    purge_function_token: str | None = None
    deletion_countdown_seconds: float = 5.0
    purge_timeout_seconds: float = 60.0


DEFAULT_FOLIO_DIRNAME = ".folio"


def load_paths(project_root: Path | None = None) -> AppPaths:
    root = (project_root or Path.cwd()).expanduser().resolve()

    folio_home_raw = os.getenv("FOLIO_HOME")
    if folio_home_raw:
        folio_dir = Path(folio_home_raw).expanduser().resolve()
    else:
        folio_dir = root / DEFAULT_FOLIO_DIRNAME

    return AppPaths(
        project_root=root,
        folio_dir=folio_dir,
        db_path=folio_dir / "folio.db",
        storage_dir=folio_dir / "storage",
    )


def load_settings() -> AppSettings:
    defaults = AppSettings()
    return AppSettings(
        public_base_url=(os.getenv("FOLIO_PUBLIC_BASE_URL") or defaults.public_base_url).rstrip("/"),
        admin_identifier=os.getenv("FOLIO_ADMIN_IDENTIFIER") or defaults.admin_identifier,
        admin_password_hash=_read_optional_env("FOLIO_ADMIN_PASSWORD_HASH"),
        purge_function_url=_read_optional_env("FOLIO_PURGE_FUNCTION_URL"),
        purge_function_token=_read_optional_env("FOLIO_PURGE_FUNCTION_TOKEN"),
        deletion_countdown_seconds=read_float_env(
            "FOLIO_DELETION_COUNTDOWN_SECONDS", defaults.deletion_countdown_seconds
        ),
        purge_timeout_seconds=read_float_env("FOLIO_PURGE_TIMEOUT_SECONDS", defaults.purge_timeout_seconds),
    )


def _read_optional_env(name: str) -> str | None:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return None
    return raw.strip()


def read_float_env(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        value = float(raw)
    except ValueError:
        return default
    return value if value > 0 else default


def read_int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        value = int(raw)
    except ValueError:
        return default
    return value if value > 0 else default
