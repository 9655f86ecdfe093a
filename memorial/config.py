"""
Environment-driven settings, read once at startup.
"""
from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import FrozenSet, Mapping, Tuple

REPO_ROOT = Path(__file__).resolve().parents[1]


def _split_csv(raw: str | None) -> Tuple[str, ...]:
    if not raw:
        return ()
    return tuple(part.strip() for part in raw.split(",") if part.strip())


def _flag(raw: str | None, default: bool) -> bool:
    if raw is None or raw == "":
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class Settings:
    """Typed application settings."""

    database_url: str
    jwt_secret: str = "change-me"
    token_ttl_hours: int = 24
    admin_emails: FrozenSet[str] = field(default_factory=frozenset)
    upload_dir: str = str(REPO_ROOT / "uploads")
    cors_origins: Tuple[str, ...] = ("http://localhost:3000",)
    log_level: str = "INFO"
    log_dir: str = str(REPO_ROOT / "logs")
    ratelimit_enabled: bool = True

    def to_flask_config(self) -> dict:
        return {
            "DATABASE_URL": self.database_url,
            "JWT_SECRET": self.jwt_secret,
            "TOKEN_TTL_HOURS": self.token_ttl_hours,
            "ADMIN_EMAILS": self.admin_emails,
            "UPLOAD_DIR": self.upload_dir,
            "CORS_ORIGINS": list(self.cors_origins),
            "LOG_LEVEL": self.log_level,
            "LOG_DIR": self.log_dir,
            "RATELIMIT_ENABLED": self.ratelimit_enabled,
        }


def parse_admin_emails(raw) -> FrozenSet[str]:
    """Normalise an allow-list given as a comma-separated string or an iterable."""
    if raw is None:
        return frozenset()
    items = _split_csv(raw) if isinstance(raw, str) else raw
    return frozenset(e.strip().lower() for e in items if e and e.strip())


def load_settings(environ: Mapping[str, str] | None = None) -> Settings:
    env = os.environ if environ is None else environ

    database_url = env.get("DATABASE_URL")
    if not database_url:
        db_path = REPO_ROOT / "data" / "memorial.sqlite"
        database_url = f"sqlite:///{db_path}"

    upload_dir = Path(env.get("UPLOAD_DIR") or REPO_ROOT / "uploads")
    if not upload_dir.is_absolute():
        upload_dir = REPO_ROOT / upload_dir

    return Settings(
        database_url=database_url,
        jwt_secret=env.get("JWT_SECRET") or "change-me",
        token_ttl_hours=int(env.get("TOKEN_TTL_HOURS") or 24),
        admin_emails=parse_admin_emails(env.get("ADMIN_EMAILS")),
        upload_dir=str(upload_dir),
        cors_origins=_split_csv(env.get("CORS_ORIGINS")) or ("http://localhost:3000",),
        log_level=(env.get("LOG_LEVEL") or "INFO").upper(),
        log_dir=env.get("LOG_DIR") or str(REPO_ROOT / "logs"),
        ratelimit_enabled=_flag(env.get("RATELIMIT_ENABLED"), True),
    )
