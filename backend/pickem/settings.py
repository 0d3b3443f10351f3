from __future__ import annotations
from dataclasses import dataclass
from pathlib import Path
import json

from .config import ADMIN_PASSWORD, BRACKET_MAX_PASSES, DB_URL, EDITOR_PASSWORD, JWT_SECRET


@dataclass(frozen=True)
class Settings:
    db_url: str
    editor_password: str
    admin_password: str
    jwt_secret: str
    log_level: str
    bracket_max_passes: int = BRACKET_MAX_PASSES


def load_settings(
    *,
    secrets_path: str,
    db_url: str | None = None,
    editor_password: str | None = None,
    admin_password: str | None = None,
    jwt_secret: str | None = None,
    log_level: str | None = None,
    bracket_max_passes: int | None = None,
) -> Settings:
    secrets: dict = {}
    p = Path(secrets_path)
    if p.exists():
        secrets = json.loads(p.read_text(encoding="utf-8"))

    # CLI flag > secrets.json > environment (config.py)
    def pick(key: str, cli_val, default: str) -> str:
        return cli_val or secrets.get(key) or default

    return Settings(
        db_url=pick("db_url", db_url, DB_URL),
        editor_password=pick("editor_password", editor_password, EDITOR_PASSWORD),
        admin_password=pick("admin_password", admin_password, ADMIN_PASSWORD),
        jwt_secret=pick("jwt_secret", jwt_secret, JWT_SECRET),
        log_level=pick("log_level", log_level, "INFO"),
        bracket_max_passes=max(1, int(pick("bracket_max_passes", bracket_max_passes, str(BRACKET_MAX_PASSES)))),
    )
