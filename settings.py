"""Environment driven configuration for the cash card API."""

from dataclasses import dataclass, field
from functools import lru_cache
from typing import Dict, FrozenSet, Optional
import os


def _bool(value: Optional[str], default: bool = False) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _int(value: Optional[str], default: int) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


DATABASE_URL = os.getenv("DATABASE_URL", "sqlite://")
DATABASE_ECHO = _bool(os.getenv("DATABASE_ECHO"), False)

CASHCARDS_PATH = "/cashcards"
CARD_OWNER_ROLE = os.getenv("CARD_OWNER_ROLE", "CARD-OWNER")

# user:password:ROLE1|ROLE2;user2:password2:ROLE
DEFAULT_USERS = "sarah1:abc123:CARD-OWNER;hank-owns-no-cards:qrs456:NON-OWNER"


@dataclass(frozen=True)
class UserSeed:
    username: str
    password: str
    roles: FrozenSet[str] = field(default_factory=frozenset)


@dataclass(frozen=True)
class Settings:
    """Typed view of environment variables."""

    database_url: str
    database_echo: bool
    store_backend: str
    card_owner_role: str
    users: Dict[str, UserSeed]
    csrf_protection_enabled: bool
    log_level: str
    host: str
    port: int


def parse_users(raw: str) -> Dict[str, UserSeed]:
    """Parse ``user:password:ROLE|ROLE;...`` into seeds keyed by username."""
    users: Dict[str, UserSeed] = {}
    for entry in (raw or "").split(";"):
        entry = entry.strip()
        if not entry:
            continue
        parts = entry.split(":", 2)
        if len(parts) != 3 or not parts[0]:
            raise ValueError(f"Invalid user entry: {entry!r}")
        username, password, roles = parts
        role_set = frozenset(r.strip() for r in roles.split("|") if r.strip())
        users[username] = UserSeed(username, password, role_set)
    return users


@lru_cache
def get_settings() -> Settings:
    """Read the current environment and build a Settings instance."""
    store_backend = (os.getenv("CASHCARD_STORE") or "sql").strip().lower()
    if store_backend not in {"sql", "memory"}:
        raise ValueError(f"CASHCARD_STORE must be 'sql' or 'memory', got {store_backend!r}")

    return Settings(
        database_url=os.getenv("DATABASE_URL", DATABASE_URL),
        database_echo=_bool(os.getenv("DATABASE_ECHO"), DATABASE_ECHO),
        store_backend=store_backend,
        card_owner_role=os.getenv("CARD_OWNER_ROLE", CARD_OWNER_ROLE),
        users=parse_users(os.getenv("CASHCARD_USERS", DEFAULT_USERS)),
        # Stateless, non-browser API: request forgery protection is off unless asked for.
        csrf_protection_enabled=_bool(os.getenv("CSRF_PROTECTION_ENABLED"), False),
        log_level=(os.getenv("LOG_LEVEL") or "INFO").upper(),
        host=os.getenv("HOST", "0.0.0.0"),
        port=_int(os.getenv("PORT"), 8000),
    )
