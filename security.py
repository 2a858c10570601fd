"""
Access gate: HTTP Basic authentication plus role checks per path prefix.
"""

import logging
from dataclasses import dataclass
from typing import Dict, FrozenSet, Iterable, List, Optional, Sequence

from argon2 import PasswordHasher, exceptions as argon_exc
from fastapi import HTTPException, Request
from fastapi.security import HTTPBasic, HTTPBasicCredentials
from starlette.middleware.base import BaseHTTPMiddleware

from errors import AuthenticationFailure, AuthorizationFailure
from settings import UserSeed

logger = logging.getLogger(__name__)

_ph = PasswordHasher()


def hash_password(password: str) -> str:
    return _ph.hash(password)


def verify_password(password: str, stored_hash: str) -> bool:
    try:
        return _ph.verify(stored_hash, password)
    except (argon_exc.VerifyMismatchError, argon_exc.VerificationError, argon_exc.InvalidHashError):
        return False


@dataclass(frozen=True)
class Principal:
    username: str
    roles: FrozenSet[str]


@dataclass(frozen=True)
class AccessRule:
    """Requests whose path falls under ``prefix`` need ``role``."""

    prefix: str
    role: str

    def matches(self, path: str) -> bool:
        prefix = self.prefix.rstrip("/")
        return path == prefix or path.startswith(prefix + "/")


class UserDirectory:
    """Known principals with argon2 password hashes."""

    def __init__(self) -> None:
        self._users: Dict[str, tuple] = {}
        self._dummy_hash = hash_password("not-a-real-password")

    @classmethod
    def from_seeds(cls, seeds: Iterable[UserSeed]) -> "UserDirectory":
        directory = cls()
        for seed in seeds:
            directory.add(seed.username, seed.password, seed.roles)
        return directory

    def add(self, username: str, password: str, roles: Iterable[str]) -> None:
        self._users[username] = (hash_password(password), frozenset(roles))

    def authenticate(self, username: str, password: str) -> Optional[Principal]:
        entry = self._users.get(username)
        if entry is None:
            # Same hashing cost for unknown users
            verify_password(password, self._dummy_hash)
            return None
        stored_hash, roles = entry
        if not verify_password(password, stored_hash):
            return None
        return Principal(username=username, roles=roles)


_basic = HTTPBasic(auto_error=False, realm="cashcards")


async def read_basic_credentials(request: Request) -> Optional[HTTPBasicCredentials]:
    """Parse ``Authorization: Basic``; None when missing or malformed."""
    try:
        return await _basic(request)
    except HTTPException:
        return None


class AccessGate:
    def __init__(self, directory: UserDirectory, rules: Sequence[AccessRule]) -> None:
        self.directory = directory
        self.rules: List[AccessRule] = list(rules)

    def rule_for(self, path: str) -> Optional[AccessRule]:
        for rule in self.rules:
            if rule.matches(path):
                return rule
        return None

    def admit(self, path: str, credentials: Optional[HTTPBasicCredentials]) -> Optional[Principal]:
        """Return the principal for a gated path, None for an open one, or raise."""
        rule = self.rule_for(path)
        if rule is None:
            return None

        if credentials is None or not credentials.username:
            logger.warning(f"🔒 Authentication failed for {path}: missing or malformed credentials")
            raise AuthenticationFailure()

        username = credentials.username
        principal = self.directory.authenticate(username, credentials.password)
        if principal is None:
            logger.warning(f"🔒 Authentication failed for {path}: bad credentials for {username!r}")
            raise AuthenticationFailure()

        if rule.role not in principal.roles:
            logger.warning(f"⛔ Authorization failed for {path}: {username!r} lacks role {rule.role}")
            raise AuthorizationFailure()

        return principal


class AccessGateMiddleware(BaseHTTPMiddleware):
    """Run every request through the gate before routing."""

    def __init__(self, app, *, gate: AccessGate) -> None:
        super().__init__(app)
        self._gate = gate

    async def dispatch(self, request, call_next):
        credentials = await read_basic_credentials(request)
        try:
            principal = self._gate.admit(request.url.path, credentials)
        except (AuthenticationFailure, AuthorizationFailure) as exc:
            return exc.to_response()
        request.state.principal = principal
        return await call_next(request)
