"""Credential store and password verification.

Users are loaded once at startup from a JSON file shaped as::

    {"users": [{"username": "admin", "password": "$2b$10$..."}]}

where ``password`` holds a bcrypt hash. The store is read-only afterwards, so
concurrent lookups need no synchronization.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from types import MappingProxyType
from typing import Iterable, Mapping

import bcrypt
from starlette.concurrency import run_in_threadpool

from sales_api.core.errors import InvalidCredentialsError

logger = logging.getLogger(__name__)

# Compared against when the username is unknown so both failure paths cost one bcrypt check.
_DUMMY_HASH = bcrypt.hashpw(b"sales-api-dummy-password", bcrypt.gensalt(rounds=10))


@dataclass(frozen=True)
class CredentialRecord:
    username: str
    password_hash: str


class CredentialStore:
    """Immutable username -> bcrypt hash lookup."""

    def __init__(self, records: Iterable[CredentialRecord]) -> None:
        by_username: dict[str, CredentialRecord] = {}
        for record in records:
            if record.username in by_username:
                raise ValueError(f"duplicate username in credential source: {record.username!r}")
            by_username[record.username] = record
        self._records: Mapping[str, CredentialRecord] = MappingProxyType(by_username)

    def __len__(self) -> int:
        return len(self._records)

    def get(self, username: str) -> CredentialRecord | None:
        """Exact, case-sensitive lookup."""
        return self._records.get(username)

    @classmethod
    def from_file(cls, path: str | Path) -> "CredentialStore":
        """Load the users file.

        Raises:
            FileNotFoundError: If the file does not exist.
            ValueError: If the file is not shaped as expected.
        """
        with open(path, encoding="utf-8") as fh:
            payload = json.load(fh)

        users = payload.get("users") if isinstance(payload, dict) else None
        if not isinstance(users, list):
            raise ValueError(f"{path}: expected an object with a 'users' list")

        records = []
        for index, user in enumerate(users):
            try:
                records.append(CredentialRecord(username=str(user["username"]), password_hash=str(user["password"])))
            except (KeyError, TypeError) as exc:
                raise ValueError(f"{path}: users[{index}] needs 'username' and 'password'") from exc

        store = cls(records)
        logger.info("credentials.loaded", extra={"user_count": len(store), "source": str(path)})
        return store


def check_password(password: str, password_hash: str) -> bool:
    """Constant-time bcrypt comparison; malformed input is a mismatch."""
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        # Invalid salt in the stored hash, or a password bcrypt refuses (> 72 bytes).
        logger.warning("credentials.unverifiable_hash")
        return False


def hash_password(password: str, *, rounds: int = 10) -> str:
    """Produce a bcrypt hash suitable for the users file."""
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=rounds)).decode("ascii")


def _verify_sync(store: CredentialStore, username: str, password: str) -> bool:
    record = store.get(username)
    if record is None:
        check_password(password, _DUMMY_HASH.decode("ascii"))
        return False
    return check_password(password, record.password_hash)


async def verify_credentials(store: CredentialStore, username: str, password: str) -> str:
    """Verify a username/password pair.

    bcrypt runs in a worker thread so the event loop keeps serving requests.

    Args:
        store: Loaded credential store.
        username: Submitted username (matched exactly).
        password: Submitted plaintext password.

    Returns:
        The authenticated identity (the username).

    Raises:
        InvalidCredentialsError: Unknown user or wrong password; the two cases
            are indistinguishable to the caller.
    """
    if not await run_in_threadpool(_verify_sync, store, username, password):
        logger.warning("auth.login_failed", extra={"username": username})
        raise InvalidCredentialsError(
            code="invalid_credentials",
            message="Invalid password or user",
        )

    logger.info("auth.login_succeeded", extra={"username": username})
    return username
