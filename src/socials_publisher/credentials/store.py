"""Credential stores.

The publishing core treats the store as an external collaborator with a
small CRUD surface. Two implementations ship here:

- InMemoryCredentialStore: process-local, used by tests and embedding apps
- JsonFileCredentialStore: one JSON file, used by the CLI

Both key records on (user_id, platform), which enforces the one-credential
per pair invariant, and serialize writes per key with an asyncio.Lock so
concurrent updates to the same record never interleave.
"""

from __future__ import annotations

import asyncio
import json
import logging
from abc import ABC, abstractmethod
from pathlib import Path

from pydantic import ValidationError

from ..constants import Platform
from ..errors import CredentialStoreError
from ..utils.timestamps import now_utc
from .models import Credential

_logger = logging.getLogger("publisher_tokens")

StoreKey = tuple[str, Platform]

# Fields a token refresh may change. Everything else belongs to the connection.
TOKEN_FIELDS = ("access_token", "refresh_token", "expires_at", "scope")


class CredentialStore(ABC):
    """Durable mapping of (user_id, platform) to a Credential."""

    def __init__(self) -> None:
        self._locks: dict[StoreKey, asyncio.Lock] = {}

    def _lock_for(self, user_id: str, platform: Platform) -> asyncio.Lock:
        key = (user_id, platform)
        lock = self._locks.get(key)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[key] = lock
        return lock

    # ----------------------------------------------------------------------
    # Public API
    # ----------------------------------------------------------------------

    async def get(self, user_id: str, platform: Platform) -> Credential | None:
        """Get the credential for a pair, active or not."""
        return await self._read(user_id, platform)

    async def get_active(self, user_id: str, platform: Platform) -> Credential | None:
        """Get the credential for a pair only when it is active."""
        credential = await self._read(user_id, platform)
        if credential is None or not credential.is_active:
            return None
        return credential

    async def upsert(self, credential: Credential) -> Credential:
        """Insert or replace the credential for its (user_id, platform) pair.

        Last writer wins. updated_at is stamped on every write.
        """
        stored = credential.model_copy(update={"updated_at": now_utc()})
        async with self._lock_for(credential.user_id, credential.platform):
            await self._write(stored)
        _logger.info(f"Stored credential: {stored.describe()}")
        return stored

    async def deactivate(self, user_id: str, platform: Platform) -> bool:
        """Soft-delete a credential (is_active=False).

        Returns:
            True if a credential existed.
        """
        async with self._lock_for(user_id, platform):
            credential = await self._read(user_id, platform)
            if credential is None:
                return False
            await self._write(
                credential.model_copy(update={"is_active": False, "updated_at": now_utc()})
            )
        _logger.info(f"Deactivated credential: {platform.value} user={user_id}")
        return True

    async def update_tokens(self, credential: Credential) -> Credential | None:
        """Copy refreshed token fields onto the stored record.

        The rest of the stored record is kept as is, so a connection that
        was deactivated or deleted while the token was being refreshed
        stays that way.

        Returns:
            The updated credential, or None if no active record exists.
        """
        async with self._lock_for(credential.user_id, credential.platform):
            current = await self._read(credential.user_id, credential.platform)
            if current is None or not current.is_active:
                return None
            update = {name: getattr(credential, name) for name in TOKEN_FIELDS}
            stored = current.model_copy(update={**update, "updated_at": now_utc()})
            await self._write(stored)
        _logger.info(f"Updated tokens: {stored.describe()}")
        return stored

    async def delete(self, user_id: str, platform: Platform) -> bool:
        """Hard-delete a credential.

        Returns:
            True if a credential existed.
        """
        async with self._lock_for(user_id, platform):
            removed = await self._remove(user_id, platform)
        if removed:
            _logger.info(f"Deleted credential: {platform.value} user={user_id}")
        return removed

    async def list_active(self, user_id: str) -> list[Credential]:
        """All active credentials of a user, most recently connected first."""
        credentials = [c for c in await self._all_for_user(user_id) if c.is_active]
        return sorted(credentials, key=lambda c: c.connected_at, reverse=True)

    # ----------------------------------------------------------------------
    # Storage primitives
    # ----------------------------------------------------------------------

    @abstractmethod
    async def _read(self, user_id: str, platform: Platform) -> Credential | None:
        ...

    @abstractmethod
    async def _write(self, credential: Credential) -> None:
        ...

    @abstractmethod
    async def _remove(self, user_id: str, platform: Platform) -> bool:
        ...

    @abstractmethod
    async def _all_for_user(self, user_id: str) -> list[Credential]:
        ...


class InMemoryCredentialStore(CredentialStore):
    """Credential store backed by a dict."""

    def __init__(self, credentials: list[Credential] | None = None):
        super().__init__()
        self._records: dict[StoreKey, Credential] = {}
        for credential in credentials or []:
            self._records[credential.key] = credential

    async def _read(self, user_id: str, platform: Platform) -> Credential | None:
        credential = self._records.get((user_id, platform))
        return credential.model_copy(deep=True) if credential else None

    async def _write(self, credential: Credential) -> None:
        self._records[credential.key] = credential.model_copy(deep=True)

    async def _remove(self, user_id: str, platform: Platform) -> bool:
        return self._records.pop((user_id, platform), None) is not None

    async def _all_for_user(self, user_id: str) -> list[Credential]:
        return [c.model_copy(deep=True) for (uid, _), c in self._records.items() if uid == user_id]


class JsonFileCredentialStore(CredentialStore):
    """Credential store persisted to a single JSON file.

    File layout:
        {
          "credentials": [
            {"user_id": "...", "platform": "youtube", "access_token": "...", ...}
          ]
        }

    The whole file is rewritten on each write under a file-wide lock; the
    per-key locks from the base class still order writes to one record.
    """

    def __init__(self, path: Path):
        super().__init__()
        self.path = Path(path)
        self._file_lock = asyncio.Lock()

    def _load(self) -> dict[StoreKey, Credential]:
        if not self.path.exists():
            return {}
        try:
            payload = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            raise CredentialStoreError(f"Could not read {self.path}: {e}") from e

        records: dict[StoreKey, Credential] = {}
        for raw in payload.get("credentials", []):
            try:
                credential = Credential.model_validate(raw)
            except ValidationError as e:
                _logger.warning(f"Skipping invalid credential record in {self.path}: {e}")
                continue
            records[credential.key] = credential
        return records

    def _save(self, records: dict[StoreKey, Credential]) -> None:
        payload = {
            "credentials": [c.model_dump(mode="json") for c in records.values()],
        }
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
            tmp_path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
            tmp_path.replace(self.path)
        except OSError as e:
            raise CredentialStoreError(f"Could not write {self.path}: {e}") from e

    async def _read(self, user_id: str, platform: Platform) -> Credential | None:
        async with self._file_lock:
            return self._load().get((user_id, platform))

    async def _write(self, credential: Credential) -> None:
        async with self._file_lock:
            records = self._load()
            records[credential.key] = credential
            self._save(records)

    async def _remove(self, user_id: str, platform: Platform) -> bool:
        async with self._file_lock:
            records = self._load()
            if records.pop((user_id, platform), None) is None:
                return False
            self._save(records)
            return True

    async def _all_for_user(self, user_id: str) -> list[Credential]:
        async with self._file_lock:
            return [c for (uid, _), c in self._load().items() if uid == user_id]
