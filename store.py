"""JSON-file store for registered accounts.

Tokens are encrypted by encode_record() right before a write; decode_record()
turns a stored record into an AccountConfig right after a read and leaves the
token encrypted. Decryption happens only where a token is used.
"""

import json
import os
from dataclasses import asdict

from cipher import CredentialCipher
from models import AccountConfig
from utils import ACCOUNTS_FILE

_REQUIRED = ("user_id", "guild_id", "host", "username", "token")
_OPTIONAL = ("query_override", "paused", "daily_hours")


class AccountNotFoundError(KeyError):
    """No account is registered for the given user and guild."""


def encode_record(account: AccountConfig, cipher: CredentialCipher) -> dict:
    """Serialize an account with a plaintext token, encrypting the token."""
    record = asdict(account)
    record["token"] = cipher.encrypt(account.token)
    return record


def decode_record(record: dict) -> AccountConfig:
    """Build an AccountConfig from a stored record. The token stays as stored.

    Missing required fields come back as None and fail validation later,
    for this account only.
    """
    if not isinstance(record, dict):
        record = {}
    values = {k: record.get(k) for k in _REQUIRED}
    values.update({k: record[k] for k in _OPTIONAL if k in record})
    values["paused"] = bool(values.get("paused", False))
    if values.get("daily_hours") is None:
        values.pop("daily_hours", None)
    return AccountConfig(**values)


class JsonAccountStore:
    """Accounts keyed by (user_id, guild_id) in a JSON list."""

    def __init__(self, cipher: CredentialCipher, path: str = ACCOUNTS_FILE):
        self.cipher = cipher
        self.path = path

    def _read(self) -> list[dict]:
        if not os.path.exists(self.path):
            return []
        with open(self.path) as f:
            return json.load(f)

    def _write(self, records: list[dict]) -> None:
        tmp_path = f"{self.path}.tmp"
        with open(tmp_path, "w") as f:
            json.dump(records, f, indent=2, ensure_ascii=False)
        os.replace(tmp_path, self.path)

    @staticmethod
    def _index(records: list[dict], user_id: str, guild_id: str) -> int | None:
        for i, record in enumerate(records):
            if isinstance(record, dict) and record.get("user_id") == user_id and record.get("guild_id") == guild_id:
                return i
        return None

    def list_all(self) -> list[AccountConfig]:
        return [decode_record(r) for r in self._read()]

    def list_enabled(self) -> list[AccountConfig]:
        """All accounts that are not paused."""
        return [a for a in self.list_all() if not a.paused]

    def get(self, user_id: str, guild_id: str) -> AccountConfig:
        records = self._read()
        index = self._index(records, user_id, guild_id)
        if index is None:
            raise AccountNotFoundError(f"No account for user {user_id} in guild {guild_id}")
        return decode_record(records[index])

    def save(self, account: AccountConfig) -> None:
        """Insert or replace an account. ``account.token`` must be plaintext."""
        records = self._read()
        record = encode_record(account, self.cipher)
        index = self._index(records, account.user_id, account.guild_id)
        if index is None:
            records.append(record)
        else:
            records[index] = record
        self._write(records)

    def set_paused(self, user_id: str, guild_id: str, paused: bool) -> None:
        records = self._read()
        index = self._index(records, user_id, guild_id)
        if index is None:
            raise AccountNotFoundError(f"No account for user {user_id} in guild {guild_id}")
        records[index]["paused"] = paused
        self._write(records)

    def remove(self, user_id: str, guild_id: str) -> None:
        records = self._read()
        index = self._index(records, user_id, guild_id)
        if index is None:
            raise AccountNotFoundError(f"No account for user {user_id} in guild {guild_id}")
        del records[index]
        self._write(records)
