"""
Durable key-value file used for account credentials.

The store is deliberately dumb: string keys map to string values, and
setting a key to None removes it. All logic about what the keys mean
lives in yt_account_sync.auth.credentials.

The file is JSON, rewritten atomically (temporary file + os.replace) and
restricted to the owner (0o600) because it holds OAuth tokens.
"""

import json
import os
import threading
from pathlib import Path
from typing import Mapping

from yt_account_sync.core.exceptions import CredentialStoreError


class JsonKeyValueStore:
    """
    Thread-safe string key-value store backed by a JSON file.

    Every read goes to disk so that two processes sharing the same
    storage directory see each other's writes.

    Attributes:
        path: Location of the JSON file. Created on first write.
    """

    def __init__(self, path: Path) -> None:
        self.path = path
        self._lock = threading.Lock()

    def get_many(self, keys: list[str]) -> dict[str, str | None]:
        """Read several keys from a single snapshot of the file."""
        with self._lock:
            data = self._read()
        return {key: data.get(key) for key in keys}

    def update(self, values: Mapping[str, str | None]) -> None:
        """
        Apply several writes in one file rewrite.

        Args:
            values: Keys to write. A None value removes the key.
        """
        with self._lock:
            data = self._read()
            for key, value in values.items():
                if value is None:
                    data.pop(key, None)
                else:
                    data[key] = str(value)
            self._write(data)

    def _read(self) -> dict[str, str]:
        if not self.path.exists():
            return {}

        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise CredentialStoreError(
                f"Failed to read credentials file: {e}",
                details={"file_path": str(self.path), "original_error": str(e)}
            ) from e

        if not isinstance(data, dict):
            raise CredentialStoreError(
                "Credentials file must contain a JSON object",
                details={"file_path": str(self.path)}
            )
        return data

    def _write(self, data: dict[str, str]) -> None:
        tmp_path = self.path.with_name(self.path.name + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(tmp_path, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2, sort_keys=True)
            try:
                # Owner read/write only
                tmp_path.chmod(0o600)
            except OSError:
                # Not supported on every platform (e.g. Windows)
                pass
            os.replace(tmp_path, self.path)
        except OSError as e:
            raise CredentialStoreError(
                f"Failed to write credentials file: {e}",
                details={"file_path": str(self.path), "original_error": str(e)}
            ) from e
