"""
File-per-record JSON store.

A record is addressed by (collection, key) and lives at
``<root>/<collection>/<key>.json``. Every operation is a coroutine that runs
its blocking file I/O in the threadpool and either returns or raises exactly
one StoreError.

Writes never expose a partial document: create publishes a fully written
temporary file with os.link (fails if the name is taken) and update swaps one
in with os.replace. There is no locking between requests; racing updates are
last-writer-wins.
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Any, Mapping
import json
import os
import uuid

from starlette.concurrency import run_in_threadpool

from accounts_api.core.config import get_settings
from accounts_api.core.logging import get_logger

logger = get_logger(__name__)

DOCUMENT_SUFFIX = ".json"
_TMP_SUFFIX = ".tmp"


class StoreError(Exception):
    """Base class for record store failures."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidRecordKeyError(StoreError):
    status_code = 400


class RecordExistsError(StoreError):
    status_code = 400


class RecordNotFoundError(StoreError):
    status_code = 404


class RecordWriteError(StoreError):
    pass


class RecordDeleteError(StoreError):
    pass


def _check_segment(value: str, label: str) -> str:
    if not isinstance(value, str) or not value:
        raise InvalidRecordKeyError(f"Record {label} must be a non-empty string")
    if value.startswith(".") or "/" in value or "\\" in value or "\x00" in value:
        raise InvalidRecordKeyError(f"Record {label} {value!r} is not allowed")
    return value


class FileStore:
    """CRUD helpers over a directory of JSON documents."""

    def __init__(self, root: Path | str) -> None:
        self._root = Path(root)

    @property
    def root(self) -> Path:
        return self._root

    def path_for(self, collection: str, key: str) -> Path:
        """Deterministic location of a record."""
        collection = _check_segment(collection, "collection")
        key = _check_segment(key, "key")
        return self._root / collection / f"{key}{DOCUMENT_SUFFIX}"

    # -------------------------------------- public API --------------------------------------
    async def create(self, collection: str, key: str, document: Mapping[str, Any]) -> None:
        path = self.path_for(collection, key)
        await run_in_threadpool(self._create, path, document)

    async def read(self, collection: str, key: str) -> str:
        path = self.path_for(collection, key)
        return await run_in_threadpool(self._read, path)

    async def update(self, collection: str, key: str, document: Mapping[str, Any]) -> None:
        path = self.path_for(collection, key)
        await run_in_threadpool(self._update, path, document)

    async def delete(self, collection: str, key: str) -> None:
        path = self.path_for(collection, key)
        await run_in_threadpool(self._delete, path)

    # -------------------------------------- blocking helpers --------------------------------------
    def _write_temp(self, path: Path, document: Mapping[str, Any]) -> Path:
        """Serialize document into a sibling temp file and return its path."""
        try:
            payload = json.dumps(document, ensure_ascii=False)
        except (TypeError, ValueError) as exc:
            raise RecordWriteError("Document is not JSON serializable") from exc
        tmp = path.with_name(f".{uuid.uuid4().hex}{_TMP_SUFFIX}")
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with tmp.open("x", encoding="utf-8") as f:
                f.write(payload)
                f.flush()
                os.fsync(f.fileno())
        except OSError as exc:
            self._discard(tmp)
            logger.warning("Failed to write temp file for %s", path.name, exc_info=True)
            raise RecordWriteError("Failed to write record") from exc
        return tmp

    def _discard(self, tmp: Path) -> None:
        try:
            tmp.unlink()
        except FileNotFoundError:
            pass
        except OSError:
            logger.warning("Could not remove temp file %s", tmp.name, exc_info=True)

    def _create(self, path: Path, document: Mapping[str, Any]) -> None:
        tmp = self._write_temp(path, document)
        try:
            os.link(tmp, path)
        except FileExistsError as exc:
            raise RecordExistsError("Record already exists") from exc
        except OSError as exc:
            logger.warning("Failed to publish %s", path.name, exc_info=True)
            raise RecordWriteError("Failed to create record") from exc
        finally:
            self._discard(tmp)

    def _read(self, path: Path) -> str:
        try:
            with path.open("r", encoding="utf-8") as f:
                return f.read()
        except (OSError, UnicodeDecodeError) as exc:
            raise RecordNotFoundError("Record not found") from exc

    def _update(self, path: Path, document: Mapping[str, Any]) -> None:
        if not path.is_file():
            raise RecordNotFoundError("Record not found")
        tmp = self._write_temp(path, document)
        try:
            os.replace(tmp, path)
        except OSError as exc:
            self._discard(tmp)
            logger.warning("Failed to replace %s", path.name, exc_info=True)
            raise RecordWriteError("Failed to update record") from exc

    def _delete(self, path: Path) -> None:
        try:
            path.unlink()
        except FileNotFoundError as exc:
            raise RecordNotFoundError("Record not found") from exc
        except OSError as exc:
            logger.warning("Failed to delete %s", path.name, exc_info=True)
            raise RecordDeleteError("Failed to delete record") from exc


@lru_cache
def get_store() -> FileStore:
    """Process-wide store rooted at Settings.data_dir."""
    return FileStore(get_settings().data_dir)
