"""Filesystem key-value store.

Each store is a directory with one file per record, named by its key, so
records stay discoverable at fixed paths. Content types live in a
metadata file next to them.

Batches are committed through a staging directory: all files of the batch
and the new metadata are written there, a commit marker is written last,
and only then are the files moved into place. On startup a committed
staging directory is rolled forward and an uncommitted one discarded, so
a crash mid-batch never leaves half of it visible.
"""

from __future__ import annotations

import asyncio
import json
import logging
import os
import re
import shutil
import uuid
from pathlib import Path
from typing import Any

from contentchecker.storage.base import KeyValueStore, StoreError, StoreRecord

logger = logging.getLogger(__name__)

METADATA_FILE = "__metadata__.json"
COMMIT_MARKER = "__committed__"
STAGING_PREFIX = ".staging-"

JSON_CONTENT_TYPE = "application/json; charset=utf-8"
BINARY_CONTENT_TYPE = "application/octet-stream"

_KEY_PATTERN = re.compile(r"^[a-zA-Z0-9!\-_.'()]{1,256}$")


class LocalKeyValueStore(KeyValueStore):
    """Key-value store backed by a directory under ``root``."""

    def __init__(
        self,
        root: Path | str,
        name: str,
        public_base_url: str | None = None,
    ) -> None:
        super().__init__(name)
        self._dir = Path(root) / name
        self._public_base_url = public_base_url.rstrip("/") if public_base_url else None
        try:
            self._dir.mkdir(parents=True, exist_ok=True)
            self._recover()
        except OSError as e:
            raise StoreError(f"Cannot open store at {self._dir}: {e}", store_name=name) from e

    @property
    def path(self) -> Path:
        return self._dir

    async def get(self, key: str) -> Any:
        self._check_key(key)
        loop = asyncio.get_event_loop()
        return await loop.run_in_executor(None, self._get_sync, key)

    async def set_many(self, records: list[StoreRecord]) -> None:
        for record in records:
            self._check_key(record.key)
        loop = asyncio.get_event_loop()
        await loop.run_in_executor(None, self._commit_sync, records)
        logger.debug("Stored %s in %s", [r.key for r in records], self.store_name)

    def record_url(self, key: str) -> str:
        if self._public_base_url:
            return f"{self._public_base_url}/key-value-stores/{self.store_name}/records/{key}"
        return (self._dir / key).resolve().as_uri()

    def _check_key(self, key: str) -> None:
        if not _KEY_PATTERN.match(key) or key in (METADATA_FILE, COMMIT_MARKER):
            raise StoreError(f"Invalid record key: {key!r}", store_name=self.store_name)

    # -- reads ---------------------------------------------------------------

    def _read_metadata(self) -> dict[str, str]:
        path = self._dir / METADATA_FILE
        if not path.exists():
            return {}
        with open(path, encoding="utf-8") as f:
            return json.load(f)

    def _get_sync(self, key: str) -> Any:
        try:
            content_type = self._read_metadata().get(key)
            path = self._dir / key
            if content_type is None or not path.exists():
                return None
            return _decode(path.read_bytes(), content_type)
        except (OSError, ValueError) as e:
            raise StoreError(f"Cannot read {key}: {e}", store_name=self.store_name) from e

    # -- writes --------------------------------------------------------------

    def _commit_sync(self, records: list[StoreRecord]) -> None:
        staging = self._dir / f"{STAGING_PREFIX}{uuid.uuid4().hex}"
        try:
            staging.mkdir()
            metadata = self._read_metadata()
            for record in records:
                data, content_type = _encode(record.value, record.content_type)
                _write_durable(staging / record.key, data)
                metadata[record.key] = content_type
            _write_durable(
                staging / METADATA_FILE,
                json.dumps(metadata, indent=2, sort_keys=True).encode("utf-8"),
            )
            # Marker only after every staged byte is on disk
            _fsync_dir(staging)
            _write_durable(staging / COMMIT_MARKER, b"")
            _fsync_dir(staging)
            self._roll_forward(staging)
        except (OSError, TypeError, ValueError) as e:
            if staging.exists() and not (staging / COMMIT_MARKER).exists():
                shutil.rmtree(staging, ignore_errors=True)
            raise StoreError(
                f"Cannot write {[r.key for r in records]}: {e}", store_name=self.store_name
            ) from e

    def _roll_forward(self, staging: Path) -> None:
        # Metadata last: a record listed there must already be in place
        names = sorted(p.name for p in staging.iterdir() if p.name not in (COMMIT_MARKER, METADATA_FILE))
        for name in names + [METADATA_FILE]:
            src = staging / name
            if src.exists():
                os.replace(src, self._dir / name)
        _fsync_dir(self._dir)
        (staging / COMMIT_MARKER).unlink()
        staging.rmdir()

    def _recover(self) -> None:
        for staging in sorted(self._dir.glob(f"{STAGING_PREFIX}*")):
            if (staging / COMMIT_MARKER).exists():
                logger.warning("Completing interrupted write in %s", staging.name)
                self._roll_forward(staging)
            else:
                logger.warning("Discarding incomplete write in %s", staging.name)
                shutil.rmtree(staging)


def _encode(value: Any, content_type: str | None) -> tuple[bytes, str]:
    if isinstance(value, (bytes, bytearray)):
        return bytes(value), content_type or BINARY_CONTENT_TYPE
    if isinstance(value, str) and content_type and content_type.startswith("text/"):
        return value.encode("utf-8"), content_type
    return json.dumps(value, ensure_ascii=False).encode("utf-8"), JSON_CONTENT_TYPE


def _decode(data: bytes, content_type: str) -> Any:
    if content_type.startswith("application/json"):
        return json.loads(data.decode("utf-8"))
    if content_type.startswith("text/"):
        return data.decode("utf-8")
    return data


def _write_durable(path: Path, data: bytes) -> None:
    with open(path, "wb") as f:
        f.write(data)
        f.flush()
        os.fsync(f.fileno())


def _fsync_dir(path: Path) -> None:
    if os.name != "posix":
        return
    fd = os.open(path, os.O_RDONLY)
    try:
        os.fsync(fd)
    finally:
        os.close(fd)
