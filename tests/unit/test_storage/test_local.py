"""Tests for the LocalKeyValueStore."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from contentchecker.storage import local
from contentchecker.storage.base import StoreError, StoreRecord, store_name_for
from contentchecker.storage.local import (
    COMMIT_MARKER,
    METADATA_FILE,
    STAGING_PREFIX,
    LocalKeyValueStore,
)


def test_store_name_for() -> None:
    assert store_name_for("abc123") == "content-checker-store-abc123"


class TestLocalKeyValueStore:
    @pytest.mark.asyncio
    async def test_missing_key_is_none(self, store: LocalKeyValueStore) -> None:
        assert await store.get("currentData") is None

    @pytest.mark.asyncio
    async def test_bytes_round_trip(self, store: LocalKeyValueStore, new_png: bytes) -> None:
        await store.set("currentScreenshot.png", new_png, content_type="image/png")
        assert await store.get("currentScreenshot.png") == new_png
        assert (store.path / "currentScreenshot.png").read_bytes() == new_png

    @pytest.mark.asyncio
    async def test_strings_are_stored_as_json(self, store: LocalKeyValueStore) -> None:
        await store.set("currentData", "  Hello\n")
        assert await store.get("currentData") == "  Hello\n"
        assert json.loads((store.path / "currentData").read_text()) == "  Hello\n"

    @pytest.mark.asyncio
    async def test_none_is_stored_as_json_null(self, store: LocalKeyValueStore) -> None:
        await store.set("previousData", None)
        assert (store.path / "previousData").read_text() == "null"

    @pytest.mark.asyncio
    async def test_text_content_type_stored_raw(self, store: LocalKeyValueStore) -> None:
        await store.set("note", "plain", content_type="text/plain")
        assert (store.path / "note").read_text() == "plain"
        assert await store.get("note") == "plain"

    @pytest.mark.asyncio
    async def test_set_many_writes_all_records(self, store: LocalKeyValueStore) -> None:
        await store.set_many([
            StoreRecord(key="previousData", value="a"),
            StoreRecord(key="currentData", value="b"),
        ])
        assert await store.get("previousData") == "a"
        assert await store.get("currentData") == "b"
        assert not list(store.path.glob(f"{STAGING_PREFIX}*"))

    @pytest.mark.asyncio
    async def test_invalid_key_rejected(self, store: LocalKeyValueStore) -> None:
        with pytest.raises(StoreError):
            await store.set("../escape", "x")
        with pytest.raises(StoreError):
            await store.get(METADATA_FILE)

    @pytest.mark.asyncio
    async def test_unserializable_value_leaves_nothing_behind(self, store: LocalKeyValueStore) -> None:
        await store.set("currentData", "before")
        with pytest.raises(StoreError):
            await store.set_many([
                StoreRecord(key="previousData", value="ok"),
                StoreRecord(key="currentData", value=object()),
            ])
        assert await store.get("previousData") is None
        assert await store.get("currentData") == "before"
        assert not list(store.path.glob(f"{STAGING_PREFIX}*"))

    @pytest.mark.asyncio
    async def test_every_staged_file_synced_before_marker(
        self, store: LocalKeyValueStore, new_png: bytes, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        synced: list[str] = []
        real_write_durable = local._write_durable

        def recording_write(path: Path, data: bytes) -> None:
            synced.append(path.name)
            real_write_durable(path, data)

        monkeypatch.setattr(local, "_write_durable", recording_write)
        await store.set_many([
            StoreRecord(key="currentScreenshot.png", value=new_png, content_type="image/png"),
            StoreRecord(key="currentData", value="World"),
        ])

        assert synced == ["currentScreenshot.png", "currentData", METADATA_FILE, COMMIT_MARKER]
        assert await store.get("currentScreenshot.png") == new_png

    @pytest.mark.asyncio
    async def test_committed_staging_is_rolled_forward(self, tmp_path: Path) -> None:
        name = "content-checker-store-x"
        staging = tmp_path / name / f"{STAGING_PREFIX}abc"
        staging.mkdir(parents=True)
        (staging / "previousData").write_text('"Hello"')
        (staging / "currentData").write_text('"World"')
        (staging / METADATA_FILE).write_text(json.dumps({
            "previousData": "application/json; charset=utf-8",
            "currentData": "application/json; charset=utf-8",
        }))
        (staging / COMMIT_MARKER).write_bytes(b"")

        store = LocalKeyValueStore(root=tmp_path, name=name)
        assert await store.get("previousData") == "Hello"
        assert await store.get("currentData") == "World"
        assert not staging.exists()

    @pytest.mark.asyncio
    async def test_uncommitted_staging_is_discarded(self, tmp_path: Path) -> None:
        name = "content-checker-store-x"
        staging = tmp_path / name / f"{STAGING_PREFIX}abc"
        staging.mkdir(parents=True)
        (staging / "previousData").write_text('"Hello"')

        store = LocalKeyValueStore(root=tmp_path, name=name)
        assert await store.get("previousData") is None
        assert not staging.exists()

    def test_record_url_defaults_to_file_uri(self, store: LocalKeyValueStore) -> None:
        url = store.record_url("currentScreenshot.png")
        assert url.startswith("file://")
        assert url.endswith(f"{store.store_name}/currentScreenshot.png")

    def test_record_url_with_public_base(self, tmp_path: Path) -> None:
        store = LocalKeyValueStore(
            root=tmp_path, name="content-checker-store-t1",
            public_base_url="https://api.apify.com/v2/",
        )
        assert store.record_url("currentScreenshot.png") == (
            "https://api.apify.com/v2/key-value-stores/"
            "content-checker-store-t1/records/currentScreenshot.png"
        )
