"""Shared pytest fixtures for fileshare-cli tests."""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator, Callable
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import pytest

from fileshare_cli.references import RemoteFile, ShareReference
from fileshare_cli.store import StorageContext

LAST_MODIFIED = datetime(2024, 3, 1, 12, 30, tzinfo=timezone.utc)


# =============================================================================
# In-memory stand-in for the obstore module
# =============================================================================


@dataclass
class FakeObject:
    """An object stored in FakeObstore."""

    data: bytes
    attributes: dict[str, str] = field(default_factory=dict)
    served: bytes | None = None  # content actually streamed (simulates corruption)
    last_modified: datetime = LAST_MODIFIED
    e_tag: str = '"0x8DC"'


class FakeGetResult:
    def __init__(self, owner: FakeObstore, path: str, obj: FakeObject) -> None:
        self._owner = owner
        self._path = path
        self._obj = obj
        self.meta = owner.meta(path, obj)
        self.attributes = dict(obj.attributes)

    def stream(self, min_chunk_size: int = 10 * 1024 * 1024) -> AsyncIterator[bytes]:
        return self._chunks(self._owner.chunk_size or min_chunk_size)

    async def _chunks(self, size: int) -> AsyncIterator[bytes]:
        content = self._obj.served if self._obj.served is not None else self._obj.data
        for index, offset in enumerate(range(0, len(content), size)):
            if self._owner.stream_error is not None and index == self._owner.fail_at_chunk:
                raise self._owner.stream_error
            await asyncio.sleep(0)
            yield content[offset : offset + size]
            if self._owner.on_chunk is not None:
                self._owner.on_chunk(index)


class FakeObstore:
    """Replaces ``obs`` in fileshare_cli.references and fileshare_cli.transfer.

    Objects are keyed by path only; the store argument is recorded but ignored.
    """

    def __init__(self) -> None:
        self.objects: dict[str, FakeObject] = {}
        self.calls: list[tuple[str, str]] = []
        self.chunk_size: int | None = None
        self.head_error: BaseException | None = None
        self.stream_error: BaseException | None = None
        self.fail_at_chunk = 0
        self.on_chunk: Callable[[int], None] | None = None

    def put(self, path: str, data: bytes, **kwargs: Any) -> FakeObject:
        obj = FakeObject(data=data, **kwargs)
        self.objects[path] = obj
        return obj

    def meta(self, path: str, obj: FakeObject) -> dict[str, Any]:
        return {
            "path": path,
            "size": len(obj.data),
            "last_modified": obj.last_modified,
            "e_tag": obj.e_tag,
            "version": None,
        }

    async def head_async(self, store: Any, path: str) -> dict[str, Any]:
        self.calls.append(("head", path))
        await asyncio.sleep(0)
        if self.head_error is not None:
            raise self.head_error
        if path not in self.objects:
            raise FileNotFoundError(path)
        return self.meta(path, self.objects[path])

    async def get_async(self, store: Any, path: str) -> FakeGetResult:
        self.calls.append(("get", path))
        await asyncio.sleep(0)
        if path not in self.objects:
            raise FileNotFoundError(path)
        return FakeGetResult(self, path, self.objects[path])


@pytest.fixture
def fake_obs(monkeypatch: pytest.MonkeyPatch) -> FakeObstore:
    """Patch obstore in the modules that perform I/O."""
    fake = FakeObstore()
    monkeypatch.setattr("fileshare_cli.references.obs", fake)
    monkeypatch.setattr("fileshare_cli.transfer.obs", fake)
    return fake


# =============================================================================
# References
# =============================================================================


@pytest.fixture
def store_sentinel() -> object:
    """Opaque object standing in for an obstore store."""
    return object()


@pytest.fixture
def share(store_sentinel: object) -> ShareReference:
    return ShareReference(
        name="docs", url="az://acct/docs", store=store_sentinel  # type: ignore[arg-type]
    )


@pytest.fixture
def storage_context(store_sentinel: object) -> StorageContext:
    """Context whose stores are all the sentinel."""
    return StorageContext(
        account_url="az://acct",
        store_factory=lambda url: store_sentinel,  # type: ignore[arg-type,return-value]
    )


@pytest.fixture
def report_file(share: ShareReference) -> RemoteFile:
    """Handle to docs/a/b/report.pdf."""
    return share.root_directory().get_file_reference(("a", "b", "report.pdf"))


@pytest.fixture
def downloads_dir(tmp_path: Path) -> Path:
    """An existing local directory."""
    path = tmp_path / "downloads"
    path.mkdir()
    return path
