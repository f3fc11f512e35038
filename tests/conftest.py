"""Shared test fixtures for PictoNote."""

import io

import pytest
from PIL import Image

from pictonote.config.models import PictoNoteConfig, StorageConfig, SyncConfig
from pictonote.journal.local_store import LocalEntryStore
from pictonote.remote.memory import InMemoryRemoteStore
from pictonote.sync.engine import SyncEngine

USER = "user-1"

# Fixed "now" for the sync clock, later than any timestamp the tests write.
NOW_MS = 1_750_000_000_000


def jpeg_bytes(color: str = "red", size: tuple[int, int] = (4, 4)) -> bytes:
    buf = io.BytesIO()
    Image.new("RGB", size, color).save(buf, format="JPEG")
    return buf.getvalue()


@pytest.fixture
def sample_config():
    return PictoNoteConfig()


@pytest.fixture
def storage_config(tmp_path):
    return StorageConfig(data_root=str(tmp_path / "data"))


@pytest.fixture
def local_store(storage_config):
    return LocalEntryStore(storage_config)


@pytest.fixture
def remote_store():
    return InMemoryRemoteStore()


@pytest.fixture
def clock():
    """Mutable ms clock: tests advance it via ``clock.now``."""

    class _Clock:
        now = NOW_MS

        def __call__(self) -> int:
            return self.now

    return _Clock()


@pytest.fixture
def engine(local_store, remote_store, clock):
    return SyncEngine(local_store, remote_store, SyncConfig(timeout_seconds=1.0), clock=clock)


@pytest.fixture
def jpeg():
    return jpeg_bytes()


@pytest.fixture
def make_jpeg():
    return jpeg_bytes
