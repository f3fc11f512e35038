"""Remote entry stores."""

from __future__ import annotations

from pictonote.remote.base import RemoteEntry, RemoteEntryStore, entries_path, image_blob_path
from pictonote.remote.memory import InMemoryRemoteStore

__all__ = [
    "FirestoreRemoteStore",
    "InMemoryRemoteStore",
    "RemoteEntry",
    "RemoteEntryStore",
    "entries_path",
    "image_blob_path",
]


def __getattr__(name: str):
    if name == "FirestoreRemoteStore":
        from pictonote.remote.firestore import FirestoreRemoteStore

        return FirestoreRemoteStore
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
