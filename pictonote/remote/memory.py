"""RemoteEntryStore kept entirely in process memory."""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

from pictonote.errors import ConnectivityError, DownloadError, ParseError, UploadError
from pictonote.remote.base import RemoteEntry, image_blob_path

logger = logging.getLogger(__name__)

_URL_SCHEME = "memory://"


class InMemoryRemoteStore:
    """RemoteEntryStore backed by dicts.

    Useful for offline runs and tests. ``blobs`` is keyed by download URL.
    ``online`` toggles the connectivity probe, and ``fail_uploads`` /
    ``fail_downloads`` make blob transfers fail for the listed entry ids or
    URLs. ``raw_documents`` holds undecoded document data, as another client
    might have written it; it is decoded on read like Firestore snapshots.
    """

    def __init__(self) -> None:
        self.documents: dict[str, dict[str, RemoteEntry]] = {}
        self.raw_documents: dict[str, dict[str, dict[str, Any]]] = {}
        self.blobs: dict[str, bytes] = {}
        self.online = True
        self.fail_uploads: set[str] = set()
        self.fail_downloads: set[str] = set()
        self.put_count = 0
        self.upload_count = 0

    # -- RemoteEntryStore protocol ---------------------------------------------

    async def ping(self) -> None:
        if not self.online:
            raise ConnectivityError("in-memory store is offline")

    async def list(
        self,
        user_id: str,
        on_reject: Callable[[str, ParseError], None] | None = None,
    ) -> list[RemoteEntry]:
        docs = dict(self.documents.get(user_id, {}))
        for doc_id, data in self.raw_documents.get(user_id, {}).items():
            try:
                docs[doc_id] = RemoteEntry.from_document(doc_id, data)
            except ParseError as e:
                logger.warning("Skipping remote document %s: %s", doc_id, e)
                if on_reject is not None:
                    on_reject(doc_id, e)
        return [docs[k] for k in sorted(docs)]

    async def get(self, user_id: str, entry_id: str) -> RemoteEntry | None:
        raw = self.raw_documents.get(user_id, {})
        if entry_id in raw:
            return RemoteEntry.from_document(entry_id, raw[entry_id])
        return self.documents.get(user_id, {}).get(entry_id)

    async def put(
        self,
        user_id: str,
        entry_id: str,
        content: str,
        remote_image_url: str | None,
        last_modified: int,
    ) -> None:
        self.raw_documents.get(user_id, {}).pop(entry_id, None)
        self.documents.setdefault(user_id, {})[entry_id] = RemoteEntry(
            entry_id=entry_id,
            content=content,
            remote_image_url=remote_image_url,
            last_modified=last_modified,
        )
        self.put_count += 1

    async def upload_image(
        self, user_id: str, entry_id: str, filename: str, data: bytes
    ) -> str:
        path = image_blob_path(user_id, entry_id, filename)
        if entry_id in self.fail_uploads:
            raise UploadError(path, RuntimeError("simulated upload failure"))
        url = _URL_SCHEME + path
        self.blobs[url] = data
        self.upload_count += 1
        return url

    async def download_image(self, url: str) -> bytes:
        if url in self.fail_downloads:
            raise DownloadError(url, RuntimeError("simulated download failure"))
        try:
            return self.blobs[url]
        except KeyError as e:
            raise DownloadError(url, e) from e
