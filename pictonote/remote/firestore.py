"""RemoteEntryStore implementation backed by Cloud Firestore and Cloud Storage."""

from __future__ import annotations

import asyncio
import logging
import uuid
from collections.abc import Callable
from typing import Any
from urllib.parse import quote, unquote, urlparse

import firebase_admin
import httpx
from firebase_admin import credentials, firestore_async, storage
from google.api_core import exceptions as google_exceptions

from pictonote.config.models import FirebaseConfig
from pictonote.errors import ConnectivityError, DownloadError, ParseError, UploadError
from pictonote.remote.base import RemoteEntry, image_blob_path

logger = logging.getLogger(__name__)

_PROBE_DOC = "database_check_doc"
_DOWNLOAD_HOST = "firebasestorage.googleapis.com"
_UNREACHABLE = (
    google_exceptions.ServiceUnavailable,
    google_exceptions.DeadlineExceeded,
    google_exceptions.RetryError,
)


def _download_url(bucket_name: str, blob_name: str, token: str) -> str:
    """Token URL in the same shape the Firebase client SDKs hand out."""
    return (
        f"https://{_DOWNLOAD_HOST}/v0/b/{bucket_name}/o/"
        f"{quote(blob_name, safe='')}?alt=media&token={token}"
    )


def _parse_storage_url(url: str) -> tuple[str, str] | None:
    """Return ``(bucket, blob_name)`` for gs:// and Firebase download URLs."""
    parsed = urlparse(url)
    if parsed.scheme == "gs":
        return parsed.netloc, parsed.path.lstrip("/")
    if parsed.netloc == _DOWNLOAD_HOST:
        parts = parsed.path.split("/")
        # /v0/b/<bucket>/o/<encoded name>
        if len(parts) == 6 and parts[1] == "v0" and parts[2] == "b" and parts[4] == "o":
            return parts[3], unquote(parts[5])
    return None


class FirestoreRemoteStore:
    """Remote journal store: one Firestore document per entry, images in a bucket.

    Documents live at ``users/<uid>/journal_entries/<entry_id>``; images at
    ``users/<uid>/journal_images/<entry_id>/<filename>``. Firestore calls use
    the async client. The Storage client is synchronous, so blob transfers run
    in worker threads.
    """

    def __init__(self, db: Any, bucket: Any) -> None:
        self._db = db
        self._bucket = bucket

    @classmethod
    def from_config(cls, config: FirebaseConfig) -> FirestoreRemoteStore:
        """Initialise (or reuse) the default firebase_admin app and build a store."""
        try:
            app = firebase_admin.get_app()
        except ValueError:
            cred = (
                credentials.Certificate(config.credentials_path)
                if config.credentials_path
                else credentials.ApplicationDefault()
            )
            options: dict[str, str] = {}
            if config.storage_bucket:
                options["storageBucket"] = config.storage_bucket
            if config.project_id:
                options["projectId"] = config.project_id
            app = firebase_admin.initialize_app(cred, options)
            logger.debug("Firebase app initialised (bucket=%s)", config.storage_bucket)
        return cls(firestore_async.client(app), storage.bucket(app=app))

    def _collection(self, user_id: str):
        return self._db.collection("users").document(user_id).collection("journal_entries")

    # -- RemoteEntryStore protocol ---------------------------------------------

    async def ping(self) -> None:
        """Probe Firestore once; only a missing database or no route is fatal."""
        try:
            await self._db.collection("users").document(_PROBE_DOC).get()
        except google_exceptions.NotFound as e:
            if "does not exist" in str(e).lower():
                raise ConnectivityError(f"Firestore database not configured: {e}") from e
            logger.warning("Firestore probe returned %s; assuming configured", e)
        except _UNREACHABLE as e:
            raise ConnectivityError(f"Firestore unreachable: {e}") from e
        except google_exceptions.GoogleAPIError as e:
            logger.warning("Firestore reachable but probe failed: %s; assuming configured", e)

    async def list(
        self,
        user_id: str,
        on_reject: Callable[[str, ParseError], None] | None = None,
    ) -> list[RemoteEntry]:
        entries: list[RemoteEntry] = []
        async for snap in self._collection(user_id).stream():
            try:
                entries.append(RemoteEntry.from_document(snap.id, snap.to_dict()))
            except ParseError as e:
                logger.warning("Skipping remote document %s: %s", snap.id, e)
                if on_reject is not None:
                    on_reject(snap.id, e)
        return entries

    async def get(self, user_id: str, entry_id: str) -> RemoteEntry | None:
        snap = await self._collection(user_id).document(entry_id).get()
        if not snap.exists:
            return None
        return RemoteEntry.from_document(snap.id, snap.to_dict())

    async def put(
        self,
        user_id: str,
        entry_id: str,
        content: str,
        remote_image_url: str | None,
        last_modified: int,
    ) -> None:
        doc = RemoteEntry(
            entry_id=entry_id,
            content=content,
            remote_image_url=remote_image_url,
            last_modified=last_modified,
        )
        await self._collection(user_id).document(entry_id).set(doc.to_document())
        logger.debug("put %s/%s (lastModified=%d)", user_id, entry_id, last_modified)

    async def upload_image(
        self, user_id: str, entry_id: str, filename: str, data: bytes
    ) -> str:
        blob_name = image_blob_path(user_id, entry_id, filename)
        token = str(uuid.uuid4())

        def _upload() -> None:
            blob = self._bucket.blob(blob_name)
            blob.metadata = {"firebaseStorageDownloadTokens": token}
            blob.upload_from_string(data, content_type="image/jpeg")

        try:
            await asyncio.to_thread(_upload)
        except (google_exceptions.GoogleAPIError, OSError) as e:
            raise UploadError(blob_name, e) from e
        url = _download_url(self._bucket.name, blob_name, token)
        logger.info("Uploaded image for %s -> %s", entry_id, blob_name)
        return url

    async def download_image(self, url: str) -> bytes:
        location = _parse_storage_url(url)
        try:
            if location is not None and location[0] == self._bucket.name:
                blob = self._bucket.blob(location[1])
                return await asyncio.to_thread(blob.download_as_bytes)
            async with httpx.AsyncClient() as client:
                resp = await client.get(url, follow_redirects=True)
                resp.raise_for_status()
                return resp.content
        except (google_exceptions.GoogleAPIError, httpx.HTTPError, OSError) as e:
            raise DownloadError(url, e) from e
