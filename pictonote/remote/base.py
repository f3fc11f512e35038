"""Remote entry store interface and models."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any, Protocol, runtime_checkable

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from pictonote.errors import ParseError


class RemoteEntry(BaseModel):
    """A journal entry document as stored under ``users/<uid>/journal_entries``."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    entry_id: str = Field(alias="entryId")
    content: str = ""
    remote_image_url: str | None = Field(default=None, alias="remoteImageUrl")
    last_modified: int = Field(default=0, alias="lastModified")

    def to_document(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True)

    @classmethod
    def from_document(cls, doc_id: str, data: dict[str, Any] | None) -> RemoteEntry:
        """Build from raw document data; the document id wins over any stored entryId."""
        try:
            return cls.model_validate({**(data or {}), "entryId": doc_id})
        except ValidationError as e:
            raise ParseError(f"Undecodable remote document {doc_id!r}: {e}") from e


@runtime_checkable
class RemoteEntryStore(Protocol):
    """Per-user document collection plus blob storage for entry images.

    ``list`` leaves out documents that cannot be decoded and reports each one
    to ``on_reject`` as ``(document id, ParseError)``.
    """

    async def ping(self) -> None: ...

    async def list(
        self,
        user_id: str,
        on_reject: Callable[[str, ParseError], None] | None = None,
    ) -> list[RemoteEntry]: ...

    async def get(self, user_id: str, entry_id: str) -> RemoteEntry | None: ...

    async def put(
        self,
        user_id: str,
        entry_id: str,
        content: str,
        remote_image_url: str | None,
        last_modified: int,
    ) -> None: ...

    async def upload_image(
        self, user_id: str, entry_id: str, filename: str, data: bytes
    ) -> str: ...

    async def download_image(self, url: str) -> bytes: ...


def entries_path(user_id: str) -> str:
    return f"users/{user_id}/journal_entries"


def image_blob_path(user_id: str, entry_id: str, filename: str) -> str:
    return f"users/{user_id}/journal_images/{entry_id}/{filename}"
