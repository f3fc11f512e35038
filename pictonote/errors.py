"""Exception hierarchy shared by the journal stores and the sync engine."""

from __future__ import annotations


class PictoNoteError(Exception):
    """Base class for all PictoNote errors."""


class NotFound(PictoNoteError):
    """A local entry file or remote document does not exist."""

    def __init__(self, what: str, key: str) -> None:
        self.what = what
        self.key = key
        super().__init__(f"{what} not found: {key}")


class ParseError(PictoNoteError):
    """Malformed filename, entry id, image path, or remote document."""


class CorruptLocalImage(PictoNoteError):
    """A local image file exists but cannot be decoded."""


class TransferError(PictoNoteError):
    """Wraps a blob transfer failure with the entry it belongs to."""

    operation = "transfer"

    def __init__(self, target: str, cause: Exception) -> None:
        self.target = target
        super().__init__(f"{self.operation} failed for {target}: {cause}")
        self.__cause__ = cause


class UploadError(TransferError):
    operation = "upload"


class DownloadError(TransferError):
    operation = "download"


class ConnectivityError(PictoNoteError):
    """The remote store is unreachable or not configured."""


class SyncInProgressError(PictoNoteError):
    """A synchronize call is already running for this user."""

    def __init__(self, user_id: str) -> None:
        self.user_id = user_id
        super().__init__(f"sync already running for user {user_id!r}")
