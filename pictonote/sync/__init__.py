"""Local/remote journal synchronization."""

from .engine import SyncEngine
from .models import SyncError, SyncPhase, SyncReport

__all__ = ["SyncEngine", "SyncError", "SyncPhase", "SyncReport"]
