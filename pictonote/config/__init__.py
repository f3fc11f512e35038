from .loader import load_config
from .models import (
    AssistConfig,
    FirebaseConfig,
    PictoNoteConfig,
    StorageConfig,
    SyncConfig,
)

__all__ = [
    "AssistConfig",
    "FirebaseConfig",
    "PictoNoteConfig",
    "StorageConfig",
    "SyncConfig",
    "load_config",
]
