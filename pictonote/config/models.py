from pydantic import BaseModel, Field
from typing import Literal


class StorageConfig(BaseModel):
    data_root: str = "~/.pictonote/data"
    entries_dir: str = "journal_entries"
    images_dir: str = "journal_images"


class SyncConfig(BaseModel):
    timeout_seconds: float = Field(default=30.0, gt=0)
    tolerance_ms: int = Field(default=2000, gt=0)
    auto_sync: bool = False


class FirebaseConfig(BaseModel):
    credentials_path: str | None = None
    storage_bucket: str | None = None
    project_id: str | None = None


class AssistConfig(BaseModel):
    model: str = "gemini-1.5-flash"
    api_key_env: str = "GEMINI_API_KEY"
    base_url: str = "https://generativelanguage.googleapis.com/v1beta"
    timeout: float = Field(default=60.0, gt=0)
    max_output_tokens: int = Field(default=512, gt=0)


class PictoNoteConfig(BaseModel):
    storage: StorageConfig = Field(default_factory=StorageConfig)
    sync: SyncConfig = Field(default_factory=SyncConfig)
    firebase: FirebaseConfig = Field(default_factory=FirebaseConfig)
    assist: AssistConfig = Field(default_factory=AssistConfig)
    log_level: Literal["debug", "info", "warn", "error"] = "info"
    log_format: Literal["text", "json"] = "text"
