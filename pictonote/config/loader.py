"""YAML config loading with env var expansion."""

import logging
import os
import re
from pathlib import Path

import yaml
from pydantic import ValidationError

from .models import PictoNoteConfig

logger = logging.getLogger(__name__)

CONFIG_ENV = "PICTONOTE_CONFIG"

# ${VAR} or ${VAR:-fallback}
_ENV_REF = re.compile(r"\$\{(\w+)(?::-([^}]*))?\}")


def config_search_path(cli_path: str | None = None) -> list[Path]:
    """Candidate config files, highest priority first."""
    paths: list[Path] = []
    explicit = cli_path or os.environ.get(CONFIG_ENV)
    if explicit:
        paths.append(Path(explicit).expanduser())
    paths.append(Path("./pictonote.yaml"))
    paths.append(Path.home() / ".pictonote" / "config.yaml")
    return paths


def load_config(cli_path: str | None = None) -> PictoNoteConfig:
    """Load config with resolution order: CLI/$PICTONOTE_CONFIG > project-local > user-global > defaults.

    An explicitly named file that does not exist is an error; the implicit
    locations are simply skipped. A file that parses to nothing falls through
    to the next location.
    """
    explicit = cli_path or os.environ.get(CONFIG_ENV)
    if explicit and not Path(explicit).expanduser().exists():
        raise ValueError(f"Config file not found: {explicit}")

    for path in config_search_path(cli_path):
        if not path.exists():
            continue
        try:
            raw = yaml.safe_load(path.read_text())
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML in {path}: {e}") from e
        if raw is None:
            continue
        if not isinstance(raw, dict):
            raise ValueError(f"Invalid config in {path}: top level must be a mapping")
        try:
            config = PictoNoteConfig(**_expand_env_vars(raw))
        except ValidationError as e:
            raise ValueError(f"Invalid config in {path}: {e}") from e
        logger.debug("Loaded config from %s", path)
        return config

    logger.debug("No config file found, using defaults")
    return PictoNoteConfig()


def _expand_env_vars(obj: object) -> object:
    """Recursively expand ${VAR} and ${VAR:-default} references in strings."""
    if isinstance(obj, str):
        return _ENV_REF.sub(lambda m: os.environ.get(m.group(1)) or (m.group(2) or ""), obj)
    elif isinstance(obj, dict):
        return {k: _expand_env_vars(v) for k, v in obj.items()}
    elif isinstance(obj, list):
        return [_expand_env_vars(v) for v in obj]
    return obj


# Default YAML template for `pictonote config init`
DEFAULT_CONFIG_TEMPLATE = """\
# pictonote.yaml

# Local journal storage
storage:
  data_root: "${PICTONOTE_DATA:-~/.pictonote/data}"
  entries_dir: "journal_entries"
  images_dir: "journal_images"

# Cloud sync
sync:
  timeout_seconds: 30          # per remote operation
  tolerance_ms: 2000           # timestamp slack when verifying
  auto_sync: false             # push each entry right after saving

# Firebase project
firebase:
  credentials_path: "${GOOGLE_APPLICATION_CREDENTIALS}"
  storage_bucket: "your-project.appspot.com"
  # project_id: "your-project"

# Writing assistant
assist:
  model: "gemini-1.5-flash"
  api_key_env: "GEMINI_API_KEY"
  timeout: 60
  max_output_tokens: 512

# Logging
log_level: "info"              # debug | info | warn | error
log_format: "text"             # text | json
"""
