"""Configuration settings for Iliad Tutor."""

from __future__ import annotations

import os
from dataclasses import dataclass, field, fields
from pathlib import Path

import yaml

DEFAULT_HOME = Path.home() / ".iliadtutor"
CONFIG_FILE = DEFAULT_HOME / "config.yaml"
DATA_ROOT_ENV = "ILIADTUTOR_DATA_ROOT"


def _data_root() -> Path:
    env_root = os.environ.get(DATA_ROOT_ENV)
    if env_root:
        return Path(env_root).expanduser()
    return DEFAULT_HOME


@dataclass
class Settings:
    """Application settings."""

    # Storage
    db_path: Path = field(default_factory=lambda: _data_root() / "iliadtutor.db")
    data_dir: Path = field(default_factory=lambda: _data_root() / "data")

    # Source documents (relative names resolve against data_dir)
    greek_text: str = "illiadGreek.xml"
    translation_primary: str = "murrayTranslation.xml"
    translation_supplements: list[str] = field(
        default_factory=lambda: ["murrayTranslationSupplement.xml"]
    )

    # Windows
    selector_window: int = 15
    chunk_size: int = 5
    log_display_limit: int = 10

    # External services
    hits_url: str = "https://artflsrv03.uchicago.edu/philologic4/Greek/query"
    hits_title: str = '"Iliad"'
    morpho_url: str = "https://logeion.uchicago.edu/morpho/"
    tutor_base_url: str = "https://api.lambda.ai/v1"
    tutor_model: str = "llama-4-scout-17b-16e-instruct"
    anki_url: str = "http://127.0.0.1:8765"
    anki_deck: str = "Greek Autoadd"
    http_timeout: float = 30.0

    # Server
    host: str = "127.0.0.1"
    port: int = 3001

    def resolve_document(self, location: str) -> str:
        """Resolve a document location against the data directory.

        URLs and absolute paths pass through unchanged.
        """
        if location.startswith(("http://", "https://")):
            return location
        path = Path(location).expanduser()
        if path.is_absolute():
            return str(path)
        return str(self.data_dir / path)

    @classmethod
    def load(cls, path: Path | None = None) -> "Settings":
        """Load settings, applying overrides from a YAML config file if present.

        Unknown keys are ignored. Path-typed settings are converted from
        strings.
        """
        path = path or (_data_root() / CONFIG_FILE.name)
        settings = cls()
        if not path.exists():
            return settings

        with open(path, encoding="utf-8") as f:
            overrides = yaml.safe_load(f) or {}

        known = {f.name: f for f in fields(cls)}
        for key, value in overrides.items():
            if key not in known:
                continue
            if key in ("db_path", "data_dir"):
                value = Path(value).expanduser()
            setattr(settings, key, value)
        return settings
