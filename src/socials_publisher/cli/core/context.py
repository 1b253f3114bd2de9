"""Settings and service construction shared by CLI commands."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from ...config import PublisherSettings
from ...publishing.service import SocialPublisher

_settings: Optional[PublisherSettings] = None


def load_settings(config_path: Optional[Path] = None) -> PublisherSettings:
    """Load settings from a YAML file when given, else from env/defaults."""
    if config_path is not None:
        return PublisherSettings.from_yaml(config_path)
    return PublisherSettings()


def set_settings(settings: PublisherSettings) -> None:
    global _settings
    _settings = settings


def get_settings() -> PublisherSettings:
    global _settings
    if _settings is None:
        _settings = load_settings()
    return _settings


def build_publisher() -> SocialPublisher:
    """Create a publisher backed by the JSON credential store."""
    return SocialPublisher(get_settings())
