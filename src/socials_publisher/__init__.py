"""Socials Publisher: OAuth connections and multi-platform media publishing."""

from .config import PublisherSettings
from .constants import AssetType, Environment, ErrorKind, Platform, UploadState
from .credentials import Credential, CredentialSummary, InMemoryCredentialStore, JsonFileCredentialStore
from .errors import PublisherError
from .platforms import Asset, UploadJob, UploadResult
from .publishing import PublishOrchestrator, SocialPublisher

__version__ = "0.1.0"

__all__ = [
    "Asset",
    "AssetType",
    "Credential",
    "CredentialSummary",
    "Environment",
    "ErrorKind",
    "InMemoryCredentialStore",
    "JsonFileCredentialStore",
    "Platform",
    "PublishOrchestrator",
    "PublisherError",
    "PublisherSettings",
    "SocialPublisher",
    "UploadJob",
    "UploadResult",
    "UploadState",
]
