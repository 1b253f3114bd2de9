"""Credential models, storage, OAuth flows and token lifecycle."""

from .models import Credential, CredentialSummary, TokenGrant
from .oauth import OAuthClient, OAuthProvider, build_providers
from .store import CredentialStore, InMemoryCredentialStore, JsonFileCredentialStore
from .token_manager import TokenManager

__all__ = [
    "Credential",
    "CredentialStore",
    "CredentialSummary",
    "InMemoryCredentialStore",
    "JsonFileCredentialStore",
    "OAuthClient",
    "OAuthProvider",
    "TokenGrant",
    "TokenManager",
    "build_providers",
]
