"""Exception hierarchy for the publishing core.

Every error a single upload job can hit maps to one ErrorKind. The fan-out
orchestrator converts these into failed UploadResults; they never abort
sibling jobs.
"""

from __future__ import annotations

from .constants import ErrorKind


class PublisherError(Exception):
    """Base exception for publishing errors."""

    kind: ErrorKind = ErrorKind.UNEXPECTED

    def __init__(self, message: str, user_message: str | None = None):
        super().__init__(message)
        self.user_message = user_message or message


class CredentialExpired(PublisherError):
    """Access token unusable and refresh impossible or failed."""

    kind = ErrorKind.CREDENTIAL_EXPIRED


class IncompatibleAsset(PublisherError):
    """Asset type not accepted by the target platform."""

    kind = ErrorKind.INCOMPATIBLE_ASSET


class NotConnected(PublisherError):
    """No active credential for the requested platform."""

    kind = ErrorKind.NOT_CONNECTED


class UploadInitFailed(PublisherError):
    """Platform rejected the resumable session creation."""

    kind = ErrorKind.UPLOAD_INIT_FAILED

    def __init__(self, message: str, status_code: int | None = None, user_message: str | None = None):
        super().__init__(message, user_message)
        self.status_code = status_code


class ChunkUploadFailed(PublisherError):
    """A byte-range PUT was rejected, timed out, or never completed."""

    kind = ErrorKind.CHUNK_UPLOAD_FAILED

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        offset: int | None = None,
        user_message: str | None = None,
    ):
        super().__init__(message, user_message)
        self.status_code = status_code
        self.offset = offset


class EmptyAsset(PublisherError):
    """Payload is empty or the asset is not ready."""

    kind = ErrorKind.EMPTY_ASSET


class AssetTooLarge(PublisherError):
    """Payload exceeds the platform maximum."""

    kind = ErrorKind.ASSET_TOO_LARGE

    def __init__(self, size: int, limit: int):
        super().__init__(
            f"Asset is {size} bytes, platform maximum is {limit} bytes",
            user_message="The file is too large for this platform.",
        )
        self.size = size
        self.limit = limit


class PublishFailed(PublisherError):
    """Container creation or publish call was rejected."""

    kind = ErrorKind.PUBLISH_FAILED


class UploadCancelled(PublisherError):
    """The caller cancelled the publish while this job was running."""

    kind = ErrorKind.CANCELLED

    def __init__(self, message: str = "Upload cancelled"):
        super().__init__(message, user_message="Upload was cancelled.")


class CredentialStoreError(Exception):
    """The credential store could not complete a read or write."""

    pass


class OAuthError(Exception):
    """Authorization-code exchange or profile lookup failed."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code
