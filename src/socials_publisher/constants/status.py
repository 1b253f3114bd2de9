"""Status enums and error kinds for the Socials Publisher.

AI CONTEXT:
-----------
An upload job moves through a small state machine:
  PENDING -> INITIATING -> TRANSFERRING -> VERIFYING -> SUCCEEDED
     |           |              |              |
     +-----------+--------------+--------------+--> FAILED

Container-based platforms skip TRANSFERRING. Every terminal result
carries an ErrorKind when it is FAILED.

MODIFICATION GUIDE:
------------------
- Add new enum values at the END to maintain backwards compatibility
- ErrorKind values are part of the caller-facing result, keep them stable
"""

from enum import Enum


# =============================================================================
# UPLOAD JOB STATE
# =============================================================================

class UploadState(str, Enum):
    """State of one (asset, platform) upload job."""

    PENDING = "pending"
    """Job created, nothing sent yet."""

    INITIATING = "initiating"
    """Creating a resumable session or media container."""

    TRANSFERRING = "transferring"
    """Sending payload bytes."""

    VERIFYING = "verifying"
    """Publishing the container or reading back the created object."""

    SUCCEEDED = "succeeded"
    """Remote post/video exists."""

    FAILED = "failed"
    """Job ended with an error (see ErrorKind)."""

    @property
    def is_terminal(self) -> bool:
        return self in (UploadState.SUCCEEDED, UploadState.FAILED)


# =============================================================================
# ERROR TAXONOMY
# =============================================================================

class ErrorKind(str, Enum):
    """Why a job failed. Surfaced to callers so they can pick guidance."""

    CREDENTIAL_EXPIRED = "credential_expired"
    """Refresh impossible or failed. Re-run the authorization flow."""

    INCOMPATIBLE_ASSET = "incompatible_asset"
    """Asset type is not accepted by the platform. Never sent."""

    NOT_CONNECTED = "not_connected"
    """No active credential for the platform."""

    UPLOAD_INIT_FAILED = "upload_init_failed"
    """Platform rejected the resumable session creation."""

    CHUNK_UPLOAD_FAILED = "chunk_upload_failed"
    """A byte-range PUT was rejected or timed out."""

    EMPTY_ASSET = "empty_asset"
    """Payload is empty or not ready."""

    ASSET_TOO_LARGE = "asset_too_large"
    """Payload exceeds the platform maximum."""

    PLATFORM_UNSUPPORTED = "platform_unsupported"
    """No adapter implemented for the platform."""

    PUBLISH_FAILED = "publish_failed"
    """Container creation or publish call was rejected."""

    CANCELLED = "cancelled"
    """Caller cancelled the publish while the job was running."""

    UNEXPECTED = "unexpected"
    """Any other error raised inside a single job."""

    @property
    def guidance(self) -> str:
        """Short hint on what the user should do next."""
        return _GUIDANCE.get(self, "Try again later.")


_GUIDANCE: dict[ErrorKind, str] = {
    ErrorKind.CREDENTIAL_EXPIRED: "Reconnect your account.",
    ErrorKind.NOT_CONNECTED: "Connect this platform first.",
    ErrorKind.INCOMPATIBLE_ASSET: "Upload this asset manually or choose another platform.",
    ErrorKind.PLATFORM_UNSUPPORTED: "Upload this asset manually.",
    ErrorKind.EMPTY_ASSET: "Wait for the asset to finish processing.",
    ErrorKind.ASSET_TOO_LARGE: "Shorten or compress the asset.",
    ErrorKind.CANCELLED: "Publish again when ready.",
}
