"""Download failures.

Each failure reason has its own exception class and its own user-facing
sentence. None of them is retried automatically.
"""

from ..errors import LocalChatError
from .models import DownloadFailureReason

FAILURE_MESSAGES: dict[DownloadFailureReason, str] = {
    DownloadFailureReason.UNRESOLVABLE_URL: "No download source is known for this model.",
    DownloadFailureReason.BAD_RESPONSE: "Server returned an error. Please try again later.",
    DownloadFailureReason.TOO_SMALL: "Downloaded file is too small or corrupted. Please try again.",
    DownloadFailureReason.BAD_MAGIC: "Downloaded file is not a valid model file. Please try again.",
    DownloadFailureReason.TRANSPORT_ERROR: (
        "Download interrupted. Please check your network connection and try again."
    ),
}


def failure_message(reason: DownloadFailureReason) -> str:
    """User-facing sentence for a failure reason."""
    return FAILURE_MESSAGES[reason]


class DownloadError(LocalChatError):
    """Base class for download failures."""

    reason: DownloadFailureReason

    def __init__(self, filename: str, detail: str = ""):
        self.filename = filename
        self.detail = detail
        message = f"{filename}: {failure_message(self.reason)}"
        if detail:
            message += f" ({detail})"
        super().__init__(message)

    @property
    def user_message(self) -> str:
        return failure_message(self.reason)


class UnresolvableURLError(DownloadError):
    """The filename has no entry in the URL registry."""

    reason = DownloadFailureReason.UNRESOLVABLE_URL


class BadResponseError(DownloadError):
    """The server answered with a non-2xx status."""

    reason = DownloadFailureReason.BAD_RESPONSE


class ArtifactTooSmallError(DownloadError):
    """The downloaded file is below the minimum artifact size."""

    reason = DownloadFailureReason.TOO_SMALL


class BadMagicError(DownloadError):
    """The downloaded file does not start with the GGUF magic bytes."""

    reason = DownloadFailureReason.BAD_MAGIC


class TransportFailureError(DownloadError):
    """The connection failed or the file could not be written."""

    reason = DownloadFailureReason.TRANSPORT_ERROR
