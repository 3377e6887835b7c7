"""Data models for model downloads and storage accounting."""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class DownloadStatus(str, Enum):
    """Lifecycle of one download attempt."""

    PENDING = "pending"
    DOWNLOADING = "downloading"
    VALIDATING = "validating"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (DownloadStatus.COMPLETED, DownloadStatus.FAILED)


class DownloadFailureReason(str, Enum):
    """Why a download attempt failed."""

    UNRESOLVABLE_URL = "unresolvable-url"
    BAD_RESPONSE = "bad-response"
    TOO_SMALL = "too-small"
    BAD_MAGIC = "bad-magic"
    TRANSPORT_ERROR = "transport-error"


class DownloadState(BaseModel):
    """Snapshot of a download for one filename."""

    model_config = ConfigDict(frozen=True)

    filename: str
    progress: float = Field(default=0.0, ge=0.0, le=1.0)
    status: DownloadStatus = Field(default=DownloadStatus.PENDING)
    reason: DownloadFailureReason | None = Field(
        default=None,
        description="Set only when status is failed"
    )
    detail: str | None = Field(default=None, description="Diagnostic text for failures")

    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal


class DownloadEvent(BaseModel):
    """Emitted on every state transition and progress tick."""

    model_config = ConfigDict(frozen=True)

    state: DownloadState
    bytes_written: int = Field(default=0, ge=0)
    bytes_expected: int | None = Field(default=None, description="Content-Length when known")

    @property
    def filename(self) -> str:
        return self.state.filename


class StorageSnapshot(BaseModel):
    """Disk usage figures in bytes."""

    model_config = ConfigDict(frozen=True)

    total_space: int = Field(default=0, ge=0)
    used_space: int = Field(default=0, ge=0)
    available_space: int = Field(default=0, ge=0)
    app_usage: int = Field(default=0, ge=0)
    model_usage: int = Field(default=0, ge=0)

    @property
    def used_percentage(self) -> float:
        if self.total_space == 0:
            return 0.0
        return self.used_space / self.total_space * 100

    @property
    def app_usage_percentage(self) -> float:
        if self.total_space == 0:
            return 0.0
        return self.app_usage / self.total_space * 100
