"""Document catalog domain models."""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator

PENDING_FOLDER = "pending/"
APPROVED_FOLDER = "approved/"


class DocumentType(str, Enum):
    """Kind of study material."""

    notes = "Notes"
    pyq = "PYQ"
    lab = "Lab"
    question_bank = "Question Bank"


class DocumentStatus(str, Enum):
    """Lifecycle status; each status owns a blob folder."""

    pending = "pending"
    approved = "approved"

    @property
    def folder(self) -> str:
        return PENDING_FOLDER if self is DocumentStatus.pending else APPROVED_FOLDER


class Document(BaseModel):
    """Catalog entry for an uploaded study document."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    filename: str
    subject: str
    semester: str
    branch: str
    document_type: DocumentType
    file_path: str
    status: DocumentStatus
    uploaded_by: str
    uploaded_at: datetime
    approved_at: datetime | None = None

    def path_matches_status(self) -> bool:
        """Check that ``file_path`` lives in the folder owned by ``status``."""
        return self.file_path.startswith(self.status.folder)


class UserProfile(BaseModel):
    """Profile record owned by the auth subsystem (read-only here)."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    email: str
    full_name: str


class Uploader(BaseModel):
    """Uploader summary shown in the moderation queue."""

    email: str = "Unknown"
    full_name: str = "Unknown"


class PendingDocument(Document):
    """Pending document hydrated with its uploader profile."""

    profile: Uploader = Field(default_factory=Uploader)


class UploadForm(BaseModel):
    """Metadata submitted alongside an uploaded file."""

    subject: str = Field(..., min_length=2, max_length=100)
    semester: str = Field(..., min_length=1)
    branch: str = Field(..., min_length=2, max_length=50)
    document_type: DocumentType

    @field_validator("subject", "semester", "branch", mode="before")
    @classmethod
    def _strip(cls, value: object) -> object:
        return value.strip() if isinstance(value, str) else value


def approved_path_for(pending_path: str) -> str:
    """Map a ``pending/...`` blob path to its ``approved/...`` counterpart."""
    if not pending_path.startswith(PENDING_FOLDER):
        raise ValueError(f"Not a pending path: {pending_path}")
    return APPROVED_FOLDER + pending_path[len(PENDING_FOLDER) :]
