from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, computed_field, field_validator
from pydantic.alias_generators import to_camel

from resume_vault.core.db import as_utc
from resume_vault.core.markdown import render_markdown
from resume_vault.core.models.application import ApplicationStatus


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)

    @field_validator("*")
    @classmethod
    def utc_datetimes(cls, value):
        # SQLite hands back naive values; keep the wire format the same on every backend
        if isinstance(value, datetime):
            return as_utc(value)
        return value


# -----------------
# Accounts
# -----------------

class RegisterIn(CamelModel):
    email: str
    password: str
    name: Optional[str] = None


class LoginIn(CamelModel):
    email: str
    password: str


class UserOut(CamelModel):
    id: int
    email: str
    name: Optional[str] = None
    created_at: datetime


class TokenOut(CamelModel):
    access_token: str
    token_type: str = "bearer"
    user: UserOut


# -----------------
# Resumes
# -----------------

class ResumeOut(CamelModel):
    id: int
    owner_id: int
    stored_file_name: str
    display_name: str
    notes: str
    uploaded_at: datetime
    updated_at: datetime

    @computed_field(alias="notesHtml")
    @property
    def notes_html(self) -> str:
        return render_markdown(self.notes)

    @classmethod
    def from_model(cls, resume) -> "ResumeOut":
        return cls(
            id=resume.id,
            owner_id=resume.user_id,
            stored_file_name=resume.stored_file_name,
            display_name=resume.display_name,
            notes=resume.notes or "",
            uploaded_at=resume.uploaded_at,
            updated_at=resume.updated_at,
        )


class ResumePatch(CamelModel):
    """Absent fields stay as they are; ``notes=None`` clears the notes."""

    display_name: Optional[str] = None
    notes: Optional[str] = None


# -----------------
# Applications
# -----------------

class ResumeRef(CamelModel):
    id: int
    display_name: str
    stored_file_name: str


class ApplicationIn(CamelModel):
    resume_id: Optional[int] = None
    company: Optional[str] = None
    role: Optional[str] = None
    status: Optional[ApplicationStatus] = None
    applied_at: Optional[datetime] = None
    notes: Optional[str] = None


class ApplicationPatch(CamelModel):
    """Partial update; ``resumeId`` is not a field and is dropped if sent."""

    company: Optional[str] = None
    role: Optional[str] = None
    status: Optional[ApplicationStatus] = None
    applied_at: Optional[datetime] = None
    notes: Optional[str] = None


class ApplicationOut(CamelModel):
    id: int
    owner_id: int
    resume_id: int
    resume: Optional[ResumeRef] = None
    company: str
    role: str
    status: ApplicationStatus
    applied_at: datetime
    notes: str
    created_at: datetime
    updated_at: datetime

    @computed_field(alias="notesHtml")
    @property
    def notes_html(self) -> str:
        return render_markdown(self.notes)

    @classmethod
    def from_model(cls, application) -> "ApplicationOut":
        resume = application.resume
        return cls(
            id=application.id,
            owner_id=application.user_id,
            resume_id=application.resume_id,
            resume=ResumeRef(
                id=resume.id,
                display_name=resume.display_name,
                stored_file_name=resume.stored_file_name,
            ) if resume is not None else None,
            company=application.company,
            role=application.role,
            status=application.status,
            applied_at=application.applied_at,
            notes=application.notes or "",
            created_at=application.created_at,
            updated_at=application.updated_at,
        )


# -----------------
# Dashboard
# -----------------

class DashboardOut(CamelModel):
    total_applications: int
    total_resumes: int
    counts_by_status: Dict[str, int]
    recent_applications: List[ApplicationOut]


class MessageOut(BaseModel):
    message: str
