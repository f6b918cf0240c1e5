from __future__ import annotations

import enum
from datetime import datetime
from typing import Optional

from sqlalchemy import Enum, String, Text, DateTime, ForeignKey, Integer
from sqlalchemy.orm import Mapped, mapped_column, relationship

from resume_vault.core.db import Base, utcnow
from resume_vault.core.models.resume import Resume


class ApplicationStatus(str, enum.Enum):
    APPLIED = "Applied"
    INTERVIEW = "Interview"
    OFFER = "Offer"
    REJECTED = "Rejected"


class Application(Base):
    __tablename__ = "applications"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), index=True)
    # Not a foreign key: deleting a resume leaves its applications pointing at nothing
    resume_id: Mapped[int] = mapped_column(Integer, index=True)
    company: Mapped[str] = mapped_column(String(200))
    role: Mapped[str] = mapped_column(String(200))
    status: Mapped[ApplicationStatus] = mapped_column(
        Enum(
            ApplicationStatus,
            name="application_status",
            native_enum=False,
            length=20,
            values_callable=lambda e: [m.value for m in e],
            validate_strings=True,
        ),
        default=ApplicationStatus.APPLIED,
        index=True,
    )
    applied_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, index=True)
    notes: Mapped[str] = mapped_column(Text, default="", nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    # relationships
    resume: Mapped[Optional[Resume]] = relationship(
        Resume,
        primaryjoin="foreign(Application.resume_id) == Resume.id",
        viewonly=True,
        lazy="selectin",
    )
