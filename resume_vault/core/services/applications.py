from datetime import datetime
from typing import Any, Dict, List, Optional, Union

from sqlalchemy import desc, select
from sqlalchemy.ext.asyncio import AsyncSession

from resume_vault.core.db import as_utc, commit_or_fail, id_in_range, utcnow
from resume_vault.core.errors import ValidationError
from resume_vault.core.guard import authorize
from resume_vault.core.models.application import Application, ApplicationStatus
from resume_vault.core.models.resume import Resume
from resume_vault.core.schemas import ApplicationPatch

# Query value meaning "every status"
ALL_STATUSES = "All"


def parse_status(value: Union[str, ApplicationStatus, None]) -> ApplicationStatus:
    if isinstance(value, ApplicationStatus):
        return value
    try:
        return ApplicationStatus(value)
    except ValueError:
        allowed = ", ".join(s.value for s in ApplicationStatus)
        raise ValidationError(f"Status must be one of: {allowed}")


def _required_text(value: Optional[str], field: str) -> str:
    value = (value or "").strip()
    if not value:
        raise ValidationError(f"Please provide {field}")
    return value


def ordered(stmt):
    # Newest application first; equal dates keep insertion order
    return stmt.order_by(desc(Application.applied_at), Application.id)


async def _fetch_application(session: AsyncSession, application_id: int) -> Optional[Application]:
    if not id_in_range(application_id):
        return None
    result = await session.execute(
        select(Application).where(Application.id == application_id).execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def create_application(
    session: AsyncSession,
    owner_id: int,
    resume_id: Optional[int],
    company: Optional[str],
    role: Optional[str],
    status: Union[str, ApplicationStatus, None] = None,
    applied_at: Optional[datetime] = None,
    notes: Optional[str] = None,
) -> Application:
    if resume_id is None:
        raise ValidationError("Please provide resume, company, and role")
    company = _required_text(company, "company")
    role = _required_text(role, "role")
    status = ApplicationStatus.APPLIED if status is None else parse_status(status)
    resume = await session.get(Resume, resume_id) if id_in_range(resume_id) else None
    authorize(resume, owner_id, "Resume")

    application = Application(
        user_id=owner_id,
        resume_id=resume_id,
        company=company,
        role=role,
        status=status,
        applied_at=as_utc(applied_at) or utcnow(),
        notes=notes or "",
    )
    session.add(application)
    await commit_or_fail(session, "save application")
    return await _fetch_application(session, application.id)


async def list_applications(
    session: AsyncSession,
    owner_id: int,
    status: Union[str, ApplicationStatus, None] = None,
) -> List[Application]:
    stmt = select(Application).where(Application.user_id == owner_id)
    if status is not None and status != ALL_STATUSES:
        stmt = stmt.where(Application.status == parse_status(status))
    result = await session.execute(ordered(stmt).execution_options(populate_existing=True))
    return list(result.scalars().all())


async def get_application(session: AsyncSession, application_id: int, requester_id: int) -> Application:
    return authorize(await _fetch_application(session, application_id), requester_id, "Application")


async def update_application(
    session: AsyncSession,
    application_id: int,
    requester_id: int,
    patch: ApplicationPatch,
) -> Application:
    application = await get_application(session, application_id, requester_id)
    fields = patch.model_fields_set
    # Validate everything before touching the record
    changes: Dict[str, Any] = {}
    if "company" in fields:
        changes["company"] = _required_text(patch.company, "company")
    if "role" in fields:
        changes["role"] = _required_text(patch.role, "role")
    if "status" in fields:
        if patch.status is None:
            raise ValidationError("Status cannot be empty")
        changes["status"] = parse_status(patch.status)
    if "applied_at" in fields:
        if patch.applied_at is None:
            raise ValidationError("Application date cannot be empty")
        changes["applied_at"] = as_utc(patch.applied_at)
    if "notes" in fields:
        changes["notes"] = patch.notes or ""
    if not changes:
        return application

    for key, value in changes.items():
        setattr(application, key, value)
    await commit_or_fail(session, "update application")
    return await _fetch_application(session, application_id)


async def delete_application(session: AsyncSession, application_id: int, requester_id: int) -> None:
    application = await get_application(session, application_id, requester_id)
    await session.delete(application)
    await commit_or_fail(session, "delete application")
