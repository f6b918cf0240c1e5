import logging
from pathlib import Path
from typing import List, Optional

from sqlalchemy import desc, select
from sqlalchemy.ext.asyncio import AsyncSession

from resume_vault.core.db import commit_or_fail, id_in_range
from resume_vault.core.errors import StorageFailure, ValidationError
from resume_vault.core.guard import authorize
from resume_vault.core.models.resume import Resume
from resume_vault.core.schemas import ResumePatch
from resume_vault.core.storage import ResumeFileManager

logger = logging.getLogger(__name__)


def _clean_display_name(value: Optional[str]) -> str:
    value = (value or "").strip()
    if not value:
        raise ValidationError("Please provide a name for this resume")
    return value


async def _fetch_resume(session: AsyncSession, resume_id: int) -> Optional[Resume]:
    if not id_in_range(resume_id):
        return None
    result = await session.execute(
        select(Resume).where(Resume.id == resume_id).execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def create_resume(
    session: AsyncSession,
    files: ResumeFileManager,
    owner_id: int,
    data: Optional[bytes],
    original_name: Optional[str],
    content_type: Optional[str],
    display_name: Optional[str],
    notes: Optional[str] = None,
) -> Resume:
    display_name = _clean_display_name(display_name)
    files.validate(data, content_type)
    # File first, then metadata: a failure in between leaves an orphaned file, never a record without bytes
    stored_name = files.store(data, original_name, content_type)
    resume = Resume(user_id=owner_id, stored_file_name=stored_name, display_name=display_name, notes=notes or "")
    session.add(resume)
    try:
        await commit_or_fail(session, "save resume")
    except StorageFailure:
        try:
            files.delete(stored_name)
        except StorageFailure:
            logger.warning("Orphaned resume file %s left behind after failed save", stored_name)
        raise
    return await _fetch_resume(session, resume.id)


async def list_resumes(session: AsyncSession, owner_id: int) -> List[Resume]:
    result = await session.execute(
        select(Resume).where(Resume.user_id == owner_id).order_by(desc(Resume.uploaded_at), Resume.id)
    )
    return list(result.scalars().all())


async def get_resume(session: AsyncSession, resume_id: int, requester_id: int) -> Resume:
    return authorize(await _fetch_resume(session, resume_id), requester_id, "Resume")


async def update_resume(session: AsyncSession, resume_id: int, requester_id: int, patch: ResumePatch) -> Resume:
    resume = await get_resume(session, resume_id, requester_id)
    fields = patch.model_fields_set
    if not fields:
        return resume
    if "display_name" in fields:
        resume.display_name = _clean_display_name(patch.display_name)
    if "notes" in fields:
        resume.notes = patch.notes or ""
    await commit_or_fail(session, "update resume")
    return await _fetch_resume(session, resume_id)


async def delete_resume(session: AsyncSession, files: ResumeFileManager, resume_id: int, requester_id: int) -> None:
    resume = await get_resume(session, resume_id, requester_id)
    stored_name = resume.stored_file_name
    try:
        files.delete(stored_name)
    except StorageFailure:
        # The record still goes; the file is reported as an orphan
        logger.warning("Orphaned resume file %s: deletion failed for resume %s", stored_name, resume_id)
    await session.delete(resume)
    await commit_or_fail(session, "delete resume")
    logger.info("Deleted resume %s (%s)", resume_id, stored_name)


async def resume_file_path(session: AsyncSession, files: ResumeFileManager, resume_id: int, requester_id: int) -> Path:
    resume = await get_resume(session, resume_id, requester_id)
    return files.path_for(resume.stored_file_name)


async def find_orphaned_files(session: AsyncSession, files: ResumeFileManager) -> List[str]:
    """Stored files that no resume record points at."""
    result = await session.execute(select(Resume.stored_file_name))
    known = set(result.scalars().all())
    return [name for name in files.stored_names() if name not in known]
