from typing import Any, Dict

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from resume_vault.core.config import settings
from resume_vault.core.models.application import Application, ApplicationStatus
from resume_vault.core.models.resume import Resume
from resume_vault.core.services.applications import ordered


async def dashboard_stats(session: AsyncSession, owner_id: int, limit: int = settings.RECENT_APPLICATIONS_LIMIT) -> Dict[str, Any]:
    """Summarise one user's applications straight from the database.

    ``counts_by_status`` always carries every status, zero-filled, so the
    counts add up to ``total_applications``.
    """
    total_applications = (await session.execute(
        select(func.count(Application.id)).where(Application.user_id == owner_id)
    )).scalar_one()
    total_resumes = (await session.execute(
        select(func.count(Resume.id)).where(Resume.user_id == owner_id)
    )).scalar_one()

    counts = {s.value: 0 for s in ApplicationStatus}
    rows = (await session.execute(
        select(Application.status, func.count(Application.id))
        .where(Application.user_id == owner_id)
        .group_by(Application.status)
    )).all()
    for status, count in rows:
        counts[ApplicationStatus(status).value] = int(count)

    recent = (await session.execute(
        ordered(select(Application).where(Application.user_id == owner_id))
        .limit(limit)
        .execution_options(populate_existing=True)
    )).scalars().all()

    return {
        "total_applications": int(total_applications or 0),
        "total_resumes": int(total_resumes or 0),
        "counts_by_status": counts,
        "recent_applications": list(recent),
    }
