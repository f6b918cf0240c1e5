from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from resume_vault.core.db import get_session
from resume_vault.core.schemas import ApplicationOut, DashboardOut
from resume_vault.core.security import require_user_id
from resume_vault.core.services.dashboard import dashboard_stats

router = APIRouter(prefix="/api/dashboard", tags=["dashboard"])


@router.get("/stats", response_model=DashboardOut)
async def stats(user_id: int = Depends(require_user_id), session: AsyncSession = Depends(get_session)):
    data = await dashboard_stats(session, user_id)
    return DashboardOut(
        total_applications=data["total_applications"],
        total_resumes=data["total_resumes"],
        counts_by_status=data["counts_by_status"],
        recent_applications=[ApplicationOut.from_model(a) for a in data["recent_applications"]],
    )
