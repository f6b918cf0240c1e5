from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from resume_vault.core.db import get_session
from resume_vault.core.schemas import ApplicationIn, ApplicationOut, ApplicationPatch, MessageOut
from resume_vault.core.security import require_user_id
from resume_vault.core.services import applications as store

router = APIRouter(prefix="/api/applications", tags=["applications"])


@router.post("", response_model=ApplicationOut, status_code=status.HTTP_201_CREATED)
async def create_application(
    body: ApplicationIn,
    user_id: int = Depends(require_user_id),
    session: AsyncSession = Depends(get_session),
):
    application = await store.create_application(
        session,
        user_id,
        body.resume_id,
        body.company,
        body.role,
        status=body.status,
        applied_at=body.applied_at,
        notes=body.notes,
    )
    return ApplicationOut.from_model(application)


@router.get("", response_model=List[ApplicationOut])
async def list_applications(
    status_filter: Optional[str] = Query(None, alias="status"),  # ?status=Interview, or All
    user_id: int = Depends(require_user_id),
    session: AsyncSession = Depends(get_session),
):
    rows = await store.list_applications(session, user_id, status_filter or None)
    return [ApplicationOut.from_model(a) for a in rows]


@router.get("/{application_id}", response_model=ApplicationOut)
async def get_application(
    application_id: int,
    user_id: int = Depends(require_user_id),
    session: AsyncSession = Depends(get_session),
):
    return ApplicationOut.from_model(await store.get_application(session, application_id, user_id))


@router.api_route("/{application_id}", methods=["PUT", "PATCH"], response_model=ApplicationOut)
async def update_application(
    application_id: int,
    patch: ApplicationPatch,
    user_id: int = Depends(require_user_id),
    session: AsyncSession = Depends(get_session),
):
    return ApplicationOut.from_model(await store.update_application(session, application_id, user_id, patch))


@router.delete("/{application_id}", response_model=MessageOut)
async def delete_application(
    application_id: int,
    user_id: int = Depends(require_user_id),
    session: AsyncSession = Depends(get_session),
):
    await store.delete_application(session, application_id, user_id)
    return {"message": "Application deleted successfully"}
