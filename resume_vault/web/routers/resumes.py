from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile, status
from fastapi.responses import FileResponse
from sqlalchemy.ext.asyncio import AsyncSession

from resume_vault.core.db import get_session
from resume_vault.core.schemas import MessageOut, ResumeOut, ResumePatch
from resume_vault.core.security import require_user_id
from resume_vault.core.services import resumes as store
from resume_vault.core.storage import ResumeFileManager, get_file_manager

router = APIRouter(prefix="/api/resumes", tags=["resumes"])


@router.post("/upload", response_model=ResumeOut, status_code=status.HTTP_201_CREATED)
async def upload_resume(
    resume: Optional[UploadFile] = File(default=None),
    display_name: Optional[str] = Form(default=None, alias="displayName"),
    notes: Optional[str] = Form(default=None),
    user_id: int = Depends(require_user_id),
    session: AsyncSession = Depends(get_session),
    files: ResumeFileManager = Depends(get_file_manager),
):
    data = None
    if resume is not None:
        # One byte past the ceiling is enough to reject oversize uploads
        data = await resume.read(files.max_bytes + 1)
    created = await store.create_resume(
        session,
        files,
        user_id,
        data,
        resume.filename if resume is not None else None,
        resume.content_type if resume is not None else None,
        display_name,
        notes,
    )
    return ResumeOut.from_model(created)


@router.get("", response_model=List[ResumeOut])
async def list_resumes(user_id: int = Depends(require_user_id), session: AsyncSession = Depends(get_session)):
    return [ResumeOut.from_model(r) for r in await store.list_resumes(session, user_id)]


@router.get("/{resume_id}", response_model=ResumeOut)
async def get_resume(resume_id: int, user_id: int = Depends(require_user_id), session: AsyncSession = Depends(get_session)):
    return ResumeOut.from_model(await store.get_resume(session, resume_id, user_id))


@router.get("/{resume_id}/file")
async def download_resume(
    resume_id: int,
    user_id: int = Depends(require_user_id),
    session: AsyncSession = Depends(get_session),
    files: ResumeFileManager = Depends(get_file_manager),
):
    path = await store.resume_file_path(session, files, resume_id, user_id)
    return FileResponse(path, media_type="application/pdf", filename=path.name)


@router.api_route("/{resume_id}", methods=["PUT", "PATCH"], response_model=ResumeOut)
async def update_resume(
    resume_id: int,
    patch: ResumePatch,
    user_id: int = Depends(require_user_id),
    session: AsyncSession = Depends(get_session),
):
    return ResumeOut.from_model(await store.update_resume(session, resume_id, user_id, patch))


@router.delete("/{resume_id}", response_model=MessageOut)
async def delete_resume(
    resume_id: int,
    user_id: int = Depends(require_user_id),
    session: AsyncSession = Depends(get_session),
    files: ResumeFileManager = Depends(get_file_manager),
):
    await store.delete_resume(session, files, resume_id, user_id)
    return {"message": "Resume deleted successfully"}
