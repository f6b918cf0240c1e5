from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy.exc import SQLAlchemyError

from resume_vault.core.errors import Forbidden, NotFound, StorageFailure, ValidationError
from resume_vault.core.models.application import ApplicationStatus
from resume_vault.core.schemas import ApplicationPatch, ResumePatch
from resume_vault.core.services import applications, resumes
from resume_vault.core.services.dashboard import dashboard_stats
from resume_vault.core.storage import ResumeFileManager


class FlakyFiles(ResumeFileManager):
    def delete(self, stored_name):
        raise StorageFailure("Could not delete file")


@pytest.fixture
def files(tmp_path):
    return ResumeFileManager(tmp_path / "uploads", 5 * 1024 * 1024, ["application/pdf"])


async def _resume(session, files, owner_id, make_pdf, name="CV"):
    return await resumes.create_resume(session, files, owner_id, make_pdf(), "cv.pdf", "application/pdf", name)


@pytest.mark.asyncio
async def test_validation_happens_before_the_file_is_stored(session, files, users, make_pdf):
    alice, _ = users
    with pytest.raises(ValidationError):
        await resumes.create_resume(session, files, alice, make_pdf(), "cv.pdf", "application/pdf", "")
    with pytest.raises(ValidationError):
        await resumes.create_resume(session, files, alice, make_pdf(), "cv.txt", "text/plain", "CV")
    assert files.stored_names() == []
    assert await resumes.list_resumes(session, alice) == []


@pytest.mark.asyncio
async def test_failed_file_delete_still_removes_record(session, tmp_path, users, make_pdf, caplog):
    alice, _ = users
    flaky = FlakyFiles(tmp_path / "uploads", 5 * 1024 * 1024, ["application/pdf"])
    resume = await _resume(session, flaky, alice, make_pdf)

    await resumes.delete_resume(session, flaky, resume.id, alice)

    with pytest.raises(NotFound):
        await resumes.get_resume(session, resume.id, alice)
    assert "Orphaned resume file" in caplog.text
    assert await resumes.find_orphaned_files(session, flaky) == [resume.stored_file_name]


@pytest.mark.asyncio
async def test_orphan_sweep_ignores_referenced_files(session, files, users, make_pdf):
    alice, _ = users
    resume = await _resume(session, files, alice, make_pdf)
    stray = files.store(make_pdf(), "stray.pdf", "application/pdf")
    assert await resumes.find_orphaned_files(session, files) == [stray]
    assert resume.stored_file_name in files.stored_names()


@pytest.mark.asyncio
async def test_resume_patch_distinguishes_absent_from_null(session, files, users, make_pdf):
    alice, bob = users
    resume = await resumes.create_resume(session, files, alice, make_pdf(), "cv.pdf", "application/pdf", "CV", "notes")

    same = await resumes.update_resume(session, resume.id, alice, ResumePatch())
    assert (same.display_name, same.notes) == ("CV", "notes")

    renamed = await resumes.update_resume(session, resume.id, alice, ResumePatch(display_name="Renamed"))
    assert (renamed.display_name, renamed.notes) == ("Renamed", "notes")

    cleared = await resumes.update_resume(session, resume.id, alice, ResumePatch(notes=None))
    assert (cleared.display_name, cleared.notes) == ("Renamed", "")

    with pytest.raises(Forbidden):
        await resumes.update_resume(session, resume.id, bob, ResumePatch(display_name="Bob's"))


@pytest.mark.asyncio
async def test_application_store_rules(session, files, users, make_pdf):
    alice, bob = users
    resume = await _resume(session, files, alice, make_pdf)

    with pytest.raises(Forbidden):
        await applications.create_application(session, bob, resume.id, "Acme", "Eng")
    with pytest.raises(NotFound):
        await applications.create_application(session, alice, resume.id + 100, "Acme", "Eng")
    with pytest.raises(ValidationError):
        await applications.create_application(session, alice, resume.id, "Acme", "Eng", status="Hired")
    with pytest.raises(ValidationError):
        await applications.create_application(session, alice, None, "Acme", "Eng")

    app = await applications.create_application(session, alice, resume.id, "Acme", "Eng")
    assert app.status is ApplicationStatus.APPLIED
    assert app.resume.display_name == "CV"

    updated = await applications.update_application(
        session, app.id, alice, ApplicationPatch(status=ApplicationStatus.INTERVIEW)
    )
    assert (updated.company, updated.role, updated.status) == ("Acme", "Eng", ApplicationStatus.INTERVIEW)

    with pytest.raises(Forbidden):
        await applications.delete_application(session, app.id, bob)
    await applications.delete_application(session, app.id, alice)
    assert await applications.list_applications(session, alice) == []


@pytest.mark.asyncio
async def test_aware_dates_are_stored_as_utc(session, files, users, make_pdf):
    alice, _ = users
    resume = await _resume(session, files, alice, make_pdf)
    plus_two = timezone(timedelta(hours=2))
    early = await applications.create_application(
        session, alice, resume.id, "Early", "Eng", applied_at=datetime(2024, 1, 1, 10, 0, tzinfo=plus_two)
    )
    late = await applications.create_application(
        session, alice, resume.id, "Late", "Eng", applied_at=datetime(2024, 1, 1, 9, 0, tzinfo=timezone.utc)
    )
    # 10:00+02:00 is 08:00 UTC, so it sorts after 09:00 UTC
    rows = await applications.list_applications(session, alice)
    assert [r.id for r in rows] == [late.id, early.id]


@pytest.mark.asyncio
async def test_dashboard_limit_and_isolation(session, files, users, make_pdf):
    alice, bob = users
    resume = await _resume(session, files, alice, make_pdf)
    for i in range(8):
        await applications.create_application(
            session, alice, resume.id, f"Co {i}", "Eng",
            status=list(ApplicationStatus)[i % 4],
            applied_at=datetime(2024, 2, 1 + i, tzinfo=timezone.utc),
        )

    stats = await dashboard_stats(session, alice)
    assert stats["total_applications"] == 8
    assert stats["counts_by_status"] == {"Applied": 2, "Interview": 2, "Offer": 2, "Rejected": 2}
    assert [a.company for a in stats["recent_applications"]] == ["Co 7", "Co 6", "Co 5", "Co 4", "Co 3"]

    other = await dashboard_stats(session, bob)
    assert other["total_applications"] == 0
    assert other["total_resumes"] == 0
    assert sum(other["counts_by_status"].values()) == 0


async def _failing_commit():
    raise SQLAlchemyError("disk full")


@pytest.mark.asyncio
async def test_failed_save_removes_the_stored_file(session, files, users, make_pdf, monkeypatch):
    alice, _ = users
    monkeypatch.setattr(session, "commit", _failing_commit)

    with pytest.raises(StorageFailure) as exc:
        await _resume(session, files, alice, make_pdf)

    assert exc.value.message == "Could not save resume"
    assert files.stored_names() == []
    assert await resumes.list_resumes(session, alice) == []


@pytest.mark.asyncio
async def test_failed_save_logs_file_it_could_not_remove(session, tmp_path, users, make_pdf, monkeypatch, caplog):
    alice, _ = users
    flaky = FlakyFiles(tmp_path / "uploads", 5 * 1024 * 1024, ["application/pdf"])
    monkeypatch.setattr(session, "commit", _failing_commit)

    with pytest.raises(StorageFailure):
        await _resume(session, flaky, alice, make_pdf)

    leftover = flaky.stored_names()
    assert len(leftover) == 1
    assert "left behind after failed save" in caplog.text
    assert leftover[0] in caplog.text


@pytest.mark.asyncio
async def test_out_of_range_ids_resolve_to_not_found(session, files, users, make_pdf):
    alice, _ = users
    await _resume(session, files, alice, make_pdf)
    for huge in (0, -1, 2**31, 2**63):
        with pytest.raises(NotFound):
            await resumes.get_resume(session, huge, alice)
        with pytest.raises(NotFound):
            await applications.get_application(session, huge, alice)
        with pytest.raises(NotFound):
            await applications.create_application(session, alice, huge, "Acme", "Eng")
