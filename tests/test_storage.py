import pytest

from resume_vault.core.errors import NotFound, ValidationError
from resume_vault.core.storage import ResumeFileManager

MiB = 1024 * 1024


@pytest.fixture
def files(tmp_path):
    return ResumeFileManager(tmp_path / "uploads", 5 * MiB, ["application/pdf"])


def test_rejects_non_pdf_content_type(files, make_pdf):
    with pytest.raises(ValidationError):
        files.store(make_pdf(), "photo.png", "image/png")


def test_rejects_payload_over_ceiling(files, make_pdf):
    with pytest.raises(ValidationError):
        files.store(make_pdf(6 * MiB), "big.pdf", "application/pdf")


def test_rejects_missing_file(files):
    with pytest.raises(ValidationError):
        files.store(None, "resume.pdf", "application/pdf")
    with pytest.raises(ValidationError):
        files.store(b"", "resume.pdf", "application/pdf")


def test_accepts_one_mib_pdf_under_generated_name(files, make_pdf):
    data = make_pdf(MiB)
    name = files.store(data, "resume.pdf", "application/pdf")
    assert name != "resume.pdf"
    assert name.endswith("-resume.pdf")
    with files.retrieve(name) as fh:
        assert fh.read() == data


def test_exactly_at_ceiling_is_accepted(files, make_pdf):
    files.store(make_pdf(5 * MiB), "edge.pdf", "application/pdf")


def test_generated_names_do_not_collide(files, make_pdf):
    names = {files.store(make_pdf(), "resume.pdf", "application/pdf") for _ in range(5)}
    assert len(names) == 5
    assert sorted(names) == files.stored_names()


def test_client_paths_are_stripped_from_names(files, make_pdf):
    name = files.store(make_pdf(), "C:\\Users\\me\\My Resume (final).pdf", "application/pdf")
    assert "/" not in name and "\\" not in name and " " not in name
    assert name.endswith("My_Resume_final_.pdf")


def test_delete_is_idempotent(files, make_pdf):
    name = files.store(make_pdf(), "resume.pdf", "application/pdf")
    files.delete(name)
    files.delete(name)
    files.delete("never-existed.pdf")
    with pytest.raises(NotFound):
        files.retrieve(name)


def test_path_outside_upload_dir_is_not_found(files, tmp_path):
    (tmp_path / "secret.pdf").write_bytes(b"%PDF")
    with pytest.raises(NotFound):
        files.path_for("../secret.pdf")
    with pytest.raises(NotFound):
        files.path_for("")
