import logging
import re
import time
from pathlib import Path
from typing import BinaryIO, Iterable, List, Optional
from uuid import uuid4

from resume_vault.core.config import settings
from resume_vault.core.errors import NotFound, StorageFailure, ValidationError

logger = logging.getLogger(__name__)

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


def _safe_basename(original_name: Optional[str]) -> str:
    # Browsers may send a full client path; keep only the last component
    name = (original_name or "").replace("\\", "/").rsplit("/", 1)[-1]
    name = _UNSAFE_CHARS.sub("_", name).strip("._")
    return name[:100] or "resume.pdf"


class ResumeFileManager:
    """Keeps resume files on local disk under generated names."""

    def __init__(self, base_dir, max_bytes: int, allowed_types: Iterable[str]):
        self.base_dir = Path(base_dir)
        self.max_bytes = max_bytes
        self.allowed_types = set(allowed_types)

    def validate(self, data: Optional[bytes], content_type: Optional[str]) -> None:
        if not data:
            raise ValidationError("Please upload a PDF file")
        if content_type not in self.allowed_types:
            raise ValidationError("Only PDF files are allowed")
        if len(data) > self.max_bytes:
            raise ValidationError(f"File is larger than {self.max_bytes // (1024 * 1024)} MB")

    def generate_name(self, original_name: Optional[str]) -> str:
        return f"{int(time.time() * 1000)}-{uuid4().hex[:8]}-{_safe_basename(original_name)}"

    def store(self, data: Optional[bytes], original_name: Optional[str], content_type: Optional[str]) -> str:
        self.validate(data, content_type)
        stored_name = self.generate_name(original_name)
        try:
            self.base_dir.mkdir(parents=True, exist_ok=True)
            (self.base_dir / stored_name).write_bytes(data)
        except OSError:
            logger.exception("Could not write resume file %s", stored_name)
            raise StorageFailure("Could not store file")
        logger.info("Stored resume file %s (%d bytes)", stored_name, len(data))
        return stored_name

    def path_for(self, stored_name: str) -> Path:
        # Only plain names we generated ourselves resolve to a file
        if not stored_name or stored_name != Path(stored_name).name or stored_name.startswith("."):
            raise NotFound("File not found")
        path = self.base_dir / stored_name
        if not path.is_file():
            raise NotFound("File not found")
        return path

    def retrieve(self, stored_name: str) -> BinaryIO:
        path = self.path_for(stored_name)
        try:
            return path.open("rb")
        except OSError:
            logger.exception("Could not open resume file %s", stored_name)
            raise StorageFailure("Could not read file")

    def delete(self, stored_name: str) -> None:
        if not stored_name or stored_name != Path(stored_name).name:
            return
        try:
            (self.base_dir / stored_name).unlink(missing_ok=True)
        except OSError:
            logger.exception("Could not delete resume file %s", stored_name)
            raise StorageFailure("Could not delete file")

    def stored_names(self) -> List[str]:
        if not self.base_dir.is_dir():
            return []
        return sorted(p.name for p in self.base_dir.iterdir() if p.is_file())


file_manager = ResumeFileManager(settings.UPLOAD_DIR, settings.MAX_UPLOAD_BYTES, settings.ALLOWED_UPLOAD_TYPES)


def get_file_manager() -> ResumeFileManager:
    return file_manager
