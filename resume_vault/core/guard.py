from typing import Optional, TypeVar

from resume_vault.core.errors import Forbidden, NotFound

T = TypeVar("T")


def is_owner(owner_id: int, requester_id: int) -> bool:
    return owner_id == requester_id


def authorize(record: Optional[T], requester_id: int, kind: str) -> T:
    """Return ``record`` if ``requester_id`` owns it.

    Existence is checked first, so a missing id is always ``NotFound``
    and an existing record owned by someone else is always ``Forbidden``.
    """
    if record is None:
        raise NotFound(f"{kind} not found")
    if not is_owner(record.user_id, requester_id):
        raise Forbidden()
    return record
