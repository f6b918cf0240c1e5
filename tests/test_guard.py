from types import SimpleNamespace

import pytest

from resume_vault.core.errors import Forbidden, NotFound
from resume_vault.core.guard import authorize, is_owner


def test_missing_record_is_not_found_before_ownership():
    with pytest.raises(NotFound) as exc:
        authorize(None, 1, "Resume")
    assert exc.value.message == "Resume not found"


def test_other_owner_is_forbidden():
    with pytest.raises(Forbidden):
        authorize(SimpleNamespace(user_id=2), 1, "Application")


def test_owner_gets_record_back():
    record = SimpleNamespace(user_id=7)
    assert authorize(record, 7, "Application") is record
    assert is_owner(7, 7)
    assert not is_owner(7, 8)
