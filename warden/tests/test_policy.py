import pytest
from fastapi import HTTPException

from warden.app.domain.policy import PolicyContext, is_allowed
from warden.app.domain.session import AuthSession
from warden.app.services.abac import AccessEvaluator


def test_is_allowed_needs_subject_and_any_role():
    assert not is_allowed(PolicyContext(subject_id=None, roles={"Admin"}), ["Admin"])
    assert is_allowed(PolicyContext(subject_id="u", roles={"Manager"}), ["Admin", "Manager"])
    assert not is_allowed(PolicyContext(subject_id="u", roles=set()), ["Admin"])
    assert is_allowed(PolicyContext(subject_id="u", roles=set()), [])


def test_evaluator_status_codes():
    with pytest.raises(HTTPException) as anonymous:
        AccessEvaluator(None).enforce(["Admin"], "users")
    assert anonymous.value.status_code == 401

    with pytest.raises(HTTPException) as denied:
        AccessEvaluator(AuthSession(id="u", roles={"Manager"})).enforce(["Admin"], "users")
    assert denied.value.status_code == 403

    AccessEvaluator(AuthSession(id="u", roles={"Admin"})).enforce(["Admin"], "users")
