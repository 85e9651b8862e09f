from datetime import timedelta

import pytest

from app.core.errors import NotFound, TooManyAttempts, ValidationFailed
from app.core.project_status import ProjectStatus
from app.models.project_history import ProjectHistoryEntry
from app.schemas.tracking import FullTrackingView, PublicTrackingView
from app.services.access_gate import GENERIC_MISS, AccessGate, pin_for_phone, tracking_view
from app.tests.factories import build_project

CORRECT_PIN = "4567"  # 09171234567


@pytest.fixture
def gate(attempts):
    return AccessGate(attempts, max_attempts=3, marker_ttl=timedelta(minutes=60))


@pytest.fixture
def project():
    return build_project(ProjectStatus.IN_PROGRESS, client_phone="09171234567")


def _verify(gate, project, now, pin=CORRECT_PIN, session="sess-1", secret=None):
    return gate.verify_pin(
        project,
        project_id=str(project.id),
        tracking_secret=secret if secret is not None else project.tracking_secret,
        pin=pin,
        session_id=session,
        now=now,
    )


def test_pin_is_last_four_phone_digits():
    assert pin_for_phone("09171234567") == "4567"
    assert pin_for_phone("+63 917 123 4567") == "4567"
    assert pin_for_phone("123") is None
    assert pin_for_phone(None) is None


def test_correct_pin_issues_marker(gate, project, now):
    marker = _verify(gate, project, now)
    assert marker.session_id == "sess-1"
    assert marker.project_id == str(project.id)
    assert marker.expires_at == now + timedelta(minutes=60)

    assert gate.is_verified(marker.token, session_id="sess-1", project_id=str(project.id), now=now)


def test_marker_is_scoped_and_expires(gate, project, now):
    marker = _verify(gate, project, now)
    pid = str(project.id)

    assert not gate.is_verified(marker.token, session_id="other-session", project_id=pid, now=now)
    assert not gate.is_verified(marker.token, session_id="sess-1", project_id="another-project", now=now)
    assert gate.is_verified(marker.token, session_id="sess-1", project_id=pid, now=now + timedelta(minutes=59))
    assert not gate.is_verified(marker.token, session_id="sess-1", project_id=pid, now=now + timedelta(minutes=60))


def test_garbage_marker_is_not_verified(gate, project, now):
    pid = str(project.id)
    assert not gate.is_verified(None, session_id="sess-1", project_id=pid, now=now)
    assert not gate.is_verified("not-a-jwt", session_id="sess-1", project_id=pid, now=now)

    marker = _verify(gate, project, now)
    tampered = marker.token[:-2] + ("AA" if not marker.token.endswith("AA") else "BB")
    assert not gate.is_verified(tampered, session_id="sess-1", project_id=pid, now=now)


def test_wrong_pin_and_wrong_secret_look_the_same(gate, project, now):
    with pytest.raises(NotFound) as wrong_pin:
        _verify(gate, project, now, pin="0000")
    with pytest.raises(NotFound) as wrong_secret:
        _verify(gate, project, now, secret="nope")
    with pytest.raises(NotFound) as unknown:
        gate.verify_pin(None, project_id="nope", tracking_secret="nope", pin="1234", session_id="s", now=now)

    assert str(wrong_pin.value) == str(wrong_secret.value) == str(unknown.value) == GENERIC_MISS


@pytest.mark.parametrize("pin", ["", "123", "12345", "12a4", None])
def test_malformed_pin_is_not_counted(gate, project, attempts, now, pin):
    with pytest.raises(ValidationFailed):
        _verify(gate, project, now, pin=pin)
    assert attempts.failures(("sess-1", str(project.id))) == 0


def test_three_failures_lock_the_session_even_for_correct_pin(gate, project, now):
    for _ in range(3):
        with pytest.raises(NotFound):
            _verify(gate, project, now, pin="0000")

    with pytest.raises(TooManyAttempts):
        _verify(gate, project, now, pin=CORRECT_PIN)

    # a fresh session may try again straight away
    marker = _verify(gate, project, now, session="sess-2")
    assert marker.session_id == "sess-2"


def test_project_id_must_match_the_secret(gate, project, attempts, now):
    with pytest.raises(NotFound) as ei:
        gate.verify_pin(
            project,
            project_id="some-other-project",
            tracking_secret=project.tracking_secret,
            pin=CORRECT_PIN,
            session_id="sess-1",
            now=now,
        )
    assert str(ei.value) == GENERIC_MISS
    assert attempts.failures(("sess-1", str(project.id))) == 1


def test_varying_project_id_does_not_reset_the_limit(gate, project, now):
    for i in range(3):
        with pytest.raises(NotFound):
            gate.verify_pin(
                project,
                project_id=f"decoy-{i}",
                tracking_secret=project.tracking_secret,
                pin="0000",
                session_id="sess-1",
                now=now,
            )

    with pytest.raises(TooManyAttempts):
        _verify(gate, project, now)


def test_success_resets_the_counter(gate, project, attempts, now):
    for _ in range(2):
        with pytest.raises(NotFound):
            _verify(gate, project, now, pin="0000")
    _verify(gate, project, now)
    assert attempts.failures(("sess-1", str(project.id))) == 0


def test_lockout_is_not_lifted_by_time(gate, project, now):
    for _ in range(3):
        with pytest.raises(NotFound):
            _verify(gate, project, now, pin="0000")
    for later in (timedelta(minutes=59), timedelta(hours=2), timedelta(days=3)):
        with pytest.raises(TooManyAttempts):
            _verify(gate, project, now + later)


def test_project_without_phone_never_verifies(gate, now):
    p = build_project(client_phone=None)
    with pytest.raises(NotFound):
        _verify(gate, p, now, pin="0000")


# ------------------------------------------------------------------
# Tracking view
# ------------------------------------------------------------------


def test_public_view_hides_detail(project, now):
    history = [ProjectHistoryEntry(project_id=project.id, action="submitted", new_status="submitted", created_at=now)]
    view = tracking_view(project, history, verified=False)

    assert isinstance(view, PublicTrackingView)
    assert not isinstance(view, FullTrackingView)
    data = view.model_dump()
    assert set(data) == {"verified", "reference_code", "status", "package_name", "deadline", "submitted_at"}
    assert data["verified"] is False


def test_full_view_excludes_shares(project, now):
    history = [ProjectHistoryEntry(project_id=project.id, action="submitted", new_status="submitted", created_at=now)]
    view = tracking_view(project, history, verified=True)

    assert isinstance(view, FullTrackingView)
    data = view.model_dump()
    assert data["verified"] is True
    assert data["client_email"] == "dave@example.com"
    assert data["requirements"] == {"expected_outputs": "Chapters 1-3"}
    assert [h["action"] for h in data["history"]] == ["submitted"]
    assert "writer_share" not in data and "admin_share" not in data
