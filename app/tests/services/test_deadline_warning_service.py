from datetime import timedelta

from app.core.project_status import ProjectStatus as S
from app.core.types import NotifyTarget
from app.services.deadline_warning_service import DeadlineWarningService
from app.tests.factories import build_project, build_writer
from app.tests.fakes import FailingSink


def _service(store, sink):
    return DeadlineWarningService(
        store,
        sink,
        threshold_hours=48,
        cooldown_hours=12,
        admin_alert_hours=24,
        admin_email="admin@example.com",
    )


def test_sweep_warns_writer_and_admin(store, sink, now):
    writer = build_writer()
    urgent = store.add_project(build_project(S.IN_PROGRESS, writer_id=writer.id, deadline=now + timedelta(hours=10)))
    store.add_project(build_project(S.ASSIGNED, writer_id=writer.id, deadline=now + timedelta(days=5)))
    store.add_project(build_project(S.SUBMITTED, deadline=now + timedelta(hours=1)))

    result = _service(store, sink).run(now)

    assert (result.checked, result.notified) == (1, 1)
    assert sink.templates() == [
        (NotifyTarget.writer.value, "deadline_warning"),
        (NotifyTarget.admin.value, "deadline_warning_admin"),
    ]
    assert sink.intents[0].recipient_id == str(writer.id)
    assert sink.intents[0].payload["hours_remaining"] == 10

    [entry] = store.history(urgent.id)
    assert entry.action == "deadline_warning"
    assert entry.performed_by is None
    assert entry.created_at == now


def test_admin_not_alerted_with_time_to_spare(store, sink, now):
    writer = build_writer()
    store.add_project(build_project(S.REVIEW, writer_id=writer.id, deadline=now + timedelta(hours=36)))

    _service(store, sink).run(now)
    assert sink.templates() == [(NotifyTarget.writer.value, "deadline_warning")]


def test_cooldown_prevents_repeat(store, sink, now):
    writer = build_writer()
    store.add_project(build_project(S.IN_PROGRESS, writer_id=writer.id, deadline=now + timedelta(hours=47)))
    svc = _service(store, sink)

    assert svc.run(now).notified == 1
    assert svc.run(now + timedelta(hours=6)).notified == 0
    assert svc.run(now + timedelta(hours=12)).notified == 1
    assert len(sink.intents) == 2


def test_notifier_failure_does_not_stop_sweep(store, now):
    sink = FailingSink()
    writer = build_writer()
    a = store.add_project(build_project(S.IN_PROGRESS, writer_id=writer.id, deadline=now + timedelta(hours=3)))
    b = store.add_project(build_project(S.REVIEW, writer_id=writer.id, deadline=now + timedelta(hours=4)))

    result = _service(store, sink).run(now)
    assert result.notified == 2
    assert sink.calls == 4
    assert len(store.history(a.id)) == len(store.history(b.id)) == 1
