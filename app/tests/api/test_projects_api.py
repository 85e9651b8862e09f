from datetime import timedelta

from app.core.project_status import ProjectStatus as S
from app.tests.factories import NOW, build_package, build_project, build_writer

API = "/api/v1"


def _submit_body(package_id, **overrides):
    body = {
        "package_id": str(package_id),
        "topic": "Effects of remote learning",
        "deadline": (NOW + timedelta(days=10)).isoformat(),
        "expected_outputs": "Chapters 1-3",
        "requirements": {"chapters": "3"},
        "client_name": "Dave Smith",
        "client_email": "dave@example.com",
        "client_phone": "09171234567",
        "agreed_price": "2000",
    }
    body.update(overrides)
    return body


def test_health(client):
    r = client.get(f"{API}/health")
    assert r.status_code == 200
    assert r.json()["status"] == "ok"
    assert r.headers.get("X-Request-Id")


# ─────────────────────────────────────────────
# INTAKE
# ─────────────────────────────────────────────

def test_submit_is_public(client, store, sink):
    pkg = store.add_package(build_package())

    r = client.post(f"{API}/projects/submit", json=_submit_body(pkg.id))
    assert r.status_code == 200, r.text
    data = r.json()
    assert data["reference_code"] == "SA-2026-00001"
    assert data["status"] == "submitted"
    assert data["tracking_secret"]
    assert sink.templates() == [("notify_client", "submission_confirmation")]


def test_submit_errors_map_to_status_codes(client, store):
    pkg = store.add_package(build_package())

    r = client.post(f"{API}/projects/submit", json=_submit_body(pkg.id, deadline=NOW.isoformat()))
    assert r.status_code == 422
    assert r.json()["kind"] == "ValidationFailed"

    r = client.post(f"{API}/projects/submit", json=_submit_body(pkg.id, requirements={}))
    assert r.status_code == 422
    assert "chapters" in r.json()["context"]["fields"]

    r = client.post(f"{API}/projects/submit", json=_submit_body(build_package().id))
    assert r.status_code == 404
    assert r.json()["kind"] == "NotFound"


# ─────────────────────────────────────────────
# STAFF
# ─────────────────────────────────────────────

def test_staff_transition_and_history(client, store, staff_headers):
    p = store.add_project(build_project(S.SUBMITTED))

    r = client.post(f"{API}/projects/{p.id}/transitions", json={"target": "validated"}, headers=staff_headers)
    assert r.status_code == 200, r.text
    data = r.json()
    assert data["status"] == "validated"
    assert data["nextStatuses"] == ["assigned", "cancelled"]
    assert data["adminShare"] == "800.00"

    r = client.get(f"{API}/projects/{p.id}/history", headers=staff_headers)
    assert r.status_code == 200
    [row] = r.json()
    assert (row["action"], row["oldStatus"], row["newStatus"]) == ("payment_validated", "submitted", "validated")
    assert row["performedBy"] == "staff-1"


def test_transition_errors(client, store, staff_headers):
    p = store.add_project(build_project(S.SUBMITTED))
    url = f"{API}/projects/{p.id}/transitions"

    r = client.post(url, json={"target": "complete"}, headers=staff_headers)
    assert r.status_code == 409
    assert r.json()["kind"] == "InvalidTransition"

    r = client.post(url, json={"target": "rejected"}, headers=staff_headers)
    assert r.status_code == 422

    r = client.post(url, json={"target": "rejected", "reason": "Receipt unreadable"}, headers=staff_headers)
    assert r.status_code == 200
    assert r.json()["rejectionReason"] == "Receipt unreadable"

    r = client.post(f"{API}/projects/{p.id}/resubmit", json={}, headers=staff_headers)
    assert r.status_code == 200
    assert r.json()["status"] == "submitted"


def test_bad_token_is_refused(client, store):
    p = store.add_project(build_project(S.SUBMITTED))
    r = client.post(
        f"{API}/projects/{p.id}/transitions",
        json={"target": "validated"},
        headers={"Authorization": "Bearer not-a-jwt"},
    )
    assert r.status_code == 401
    assert store.stored(p.id).status == "submitted"


def test_assign_and_capacity(client, store, staff_headers):
    writer = store.add_writer(build_writer(max_concurrent_projects=1))
    a = store.add_project(build_project(S.VALIDATED))
    b = store.add_project(build_project(S.VALIDATED))

    r = client.post(f"{API}/projects/{a.id}/assign", json={"writer_id": str(writer.id)}, headers=staff_headers)
    assert r.status_code == 200, r.text
    assert r.json()["status"] == "assigned"
    assert r.json()["writerId"] == str(writer.id)

    r = client.post(f"{API}/projects/{b.id}/assign", json={"writer_id": str(writer.id)}, headers=staff_headers)
    assert r.status_code == 409
    assert r.json()["kind"] == "WriterAtCapacity"


def test_price_adjustment_recomputes_split(client, store, staff_headers):
    p = store.add_project(build_project(S.VALIDATED))

    r = client.post(
        f"{API}/projects/{p.id}/price",
        json={"discount_amount": "200", "additional_charges": "0"},
        headers=staff_headers,
    )
    assert r.status_code == 200, r.text
    data = r.json()
    assert (data["writerShare"], data["adminShare"]) == ("1080.00", "720.00")

    r = client.post(
        f"{API}/projects/{p.id}/price",
        json={"discount_amount": "5000", "additional_charges": "0"},
        headers=staff_headers,
    )
    assert r.status_code == 422
    assert store.stored(p.id).writer_share == 1080


# ─────────────────────────────────────────────
# WRITER
# ─────────────────────────────────────────────

def test_writer_works_own_project(client, store, writer_auth):
    writer = store.add_writer(build_writer())
    p = store.add_project(build_project(S.ASSIGNED, writer_id=writer.id))
    headers = writer_auth(writer.id)

    r = client.post(f"{API}/projects/{p.id}/transitions", json={"target": "in_progress"}, headers=headers)
    assert r.status_code == 200, r.text
    data = r.json()
    assert data["status"] == "in_progress"
    assert data["nextStatuses"] == ["review"]
    assert "adminShare" not in data
    assert "agreedPrice" not in data

    r = client.post(
        f"{API}/projects/{p.id}/estimated-completion",
        json={"estimated_completion_at": (NOW + timedelta(days=3)).isoformat()},
        headers=headers,
    )
    assert r.status_code == 200
    assert r.json()["estimatedCompletionAt"].startswith("2026-03-13")

    r = client.post(f"{API}/projects/{p.id}/notes", json={"note": "Chapter 1 drafted"}, headers=headers)
    assert r.status_code == 200


def test_writer_limits(client, store, writer_auth):
    writer = store.add_writer(build_writer())
    other = store.add_project(build_project(S.ASSIGNED, writer_id=build_writer().id))
    review = store.add_project(build_project(S.REVIEW, writer_id=writer.id))
    headers = writer_auth(writer.id)

    r = client.post(f"{API}/projects/{other.id}/transitions", json={"target": "in_progress"}, headers=headers)
    assert r.status_code == 404

    r = client.post(f"{API}/projects/{review.id}/transitions", json={"target": "complete"}, headers=headers)
    assert r.status_code == 409

    r = client.post(f"{API}/projects/{review.id}/assign", json={"writer_id": str(writer.id)}, headers=headers)
    assert r.status_code == 403
