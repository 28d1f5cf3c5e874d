from datetime import datetime, timedelta, timezone

from ucms.models.complaint import Complaint, ComplaintStatus, EscalationLevel
from ucms.models.timeline import TimelineEvent
from ucms.models.user import UserRole

from conftest import auth_headers

POTHOLE = {
    "title": "Pothole",
    "category": "roads",
    "description": "20 chars minimum text here",
    "address": "Main St",
    "latitude": "15.49",
    "longitude": "73.82",
}


def test_pothole_scenario_creates_single_lodged_event(client, make_user):
    citizen = make_user()
    r = client.post("/complaints", json=POTHOLE, headers=auth_headers(citizen))
    assert r.status_code == 200
    body = r.json()
    assert body["message"] == "Complaint created successfully"
    complaint_id = body["complaintId"]

    r = client.get(f"/complaints/{complaint_id}", headers=auth_headers(citizen))
    assert r.status_code == 200
    detail = r.json()
    assert detail["title"] == "Pothole"
    assert detail["category"] == "roads"
    assert detail["description"] == "20 chars minimum text here"
    assert detail["address"] == "Main St"
    assert detail["latitude"] == 15.49
    assert detail["longitude"] == 73.82
    assert detail["status"] == "Pending"
    assert detail["escalation"] == "None"
    assert detail["assignedTo"] is None
    assert detail["profile"]["id"] == citizen.id
    assert len(detail["timeline"]) == 1
    event = detail["timeline"][0]
    assert event["action"] == "Complaint Lodged"
    assert event["description"] == "Complaint submitted successfully"
    assert event["by"] == f"Citizen: {citizen.id}"


def test_create_names_first_missing_field(client, make_user):
    citizen = make_user()
    payload = dict(POTHOLE, description="", address="")
    r = client.post("/complaints", json=payload, headers=auth_headers(citizen))
    assert r.status_code == 400
    assert r.json() == {"message": "description is required"}


def test_create_rejects_non_numeric_coordinates(client, make_user):
    citizen = make_user()
    r = client.post("/complaints", json=dict(POTHOLE, latitude="north"), headers=auth_headers(citizen))
    assert r.status_code == 400


def test_create_requires_authentication(client):
    assert client.post("/complaints", json=POTHOLE).status_code == 401


def test_resolved_update_appends_status_event(client, db, make_user, make_complaint):
    citizen = make_user()
    official = make_user(role=UserRole.official, name="Officer Rao")
    complaint = make_complaint(citizen)

    r = client.patch(f"/complaints/{complaint.id}", json={"status": "Resolved"}, headers=auth_headers(official))
    assert r.status_code == 200
    assert r.json()["complaint"]["status"] == "Resolved"

    events = db.query(TimelineEvent).filter(TimelineEvent.complaint_id == complaint.id).all()
    assert len(events) == 1
    assert events[0].action == "Status Updated"
    assert "Pending" in events[0].description and "Resolved" in events[0].description
    assert events[0].actor == "Officer: Officer Rao"


def test_update_appends_one_event_per_action(client, db, make_user, make_complaint):
    citizen = make_user()
    admin = make_user(role=UserRole.admin)
    official = make_user(role=UserRole.official)
    complaint = make_complaint(citizen)

    r = client.patch(
        f"/complaints/{complaint.id}",
        json={"status": "In Progress", "escalation": "Level 1", "assignedTo": official.id, "comment": "Crew dispatched"},
        headers=auth_headers(admin),
    )
    assert r.status_code == 200
    assert r.json()["complaint"]["assignedTo"] == official.id

    actions = sorted(e.action for e in db.query(TimelineEvent).filter(TimelineEvent.complaint_id == complaint.id))
    assert actions == ["Comment Added", "Complaint Escalated", "Status Updated"]


def test_update_with_unchanged_status_adds_no_status_event(client, db, make_user, make_complaint):
    citizen = make_user()
    official = make_user(role=UserRole.official)
    complaint = make_complaint(citizen)

    r = client.patch(f"/complaints/{complaint.id}", json={"status": "Pending"}, headers=auth_headers(official))
    assert r.status_code == 200
    assert db.query(TimelineEvent).filter(TimelineEvent.complaint_id == complaint.id).count() == 0


def test_update_rejects_citizen_and_bad_assignee(client, make_user, make_complaint):
    citizen = make_user()
    other_citizen = make_user()
    official = make_user(role=UserRole.official)
    complaint = make_complaint(citizen)

    r = client.patch(f"/complaints/{complaint.id}", json={"status": "Resolved"}, headers=auth_headers(citizen))
    assert r.status_code == 403
    r = client.patch(f"/complaints/{complaint.id}", json={"assignedTo": other_citizen.id}, headers=auth_headers(official))
    assert r.status_code == 400
    r = client.patch("/complaints/9999", json={"status": "Resolved"}, headers=auth_headers(official))
    assert r.status_code == 404


def test_get_enforces_ownership(client, make_user, make_complaint):
    owner = make_user()
    stranger = make_user()
    official = make_user(role=UserRole.official)
    complaint = make_complaint(owner)

    assert client.get(f"/complaints/{complaint.id}", headers=auth_headers(stranger)).status_code == 403
    assert client.get(f"/complaints/{complaint.id}", headers=auth_headers(official)).status_code == 200
    assert client.get("/complaints/4242", headers=auth_headers(owner)).status_code == 404


def test_citizen_listing_only_shows_own(client, make_user, make_complaint):
    u1 = make_user()
    u2 = make_user()
    for _ in range(3):
        make_complaint(u1)
    make_complaint(u2)

    r = client.get("/complaints", headers=auth_headers(u1))
    assert r.status_code == 200
    body = r.json()
    assert body["totalComplaints"] == 3
    assert all(row["citizen"]["email"] == u1.email for row in body["complaints"])


def test_official_listing_shows_own_and_unassigned(client, make_user, make_complaint):
    citizen = make_user()
    me = make_user(role=UserRole.official)
    other = make_user(role=UserRole.official)
    mine = make_complaint(citizen, assigned_to=me)
    unassigned = make_complaint(citizen)
    make_complaint(citizen, assigned_to=other)

    body = client.get("/complaints", headers=auth_headers(me)).json()
    ids = {row["id"] for row in body["complaints"]}
    assert ids == {mine.id, unassigned.id}
    assert all(row["assignedTo"] in (None, me.id) for row in body["complaints"])


def test_admin_sees_everything(client, make_user, make_complaint):
    citizen = make_user()
    admin = make_user(role=UserRole.admin)
    official = make_user(role=UserRole.official)
    make_complaint(citizen)
    make_complaint(citizen, assigned_to=official)
    assert client.get("/complaints", headers=auth_headers(admin)).json()["totalComplaints"] == 2


def test_listing_is_idempotent(client, make_user, make_complaint):
    citizen = make_user()
    for i in range(4):
        make_complaint(citizen, title=f"Complaint {i}")
    params = {"status": "Pending", "category": "electricity"}
    first = client.get("/complaints", params=params, headers=auth_headers(citizen)).json()
    second = client.get("/complaints", params=params, headers=auth_headers(citizen)).json()
    assert first == second


def test_listing_pagination(client, make_user, make_complaint):
    citizen = make_user()
    for i in range(12):
        make_complaint(citizen, title=f"Complaint {i}")

    page1 = client.get("/complaints", headers=auth_headers(citizen)).json()
    assert page1["totalPages"] == 2
    assert page1["currentPage"] == 1
    assert len(page1["complaints"]) == 10
    page2 = client.get("/complaints", params={"page": 2}, headers=auth_headers(citizen)).json()
    assert len(page2["complaints"]) == 2
    assert not {r["id"] for r in page1["complaints"]} & {r["id"] for r in page2["complaints"]}


def test_empty_listing_has_one_page(client, make_user):
    body = client.get("/complaints", headers=auth_headers(make_user())).json()
    assert body == {"complaints": [], "totalPages": 1, "currentPage": 1, "totalComplaints": 0}


def test_listing_filters(client, make_user, make_complaint):
    citizen = make_user()
    admin = make_user(role=UserRole.admin)
    day = datetime(2026, 5, 10, 8, 30, tzinfo=timezone.utc)
    make_complaint(citizen, title="Broken pipe", category="water", created_at=day)
    make_complaint(citizen, title="Garbage pile", category="sanitation", status=ComplaintStatus.resolved,
                   created_at=day + timedelta(days=1))
    headers = auth_headers(admin)

    def titles(**params):
        body = client.get("/complaints", params=params, headers=headers).json()
        return [row["title"] for row in body["complaints"]]

    assert titles(category="water") == ["Broken pipe"]
    assert titles(status="Resolved") == ["Garbage pile"]
    assert titles(status="all", category="all") == ["Garbage pile", "Broken pipe"]
    assert titles(date="2026-05-10") == ["Broken pipe"]
    assert titles(search="PIPE") == ["Broken pipe"]
    assert client.get("/complaints", params={"status": "Lost"}, headers=headers).status_code == 400


def test_escalate_leaves_status(client, db, make_user, make_complaint):
    citizen = make_user()
    official = make_user(role=UserRole.official)
    complaint = make_complaint(citizen)

    r = client.post(
        f"/complaints/{complaint.id}/escalate",
        json={"level": "Level 2", "reason": "No response in a week", "department": "Roads"},
        headers=auth_headers(official),
    )
    assert r.status_code == 200
    assert r.json()["complaint"]["escalation"] == "Level 2"
    assert r.json()["complaint"]["status"] == "Pending"

    event = db.query(TimelineEvent).filter(TimelineEvent.complaint_id == complaint.id).one()
    assert event.action == "Complaint Escalated"
    assert "Level 2" in event.description and "Roads" in event.description

    r = client.post(f"/complaints/{complaint.id}/escalate", json={"level": "None", "reason": "x"},
                    headers=auth_headers(official))
    assert r.status_code == 400
    r = client.post(f"/complaints/{complaint.id}/escalate", json={"level": "Level 1", "reason": "x"},
                    headers=auth_headers(citizen))
    assert r.status_code == 403


def test_comment_endpoint(client, make_user, make_complaint):
    citizen = make_user()
    admin = make_user(role=UserRole.admin, name="Chief")
    complaint = make_complaint(citizen)

    r = client.post(f"/complaints/{complaint.id}/comments", json={"comment": "Looking into it"},
                    headers=auth_headers(admin))
    assert r.status_code == 200
    assert r.json()["event"]["action"] == "Comment Added"
    assert r.json()["event"]["by"] == "Officer: Chief"

    timeline = client.get(f"/complaints/{complaint.id}", headers=auth_headers(citizen)).json()["timeline"]
    assert [e["description"] for e in timeline] == ["Looking into it"]


def test_timeline_newest_first(client, make_user, make_complaint):
    citizen = make_user()
    official = make_user(role=UserRole.official)
    complaint = make_complaint(citizen)
    for text in ("first", "second", "third"):
        client.post(f"/complaints/{complaint.id}/comments", json={"comment": text}, headers=auth_headers(official))
    timeline = client.get(f"/complaints/{complaint.id}", headers=auth_headers(official)).json()["timeline"]
    assert [e["description"] for e in timeline] == ["third", "second", "first"]


def test_status_stays_enum_value_in_storage(db, make_user, make_complaint):
    complaint = make_complaint(make_user(), status=ComplaintStatus.in_progress, escalation=EscalationLevel.level_3)
    db.expire_all()
    stored = db.get(Complaint, complaint.id)
    assert stored.status is ComplaintStatus.in_progress
    assert stored.escalation is EscalationLevel.level_3


def test_page_below_one_clamps_to_first_page(client, make_user, make_complaint):
    citizen = make_user()
    make_complaint(citizen)
    r = client.get("/complaints", params={"page": 0}, headers=auth_headers(citizen))
    assert r.status_code == 200
    assert r.json()["currentPage"] == 1
    assert len(r.json()["complaints"]) == 1


def test_comment_only_patch_keeps_other_fields(client, db, make_user, make_complaint):
    citizen = make_user()
    official = make_user(role=UserRole.official)
    complaint = make_complaint(citizen, assigned_to=official, status=ComplaintStatus.in_progress,
                               escalation=EscalationLevel.level_2)

    r = client.patch(f"/complaints/{complaint.id}", json={"comment": "Awaiting parts"},
                     headers=auth_headers(official))
    assert r.status_code == 200
    updated = r.json()["complaint"]
    assert updated["assignedTo"] == official.id
    assert updated["escalation"] == "Level 2"
    assert updated["status"] == "In Progress"

    actions = [e.action for e in db.query(TimelineEvent).filter(TimelineEvent.complaint_id == complaint.id)]
    assert actions == ["Comment Added"]
