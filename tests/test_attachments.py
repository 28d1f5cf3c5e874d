import pytest

from ucms.models.attachment import Attachment
from ucms.models.user import UserRole
from ucms.services.attachments import MAX_BYTES, AttachmentRegistry
from ucms.services.storage import make_object_key

from conftest import auth_headers, principal_of

PNG = b"\x89PNG\r\n\x1a\n" + b"0" * 64
PDF = b"%PDF-1.4 minimal"


def test_upload_stores_metadata(client, db, make_user, make_complaint):
    citizen = make_user()
    complaint = make_complaint(citizen)

    r = client.post(
        "/attachments",
        data={"complaintId": str(complaint.id)},
        files=[
            ("files", ("photo.png", PNG, "image/png")),
            ("files", ("report.pdf", PDF, "application/pdf")),
        ],
        headers=auth_headers(citizen),
    )
    assert r.status_code == 200
    rows = r.json()["attachments"]
    assert [a["name"] for a in rows] == ["photo.png", "report.pdf"]
    assert rows[0]["url"] == f"/uploads/{complaint.id}/photo.png"
    assert rows[0]["size"] == len(PNG)
    assert rows[1]["type"] == "application/pdf"

    detail = client.get(f"/complaints/{complaint.id}", headers=auth_headers(citizen)).json()
    assert len(detail["attachments"]) == 2


def test_upload_requires_complaint_id_and_files(client, make_user):
    citizen = make_user()
    r = client.post("/attachments", files=[("files", ("a.png", PNG, "image/png"))], headers=auth_headers(citizen))
    assert r.status_code == 400
    assert r.json()["message"] == "Complaint ID is required"

    r = client.post("/attachments", data={"complaintId": "1"}, headers=auth_headers(citizen))
    assert r.status_code == 400
    assert r.json()["message"] == "No files provided"


def test_upload_to_missing_complaint(client, make_user):
    citizen = make_user()
    r = client.post("/attachments", data={"complaintId": "777"},
                    files=[("files", ("a.png", PNG, "image/png"))], headers=auth_headers(citizen))
    assert r.status_code == 404


def test_upload_to_someone_elses_complaint(client, make_user, make_complaint):
    owner = make_user()
    stranger = make_user()
    complaint = make_complaint(owner)
    r = client.post("/attachments", data={"complaintId": str(complaint.id)},
                    files=[("files", ("a.png", PNG, "image/png"))], headers=auth_headers(stranger))
    assert r.status_code == 403


def test_invalid_file_rejects_whole_batch(client, db, make_user, make_complaint):
    citizen = make_user()
    complaint = make_complaint(citizen)
    r = client.post(
        "/attachments",
        data={"complaintId": str(complaint.id)},
        files=[
            ("files", ("ok.png", PNG, "image/png")),
            ("files", ("notes.txt", b"hello", "text/plain")),
        ],
        headers=auth_headers(citizen),
    )
    assert r.status_code == 400
    assert db.query(Attachment).count() == 0


def test_oversized_file_is_rejected(client, make_user, make_complaint):
    official = make_user(role=UserRole.official)
    complaint = make_complaint(make_user())
    r = client.post(
        "/attachments",
        data={"complaintId": str(complaint.id)},
        files=[("files", ("big.pdf", b"0" * (MAX_BYTES + 1), "application/pdf"))],
        headers=auth_headers(official),
    )
    assert r.status_code == 400


def test_storage_failure_rolls_back_batch(db, make_user, make_complaint):
    from fastapi import UploadFile
    from io import BytesIO
    from starlette.datastructures import Headers

    from ucms.core.errors import InternalError

    citizen = make_user()
    complaint = make_complaint(citizen)
    calls = []

    def flaky_uploader(data, content_type, path):
        calls.append(path)
        if len(calls) == 2:
            raise OSError("storage unavailable")
        return f"/uploads/{path}"

    files = [
        UploadFile(BytesIO(PNG), filename=f"p{i}.png", headers=Headers({"content-type": "image/png"}))
        for i in range(3)
    ]
    registry = AttachmentRegistry(db, uploader=flaky_uploader)
    with pytest.raises(InternalError):
        registry.upload(principal_of(citizen), complaint.id, files)
    assert db.query(Attachment).count() == 0


def test_object_key_strips_directories():
    assert make_object_key(5, "../../etc/passwd") == "5/passwd"
    assert make_object_key(5, "C:\\photos\\my pic.png") == "5/my_pic.png"
