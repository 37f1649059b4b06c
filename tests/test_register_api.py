import os

from conftest import make_payload, multipart, png_bytes
from models import ProjectRegistration


def post_multipart(client, payload, file_bytes=None, **kwargs):
    return client.post(
        "/api/register",
        data=multipart(payload, file_bytes, **kwargs),
        content_type="multipart/form-data",
    )


def uploaded_files(upload_dir):
    found = []
    for root, _, files in os.walk(upload_dir):
        found.extend(os.path.join(root, f) for f in files)
    return found


def test_end_to_end_individual_with_png(client, upload_dir):
    payload = make_payload(groupMembers=[{"name": "Ignored Person", "phoneNumber": "9876543211"}])
    response = post_multipart(client, payload, png_bytes(2 * 1000 * 1000))

    assert response.status_code == 201
    body = response.get_json()
    assert body["message"] == "Registration successful"
    assert body["projectId"] == f"PROJ-{body['id']:06d}"
    assert body["registrationNumber"] == f"HIGBEC-{body['id']:06d}"
    assert body["registrationDate"]
    assert body["paymentScreenshotUrl"].startswith("/static/uploads/payment-screenshots/")

    stored = ProjectRegistration.query.get(body["id"])
    assert stored.status == "pending"
    assert stored.group_members == []
    assert stored.payment_screenshot_file_name.startswith("payment-screenshots/")
    assert stored.payment_screenshot_file_name.endswith(".png")
    assert len(uploaded_files(upload_dir)) == 1


def test_group_project_multipart_members_json(client):
    payload = make_payload(
        registrationType="Group Project",
        groupMembers=[
            {"name": "Ravi Kumar", "phoneNumber": "98765 00001"},
            {"name": "Meera", "phoneNumber": "+91-98765-00002"},
        ],
    )
    response = post_multipart(client, payload, png_bytes(1000))

    assert response.status_code == 201
    stored = ProjectRegistration.query.get(response.get_json()["id"])
    assert stored.group_members == [
        {"name": "Ravi Kumar", "phoneNumber": "9876500001"},
        {"name": "Meera", "phoneNumber": "+919876500002"},
    ]


def test_json_submission_without_file(client):
    response = client.post("/api/register", json=make_payload(email="legacy@x.com"))

    assert response.status_code == 201
    assert response.get_json()["paymentScreenshotUrl"] is None


def test_multipart_requires_screenshot(client):
    response = post_multipart(client, make_payload())

    assert response.status_code == 400
    assert response.get_json()["code"] == "MISSING_FILE"
    assert ProjectRegistration.query.count() == 0


def test_oversized_screenshot_rejected_before_any_write(client, upload_dir):
    response = post_multipart(client, make_payload(), png_bytes(6 * 1000 * 1000))

    assert response.status_code == 400
    assert response.get_json()["code"] == "FILE_TOO_LARGE"
    assert ProjectRegistration.query.count() == 0
    assert uploaded_files(upload_dir) == []


def test_non_image_rejected(client):
    response = post_multipart(
        client, make_payload(), b"%PDF-1.4 fake", filename="proof.pdf", content_type="application/pdf"
    )

    assert response.status_code == 400
    assert response.get_json()["code"] == "INVALID_FILE_TYPE"


def test_missing_field_message(client):
    payload = make_payload()
    del payload["branch"]
    response = client.post("/api/register", json=payload)

    assert response.status_code == 400
    assert response.get_json()["message"] == "branch is required"


def test_invalid_batch_type(client):
    response = client.post("/api/register", json=make_payload(batchType="PhD"))
    assert response.status_code == 400
    assert response.get_json()["code"] == "INVALID_ENUM"


def test_group_project_too_many_members(client):
    members = [{"name": f"Member {c}", "phoneNumber": "9876543210"} for c in "ABCDEF"]
    response = client.post("/api/register", json=make_payload(registrationType="Group Project", groupMembers=members))

    assert response.status_code == 400
    assert response.get_json()["code"] == "INVALID_GROUP_MEMBERS"


def test_duplicate_email_any_case_or_whitespace(client, upload_dir):
    first = post_multipart(client, make_payload(email="jane@x.com"), png_bytes(1000))
    second = post_multipart(client, make_payload(email="  JANE@X.COM "), png_bytes(1000))

    assert first.status_code == 201
    assert second.status_code == 409
    assert second.get_json()["message"] == "Email already registered. Please use a different email."
    assert ProjectRegistration.query.count() == 1
    # the rejected submission never reached the file store
    assert len(uploaded_files(upload_dir)) == 1


def test_upload_failure_is_a_generic_500(app, client, monkeypatch):
    from services.file_store import FileResult

    store = app.extensions["file_store"]
    monkeypatch.setattr(store, "upload", lambda *a, **kw: FileResult(success=False, error="bucket gone"))

    response = post_multipart(client, make_payload(), png_bytes(1000))

    assert response.status_code == 500
    assert "bucket" not in response.get_json()["message"]
    assert ProjectRegistration.query.count() == 0


def test_body_must_be_json_object(client):
    response = client.post("/api/register", data="not json", content_type="text/plain")
    assert response.status_code == 400


def test_json_list_in_text_field_rejected(client):
    response = client.post("/api/register", json=make_payload(collegeName=["ABC"]))

    assert response.status_code == 400
    assert response.get_json()["code"] == "INVALID_FORMAT"
    assert ProjectRegistration.query.count() == 0
