"""Tests for the reports resource: enum category, lengths, file fields, default pagination."""
import pytest

REPORT = {
    "title": "Trade forum report",
    "description": "Notes from the forum",
    "category": "Trade Forums",
    "eventDate": "2024-05-01",
}


def _create(client, headers, **fields):
    r = client.post("/api/reports", json={**REPORT, **fields}, headers=headers)
    assert r.status_code == 200, r.json()
    return r.json()["data"]


def test_category_must_be_a_known_forum_type(client, admin_headers):
    r = client.post("/api/reports", json={**REPORT, "category": "Foo"}, headers=admin_headers)
    assert r.status_code == 400
    assert r.json()["success"] is False
    assert "category" in r.json()["message"]

    r = client.post("/api/reports", json={**REPORT, "category": "Trade Forums"}, headers=admin_headers)
    assert r.status_code == 200
    assert r.json()["data"]["category"] == "Trade Forums"


@pytest.mark.parametrize("field,limit", [
    ("title", 200),
    ("description", 1000),
    ("eventLocation", 200),
    ("summary", 2000),
])
def test_max_lengths(client, admin_headers, field, limit):
    r = client.post("/api/reports", json={**REPORT, field: "x" * (limit + 1)}, headers=admin_headers)
    assert r.status_code == 400
    assert field in r.json()["message"]

    r = client.post("/api/reports", json={**REPORT, field: "x" * limit}, headers=admin_headers)
    assert r.status_code == 200


def test_invalid_event_date(client, admin_headers):
    r = client.post("/api/reports", json={**REPORT, "eventDate": "someday"}, headers=admin_headers)
    assert r.status_code == 400
    assert "eventDate" in r.json()["message"]


def test_defaults_and_list_fields(client, admin_headers):
    data = _create(client, admin_headers, tags="trade, exports ,", keyOutcomes=["MoU signed"])
    assert data["isPublished"] is False
    assert data["tags"] == ["trade", "exports"]
    assert data["keyOutcomes"] == ["MoU signed"]
    assert data["filename"] == ""
    assert data["fileSize"] == 0
    assert data["eventDate"].startswith("2024-05-01T00:00:00")


def test_attached_file(client, admin_headers):
    data = _create(
        client, admin_headers,
        file="data:application/pdf;base64,JVBERi0=",
        filename="forum.pdf",
        fileSize=1234,
    )
    assert data["filename"] == "forum.pdf"
    assert data["fileUrl"] == "data:application/pdf;base64,JVBERi0="
    assert data["fileSize"] == 1234
    assert data["filePath"].startswith("reports/") and data["filePath"].endswith("_forum.pdf")

    r = client.put(
        "/api/reports",
        json={**REPORT, "id": data["_id"], "title": "Renamed"},
        headers=admin_headers,
    )
    assert r.status_code == 200
    updated = r.json()["data"]
    assert updated["title"] == "Renamed"
    assert updated["filename"] == "forum.pdf"
    assert updated["fileUrl"] == data["fileUrl"]
    assert updated["filePath"] == data["filePath"]


def test_new_attachment_replaces_the_whole_file_group(client, admin_headers):
    data = _create(client, admin_headers, file="data:a", filename="a.pdf", fileSize=5000)
    assert data["fileSize"] == 5000

    r = client.put(
        "/api/reports",
        json={**REPORT, "id": data["_id"], "file": "data:b", "filename": "b.pdf"},
        headers=admin_headers,
    )
    assert r.status_code == 200
    updated = r.json()["data"]
    assert updated["filename"] == "b.pdf"
    assert updated["fileUrl"] == "data:b"
    assert updated["fileSize"] == 0
    assert updated["filePath"].endswith("_b.pdf")


def test_file_fields_without_attachment_are_ignored(client, admin_headers):
    data = _create(client, admin_headers, fileUrl="http://elsewhere/x.pdf", fileSize=99, filePath="x")
    assert (data["fileUrl"], data["fileSize"], data["filePath"]) == ("", 0, "")

    data = _create(client, admin_headers, file="data:a", filename="a.pdf", fileSize=10)
    r = client.put(
        "/api/reports",
        json={**REPORT, "id": data["_id"], "fileUrl": "http://elsewhere/x.pdf", "fileSize": 99},
        headers=admin_headers,
    )
    assert r.status_code == 200
    updated = r.json()["data"]
    assert updated["fileUrl"] == "data:a"
    assert updated["fileSize"] == 10
    assert updated["filePath"] == data["filePath"]


def test_update_validates_required_fields(client, admin_headers):
    data = _create(client, admin_headers)
    r = client.put("/api/reports", json={"id": data["_id"], "title": "Only title"}, headers=admin_headers)
    assert r.status_code == 400


def test_list_is_paginated_by_default(client, admin_headers):
    for i in range(12):
        _create(client, admin_headers, title=f"Report {i}")

    body = client.get("/api/reports").json()
    assert len(body["data"]) == 10
    assert body["pagination"] == {"page": 1, "limit": 10, "total": 12, "totalPages": 2}
    assert body["data"][0]["title"] == "Report 11"


def test_filters(client, admin_headers):
    _create(client, admin_headers, title="Published legal", category="Legal Conferences", isPublished=True)
    _create(client, admin_headers, title="Draft legal", category="Legal Conferences", summary="Arbitration panel")
    _create(client, admin_headers, title="Published trade", isPublished="true")

    def titles(query):
        return sorted(r["title"] for r in client.get(f"/api/reports?{query}").json()["data"])

    assert titles("isPublished=true") == ["Published legal", "Published trade"]
    assert titles("isPublished=false") == ["Draft legal"]
    assert titles("category=Legal%20Conferences&isPublished=true") == ["Published legal"]
    assert titles("search=arbitration") == ["Draft legal"]
