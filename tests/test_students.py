from unittest.mock import MagicMock

import pytest
from fastapi import status
from sqlalchemy.exc import OperationalError

API = "/api/students"


def _create(client, payload):
    response = client.post(API, json=payload)
    assert response.status_code == status.HTTP_201_CREATED, response.text
    return response.json()["id"]


def test_health_ok(client):
    response = client.get("/api/health")
    assert response.status_code == status.HTTP_200_OK
    assert response.json() == {"status": "ok"}
    assert "X-Request-ID" in response.headers


def test_healthz_alias(client):
    assert client.get("/api/healthz").json() == {"status": "ok"}


def test_health_reports_store_failure(client):
    from app.db import get_db
    from app.main import app

    broken = MagicMock()
    broken.execute.side_effect = OperationalError("SELECT 1", {}, Exception("down"))
    app.dependency_overrides[get_db] = lambda: broken

    response = client.get("/api/health")
    assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
    assert response.json() == {"status": "error"}


def test_create_and_get_round_trip(client, student_payload):
    student_id = _create(client, student_payload)

    response = client.get(f"{API}/{student_id}")
    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["id"] == student_id
    for field, value in student_payload.items():
        assert data[field] == value
    assert data["created_at"]
    assert data["updated_at"]


def test_create_minimal_payload_keeps_nulls(client):
    student_id = _create(
        client, {"first_name": "Ana", "last_name": "Lima", "email": "ana.lima@example.com"}
    )
    data = client.get(f"{API}/{student_id}").json()
    for field in ("phone", "date_of_birth", "course", "year", "address", "notes"):
        assert data[field] is None


def test_create_duplicate_email_conflicts(client, student_payload):
    _create(client, student_payload)
    response = client.post(API, json={**student_payload, "first_name": "Clone"})
    assert response.status_code == status.HTTP_409_CONFLICT
    assert response.json() == {"detail": "Email already exists"}


def test_create_validation_failure_lists_fields(client):
    response = client.post(
        API,
        json={"first_name": "", "last_name": "Lima", "email": "bad", "year": 12},
    )
    assert response.status_code == status.HTTP_400_BAD_REQUEST
    body = response.json()
    assert body["detail"] == "Validation failed"
    assert set(body["errors"]) == {"first_name", "email", "year"}


def test_create_without_body_is_bad_request(client):
    response = client.post(API)
    assert response.status_code == status.HTTP_400_BAD_REQUEST


def test_create_with_malformed_json_is_bad_request(client):
    response = client.post(
        API, content=b"{not json", headers={"Content-Type": "application/json"}
    )
    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json()["form_errors"]


def test_create_with_unknown_field_is_bad_request(client, student_payload):
    response = client.post(API, json={**student_payload, "role": "admin"})
    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert "role" in response.json()["errors"]


def test_get_missing_is_not_found(client):
    response = client.get(f"{API}/9999")
    assert response.status_code == status.HTTP_404_NOT_FOUND


@pytest.mark.parametrize("bad_id", ["abc", "0", "-3", "1.5"])
@pytest.mark.parametrize("method", ["get", "put", "delete"])
def test_invalid_ids_are_bad_request(client, method, bad_id):
    kwargs = {"json": {"course": "Physics"}} if method == "put" else {}
    response = getattr(client, method)(f"{API}/{bad_id}", **kwargs)
    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert "student_id" in response.json()["errors"]


def test_update_one_field(client, student_payload):
    student_id = _create(client, student_payload)
    before = client.get(f"{API}/{student_id}").json()

    response = client.put(f"{API}/{student_id}", json={"course": "Physics"})
    assert response.status_code == status.HTTP_200_OK
    assert response.json() == {"id": student_id}

    after = client.get(f"{API}/{student_id}").json()
    assert after["course"] == "Physics"
    for field in ("first_name", "last_name", "email", "phone", "date_of_birth", "year", "address", "notes", "created_at"):
        assert after[field] == before[field]


def test_update_clears_optional_field(client, student_payload):
    student_id = _create(client, student_payload)
    client.put(f"{API}/{student_id}", json={"notes": None})
    assert client.get(f"{API}/{student_id}").json()["notes"] is None


def test_update_empty_payload_is_noop(client, student_payload):
    student_id = _create(client, student_payload)
    before = client.get(f"{API}/{student_id}").json()

    response = client.put(f"{API}/{student_id}", json={})
    assert response.status_code == status.HTTP_204_NO_CONTENT
    assert response.content == b""

    assert client.get(f"{API}/{student_id}").json() == before


def test_update_missing_is_not_found(client):
    response = client.put(f"{API}/9999", json={"course": "Physics"})
    assert response.status_code == status.HTTP_404_NOT_FOUND


def test_update_duplicate_email_conflicts(client, student_payload):
    _create(client, student_payload)
    other = _create(client, {**student_payload, "email": "other@example.com"})
    response = client.put(f"{API}/{other}", json={"email": student_payload["email"]})
    assert response.status_code == status.HTTP_409_CONFLICT


def test_update_validation_failure(client, student_payload):
    student_id = _create(client, student_payload)
    response = client.put(f"{API}/{student_id}", json={"year": 0, "first_name": None})
    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert set(response.json()["errors"]) == {"year", "first_name"}


def test_delete_then_delete_again(client, student_payload):
    student_id = _create(client, student_payload)

    response = client.delete(f"{API}/{student_id}")
    assert response.status_code == status.HTTP_204_NO_CONTENT

    response = client.delete(f"{API}/{student_id}")
    assert response.status_code == status.HTTP_404_NOT_FOUND
    assert client.get(f"{API}/{student_id}").status_code == status.HTTP_404_NOT_FOUND


def test_list_seeded_pages(client, seeded):
    page1 = client.get(API, params={"pageSize": 10}).json()
    assert len(page1["data"]) == 10
    assert page1["meta"] == {"total": 10, "page": 1, "pageSize": 10, "totalPages": 1}

    page2 = client.get(API, params={"pageSize": 10, "page": 2}).json()
    assert page2["data"] == []
    assert page2["meta"]["total"] == 10
    assert page2["meta"]["totalPages"] == 1


def test_list_pagination_splits_results(client, seeded):
    seen = []
    for page in (1, 2, 3, 4):
        body = client.get(API, params={"page": page, "pageSize": 3}).json()
        assert body["meta"]["totalPages"] == 4
        seen.extend(s["id"] for s in body["data"])
    assert len(seen) == len(set(seen)) == 10


def test_list_clamps_bad_pagination(client, seeded):
    body = client.get(API, params={"page": 0, "pageSize": -5}).json()
    assert body["meta"]["page"] == 1
    assert body["meta"]["pageSize"] == 1
    assert len(body["data"]) == 1

    body = client.get(API, params={"page": "abc"}).json()
    assert body["meta"]["page"] == 1


def test_list_unknown_sort_falls_back_to_created_at_desc(client, seeded):
    default = client.get(API, params={"sortBy": "created_at", "sortDir": "desc"}).json()
    fallback = client.get(API, params={"sortBy": "password", "sortDir": "up"}).json()
    assert [s["id"] for s in fallback["data"]] == [s["id"] for s in default["data"]]


def test_list_sort_by_year_asc(client, seeded):
    body = client.get(API, params={"sortBy": "year", "sortDir": "asc"}).json()
    years = [s["year"] for s in body["data"]]
    assert years == sorted(years)


def test_list_search(client, seeded):
    body = client.get(API, params={"search": "physics"}).json()
    assert body["meta"]["total"] == 1
    assert body["data"][0]["email"] == "carol.nguyen@example.com"

    body = client.get(API, params={"search": "nobody-matches-this"}).json()
    assert body["data"] == []
    assert body["meta"]["total"] == 0
    assert body["meta"]["totalPages"] == 0


def test_calendar_invalid_date_is_a_storage_failure(client, student_payload):
    response = client.post(API, json={**student_payload, "date_of_birth": "2021-02-30"})
    assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
    assert response.json() == {"detail": "Storage failure"}
    assert client.get(API).json()["meta"]["total"] == 0


def test_request_id_is_echoed(client):
    response = client.get("/api/health", headers={"X-Request-ID": "abc-123"})
    assert response.headers["X-Request-ID"] == "abc-123"


def test_email_round_trips_without_normalization(client, student_payload):
    student_id = _create(client, {**student_payload, "email": "Maria.Souza@Example.COM"})
    data = client.get(f"{API}/{student_id}").json()
    assert data["email"] == "Maria.Souza@Example.COM"


def test_create_accepts_test_domain_email(client, student_payload):
    student_id = _create(client, {**student_payload, "email": "ana@school.test"})
    assert client.get(f"{API}/{student_id}").json()["email"] == "ana@school.test"


def test_list_direction_without_sort_field_uses_default_order(client, seeded):
    default = client.get(API).json()
    only_dir = client.get(API, params={"sortDir": "asc"}).json()
    assert [s["id"] for s in only_dir["data"]] == [s["id"] for s in default["data"]]
