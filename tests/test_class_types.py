from conftest import BRANCH_ID, MONDAY

from classbook.domain.sessions.service import SessionService


def _create(client, headers, **overrides):
    payload = {"name": "Spin Express", "category": "spin", "defaultCapacity": 15}
    payload.update(overrides)
    return client.post("/classes/types", json=payload, headers=headers)


def test_create_and_get_class_type(client, admin_headers):
    response = _create(client, admin_headers)
    assert response.status_code == 201
    body = response.json()
    assert body["name"] == "Spin Express"
    assert body["branchId"] == BRANCH_ID
    assert body["defaultDuration"] == 60
    assert body["isActive"] is True

    fetched = client.get(f"/classes/types/{body['id']}", headers=admin_headers)
    assert fetched.status_code == 200
    assert fetched.json()["category"] == "spin"


def test_create_rejects_short_duration(client, admin_headers):
    response = _create(client, admin_headers, defaultDuration=10)
    assert response.status_code == 422


def test_members_cannot_create_types(client, member_headers):
    response = _create(client, member_headers)
    assert response.status_code == 403


def test_list_filters_by_category_and_search(client, admin_headers, member_headers):
    _create(client, admin_headers, name="Power Yoga", category="yoga")
    _create(client, admin_headers, name="Spin Express", category="spin")
    _create(client, admin_headers, name="Yin Yoga", category="yoga")

    response = client.get("/classes/types", params={"category": "yoga"}, headers=member_headers)
    assert response.status_code == 200
    body = response.json()
    assert body["total"] == 2
    assert [t["name"] for t in body["data"]] == ["Power Yoga", "Yin Yoga"]

    response = client.get("/classes/types", params={"search": "spin"}, headers=member_headers)
    assert [t["name"] for t in response.json()["data"]] == ["Spin Express"]


def test_list_paginates(client, admin_headers):
    for i in range(3):
        _create(client, admin_headers, name=f"Class {i}")

    response = client.get("/classes/types", params={"page": 2, "limit": 2}, headers=admin_headers)
    body = response.json()
    assert body["total"] == 3
    assert body["page"] == 2
    assert len(body["data"]) == 1


def test_patch_changes_only_supplied_fields(client, admin_headers):
    created = _create(client, admin_headers, color="#ff0000").json()

    response = client.patch(
        f"/classes/types/{created['id']}", json={"name": "Spin Pro"}, headers=admin_headers
    )
    assert response.status_code == 200
    body = response.json()
    assert body["name"] == "Spin Pro"
    assert body["color"] == "#ff0000"
    assert body["defaultCapacity"] == 15


def test_structural_fields_locked_once_sessions_exist(
    client, admin_headers, db, class_type, make_schedule
):
    schedule = make_schedule()
    SessionService(db).generate_sessions(MONDAY, MONDAY, schedule_id=schedule["id"])

    response = client.patch(
        f"/classes/types/{class_type['id']}", json={"defaultCapacity": 5}, headers=admin_headers
    )
    assert response.status_code == 409

    # Display fields still change
    response = client.patch(
        f"/classes/types/{class_type['id']}", json={"color": "#00ff00"}, headers=admin_headers
    )
    assert response.status_code == 200
    assert response.json()["color"] == "#00ff00"


def test_soft_deleted_type_is_hidden(client, admin_headers):
    created = _create(client, admin_headers).json()

    response = client.delete(f"/classes/types/{created['id']}", headers=admin_headers)
    assert response.status_code == 200
    assert response.json()["message"] == "Class type deleted successfully"

    assert client.get(f"/classes/types/{created['id']}", headers=admin_headers).status_code == 404
    assert client.get("/classes/types", headers=admin_headers).json()["total"] == 0


def test_unknown_type_is_not_found(client, admin_headers):
    response = client.get("/classes/types/999", headers=admin_headers)
    assert response.status_code == 404
    assert response.json()["detail"] == "Class type #999 not found"
