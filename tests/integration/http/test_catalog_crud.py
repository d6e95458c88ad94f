from __future__ import annotations

from uuid import uuid4

API = "/api/v1"


async def test_requests_without_token_are_rejected(client):
    health = await client.get(f"{API}/health")
    assert health.status_code == 200
    assert health.json() == {"status": "ok"}

    response = await client.get(f"{API}/lots/")
    assert response.status_code == 401
    assert response.json()["code"] == "auth_error"

    bad = await client.get(f"{API}/lots/", headers={"Authorization": "Bearer nope"})
    assert bad.status_code == 401

    unknown = await client.get(f"{API}/trace/does-not-exist")
    assert unknown.status_code == 404
    assert unknown.json() == {"code": "not_found", "message": "Traceability code not found"}


async def test_zone_rules(client, admin_headers, manager_headers, worker_headers):
    payload = {
        "name": "Cebadero Norte",
        "stage": "engorde",
        "targets": {"temperature": {"min": 5, "max": 25}},
        "fixed_info": {"surface_m2": 1200},
    }
    created = await client.post(f"{API}/zones/", json=payload, headers=manager_headers)
    assert created.status_code == 201
    zone = created.json()
    assert zone["targets"] == {"temperature": {"min": 5.0, "max": 25.0}}
    zone_id = zone["id"]

    for invalid in (
        {"name": "Final", "stage": "finalizado"},
        {"name": "Al revés", "stage": "cria", "targets": {"humidity": {"min": 90, "max": 10}}},
    ):
        response = await client.post(f"{API}/zones/", json=invalid, headers=admin_headers)
        assert response.status_code == 422
        assert response.json()["code"] == "validation_error"

    worker_create = await client.post(f"{API}/zones/", json=payload, headers=worker_headers)
    assert worker_create.status_code == 403

    restage = await client.put(
        f"{API}/zones/{zone_id}", json={"stage": "secadero"}, headers=manager_headers
    )
    assert restage.status_code == 422
    renamed = await client.put(
        f"{API}/zones/{zone_id}",
        json={"name": "Cebadero Sur", "stage": "engorde", "is_active": False},
        headers=manager_headers,
    )
    assert renamed.status_code == 200
    assert renamed.json()["name"] == "Cebadero Sur"
    assert renamed.json()["is_active"] is False

    active_only = await client.get(f"{API}/zones/", params={"is_active": True}, headers=worker_headers)
    assert zone_id not in {z["id"] for z in active_only.json()}

    sensor = await client.post(
        f"{API}/sensors/",
        json={"zone_id": zone_id, "name": "Humedad", "sensor_type": "humidity"},
        headers=manager_headers,
    )
    assert sensor.status_code == 201
    zone_sensors = await client.get(f"{API}/zones/{zone_id}/sensors", headers=worker_headers)
    assert [s["id"] for s in zone_sensors.json()] == [sensor.json()["id"]]
    assert zone_sensors.json()[0]["device_id"].startswith("SENSOR_")

    with_sensor = await client.delete(f"{API}/zones/{zone_id}", headers=admin_headers)
    assert with_sensor.status_code == 409

    empty = await client.post(
        f"{API}/zones/", json={"name": "Paridera", "stage": "cria"}, headers=admin_headers
    )
    empty_id = empty.json()["id"]
    manager_delete = await client.delete(f"{API}/zones/{empty_id}", headers=manager_headers)
    assert manager_delete.status_code == 403
    admin_delete = await client.delete(f"{API}/zones/{empty_id}", headers=admin_headers)
    assert admin_delete.status_code == 204
    missing = await client.get(f"{API}/zones/{empty_id}", headers=admin_headers)
    assert missing.status_code == 404


async def test_lot_template_and_custom_data(client, admin_headers, manager_headers, worker_headers):
    empty = await client.get(f"{API}/lot-template", headers=worker_headers)
    assert empty.status_code == 200
    assert empty.json()["custom_fields"] == []

    duplicated = await client.put(
        f"{API}/lot-template",
        json={
            "custom_fields": [
                {"key": "finca", "label": "Finca"},
                {"key": "finca", "label": "Otra finca"},
            ]
        },
        headers=manager_headers,
    )
    assert duplicated.status_code == 422
    assert duplicated.json()["details"] == {"key": "finca"}

    no_options = await client.put(
        f"{API}/lot-template",
        json={"custom_fields": [{"key": "dop", "label": "DOP", "type": "select"}]},
        headers=manager_headers,
    )
    assert no_options.status_code == 422

    template = {
        "custom_fields": [
            {"key": "finca", "label": "Finca", "required": True},
            {"key": "montanera_kg", "label": "Reposición (kg)", "type": "number"},
            {"key": "dop", "label": "DOP", "type": "select", "options": ["Guijuelo", "Jabugo"]},
        ]
    }
    saved = await client.put(f"{API}/lot-template", json=template, headers=manager_headers)
    assert saved.status_code == 200
    assert [f["key"] for f in saved.json()["custom_fields"]] == ["finca", "montanera_kg", "dop"]
    worker_edit = await client.put(f"{API}/lot-template", json=template, headers=worker_headers)
    assert worker_edit.status_code == 403

    missing_required = await client.post(
        f"{API}/lots/",
        json={"identification": "L9", "initial_animals": 10, "custom_data": {"dop": "Jabugo"}},
        headers=manager_headers,
    )
    assert missing_required.status_code == 422
    assert missing_required.json()["details"] == {"field": "finca"}

    wrong_option = await client.post(
        f"{API}/lots/",
        json={
            "identification": "L9",
            "initial_animals": 10,
            "custom_data": {"finca": "Norte", "dop": "Teruel"},
        },
        headers=manager_headers,
    )
    assert wrong_option.status_code == 422

    created = await client.post(
        f"{API}/lots/",
        json={
            "identification": "L9",
            "initial_animals": 10,
            "custom_data": {"finca": "Norte", "montanera_kg": "46.5", "dop": "Jabugo"},
        },
        headers=manager_headers,
    )
    assert created.status_code == 201
    assert created.json()["custom_data"] == {
        "finca": "Norte",
        "montanera_kg": 46.5,
        "dop": "Jabugo",
    }


async def test_lot_crud_and_delete_rules(client, make_headers, admin_headers, manager_headers, worker_headers):
    invalid = await client.post(
        f"{API}/lots/", json={"identification": "L0", "initial_animals": 0}, headers=admin_headers
    )
    assert invalid.status_code == 422
    body = invalid.json()
    assert body["code"] == "validation_error"
    assert body["details"]["errors"][0]["loc"] == ["body", "initial_animals"]

    worker_create = await client.post(
        f"{API}/lots/", json={"identification": "W", "initial_animals": 3}, headers=worker_headers
    )
    assert worker_create.status_code == 403

    created = await client.post(
        f"{API}/lots/",
        json={"identification": "L2", "initial_animals": 30, "iberian_percentage": 75},
        headers=manager_headers,
    )
    assert created.status_code == 201
    lot_id = created.json()["id"]

    other_org = make_headers(org=uuid4())
    hidden = await client.get(f"{API}/lots/{lot_id}", headers=other_org)
    assert hidden.status_code == 404
    assert (await client.get(f"{API}/lots/", headers=other_org)).json() == []

    updated = await client.put(
        f"{API}/lots/{lot_id}",
        json={"final_animals": 28, "food_regime": "cebo"},
        headers=manager_headers,
    )
    assert updated.status_code == 200
    assert updated.json()["final_animals"] == 28
    assert updated.json()["iberian_percentage"] == 75

    active = await client.get(f"{API}/lots/{lot_id}/active-stay", headers=worker_headers)
    assert active.json() == {"stay": None, "zone_id": None, "stage": "sinUbicacion"}

    zone = await client.post(
        f"{API}/zones/", json={"name": "Paridera", "stage": "cria"}, headers=admin_headers
    )
    zone_id = zone.json()["id"]
    moved = await client.post(
        f"{API}/lots/{lot_id}/move", json={"zone_id": zone_id}, headers=manager_headers
    )
    assert moved.status_code == 200

    manager_delete = await client.delete(f"{API}/lots/{lot_id}", headers=manager_headers)
    assert manager_delete.status_code == 403
    placed = await client.delete(f"{API}/lots/{lot_id}", headers=admin_headers)
    assert placed.status_code == 409
    assert placed.json()["code"] == "conflict"
    zone_in_use = await client.delete(f"{API}/zones/{zone_id}", headers=admin_headers)
    assert zone_in_use.status_code == 409

    blank_split = await client.post(
        f"{API}/lots/{lot_id}/move",
        json={"zone_id": "finalizado", "sub_lots": []},
        headers=manager_headers,
    )
    assert blank_split.status_code == 422

    never_moved = await client.post(
        f"{API}/lots/", json={"identification": "L3", "initial_animals": 5}, headers=admin_headers
    )
    never_moved_id = never_moved.json()["id"]
    deleted = await client.delete(f"{API}/lots/{never_moved_id}", headers=admin_headers)
    assert deleted.status_code == 204
    assert (await client.get(f"{API}/lots/{never_moved_id}", headers=admin_headers)).status_code == 404

    roots = await client.get(f"{API}/lots/", params={"roots_only": True}, headers=worker_headers)
    assert [x["id"] for x in roots.json()] == [lot_id]
    finished = await client.get(f"{API}/lots/", params={"status": "finished"}, headers=worker_headers)
    assert finished.json() == []
