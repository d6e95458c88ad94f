from __future__ import annotations

from src.application.errors import InfrastructureError
from src.application.services.traceability import TraceabilitySnapshotService

API = "/api/v1"
STAGES = ("cria", "engorde", "matadero", "secadero", "distribucion")


async def _create_zones(client, headers) -> dict[str, str]:
    zones = {}
    for stage in STAGES:
        payload = {"name": f"Zona {stage}", "stage": stage}
        if stage == "secadero":
            payload["targets"] = {"temperature": {"min": 10, "max": 20}}
        response = await client.post(f"{API}/zones/", json=payload, headers=headers)
        assert response.status_code == 201, response.text
        zones[stage] = response.json()["id"]
    return zones


async def _move(client, headers, lot_id, zone_id, entry_time, **extra):
    return await client.post(
        f"{API}/lots/{lot_id}/move",
        json={"zone_id": zone_id, "entry_time": entry_time, **extra},
        headers=headers,
    )


async def test_lot_journey_split_and_traceability(client, admin_headers, manager_headers, worker_headers):
    zones = await _create_zones(client, admin_headers)
    create = await client.post(
        f"{API}/lots/",
        json={"identification": "L1", "initial_animals": 50, "food_regime": "bellota"},
        headers=manager_headers,
    )
    assert create.status_code == 201
    lot_id = create.json()["id"]
    assert create.json()["status"] == "active"

    # Workers only read
    denied = await _move(client, worker_headers, lot_id, zones["cria"], "2024-01-01T00:00:00Z")
    assert denied.status_code == 403
    assert denied.json()["code"] == "forbidden"

    skipped = await _move(client, manager_headers, lot_id, zones["engorde"], "2024-01-01T00:00:00Z")
    assert skipped.status_code == 409
    body = skipped.json()
    assert body["code"] == "invalid_transition"
    assert body["details"] == {"from": "sinUbicacion", "to": "engorde", "allowed": ["cria"]}

    for stage, when in (
        ("cria", "2024-01-01T00:00:00Z"),
        ("engorde", "2024-03-01T00:00:00Z"),
        ("matadero", "2024-06-01T00:00:00Z"),
    ):
        moved = await _move(client, manager_headers, lot_id, zones[stage], when)
        assert moved.status_code == 200, moved.text

    split = await _move(
        client,
        manager_headers,
        lot_id,
        zones["secadero"],
        "2024-07-01T00:00:00Z",
        sub_lots=[{"name": "Jamón", "pieces": 80}, {"identification": "Paleta", "quantity": 40}],
    )
    assert split.status_code == 200, split.text
    result = split.json()
    assert result["stay"]["zone_id"] == zones["secadero"]
    children = {c["piece_type"]: c for c in result["sub_lots"]}
    assert set(children) == {"Jamón", "Paleta"}
    assert children["Jamón"]["identification"] == "L1 - Jamón"
    assert children["Jamón"]["initial_animals"] == 80
    assert all(c["parent_lot_id"] == lot_id for c in children.values())

    for child in children.values():
        active = await client.get(f"{API}/lots/{child['id']}/active-stay", headers=worker_headers)
        assert active.status_code == 200
        assert active.json()["stage"] == "secadero"
        assert active.json()["stay"]["entry_time"].startswith("2024-07-01T00:00:00")

    history = await client.get(f"{API}/lots/{lot_id}/stays", headers=worker_headers)
    assert [s["zone_id"] for s in history.json()] == [zones[s] for s in STAGES[:4]]
    assert [s["exit_time"] is None for s in history.json()] == [False, False, False, True]

    sublots = await client.get(f"{API}/lots/{lot_id}/sublots", headers=worker_headers)
    assert {x["id"] for x in sublots.json()} == {c["id"] for c in children.values()}

    sensor = await client.post(
        f"{API}/sensors/",
        json={
            "zone_id": zones["secadero"],
            "name": "Termómetro",
            "sensor_type": "temperature",
            "validation_min": -20,
            "validation_max": 60,
        },
        headers=admin_headers,
    )
    assert sensor.status_code == 201
    sensor_id = sensor.json()["id"]
    readings = await client.post(
        f"{API}/sensors/{sensor_id}/readings",
        json={
            "readings": [
                {"value": 12.0, "timestamp": "2024-07-10T00:00:00Z"},
                {"value": 24.0, "timestamp": "2024-07-11T00:00:00Z"},
                {"value": 40.0, "timestamp": "2024-07-12T00:00:00Z", "is_simulated": True},
            ]
        },
        headers=manager_headers,
    )
    assert readings.status_code == 201
    out_of_range = await client.post(
        f"{API}/sensors/{sensor_id}/readings",
        json={"readings": [{"value": 99.0, "timestamp": "2024-07-12T00:00:00Z"}]},
        headers=manager_headers,
    )
    assert out_of_range.status_code == 422

    # The parent is still drying, so no certificate yet
    early = await client.post(f"{API}/lots/{lot_id}/qr", headers=manager_headers)
    assert early.status_code == 409

    jamon_id = children["Jamón"]["id"]
    labelled = await _move(
        client,
        manager_headers,
        jamon_id,
        zones["distribucion"],
        "2024-10-01T00:00:00Z",
        generate_qr=True,
    )
    assert labelled.status_code == 200, labelled.text
    snapshot = labelled.json()["qr_snapshot"]
    assert snapshot["lot_id"] == jamon_id
    assert snapshot["public_url"] == f"https://trace.test/t/{snapshot['public_token']}"
    data = snapshot["snapshot_data"]
    assert [p["stage"] for p in data["phases"]] == ["cria", "engorde", "matadero", "secadero"]
    assert [p["duration"] for p in data["phases"]] == [60, 92, 30, 92]
    assert data["phases"][3]["metrics"] == {
        "temperature": {"avg": 18.0, "min": 12.0, "max": 24.0, "pctInTarget": 50.0}
    }
    assert data["lote"]["parentLote"] == {"id": lot_id, "name": "L1"}
    assert data["metadata"]["totalAnimals"] == 50

    # Later readings never alter an issued certificate
    late = await client.post(
        f"{API}/sensors/{sensor_id}/readings",
        json={"readings": [{"value": 15.0, "timestamp": "2024-08-01T00:00:00Z"}]},
        headers=manager_headers,
    )
    assert late.status_code == 201
    token = snapshot["public_token"]
    public = await client.get(f"{API}/trace/{token}")
    assert public.status_code == 200
    assert public.json() == data

    listed = await client.get(f"{API}/qr-snapshots", params={"lot_id": jamon_id}, headers=worker_headers)
    assert listed.status_code == 200
    assert listed.json()[0]["scan_count"] == 1

    rotate_denied = await client.put(
        f"{API}/qr-snapshots/{snapshot['id']}/rotate", headers=worker_headers
    )
    assert rotate_denied.status_code == 403
    rotated = await client.put(f"{API}/qr-snapshots/{snapshot['id']}/rotate", headers=manager_headers)
    assert rotated.status_code == 200
    new_token = rotated.json()["public_token"]
    assert new_token != token
    assert (await client.get(f"{API}/trace/{token}")).status_code == 404
    assert (await client.get(f"{API}/trace/{new_token}")).json() == data

    revoked = await client.put(f"{API}/qr-snapshots/{snapshot['id']}/revoke", headers=manager_headers)
    assert revoked.status_code == 200
    assert revoked.json() == {}
    gone = await client.get(f"{API}/trace/{new_token}")
    assert gone.status_code == 410
    assert gone.json()["code"] == "expired"
    again = await client.put(f"{API}/qr-snapshots/{snapshot['id']}/rotate", headers=manager_headers)
    assert again.status_code == 410

    board = await client.get(f"{API}/tracking/board", headers=worker_headers)
    assert board.status_code == 200
    stages = board.json()["stages"]
    assert set(stages) == {"sinUbicacion", *STAGES, "finalizado"}
    assert {x["lot"]["id"] for x in stages["secadero"]["lots"]} == {lot_id, children["Paleta"]["id"]}
    assert [x["lot"]["id"] for x in stages["distribucion"]["lots"]] == [jamon_id]

    finished = await _move(client, manager_headers, jamon_id, "finalizado", "2024-11-01T00:00:00Z")
    assert finished.status_code == 200
    assert finished.json()["lot"]["status"] == "finished"
    assert finished.json()["stay"] is None
    again = await _move(client, manager_headers, jamon_id, zones["cria"], "2024-11-02T00:00:00Z")
    assert again.status_code == 409

    audit = await client.get(f"{API}/lots/{lot_id}/audit", headers=worker_headers)
    assert [e["action"] for e in audit.json()].count("move") == 4


async def test_failed_split_leaves_no_trace(client, manager_headers, worker_headers, monkeypatch):
    zones = await _create_zones(client, manager_headers)
    lot_id = (
        await client.post(
            f"{API}/lots/",
            json={"identification": "L5", "initial_animals": 20},
            headers=manager_headers,
        )
    ).json()["id"]
    for stage, when in (
        ("cria", "2024-01-01T00:00:00Z"),
        ("engorde", "2024-03-01T00:00:00Z"),
        ("matadero", "2024-06-01T00:00:00Z"),
    ):
        assert (await _move(client, manager_headers, lot_id, zones[stage], when)).status_code == 200

    original = TraceabilitySnapshotService.generate
    calls = {"n": 0}

    async def flaky_generate(self, lot, **kwargs):
        calls["n"] += 1
        if calls["n"] == 2:
            raise InfrastructureError("Snapshot storage unavailable")
        return await original(self, lot, **kwargs)

    monkeypatch.setattr(TraceabilitySnapshotService, "generate", flaky_generate)

    failed = await _move(
        client,
        manager_headers,
        lot_id,
        zones["secadero"],
        "2024-07-01T00:00:00Z",
        sub_lots=[{"name": "Jamón", "pieces": 40}, {"name": "Paleta", "pieces": 20}],
        generate_qr=True,
    )
    assert failed.status_code == 500
    assert failed.json()["code"] == "infrastructure_error"
    assert calls["n"] == 2

    sublots = await client.get(f"{API}/lots/{lot_id}/sublots", headers=worker_headers)
    assert sublots.json() == []
    active = await client.get(f"{API}/lots/{lot_id}/active-stay", headers=worker_headers)
    assert active.json()["stage"] == "matadero"
    assert active.json()["zone_id"] == zones["matadero"]
    stays = await client.get(f"{API}/lots/{lot_id}/stays", headers=worker_headers)
    assert len(stays.json()) == 3
    snapshots = await client.get(f"{API}/qr-snapshots", headers=worker_headers)
    assert snapshots.json() == []
    roots = await client.get(f"{API}/lots/", headers=worker_headers)
    assert [x["id"] for x in roots.json()] == [lot_id]
    audit = await client.get(f"{API}/lots/{lot_id}/audit", headers=worker_headers)
    assert [e["action"] for e in audit.json()].count("move") == 3


async def test_parent_with_deleted_sublots_is_kept(client, admin_headers, manager_headers):
    zones = await _create_zones(client, admin_headers)
    lot_id = (
        await client.post(
            f"{API}/lots/",
            json={"identification": "L6", "initial_animals": 12},
            headers=manager_headers,
        )
    ).json()["id"]
    for stage, when in (
        ("cria", "2024-01-01T00:00:00Z"),
        ("engorde", "2024-03-01T00:00:00Z"),
        ("matadero", "2024-06-01T00:00:00Z"),
    ):
        assert (await _move(client, manager_headers, lot_id, zones[stage], when)).status_code == 200
    split = await _move(
        client,
        manager_headers,
        lot_id,
        zones["secadero"],
        "2024-07-01T00:00:00Z",
        sub_lots=[{"name": "Lomo", "pieces": 12}],
    )
    child_id = split.json()["sub_lots"][0]["id"]

    for target in (child_id, lot_id):
        for zone_id, when in (
            (zones["distribucion"], "2024-10-01T00:00:00Z"),
            ("finalizado", "2024-11-01T00:00:00Z"),
        ):
            assert (await _move(client, manager_headers, target, zone_id, when)).status_code == 200

    child_delete = await client.delete(f"{API}/lots/{child_id}", headers=admin_headers)
    assert child_delete.status_code == 204
    assert (await client.get(f"{API}/lots/{child_id}", headers=admin_headers)).status_code == 404
    sublots = await client.get(f"{API}/lots/{lot_id}/sublots", headers=admin_headers)
    assert sublots.json() == []

    # The soft-deleted sub-lot still references its parent
    parent_delete = await client.delete(f"{API}/lots/{lot_id}", headers=admin_headers)
    assert parent_delete.status_code == 409
    assert parent_delete.json() == {"code": "conflict", "message": "Lot has sub-lots"}
    assert (await client.get(f"{API}/lots/{lot_id}", headers=admin_headers)).status_code == 200
