"""
Scan Barang Backend — Event & Scan Route Tests
================================================

What:  /api/event end-to-end against a seeded SQLite database.

What we test:
    ✅ Create/read/update/list/detail/delete with DD-MM-YYYY input
    ✅ Malformed dates, missing or oversized fields → 400
    ✅ Scans target the explicit event or the latest one; duplicates → 409
    ✅ Scan and event completion set "Selesai" once and keep the first stamp
    ✅ check-status, check-qrcode and tampil_scan
    ✅ Another owner's events behave as missing (404)
"""

import pytest

from conftest import OWNER_A, OWNER_B

STATUS_DONE_ID = 1
STATUS_IN_USE_ID = 2

EVENT = {"nama_event": "Konser Akbar", "tanggal": "05-03-2024", "kota": "Bandung", "kabupaten": "Bandung Barat"}


async def create_event(client, headers=OWNER_A, **overrides):
    response = await client.post("/api/event/simpan", json={**EVENT, **overrides}, headers=headers)
    assert response.status_code == 201
    return response.json()["eventId"]


async def scan(client, code, headers=OWNER_A, **extra):
    return await client.post("/api/event/scan", json={"qr_code": code, **extra}, headers=headers)


class TestEventCrud:

    @pytest.mark.asyncio
    async def test_create_and_read_for_edit(self, client):
        response = await client.post("/api/event/simpan", json=EVENT, headers=OWNER_A)

        assert response.status_code == 201
        assert response.json()["message"] == "Event added successfully"
        event_id = response.json()["eventId"]

        event = (await client.get(f"/api/event/ambil-edit/{event_id}", headers=OWNER_A)).json()
        assert event["nama_event"] == "Konser Akbar"
        assert event["tanggal"] == "2024-03-05"
        assert event["id_status"] == STATUS_IN_USE_ID
        assert event["waktu_selesai"] is None

    @pytest.mark.asyncio
    @pytest.mark.parametrize("bad_date", ["2024-03-05", "5/3/2024", "31-02-2024", "tomorrow"])
    async def test_malformed_date_is_400(self, client, bad_date):
        response = await client.post(
            "/api/event/simpan", json={**EVENT, "tanggal": bad_date}, headers=OWNER_A
        )

        assert response.status_code == 400
        assert response.json()["error"] == "Invalid date format. Use DD-MM-YYYY"

    @pytest.mark.asyncio
    async def test_missing_field_is_400(self, client):
        body = {k: v for k, v in EVENT.items() if k != "kota"}
        response = await client.post("/api/event/simpan", json=body, headers=OWNER_A)

        assert response.status_code == 400
        assert "kota" in response.json()["details"]

    @pytest.mark.asyncio
    async def test_update(self, client):
        event_id = await create_event(client)

        response = await client.put(
            f"/api/event/update/{event_id}",
            json={**EVENT, "nama_event": "Pameran", "tanggal": "01-12-2024"},
            headers=OWNER_A,
        )

        assert response.status_code == 200
        assert response.json() == {"message": "Event updated successfully"}
        event = (await client.get(f"/api/event/ambil-edit/{event_id}", headers=OWNER_A)).json()
        assert (event["nama_event"], event["tanggal"]) == ("Pameran", "2024-12-01")

    @pytest.mark.asyncio
    async def test_update_with_bad_date_changes_nothing(self, client):
        event_id = await create_event(client)

        response = await client.put(
            f"/api/event/update/{event_id}", json={**EVENT, "tanggal": "2024-12-01"}, headers=OWNER_A
        )

        assert response.status_code == 400
        event = (await client.get(f"/api/event/ambil-edit/{event_id}", headers=OWNER_A)).json()
        assert event["tanggal"] == "2024-03-05"

    @pytest.mark.asyncio
    async def test_list_latest_date_first_with_status(self, client):
        await create_event(client, nama_event="Lama", tanggal="01-01-2023")
        await create_event(client, nama_event="Baru", tanggal="01-01-2025")
        await create_event(client, headers=OWNER_B, nama_event="Milik B")

        events = (await client.get("/api/event/tampil", headers=OWNER_A)).json()

        assert [e["nama_event"] for e in events] == ["Baru", "Lama"]
        assert events[0]["status"] == "Dipakai"

    @pytest.mark.asyncio
    async def test_other_owner_sees_404(self, client):
        event_id = await create_event(client)
        await scan(client, "QR-1")
        scan_body = {"qr_code": "QR-1", "id_event": event_id}

        for method, url, kwargs in [
            ("GET", f"/api/event/ambil-edit/{event_id}", {}),
            ("GET", f"/api/event/detail/{event_id}", {}),
            ("PUT", f"/api/event/update/{event_id}", {"json": EVENT}),
            ("PUT", "/api/event/scan-complete", {"json": scan_body}),
            ("DELETE", "/api/event/hapus-scan", {"json": scan_body}),
            ("GET", f"/api/event/event-statuscheck/{event_id}/check-status", {}),
            ("GET", f"/api/event/check-qrcode?id_event={event_id}", {}),
            ("PUT", "/api/event/event-selesai", {"json": {"id_event": event_id}}),
            ("DELETE", f"/api/event/hapus/{event_id}", {}),
        ]:
            response = await client.request(method, url, headers=OWNER_B, **kwargs)
            assert response.status_code == 404, url
            assert response.json()["error"] == "Event not found"

        scans = (await client.get(f"/api/event/tampil_scan?id_event={event_id}", headers=OWNER_A)).json()
        assert [(s["qr_code"], s["id_status"]) for s in scans["data"]] == [("QR-1", STATUS_IN_USE_ID)]
        assert scans["data"][0]["tanggal_selesai"] is None

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "field, limit", [("nama_event", 255), ("kota", 100), ("kabupaten", 100)]
    )
    async def test_overlong_field_is_400(self, client, field, limit):
        response = await client.post(
            "/api/event/simpan", json={**EVENT, field: "x" * (limit + 1)}, headers=OWNER_A
        )

        assert response.status_code == 400
        assert field in response.json()["details"]
        assert (await client.get("/api/event/tampil", headers=OWNER_A)).json() == []

    @pytest.mark.asyncio
    async def test_delete_removes_event_and_scans(self, client):
        event_id = await create_event(client)
        await scan(client, "QR-1")

        response = await client.delete(f"/api/event/hapus/{event_id}", headers=OWNER_A)

        assert response.status_code == 200
        assert (await client.get("/api/event/tampil", headers=OWNER_A)).json() == []
        scans = (await client.get(f"/api/event/tampil_scan?id_event={event_id}", headers=OWNER_A)).json()
        assert scans["data"] == []


class TestScans:

    @pytest.mark.asyncio
    async def test_scan_goes_to_latest_event(self, client):
        await create_event(client, nama_event="Pertama")
        latest = await create_event(client, nama_event="Kedua")

        response = await scan(client, "QR-1")

        assert response.status_code == 201
        assert response.json() == {"message": "QR code saved successfully", "id_event": latest}

    @pytest.mark.asyncio
    async def test_scan_explicit_event(self, client):
        first = await create_event(client, nama_event="Pertama")
        await create_event(client, nama_event="Kedua")

        response = await scan(client, "QR-1", id_event=first)

        assert response.json()["id_event"] == first

    @pytest.mark.asyncio
    async def test_scan_without_events_is_404(self, client):
        response = await scan(client, "QR-1")
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_scan_into_other_owners_event_is_404(self, client):
        event_id = await create_event(client)
        response = await scan(client, "QR-1", headers=OWNER_B, id_event=event_id)
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_overlong_code_is_400(self, client):
        event_id = await create_event(client)

        response = await scan(client, "Q" * 513, id_event=event_id)

        assert response.status_code == 400
        assert "qr_code" in response.json()["details"]
        check = (await client.get(f"/api/event/check-qrcode?id_event={event_id}", headers=OWNER_A)).json()
        assert check["exists"] is False

    @pytest.mark.asyncio
    async def test_duplicate_scan_is_409(self, client):
        event_id = await create_event(client)
        await scan(client, "QR-1")

        response = await scan(client, "QR-1")

        assert response.status_code == 409
        assert response.json()["error"] == "This QR code is already in this event"
        scans = (await client.get(f"/api/event/tampil_scan?id_event={event_id}", headers=OWNER_A)).json()
        assert len(scans["data"]) == 1

    @pytest.mark.asyncio
    async def test_same_code_in_different_events(self, client):
        first = await create_event(client)
        second = await create_event(client)

        assert (await scan(client, "QR-1", id_event=first)).status_code == 201
        assert (await scan(client, "QR-1", id_event=second)).status_code == 201

    @pytest.mark.asyncio
    async def test_check_qrcode(self, client):
        event_id = await create_event(client)

        before = (await client.get("/api/event/check-qrcode", headers=OWNER_A)).json()
        await scan(client, "QR-1")
        after = (await client.get(f"/api/event/check-qrcode?id_event={event_id}", headers=OWNER_A)).json()

        assert before == {"exists": False, "id_event": event_id}
        assert after == {"exists": True, "id_event": event_id}

    @pytest.mark.asyncio
    async def test_delete_scan(self, client):
        event_id = await create_event(client)
        await scan(client, "QR-1")

        response = await client.request(
            "DELETE", "/api/event/hapus-scan", json={"qr_code": "QR-1"}, headers=OWNER_A
        )
        again = await client.request(
            "DELETE", "/api/event/hapus-scan", json={"qr_code": "QR-1", "id_event": event_id}, headers=OWNER_A
        )

        assert response.status_code == 200
        assert response.json() == {"message": "QR code deleted successfully"}
        assert again.status_code == 404
        assert again.json()["error"] == "QR code not found"

    @pytest.mark.asyncio
    async def test_list_scans(self, client):
        event_id = await create_event(client)
        await scan(client, "QR-1")
        await scan(client, "QR-2")

        response = await client.get(f"/api/event/tampil_scan?id_event={event_id}", headers=OWNER_A)

        assert response.status_code == 200
        body = response.json()
        assert body["message"] == "QR code data retrieved successfully"
        assert [s["qr_code"] for s in body["data"]] == ["QR-1", "QR-2"]
        assert body["data"][0]["id_status"] == STATUS_IN_USE_ID
        assert body["data"][0]["tanggal_selesai"] is None

    @pytest.mark.asyncio
    async def test_list_scans_requires_event_id(self, client):
        response = await client.get("/api/event/tampil_scan", headers=OWNER_A)
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_list_scans_of_other_owner_is_empty(self, client):
        event_id = await create_event(client)
        await scan(client, "QR-1")

        response = await client.get(f"/api/event/tampil_scan?id_event={event_id}", headers=OWNER_B)

        assert response.json()["data"] == []


class TestCompletion:

    @pytest.mark.asyncio
    async def test_scan_complete_and_status_check(self, client):
        event_id = await create_event(client)
        await scan(client, "QR-1")
        await scan(client, "QR-2")
        status_url = f"/api/event/event-statuscheck/{event_id}/check-status"

        assert (await client.get(status_url, headers=OWNER_A)).json() == {"selesai": False}

        for code in ("QR-1", "QR-2"):
            response = await client.put(
                "/api/event/scan-complete", json={"qr_code": code, "id_event": event_id}, headers=OWNER_A
            )
            assert response.status_code == 200
            assert response.json() == {"success": True, "message": "QR code updated successfully"}

        assert (await client.get(status_url, headers=OWNER_A)).json() == {"selesai": True}

    @pytest.mark.asyncio
    async def test_scan_complete_keeps_first_stamp(self, client):
        event_id = await create_event(client)
        await scan(client, "QR-1")
        body = {"qr_code": "QR-1", "id_event": event_id}
        scans_url = f"/api/event/tampil_scan?id_event={event_id}"

        await client.put("/api/event/scan-complete", json=body, headers=OWNER_A)
        first = (await client.get(scans_url, headers=OWNER_A)).json()["data"][0]
        await client.put("/api/event/scan-complete", json=body, headers=OWNER_A)
        second = (await client.get(scans_url, headers=OWNER_A)).json()["data"][0]

        assert first["id_status"] == STATUS_DONE_ID
        assert first["tanggal_selesai"] is not None
        assert (second["tanggal_selesai"], second["waktu_selesai"]) == (
            first["tanggal_selesai"],
            first["waktu_selesai"],
        )

    @pytest.mark.asyncio
    async def test_scan_complete_unknown_code_is_404(self, client):
        event_id = await create_event(client)

        response = await client.put(
            "/api/event/scan-complete", json={"qr_code": "NOPE", "id_event": event_id}, headers=OWNER_A
        )

        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_status_check_with_no_scans_is_done(self, client):
        event_id = await create_event(client)

        response = await client.get(f"/api/event/event-statuscheck/{event_id}/check-status", headers=OWNER_A)

        assert response.json() == {"selesai": True}

    @pytest.mark.asyncio
    async def test_complete_event(self, client):
        event_id = await create_event(client)

        response = await client.put("/api/event/event-selesai", json={"id_event": event_id}, headers=OWNER_A)

        assert response.status_code == 200
        assert response.json() == {"success": True, "message": "Event completed!"}

        detail = (await client.get(f"/api/event/detail/{event_id}", headers=OWNER_A)).json()
        assert detail["status"] == "Selesai"
        assert detail["id_status"] == STATUS_DONE_ID
        assert detail["tanggal_selesai"] is not None
        assert detail["waktu_selesai"] is not None

    @pytest.mark.asyncio
    async def test_complete_event_is_idempotent(self, client):
        event_id = await create_event(client)
        url = f"/api/event/ambil-edit/{event_id}"

        await client.put("/api/event/event-selesai", json={"id_event": event_id}, headers=OWNER_A)
        first = (await client.get(url, headers=OWNER_A)).json()["waktu_selesai"]
        response = await client.put("/api/event/event-selesai", json={"id_event": event_id}, headers=OWNER_A)
        second = (await client.get(url, headers=OWNER_A)).json()["waktu_selesai"]

        assert response.status_code == 200
        assert first is not None
        assert first == second

    @pytest.mark.asyncio
    async def test_missing_status_row_is_500(self, client, db_session):
        from sqlalchemy import delete
        from scanbarang.models import Status

        await db_session.execute(delete(Status).where(Status.name == "Dipakai"))
        await db_session.commit()

        response = await client.post("/api/event/simpan", json=EVENT, headers=OWNER_A)

        assert response.status_code == 500
        assert response.json()["error"] == "Default status not found"
