"""
Tests for the trackers API.
"""

import pytest

from cooperloc.models import TrackerStatus, UserRole


@pytest.fixture
async def network(make_user, make_franchise):
    """Admin, two franchises and one franqueado per franchise."""
    sul = await make_franchise("Sul", state="RS")
    norte = await make_franchise("Norte", state="PA")
    return {
        "admin": await make_user(UserRole.ADMIN),
        "matriz": await make_user(UserRole.MATRIZ),
        "sul": sul,
        "norte": norte,
        "owner": await make_user(UserRole.FRANQUEADO, franchise_id=sul.id),
        "outsider": await make_user(UserRole.FRANQUEADO, franchise_id=norte.id),
    }


class TestTrackerCatalog:
    """Tests for create, list, get and delete."""

    async def test_create(self, client, network):
        response = await client.post(
            "/api/trackers", headers=network["matriz"]["headers"],
            json={"serial_number": "  SN-100 ", "model": "GT06", "notes": ""},
        )
        assert response.status_code == 201
        data = response.json()
        assert data["serial_number"] == "SN-100"
        assert data["status"] == "estoque"
        assert data["notes"] is None
        assert data["franchise"] is None

    async def test_create_duplicate(self, client, network, make_tracker):
        await make_tracker("SN-100")
        response = await client.post(
            "/api/trackers", headers=network["admin"]["headers"], json={"serial_number": "SN-100"}
        )
        assert response.status_code == 409

    async def test_create_with_other_status(self, client, network):
        response = await client.post(
            "/api/trackers", headers=network["admin"]["headers"],
            json={"serial_number": "SN-100", "status": "instalado"},
        )
        assert response.status_code == 422

    async def test_franchisee_cannot_create(self, client, network):
        response = await client.post(
            "/api/trackers", headers=network["owner"]["headers"], json={"serial_number": "SN-100"}
        )
        assert response.status_code == 403

    async def test_list_search_and_filter(self, client, network, make_tracker):
        await make_tracker("ABC-1", model="GT06")
        await make_tracker("ABC-2", TrackerStatus.ENVIADO, network["sul"].id, model="ST310")
        await make_tracker("XYZ-3", model="ST310")
        headers = network["admin"]["headers"]

        response = await client.get("/api/trackers", headers=headers)
        assert len(response.json()) == 3

        response = await client.get("/api/trackers", headers=headers, params={"search": "st310"})
        assert {t["serial_number"] for t in response.json()} == {"ABC-2", "XYZ-3"}

        response = await client.get("/api/trackers", headers=headers, params={"status": "enviado"})
        data = response.json()
        assert [t["serial_number"] for t in data] == ["ABC-2"]
        assert data[0]["franchise"] == {"id": network["sul"].id, "name": "Sul", "state": "RS"}

    async def test_franchisee_cannot_list_all(self, client, network):
        response = await client.get("/api/trackers", headers=network["owner"]["headers"])
        assert response.status_code == 403

    async def test_get_scoped_for_franchisee(self, client, network, make_tracker):
        """Test franqueado opens its own trackers only."""
        tracker = await make_tracker("SN-1", TrackerStatus.ENVIADO, network["sul"].id)

        assert (await client.get(f"/api/trackers/{tracker.id}", headers=network["owner"]["headers"])).status_code == 200
        assert (await client.get(f"/api/trackers/{tracker.id}", headers=network["outsider"]["headers"])).status_code == 403
        assert (await client.get(f"/api/trackers/{tracker.id}", headers=network["matriz"]["headers"])).status_code == 200

    async def test_get_missing(self, client, network):
        response = await client.get("/api/trackers/nope", headers=network["admin"]["headers"])
        assert response.status_code == 404

    async def test_delete(self, client, network, make_tracker):
        tracker = await make_tracker("SN-1")
        response = await client.delete(f"/api/trackers/{tracker.id}", headers=network["admin"]["headers"])
        assert response.status_code == 200
        assert (await client.get(f"/api/trackers/{tracker.id}", headers=network["admin"]["headers"])).status_code == 404

    async def test_matriz_cannot_delete(self, client, network, make_tracker):
        tracker = await make_tracker("SN-1")
        response = await client.delete(f"/api/trackers/{tracker.id}", headers=network["matriz"]["headers"])
        assert response.status_code == 403
        assert response.json()["redirect_to"] == "/unauthorized"
        assert (await client.get(f"/api/trackers/{tracker.id}", headers=network["admin"]["headers"])).status_code == 200

    async def test_delete_refused_after_movement(self, client, network, make_tracker):
        """Test a sent tracker keeps its movement history."""
        tracker = await make_tracker("SN-1")
        admin = network["admin"]["headers"]
        await client.post(f"/api/trackers/{tracker.id}/send", headers=admin, json={"franchise_id": network["sul"].id})

        response = await client.delete(f"/api/trackers/{tracker.id}", headers=admin)
        assert response.status_code == 409
        assert response.json()["serial_number"] == "SN-1"

        movements = await client.get(f"/api/trackers/{tracker.id}/movements", headers=admin)
        assert len(movements.json()) == 1


class TestTrackerFlow:
    """Tests for send, install and defect through the API."""

    async def test_full_flow(self, client, network):
        """Test estoque -> enviado -> instalado with one movement per step."""
        admin = network["admin"]["headers"]
        owner = network["owner"]["headers"]

        created = await client.post("/api/trackers", headers=admin, json={"serial_number": "SN-1"})
        tracker_id = created.json()["id"]

        sent = await client.post(
            f"/api/trackers/{tracker_id}/send", headers=admin,
            json={"franchise_id": network["sul"].id, "notes": "lote março"},
        )
        assert sent.status_code == 200
        assert sent.json()["status"] == "enviado"
        assert sent.json()["sent_at"] is not None

        mine = await client.get("/api/trackers/mine", headers=owner)
        assert [t["serial_number"] for t in mine.json()["trackers"]] == ["SN-1"]
        assert mine.json()["stats"]["received"] == 1

        installed = await client.post(
            f"/api/trackers/{tracker_id}/install", headers=owner,
            json={
                "client_name": "Transportes Silva",
                "client_cnpj": "",
                "vehicle_plate": "ABC1D23",
                "vehicle_year": "2022",
                "installation_month": "Março",
            },
        )
        assert installed.status_code == 200
        data = installed.json()
        assert data["status"] == "instalado"
        assert data["client_name"] == "Transportes Silva"
        assert data["client_cnpj"] is None
        assert data["installed_at"] is not None

        movements = await client.get(f"/api/trackers/{tracker_id}/movements", headers=admin)
        assert sorted((m["from_status"], m["to_status"]) for m in movements.json()) == [
            ("enviado", "instalado"),
            ("estoque", "enviado"),
        ]

    async def test_send_without_franchise(self, client, network, make_tracker):
        tracker = await make_tracker("SN-1")
        response = await client.post(
            f"/api/trackers/{tracker.id}/send", headers=network["admin"]["headers"], json={"franchise_id": ""}
        )
        assert response.status_code == 422

    async def test_send_to_inactive_franchise(self, client, network, make_tracker, make_franchise):
        closed = await make_franchise("Fechada", active=False)
        tracker = await make_tracker("SN-1")
        response = await client.post(
            f"/api/trackers/{tracker.id}/send", headers=network["admin"]["headers"],
            json={"franchise_id": closed.id},
        )
        assert response.status_code == 422

    async def test_illegal_transition(self, client, network, make_tracker):
        """Test resending a sent tracker is a 409 and writes nothing."""
        tracker = await make_tracker("SN-1", TrackerStatus.ENVIADO, network["sul"].id)
        headers = network["admin"]["headers"]

        response = await client.post(
            f"/api/trackers/{tracker.id}/send", headers=headers, json={"franchise_id": network["norte"].id}
        )
        assert response.status_code == 409
        assert response.json()["from_status"] == "enviado"
        assert response.json()["to_status"] == "enviado"

        movements = await client.get(f"/api/trackers/{tracker.id}/movements", headers=headers)
        assert movements.json() == []

    async def test_outsider_cannot_install(self, client, network, make_tracker):
        tracker = await make_tracker("SN-1", TrackerStatus.ENVIADO, network["sul"].id)
        response = await client.post(
            f"/api/trackers/{tracker.id}/install", headers=network["outsider"]["headers"], json={}
        )
        assert response.status_code == 403

    async def test_invalid_installation_month(self, client, network, make_tracker):
        tracker = await make_tracker("SN-1", TrackerStatus.ENVIADO, network["sul"].id)
        response = await client.post(
            f"/api/trackers/{tracker.id}/install", headers=network["owner"]["headers"],
            json={"installation_month": "Marco"},
        )
        assert response.status_code == 422

    async def test_defect_without_body(self, client, network, make_tracker):
        tracker = await make_tracker("SN-1", TrackerStatus.ENVIADO, network["sul"].id)
        response = await client.post(f"/api/trackers/{tracker.id}/defect", headers=network["owner"]["headers"])
        assert response.status_code == 200
        assert response.json()["status"] == "defeito"

    async def test_franchisee_movement_history_scope(self, client, network, make_tracker):
        tracker = await make_tracker("SN-1", TrackerStatus.ENVIADO, network["sul"].id)
        url = f"/api/trackers/{tracker.id}/movements"

        assert (await client.get(url, headers=network["owner"]["headers"])).status_code == 200
        assert (await client.get(url, headers=network["outsider"]["headers"])).status_code == 403


class TestMyTrackers:
    """Tests for GET /api/trackers/mine."""

    async def test_totals_and_filters(self, client, network, make_tracker):
        sul = network["sul"].id
        await make_tracker("SN-1", TrackerStatus.ENVIADO, sul)
        await make_tracker("SN-2", TrackerStatus.INSTALADO, sul)
        await make_tracker("SN-3", TrackerStatus.DEFEITO, sul)
        await make_tracker("SN-4", TrackerStatus.ENVIADO, network["norte"].id)
        headers = network["owner"]["headers"]

        data = (await client.get("/api/trackers/mine", headers=headers)).json()
        assert {t["serial_number"] for t in data["trackers"]} == {"SN-1", "SN-2", "SN-3"}
        assert data["stats"] == {"total": 3, "received": 1, "installed": 1, "defective": 1}

        data = (await client.get("/api/trackers/mine", headers=headers, params={"status": "instalado"})).json()
        assert [t["serial_number"] for t in data["trackers"]] == ["SN-2"]
        assert data["stats"]["total"] == 3

    async def test_without_franchise(self, client, make_user):
        orphan = await make_user(UserRole.FRANQUEADO)
        data = (await client.get("/api/trackers/mine", headers=orphan["headers"])).json()
        assert data["trackers"] == []
        assert data["stats"]["total"] == 0

    async def test_headquarters_forbidden(self, client, network):
        response = await client.get("/api/trackers/mine", headers=network["admin"]["headers"])
        assert response.status_code == 403
