"""HTTP surface tests through the FastAPI TestClient."""

from fastapi.testclient import TestClient

from conftest import EDITOR_ID, FESTIVAL_ID


def create_zone(client, total=10, price="100", name="Hall A"):
    response = client.post("/zones/", json={
        "festival_id": FESTIVAL_ID,
        "name": name,
        "total_tables": total,
        "price_per_table": price,
    })
    assert response.status_code == 201, response.text
    return response.json()


def create_reservation(client, zone_id, tables=3, **extra):
    return client.post("/reservations/", json={
        "editor_id": EDITOR_ID,
        "festival_id": FESTIVAL_ID,
        "lines": [{"zone_id": zone_id, "table_count": tables}],
        **extra,
    })


class TestFestivalAndZoneEndpoints:
    def test_create_festival(self, client, db):
        response = client.post("/festivals/", json={
            "name": "Festival des Jeux",
            "location": "Lyon",
            "start_date": "2026-05-01",
            "end_date": "2026-05-03",
        })

        assert response.status_code == 201
        festival_id = response.json()["id"]
        detail = client.get(f"/festivals/{festival_id}").json()
        assert detail["name"] == "Festival des Jeux"
        assert detail["zones"] == []

    def test_festival_dates_are_validated(self, client, db):
        response = client.post("/festivals/", json={
            "name": "Backwards", "start_date": "2026-05-03", "end_date": "2026-05-01",
        })
        assert response.status_code == 422

    def test_zone_crud(self, client, festival):
        zone = create_zone(client, total=8, price="60")
        assert zone["available_tables"] == 8
        assert zone["price_per_area"] == 15.0

        listed = client.get("/zones/", params={"festival_id": FESTIVAL_ID}).json()
        assert [item["id"] for item in listed] == [zone["id"]]

        updated = client.put(f"/zones/{zone['id']}", json={"name": "Hall B", "total_tables": 12}).json()
        assert updated["name"] == "Hall B"
        assert updated["available_tables"] == 12

        assert client.delete(f"/zones/{zone['id']}").json() == {"id": zone["id"], "deleted": True}
        missing = client.get(f"/zones/{zone['id']}")
        assert missing.status_code == 404
        assert missing.json()["error"] == "NotFound"

    def test_zone_in_use_cannot_be_deleted(self, client, festival):
        zone = create_zone(client)
        create_reservation(client, zone["id"], tables=1)

        response = client.delete(f"/zones/{zone['id']}")

        assert response.status_code == 409
        assert response.json()["error"] == "ZoneInUse"


class TestReservationEndpoints:
    def test_booking_scenario(self, client, festival):
        zone = create_zone(client)

        response = create_reservation(client, zone["id"], tables=3, tables_offered=1, monetary_discount=50)

        assert response.status_code == 201
        body = response.json()
        assert body["workflow_status"] == "present"
        assert body["total_price"] == 300.0
        assert body["final_price"] == 150.0
        assert body["lines"] == [{"zone_id": zone["id"], "table_count": 3, "area": 0.0}]
        assert body["table_count"] == 3
        assert body["editor_name"] == "Editions du Test"
        assert client.get(f"/zones/{zone['id']}").json()["available_tables"] == 7

    def test_insufficient_stock(self, client, festival):
        zone = create_zone(client, total=2)

        response = create_reservation(client, zone["id"], tables=3)

        assert response.status_code == 409
        assert response.json()["error"] == "InsufficientStock"
        assert client.get(f"/zones/{zone['id']}").json()["available_tables"] == 2

    def test_missing_editor(self, client, festival):
        zone = create_zone(client)
        response = client.post("/reservations/", json={
            "festival_id": FESTIVAL_ID, "lines": [{"zone_id": zone["id"], "table_count": 1}],
        })
        assert response.status_code == 400
        assert response.json()["error"] == "MissingRequiredField"

    def test_unknown_zone(self, client, festival):
        response = create_reservation(client, "zon_missing")
        assert response.status_code == 400
        assert response.json()["error"] == "UnknownReference"

    def test_listing(self, client, festival):
        zone = create_zone(client)
        reservation = create_reservation(client, zone["id"], tables=1).json()

        by_festival = client.get(f"/reservations/festival/{FESTIVAL_ID}").json()
        by_editor = client.get("/reservations/", params={"editor_id": EDITOR_ID}).json()

        assert [item["id"] for item in by_festival] == [reservation["id"]]
        assert [item["id"] for item in by_editor] == [reservation["id"]]
        assert client.get("/reservations/", params={"editor_id": "edi_other"}).json() == []

    def test_update_fields_and_lines(self, client, festival):
        zone = create_zone(client)
        reservation = create_reservation(client, zone["id"], tables=3).json()

        updated = client.put(f"/reservations/{reservation['id']}", json={"monetary_discount": 40}).json()
        assert updated["final_price"] == 260.0

        replaced = client.put(f"/reservations/{reservation['id']}/lines", json={
            "lines": [{"zone_id": zone["id"], "table_count": 1}],
        }).json()
        assert replaced["total_price"] == 100.0
        assert replaced["final_price"] == 60.0
        assert client.get(f"/zones/{zone['id']}").json()["available_tables"] == 9

    def test_cancellation_scenario(self, client, festival):
        zone = create_zone(client)
        reservation = create_reservation(client, zone["id"], tables=3).json()
        issued = client.post(f"/invoices/reservation/{reservation['id']}")
        assert issued.status_code == 201

        deleted = client.delete(f"/reservations/{reservation['id']}")

        assert deleted.json() == {"id": reservation["id"], "deleted": True, "released_tables": 3}
        assert client.get(f"/zones/{zone['id']}").json()["available_tables"] == 10
        assert client.get(f"/invoices/{issued.json()['id']}").status_code == 404
        assert client.get(f"/reservations/{reservation['id']}").status_code == 404

    def test_direct_status_edit(self, client, festival):
        zone = create_zone(client)
        reservation = create_reservation(client, zone["id"], tables=3).json()

        rejected = client.put(f"/reservations/{reservation['id']}/status", json={"workflow_status": "facture"})
        assert rejected.status_code == 409
        assert rejected.json()["error"] == "IllegalTransition"

        cancelled = client.put(f"/reservations/{reservation['id']}/status", json={"workflow_status": "annulée"})
        assert cancelled.json()["workflow_status"] == "annulée"
        assert client.get(f"/zones/{zone['id']}").json()["available_tables"] == 10

    def test_unknown_status_is_a_validation_error(self, client, festival):
        response = client.put("/reservations/res_any/status", json={"workflow_status": "archived"})
        assert response.status_code == 422


class TestInvoiceEndpoints:
    def test_invoice_lifecycle(self, client, festival):
        zone = create_zone(client)
        reservation = create_reservation(client, zone["id"], tables=3).json()

        invoice = client.post(f"/invoices/reservation/{reservation['id']}").json()
        assert invoice["status"] == "issued"
        assert invoice["amount_due"] == 300.0
        assert client.get(f"/reservations/{reservation['id']}").json()["workflow_status"] == "facture"

        duplicate = client.post(f"/invoices/reservation/{reservation['id']}")
        assert duplicate.status_code == 409
        assert duplicate.json()["error"] == "InvoiceAlreadyExists"

        paid = client.put(f"/invoices/{invoice['id']}/paid").json()
        assert paid["status"] == "paid"
        assert paid["paid_at"] is not None
        assert client.get(f"/reservations/{reservation['id']}").json()["workflow_status"] == "facture_payee"

        again = client.put(f"/invoices/{invoice['id']}/paid").json()
        assert again["paid_at"] == paid["paid_at"]
        assert client.get(f"/invoices/reservation/{reservation['id']}").json()["id"] == invoice["id"]

    def test_missing_invoice(self, client, festival):
        response = client.put("/invoices/inv_missing/paid")
        assert response.status_code == 404
        assert response.json() == {"error": "NotFound", "detail": "Invoice inv_missing not found"}


class TestAmbientEndpoints:
    def test_metrics_are_exposed(self, client, festival):
        client.get("/")
        response = client.get("/metrics")
        assert response.status_code == 200
        assert "fastapi_requests_total" in response.text

    def test_unexpected_errors_are_rendered(self, festival, monkeypatch):
        from main import app
        from festival_booking.repositories.zone_repository import zone_repository

        async def explode(*args, **kwargs):
            raise RuntimeError("boom")

        monkeypatch.setattr(zone_repository, "require", explode)
        with TestClient(app, raise_server_exceptions=False) as client:
            response = client.get("/zones/zon_any")

        assert response.status_code == 500
        assert response.json() == {"error": "InternalError", "detail": "Internal server error"}
