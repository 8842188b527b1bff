"""
Tests for the inventory audit workflow endpoints.
"""

import uuid

import pytest
from sqlalchemy.exc import OperationalError

from audit_service.app.crud import reference_inventory_crud
from audit_service.app.models.inventory_entries import InventoryEntry
from audit_service.app.models.reference_inventory import ReferenceInventory
from shared.utils.app_status_code import AppStatusCode


def sku_payload(**overrides) -> dict:
    payload = {
        "skuId": "12",
        "skuName": "Widget",
        "location": "Aisle 1",
        "counts": {"picking": 6, "bulk": 4},
        "odin": {"minQuantity": 10, "blockedQuantity": 2},
    }
    payload.update(overrides)
    return payload


def submit(audit_client, headers, **overrides):
    return audit_client.post("/api/inventory", json=sku_payload(**overrides), headers=headers)


class TestSubmitEntry:
    """Tests for POST /api/inventory."""

    def test_match_is_auto_approved(self, audit_client, staff_headers, notifications):
        response = submit(audit_client, staff_headers)

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "Success"
        entry = body["data"]["entry"]
        assert entry["auditResult"] == "Match"
        assert entry["status"] == "auto-approved"
        assert entry["totalIdentified"] == 10
        assert entry["odin"] == {"minQuantity": 10, "blockedQuantity": 2, "maxQuantity": 12}
        assert entry["assignedClientId"] is None
        assert entry["timestamps"]["finalStatus"] is not None
        assert notifications["client"] == []

    def test_discrepancy_routes_to_eligible_client(self, audit_client, staff_headers, client_user, notifications):
        response = submit(audit_client, staff_headers, counts={"picking": 20})

        assert response.status_code == 200
        entry = response.json()["data"]["entry"]
        assert entry["auditResult"] == "Excess"
        assert entry["discrepancy"] == 8
        assert entry["status"] == "pending-client"
        assert entry["assignedClientId"] == str(client_user.id)
        assert entry["assignedClientName"] == "Alpha Client"
        assert entry["timestamps"]["finalStatus"] is None
        assert notifications["client"][0]["client"] == "Alpha Client"
        assert notifications["client"][0]["staff_name"] == "Sam Staff"

    def test_shortfall(self, audit_client, staff_headers, client_user):
        response = submit(audit_client, staff_headers, counts={"picking": 7})

        entry = response.json()["data"]["entry"]
        assert entry["auditResult"] == "Shortfall"
        assert entry["discrepancy"] == 3

    def test_first_eligible_client_by_name(self, audit_client, staff_headers, user_factory):
        user_factory(name="Zed Client", role="client", unique_code="C010",
                     login_pin="1", locations=["Aisle 1"])
        first = user_factory(name="Ann Client", role="client", unique_code="C011",
                             login_pin="1", locations=["aisle  1"])

        response = submit(audit_client, staff_headers, counts={"picking": 1})

        assert response.json()["data"]["entry"]["assignedClientId"] == str(first.id)

    def test_chosen_client_must_be_eligible(self, audit_client, staff_headers, client_user, other_client, db):
        response = submit(audit_client, staff_headers, counts={"picking": 1},
                          assignedClientId=str(other_client.id))

        assert response.status_code == 400
        assert response.json()["status_code"] == AppStatusCode.INELIGIBLE_APPROVER
        assert db.query(InventoryEntry).count() == 0

    def test_chosen_client_is_used(self, audit_client, staff_headers, client_user, user_factory):
        second = user_factory(name="Zed Client", role="client", unique_code="C010",
                              login_pin="1", locations=["Aisle 1"])

        response = submit(audit_client, staff_headers, counts={"picking": 1},
                          assignedClientId=str(second.id))

        assert response.json()["data"]["entry"]["assignedClientId"] == str(second.id)

    def test_unroutable_discrepancy_is_rejected(self, audit_client, staff_headers, client_user, db):
        response = submit(audit_client, staff_headers, location="Aisle 9", counts={"picking": 1})

        assert response.status_code == 422
        body = response.json()
        assert body["status"] == "Failure"
        assert body["status_code"] == AppStatusCode.ROUTING_UNRESOLVED
        assert db.query(InventoryEntry).count() == 0

    def test_inactive_client_is_not_eligible(self, audit_client, staff_headers, user_factory):
        user_factory(name="Gone Client", role="client", unique_code="C099",
                     login_pin="1", locations=["Aisle 1"], is_active=False)

        response = submit(audit_client, staff_headers, counts={"picking": 1})

        assert response.status_code == 422

    def test_thresholds_fall_back_to_catalog(self, audit_client, staff_headers, catalog_item):
        payload = sku_payload(skuId="0012", counts={"picking": 11})
        del payload["odin"]
        del payload["skuName"]

        response = audit_client.post("/api/inventory", json=payload, headers=staff_headers)

        assert response.status_code == 200
        entry = response.json()["data"]["entry"]
        assert entry["odin"]["minQuantity"] == 10
        assert entry["odin"]["maxQuantity"] == 12
        assert entry["skuName"] == "Widget"
        assert entry["auditResult"] == "Match"

    def test_unknown_sku_without_thresholds(self, audit_client, staff_headers):
        payload = sku_payload(skuId="404")
        del payload["odin"]

        response = audit_client.post("/api/inventory", json=payload, headers=staff_headers)

        assert response.status_code == 404
        assert response.json()["status_code"] == AppStatusCode.NOT_FOUND

    def test_bin_entry(self, audit_client, staff_headers, client_user):
        response = audit_client.post("/api/inventory", json={
            "kind": "bin",
            "binId": "BIN-7",
            "location": "Aisle 1",
            "bookQuantity": 20,
            "actualQuantity": 18,
        }, headers=staff_headers)

        assert response.status_code == 200
        entry = response.json()["data"]["entry"]
        assert entry["kind"] == "bin"
        assert entry["binId"] == "BIN-7"
        assert entry["skuId"] is None
        assert entry["auditResult"] == "Shortfall"
        assert entry["discrepancy"] == 2

    def test_negative_count_rejected(self, audit_client, staff_headers):
        response = submit(audit_client, staff_headers, counts={"picking": -1})

        assert response.status_code == 422
        assert response.json()["status_code"] == AppStatusCode.INVALID_INPUT

    @pytest.mark.parametrize("body", [
        '{"skuId": "12", "location": "Aisle 1", "counts": {"picking": 1e309}, "odin": {"minQuantity": 1}}',
        '{"skuId": "12", "location": "Aisle 1", "counts": {"picking": 1}, "odin": {"minQuantity": 1e309}}',
        '{"kind": "bin", "binId": "B-1", "location": "Aisle 1", "bookQuantity": 1e309, "actualQuantity": 1}',
    ])
    def test_non_finite_numbers_rejected(self, audit_client, staff_headers, client_user, db, body):
        response = audit_client.post(
            "/api/inventory", content=body,
            headers={**staff_headers, "Content-Type": "application/json"})

        assert response.status_code == 422
        assert response.json()["status_code"] == AppStatusCode.INVALID_INPUT
        assert db.query(InventoryEntry).count() == 0

    def test_missing_location_rejected(self, audit_client, staff_headers):
        payload = sku_payload()
        del payload["location"]

        response = audit_client.post("/api/inventory", json=payload, headers=staff_headers)

        assert response.status_code == 422

    def test_repeat_submission_carries_previous_entry(self, audit_client, staff_headers):
        first = submit(audit_client, staff_headers).json()["data"]["entry"]

        response = submit(audit_client, staff_headers)

        data = response.json()["data"]
        assert data["previousEntry"]["id"] == first["id"]
        assert data["previousEntry"]["staffName"] == "Sam Staff"
        assert "already counted" in data["warning"]
        assert data["entry"]["id"] != first["id"]

    def test_client_cannot_submit(self, audit_client, client_headers):
        response = submit(audit_client, client_headers)

        assert response.status_code == 403

    def test_missing_token(self, audit_client):
        response = audit_client.post("/api/inventory", json=sku_payload())

        assert response.status_code in (401, 403)

    def test_invalid_token(self, audit_client):
        response = submit(audit_client, {"Authorization": "Bearer not-a-token"})

        assert response.status_code == 401
        assert response.json()["status_code"] == AppStatusCode.AUTHENTICATION_TOKEN_INVALID


@pytest.fixture
def pending_entry(audit_client, staff_headers, client_user) -> dict:
    response = submit(audit_client, staff_headers, counts={"picking": 20})
    return response.json()["data"]["entry"]


class TestRespond:
    """Tests for POST /api/inventory/{id}/respond."""

    def test_approve(self, audit_client, client_headers, pending_entry, notifications):
        response = audit_client.post(
            f"/api/inventory/{pending_entry['id']}/respond",
            json={"action": "approved", "comment": "ok"},
            headers=client_headers)

        assert response.status_code == 200
        entry = response.json()["data"]
        assert entry["status"] == "client-approved"
        assert entry["clientResponse"] == {"action": "approved", "comment": "ok"}
        assert entry["timestamps"]["clientResponse"] is not None
        assert entry["timestamps"]["finalStatus"] is not None
        assert notifications["staff"][0]["decision"] == "approved"

    def test_reject(self, audit_client, client_headers, pending_entry):
        response = audit_client.post(
            f"/api/inventory/{pending_entry['id']}/respond",
            json={"action": "rejected", "comment": "recount please"},
            headers=client_headers)

        assert response.json()["data"]["status"] == "client-rejected"

    def test_second_response_conflicts(self, audit_client, client_headers, pending_entry):
        url = f"/api/inventory/{pending_entry['id']}/respond"
        audit_client.post(url, json={"action": "approved"}, headers=client_headers)

        response = audit_client.post(url, json={"action": "rejected"}, headers=client_headers)

        assert response.status_code == 409
        assert response.json()["status_code"] == AppStatusCode.INVALID_STATE_TRANSITION

    def test_auto_approved_entry_cannot_be_answered(self, audit_client, staff_headers, client_user, client_headers):
        entry = submit(audit_client, staff_headers).json()["data"]["entry"]

        # a matched entry has no approver, so the client is not the assignee
        response = audit_client.post(
            f"/api/inventory/{entry['id']}/respond",
            json={"action": "approved"}, headers=client_headers)

        assert response.status_code == 403

    def test_other_client_is_forbidden(self, audit_client, other_client_headers, pending_entry):
        response = audit_client.post(
            f"/api/inventory/{pending_entry['id']}/respond",
            json={"action": "approved"}, headers=other_client_headers)

        assert response.status_code == 403
        assert response.json()["status_code"] == AppStatusCode.AUTHENTICATION_UNAUTHORIZED_ACCESS

    def test_invalid_action(self, audit_client, client_headers, pending_entry):
        response = audit_client.post(
            f"/api/inventory/{pending_entry['id']}/respond",
            json={"action": "maybe"}, headers=client_headers)

        assert response.status_code == 400
        assert response.json()["status_code"] == AppStatusCode.REQUIRED_VALIDATION_ERROR

    def test_unknown_entry(self, audit_client, client_headers):
        response = audit_client.post(
            f"/api/inventory/{uuid.uuid4()}/respond",
            json={"action": "approved"}, headers=client_headers)

        assert response.status_code == 404

    def test_staff_cannot_respond(self, audit_client, staff_headers, pending_entry):
        response = audit_client.post(
            f"/api/inventory/{pending_entry['id']}/respond",
            json={"action": "approved"}, headers=staff_headers)

        assert response.status_code == 403


class TestQueries:
    """Tests for the read endpoints."""

    def test_pending_for_client(self, audit_client, client_headers, other_client_headers, pending_entry):
        response = audit_client.get("/api/inventory/pending", headers=client_headers)

        data = response.json()["data"]
        assert data["total"] == 1
        assert data["entries"][0]["id"] == pending_entry["id"]

        other = audit_client.get("/api/inventory/pending", headers=other_client_headers)
        assert other.json()["data"]["total"] == 0

    def test_pending_for_admin_sees_all(self, audit_client, admin_headers, pending_entry):
        response = audit_client.get("/api/inventory/pending", headers=admin_headers)

        assert response.json()["data"]["total"] == 1

    def test_answered_entry_leaves_pending(self, audit_client, client_headers, pending_entry):
        audit_client.post(f"/api/inventory/{pending_entry['id']}/respond",
                          json={"action": "approved"}, headers=client_headers)

        response = audit_client.get("/api/inventory/pending", headers=client_headers)

        assert response.json()["data"]["total"] == 0

    def test_staff_cannot_list_pending(self, audit_client, staff_headers):
        response = audit_client.get("/api/inventory/pending", headers=staff_headers)

        assert response.status_code == 403

    def test_staff_history(self, audit_client, staff_headers, pending_entry):
        submit(audit_client, staff_headers)

        response = audit_client.get("/api/inventory/staff-history", headers=staff_headers)

        data = response.json()["data"]
        assert data["total"] == 2
        assert data["entries"][1]["id"] == pending_entry["id"]

    def test_get_entry_visibility(self, audit_client, staff_headers, client_headers,
                                  other_client_headers, admin_headers, pending_entry):
        url = f"/api/inventory/{pending_entry['id']}"

        assert audit_client.get(url, headers=staff_headers).status_code == 200
        assert audit_client.get(url, headers=client_headers).status_code == 200
        assert audit_client.get(url, headers=admin_headers).status_code == 200
        assert audit_client.get(url, headers=other_client_headers).status_code == 403

    @pytest.mark.parametrize("raw", ["12", " 12 ", "0012", "12.0"])
    def test_lookup_variants(self, audit_client, staff_headers, catalog_item, raw):
        response = audit_client.get(f"/api/inventory/lookup/{raw}", headers=staff_headers)

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["skuId"] == "12"
        assert data["systemQuantity"] == 10
        assert data["blockedQuantity"] == 2

    def test_lookup_case_insensitive(self, audit_client, staff_headers, db):
        db.add(ReferenceInventory(sku_id="AbC-9", name="Gizmo", system_quantity=1))
        db.commit()

        response = audit_client.get("/api/inventory/lookup/abc-9", headers=staff_headers)

        assert response.json()["data"]["skuId"] == "AbC-9"

    def test_lookup_not_found(self, audit_client, staff_headers, catalog_item):
        response = audit_client.get("/api/inventory/lookup/13", headers=staff_headers)

        assert response.status_code == 404

    def test_clients_by_location(self, audit_client, staff_headers, client_user, other_client, user_factory):
        user_factory(name="Legacy Client", role="client", unique_code="C050",
                     login_pin="1", mapped_location="North Dock, Aisle 1 East")

        response = audit_client.get("/api/inventory/clients-by-location",
                                    params={"location": "aisle 1"}, headers=staff_headers)

        names = [c["name"] for c in response.json()["data"]]
        assert names == ["Alpha Client", "Legacy Client"]


def test_database_outage_is_reported_as_unavailable(audit_client, staff_headers, monkeypatch):
    def lose_connection(db, sku_id):
        raise OperationalError("SELECT 1", {}, Exception("connection refused"))

    monkeypatch.setattr(reference_inventory_crud, "lookup_sku", lose_connection)

    response = audit_client.get("/api/inventory/lookup/12", headers=staff_headers)

    assert response.status_code == 503
    assert response.headers["Retry-After"] == "5"
    body = response.json()
    assert body["status"] == "Failure"
    assert body["status_code"] == AppStatusCode.SERVICE_UNAVAILABLE
