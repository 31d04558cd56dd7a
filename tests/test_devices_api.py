"""Tests for property, unit, meter and submeter endpoints."""

import uuid

import pytest


@pytest.fixture
def property_id(client, headers) -> str:
    response = client.post(
        "/api/properties",
        json={"display_name": "Elm Court", "address": "1 Elm Street"},
        headers=headers,
    )
    assert response.status_code == 201
    return response.json()["id"]


@pytest.fixture
def unit_id(client, headers, property_id) -> str:
    response = client.post(
        f"/api/properties/{property_id}/units", json={"name": "2B"}, headers=headers
    )
    assert response.status_code == 201
    return response.json()["id"]


@pytest.fixture
def meter_id(client, headers, property_id) -> str:
    response = client.post(
        "/api/meters",
        json={"number": "EL-100", "property_id": property_id},
        headers=headers,
    )
    assert response.status_code == 201
    return response.json()["id"]


class TestProperties:
    def test_property_belongs_to_callers_account(self, client, headers, account):
        response = client.post("/api/properties", json={"display_name": "Oak"}, headers=headers)
        assert response.status_code == 201
        assert response.json()["account_id"] == str(account.id)

    def test_manager_cannot_pick_another_account(self, client, headers, account, other_account):
        response = client.post(
            "/api/properties",
            json={"display_name": "Oak", "account_id": str(other_account.id)},
            headers=headers,
        )
        assert response.json()["account_id"] == str(account.id)

    def test_super_admin_needs_an_account(self, client, admin_headers, other_account):
        assert (
            client.post("/api/properties", json={"display_name": "Oak"}, headers=admin_headers)
        ).status_code == 400

        response = client.post(
            "/api/properties",
            json={"display_name": "Oak", "account_id": str(other_account.id)},
            headers=admin_headers,
        )
        assert response.status_code == 201
        assert response.json()["account_id"] == str(other_account.id)

    def test_get_property(self, client, headers, other_headers, property_id):
        assert client.get(f"/api/properties/{property_id}", headers=headers).status_code == 200
        assert client.get(f"/api/properties/{property_id}", headers=other_headers).status_code == 404

    def test_unit(self, client, headers, property_id, unit_id):
        assert uuid.UUID(unit_id)

    def test_tenant_forbidden(self, client, tenant_headers):
        response = client.post("/api/properties", json={"display_name": "Oak"}, headers=tenant_headers)
        assert response.status_code == 403


class TestMeters:
    def test_create_meter(self, client, headers, property_id, meter_id):
        data = client.get(f"/api/meters/{meter_id}", headers=headers).json()
        assert data["number"] == "EL-100"
        assert data["property_id"] == property_id
        assert data["status"] == "active"
        assert data["last_reading_date"] is None

    def test_duplicate_meter_number(self, client, headers, property_id, meter_id):
        response = client.post(
            "/api/meters",
            json={"number": "EL-100", "property_id": property_id},
            headers=headers,
        )
        assert response.status_code == 400

    def test_meter_on_unknown_property(self, client, headers):
        response = client.post(
            "/api/meters",
            json={"number": "EL-200", "property_id": str(uuid.uuid4())},
            headers=headers,
        )
        assert response.status_code == 404

    def test_reading_updates_last_reading_date(self, client, headers, meter_id):
        client.post(
            "/api/meter-readings",
            json={"meter_id": meter_id, "reading_value": 10, "reading_date": "2025-03-01T00:00:00Z"},
            headers=headers,
        )
        data = client.get(f"/api/meters/{meter_id}", headers=headers).json()
        assert data["last_reading_date"].startswith("2025-03-01")


class TestSubmeters:
    def test_create_submeter(self, client, headers, meter_id, unit_id):
        response = client.post(
            "/api/submeters",
            json={"number": "S-1", "meter_id": meter_id, "unit_id": unit_id},
            headers=headers,
        )
        assert response.status_code == 201
        submeter_id = response.json()["id"]

        data = client.get(f"/api/submeters/{submeter_id}", headers=headers).json()
        assert data["meter_id"] == meter_id
        assert data["unit_id"] == unit_id

    def test_duplicate_number_under_same_meter(self, client, headers, meter_id, unit_id):
        payload = {"number": "S-1", "meter_id": meter_id, "unit_id": unit_id}
        assert client.post("/api/submeters", json=payload, headers=headers).status_code == 201
        assert client.post("/api/submeters", json=payload, headers=headers).status_code == 400

    def test_unit_from_another_property(self, client, headers, meter_id, devices):
        _, submeter = devices
        response = client.post(
            "/api/submeters",
            json={"number": "S-9", "meter_id": meter_id, "unit_id": str(submeter.unit_id)},
            headers=headers,
        )
        assert response.status_code == 404
