"""Tests for client management."""

import pytest
from httpx import AsyncClient

from podevender.services import messages


@pytest.mark.asyncio
async def test_create_and_find_by_phone(authed_client: AsyncClient):
    res = await authed_client.post(
        "/clients", json={"name": "Ana Lima", "phone": " 11988887777 ", "email": "ana@podevender.com.br"}
    )
    assert res.status_code == 201
    assert res.json()["phone"] == "11988887777"

    res = await authed_client.get("/clients/by-phone", params={"phone": "11988887777"})
    assert res.status_code == 200
    assert res.json()["name"] == "Ana Lima"


@pytest.mark.asyncio
async def test_duplicate_phone_conflicts(authed_client: AsyncClient):
    await authed_client.post("/clients", json={"name": "Ana", "phone": "11988887777"})
    res = await authed_client.post("/clients", json={"name": "Outra Ana", "phone": "11988887777"})

    assert res.status_code == 409
    assert res.json()["detail"] == messages.CLIENT_DUPLICATE_PHONE


@pytest.mark.asyncio
async def test_update_and_delete(authed_client: AsyncClient):
    res = await authed_client.post("/clients", json={"name": "Ana", "phone": "11988887777"})
    client_id = res.json()["id"]

    res = await authed_client.patch(f"/clients/{client_id}", json={"city": "Campinas"})
    assert res.status_code == 200
    assert res.json()["city"] == "Campinas"

    res = await authed_client.delete(f"/clients/{client_id}")
    assert res.json()["message"] == messages.CLIENT_DELETED

    res = await authed_client.get(f"/clients/{client_id}")
    assert res.status_code == 404


@pytest.mark.asyncio
async def test_invalid_email(authed_client: AsyncClient):
    res = await authed_client.post("/clients", json={"name": "Ana", "phone": "11988887777", "email": "nope"})
    assert res.status_code == 422


@pytest.mark.asyncio
async def test_client_changes_refresh_appointment_listing(authed_client: AsyncClient, test_agenda):
    res = await authed_client.post("/clients", json={"name": "Maria", "phone": "11977776666"})
    client_id = res.json()["id"]
    await authed_client.post(
        "/appointments",
        json={
            "title": "Visita",
            "start_time": "2026-03-02T09:00:00Z",
            "end_time": "2026-03-02T10:00:00Z",
            "agenda_id": str(test_agenda.id),
            "client_id": client_id,
        },
    )

    res = await authed_client.get("/appointments")
    assert res.json()["items"][0]["client"]["name"] == "Maria"

    await authed_client.patch(f"/clients/{client_id}", json={"name": "Joana"})
    res = await authed_client.get("/appointments")
    assert res.json()["items"][0]["client"]["name"] == "Joana"

    await authed_client.delete(f"/clients/{client_id}")
    res = await authed_client.get("/appointments")
    item = res.json()["items"][0]
    assert item["client_id"] is None
    assert item["client"] is None


def test_booking_recovers_from_lost_phone_race(db, test_org, test_user, monkeypatch):
    from podevender.db.models import Client
    from podevender.services import client_service, public_booking_service

    existing = Client(organization_id=test_org.id, name="Ana", phone="11988887777")
    db.add(existing)
    db.commit()

    real_find = client_service.find_by_phone
    lookups = []

    def find_after_race(db, org_id, phone):
        # The other request inserts between our lookups and our insert
        lookups.append(phone)
        return None if len(lookups) <= 2 else real_find(db, org_id, phone)

    monkeypatch.setattr(client_service, "find_by_phone", find_after_race)

    resolved = public_booking_service.resolve_client(
        db, test_org.id, test_user.id, "11988887777", "Ana Paula", None
    )
    db.commit()

    assert resolved.id == existing.id
    assert db.query(Client).count() == 1

