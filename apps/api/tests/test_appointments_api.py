"""Tests for the staff appointments endpoints."""

import pytest
from httpx import AsyncClient

from podevender.services import messages


def body(start: str, end: str, **extra) -> dict:
    data = {"title": "Visita técnica", "start_time": start, "end_time": end}
    data.update(extra)
    return data


@pytest.mark.asyncio
async def test_requires_session_cookie(client: AsyncClient):
    res = await client.get("/appointments")
    assert res.status_code == 401


@pytest.mark.asyncio
async def test_mutations_require_csrf_header(authed_client: AsyncClient):
    res = await authed_client.post(
        "/appointments",
        json=body("2026-03-02T09:00:00Z", "2026-03-02T10:00:00Z"),
        headers={"X-Requested-With": ""},
    )
    assert res.status_code == 403


@pytest.mark.asyncio
async def test_create_and_conflict(authed_client: AsyncClient, test_agenda):
    agenda_id = str(test_agenda.id)

    res = await authed_client.post(
        "/appointments",
        json=body("2026-03-02T09:00:00Z", "2026-03-02T10:00:00Z", agenda_id=agenda_id),
    )
    assert res.status_code == 201
    data = res.json()
    assert data["message"] == messages.APPOINTMENT_CREATED
    assert data["appointment"]["status"] == "scheduled"

    res = await authed_client.post(
        "/appointments",
        json=body("2026-03-02T09:30:00Z", "2026-03-02T10:30:00Z", agenda_id=agenda_id),
    )
    assert res.status_code == 409
    assert res.json()["detail"] == messages.APPOINTMENT_CONFLICT

    res = await authed_client.post(
        "/appointments",
        json=body("2026-03-02T10:00:00Z", "2026-03-02T11:00:00Z", agenda_id=agenda_id),
    )
    assert res.status_code == 201


@pytest.mark.asyncio
async def test_create_rejects_inverted_interval(authed_client: AsyncClient):
    res = await authed_client.post(
        "/appointments",
        json=body("2026-03-02T11:00:00Z", "2026-03-02T10:00:00Z"),
    )
    assert res.status_code == 400
    assert res.json()["detail"] == messages.INVALID_INTERVAL


@pytest.mark.asyncio
async def test_update_cancel_delete_flow(authed_client: AsyncClient, test_agenda):
    res = await authed_client.post(
        "/appointments",
        json=body("2026-03-02T09:00:00Z", "2026-03-02T10:00:00Z", agenda_id=str(test_agenda.id)),
    )
    appt_id = res.json()["appointment"]["id"]

    res = await authed_client.patch(
        f"/appointments/{appt_id}",
        json={"start_time": "2026-03-02T09:30:00Z", "end_time": "2026-03-02T10:30:00Z"},
    )
    assert res.status_code == 200
    assert res.json()["message"] == messages.APPOINTMENT_UPDATED

    res = await authed_client.post(f"/appointments/{appt_id}/cancel")
    assert res.status_code == 200
    assert res.json()["appointment"]["status"] == "cancelled"

    res = await authed_client.post(f"/appointments/{appt_id}/reminder-sent")
    assert res.status_code == 200
    assert res.json()["reminder_sent"] is True

    res = await authed_client.delete(f"/appointments/{appt_id}")
    assert res.status_code == 200
    assert res.json()["message"] == messages.APPOINTMENT_DELETED

    res = await authed_client.get(f"/appointments/{appt_id}")
    assert res.status_code == 404


@pytest.mark.asyncio
async def test_list_filters_and_order(
    authed_client: AsyncClient, test_org, test_user, test_agenda, appointment_factory
):
    from datetime import datetime, timezone

    def at(day, hour):
        return datetime(2026, 3, day, hour, tzinfo=timezone.utc)

    appointment_factory(test_org, test_user, at(3, 9), at(3, 10), agenda=test_agenda, title="Segunda")
    appointment_factory(test_org, test_user, at(2, 9), at(2, 10), agenda=test_agenda, title="Primeira")
    appointment_factory(
        test_org, test_user, at(4, 9), at(4, 10), agenda=test_agenda, status="confirmed", title="Terceira"
    )

    res = await authed_client.get("/appointments")
    assert res.status_code == 200
    data = res.json()
    assert data["total"] == 3
    assert [a["title"] for a in data["items"]] == ["Primeira", "Segunda", "Terceira"]

    res = await authed_client.get("/appointments", params=[("status", "confirmed")])
    assert [a["title"] for a in res.json()["items"]] == ["Terceira"]

    res = await authed_client.get("/appointments", params={"search": "segun"})
    assert [a["title"] for a in res.json()["items"]] == ["Segunda"]


@pytest.mark.asyncio
async def test_listing_is_cached_until_a_mutation(
    authed_client: AsyncClient, test_org, test_user, test_agenda, appointment_factory
):
    from datetime import datetime, timezone

    res = await authed_client.get("/appointments")
    assert res.json()["total"] == 0

    # Written behind the service's back: served from cache
    appointment_factory(
        test_org,
        test_user,
        datetime(2026, 3, 2, 14, tzinfo=timezone.utc),
        datetime(2026, 3, 2, 15, tzinfo=timezone.utc),
        agenda=test_agenda,
    )
    res = await authed_client.get("/appointments")
    assert res.json()["total"] == 0

    res = await authed_client.post(
        "/appointments",
        json=body("2026-03-02T09:00:00Z", "2026-03-02T10:00:00Z", agenda_id=str(test_agenda.id)),
    )
    assert res.status_code == 201

    res = await authed_client.get("/appointments")
    assert res.json()["total"] == 2
