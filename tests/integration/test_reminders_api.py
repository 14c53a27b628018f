"""Integration tests for action plan reminders and reminder review."""
from datetime import UTC, datetime, timedelta
from uuid import uuid4

import pytest
from httpx import AsyncClient
from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession

from src.models.enums import OwnerType, ReminderStatus
from src.models.reminder import ReminderWorkItem
from src.services.reminder_scheduler import ReminderScheduler


def _due_in(days: int) -> str:
    return (datetime.now(UTC).date() + timedelta(days=days)).isoformat()


@pytest.mark.asyncio
async def test_schedule_action_plan_reminders(client: AsyncClient, company_headers):
    plan_id = uuid4()
    payload = {
        "due_date": _due_in(60),
        "recipients": ["gestor@empresa.com.br"],
        "title": "Redistribuir carga de trabalho",
    }

    response = await client.post(
        f"/api/action-plans/{plan_id}/reminders", json=payload, headers=company_headers
    )

    assert response.status_code == 201
    assert response.json() == {
        "owner_type": "action_plan",
        "owner_id": str(plan_id),
        "created": 4,
        "pending": 4,
    }

    again = await client.post(
        f"/api/action-plans/{plan_id}/reminders", json=payload, headers=company_headers
    )
    assert again.json()["created"] == 0
    assert again.json()["pending"] == 4

    listed = await client.get(
        "/api/reminders", params={"owner_id": str(plan_id)}, headers=company_headers
    )
    items = listed.json()
    assert [r["lead_days"] for r in items] == [14, 7, 3, 1]
    assert {r["priority"] for r in items} == {"high"}
    assert {r["status"] for r in items} == {"scheduled"}


@pytest.mark.asyncio
async def test_action_plan_due_soon_only_gets_remaining_leads(client: AsyncClient, company_headers):
    response = await client.post(
        f"/api/action-plans/{uuid4()}/reminders",
        json={"due_date": _due_in(5), "recipients": ["gestor@empresa.com.br"]},
        headers=company_headers,
    )

    assert response.status_code == 201
    assert response.json()["created"] == 2


@pytest.mark.asyncio
async def test_action_plan_requires_recipients(client: AsyncClient, company_headers):
    response = await client.post(
        f"/api/action-plans/{uuid4()}/reminders",
        json={"due_date": _due_in(30), "recipients": []},
        headers=company_headers,
    )
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_reminders_scoped_to_company(client: AsyncClient, company_headers):
    plan_id = uuid4()
    await client.post(
        f"/api/action-plans/{plan_id}/reminders",
        json={"due_date": _due_in(60), "recipients": ["gestor@empresa.com.br"]},
        headers=company_headers,
    )

    other = await client.get("/api/reminders", headers={"X-Company-ID": str(uuid4())})
    assert other.status_code == 200
    assert other.json() == []

    failed = await client.get("/api/reminders", params={"status": "failed"}, headers=company_headers)
    assert failed.json() == []


@pytest.mark.asyncio
async def test_failed_review_leaves_out_cancelled_owners(
    client: AsyncClient, company_headers, db: AsyncSession
):
    cancelled_plan, broken_plan = uuid4(), uuid4()
    for plan_id in (cancelled_plan, broken_plan):
        await client.post(
            f"/api/action-plans/{plan_id}/reminders",
            json={"due_date": _due_in(60), "recipients": ["gestor@empresa.com.br"]},
            headers=company_headers,
        )
    await ReminderScheduler(db).cancel_pending(OwnerType.ACTION_PLAN, cancelled_plan)
    await db.execute(
        update(ReminderWorkItem)
        .where(ReminderWorkItem.owner_id == broken_plan, ReminderWorkItem.lead_days == 14)
        .values(status=ReminderStatus.FAILED, last_error="ConnectionError: smtp unavailable")
        .execution_options(synchronize_session=False)
    )
    await db.commit()

    failed = await client.get("/api/reminders", params={"status": "failed"}, headers=company_headers)
    assert [(r["owner_id"], r["last_error"]) for r in failed.json()] == [
        (str(broken_plan), "ConnectionError: smtp unavailable")
    ]

    everything = await client.get(
        "/api/reminders",
        params={"status": "failed", "include_cancelled": "true"},
        headers=company_headers,
    )
    items = everything.json()
    assert len(items) == 5
    assert sum(r["last_error"] == "owner_cancelled" for r in items) == 4
