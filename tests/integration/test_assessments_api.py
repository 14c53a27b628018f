"""Integration tests for assessment lifecycle endpoints."""
from uuid import uuid4

import pytest
from httpx import AsyncClient

from src.core.portal_links import parse_portal_link
from src.models.assessment import AssessmentInstance
from src.models.questionnaire import QuestionnaireTemplate


@pytest.mark.asyncio
async def test_schedule_assessment(
    client: AsyncClient, company_headers, employee_id, test_template: QuestionnaireTemplate
):
    response = await client.post(
        "/api/assessments",
        json={
            "employee_id": str(employee_id),
            "template_id": str(test_template.id),
            "scheduled_date": "2099-06-01",
            "recurrence": "semiannual",
            "recipients": ["rh@empresa.com.br"],
        },
        headers={**company_headers, "X-Actor-ID": "rh-admin"},
    )

    assert response.status_code == 201
    data = response.json()
    assert data["status"] == "scheduled"
    assert data["recurrence"] == "semiannual"
    assert data["risk_tier"] is None

    reminders = await client.get(
        "/api/reminders", params={"owner_id": data["id"]}, headers=company_headers
    )
    assert reminders.status_code == 200
    assert [r["lead_days"] for r in reminders.json()] == [7, 3, 1]
    assert {r["reminder_type"] for r in reminders.json()} == {"assessment_due"}


@pytest.mark.asyncio
async def test_schedule_with_unknown_template(client: AsyncClient, company_headers, employee_id):
    response = await client.post(
        "/api/assessments",
        json={
            "employee_id": str(employee_id),
            "template_id": str(uuid4()),
            "scheduled_date": "2099-06-01",
        },
        headers=company_headers,
    )
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_schedule_with_invalid_recurrence(
    client: AsyncClient, company_headers, employee_id, test_template: QuestionnaireTemplate
):
    response = await client.post(
        "/api/assessments",
        json={
            "employee_id": str(employee_id),
            "template_id": str(test_template.id),
            "scheduled_date": "2099-06-01",
            "recurrence": "weekly",
        },
        headers=company_headers,
    )
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_get_assessment_scoped_to_company(
    client: AsyncClient, company_headers, test_assessment: AssessmentInstance
):
    own = await client.get(f"/api/assessments/{test_assessment.id}", headers=company_headers)
    assert own.status_code == 200
    assert own.json()["id"] == str(test_assessment.id)

    other = await client.get(
        f"/api/assessments/{test_assessment.id}",
        headers={"X-Company-ID": str(uuid4())},
    )
    assert other.status_code == 404


@pytest.mark.asyncio
async def test_send_assessment_returns_portal_link(
    client: AsyncClient, company_headers, test_assessment: AssessmentInstance
):
    response = await client.post(
        f"/api/assessments/{test_assessment.id}/send",
        json={"ttl_days": 14},
        headers=company_headers,
    )

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "sent"
    params = parse_portal_link(data["link_url"])
    assert params.assessment_id == test_assessment.id
    assert params.employee_id == test_assessment.employee_id
    assert params.template_id == test_assessment.template_id

    # Sending twice is not a valid transition
    again = await client.post(f"/api/assessments/{test_assessment.id}/send", headers=company_headers)
    assert again.status_code == 409
    assert again.json()["error"] == "invalid_transition"


@pytest.mark.asyncio
async def test_new_link_invalidates_previous(
    client: AsyncClient, company_headers, test_assessment: AssessmentInstance
):
    first = await client.post(f"/api/assessments/{test_assessment.id}/link", headers=company_headers)
    second = await client.post(f"/api/assessments/{test_assessment.id}/link", headers=company_headers)
    assert first.status_code == 201
    assert second.status_code == 201

    old_url = first.json()["link_url"].split("/portal/", 1)[1]
    response = await client.get(f"/api/portal/{old_url}")
    assert response.status_code == 404
    assert response.json()["error"] == "token_not_found"

    new_url = second.json()["link_url"].split("/portal/", 1)[1]
    response = await client.get(f"/api/portal/{new_url}")
    assert response.status_code == 200


@pytest.mark.asyncio
async def test_cancel_assessment(
    client: AsyncClient, company_headers, test_assessment: AssessmentInstance
):
    response = await client.post(
        f"/api/assessments/{test_assessment.id}/cancel",
        json={"reason": "Funcionário desligado"},
        headers=company_headers,
    )

    assert response.status_code == 200
    assert response.json()["status"] == "cancelled"
    assert response.json()["cancelled_at"] is not None

    reminders = await client.get(
        "/api/reminders",
        params={"owner_id": str(test_assessment.id), "status": "scheduled"},
        headers=company_headers,
    )
    assert reminders.json() == []

    again = await client.post(f"/api/assessments/{test_assessment.id}/cancel", headers=company_headers)
    assert again.status_code == 409
    body = again.json()
    assert body["error"] == "invalid_transition"
    assert body["details"]["from_status"] == "cancelled"

    link = await client.post(f"/api/assessments/{test_assessment.id}/link", headers=company_headers)
    assert link.status_code == 409
