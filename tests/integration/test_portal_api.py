"""Integration tests for the respondent portal."""
import pytest
from httpx import AsyncClient

from src.models.assessment import AssessmentInstance


async def _portal_path(client: AsyncClient, company_headers, assessment: AssessmentInstance) -> str:
    response = await client.post(f"/api/assessments/{assessment.id}/send", headers=company_headers)
    assert response.status_code == 200
    return "/api/portal/" + response.json()["link_url"].split("/portal/", 1)[1]


def _responses_path(portal_path: str) -> str:
    path, query = portal_path.split("?", 1)
    return f"{path}/responses?{query}"


@pytest.mark.asyncio
async def test_open_portal(client: AsyncClient, company_headers, test_assessment: AssessmentInstance):
    path = await _portal_path(client, company_headers, test_assessment)

    response = await client.get(path)

    assert response.status_code == 200
    data = response.json()
    assert data["assessment_id"] == str(test_assessment.id)
    assert data["scale_min"] == 1
    assert data["scale_max"] == 5
    assert [q["key"] for q in data["questions"]] == ["q1", "q2", "q3", "q4"]

    # Opening does not consume the link
    assert (await client.get(path)).status_code == 200


@pytest.mark.asyncio
async def test_submit_response(client: AsyncClient, company_headers, test_assessment: AssessmentInstance):
    path = await _portal_path(client, company_headers, test_assessment)

    response = await client.post(
        _responses_path(path),
        json={"answers": {"q1": 5, "q2": 4, "q3": 2, "q4": 1}},
    )

    assert response.status_code == 200
    data = response.json()
    assert data["category_scores"] == [
        {"category": "A", "score": 90},
        {"category": "B", "score": 30},
    ]
    assert data["overall_score"] == 90
    assert data["risk_tier"] == "critical"
    assert data["dominant_category"] == "A"

    assessment = await client.get(f"/api/assessments/{test_assessment.id}", headers=company_headers)
    assert assessment.json()["status"] == "completed"

    alerts = await client.get(
        "/api/reminders", params={"owner_id": str(test_assessment.id)}, headers=company_headers
    )
    assert "high_risk_alert" in {r["reminder_type"] for r in alerts.json()}


@pytest.mark.asyncio
async def test_second_submission_rejected(
    client: AsyncClient, company_headers, test_assessment: AssessmentInstance
):
    path = _responses_path(await _portal_path(client, company_headers, test_assessment))
    answers = {"answers": {"q1": 1, "q2": 1, "q3": 1, "q4": 1}}

    assert (await client.post(path, json=answers)).status_code == 200
    second = await client.post(path, json=answers)

    assert second.status_code == 409
    assert second.json()["error"] == "token_already_used"


@pytest.mark.asyncio
async def test_incomplete_submission(client: AsyncClient, company_headers, test_assessment: AssessmentInstance):
    path = _responses_path(await _portal_path(client, company_headers, test_assessment))

    response = await client.post(path, json={"answers": {"q1": 3, "q3": 3}})

    assert response.status_code == 422
    body = response.json()
    assert body["error"] == "incomplete_response"
    assert body["details"]["missing_question_ids"] == ["q2", "q4"]

    # The link survives a rejected submission
    retry = await client.post(path, json={"answers": {"q1": 3, "q2": 3, "q3": 3, "q4": 3}})
    assert retry.status_code == 200


@pytest.mark.asyncio
async def test_out_of_scale_answer(client: AsyncClient, company_headers, test_assessment: AssessmentInstance):
    path = _responses_path(await _portal_path(client, company_headers, test_assessment))

    response = await client.post(path, json={"answers": {"q1": 9, "q2": 1, "q3": 1, "q4": 1}})

    assert response.status_code == 422
    assert response.json()["error"] == "invalid_answer"


@pytest.mark.asyncio
async def test_unknown_question(client: AsyncClient, company_headers, test_assessment: AssessmentInstance):
    path = _responses_path(await _portal_path(client, company_headers, test_assessment))

    response = await client.post(
        path, json={"answers": {"q1": 1, "q2": 1, "q3": 1, "q4": 1, "q99": 1}}
    )

    assert response.status_code == 422
    assert response.json()["details"]["unknown_question_ids"] == ["q99"]


@pytest.mark.asyncio
async def test_wrong_token(client: AsyncClient, company_headers, test_assessment: AssessmentInstance):
    path = await _portal_path(client, company_headers, test_assessment)
    tampered = path.rsplit("token=", 1)[0] + "token=forged"

    response = await client.get(tampered)

    assert response.status_code == 404
    assert response.json()["error"] == "token_not_found"


@pytest.mark.asyncio
async def test_link_for_other_employee(client: AsyncClient, company_headers, test_assessment: AssessmentInstance):
    path = await _portal_path(client, company_headers, test_assessment)
    tampered = path.replace(str(test_assessment.employee_id), "00000000-0000-0000-0000-000000000001")

    response = await client.get(tampered)

    assert response.status_code == 403
    assert response.json()["error"] == "token_mismatch"


@pytest.mark.asyncio
async def test_missing_link_params(client: AsyncClient, test_assessment: AssessmentInstance):
    response = await client.get(f"/api/portal/{test_assessment.template_id}")

    assert response.status_code == 422
    assert response.json()["error"] == "invalid_portal_link"


@pytest.mark.asyncio
async def test_cancelled_assessment_link(
    client: AsyncClient, company_headers, test_assessment: AssessmentInstance
):
    path = await _portal_path(client, company_headers, test_assessment)
    await client.post(f"/api/assessments/{test_assessment.id}/cancel", headers=company_headers)

    response = await client.get(path)

    assert response.status_code == 404
