"""Integration tests for questionnaire template endpoints."""
from uuid import uuid4

import pytest
from httpx import AsyncClient

from src.models.questionnaire import QuestionnaireTemplate

TEMPLATE_PAYLOAD = {
    "title": "Avaliação Psicossocial",
    "scale_min": 1,
    "scale_max": 5,
    "questions": [
        {"key": "q1", "text": "Ritmo de trabalho", "category": "Exigências"},
        {"key": "q2", "text": "Apoio da chefia", "category": "Liderança"},
        {"key": "q3", "text": "Prazos", "category": "Exigências", "weight": 2},
    ],
}


@pytest.mark.asyncio
async def test_create_template(client: AsyncClient, company_headers, company_id):
    response = await client.post("/api/templates", json=TEMPLATE_PAYLOAD, headers=company_headers)

    assert response.status_code == 201
    data = response.json()
    assert data["company_id"] == str(company_id)
    assert data["version"] == 1
    assert [q["key"] for q in data["questions"]] == ["q1", "q2", "q3"]
    assert [q["position"] for q in data["questions"]] == [1, 2, 3]
    assert data["questions"][2]["weight"] == 2


@pytest.mark.asyncio
async def test_create_template_requires_company(client: AsyncClient):
    response = await client.post("/api/templates", json=TEMPLATE_PAYLOAD)
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_create_template_rejects_duplicate_keys(client: AsyncClient, company_headers):
    payload = {
        **TEMPLATE_PAYLOAD,
        "questions": [
            {"key": "q1", "text": "A", "category": "X"},
            {"key": "q1", "text": "B", "category": "X"},
        ],
    }
    response = await client.post("/api/templates", json=payload, headers=company_headers)
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_create_template_rejects_inverted_scale(client: AsyncClient, company_headers):
    payload = {**TEMPLATE_PAYLOAD, "scale_min": 5, "scale_max": 1}
    response = await client.post("/api/templates", json=payload, headers=company_headers)
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_get_template(client: AsyncClient, company_headers, test_template: QuestionnaireTemplate):
    response = await client.get(f"/api/templates/{test_template.id}", headers=company_headers)

    assert response.status_code == 200
    assert response.json()["title"] == test_template.title
    assert len(response.json()["questions"]) == 4


@pytest.mark.asyncio
async def test_template_of_other_company_is_hidden(client: AsyncClient, test_template: QuestionnaireTemplate):
    response = await client.get(
        f"/api/templates/{test_template.id}",
        headers={"X-Company-ID": str(uuid4())},
    )
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_clone_template(client: AsyncClient, company_headers, test_template: QuestionnaireTemplate):
    response = await client.post(f"/api/templates/{test_template.id}/clone", headers=company_headers)

    assert response.status_code == 201
    data = response.json()
    assert data["id"] != str(test_template.id)
    assert data["version"] == 2
    assert data["parent_template_id"] == str(test_template.id)
    assert [q["key"] for q in data["questions"]] == ["q1", "q2", "q3", "q4"]
