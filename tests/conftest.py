"""Pytest fixtures for testing."""

import os
from collections.abc import AsyncGenerator
from datetime import date
from uuid import UUID, uuid4

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

os.environ.setdefault("DATABASE_URL", TEST_DATABASE_URL)
os.environ.setdefault("NOTIFICATION_CHANNEL", "log")

from src.core.database import get_db
from src.core.reminder_catalog import Notification
from src.main import app
from src.models.assessment import AssessmentInstance
from src.models.base import Base
from src.models.questionnaire import QuestionnaireTemplate
from src.schemas.assessment import ScheduleAssessmentRequest
from src.schemas.questionnaire import CreateTemplateRequest, QuestionCreate
from src.services.assessment_service import AssessmentService
from src.services.template_service import TemplateService


@pytest_asyncio.fixture(scope="function")
async def engine() -> AsyncGenerator[AsyncEngine, None]:
    """In-memory database shared by every session of one test."""
    test_engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield test_engine

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await test_engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def db(engine: AsyncEngine) -> AsyncGenerator[AsyncSession, None]:
    """Create test database session.

    Creates all tables before each test and drops them after.
    """
    session_factory = async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def client(db: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """Create test client with database dependency override.

    Args:
        db: Test database session

    Yields:
        AsyncClient configured for testing
    """

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        yield db

    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
def company_id() -> UUID:
    return uuid4()


@pytest.fixture
def employee_id() -> UUID:
    return uuid4()


@pytest.fixture
def company_headers(company_id: UUID) -> dict[str, str]:
    return {"X-Company-ID": str(company_id)}


def template_request(
    questions: list[tuple[str, str]] | None = None,
    scale_max: int = 5,
) -> CreateTemplateRequest:
    """Template with (key, category) questions; defaults to the two-factor sample."""
    questions = questions or [("q1", "A"), ("q2", "A"), ("q3", "B"), ("q4", "B")]
    return CreateTemplateRequest(
        title="Avaliação Psicossocial",
        scale_min=1,
        scale_max=scale_max,
        questions=[
            QuestionCreate(key=key, category=category, text=f"Pergunta {key}")
            for key, category in questions
        ],
    )


@pytest_asyncio.fixture
async def test_template(db: AsyncSession, company_id: UUID) -> QuestionnaireTemplate:
    """Four questions, categories A (q1, q2) and B (q3, q4), scale 1-5."""
    template = await TemplateService(db).create_template(company_id, template_request())
    await db.commit()
    return template


@pytest_asyncio.fixture
async def test_assessment(
    db: AsyncSession,
    company_id: UUID,
    employee_id: UUID,
    test_template: QuestionnaireTemplate,
) -> AssessmentInstance:
    """Scheduled assessment far enough ahead that all reminders are created."""
    instance = await AssessmentService(db).schedule(
        company_id,
        ScheduleAssessmentRequest(
            employee_id=employee_id,
            template_id=test_template.id,
            scheduled_date=date(2099, 6, 1),
            recipients=["rh@empresa.com.br"],
        ),
    )
    await db.commit()
    return instance


class RecordingChannel:
    """Notification channel that records what it was asked to send."""

    def __init__(self, fail_for: set[str] | None = None):
        self.sent: list[Notification] = []
        self.fail_for = fail_for or set()

    async def send(self, notification: Notification) -> None:
        if notification.reminder_id in self.fail_for:
            raise ConnectionError("smtp unavailable")
        self.sent.append(notification)


@pytest.fixture
def recording_channel() -> RecordingChannel:
    return RecordingChannel()
