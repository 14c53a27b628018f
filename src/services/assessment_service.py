"""Assessment lifecycle service.

Orchestrates schedule -> send -> complete/cancel on top of the pure
scoring, classification and recurrence functions.
"""
import logging
from datetime import UTC, datetime
from uuid import UUID

from fastapi import HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.assessment_workflow import ensure_open, ensure_transition
from src.core.config import Settings, get_settings
from src.core.errors import TokenMismatch, TokenNotFound
from src.core.metrics import ASSESSMENTS_COMPLETED_TOTAL
from src.core.portal_links import PortalLinkParams, build_portal_link
from src.core.recurrence import plan_for_instance
from src.core.risk import RiskAssessment, classify
from src.core.scoring import TemplateSpec, aggregate_category_scores, scores_to_json
from src.core.structured_logging import log_json
from src.models.access_token import AccessToken
from src.models.assessment import AssessmentInstance
from src.models.enums import (
    AssessmentStatus,
    AuditAction,
    OwnerType,
    ReminderType,
    RiskTier,
)
from src.schemas.assessment import ScheduleAssessmentRequest
from src.services.access_token_service import AccessTokenService
from src.services.audit_service import AuditService
from src.services.reminder_scheduler import OWNER_COMPLETED, ReminderScheduler
from src.services.risk_settings_service import RiskSettingsService
from src.services.template_service import TemplateService

logger = logging.getLogger(__name__)


class AssessmentService:
    """Service for the assessment instance lifecycle."""

    def __init__(self, db: AsyncSession, settings: Settings | None = None):
        """Initialize assessment service.

        Args:
            db: Database session
            settings: Application settings
        """
        self.db = db
        self.settings = settings or get_settings()
        self.audit_service = AuditService(db)
        self.template_service = TemplateService(db)
        self.token_service = AccessTokenService(db, self.settings)
        self.reminder_scheduler = ReminderScheduler(db, self.settings)
        self.risk_settings_service = RiskSettingsService(db, self.settings)

    async def _get_instance(self, assessment_id: UUID) -> AssessmentInstance | None:
        result = await self.db.execute(
            select(AssessmentInstance).where(AssessmentInstance.id == assessment_id)
        )
        return result.scalar_one_or_none()

    async def get(self, assessment_id: UUID, company_id: UUID) -> AssessmentInstance:
        """Get an assessment of a company.

        Raises:
            HTTPException: 404 if not found or owned by another company
        """
        instance = await self._get_instance(assessment_id)
        if instance is None or instance.company_id != company_id:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Assessment not found",
            )
        return instance

    async def schedule(
        self,
        company_id: UUID,
        request: ScheduleAssessmentRequest,
        actor: str | None = None,
        now: datetime | None = None,
    ) -> AssessmentInstance:
        """Create a SCHEDULED assessment and its due-date reminders."""
        template = await self.template_service.get_visible_template(request.template_id, company_id)
        instance = await self._create_instance(
            company_id=company_id,
            employee_id=request.employee_id,
            template_id=template.id,
            scheduled_date=request.scheduled_date,
            recurrence=request.recurrence,
            recipients=[str(r) for r in request.recipients],
        )

        reminders = await self.reminder_scheduler.schedule(
            OwnerType.ASSESSMENT,
            instance.id,
            instance.scheduled_date,
            ReminderType.ASSESSMENT_DUE,
            instance.recipients,
            company_id=company_id,
            now=now,
        )

        await self.audit_service.log(
            action=AuditAction.ASSESSMENT_SCHEDULE,
            entity_type="assessment",
            entity_id=instance.id,
            company_id=company_id,
            actor=actor,
            diff_json={
                "employee_id": str(instance.employee_id),
                "template_id": str(instance.template_id),
                "scheduled_date": instance.scheduled_date.isoformat(),
                "recurrence": instance.recurrence.value if instance.recurrence else None,
                "reminders_created": reminders,
            },
        )
        return instance

    async def _create_instance(self, **fields) -> AssessmentInstance:
        instance = AssessmentInstance(status=AssessmentStatus.SCHEDULED, **fields)
        self.db.add(instance)
        await self.db.flush()
        await self.db.refresh(instance, ["template"])
        return instance

    async def generate_link(
        self,
        instance: AssessmentInstance,
        ttl_days: int | None = None,
        now: datetime | None = None,
    ) -> tuple[str, AccessToken]:
        """Issue a fresh token and build the portal link for an open assessment.

        Raises:
            InvalidTransition: if the assessment is completed or cancelled
        """
        ensure_open(instance.status)
        access_token, token = await self.token_service.issue(
            instance.id,
            instance.employee_id,
            ttl_days=ttl_days,
            company_id=instance.company_id,
            now=now,
        )
        link = build_portal_link(
            self.settings.portal_base_url,
            instance.template_id,
            instance.employee_id,
            instance.id,
            token,
        )
        return link, access_token

    async def send(
        self,
        instance: AssessmentInstance,
        ttl_days: int | None = None,
        actor: str | None = None,
        now: datetime | None = None,
    ) -> tuple[str, AccessToken]:
        """Move SCHEDULED -> SENT and return the link handed to the respondent."""
        now = now or datetime.now(UTC)
        ensure_transition(instance.status, AssessmentStatus.SENT)
        link, access_token = await self.generate_link(instance, ttl_days=ttl_days, now=now)

        instance.status = AssessmentStatus.SENT
        instance.sent_at = now
        await self.db.flush()

        await self.audit_service.log(
            action=AuditAction.ASSESSMENT_SEND,
            entity_type="assessment",
            entity_id=instance.id,
            company_id=instance.company_id,
            actor=actor,
            diff_json={"token_id": str(access_token.id)},
        )
        return link, access_token

    async def _portal_instance(self, params: PortalLinkParams) -> AssessmentInstance:
        instance = await self._get_instance(params.assessment_id)
        if instance is None:
            raise TokenNotFound()
        if instance.template_id != params.template_id or instance.employee_id != params.employee_id:
            raise TokenMismatch()
        return instance

    async def open_portal(
        self, params: PortalLinkParams, now: datetime | None = None
    ) -> AssessmentInstance:
        """Check a portal link without consuming its token."""
        await self.token_service.inspect(
            params.token, params.assessment_id, params.employee_id, now=now
        )
        instance = await self._portal_instance(params)
        ensure_open(instance.status)
        return instance

    async def submit_response(
        self,
        params: PortalLinkParams,
        answers: dict,
        now: datetime | None = None,
    ) -> AssessmentInstance:
        """Redeem the link token and complete the assessment.

        Answers are validated before the token is consumed, so a rejected
        submission leaves the link usable.
        """
        now = now or datetime.now(UTC)
        instance = await self.open_portal(params, now=now)
        aggregate_category_scores(TemplateSpec.from_model(instance.template), answers)

        await self.token_service.redeem(
            params.token,
            params.assessment_id,
            params.employee_id,
            company_id=instance.company_id,
            now=now,
        )
        return await self.complete(instance, answers, actor="respondent", now=now)

    async def complete(
        self,
        instance: AssessmentInstance,
        answers: dict,
        actor: str | None = None,
        now: datetime | None = None,
    ) -> AssessmentInstance:
        """Score, classify and close an assessment, then plan the next one.

        Raises:
            InvalidTransition: if the assessment is already terminal
            IncompleteResponse: if a question is unanswered
            InvalidAnswer: for unknown, non-integer or out-of-scale answers
        """
        now = now or datetime.now(UTC)
        ensure_transition(instance.status, AssessmentStatus.COMPLETED)

        template = TemplateSpec.from_model(instance.template)
        scores = aggregate_category_scores(template, answers)
        criteria = await self.risk_settings_service.load(instance.company_id)
        result: RiskAssessment = classify(scores, criteria.config)

        completed_on = now.date()
        next_due = plan_for_instance(result.tier, criteria.policy, completed_on, instance.recurrence)

        instance.status = AssessmentStatus.COMPLETED
        instance.completed_at = now
        instance.response_json = {q.key: int(answers[q.key]) for q in template.questions}
        instance.category_scores = scores_to_json(scores)
        instance.overall_score = result.overall_score
        instance.risk_tier = result.tier
        instance.dominant_category = result.dominant_category
        instance.next_due_date = next_due
        await self.db.flush()

        # A completed assessment never keeps pending due-date reminders
        await self.reminder_scheduler.cancel_pending(
            OwnerType.ASSESSMENT, instance.id, reason=OWNER_COMPLETED, now=now
        )

        follow_up = None
        if next_due is not None:
            follow_up = await self._schedule_follow_up(instance, next_due, now)

        if result.tier.is_at_least(RiskTier.HIGH):
            await self.reminder_scheduler.queue_immediate(
                OwnerType.ASSESSMENT,
                instance.id,
                ReminderType.HIGH_RISK_ALERT,
                instance.recipients,
                company_id=instance.company_id,
                extra=(
                    f"Nível de risco: {result.tier.value} "
                    f"({result.overall_score}%, fator: {result.dominant_category})"
                ),
                now=now,
            )

        await self.audit_service.log(
            action=AuditAction.ASSESSMENT_COMPLETE,
            entity_type="assessment",
            entity_id=instance.id,
            company_id=instance.company_id,
            actor=actor,
            diff_json={
                "overall_score": result.overall_score,
                "risk_tier": result.tier.value,
                "dominant_category": result.dominant_category,
                "next_due_date": next_due.isoformat() if next_due else None,
                "follow_up_id": str(follow_up.id) if follow_up else None,
            },
        )

        ASSESSMENTS_COMPLETED_TOTAL.labels(risk_tier=result.tier.value).inc()
        log_json(
            logger,
            logging.INFO,
            "assessment_completed",
            assessment_id=str(instance.id),
            company_id=str(instance.company_id),
            overall_score=result.overall_score,
            risk_tier=result.tier.value,
            next_due_date=next_due.isoformat() if next_due else None,
        )
        return instance

    async def _schedule_follow_up(
        self,
        instance: AssessmentInstance,
        next_due,
        now: datetime,
    ) -> AssessmentInstance:
        follow_up = await self._create_instance(
            company_id=instance.company_id,
            employee_id=instance.employee_id,
            template_id=instance.template_id,
            scheduled_date=next_due,
            recurrence=instance.recurrence,
            recipients=list(instance.recipients or []),
            previous_assessment_id=instance.id,
        )
        await self.reminder_scheduler.schedule(
            OwnerType.ASSESSMENT,
            follow_up.id,
            next_due,
            ReminderType.REASSESSMENT_DUE,
            follow_up.recipients,
            company_id=instance.company_id,
            now=now,
        )
        await self.audit_service.log(
            action=AuditAction.ASSESSMENT_SCHEDULE,
            entity_type="assessment",
            entity_id=follow_up.id,
            company_id=instance.company_id,
            actor="system",
            diff_json={
                "previous_assessment_id": str(instance.id),
                "scheduled_date": next_due.isoformat(),
            },
        )
        return follow_up

    async def cancel(
        self,
        instance: AssessmentInstance,
        reason: str | None = None,
        actor: str | None = None,
        now: datetime | None = None,
    ) -> AssessmentInstance:
        """Cancel an open assessment, revoking its links and pending reminders."""
        now = now or datetime.now(UTC)
        ensure_transition(instance.status, AssessmentStatus.CANCELLED)

        instance.status = AssessmentStatus.CANCELLED
        instance.cancelled_at = now
        await self.db.flush()

        revoked = await self.token_service.revoke_for_assessment(instance.id, now=now)
        reminders = await self.reminder_scheduler.cancel_pending(
            OwnerType.ASSESSMENT, instance.id, now=now
        )

        await self.audit_service.log(
            action=AuditAction.ASSESSMENT_CANCEL,
            entity_type="assessment",
            entity_id=instance.id,
            company_id=instance.company_id,
            actor=actor,
            diff_json={
                "reason": reason,
                "tokens_revoked": revoked,
                "reminders_cancelled": reminders,
            },
        )
        return instance

    async def get_follow_up(self, assessment_id: UUID) -> AssessmentInstance | None:
        """The instance scheduled as the re-assessment of ``assessment_id``."""
        result = await self.db.execute(
            select(AssessmentInstance).where(
                AssessmentInstance.previous_assessment_id == assessment_id
            )
        )
        return result.scalar_one_or_none()
