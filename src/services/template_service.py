"""Questionnaire template service: create, read and version templates."""
from uuid import UUID

from fastapi import HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.models.enums import AuditAction
from src.models.questionnaire import Question, QuestionnaireTemplate
from src.schemas.questionnaire import CreateTemplateRequest
from src.services.audit_service import AuditService


class TemplateService:
    """Service for questionnaire templates.

    Templates are not edited in place, since completed assessments keep
    pointing at them; ``clone_template`` produces the next version instead.
    """

    def __init__(self, db: AsyncSession):
        self.db = db
        self.audit_service = AuditService(db)

    async def create_template(
        self,
        company_id: UUID | None,
        request: CreateTemplateRequest,
        actor: str | None = None,
    ) -> QuestionnaireTemplate:
        """Create a template with its questions in request order.

        Args:
            company_id: Owning company, None for a global template
            request: Template payload
            actor: Who created it (for audit)

        Returns:
            Created template with questions loaded
        """
        template = QuestionnaireTemplate(
            company_id=company_id,
            title=request.title,
            description=request.description,
            scale_min=request.scale_min,
            scale_max=request.scale_max,
            version=1,
            questions=[
                Question(
                    key=q.key,
                    position=position,
                    text=q.text,
                    category=q.category,
                    weight=q.weight,
                )
                for position, q in enumerate(request.questions, start=1)
            ],
        )
        self.db.add(template)
        await self.db.flush()

        await self.audit_service.log(
            action=AuditAction.TEMPLATE_CREATE,
            entity_type="questionnaire_template",
            entity_id=template.id,
            company_id=company_id,
            actor=actor,
            diff_json={"title": template.title, "question_count": len(request.questions)},
        )
        return template

    async def get_template(self, template_id: UUID) -> QuestionnaireTemplate:
        """Get a template by id.

        Raises:
            HTTPException: 404 if not found
        """
        result = await self.db.execute(
            select(QuestionnaireTemplate).where(QuestionnaireTemplate.id == template_id)
        )
        template = result.scalar_one_or_none()
        if template is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Questionnaire template not found",
            )
        return template

    async def get_visible_template(
        self, template_id: UUID, company_id: UUID
    ) -> QuestionnaireTemplate:
        """Template usable by a company: its own or a global one."""
        template = await self.get_template(template_id)
        if template.company_id is not None and template.company_id != company_id:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Questionnaire template not found",
            )
        return template

    async def clone_template(
        self,
        template_id: UUID,
        company_id: UUID,
        actor: str | None = None,
    ) -> QuestionnaireTemplate:
        """Copy a template into a new version owned by ``company_id``.

        The copy keeps the question keys, order, categories and weights.
        """
        source = await self.get_visible_template(template_id, company_id)

        clone = QuestionnaireTemplate(
            company_id=company_id,
            title=source.title,
            description=source.description,
            scale_min=source.scale_min,
            scale_max=source.scale_max,
            version=source.version + 1,
            parent_template_id=source.id,
            questions=[
                Question(
                    key=q.key,
                    position=q.position,
                    text=q.text,
                    category=q.category,
                    weight=q.weight,
                )
                for q in source.questions
            ],
        )
        self.db.add(clone)
        await self.db.flush()

        await self.audit_service.log(
            action=AuditAction.TEMPLATE_CLONE,
            entity_type="questionnaire_template",
            entity_id=clone.id,
            company_id=company_id,
            actor=actor,
            diff_json={"source_template_id": str(source.id), "version": clone.version},
        )
        return clone
