"""Questionnaire template and question models."""

from sqlalchemy import CheckConstraint, Column, ForeignKey, Index, Integer, String, Text, Uuid
from sqlalchemy.orm import relationship

from src.models.base import BaseModel


class QuestionnaireTemplate(BaseModel):
    """Questionnaire template with an ordinal answer scale.

    Templates referenced by a completed assessment are never edited in place;
    changes go into a copy with a higher ``version``.
    """

    __tablename__ = "questionnaire_templates"

    company_id = Column(
        Uuid(as_uuid=True),
        nullable=True,
        index=True,
    )
    title = Column(
        String(255),
        nullable=False,
    )
    description = Column(
        Text,
        nullable=True,
    )
    scale_min = Column(
        Integer,
        nullable=False,
        default=1,
    )
    scale_max = Column(
        Integer,
        nullable=False,
        default=5,
    )
    version = Column(
        Integer,
        nullable=False,
        default=1,
    )
    parent_template_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("questionnaire_templates.id", ondelete="SET NULL"),
        nullable=True,
    )

    # Relationships
    questions = relationship(
        "Question",
        back_populates="template",
        order_by="Question.position",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    __table_args__ = (
        CheckConstraint("scale_min >= 0", name="template_scale_min_non_negative"),
        CheckConstraint("scale_max > scale_min", name="template_scale_ordered"),
    )

    def __repr__(self) -> str:
        return f"<QuestionnaireTemplate(id={self.id}, title={self.title}, version={self.version})>"


class Question(BaseModel):
    """Single questionnaire item belonging to one category."""

    __tablename__ = "questions"

    template_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("questionnaire_templates.id", ondelete="CASCADE"),
        nullable=False,
    )
    key = Column(
        String(100),
        nullable=False,
    )
    position = Column(
        Integer,
        nullable=False,
    )
    text = Column(
        Text,
        nullable=False,
    )
    category = Column(
        String(255),
        nullable=False,
    )
    weight = Column(
        Integer,
        nullable=False,
        default=1,
    )

    template = relationship(
        "QuestionnaireTemplate",
        back_populates="questions",
    )

    __table_args__ = (
        CheckConstraint("weight > 0", name="question_weight_positive"),
        Index("idx_questions_template_key", "template_id", "key", unique=True),
        Index("idx_questions_template_position", "template_id", "position", unique=True),
    )

    def __repr__(self) -> str:
        return f"<Question(key={self.key}, category={self.category})>"
