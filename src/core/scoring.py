"""Questionnaire response aggregation.

Turns a complete set of answers into one normalized score (0-100) per
category, in template declaration order.
"""

from __future__ import annotations

import math
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from fractions import Fraction
from numbers import Real

from src.core.errors import IncompleteResponse, InvalidAnswer


@dataclass(frozen=True)
class QuestionSpec:
    key: str
    category: str
    weight: int = 1


@dataclass(frozen=True)
class TemplateSpec:
    """Scoring view of a questionnaire template."""

    questions: tuple[QuestionSpec, ...]
    scale_min: int = 1
    scale_max: int = 5

    @classmethod
    def from_model(cls, template) -> TemplateSpec:
        """Build from a ``QuestionnaireTemplate`` row (questions ordered by position)."""
        questions = sorted(template.questions, key=lambda q: q.position)
        return cls(
            questions=tuple(
                QuestionSpec(key=q.key, category=q.category, weight=q.weight or 1)
                for q in questions
            ),
            scale_min=template.scale_min,
            scale_max=template.scale_max,
        )

    def categories(self) -> list[str]:
        """Category labels in declaration order (first appearance wins)."""
        seen: list[str] = []
        for question in self.questions:
            if question.category not in seen:
                seen.append(question.category)
        return seen


@dataclass(frozen=True)
class CategoryScore:
    category: str
    score: int


def _round_half_up(value: Fraction) -> int:
    return math.floor(value + Fraction(1, 2))


def validate_answers(template: TemplateSpec, answers: Mapping[str, object]) -> dict[str, int]:
    """Check that every question is answered with an in-scale integer.

    Args:
        template: Template to validate against
        answers: Mapping of question key to answer

    Returns:
        Normalized mapping of question key to integer answer

    Raises:
        IncompleteResponse: if any template question has no answer
        InvalidAnswer: for unknown keys, non-numeric or out-of-scale answers
    """
    known = {q.key for q in template.questions}
    unknown = sorted(key for key in answers if key not in known)
    if unknown:
        raise InvalidAnswer(
            "Answers reference questions that are not part of the template",
            {"unknown_question_ids": unknown},
        )

    missing = [q.key for q in template.questions if answers.get(q.key) is None]
    if missing:
        raise IncompleteResponse(missing)

    normalized: dict[str, int] = {}
    for question in template.questions:
        value = answers[question.key]
        if (
            isinstance(value, bool)
            or not isinstance(value, Real)
            or (isinstance(value, float) and not value.is_integer())
        ):
            raise InvalidAnswer(
                f"Answer for {question.key} must be an integer",
                {"question_id": question.key, "value": value},
            )
        value = int(value)
        if not template.scale_min <= value <= template.scale_max:
            raise InvalidAnswer(
                f"Answer for {question.key} is outside the {template.scale_min}-{template.scale_max} scale",
                {"question_id": question.key, "value": value},
            )
        normalized[question.key] = value
    return normalized


def aggregate_category_scores(
    template: TemplateSpec,
    answers: Mapping[str, object],
) -> list[CategoryScore]:
    """Compute per-category scores.

    score = round(sum(answer * weight) / (sum(weight) * scale_max) * 100)

    With unit weights this is sum / (count * scale_max) * 100. Halves round up.

    Example:
        answers q1=5, q2=4 in category A on a 1-5 scale -> A = 90
    """
    if not template.questions:
        raise InvalidAnswer("Template has no questions")

    values = validate_answers(template, answers)

    totals: dict[str, int] = {}
    weights: dict[str, int] = {}
    for question in template.questions:
        totals[question.category] = totals.get(question.category, 0) + values[question.key] * question.weight
        weights[question.category] = weights.get(question.category, 0) + question.weight

    return [
        CategoryScore(
            category=category,
            score=_round_half_up(Fraction(totals[category] * 100, weights[category] * template.scale_max)),
        )
        for category in template.categories()
    ]


def scores_to_json(scores: Sequence[CategoryScore]) -> list[dict]:
    return [{"category": s.category, "score": s.score} for s in scores]
