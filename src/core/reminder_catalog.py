"""Reminder vocabulary: lead times, priorities, titles and message bodies."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, date, datetime, time, timedelta

from src.models.enums import OwnerType, ReminderPriority, ReminderType

# Days before the due date at which a reminder fires
LEAD_TIMES: dict[OwnerType, tuple[int, ...]] = {
    OwnerType.ASSESSMENT: (7, 3, 1),
    OwnerType.ACTION_PLAN: (14, 7, 3, 1),
}

REMINDER_PRIORITIES: dict[ReminderType, ReminderPriority] = {
    ReminderType.HIGH_RISK_ALERT: ReminderPriority.HIGH,
    ReminderType.ACTION_PLAN_OVERDUE: ReminderPriority.HIGH,
    ReminderType.ASSESSMENT_DUE: ReminderPriority.MEDIUM,
    ReminderType.REASSESSMENT_DUE: ReminderPriority.MEDIUM,
}

REMINDER_TITLES: dict[ReminderType, str] = {
    ReminderType.ASSESSMENT_DUE: "Avaliação Psicossocial Vencendo",
    ReminderType.ACTION_PLAN_OVERDUE: "Plano de Ação em Atraso",
    ReminderType.HIGH_RISK_ALERT: "Alerta de Risco Alto",
    ReminderType.REASSESSMENT_DUE: "Reavaliação Necessária",
}

OWNER_LABELS: dict[OwnerType, str] = {
    OwnerType.ASSESSMENT: "avaliação psicossocial",
    OwnerType.ACTION_PLAN: "plano de ação",
}


@dataclass(frozen=True)
class Notification:
    """Rendered message handed to a notification channel."""

    reminder_id: str
    reminder_type: ReminderType
    priority: ReminderPriority
    recipients: tuple[str, ...]
    title: str
    body: str
    metadata: dict = field(default_factory=dict)


def reminder_priority(reminder_type: ReminderType) -> ReminderPriority:
    return REMINDER_PRIORITIES[reminder_type]


def reminder_title(reminder_type: ReminderType) -> str:
    return REMINDER_TITLES[reminder_type]


def format_date_br(value: date) -> str:
    return value.strftime("%d/%m/%Y")


def reminder_message(
    reminder_type: ReminderType,
    owner_type: OwnerType,
    due_date: date,
    lead_days: int,
    extra: str | None = None,
) -> str:
    """Render the body of a reminder in Portuguese."""
    lines = [f"Este é um lembrete automático sobre: {OWNER_LABELS[owner_type]}"]
    if reminder_type is ReminderType.HIGH_RISK_ALERT:
        lines.append("Uma avaliação foi concluída com nível de risco alto ou crítico.")
    elif lead_days > 0:
        lines.append(f"Faltam {lead_days} dia(s) para o vencimento.")
    lines.append(f"Data de vencimento: {format_date_br(due_date)}")
    if extra:
        lines.append(extra)
    lines.append("Por favor, tome as ações necessárias.")
    return "\n".join(lines)


def fire_time(due_date: date, lead_days: int, fire_hour_utc: int) -> datetime:
    """Instant at which a reminder ``lead_days`` before ``due_date`` fires."""
    day = due_date - timedelta(days=lead_days)
    return datetime.combine(day, time(hour=fire_hour_utc), tzinfo=UTC)


def retry_deadline(due_date: date) -> datetime:
    """First instant after ``due_date``; a reminder never fires from here on."""
    return datetime.combine(due_date + timedelta(days=1), time(), tzinfo=UTC)
