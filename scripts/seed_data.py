"""Seed script for development data.

Creates:
- Global risk settings (thresholds 30/60, annual re-assessment, monthly when critical)
- Global NR-01 psychosocial questionnaire template "Avaliação Psicossocial NR-01"

Can be run multiple times safely (skips if exists).
"""
import sys
from pathlib import Path
import asyncio

# Add the project root to path
project_dir = Path(__file__).parent.parent
sys.path.insert(0, str(project_dir))

from sqlalchemy import select
from src.core.database import get_db
from src.models.enums import RecurrenceUnit, RiskTier
from src.models.questionnaire import QuestionnaireTemplate
from src.schemas.questionnaire import CreateTemplateRequest, QuestionCreate
from src.services.risk_settings_service import RiskSettingsService
from src.services.template_service import TemplateService

TEMPLATE_TITLE = "Avaliação Psicossocial NR-01"

# (key, category, text)
NR01_QUESTIONS = [
    ("q1", "Exigências do Trabalho", "Com que frequência você precisa trabalhar muito rapidamente?"),
    ("q2", "Exigências do Trabalho", "Com que frequência você não tem tempo para concluir suas tarefas?"),
    ("q3", "Exigências do Trabalho", "Seu trabalho exige que você esconda suas emoções?"),
    ("q4", "Organização e Conteúdo", "Você tem pouca influência sobre a forma como realiza seu trabalho?"),
    ("q5", "Organização e Conteúdo", "Seu trabalho é pouco variado ou repetitivo?"),
    ("q6", "Relações Sociais e Liderança", "Você recebe pouco apoio da sua chefia imediata?"),
    ("q7", "Relações Sociais e Liderança", "Há conflitos frequentes entre colegas de trabalho?"),
    ("q8", "Relações Sociais e Liderança", "Você já presenciou ou sofreu assédio no trabalho?"),
    ("q9", "Interface Trabalho-Indivíduo", "Você se preocupa em perder seu emprego?"),
    ("q10", "Interface Trabalho-Indivíduo", "O trabalho consome tanta energia que afeta sua vida pessoal?"),
]


async def seed_data():
    """Seed development data."""
    print("Starting database seeding...")

    # Get database session
    async for db in get_db():
        settings_service = RiskSettingsService(db)
        existing_settings = await settings_service._get_row(None)
        if existing_settings:
            print(f"✓ Global risk settings already exist (ID: {existing_settings.id})")
        else:
            row = await settings_service.update(
                None,
                30,
                60,
                RecurrenceUnit.ANNUAL,
                {RiskTier.CRITICAL.value: RecurrenceUnit.MONTHLY.value,
                 RiskTier.HIGH.value: RecurrenceUnit.SEMIANNUAL.value},
                actor="seed",
            )
            print(f"✓ Created global risk settings (ID: {row.id})")

        # Check if the global template already exists
        result = await db.execute(
            select(QuestionnaireTemplate).where(
                QuestionnaireTemplate.title == TEMPLATE_TITLE,
                QuestionnaireTemplate.company_id.is_(None),
            )
        )
        existing_template = result.scalars().first()

        if existing_template:
            print(f"✓ Template '{TEMPLATE_TITLE}' already exists (ID: {existing_template.id})")
        else:
            template = await TemplateService(db).create_template(
                None,
                CreateTemplateRequest(
                    title=TEMPLATE_TITLE,
                    description="Questionário de fatores de risco psicossociais (escala 1-5)",
                    scale_min=1,
                    scale_max=5,
                    questions=[
                        QuestionCreate(key=key, category=category, text=text)
                        for key, category, text in NR01_QUESTIONS
                    ],
                ),
                actor="seed",
            )
            print(f"✓ Created template '{TEMPLATE_TITLE}' (ID: {template.id})")

        # Commit changes
        await db.commit()

    print("\n✓ Database seeding completed successfully!")


if __name__ == "__main__":
    asyncio.run(seed_data())
