"""Portal access token service.

Issues single-use, time-bounded tokens for unauthenticated respondents and
validates them when the portal is opened or a response is submitted.

- Secure random tokens using secrets.token_urlsafe(32)
- SHA-256 hash storage, the plaintext is returned once and never stored
- One live token per assessment: issuing revokes earlier unredeemed ones
- Redemption is a conditional UPDATE, so concurrent submissions have a
  single winner
"""
import logging
from datetime import UTC, datetime, timedelta
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.config import Settings, get_settings
from src.core.errors import TokenAlreadyUsed, TokenError, TokenExpired, TokenMismatch, TokenNotFound
from src.core.metrics import observe_token_validation
from src.core.security import generate_access_token, hash_token
from src.core.structured_logging import log_json
from src.models.access_token import AccessToken
from src.models.enums import AuditAction
from src.services.audit_service import AuditService

logger = logging.getLogger(__name__)


class AccessTokenService:
    """Service for issuing, checking and redeeming portal access tokens."""

    def __init__(self, db: AsyncSession, settings: Settings | None = None):
        """Initialize access token service.

        Args:
            db: Database session
            settings: Application settings (TTL default)
        """
        self.db = db
        self.settings = settings or get_settings()
        self.audit_service = AuditService(db)

    async def issue(
        self,
        assessment_id: UUID,
        employee_id: UUID,
        ttl_days: int | None = None,
        company_id: UUID | None = None,
        now: datetime | None = None,
    ) -> tuple[AccessToken, str]:
        """Issue a new token bound to one assessment/employee pair.

        Earlier unredeemed tokens for the assessment are revoked.

        Returns:
            Tuple of (AccessToken row, plaintext token)
        """
        now = now or datetime.now(UTC)
        ttl = timedelta(days=ttl_days or self.settings.access_token_ttl_days)

        revoked = await self.revoke_for_assessment(assessment_id, now=now)

        token = generate_access_token()
        access_token = AccessToken(
            assessment_id=assessment_id,
            employee_id=employee_id,
            token_hash=hash_token(token),
            expires_at=now + ttl,
        )
        self.db.add(access_token)
        await self.db.flush()

        await self.audit_service.log(
            action=AuditAction.TOKEN_ISSUE,
            entity_type="assessment",
            entity_id=assessment_id,
            company_id=company_id,
            actor="system",
            diff_json={
                "token_id": str(access_token.id),
                "expires_at": access_token.expires_at.isoformat(),
                "revoked_previous": revoked,
            },
        )
        return access_token, token

    async def revoke_for_assessment(
        self, assessment_id: UUID, now: datetime | None = None
    ) -> int:
        """Revoke every live (unredeemed, unrevoked) token of an assessment.

        Returns:
            Number of tokens revoked
        """
        result = await self.db.execute(
            update(AccessToken)
            .where(
                AccessToken.assessment_id == assessment_id,
                AccessToken.redeemed_at.is_(None),
                AccessToken.revoked_at.is_(None),
            )
            .values(revoked_at=now or datetime.now(UTC))
            .execution_options(synchronize_session=False)
        )
        return result.rowcount or 0

    async def _get_by_token(self, token: str) -> AccessToken | None:
        result = await self.db.execute(
            select(AccessToken)
            .where(AccessToken.token_hash == hash_token(token))
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    def _check(
        self,
        access_token: AccessToken | None,
        assessment_id: UUID,
        employee_id: UUID,
        now: datetime,
    ) -> AccessToken:
        if access_token is None or access_token.revoked_at is not None:
            raise TokenNotFound()
        if access_token.assessment_id != assessment_id or access_token.employee_id != employee_id:
            raise TokenMismatch()
        if now >= access_token.expires_at:
            raise TokenExpired()
        if access_token.redeemed_at is not None:
            raise TokenAlreadyUsed()
        return access_token

    def _record_failure(self, mode: str, exc: TokenError, assessment_id: UUID) -> None:
        observe_token_validation(mode, exc.code)
        log_json(
            logger,
            logging.WARNING,
            "token_validation_failed",
            mode=mode,
            reason=exc.code,
            assessment_id=str(assessment_id),
        )

    async def inspect(
        self,
        token: str,
        assessment_id: UUID,
        employee_id: UUID,
        now: datetime | None = None,
    ) -> AccessToken:
        """Validate a token without consuming it.

        Raises:
            TokenNotFound, TokenMismatch, TokenExpired, TokenAlreadyUsed
        """
        now = now or datetime.now(UTC)
        try:
            access_token = self._check(
                await self._get_by_token(token), assessment_id, employee_id, now
            )
        except TokenError as exc:
            self._record_failure("inspect", exc, assessment_id)
            raise
        observe_token_validation("inspect", "ok")
        return access_token

    async def redeem(
        self,
        token: str,
        assessment_id: UUID,
        employee_id: UUID,
        company_id: UUID | None = None,
        now: datetime | None = None,
    ) -> AccessToken:
        """Validate and consume a token.

        The final check is a conditional UPDATE on ``redeemed_at IS NULL``,
        so of two concurrent redemptions only one succeeds; the other gets
        TokenAlreadyUsed.

        Raises:
            TokenNotFound, TokenMismatch, TokenExpired, TokenAlreadyUsed
        """
        now = now or datetime.now(UTC)
        try:
            access_token = self._check(
                await self._get_by_token(token), assessment_id, employee_id, now
            )
            result = await self.db.execute(
                update(AccessToken)
                .where(
                    AccessToken.id == access_token.id,
                    AccessToken.redeemed_at.is_(None),
                    AccessToken.revoked_at.is_(None),
                    AccessToken.expires_at > now,
                )
                .values(redeemed_at=now)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount != 1:
                # Lost the race; reload to report why
                await self.db.refresh(access_token)
                self._check(access_token, assessment_id, employee_id, now)
                raise TokenAlreadyUsed()
        except TokenError as exc:
            self._record_failure("redeem", exc, assessment_id)
            raise

        await self.db.refresh(access_token)
        observe_token_validation("redeem", "ok")

        await self.audit_service.log(
            action=AuditAction.TOKEN_REDEEM,
            entity_type="assessment",
            entity_id=assessment_id,
            company_id=company_id,
            actor="respondent",
            diff_json={"token_id": str(access_token.id)},
        )
        return access_token
