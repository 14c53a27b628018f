"""Portal access token model."""
from sqlalchemy import Column, ForeignKey, String, Uuid

from src.models.base import BaseModel, UTCDateTime


class AccessToken(BaseModel):
    """Single-use access token for the respondent portal.

    Only the SHA-256 hash of the token is stored. A token is bound to one
    assessment/employee pair, expires after a TTL and can be redeemed once.
    """

    __tablename__ = "access_tokens"

    assessment_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("assessment_instances.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    employee_id = Column(
        Uuid(as_uuid=True),
        nullable=False,
    )
    token_hash = Column(
        String(64),
        nullable=False,
        unique=True,
        index=True,
    )
    expires_at = Column(
        UTCDateTime,
        nullable=False,
        index=True,
    )
    redeemed_at = Column(
        UTCDateTime,
        nullable=True,
    )
    revoked_at = Column(
        UTCDateTime,
        nullable=True,
    )

    def __repr__(self) -> str:
        return f"<AccessToken(id={self.id}, assessment_id={self.assessment_id})>"
