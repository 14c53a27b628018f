"""Respondent portal link building and parsing.

Link format::

    https://<host>/portal/<templateId>?employee=<employeeId>&assessment=<assessmentId>&token=<token>
"""

from __future__ import annotations

from dataclasses import dataclass
from urllib.parse import parse_qs, urlencode, urlsplit
from uuid import UUID

from src.core.errors import InvalidPortalLink

PORTAL_PATH_PREFIX = "/portal/"


@dataclass(frozen=True)
class PortalLinkParams:
    template_id: UUID
    employee_id: UUID
    assessment_id: UUID
    token: str


def build_portal_link(
    base_url: str,
    template_id: UUID,
    employee_id: UUID,
    assessment_id: UUID,
    token: str,
) -> str:
    query = urlencode(
        {
            "employee": str(employee_id),
            "assessment": str(assessment_id),
            "token": token,
        }
    )
    return f"{base_url.rstrip('/')}{PORTAL_PATH_PREFIX}{template_id}?{query}"


def _parse_uuid(value: str | None, name: str) -> UUID:
    if not value:
        raise InvalidPortalLink(f"Portal link is missing {name}", {"missing": name})
    try:
        return UUID(value)
    except ValueError:
        raise InvalidPortalLink(f"Portal link has a malformed {name}", {"invalid": name}) from None


def validate_link_params(
    template_id: str | None,
    employee_id: str | None,
    assessment_id: str | None,
    token: str | None,
) -> PortalLinkParams:
    """Check that all four link components are present and well formed.

    Runs before any token lookup.
    """
    params = PortalLinkParams(
        template_id=_parse_uuid(template_id, "template"),
        employee_id=_parse_uuid(employee_id, "employee"),
        assessment_id=_parse_uuid(assessment_id, "assessment"),
        token=(token or "").strip(),
    )
    if not params.token:
        raise InvalidPortalLink("Portal link is missing token", {"missing": "token"})
    return params


def parse_portal_link(url: str) -> PortalLinkParams:
    """Extract the components of a portal link."""
    parts = urlsplit(url)
    if not parts.path.startswith(PORTAL_PATH_PREFIX):
        raise InvalidPortalLink("Not a portal link", {"path": parts.path})

    template_id = parts.path[len(PORTAL_PATH_PREFIX):].strip("/") or None
    query = parse_qs(parts.query)

    def first(name: str) -> str | None:
        values = query.get(name)
        return values[0] if values else None

    return validate_link_params(
        template_id,
        first("employee"),
        first("assessment"),
        first("token"),
    )
