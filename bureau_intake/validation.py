from __future__ import annotations

from bureau_intake.errors import MissingFieldError
from bureau_intake.schemas import ExtractedFields, ValidatedSubmission
from bureau_intake.tiers import normalize_tier


def validate_required(fields: ExtractedFields) -> ValidatedSubmission:
    """Check email, legal name and tier in that order, before any write."""
    if not fields.email:
        raise MissingFieldError("email")

    legal_name = fields.legal_name or fields.full_name
    if not legal_name:
        raise MissingFieldError("legal_name")

    tier = normalize_tier(fields.tier)
    if not tier:
        raise MissingFieldError("tier")

    return ValidatedSubmission(
        email=fields.email,
        legal_name=legal_name,
        tier=tier,
        extracted=fields,
    )
