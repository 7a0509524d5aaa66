from __future__ import annotations

DEFAULT_TIER = "Starter"

_TIER_ALIASES: dict[str, str] = {
    "starter": "Starter",
    "start": "Starter",
    "basic": "Starter",
    "growth": "Growth",
    "grow": "Growth",
    "premium": "Premium",
    "pro": "Premium",
}


def normalize_tier(raw: str | None) -> str:
    """Map a raw package/plan answer onto the canonical tier vocabulary.

    A missing or blank answer means the default tier. Unknown values pass
    through with their first letter upper-cased, so the mapping is idempotent.
    """
    trimmed = str(raw).strip() if raw is not None else ""
    if not trimmed:
        trimmed = DEFAULT_TIER
    canonical = _TIER_ALIASES.get(trimmed.lower())
    if canonical:
        return canonical
    return trimmed[0].upper() + trimmed[1:]
