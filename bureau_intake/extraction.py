"""Best-effort field extraction from form-builder submissions.

Form tools change their webhook shape without notice, so every logical field
is resolved by an ordered list of strategies. A strategy is a plain callable
``payload -> value | None``; the first one that yields a usable value wins.
Strategies never raise to the caller: a failure inside one counts as "not
found" and the next strategy is tried.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable, Iterator, Sequence
from dataclasses import dataclass
from typing import Any

from bureau_intake.schemas import ExtractedFields

logger = logging.getLogger(__name__)

Strategy = Callable[[Any], Any]

NESTED_CONTAINERS: tuple[str, ...] = ("submission", "responses", "client", "data")
RECORD_ARRAY_KEYS: tuple[str, ...] = ("answers", "data", "fields", "items")
LABEL_KEYS: tuple[str, ...] = ("label", "name", "title")
VALUE_KEYS: tuple[str, ...] = ("value", "text", "answer", "url")

_EMAIL_RE = re.compile(r"[A-Za-z0-9._%+\-]+@[A-Za-z0-9.\-]+\.[A-Za-z]{2,}")


def _present(value: Any) -> bool:
    if value is None:
        return False
    if isinstance(value, str) and not value.strip():
        return False
    if isinstance(value, (list, dict)) and not value:
        return False
    return True


def _first_value(item: dict[str, Any]) -> Any:
    for key in VALUE_KEYS:
        value = item.get(key)
        if _present(value):
            return value
    return None


class DirectKeys:
    """Look up key synonyms on the payload root, then on common wrappers."""

    def __init__(self, *keys: str) -> None:
        self.keys = keys

    def __call__(self, payload: Any) -> Any:
        if not isinstance(payload, dict):
            return None
        scopes = [payload]
        for container in NESTED_CONTAINERS:
            nested = payload.get(container)
            if isinstance(nested, dict):
                scopes.append(nested)
        for scope in scopes:
            for key in self.keys:
                value = scope.get(key)
                if _present(value):
                    return value
        return None


class LabelMatch:
    """Match wanted phrases against the labels of answer-record arrays.

    A record matches when a phrase is a case-insensitive substring of its
    label. Phrases are tried in order, so more specific phrases go first.
    """

    def __init__(self, *phrases: str) -> None:
        self.phrases = tuple(phrase.lower() for phrase in phrases)

    def __call__(self, payload: Any) -> Any:
        records = list(iter_answer_records(payload))
        if not records:
            return None
        for phrase in self.phrases:
            for label, item in records:
                if phrase in label:
                    value = _first_value(item)
                    if _present(value):
                        return value
        return None


class EmailScan:
    """Return the first email-looking substring anywhere in the payload."""

    def __call__(self, payload: Any) -> Any:
        for text in iter_strings(payload):
            match = _EMAIL_RE.search(text)
            if match:
                return match.group(0)
        return None


def iter_answer_records(payload: Any) -> Iterator[tuple[str, dict[str, Any]]]:
    if not isinstance(payload, dict):
        return
    arrays: list[Any] = [payload.get(key) for key in RECORD_ARRAY_KEYS]
    submission = payload.get("submission")
    if isinstance(submission, dict):
        arrays.append(submission.get("questions"))
    for array in arrays:
        if not isinstance(array, list):
            continue
        for item in array:
            if not isinstance(item, dict):
                continue
            label = next(
                (item[key] for key in LABEL_KEYS if isinstance(item.get(key), str) and item[key]),
                "",
            )
            if label:
                yield label.lower(), item


def iter_strings(node: Any) -> Iterator[str]:
    """Depth-first walk over every string value of a JSON tree."""
    if isinstance(node, str):
        yield node
    elif isinstance(node, dict):
        for value in node.values():
            yield from iter_strings(value)
    elif isinstance(node, list):
        for value in node:
            yield from iter_strings(value)


def as_text(value: Any) -> str | None:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        return value.strip() or None
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, dict):
        return as_text(_first_value(value))
    if isinstance(value, list):
        for item in value:
            text = as_text(item)
            if text:
                return text
    return None


def normalize_urls(value: Any) -> list[str]:
    """Flatten a URL string, an object with ``url``, or a list of either."""
    items = value if isinstance(value, list) else [value]
    urls: list[str] = []
    for item in items:
        if isinstance(item, dict):
            item = item.get("url")
        if not isinstance(item, str):
            continue
        url = item.strip()
        if url and url not in urls:
            urls.append(url)
    return urls


def first_of(
    payload: Any,
    strategies: Sequence[Strategy],
    coerce: Callable[[Any], Any] = as_text,
) -> Any:
    for strategy in strategies:
        try:
            value = coerce(strategy(payload))
        except Exception as exc:  # noqa: BLE001
            logger.debug(
                "extraction.strategy_failed",
                extra={"strategy": type(strategy).__name__, "error": str(exc)},
            )
            continue
        if _present(value):
            return value
    return None


@dataclass(frozen=True)
class FieldSpec:
    name: str
    strategies: tuple[Strategy, ...]
    coerce: Callable[[Any], Any] = as_text

    def extract(self, payload: Any) -> Any:
        return first_of(payload, self.strategies, self.coerce)


def _text_field(name: str, keys: Sequence[str], phrases: Sequence[str]) -> FieldSpec:
    return FieldSpec(name=name, strategies=(DirectKeys(*keys), LabelMatch(*phrases)))


def _file_field(name: str, keys: Sequence[str], phrases: Sequence[str]) -> FieldSpec:
    return FieldSpec(
        name=name,
        strategies=(DirectKeys(*keys), LabelMatch(*phrases)),
        coerce=normalize_urls,
    )


FIELD_SPECS: tuple[FieldSpec, ...] = (
    FieldSpec(
        name="email",
        strategies=(
            DirectKeys("email", "contact_email", "contactEmail", "email_address"),
            LabelMatch("contact email", "email"),
            EmailScan(),
        ),
    ),
    _text_field(
        "legal_name",
        ("legal_name", "legalName", "legal_business_name", "business_name", "company"),
        ("legal business name", "business name", "company name"),
    ),
    _text_field(
        "full_name",
        ("full_name", "fullName", "contact_name", "name"),
        ("full name", "contact name", "your name"),
    ),
    _text_field("tier", ("tier", "package", "plan", "subscription_tier"), ("package", "tier", "plan")),
    _text_field("brokerage", ("brokerage", "brokerage_name"), ("brokerage",)),
    _text_field("website", ("website", "website_url", "site"), ("website",)),
    _text_field("phone", ("phone", "phone_number", "contact_phone"), ("phone",)),
    _text_field(
        "primary_color",
        ("primary_color", "primaryColor", "brand_color"),
        ("primary color", "brand color"),
    ),
    _text_field(
        "secondary_color",
        ("secondary_color", "secondaryColor", "accent_color"),
        ("secondary color", "accent color"),
    ),
    _text_field("font", ("font", "brand_font", "font_family"), ("font",)),
    _text_field("disclaimer", ("disclaimer", "legal_disclaimer"), ("disclaimer",)),
    _file_field("logos", ("logo", "logos", "logo_url", "logo_urls"), ("logo",)),
    _file_field(
        "headshots",
        ("headshot", "headshots", "headshot_url", "headshot_urls"),
        ("headshot",),
    ),
    _text_field(
        "service_area",
        ("service_area", "market", "markets", "city"),
        ("service area", "market"),
    ),
    _text_field("crm_url", ("crm_url", "crm"), ("crm",)),
    _text_field("booking_url", ("booking_url", "calendar_url"), ("booking", "calendar")),
)


def extract_fields(payload: Any) -> ExtractedFields:
    values: dict[str, Any] = {}
    for spec in FIELD_SPECS:
        value = spec.extract(payload)
        if value is not None:
            values[spec.name] = value
    return ExtractedFields(**values)
