from __future__ import annotations

import pytest

from bureau_intake.errors import MissingFieldError
from bureau_intake.schemas import ExtractedFields
from bureau_intake.validation import validate_required


def test_validate_required_reports_email_before_legal_name():
    with pytest.raises(MissingFieldError, match="Missing required field: email") as exc_info:
        validate_required(ExtractedFields())

    assert exc_info.value.field == "email"
    assert exc_info.value.status_code == 400


def test_validate_required_reports_missing_legal_name():
    with pytest.raises(MissingFieldError, match="Missing required field: legal_name"):
        validate_required(ExtractedFields(email="a@b.com"))


def test_validate_required_falls_back_to_contact_name():
    submission = validate_required(ExtractedFields(email="a@b.com", full_name="Jane Doe"))

    assert submission.legal_name == "Jane Doe"
    assert submission.tier == "Starter"


def test_validate_required_normalizes_tier():
    submission = validate_required(
        ExtractedFields(email="a@b.com", legal_name="Sunny Homes LLC", tier="pro")
    )

    assert submission.tier == "Premium"
    assert submission.extracted.legal_name == "Sunny Homes LLC"


def test_validate_required_defaults_blank_tier():
    submission = validate_required(ExtractedFields(email="a@b.com", legal_name="Sunny Homes LLC", tier=" "))

    assert submission.tier == "Starter"
