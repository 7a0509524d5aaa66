from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class ExtractedFields(BaseModel):
    email: str | None = None
    legal_name: str | None = None
    full_name: str | None = None
    tier: str | None = None
    brokerage: str | None = None
    website: str | None = None
    phone: str | None = None
    primary_color: str | None = None
    secondary_color: str | None = None
    font: str | None = None
    disclaimer: str | None = None
    logos: list[str] = Field(default_factory=list)
    headshots: list[str] = Field(default_factory=list)
    service_area: str | None = None
    crm_url: str | None = None
    booking_url: str | None = None


class ValidatedSubmission(BaseModel):
    email: str = Field(min_length=1)
    legal_name: str = Field(min_length=1)
    tier: str = Field(min_length=1)
    extracted: ExtractedFields


class _Row(BaseModel):
    model_config = ConfigDict(extra="forbid")

    def to_row(self) -> dict[str, Any]:
        """Row payload without nulls, so database defaults apply."""
        return self.model_dump(exclude_none=True)


class ClientRow(_Row):
    email: str
    legal_name: str
    tier: str
    full_name: str | None = None
    brokerage: str | None = None
    website: str | None = None
    phone: str | None = None


class _OwnedRow(_Row):
    client_id: Any

    def has_attributes(self) -> bool:
        data = self.model_dump(exclude={"client_id"})
        return any(value not in (None, [], "") for value in data.values())


class BrandKitRow(_OwnedRow):
    primary_color: str | None = None
    secondary_color: str | None = None
    font: str | None = None
    disclaimer: str | None = None
    logo_urls: list[str] | None = None
    headshot_urls: list[str] | None = None


class MarketRow(_OwnedRow):
    service_area: str | None = None


class SystemsRow(_OwnedRow):
    crm_url: str | None = None
    booking_url: str | None = None
    website_url: str | None = None


class StatusRow(_OwnedRow):
    intake_complete: bool = True


class IntakeResult(BaseModel):
    client_id: Any
    brand_kit_id: Any = None
    mirrored_assets: int = 0
    failed_records: list[str] = Field(default_factory=list)


class IntakeOkResponse(BaseModel):
    ok: bool = True
    client_id: Any


class IntakeHintResponse(BaseModel):
    ok: bool = True
    hint: str = "Send POST with JSON body"


class IntakeErrorResponse(BaseModel):
    ok: bool = False
    error: str
