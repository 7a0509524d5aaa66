from __future__ import annotations

from typing import Any, Protocol, Sequence

from bureau_intake.config import IntakeConfig
from bureau_intake.datastore import DataStoreClient
from bureau_intake.errors import DataStoreError, MissingFieldError
from bureau_intake.extraction import extract_fields
from bureau_intake.mirror import AssetMirror
from bureau_intake.observability import IntakeObserver, LoggingObserver, NullObserver
from bureau_intake.schemas import (
    BrandKitRow,
    ClientRow,
    ExtractedFields,
    IntakeResult,
    MarketRow,
    StatusRow,
    SystemsRow,
    ValidatedSubmission,
)
from bureau_intake.validation import validate_required

CLIENTS_TABLE = "clients"
BRAND_KITS_TABLE = "brand_kits"
MARKETS_TABLE = "markets"
SYSTEMS_TABLE = "systems"
STATUS_TABLE = "status"


class RowInserter(Protocol):
    async def insert_row(self, table: str, row: dict[str, Any]) -> dict[str, Any]: ...


class Mirror(Protocol):
    async def mirror(self, *, client_id: object, category: str, urls: Sequence[str]) -> list[str]: ...


class IntakeService:
    """Turns one form submission into a client row plus its dependent rows.

    The client row is the only write whose failure fails the request; every
    dependent row references it and is best effort.
    """

    def __init__(
        self,
        store: RowInserter,
        *,
        mirror: Mirror | None = None,
        observer: IntakeObserver | None = None,
        write_operational_records: bool = False,
    ) -> None:
        self.store = store
        self.mirror = mirror
        self.observer = observer or NullObserver()
        self.write_operational_records = write_operational_records

    @classmethod
    def from_config(cls, config: IntakeConfig) -> "IntakeService":
        observer = LoggingObserver(log_payloads=config.log_payloads)
        store = DataStoreClient(
            base_url=config.datastore_url,
            service_key=config.datastore_service_key,
            schema=config.datastore_schema,
            timeout=config.request_timeout_seconds,
        )
        mirror = AssetMirror.from_config(config.storage, observer=observer) if config.storage else None
        return cls(
            store,
            mirror=mirror,
            observer=observer,
            write_operational_records=config.write_operational_records,
        )

    async def process(self, payload: Any) -> IntakeResult:
        self.observer.payload_received(payload)
        fields = extract_fields(payload)
        try:
            submission = validate_required(fields)
        except MissingFieldError as exc:
            self.observer.field_missing(exc.field)
            raise

        client_id = await self._create_client(submission)
        result = IntakeResult(client_id=client_id)

        logo_urls = await self._mirror_assets(client_id, "logos", fields.logos)
        headshot_urls = await self._mirror_assets(client_id, "headshots", fields.headshots)
        if self.mirror is not None:
            result.mirrored_assets = len(logo_urls) + len(headshot_urls)

        brand_kit = BrandKitRow(
            client_id=client_id,
            primary_color=fields.primary_color,
            secondary_color=fields.secondary_color,
            font=fields.font,
            disclaimer=fields.disclaimer,
            logo_urls=logo_urls or None,
            headshot_urls=headshot_urls or None,
        )
        if brand_kit.has_attributes():
            created = await self._insert_dependent(BRAND_KITS_TABLE, brand_kit.to_row(), client_id, result)
            if created is not None:
                result.brand_kit_id = created.get("id")

        if self.write_operational_records:
            for table, row in self._operational_rows(client_id, fields):
                await self._insert_dependent(table, row, client_id, result)

        self.observer.intake_completed(result)
        return result

    async def _create_client(self, submission: ValidatedSubmission) -> Any:
        fields = submission.extracted
        row = ClientRow(
            email=submission.email,
            legal_name=submission.legal_name,
            tier=submission.tier,
            full_name=fields.full_name,
            brokerage=fields.brokerage,
            website=fields.website,
            phone=fields.phone,
        )
        try:
            created = await self.store.insert_row(CLIENTS_TABLE, row.to_row())
        except DataStoreError as exc:
            self.observer.record_failed(CLIENTS_TABLE, str(exc))
            raise
        client_id = created.get("id")
        if client_id is None:
            self.observer.record_failed(CLIENTS_TABLE, "missing id in created row")
            raise DataStoreError(message="Data store returned a client row without an id")
        self.observer.record_created(CLIENTS_TABLE, client_id)
        return client_id

    async def _mirror_assets(self, client_id: Any, category: str, urls: list[str]) -> list[str]:
        if not urls:
            return []
        if self.mirror is None:
            return list(urls)
        return await self.mirror.mirror(client_id=client_id, category=category, urls=urls)

    async def _insert_dependent(
        self,
        table: str,
        row: dict[str, Any],
        client_id: Any,
        result: IntakeResult,
    ) -> dict[str, Any] | None:
        try:
            created = await self.store.insert_row(table, row)
        except DataStoreError as exc:
            self.observer.record_failed(table, str(exc), client_id=client_id)
            result.failed_records.append(table)
            return None
        self.observer.record_created(table, created.get("id"), client_id=client_id)
        return created

    @staticmethod
    def _operational_rows(client_id: Any, fields: ExtractedFields) -> list[tuple[str, dict[str, Any]]]:
        rows: list[tuple[str, dict[str, Any]]] = []
        market = MarketRow(client_id=client_id, service_area=fields.service_area)
        if market.has_attributes():
            rows.append((MARKETS_TABLE, market.to_row()))
        systems = SystemsRow(
            client_id=client_id,
            crm_url=fields.crm_url,
            booking_url=fields.booking_url,
            website_url=fields.website,
        )
        if systems.has_attributes():
            rows.append((SYSTEMS_TABLE, systems.to_row()))
        rows.append((STATUS_TABLE, StatusRow(client_id=client_id).to_row()))
        return rows
