from __future__ import annotations

import logging
from typing import Any, Protocol

import orjson

from bureau_intake.schemas import IntakeResult

_PAYLOAD_DUMP_LIMIT = 4000


class IntakeObserver(Protocol):
    def payload_received(self, payload: Any) -> None: ...

    def field_missing(self, field: str) -> None: ...

    def record_created(self, table: str, record_id: Any, *, client_id: Any = None) -> None: ...

    def record_failed(self, table: str, error: str, *, client_id: Any = None) -> None: ...

    def asset_skipped(self, url: str, reason: str, *, category: str) -> None: ...

    def intake_completed(self, result: IntakeResult) -> None: ...


class NullObserver:
    def payload_received(self, payload: Any) -> None:
        return None

    def field_missing(self, field: str) -> None:
        return None

    def record_created(self, table: str, record_id: Any, *, client_id: Any = None) -> None:
        return None

    def record_failed(self, table: str, error: str, *, client_id: Any = None) -> None:
        return None

    def asset_skipped(self, url: str, reason: str, *, category: str) -> None:
        return None

    def intake_completed(self, result: IntakeResult) -> None:
        return None


class LoggingObserver:
    """Observer that writes intake events to the stdlib logger."""

    def __init__(self, *, log_payloads: bool = False, logger: logging.Logger | None = None) -> None:
        self.log_payloads = log_payloads
        self.logger = logger or logging.getLogger("bureau_intake.intake")

    def payload_received(self, payload: Any) -> None:
        extra: dict[str, Any] = {
            "payload_keys": sorted(payload.keys()) if isinstance(payload, dict) else [],
        }
        if self.log_payloads:
            dump = orjson.dumps(payload, default=str).decode("utf-8")
            extra["payload"] = dump[:_PAYLOAD_DUMP_LIMIT]
        self.logger.info("intake.payload_received", extra=extra)

    def field_missing(self, field: str) -> None:
        self.logger.warning("intake.field_missing", extra={"field": field})

    def record_created(self, table: str, record_id: Any, *, client_id: Any = None) -> None:
        self.logger.info(
            "intake.record_created",
            extra={"table": table, "record_id": str(record_id), "client_id": str(client_id or record_id)},
        )

    def record_failed(self, table: str, error: str, *, client_id: Any = None) -> None:
        self.logger.error(
            "intake.record_failed",
            extra={"table": table, "error": error, "client_id": str(client_id) if client_id else None},
        )

    def asset_skipped(self, url: str, reason: str, *, category: str) -> None:
        self.logger.warning(
            "intake.asset_skipped",
            extra={"source_url": url, "reason": reason, "category": category},
        )

    def intake_completed(self, result: IntakeResult) -> None:
        self.logger.info(
            "intake.completed",
            extra={
                "client_id": str(result.client_id),
                "brand_kit_id": str(result.brand_kit_id) if result.brand_kit_id is not None else None,
                "mirrored_assets": result.mirrored_assets,
                "failed_records": list(result.failed_records),
            },
        )
