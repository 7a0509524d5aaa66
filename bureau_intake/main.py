from __future__ import annotations

import logging
from functools import lru_cache
from typing import Any

import orjson
from fastapi import Depends, FastAPI, Request, status
from fastapi.exception_handlers import http_exception_handler
from fastapi.responses import HTMLResponse, ORJSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from bureau_intake.config import settings
from bureau_intake.errors import IntakeError, PayloadError
from bureau_intake.intake import IntakeService
from bureau_intake.schemas import IntakeErrorResponse, IntakeHintResponse, IntakeOkResponse

logger = logging.getLogger(__name__)

INTAKE_PATH = "/api/intake"
HEALTH_PATH = "/api/health"
INTAKE_ALLOWED_METHODS = "GET, POST"

_LANDING_PAGE = """<!doctype html>
<html>
  <head><title>Bureau Intake</title></head>
  <body style="font-family: sans-serif; padding: 2rem; line-height: 1.6; max-width: 600px">
    <h1>Bureau Intake</h1>
    <p>The intake webhook receiver is running.</p>
    <ul>
      <li><a href="/api/health">Health check &rarr; /api/health</a></li>
      <li>Form webhook endpoint &rarr; <code>/api/intake</code> (POST only)</li>
    </ul>
  </body>
</html>
"""


@lru_cache()
def get_intake_service() -> IntakeService:
    return IntakeService.from_config(settings.intake_config())


def _error_response(status_code: int, message: str, headers: dict[str, str] | None = None) -> ORJSONResponse:
    return ORJSONResponse(
        status_code=status_code,
        content=IntakeErrorResponse(error=message).model_dump(),
        headers=headers,
    )


async def _read_json_payload(request: Request) -> Any:
    limit = settings.INTAKE_MAX_BODY_BYTES
    declared = request.headers.get("content-length")
    if declared and declared.isdigit() and int(declared) > limit:
        raise PayloadError(message="Payload too large", status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE)

    body = bytearray()
    async for chunk in request.stream():
        body.extend(chunk)
        if len(body) > limit:
            raise PayloadError(message="Payload too large", status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE)

    try:
        payload = orjson.loads(bytes(body))
    except orjson.JSONDecodeError as exc:
        raise PayloadError(message="Invalid JSON payload") from exc
    if not isinstance(payload, dict):
        raise PayloadError(message="Webhook payload must be a JSON object")
    return payload


def create_app() -> FastAPI:
    logging.getLogger("bureau_intake").setLevel(settings.INTAKE_LOG_LEVEL)

    app = FastAPI(title="Bureau Intake", default_response_class=ORJSONResponse)

    @app.exception_handler(IntakeError)
    async def intake_error_handler(_request: Request, exc: IntakeError) -> ORJSONResponse:
        if exc.status_code >= 500:
            logger.error("intake.request_failed", extra={"error": str(exc)})
        return _error_response(exc.status_code, str(exc))

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        if exc.status_code == status.HTTP_405_METHOD_NOT_ALLOWED and request.url.path == INTAKE_PATH:
            return _error_response(
                status.HTTP_405_METHOD_NOT_ALLOWED,
                "Method not allowed",
                headers={"Allow": INTAKE_ALLOWED_METHODS},
            )
        return await http_exception_handler(request, exc)

    @app.get("/", response_class=HTMLResponse)
    def landing() -> str:
        return _LANDING_PAGE

    @app.get(HEALTH_PATH)
    def health() -> dict[str, bool]:
        return {"ok": True}

    @app.get(INTAKE_PATH)
    def intake_hint() -> dict[str, Any]:
        return IntakeHintResponse().model_dump()

    @app.post(INTAKE_PATH)
    async def receive_intake(
        request: Request,
        service: IntakeService = Depends(get_intake_service),
    ):
        payload = await _read_json_payload(request)
        try:
            result = await service.process(payload)
        except IntakeError:
            raise
        except Exception:
            logger.exception("intake.unhandled_error")
            return _error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error")

        return IntakeOkResponse(client_id=result.client_id).model_dump()

    return app


app = create_app()
