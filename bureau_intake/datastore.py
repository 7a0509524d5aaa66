from __future__ import annotations

from typing import Any

import httpx

from bureau_intake.errors import DataStoreError


def prune_nulls(row: dict[str, Any]) -> dict[str, Any]:
    return {key: value for key, value in row.items() if value is not None}


class DataStoreClient:
    """Table inserts against a PostgREST endpoint using a service key."""

    def __init__(
        self,
        *,
        base_url: str,
        service_key: str,
        schema: str = "public",
        timeout: float = 20.0,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._service_key = service_key
        self._schema = schema
        self._timeout = timeout

    def _headers(self) -> dict[str, str]:
        return {
            "apikey": self._service_key,
            "Authorization": f"Bearer {self._service_key}",
            "Content-Type": "application/json",
            "Accept": "application/json",
            "Content-Profile": self._schema,
            "Prefer": "return=representation",
        }

    async def insert_row(self, table: str, row: dict[str, Any]) -> dict[str, Any]:
        url = f"{self._base_url}/rest/v1/{table}"
        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                response = await client.post(url, json=prune_nulls(row), headers=self._headers())
        except httpx.RequestError as exc:
            raise DataStoreError(message=f"Network error while inserting into {table}: {exc}") from exc

        if response.status_code >= 400:
            raise DataStoreError(message=self._error_message(table, response))

        try:
            body = response.json()
        except ValueError as exc:
            raise DataStoreError(message=f"Data store returned invalid JSON for {table}") from exc

        if isinstance(body, list):
            body = body[0] if body else None
        if not isinstance(body, dict):
            raise DataStoreError(message=f"Data store returned no row for {table}")
        return body

    @staticmethod
    def _error_message(table: str, response: httpx.Response) -> str:
        try:
            body = response.json()
        except ValueError:
            body = None
        if isinstance(body, dict):
            message = body.get("message") or body.get("error") or body.get("msg")
            if isinstance(message, str) and message:
                return message
        text = response.text.strip()
        if text:
            return f"Insert into {table} failed ({response.status_code}): {text}"
        return f"Insert into {table} failed ({response.status_code})"
