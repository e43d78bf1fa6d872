"""HTTP client for the remote record store.

The store is a PostgREST-style REST service (Supabase compatible):

    GET    {store_url}/rest/v1/{table}?col=eq.value&order=created_at.desc&limit=1
    POST   {store_url}/rest/v1/{table}            (Prefer: return=representation)
    PATCH  {store_url}/rest/v1/{table}?col=eq.value
    DELETE {store_url}/rest/v1/{table}?col=eq.value

Every call is fallible and independent; there are no multi-table transactions.
Transport and HTTP failures are raised as ``StoreError``.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Annotated, Any

import httpx
from fastapi import Depends, Request

from core.config import get_settings
from core.errors import StoreError

logger = logging.getLogger(__name__)

Row = dict[str, Any]


def _filter_params(filters: Mapping[str, Any] | None) -> dict[str, str]:
    params: dict[str, str] = {}
    for column, value in (filters or {}).items():
        if value is None:
            params[column] = "is.null"
        elif isinstance(value, bool):
            params[column] = f"eq.{str(value).lower()}"
        else:
            params[column] = f"eq.{value}"
    return params


class RecordStore:
    """Async client for the participants/templates/logs tables."""

    def __init__(
        self,
        base_url: str,
        api_key: str = "",
        *,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        headers = {"Accept": "application/json"}
        if api_key:
            headers["apikey"] = api_key
            headers["Authorization"] = f"Bearer {api_key}"

        self._client = httpx.AsyncClient(
            base_url=f"{base_url.rstrip('/')}/rest/v1",
            headers=headers,
            timeout=timeout,
            transport=transport,
        )

    async def _request(
        self,
        method: str,
        table: str,
        *,
        params: Mapping[str, str] | None = None,
        json: Any = None,
        prefer: str | None = None,
    ) -> Any:
        headers = {"Prefer": prefer} if prefer else None
        try:
            response = await self._client.request(
                method, f"/{table}", params=params, json=json, headers=headers
            )
        except httpx.HTTPError as e:
            logger.warning(
                "store.request.failed",
                extra={"table": table, "method": method, "error": str(e)},
            )
            raise StoreError(
                f"Record store unreachable while accessing {table}",
                table=table,
                operation=method,
            ) from e

        if response.status_code >= 400:
            try:
                detail = response.json().get("message") or response.text
            except ValueError:
                detail = response.text
            logger.warning(
                "store.request.rejected",
                extra={
                    "table": table,
                    "method": method,
                    "status": response.status_code,
                    "detail": detail,
                },
            )
            raise StoreError(
                f"Record store rejected {method} on {table}: {detail}",
                table=table,
                operation=method,
                upstream_status=response.status_code,
            )

        if response.status_code == 204 or not response.content:
            return []
        return response.json()

    async def select(
        self,
        table: str,
        *,
        filters: Mapping[str, Any] | None = None,
        order: str | None = None,
        descending: bool = False,
        limit: int | None = None,
    ) -> list[Row]:
        """Return rows matching all equality filters."""
        params = {"select": "*", **_filter_params(filters)}
        if order:
            params["order"] = f"{order}.{'desc' if descending else 'asc'}"
        if limit is not None:
            params["limit"] = str(limit)
        return await self._request("GET", table, params=params)

    async def select_one(
        self, table: str, filters: Mapping[str, Any]
    ) -> Row | None:
        rows = await self.select(table, filters=filters, limit=1)
        return rows[0] if rows else None

    async def insert(self, table: str, values: Mapping[str, Any]) -> Row:
        """Insert one row and return it as stored (with generated columns)."""
        rows = await self._request(
            "POST", table, json=dict(values), prefer="return=representation"
        )
        if not rows:
            raise StoreError(
                f"Record store returned no row for insert into {table}",
                table=table,
                operation="POST",
            )
        return rows[0]

    async def update(
        self,
        table: str,
        filters: Mapping[str, Any],
        values: Mapping[str, Any],
    ) -> list[Row]:
        return await self._request(
            "PATCH",
            table,
            params=_filter_params(filters),
            json=dict(values),
            prefer="return=representation",
        )

    async def delete(self, table: str, filters: Mapping[str, Any]) -> list[Row]:
        return await self._request(
            "DELETE",
            table,
            params=_filter_params(filters),
            prefer="return=representation",
        )

    async def ping(self) -> bool:
        """Return True when the store answers a trivial query."""
        try:
            await self.select("certificate_templates", limit=1)
        except StoreError:
            return False
        return True

    async def aclose(self) -> None:
        await self._client.aclose()


def create_store() -> RecordStore:
    settings = get_settings()
    return RecordStore(
        settings.store_url,
        settings.store_api_key,
        timeout=settings.http_timeout,
    )


def get_store(request: Request) -> RecordStore:
    """FastAPI dependency returning the store created at startup."""
    return request.app.state.store


Store = Annotated[RecordStore, Depends(get_store)]
