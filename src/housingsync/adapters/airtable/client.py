"""HTTP client for the Airtable REST API."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING, Any, Final
from urllib.parse import quote

import httpx
from pydantic import ValidationError

from housingsync.adapters.http_resilience import ResilientClient, build_limiter
from housingsync.config import get_airtable_config
from housingsync.config.airtable import AIRTABLE_BASE_URL
from housingsync.domain.ports import StoreError

from .schema import ErrorResponse, ListRecordsResponse, RecordPayload, TablePayload, TablesResponse

if TYPE_CHECKING:
    from collections.abc import Callable, Coroutine, Mapping
    from types import TracebackType

    from aiolimiter import AsyncLimiter

    from housingsync.config import AirtableConfig, ResilienceConfig

log = getLogger(__name__)

PAGE_SIZE: Final[int] = 100


def _default_client_factory(
    config: ResilienceConfig, limiter: AsyncLimiter | None
) -> ResilientClient:
    return ResilientClient(config, limiter=limiter)


class AirtableAPIError(StoreError):
    """Raised when an Airtable round trip fails."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        error_type: str | None = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.error_type = error_type


@dataclass(slots=True)
class AirtableClient:
    """Synchronous facade; every call runs one async round trip.

    All calls run on one event loop owned by the client, so the rate limit
    holds across calls and not only within a paginated listing. ``close`` ends
    the loop; the client is also a context manager.
    """

    config: AirtableConfig = field(default_factory=get_airtable_config)
    client_factory: Callable[[ResilienceConfig, AsyncLimiter | None], ResilientClient] = field(
        default=_default_client_factory
    )
    limiter: AsyncLimiter | None = field(init=False, repr=False)
    _runner: asyncio.Runner | None = field(default=None, init=False, repr=False)

    def __post_init__(self) -> None:
        self.limiter = build_limiter(self.config.resilience)

    def __enter__(self) -> AirtableClient:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        self.close()

    def close(self) -> None:
        if self._runner is not None:
            self._runner.close()
            self._runner = None

    def list_tables(self) -> list[TablePayload]:
        payload = self._run("GET", f"meta/bases/{self.config.base_id}/tables")
        return TablesResponse.model_validate(payload).tables

    def list_records(
        self,
        table: str,
        *,
        sort_field: str | None = None,
        formula: str | None = None,
    ) -> list[RecordPayload]:
        return self._complete(
            self._list_records_async(table, sort_field=sort_field, formula=formula)
        )

    def create_record(self, table: str, fields: Mapping[str, object]) -> RecordPayload:
        payload = self._run("POST", self._table_path(table), json={"fields": dict(fields)})
        return RecordPayload.model_validate(payload)

    def update_record(
        self, table: str, record_id: str, fields: Mapping[str, object]
    ) -> RecordPayload:
        payload = self._run(
            "PATCH",
            f"{self._table_path(table)}/{record_id}",
            json={"fields": dict(fields)},
        )
        return RecordPayload.model_validate(payload)

    def delete_record(self, table: str, record_id: str) -> None:
        self._run("DELETE", f"{self._table_path(table)}/{record_id}")

    def _table_path(self, table: str) -> str:
        return f"{self.config.base_id}/{quote(table, safe='')}"

    def _url(self, path: str) -> str:
        base_url = self.config.resilience.base_url or AIRTABLE_BASE_URL
        return f"{base_url.rstrip('/')}/{path}"

    def _run(self, method: str, path: str, *, json: object | None = None) -> Any:
        return self._complete(self._request_async(method, path, json=json))

    def _complete[T](self, coroutine: Coroutine[Any, Any, T]) -> T:
        if self._runner is None:
            self._runner = asyncio.Runner()
        return self._runner.run(coroutine)

    def _open(self) -> ResilientClient:
        return self.client_factory(self.config.resilience, self.limiter)

    async def _list_records_async(
        self,
        table: str,
        *,
        sort_field: str | None,
        formula: str | None,
    ) -> list[RecordPayload]:
        params: dict[str, str | int] = {"pageSize": PAGE_SIZE}
        if sort_field is not None:
            params["sort[0][field]"] = sort_field
            params["sort[0][direction]"] = "asc"
        if formula is not None:
            params["filterByFormula"] = formula

        records: list[RecordPayload] = []
        async with self._open() as client:
            while True:
                payload = await self._perform_request(
                    client, "GET", self._table_path(table), params=params
                )
                try:
                    page = ListRecordsResponse.model_validate(payload)
                except ValidationError as exc:
                    raise AirtableAPIError(f"Unexpected Airtable list payload: {exc}") from exc
                records.extend(page.records)
                if page.offset is None:
                    break
                params["offset"] = page.offset
        log.debug("Listed %s records from %s", len(records), table)
        return records

    async def _request_async(self, method: str, path: str, *, json: object | None) -> Any:
        async with self._open() as client:
            return await self._perform_request(client, method, path, json=json)

    async def _perform_request(
        self,
        client: ResilientClient,
        method: str,
        path: str,
        *,
        params: Mapping[str, str | int] | None = None,
        json: object | None = None,
    ) -> Any:
        headers = {"Authorization": f"Bearer {self.config.api_key}"}
        try:
            response = await client.request(
                method, self._url(path), params=params, headers=headers, json=json
            )
        except httpx.HTTPError as exc:
            raise AirtableAPIError(f"Airtable {method} {path} failed: {exc}") from exc

        payload = _decode(response)
        if response.is_error:
            _raise_api_error(method, path, response, payload)
        return payload


def _decode(response: httpx.Response) -> Any:
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError:
        return None


def _raise_api_error(method: str, path: str, response: httpx.Response, payload: Any) -> None:
    error_type: str | None = None
    message = response.reason_phrase or "request failed"
    if isinstance(payload, dict) and "error" in payload:
        try:
            error = ErrorResponse.model_validate(payload)
        except ValidationError:
            pass
        else:
            error_type = error.error_type
            message = error.message
    log.error("Airtable API error %s on %s %s: %s", response.status_code, method, path, message)
    raise AirtableAPIError(
        f"Airtable {method} {path} returned {response.status_code}: {message}",
        status_code=response.status_code,
        error_type=error_type,
    )
