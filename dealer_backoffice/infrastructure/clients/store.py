"""Row store (PostgREST) HTTP client for the dealership tables"""

import logging
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

import httpx

from dealer_backoffice.config import settings
from dealer_backoffice.domain.exceptions import StoreAPIError
from dealer_backoffice.infrastructure.observability.logging import log_store_failure
from dealer_backoffice.infrastructure.observability.metrics import store_fetch_failures_counter
from dealer_backoffice.infrastructure.store.mapping import quote_column

logger = logging.getLogger(__name__)

Filter = Tuple[str, str]

DEFAULT_PAGE_SIZE = 1000


def eq(column: str, value: Any) -> Filter:
    return quote_column(column), f"eq.{value}"


def neq(column: str, value: Any) -> Filter:
    return quote_column(column), f"neq.{value}"


def gte(column: str, value: Any) -> Filter:
    return quote_column(column), f"gte.{value}"


def lt(column: str, value: Any) -> Filter:
    return quote_column(column), f"lt.{value}"


def in_(column: str, values: Iterable[Any]) -> Filter:
    joined = ",".join(f'"{v}"' for v in values)
    return quote_column(column), f"in.({joined})"


class RowStoreClient:
    """Client for the hosted row store's REST interface"""

    def __init__(
        self,
        base_url: str | None = None,
        api_key: str | None = None,
        timeout: float | None = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = (base_url or settings.store_api_base).rstrip("/")
        self.api_key = api_key if api_key is not None else settings.store_api_key
        self.timeout = timeout or settings.http_timeout_seconds
        self.transport = transport

    def _headers(self) -> Dict[str, str]:
        return {
            "apikey": self.api_key,
            "Authorization": f"Bearer {self.api_key}",
        }

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.timeout, headers=self._headers(), transport=self.transport)

    def _fail(self, table: str, operation: str, message: str) -> StoreAPIError:
        store_fetch_failures_counter.labels(table=table, operation=operation).inc()
        log_store_failure(table, operation, message)
        return StoreAPIError(message)

    async def select(
        self,
        table: str,
        filters: Sequence[Filter] = (),
        order: str | None = None,
        page_size: int = DEFAULT_PAGE_SIZE,
    ) -> List[Dict[str, Any]]:
        """
        Fetch every row of a table matching the filters.

        Pages through the result with limit/offset until a short page comes back.

        Raises:
            StoreAPIError: On timeout, HTTP errors, or a non-list response
        """
        rows: List[Dict[str, Any]] = []
        offset = 0
        async with self._client() as client:
            try:
                while True:
                    params: List[Tuple[str, Any]] = [("select", "*"), *filters]
                    if order:
                        params.append(("order", order))
                    params += [("limit", page_size), ("offset", offset)]

                    response = await client.get(f"{self.base_url}/rest/v1/{table}", params=params)
                    response.raise_for_status()
                    page = response.json()
                    if not isinstance(page, list):
                        raise TypeError(f"expected a list of rows, got {type(page).__name__}")

                    rows.extend(page)
                    if len(page) < page_size:
                        return rows
                    offset += page_size

            except httpx.TimeoutException as e:
                raise self._fail(table, "select", f"Row store timeout after {self.timeout}s") from e
            except httpx.HTTPStatusError as e:
                raise self._fail(table, "select", f"Row store error: {e.response.status_code}") from e
            except httpx.RequestError as e:
                raise self._fail(table, "select", f"Row store unreachable: {e}") from e
            except (ValueError, TypeError) as e:
                raise self._fail(table, "select", f"Invalid rows from {table}: {e}") from e

    async def upsert(self, table: str, row: Dict[str, Any], on_conflict: str) -> None:
        """
        Insert a row or merge it into the existing row with the same conflict key.

        Raises:
            StoreAPIError: On timeout or HTTP errors
        """
        async with self._client() as client:
            try:
                response = await client.post(
                    f"{self.base_url}/rest/v1/{table}",
                    params={"on_conflict": on_conflict},
                    json=row,
                    headers={"Prefer": "resolution=merge-duplicates,return=minimal"},
                )
                response.raise_for_status()
                logger.info("Row upserted", extra={"table": table, "on_conflict": on_conflict})

            except httpx.TimeoutException as e:
                raise self._fail(table, "upsert", f"Row store timeout after {self.timeout}s") from e
            except httpx.HTTPStatusError as e:
                raise self._fail(table, "upsert", f"Row store error: {e.response.status_code}") from e
            except httpx.RequestError as e:
                raise self._fail(table, "upsert", f"Row store unreachable: {e}") from e
