# storefront/services/remote_store.py
import json
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, List

import requests
from requests import RequestException

from storefront.domain.errors import RemoteStoreError
from storefront.utils.retry import http_retry, http_write_retry
from storefront.utils.settings import HTTP_TIMEOUT_SECONDS, REMOTE_STORE_API_KEY, REMOTE_STORE_URL
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


def _json_default(value):
    #money goes over the wire as a decimal string, never a float
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    raise TypeError(f"Not JSON serializable: {type(value).__name__}")


class RemoteStoreGateway:
    """
    Table-level create/read client for a PostgREST-style backend.

    Every failure surfaces as RemoteStoreError; callers never see
    requests exceptions.
    """

    def __init__(
        self,
        base_url: str | None = None,
        api_key: str | None = None,
        access_token: str | None = None,
        timeout: float = HTTP_TIMEOUT_SECONDS,
        session: requests.Session | None = None,
    ):
        self.base_url = (base_url or REMOTE_STORE_URL).rstrip("/")
        self.api_key = api_key if api_key is not None else REMOTE_STORE_API_KEY
        self.access_token = access_token
        self.timeout = timeout
        self.session = session or requests.Session()

    def _headers(self, write: bool = False) -> Dict[str, str]:
        headers = {
            "apikey": self.api_key,
            "Authorization": f"Bearer {self.access_token or self.api_key}",
            "Accept": "application/json",
        }
        if write:
            headers["Content-Type"] = "application/json"
            headers["Prefer"] = "return=representation"
        return headers

    def _url(self, table: str) -> str:
        return f"{self.base_url}/{table}"

    #commands
    def create(self, table: str, record: Dict[str, Any]) -> Dict[str, Any]:
        rows = self._insert(table, record)
        if not rows:
            raise RemoteStoreError(table, None, "insert returned no row")
        return rows[0]

    def create_batch(self, table: str, records: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        if not records:
            return []
        return self._insert(table, records)

    #query
    def query(
        self,
        table: str,
        filters: Dict[str, Any] | None = None,
        limit: int | None = None,
        offset: int = 0,
        order: str | None = None,
        select: str = "*",
    ) -> List[Dict[str, Any]]:
        params: Dict[str, Any] = {"select": select}
        for column, value in (filters or {}).items():
            params[column] = f"eq.{value}"
        if order:
            params["order"] = order
        if limit is not None:
            params["limit"] = limit
        if offset:
            params["offset"] = offset

        try:
            resp = self._get(table, params)
        except RequestException as e:
            raise RemoteStoreError(table, None, str(e)) from e

        rows = self._decode(table, resp)
        if not isinstance(rows, list):
            raise RemoteStoreError(table, resp.status_code, "expected a list of rows")
        return rows

    def _insert(self, table: str, payload) -> List[Dict[str, Any]]:
        body = json.dumps(payload, default=_json_default)
        try:
            resp = self._post(table, body)
        except RequestException as e:
            raise RemoteStoreError(table, None, str(e)) from e

        rows = self._decode(table, resp)
        return rows if isinstance(rows, list) else [rows]

    @http_write_retry()
    def _post(self, table: str, body: str) -> requests.Response:
        url = self._url(table)
        logger.info(f"RemoteStore POST {url}")
        return self.session.post(url, data=body, headers=self._headers(write=True), timeout=self.timeout)

    @http_retry()
    def _get(self, table: str, params: Dict[str, Any]) -> requests.Response:
        url = self._url(table)
        logger.info(f"RemoteStore GET {url}")
        return self.session.get(url, params=params, headers=self._headers(), timeout=self.timeout)

    @staticmethod
    def _decode(table: str, resp: requests.Response):
        if resp.status_code >= 400:
            raise RemoteStoreError(table, resp.status_code, resp.text[:500])
        try:
            return resp.json()
        except ValueError as e:
            raise RemoteStoreError(table, resp.status_code, "response is not JSON") from e
