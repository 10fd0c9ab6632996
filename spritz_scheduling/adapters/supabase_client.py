"""
Minimal Supabase (PostgREST) client for reading and updating tables.
"""

import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

import requests

from ..domain.exceptions import StoreError

logger = logging.getLogger(__name__)

# (column, operator, value) - operator is a PostgREST filter such as "eq" or "in"
Filter = Tuple[str, str, Any]


class SupabaseRestClient:
    """
    Client for the Supabase REST API using the service-role key.

    Queries go to ``{url}/rest/v1/{table}`` with PostgREST filter syntax.
    """

    def __init__(
        self,
        url: str,
        service_role_key: str,
        timeout: float = 10.0,
        session: Optional[requests.Session] = None,
    ):
        """
        Initialize the client.

        Args:
            url: Supabase project URL
            service_role_key: Service role key (bypasses row level security)
            timeout: Per-request timeout in seconds
            session: Optional requests session to reuse connections
        """
        self.rest_url = f"{url.rstrip('/')}/rest/v1"
        self.timeout = timeout
        self.session = session or requests.Session()
        self.headers = {
            "apikey": service_role_key,
            "Authorization": f"Bearer {service_role_key}",
            "Content-Type": "application/json",
        }

    def select(
        self,
        table: str,
        columns: str = "*",
        filters: Sequence[Filter] = (),
    ) -> List[Dict[str, Any]]:
        """
        Fetch rows matching all filters.

        Raises:
            StoreError: If the request fails or returns a non-list body
        """
        params: List[Tuple[str, str]] = [("select", columns)]
        params.extend(self._encode_filters(filters))

        data = self._request("GET", table, params=params)
        if not isinstance(data, list):
            raise StoreError(f"Unexpected response from {table}: {data!r}")
        return data

    def select_one(
        self,
        table: str,
        columns: str = "*",
        filters: Sequence[Filter] = (),
    ) -> Optional[Dict[str, Any]]:
        """Fetch the first matching row, or None."""
        params: List[Tuple[str, str]] = [("select", columns), ("limit", "1")]
        params.extend(self._encode_filters(filters))

        data = self._request("GET", table, params=params)
        if not isinstance(data, list):
            raise StoreError(f"Unexpected response from {table}: {data!r}")
        return data[0] if data else None

    def update(
        self,
        table: str,
        values: Mapping[str, Any],
        filters: Sequence[Filter],
    ) -> None:
        """Update rows matching all filters."""
        if not filters:
            raise StoreError(f"Refusing to update every row of {table}")

        self._request(
            "PATCH",
            table,
            params=list(self._encode_filters(filters)),
            json=dict(values),
            extra_headers={"Prefer": "return=minimal"},
        )

    def _request(
        self,
        method: str,
        table: str,
        params: List[Tuple[str, str]],
        json: Optional[Dict[str, Any]] = None,
        extra_headers: Optional[Dict[str, str]] = None,
    ) -> Any:
        url = f"{self.rest_url}/{table}"
        headers = dict(self.headers)
        if extra_headers:
            headers.update(extra_headers)

        logger.debug("Supabase %s %s %s", method, table, params)

        try:
            response = self.session.request(
                method,
                url,
                headers=headers,
                params=params,
                json=json,
                timeout=self.timeout,
            )
            response.raise_for_status()
        except requests.exceptions.RequestException as e:
            raise StoreError(f"Supabase {method} {table} failed: {e}") from e

        if not response.content:
            return None

        try:
            return response.json()
        except ValueError as e:
            raise StoreError(f"Invalid JSON from Supabase {table}: {e}") from e

    @staticmethod
    def _encode_filters(filters: Iterable[Filter]) -> Iterable[Tuple[str, str]]:
        """
        Translate filters into PostgREST query parameters.

        Example: ("status", "in", ["pending", "confirmed"]) -> ("status", "in.(pending,confirmed)")
        """
        for column, operator, value in filters:
            if operator == "in":
                joined = ",".join(str(item) for item in value)
                yield column, f"in.({joined})"
            elif isinstance(value, bool):
                yield column, f"{operator}.{str(value).lower()}"
            else:
                yield column, f"{operator}.{value}"
