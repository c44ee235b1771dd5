"""
REST client for the hosted backend (Supabase / PostgREST)

All persistence, product search ranking and geospatial lookups live in the
backend. This client only speaks its REST interface:
- Remote procedure calls: POST /rest/v1/rpc/<function>
- Table reads:            GET /rest/v1/<table>?<filters>
- Inserts:                POST /rest/v1/<table>
- Deletes:                DELETE /rest/v1/<table>?<filters>

Every failure (HTTP error, timeout, bad JSON) surfaces as BaasError.
"""

import logging
from typing import Any, Dict, List, Optional, Tuple, Union

import requests

logger = logging.getLogger(__name__)

Row = Dict[str, Any]

# PostgREST / Postgres error codes the app cares about
UNIQUE_VIOLATION = "23505"
NO_ROWS = "PGRST116"


class BaasError(Exception):
    """Raised when the backend rejects or fails a request"""

    def __init__(self, message: str, code: Optional[str] = None, status: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.code = code
        self.status = status


class BaasClient:
    """Client for the backend's REST interface"""

    TIMEOUT = 10  # seconds

    def __init__(self, url: str, api_key: str, session: Optional[requests.Session] = None):
        """
        Initialize the client.

        Args:
            url: Project URL (e.g., https://xyz.supabase.co)
            api_key: Anon key for the app, service role key for admin scripts
            session: Optional requests session (shared connection pool)

        Raises:
            ValueError: If url or api_key is missing
        """
        if not url or not api_key:
            raise ValueError("Backend URL and API key are required")

        self.base_url = f"{url.rstrip('/')}/rest/v1"
        self.session = session or requests.Session()
        self.session.headers.update({
            "apikey": api_key,
            "Authorization": f"Bearer {api_key}",
            "Content-Type": "application/json",
        })
        logger.info(f"BaasClient initialized for {url}")

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def rpc(self, function: str, params: Optional[Dict[str, Any]] = None) -> Any:
        """Call a remote procedure and return its JSON result"""
        logger.debug(f"RPC {function}({params})")
        response = self._request("POST", f"rpc/{function}", json=params or {})
        return self._json(response)

    def select(
        self,
        table: str,
        columns: str = "*",
        filters: Optional[Dict[str, Any]] = None,
        order: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None,
        ilike: Optional[Tuple[str, str]] = None,
        single: bool = False,
        count: bool = False,
    ) -> Union[List[Row], Row, Tuple[List[Row], Optional[int]]]:
        """
        Read rows from a table or view.

        Args:
            table: Table or view name
            columns: PostgREST select list (embeds like "*,store:stores(*)" allowed)
            filters: Equality filters {column: value}
            order: Column to order by
            descending: Order direction
            limit: Maximum rows
            ilike: (column, pattern) case-insensitive match, "%" wildcards
            single: Return exactly one row (raises BaasError otherwise)
            count: Also return the exact total count

        Returns:
            List of rows, a single row, or (rows, total) when count=True
        """
        params = {"select": columns}
        params.update(self._eq_filters(filters))
        if ilike:
            column, pattern = ilike
            params[column] = f"ilike.{pattern.replace('%', '*')}"
        if order:
            params["order"] = f"{order}.{'desc' if descending else 'asc'}"
        if limit is not None:
            params["limit"] = str(limit)

        headers = {}
        if single:
            headers["Accept"] = "application/vnd.pgrst.object+json"
        if count:
            headers["Prefer"] = "count=exact"

        response = self._request("GET", table, params=params, headers=headers)
        data = self._json(response)

        if count:
            return data, self._parse_count(response.headers.get("Content-Range"))
        return data

    def insert(
        self,
        table: str,
        rows: Union[Row, List[Row]],
        returning: bool = True,
        single: bool = False,
    ) -> Any:
        """
        Insert one or many rows.

        Returns:
            Inserted rows (or one row when single=True); None if returning=False
        """
        headers = {"Prefer": "return=representation" if returning else "return=minimal"}
        if single:
            headers["Accept"] = "application/vnd.pgrst.object+json"

        response = self._request("POST", table, json=rows, headers=headers)
        if not returning:
            return None
        return self._json(response)

    def delete(self, table: str, filters: Dict[str, str]) -> None:
        """
        Delete rows matching raw PostgREST filters, e.g. {"id": "neq.never-match"}.

        PostgREST refuses unfiltered deletes, so at least one filter is required.
        """
        if not filters:
            raise ValueError("delete requires at least one filter")
        self._request("DELETE", table, params=dict(filters))

    def health_check(self) -> bool:
        """Check whether the backend answers"""
        try:
            self._request("GET", "")
            logger.info("✓ Backend health check passed")
            return True
        except BaasError as e:
            logger.error(f"✗ Backend health check failed: {e}")
            return False

    def close(self) -> None:
        self.session.close()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    @staticmethod
    def _eq_filters(filters: Optional[Dict[str, Any]]) -> Dict[str, str]:
        return {column: f"eq.{value}" for column, value in (filters or {}).items()}

    @staticmethod
    def _parse_count(content_range: Optional[str]) -> Optional[int]:
        # Content-Range: 0-24/3573 or */0
        if not content_range or "/" not in content_range:
            return None
        total = content_range.rsplit("/", 1)[1]
        return int(total) if total.isdigit() else None

    def _request(self, method: str, path: str, **kwargs) -> requests.Response:
        url = f"{self.base_url}/{path}" if path else f"{self.base_url}/"
        try:
            response = self.session.request(method, url, timeout=self.TIMEOUT, **kwargs)
        except requests.exceptions.Timeout:
            msg = f"Timeout calling {method} {path}"
            logger.warning(msg)
            raise BaasError(msg)
        except requests.exceptions.RequestException as e:
            msg = f"Request to {method} {path} failed: {e}"
            logger.error(msg)
            raise BaasError(msg)

        if not response.ok:
            raise self._error_from_response(response)
        return response

    @staticmethod
    def _json(response: requests.Response) -> Any:
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise BaasError(f"Invalid JSON response: {e}", status=response.status_code)

    @staticmethod
    def _error_from_response(response: requests.Response) -> BaasError:
        try:
            body = response.json()
        except ValueError:
            body = {}
        if not isinstance(body, dict):
            body = {}

        message = body.get("message") or f"HTTP {response.status_code}"
        return BaasError(message, code=body.get("code"), status=response.status_code)
