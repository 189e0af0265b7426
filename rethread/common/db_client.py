"""
Store Client

Thin async transport to the remote SQL store service.

Every query is a POST to ``/db/query`` carrying the statement and its
positional arguments; the execution mode travels as a query parameter.
Failures never raise: callers get ``None`` and carry on with less data.
"""

import logging
from typing import Any, Dict, List, Optional

import httpx

logger = logging.getLogger("rethread.common.db_client")

VALID_MODES = ("single", "multi", "script")


class DbClient:
    """
    Async client for the store's query endpoint.

    Usage:
        client = DbClient(base_url="https://api.seagullflight.com", token="...")
        result = await client.do_query("SELECT 1", [])
        await client.close()
    """

    def __init__(
        self,
        base_url: str,
        token: str,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize store client.

        Args:
            base_url: Store service root URL
            token: Basic auth credential sent with every request
            timeout: Request timeout in seconds
            transport: Optional httpx transport (tests inject a MockTransport)
        """
        self.base_url = base_url.rstrip("/")
        self._token = token
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=httpx.Timeout(timeout),
            transport=transport,
        )

    async def do_query(
        self,
        query: str,
        args: Optional[List[Any]] = None,
        mode: str = "single",
    ) -> Optional[Dict[str, Any]]:
        """
        Run a statement against the store.

        Args:
            query: SQL statement with ``?`` placeholders
            args: Positional arguments for the placeholders
            mode: One of "single", "multi", "script"

        Returns:
            Decoded JSON response (``{"results": [...]}``) or None on any error
        """
        mode = mode or "single"
        if mode not in VALID_MODES:
            logger.error("Invalid query mode %r", mode)
            return None

        try:
            response = await self._client.post(
                "/db/query",
                params={"mode": mode},
                json={"args": args or [], "query": query},
                headers={"Authorization": f"Basic {self._token}"},
            )
            response.raise_for_status()
            return response.json()
        except httpx.HTTPStatusError as e:
            logger.error(
                "Store query failed with status %s: %s",
                e.response.status_code, query.splitlines()[0],
            )
        except (httpx.HTTPError, ValueError) as e:
            logger.error("Error calling store %s/db/query: %s", self.base_url, e)
        return None

    async def close(self) -> None:
        """Close the underlying HTTP connection pool."""
        await self._client.aclose()
