"""
DigitalOcean control-plane client.

Talks to the DigitalOcean v2 REST API over HTTPS with httpx:

    GET    /droplets                     list droplets (paginated)
    GET    /droplets/{id}/actions        list recent droplet actions (newest page)
    GET    /droplets/{id}/snapshots      list droplet snapshots (paginated)
    POST   /droplets/{id}/actions        power_off / power_on / snapshot
    DELETE /snapshots/{id}               delete a snapshot

Invariants:
    - Every request is bounded by the configured timeout
    - httpx exceptions never leak; they are translated to ProviderError
    - 401/403 always surface as AuthenticationError
    - A body or record that does not have the documented shape surfaces as
      MalformedResponseError, never as KeyError or TypeError
    - Actions are read from the first (newest) page only; the provider
      serializes actions per droplet, so an in-flight snapshot is always
      among the newest
    - The token is only ever sent in the Authorization header

How to change safely:
    - Keep pagination following links.pages.next rather than computing pages
    - Test new endpoints with httpx.MockTransport
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Optional, TypeVar

import httpx

from .._version import __version__
from ..config import DEFAULT_API_URL
from ..errors import (
    AuthenticationError,
    MalformedResponseError,
    ProviderConnectionError,
    ProviderResponseError,
    ProviderTimeoutError,
)
from .base import Action, Droplet, Snapshot

logger = logging.getLogger(__name__)

T = TypeVar("T")

PER_PAGE = 200

# Pages of droplet actions read for the in-flight guard
ACTION_PAGES = 1


class DigitalOceanProvider:
    """CloudProvider implementation for DigitalOcean.

    Attributes:
        base_url: API base URL
        timeout: Per-request deadline in seconds

    Example:
        >>> provider = DigitalOceanProvider(token="dop_v1_...")
        >>> await provider.connect()
        >>> droplets = await provider.list_droplets()
        >>> await provider.close()
    """

    def __init__(
        self,
        token: str,
        base_url: str = DEFAULT_API_URL,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        """Initialize the client.

        Args:
            token: API access token
            base_url: API base URL
            timeout: Per-request deadline in seconds
            transport: Optional httpx transport (tests use MockTransport)
        """
        self.base_url = base_url
        self.timeout = timeout
        self._token = token
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    @property
    def is_connected(self) -> bool:
        return self._client is not None

    async def connect(self) -> None:
        """Create the HTTP client."""
        if self._client:
            return

        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            headers={
                "Authorization": f"Bearer {self._token}",
                "Content-Type": "application/json",
                "User-Agent": f"surf/{__version__}",
            },
            timeout=httpx.Timeout(self.timeout),
            transport=self._transport,
        )
        logger.debug(f"DigitalOcean client ready at {self.base_url}")

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None

    async def _request(
        self,
        method: str,
        url: str,
        params: Optional[Dict[str, Any]] = None,
        json: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        """Send one request and decode the JSON body.

        Returns:
            Decoded body, or an empty dict for 204 responses

        Raises:
            ProviderError: For transport failures and error statuses
        """
        if not self._client:
            raise ProviderConnectionError("Not connected", url=url)

        try:
            response = await self._client.request(method, url, params=params, json=json)
        except httpx.TimeoutException as e:
            raise ProviderTimeoutError(f"{method} {url} timed out: {e}", url=url)
        except httpx.TransportError as e:
            raise ProviderConnectionError(f"{method} {url} failed: {e}", url=url)

        if response.status_code in (401, 403):
            raise AuthenticationError(
                f"{method} {url} was rejected: {self._error_message(response)}",
                status_code=response.status_code,
            )

        if response.is_error:
            body = self._error_body(response)
            raise ProviderResponseError(
                f"{method} {url} returned {response.status_code}: {self._error_message(response)}",
                status_code=response.status_code,
                error_id=body.get("id"),
            )

        if response.status_code == 204 or not response.content:
            return {}

        try:
            body = response.json()
        except ValueError as e:
            raise MalformedResponseError(f"{method} {url} returned invalid JSON: {e}", url=url)

        if not isinstance(body, dict):
            raise MalformedResponseError(
                f"{method} {url} returned a JSON {type(body).__name__}, expected an object",
                url=url,
            )
        return body

    @staticmethod
    def _error_body(response: httpx.Response) -> Dict[str, Any]:
        try:
            body = response.json()
        except ValueError:
            return {}
        return body if isinstance(body, dict) else {}

    def _error_message(self, response: httpx.Response) -> str:
        body = self._error_body(response)
        return body.get("message") or response.reason_phrase or "unknown error"

    async def _paginate(
        self,
        url: str,
        key: str,
        max_pages: Optional[int] = None,
    ) -> List[Any]:
        """Collect ``key`` items across pages.

        Pages are followed through ``links.pages.next`` until it is absent
        or ``max_pages`` pages have been read.

        Raises:
            MalformedResponseError: If a page does not have the documented shape
        """
        items: List[Any] = []
        next_url: Optional[str] = url
        params: Optional[Dict[str, Any]] = {"per_page": PER_PAGE}
        pages = 0

        while next_url:
            body = await self._request("GET", next_url, params=params)
            page = body.get(key) or []
            if not isinstance(page, list):
                raise MalformedResponseError(
                    f"GET {next_url}: {key!r} is a {type(page).__name__}, expected a list",
                    url=next_url,
                )
            items.extend(page)
            pages += 1
            if max_pages is not None and pages >= max_pages:
                break

            try:
                next_url = ((body.get("links") or {}).get("pages") or {}).get("next")
            except AttributeError:
                raise MalformedResponseError(f"GET {next_url}: malformed links", url=next_url)
            # next links already carry their query string
            params = None

        return items

    @staticmethod
    def _record(parse: Callable[[Dict[str, Any]], T], data: Any, url: str) -> T:
        try:
            return parse(data)
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            raise MalformedResponseError(f"{url}: malformed record {data!r} ({e!r})", url=url)

    async def list_droplets(self) -> List[Droplet]:
        url = "/droplets"
        items = await self._paginate(url, "droplets")
        return [self._record(Droplet.from_dict, d, url) for d in items]

    async def list_actions(self, droplet_id: int) -> List[Action]:
        url = f"/droplets/{droplet_id}/actions"
        items = await self._paginate(url, "actions", max_pages=ACTION_PAGES)
        return [self._record(Action.from_dict, a, url) for a in items]

    async def list_snapshots(self, droplet_id: int) -> List[Snapshot]:
        url = f"/droplets/{droplet_id}/snapshots"
        items = await self._paginate(url, "snapshots")
        return [self._record(Snapshot.from_dict, s, url) for s in items]

    async def _droplet_action(self, droplet_id: int, payload: Dict[str, Any]) -> Action:
        url = f"/droplets/{droplet_id}/actions"
        body = await self._request("POST", url, json=payload)
        return self._record(Action.from_dict, body.get("action") or {"type": payload["type"]}, url)

    async def power_off(self, droplet_id: int) -> Action:
        return await self._droplet_action(droplet_id, {"type": "power_off"})

    async def power_on(self, droplet_id: int) -> Action:
        return await self._droplet_action(droplet_id, {"type": "power_on"})

    async def create_snapshot(self, droplet_id: int, name: str) -> Action:
        return await self._droplet_action(droplet_id, {"type": "snapshot", "name": name})

    async def delete_snapshot(self, snapshot_id: str) -> None:
        await self._request("DELETE", f"/snapshots/{snapshot_id}")
