from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Iterable, List, Optional

import httpx
from pydantic import ValidationError

from roleguard.access.roles import Role, normalize_role, normalize_roles
from roleguard.config.settings import settings
from roleguard.errors import AuthorityHTTPError, AuthorityResponseInvalid, AuthorityTimeout
from roleguard.roles.model import RemoteRoleData

log = logging.getLogger(__name__)


class RoleAuthority:
    """Remote source of truth for a principal's roles."""

    async def fetch_role_data(self) -> RemoteRoleData:
        raise NotImplementedError

    async def set_role(self, role: Role) -> None:
        raise NotImplementedError


class HTTPRoleAuthority(RoleAuthority):
    """
    Role authority over HTTP.

    - ``GET {base_url}/data`` -> ``{"currentRole": ..., "availableRoles": [...]}``
    - ``POST {base_url}/set-role`` with ``{"role": ...}``

    The channel is authenticated outside this client (cookies or headers
    supplied through ``client_factory``).
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        *,
        timeout_sec: Optional[float] = None,
        headers: Optional[Dict[str, str]] = None,
        client_factory: Optional[Callable[[], httpx.AsyncClient]] = None,
    ) -> None:
        self.base_url = (base_url or settings.AUTHORITY_URL).rstrip("/")
        self.timeout = timeout_sec if timeout_sec is not None else settings.AUTHORITY_TIMEOUT_SEC
        self._headers = dict(headers or {})
        self._client_factory = client_factory or (
            lambda: httpx.AsyncClient(timeout=self.timeout, headers=self._headers)
        )

    async def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        url = f"{self.base_url}{path}"
        client = self._client_factory()
        try:
            async with client:
                response = await client.request(method, url, **kwargs)
        except httpx.TimeoutException as exc:
            raise AuthorityTimeout(f"{method} {url} timed out") from exc
        except httpx.RequestError as exc:
            raise AuthorityHTTPError(0, f"{method} {url} failed: {exc}") from exc
        if response.status_code >= 400:
            raise AuthorityHTTPError(response.status_code, f"{method} {url} returned {response.status_code}")
        return response

    async def fetch_role_data(self) -> RemoteRoleData:
        response = await self._request("GET", "/data", headers={"Content-Type": "application/json"})
        try:
            return RemoteRoleData.model_validate(response.json())
        except (ValueError, ValidationError) as exc:
            raise AuthorityResponseInvalid(f"malformed role data: {exc}") from exc

    async def set_role(self, role: Role) -> None:
        await self._request("POST", "/set-role", json={"role": role.value})
        log.debug("authority_role_set", extra={"role": role.value})


class InMemoryRoleAuthority(RoleAuthority):
    """Authority kept in process; used for local-only deployments and tests."""

    def __init__(self, available_roles: Iterable[Any], current_role: Any = None):
        self.available_roles: List[Role] = list(normalize_roles(available_roles))
        self.current_role: Optional[Role] = normalize_role(current_role) if current_role else (
            self.available_roles[0] if self.available_roles else None
        )
        self.set_calls: List[Role] = []

    async def fetch_role_data(self) -> RemoteRoleData:
        return RemoteRoleData(
            currentRole=self.current_role.value if self.current_role else None,
            availableRoles=[r.value for r in self.available_roles],
        )

    async def set_role(self, role: Role) -> None:
        if role not in self.available_roles:
            raise AuthorityHTTPError(403, f"role {role.value} not assigned")
        self.current_role = role
        self.set_calls.append(role)


__all__ = ["RoleAuthority", "HTTPRoleAuthority", "InMemoryRoleAuthority"]
