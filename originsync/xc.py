import logging

import httpx
import pydantic_core

from .config import XCConfiguration
from .errors import ApiError, MarshallingError, NotFound, TransportError


logger = logging.getLogger(__name__)


class Auth(httpx.Auth):
    """
    Authenticator class for the XC API, using an API token.
    """
    def __init__(self, token):
        self._token = token

    def auth_flow(self, request):
        request.headers["Authorization"] = f"APIToken {self._token}"
        yield request


class OriginPoolClient:
    """
    Client for origin pools in a single XC namespace.
    """
    def __init__(self, config: XCConfiguration, transport = None):
        self._namespace = config.namespace
        self._client = httpx.AsyncClient(
            base_url = f"{config.api_domain.rstrip('/')}/api/config",
            auth = Auth(config.token),
            timeout = config.request_timeout,
            transport = transport
        )

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_value, traceback):
        await self.aclose()

    async def aclose(self):
        await self._client.aclose()

    def _path(self, name = None):
        path = f"/namespaces/{self._namespace}/origin_pools"
        return f"{path}/{name}" if name else path

    async def _request(self, method, path, **kwargs):
        try:
            response = await self._client.request(method, path, **kwargs)
        except httpx.HTTPError as exc:
            raise TransportError(f"error sending {method} request to {path}: {exc}") from exc
        logger.debug("%s %s returned %s", method, path, response.status_code)
        return response

    def _raise_for_status(self, response):
        if response.is_success:
            return
        error_class = NotFound if response.status_code == 404 else ApiError
        raise error_class(response.status_code, response.reason_phrase, response.text)

    def _body(self, pool):
        try:
            return pool.model_dump(mode = "json")
        except (pydantic_core.PydanticSerializationError, TypeError, ValueError) as exc:
            raise MarshallingError(f"error marshalling origin pool {pool.name}: {exc}") from exc

    async def exists(self, name):
        """
        Returns true if the named origin pool exists, false otherwise.

        Any response other than success or not found is raised as an error.
        """
        response = await self._request("GET", self._path(name))
        if response.status_code == 404:
            return False
        self._raise_for_status(response)
        return True

    async def create(self, pool):
        """
        Creates the given origin pool.
        """
        body = self._body(pool)
        response = await self._request("POST", self._path(), json = body)
        self._raise_for_status(response)

    async def replace(self, pool):
        """
        Replaces the existing origin pool with the same name as the given pool.
        """
        body = self._body(pool)
        response = await self._request("PUT", self._path(pool.name), json = body)
        self._raise_for_status(response)

    async def delete(self, name):
        """
        Deletes the named origin pool, even if other objects still refer to it.
        """
        response = await self._request(
            "DELETE",
            self._path(name),
            json = {
                "fail_if_referred": False,
                "name": name,
                "namespace": self._namespace,
            }
        )
        self._raise_for_status(response)
