import json
import unittest
from unittest import mock

import httpx
import pydantic_core

from originsync import models
from originsync.builder import SiteReference, build_origin_pool
from originsync.errors import ApiError, MarshallingError, NotFound, TransportError
from originsync.xc import OriginPoolClient

from .test_builder import xc_config
from .test_models import service_body


POOLS_URL = "https://tenant.console.example.com/api/config/namespaces/apps/origin_pools"


class TestOriginPoolClient(unittest.IsolatedAsyncioTestCase):
    async def asyncSetUp(self):
        self.requests = []
        self.responses = []
        config = xc_config()
        self.client = OriginPoolClient(config, transport = httpx.MockTransport(self.handler))
        self.pool = build_origin_pool(
            models.Service.model_validate(service_body()),
            {"10.0.0.1"},
            SiteReference.from_config(config),
            config
        )

    async def asyncTearDown(self):
        await self.client.aclose()

    def handler(self, request):
        self.requests.append(request)
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response

    def assertRequest(self, request, method, url):
        self.assertEqual(request.method, method)
        self.assertEqual(str(request.url), url)
        self.assertEqual(request.headers["Authorization"], "APIToken secret-token")

    async def test_exists(self):
        self.responses.append(httpx.Response(200, json = {"metadata": {"name": "web"}}))

        self.assertTrue(await self.client.exists("web"))
        self.assertRequest(self.requests[0], "GET", f"{POOLS_URL}/web")

    async def test_does_not_exist(self):
        self.responses.append(httpx.Response(404))

        self.assertFalse(await self.client.exists("web"))

    async def test_exists_unexpected_status_raises(self):
        self.responses.append(httpx.Response(403, text = "forbidden"))

        with self.assertRaises(ApiError) as ctx:
            await self.client.exists("web")
        self.assertEqual(ctx.exception.status_code, 403)
        self.assertNotIsInstance(ctx.exception, NotFound)

    async def test_create(self):
        self.responses.append(httpx.Response(200, json = {}))

        await self.client.create(self.pool)

        request = self.requests[0]
        self.assertRequest(request, "POST", POOLS_URL)
        self.assertEqual(request.headers["Content-Type"], "application/json")
        self.assertEqual(json.loads(request.content), self.pool.model_dump(mode = "json"))

    async def test_create_conflict_raises(self):
        self.responses.append(httpx.Response(409, text = "already exists"))

        with self.assertRaises(ApiError) as ctx:
            await self.client.create(self.pool)
        self.assertEqual(ctx.exception.status_code, 409)
        self.assertIn("already exists", str(ctx.exception))

    async def test_replace(self):
        self.responses.append(httpx.Response(200, json = {}))

        await self.client.replace(self.pool)

        request = self.requests[0]
        self.assertRequest(request, "PUT", f"{POOLS_URL}/web")
        self.assertEqual(json.loads(request.content)["metadata"]["name"], "web")

    async def test_delete(self):
        self.responses.append(httpx.Response(200, json = {}))

        await self.client.delete("web")

        request = self.requests[0]
        self.assertRequest(request, "DELETE", f"{POOLS_URL}/web")
        self.assertEqual(
            json.loads(request.content),
            {"fail_if_referred": False, "name": "web", "namespace": "apps"}
        )

    async def test_delete_absent_raises_not_found(self):
        self.responses.append(httpx.Response(404))

        with self.assertRaises(NotFound):
            await self.client.delete("web")

    async def test_transport_failure_raises(self):
        self.responses.append(httpx.ConnectTimeout("timed out"))

        with self.assertRaises(TransportError):
            await self.client.exists("web")

    async def test_unserialisable_pool_sends_nothing(self):
        pool = mock.Mock()
        pool.name = "web"
        pool.model_dump.side_effect = pydantic_core.PydanticSerializationError("bad value")

        with self.assertRaises(MarshallingError):
            await self.client.create(pool)
        self.assertEqual(self.requests, [])
