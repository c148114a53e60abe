import asyncio
import socket
import unittest
from types import SimpleNamespace

from aiohttp import ClientConnectorError, ServerDisconnectedError

from src.health.domain.errors import TransportError
from src.health.infrastructure.http_client import AiohttpHttpClient, is_dns_failure

CONNECTION_KEY = SimpleNamespace(host="gone.example.org", port=443, ssl=True)


class FakeResponse:
    def __init__(self, status=200, body=b""):
        self.status = status
        self._body = body

    async def read(self):
        return self._body

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        return False


class FakeSession:
    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.closed = False
        self.urls = []

    def get(self, url):
        self.urls.append(url)
        if self.error is not None:
            raise self.error
        return self.response

    async def close(self):
        self.closed = True


class AiohttpHttpClientTests(unittest.IsolatedAsyncioTestCase):
    async def test_fetch_returns_status_and_lossy_text(self):
        client = AiohttpHttpClient()
        session = FakeSession(FakeResponse(status=404, body=b"<title>Wiki not found</title>\xff"))
        client._session = session

        status, body = await client.fetch("https://a.example.org")

        self.assertEqual(status, 404)
        self.assertEqual(body, "<title>Wiki not found</title>\ufffd")
        self.assertEqual(session.urls, ["https://a.example.org"])

    async def test_dns_failure_is_tagged(self):
        client = AiohttpHttpClient()
        error = ClientConnectorError(CONNECTION_KEY, socket.gaierror(-2, "Name or service not known"))
        client._session = FakeSession(error=error)

        with self.assertRaises(TransportError) as ctx:
            await client.fetch("https://gone.example.org")

        self.assertTrue(str(ctx.exception).startswith("dns error:"))

    async def test_refused_connection_is_not_dns(self):
        client = AiohttpHttpClient()
        client._session = FakeSession(error=ClientConnectorError(CONNECTION_KEY, ConnectionRefusedError(111, "refused")))

        with self.assertRaises(TransportError) as ctx:
            await client.fetch("https://gone.example.org")

        self.assertNotIn("dns error", str(ctx.exception))

    async def test_timeout_and_disconnect_are_transport_errors(self):
        client = AiohttpHttpClient()
        for error in (asyncio.TimeoutError(), ServerDisconnectedError()):
            client._session = FakeSession(error=error)
            with self.assertRaises(TransportError):
                await client.fetch("https://slow.example.org")

    async def test_aclose_closes_session(self):
        client = AiohttpHttpClient()
        session = FakeSession()
        client._session = session
        await client.aclose()
        self.assertTrue(session.closed)
        self.assertIsNone(client._session)

    def test_is_dns_failure_checks_os_error(self):
        self.assertTrue(is_dns_failure(ClientConnectorError(CONNECTION_KEY, socket.gaierror(-3, "Temporary failure"))))
        self.assertFalse(is_dns_failure(ClientConnectorError(CONNECTION_KEY, OSError(113, "No route to host"))))


if __name__ == "__main__":
    unittest.main()
