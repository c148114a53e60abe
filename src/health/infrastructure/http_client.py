import asyncio
import socket

import aiohttp
from aiohttp import (
    ClientConnectorDNSError,
    ClientConnectorError,
    ClientError,
    ClientPayloadError,
    ServerDisconnectedError,
)

from src.health.application.ports import HttpClientPort
from src.health.domain.errors import TransportError
from src.health.domain.rules import DNS_ERROR_MARKER


class AiohttpHttpClient(HttpClientPort):
    def __init__(
        self,
        user_agent: str = "Miraheze custom domain scanner bot",
        timeout_seconds: float = 30.0,
        connect_timeout_seconds: float = 10.0,
        connector_limit_per_host: int = 2,
        connector_ttl_dns_cache: int = 300,
    ) -> None:
        self.user_agent = user_agent
        self.timeout = aiohttp.ClientTimeout(total=timeout_seconds, connect=connect_timeout_seconds)
        self.connector_limit_per_host = connector_limit_per_host
        self.connector_ttl_dns_cache = connector_ttl_dns_cache
        self._session: aiohttp.ClientSession | None = None

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            connector = aiohttp.TCPConnector(
                limit=0,
                limit_per_host=self.connector_limit_per_host,
                ttl_dns_cache=self.connector_ttl_dns_cache,
            )
            self._session = aiohttp.ClientSession(
                connector=connector,
                timeout=self.timeout,
                headers={"User-Agent": self.user_agent},
            )
        return self._session

    async def fetch(self, url: str) -> tuple[int, str]:
        session = self._get_session()
        try:
            async with session.get(url) as resp:
                raw = await resp.read()
                return resp.status, raw.decode("utf-8", errors="replace")
        except ClientConnectorError as exc:
            if is_dns_failure(exc):
                raise TransportError(f"{DNS_ERROR_MARKER}: {exc}") from exc
            raise TransportError(f"{type(exc).__name__}: {exc}") from exc
        except (ServerDisconnectedError, ClientPayloadError, ClientError, asyncio.TimeoutError) as exc:
            raise TransportError(f"{type(exc).__name__}: {exc}") from exc

    async def aclose(self) -> None:
        if self._session is not None and not self._session.closed:
            await self._session.close()
        self._session = None


def is_dns_failure(exc: ClientConnectorError) -> bool:
    if isinstance(exc, ClientConnectorDNSError):
        return True
    return isinstance(getattr(exc, "os_error", None), socket.gaierror)
