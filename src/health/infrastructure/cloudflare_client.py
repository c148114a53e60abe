import time
from typing import Any
from urllib.parse import quote

import requests

from src.config.logger_config import logger
from src.health.domain.errors import FetchError, RemovalStepError
from src.health.domain.models import CdnStatus, HostnameObservation


class CloudflareClient:
    """Custom hostname API of a Cloudflare for SaaS zone.

    Acts as the status source (listing every hostname with its SSL status) and
    as the CDN side of domain removal.
    """

    def __init__(
        self,
        token: str,
        zone_id: str,
        api_base: str = "https://api.cloudflare.com/client/v4",
        page_size: int = 50,
        page_delay_seconds: float = 0.1,
        timeout_seconds: float = 30.0,
        retries: int = 3,
        user_agent: str | None = None,
        session: requests.Session | None = None,
    ) -> None:
        self.zone_id = zone_id
        self.api_base = api_base.rstrip("/")
        self.page_size = page_size
        self.page_delay_seconds = page_delay_seconds
        self.timeout_seconds = timeout_seconds
        self.retries = max(1, retries)
        self.session = session or requests.Session()
        self.session.headers.update({"Authorization": f"Bearer {token}"})
        if user_agent:
            self.session.headers.update({"User-Agent": user_agent})

    @property
    def hostnames_url(self) -> str:
        return f"{self.api_base}/zones/{self.zone_id}/custom_hostnames"

    def fetch_all(self) -> list[HostnameObservation]:
        result: list[HostnameObservation] = []
        page = 1
        while True:
            entries = self._fetch_page(page)
            if not entries:
                break
            result.extend(self._parse_entry(entry, page) for entry in entries)
            page += 1
            time.sleep(self.page_delay_seconds)
        logger.info("Fetched {} custom hostnames from Cloudflare in {} pages", len(result), page - 1)
        return result

    def delete_hostname(self, hostname: str) -> None:
        url = f"{self.hostnames_url}/{quote(hostname, safe='')}"
        try:
            resp = self.session.delete(url, timeout=self.timeout_seconds)
        except requests.RequestException as exc:
            raise RemovalStepError(hostname, "cdn_delete", f"{type(exc).__name__}: {exc}") from exc
        if not 200 <= resp.status_code < 300:
            raise RemovalStepError(hostname, "cdn_delete", f"HTTP {resp.status_code}: {resp.text[:500]}")
        logger.info("Deleted custom hostname {} from Cloudflare", hostname)

    def _fetch_page(self, page: int) -> list[Any]:
        params = {"per_page": self.page_size, "page": page}
        for attempt in range(1, self.retries + 1):
            try:
                resp = self.session.get(self.hostnames_url, params=params, timeout=self.timeout_seconds)
            except (requests.ConnectionError, requests.Timeout) as exc:
                self._backoff_or_raise(attempt, f"{type(exc).__name__}: {exc}", page)
                continue
            except requests.RequestException as exc:
                raise FetchError(f"Request for page {page} failed: {exc}") from exc

            if resp.status_code >= 500 or resp.status_code == 429:
                self._backoff_or_raise(attempt, f"HTTP {resp.status_code}", page)
                continue
            if not 200 <= resp.status_code < 300:
                raise FetchError(f"HTTP {resp.status_code} for page {page}: {resp.text[:500]}")

            try:
                data = resp.json()
            except ValueError as exc:
                raise FetchError(f"Malformed JSON for page {page}: {exc}") from exc
            entries = data.get("result") if isinstance(data, dict) else None
            if not isinstance(entries, list):
                raise FetchError(f"Response for page {page} has no result list")
            return entries

        raise FetchError(f"Failed to fetch page {page}")

    def _backoff_or_raise(self, attempt: int, reason: str, page: int) -> None:
        if attempt == self.retries:
            logger.error("Failed to fetch page {} after {} attempts. Error: {}", page, self.retries, reason)
            raise FetchError(f"Page {page} failed after {self.retries} attempts: {reason}")
        wait_time = 2**attempt
        logger.warning("Cloudflare unstable ({}). Retrying page {} in {}s...", reason, page, wait_time)
        time.sleep(wait_time)

    @staticmethod
    def _parse_entry(entry: Any, page: int) -> HostnameObservation:
        if not isinstance(entry, dict):
            raise FetchError(f"Malformed hostname entry on page {page}: {entry!r}")
        hostname = entry.get("hostname")
        ssl = entry.get("ssl")
        status = ssl.get("status") if isinstance(ssl, dict) else None
        if not isinstance(hostname, str) or not isinstance(status, str):
            raise FetchError(f"Hostname entry on page {page} lacks hostname or ssl.status: {entry!r}")
        return HostnameObservation(domain=hostname, cdn_status=CdnStatus.parse(status))
