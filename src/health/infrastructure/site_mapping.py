import requests

from src.config.logger_config import logger
from src.health.application.ports import SiteMappingPort
from src.health.domain.errors import MappingFetchError

URL_PREFIX = "https://"


def parse_site_mapping(text: str) -> dict[str, str]:
    """Parse the ``site_id: https://domain/`` feed into domain -> site id.

    Lines that do not split on a colon or whose value is not an https URL are
    skipped. Duplicate domains keep the last site id.
    """
    mapping: dict[str, str] = {}
    for line in text.splitlines():
        line = line.strip()
        if not line:
            continue

        site_id, sep, url_part = line.partition(":")
        if not sep:
            continue
        site_id = site_id.strip()
        url_part = url_part.strip()
        if not url_part.startswith(URL_PREFIX):
            continue

        domain = url_part[len(URL_PREFIX) :].rstrip("/")
        previous = mapping.get(domain)
        if previous is not None and previous != site_id:
            logger.warning(
                "Domain {} is mapped to both {} and {}, using {}",
                domain,
                previous,
                site_id,
                site_id,
            )
        mapping[domain] = site_id
    return mapping


class RemoteSiteMapping(SiteMappingPort):
    def __init__(
        self,
        url: str,
        timeout_seconds: float = 30.0,
        session: requests.Session | None = None,
    ) -> None:
        self.url = url
        self.timeout_seconds = timeout_seconds
        self.session = session or requests.Session()

    def fetch_mapping(self) -> dict[str, str]:
        try:
            resp = self.session.get(self.url, timeout=self.timeout_seconds)
            resp.raise_for_status()
        except requests.RequestException as exc:
            raise MappingFetchError(f"Failed to fetch domain mapping from {self.url}: {exc}") from exc
        mapping = parse_site_mapping(resp.text)
        logger.info("Fetched domain to site mapping: {} domains", len(mapping))
        return mapping
