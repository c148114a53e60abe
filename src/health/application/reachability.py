import asyncio
from typing import Sequence

from tqdm import tqdm

from src.config.logger_config import logger
from src.health.application.ports import HttpClientPort
from src.health.domain.errors import TransportError
from src.health.domain.models import DomainStatus
from src.health.domain.rules import classify_page_content, classify_transport_error


class ReachabilityClassifier:
    def __init__(self, http_client: HttpClientPort, concurrency: int = 5, show_progress: bool = True) -> None:
        self.http_client = http_client
        self.show_progress = show_progress
        self.concurrency = max(1, concurrency)

    async def classify(self, domain: str) -> DomainStatus:
        url = f"https://{domain}"
        try:
            _status_code, body = await self.http_client.fetch(url)
        except TransportError as exc:
            status = classify_transport_error(str(exc))
        except Exception as exc:
            logger.exception("Reachability check for {} failed unexpectedly", domain)
            status = DomainStatus.unknown(f"{type(exc).__name__}: {exc}")
        else:
            status = classify_page_content(body)
        logger.debug("Reachability check: domain={}, status={}", domain, status)
        return status

    async def classify_many(self, domains: Sequence[str]) -> dict[str, DomainStatus]:
        results: dict[str, DomainStatus] = {}
        if not domains:
            return results

        semaphore = asyncio.Semaphore(self.concurrency)
        progress = tqdm(
            total=len(domains),
            desc="Reachability checks",
            unit="domain",
            leave=True,
            disable=not self.show_progress,
        )

        async def _bounded(domain: str) -> None:
            async with semaphore:
                results[domain] = await self.classify(domain)
                progress.update(1)

        try:
            await asyncio.gather(*(_bounded(domain) for domain in domains))
        finally:
            progress.close()
            await self.http_client.aclose()
        return {domain: results[domain] for domain in domains}
