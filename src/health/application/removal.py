from typing import Sequence

from src.config.logger_config import logger
from src.health.application.ports import HostnameRemoverPort, MaintenancePort, SiteMappingPort
from src.health.domain.errors import MappingFetchError, RemovalStepError


class RemovalCoordinator:
    """Revokes custom domains at the CDN and on the wiki farm.

    A domain only counts as removed when the CDN deletion, the site lookup and
    the maintenance script all succeed. The CDN is handled first so misdirected
    traffic stops as soon as possible; a domain removed at the CDN but still
    registered on the farm is left for the next run or manual follow-up.
    """

    def __init__(
        self,
        hostname_remover: HostnameRemoverPort,
        site_mapping: SiteMappingPort,
        maintenance: MaintenancePort,
    ) -> None:
        self.hostname_remover = hostname_remover
        self.site_mapping = site_mapping
        self.maintenance = maintenance

    def remove(self, domains: Sequence[str]) -> list[str]:
        if not domains:
            return []

        try:
            domain_to_site = self.site_mapping.fetch_mapping()
        except MappingFetchError as exc:
            logger.error("Removal pass skipped, domain to site mapping unavailable: {}", exc)
            return []

        removed: list[str] = []
        for domain in domains:
            if self._remove_one(domain, domain_to_site):
                removed.append(domain)
        logger.info("Removal pass finished: requested={}, removed={}", len(domains), len(removed))
        return removed

    def _remove_one(self, domain: str, domain_to_site: dict[str, str]) -> bool:
        try:
            self.hostname_remover.delete_hostname(domain)
        except RemovalStepError as exc:
            logger.error("CDN removal failed, will retry next run: {}", exc)
            return False

        site_id = domain_to_site.get(domain)
        if site_id is None:
            logger.warning("No site id found for domain {}, removed at CDN only and needs manual follow-up", domain)
            return False

        logger.info("Removing custom domain {} from site {}", domain, site_id)
        try:
            self.maintenance.remove_custom_domain(site_id)
        except RemovalStepError as exc:
            logger.error("Maintenance script failed for {}: {}", domain, exc)
            return False

        logger.success("Custom domain {} removed from CDN and site {}", domain, site_id)
        return True
