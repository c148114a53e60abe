from typing import Iterable

from src.health.domain.models import (
    DomainStatus,
    DomainStatusKind,
    HostnameObservation,
    TriageResult,
)

FAILURE_THRESHOLD = 3
# More than total // SANITY_DIVISOR expired domains trips the circuit breaker.
SANITY_DIVISOR = 10

DNS_ERROR_MARKER = "dns error"
BODY_TAG_MARKER = "<body class="
BODY_CLASS_MARKER = "mediawiki"
BODY_CLASS_SEARCH_LIMIT = 1000
PLATFORM_MARKERS: tuple[str, ...] = ("footer-mirahezeico", "meta.miraheze.org")
WIKI_NOT_FOUND_MARKER = "<title>Wiki not found</title>"
DOMAIN_MISCONFIGURED_MARKER = "domain misconfigured"
EXPIRED_MARKER = "expired"


def has_mediawiki_body_class(body: str) -> bool:
    start = body.find(BODY_TAG_MARKER)
    while start != -1:
        attr_start = start + len(BODY_TAG_MARKER)
        window = body[attr_start : attr_start + BODY_CLASS_SEARCH_LIMIT + len(BODY_CLASS_MARKER)]
        tag_end = window.find(">")
        if tag_end != -1:
            window = window[:tag_end]
        if BODY_CLASS_MARKER in window:
            return True
        start = body.find(BODY_TAG_MARKER, attr_start)
    return False


def classify_page_content(body: str) -> DomainStatus:
    # Order matters: the later checks are broader and would shadow the earlier ones.
    if has_mediawiki_body_class(body):
        if any(marker in body for marker in PLATFORM_MARKERS):
            return DomainStatus(DomainStatusKind.OK)
        return DomainStatus(DomainStatusKind.FOREIGN_MEDIAWIKI_SITE)
    if WIKI_NOT_FOUND_MARKER in body:
        return DomainStatus(DomainStatusKind.WIKI_NOT_FOUND)
    lower = body.lower()
    if DOMAIN_MISCONFIGURED_MARKER in lower:
        return DomainStatus(DomainStatusKind.DOMAIN_MISCONFIGURED)
    if EXPIRED_MARKER in lower:
        return DomainStatus(DomainStatusKind.EXPIRED)
    return DomainStatus(DomainStatusKind.GENERIC_WEBSITE)


def classify_transport_error(detail: str) -> DomainStatus:
    if DNS_ERROR_MARKER in detail.lower():
        return DomainStatus(DomainStatusKind.EXPIRED)
    return DomainStatus.unknown(detail)


def triage(observations: Iterable[HostnameObservation]) -> TriageResult:
    healthy: list[HostnameObservation] = []
    cdn_expired: list[HostnameObservation] = []
    ignored: list[HostnameObservation] = []
    for observation in observations:
        if observation.cdn_status.is_other:
            ignored.append(observation)
        elif observation.cdn_status.is_expired:
            cdn_expired.append(observation)
        else:
            healthy.append(observation)
    return TriageResult(healthy=tuple(healthy), cdn_expired=tuple(cdn_expired), ignored=tuple(ignored))


def exceeds_sanity_limit(expired_count: int, total: int, divisor: int = SANITY_DIVISOR) -> bool:
    return expired_count > total // divisor
