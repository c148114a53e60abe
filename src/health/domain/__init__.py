"""Domain models and deterministic rules for domain health checks."""

from src.health.domain.errors import (
    ConfigurationError,
    DomainHealthError,
    FetchError,
    MappingFetchError,
    RemovalStepError,
    SanityCheckError,
    TransportError,
)
from src.health.domain.models import (
    CdnStatus,
    CdnStatusKind,
    DomainStatus,
    DomainStatusKind,
    FailureRecord,
    HealthRunReport,
    HostnameObservation,
    TriageResult,
)
from src.health.domain.rules import classify_page_content, classify_transport_error, exceeds_sanity_limit, triage

__all__ = [
    "CdnStatus",
    "CdnStatusKind",
    "classify_page_content",
    "classify_transport_error",
    "ConfigurationError",
    "DomainHealthError",
    "DomainStatus",
    "DomainStatusKind",
    "exceeds_sanity_limit",
    "FailureRecord",
    "FetchError",
    "HealthRunReport",
    "HostnameObservation",
    "MappingFetchError",
    "RemovalStepError",
    "SanityCheckError",
    "TransportError",
    "TriageResult",
    "triage",
]
