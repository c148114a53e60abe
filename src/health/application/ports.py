from typing import Iterable, Protocol, Sequence, runtime_checkable

from src.health.domain.models import FailureRecord, HealthRunReport, HostnameObservation


@runtime_checkable
class HttpClientPort(Protocol):
    async def fetch(self, url: str) -> tuple[int, str]: ...
    """Return (status code, body text). Raise TransportError when no response arrives."""

    async def aclose(self) -> None: ...
    """Release the underlying connection pool."""


@runtime_checkable
class StatusSourcePort(Protocol):
    def fetch_all(self) -> list[HostnameObservation]: ...
    """Return every custom hostname with its CDN status or raise FetchError."""


@runtime_checkable
class HostnameRemoverPort(Protocol):
    def delete_hostname(self, hostname: str) -> None: ...
    """Delete one custom hostname at the CDN or raise RemovalStepError."""


@runtime_checkable
class SiteMappingPort(Protocol):
    def fetch_mapping(self) -> dict[str, str]: ...
    """Return domain -> site id or raise MappingFetchError."""


@runtime_checkable
class MaintenancePort(Protocol):
    def remove_custom_domain(self, site_id: str) -> None: ...
    """De-register the custom domain of a site or raise RemovalStepError."""


@runtime_checkable
class FailureLedgerPort(Protocol):
    def record_failure(self, domain: str, epoch: int) -> None: ...

    def domains_at_or_above(self, threshold: int) -> list[str]: ...

    def prune_stale(self, epoch: int) -> int: ...

    def delete(self, domains: Iterable[str]) -> int: ...

    def get(self, domain: str) -> FailureRecord | None: ...

    def close(self) -> None: ...


@runtime_checkable
class RemovalPort(Protocol):
    def remove(self, domains: Sequence[str]) -> list[str]: ...
    """Return the subset of domains that were fully removed."""


@runtime_checkable
class ReportSinkPort(Protocol):
    def write_report(self, report: HealthRunReport) -> None: ...
    """Persist the summary of one run."""
