from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class CdnStatusKind(str, Enum):
    ACTIVE = "active"
    PENDING_VALIDATION = "pending_validation"
    EXPIRED = "expired"
    OTHER = "other"


@dataclass(frozen=True)
class CdnStatus:
    kind: CdnStatusKind
    raw: str

    @classmethod
    def parse(cls, raw: str) -> "CdnStatus":
        for kind in (CdnStatusKind.ACTIVE, CdnStatusKind.PENDING_VALIDATION, CdnStatusKind.EXPIRED):
            if raw == kind.value:
                return cls(kind=kind, raw=raw)
        return cls(kind=CdnStatusKind.OTHER, raw=raw)

    @property
    def is_other(self) -> bool:
        return self.kind is CdnStatusKind.OTHER

    @property
    def is_expired(self) -> bool:
        return self.kind is CdnStatusKind.EXPIRED


@dataclass(frozen=True)
class HostnameObservation:
    domain: str
    cdn_status: CdnStatus


class DomainStatusKind(str, Enum):
    OK = "ok"
    WIKI_NOT_FOUND = "wiki_not_found"
    DOMAIN_MISCONFIGURED = "domain_misconfigured"
    EXPIRED = "expired"
    # MediaWiki site that is not hosted on the platform
    FOREIGN_MEDIAWIKI_SITE = "foreign_mediawiki_site"
    # Any other website
    GENERIC_WEBSITE = "generic_website"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class DomainStatus:
    kind: DomainStatusKind
    detail: str | None = None

    @property
    def is_ok(self) -> bool:
        return self.kind is DomainStatusKind.OK

    @classmethod
    def unknown(cls, detail: str) -> "DomainStatus":
        return cls(kind=DomainStatusKind.UNKNOWN, detail=detail)

    def __str__(self) -> str:
        if self.detail:
            return f"{self.kind.value}({self.detail})"
        return self.kind.value


@dataclass(frozen=True)
class FailureRecord:
    url: str
    fails: int
    epoch: int


@dataclass(frozen=True)
class TriageResult:
    healthy: tuple[HostnameObservation, ...]
    cdn_expired: tuple[HostnameObservation, ...]
    ignored: tuple[HostnameObservation, ...] = field(default_factory=tuple)

    @property
    def total(self) -> int:
        return len(self.healthy) + len(self.cdn_expired)


@dataclass(frozen=True)
class HealthRunReport:
    epoch: int
    outcome: str
    started_at: str
    finished_at: str
    total_observations: int
    ignored_count: int
    cdn_expired_count: int
    false_positives: tuple[str, ...]
    recorded_failures: dict[str, str]
    over_threshold: tuple[str, ...]
    removed: tuple[str, ...]
    failed_removals: tuple[str, ...]
    dry_run: bool

    def to_dict(self) -> dict[str, Any]:
        return {
            "epoch": self.epoch,
            "outcome": self.outcome,
            "started_at": self.started_at,
            "finished_at": self.finished_at,
            "total_observations": self.total_observations,
            "ignored_count": self.ignored_count,
            "cdn_expired_count": self.cdn_expired_count,
            "false_positives": list(self.false_positives),
            "recorded_failures": dict(self.recorded_failures),
            "over_threshold": list(self.over_threshold),
            "removed": list(self.removed),
            "failed_removals": list(self.failed_removals),
            "dry_run": self.dry_run,
        }
