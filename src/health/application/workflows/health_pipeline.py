import asyncio
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum

from src.config.logger_config import logger
from src.health.application.ports import (
    FailureLedgerPort,
    RemovalPort,
    ReportSinkPort,
    StatusSourcePort,
)
from src.health.application.reachability import ReachabilityClassifier
from src.health.domain.errors import FetchError, SanityCheckError
from src.health.domain.models import DomainStatus, HealthRunReport
from src.health.domain.rules import FAILURE_THRESHOLD, SANITY_DIVISOR, exceeds_sanity_limit, triage


class PipelineState(str, Enum):
    IDLE = "idle"
    FETCHING = "fetching"
    TRIAGING = "triaging"
    SANITY_CHECKING = "sanity_checking"
    RECORDING = "recording"
    THRESHOLDING = "thresholding"
    REMOVING = "removing"
    PRUNED = "pruned"


@dataclass(frozen=True)
class PipelineConfig:
    failure_threshold: int = FAILURE_THRESHOLD
    sanity_divisor: int = SANITY_DIVISOR
    dry_run: bool = False


class DomainHealthPipeline:
    def __init__(
        self,
        status_source: StatusSourcePort,
        classifier: ReachabilityClassifier,
        ledger: FailureLedgerPort,
        remover: RemovalPort,
        report_sink: ReportSinkPort | None = None,
        config: PipelineConfig | None = None,
    ) -> None:
        self.status_source = status_source
        self.classifier = classifier
        self.ledger = ledger
        self.remover = remover
        self.report_sink = report_sink
        self.config = config or PipelineConfig()
        self.state = PipelineState.IDLE

    def run(self, epoch: int | None = None) -> HealthRunReport:
        """Run one health pass.

        Raises FetchError when the CDN listing is incomplete and SanityCheckError
        when too many domains look broken at once. In both cases the ledger is
        left untouched.
        """
        epoch = time.time_ns() if epoch is None else epoch
        started_at = datetime.now(timezone.utc).isoformat()
        logger.info("Domain health run started: epoch={}, dry_run={}", epoch, self.config.dry_run)

        self._enter(PipelineState.FETCHING)
        try:
            observations = self.status_source.fetch_all()
        except FetchError:
            self._write_aborted_report(epoch, "fetch_failed", started_at)
            raise

        self._enter(PipelineState.TRIAGING)
        triaged = triage(observations)
        for observation in triaged.ignored:
            logger.warning(
                "Unknown CDN status {} for {}, not acting on it",
                observation.cdn_status.raw,
                observation.domain,
            )

        self._enter(PipelineState.SANITY_CHECKING)
        expired_count = len(triaged.cdn_expired)
        if exceeds_sanity_limit(expired_count, triaged.total, self.config.sanity_divisor):
            logger.critical(
                "Aborting run: {} of {} CDN domains reported expired, this can't be right",
                expired_count,
                triaged.total,
            )
            self._write_aborted_report(
                epoch,
                "aborted_sanity_check",
                started_at,
                total_observations=len(observations),
                ignored_count=len(triaged.ignored),
                cdn_expired_count=expired_count,
            )
            raise SanityCheckError(expired_count, triaged.total)
        logger.info("{} domains total. {} problematic ones.", triaged.total, expired_count)

        self._enter(PipelineState.RECORDING)
        candidates = [observation.domain for observation in triaged.cdn_expired]
        statuses = asyncio.run(self.classifier.classify_many(candidates))
        false_positives: list[str] = []
        recorded: dict[str, DomainStatus] = {}
        for domain in candidates:
            status = statuses[domain]
            if status.is_ok:
                logger.info("CDN reported an error for {} but it seems to be fine.", domain)
                false_positives.append(domain)
                continue
            logger.warning("Domain {} is problematic: {}", domain, status)
            self.ledger.record_failure(domain, epoch)
            recorded[domain] = status

        self._enter(PipelineState.THRESHOLDING)
        pruned = self.ledger.prune_stale(epoch)
        if pruned:
            logger.info("Forgot {} domains that are no longer problematic", pruned)
        over_threshold = sorted(self.ledger.domains_at_or_above(self.config.failure_threshold))
        logger.info(
            "{} domains failed at least {} consecutive runs: {}",
            len(over_threshold),
            self.config.failure_threshold,
            over_threshold,
        )

        self._enter(PipelineState.REMOVING)
        removed: list[str] = []
        if self.config.dry_run:
            for domain in over_threshold:
                logger.info("Dry run, would remove {}", domain)
        elif over_threshold:
            removed = self.remover.remove(over_threshold)
            self.ledger.delete(removed)
        removed_set = set(removed)
        failed_removals = [] if self.config.dry_run else [d for d in over_threshold if d not in removed_set]

        self._enter(PipelineState.PRUNED)
        report = HealthRunReport(
            epoch=epoch,
            outcome="dry_run" if self.config.dry_run else "completed",
            started_at=started_at,
            finished_at=datetime.now(timezone.utc).isoformat(),
            total_observations=len(observations),
            ignored_count=len(triaged.ignored),
            cdn_expired_count=expired_count,
            false_positives=tuple(false_positives),
            recorded_failures={domain: str(status) for domain, status in recorded.items()},
            over_threshold=tuple(over_threshold),
            removed=tuple(removed),
            failed_removals=tuple(failed_removals),
            dry_run=self.config.dry_run,
        )
        self._write_report(report)
        logger.info(
            "Domain health run completed: epoch={}, recorded={}, removed={}, failed_removals={}",
            epoch,
            len(recorded),
            len(removed),
            len(failed_removals),
        )
        return report

    def _enter(self, state: PipelineState) -> None:
        logger.debug("Pipeline state: {} -> {}", self.state.value, state.value)
        self.state = state

    def _write_aborted_report(
        self,
        epoch: int,
        outcome: str,
        started_at: str,
        *,
        total_observations: int = 0,
        ignored_count: int = 0,
        cdn_expired_count: int = 0,
    ) -> None:
        self._write_report(
            HealthRunReport(
                epoch=epoch,
                outcome=outcome,
                started_at=started_at,
                finished_at=datetime.now(timezone.utc).isoformat(),
                total_observations=total_observations,
                ignored_count=ignored_count,
                cdn_expired_count=cdn_expired_count,
                false_positives=(),
                recorded_failures={},
                over_threshold=(),
                removed=(),
                failed_removals=(),
                dry_run=self.config.dry_run,
            )
        )

    def _write_report(self, report: HealthRunReport) -> None:
        if self.report_sink is None:
            return
        try:
            self.report_sink.write_report(report)
        except OSError:
            logger.exception("Failed to write {} run report for epoch {}", report.outcome, report.epoch)
