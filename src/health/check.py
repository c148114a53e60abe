from src.config.logger_config import logger
from src.config.settings import MonitorSettings, load_cloudflare_credentials
from src.health.application.reachability import ReachabilityClassifier
from src.health.application.removal import RemovalCoordinator
from src.health.application.workflows.health_pipeline import DomainHealthPipeline, PipelineConfig
from src.health.domain.models import HealthRunReport
from src.health.infrastructure.cloudflare_client import CloudflareClient
from src.health.infrastructure.failure_ledger_sqlite import SQLiteFailureLedger
from src.health.infrastructure.http_client import AiohttpHttpClient
from src.health.infrastructure.maintenance_runner import MediaWikiMaintenanceRunner
from src.health.infrastructure.report_sink import JsonReportSink
from src.health.infrastructure.site_mapping import RemoteSiteMapping


def run_health_check(settings: MonitorSettings, epoch: int | None = None) -> HealthRunReport:
    credentials = load_cloudflare_credentials(settings)
    cloudflare = CloudflareClient(
        token=credentials.token,
        zone_id=credentials.zone_id,
        api_base=settings.cloudflare_api_base,
        page_size=settings.page_size,
        page_delay_seconds=settings.page_delay_seconds,
        timeout_seconds=settings.request_timeout_seconds,
        user_agent=settings.user_agent,
    )
    classifier = ReachabilityClassifier(
        http_client=AiohttpHttpClient(
            user_agent=settings.user_agent,
            timeout_seconds=settings.check_timeout_seconds,
            connect_timeout_seconds=settings.check_connect_timeout_seconds,
        ),
        concurrency=settings.check_concurrency,
        show_progress=settings.show_progress,
    )
    remover = RemovalCoordinator(
        hostname_remover=cloudflare,
        site_mapping=RemoteSiteMapping(settings.mapping_url, timeout_seconds=settings.request_timeout_seconds),
        maintenance=MediaWikiMaintenanceRunner(
            version_command=settings.version_command,
            maintenance_command=settings.maintenance_command,
            mediawiki_root=settings.mediawiki_root,
            timeout_seconds=settings.maintenance_timeout_seconds,
        ),
    )
    report_sink = JsonReportSink(settings.report_path) if settings.report_path is not None else None

    ledger, recovered, recovered_from = SQLiteFailureLedger.create_with_recovery(settings.ledger_path)
    if recovered:
        logger.warning("Failure counters were reset, corrupted ledger kept at {}", recovered_from)
    pipeline = DomainHealthPipeline(
        status_source=cloudflare,
        classifier=classifier,
        ledger=ledger,
        remover=remover,
        report_sink=report_sink,
        config=PipelineConfig(
            failure_threshold=settings.failure_threshold,
            sanity_divisor=settings.sanity_divisor,
            dry_run=settings.dry_run,
        ),
    )
    try:
        return pipeline.run(epoch=epoch)
    finally:
        ledger.close()
