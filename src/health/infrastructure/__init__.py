"""Infrastructure adapters for domain health checks."""

from src.health.infrastructure.cloudflare_client import CloudflareClient
from src.health.infrastructure.failure_ledger_sqlite import SQLiteFailureLedger
from src.health.infrastructure.http_client import AiohttpHttpClient
from src.health.infrastructure.maintenance_runner import MediaWikiMaintenanceRunner
from src.health.infrastructure.report_sink import JsonReportSink
from src.health.infrastructure.site_mapping import RemoteSiteMapping, parse_site_mapping

__all__ = [
    "AiohttpHttpClient",
    "CloudflareClient",
    "JsonReportSink",
    "MediaWikiMaintenanceRunner",
    "parse_site_mapping",
    "RemoteSiteMapping",
    "SQLiteFailureLedger",
]
