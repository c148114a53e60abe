# Settings for the domain health monitor, loaded once at process start.

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

from src.health.domain.errors import ConfigurationError
from src.health.domain.rules import FAILURE_THRESHOLD, SANITY_DIVISOR

ENV_PREFIX = "DOMAIN_HEALTH_"

DEFAULT_CLOUDFLARE_API_BASE = "https://api.cloudflare.com/client/v4"
DEFAULT_MAPPING_URL = "https://raw.githubusercontent.com/miraheze/ssl/refs/heads/main/wikidiscover_output.yaml"
DEFAULT_USER_AGENT = "Miraheze custom domain scanner bot"


@dataclass(frozen=True)
class CloudflareCredentials:
    token: str
    zone_id: str


@dataclass(frozen=True)
class MonitorSettings:
    cloudflare_token_file: Path = Path("tokens/cloudflare_ssl.txt")
    cloudflare_zone_file: Path = Path("tokens/cloudflare_zone.txt")
    cloudflare_api_base: str = DEFAULT_CLOUDFLARE_API_BASE
    mapping_url: str = DEFAULT_MAPPING_URL
    ledger_path: Path = Path("artifacts/state/problematic_domains.db")
    report_path: Path | None = Path("artifacts/reports/domain_health_report.json")
    user_agent: str = DEFAULT_USER_AGENT
    request_timeout_seconds: float = 30.0
    check_timeout_seconds: float = 30.0
    check_connect_timeout_seconds: float = 10.0
    maintenance_timeout_seconds: float = 600.0
    page_size: int = 50
    page_delay_seconds: float = 0.1
    check_concurrency: int = 5
    failure_threshold: int = FAILURE_THRESHOLD
    sanity_divisor: int = SANITY_DIVISOR
    version_command: tuple[str, ...] = ("getMWVersion",)
    maintenance_command: tuple[str, ...] = ("sudo", "-u", "www-data", "php")
    mediawiki_root: str = "/srv/mediawiki"
    dry_run: bool = False
    show_progress: bool = True


_settings: MonitorSettings | None = None


def _env(name: str) -> str | None:
    value = os.getenv(f"{ENV_PREFIX}{name}")
    if value is None or not value.strip():
        return None
    return value.strip()


def _env_int(name: str, default: int, minimum: int = 1) -> int:
    raw = _env(name)
    if raw is None:
        return default
    try:
        value = int(raw)
    except ValueError as exc:
        raise ConfigurationError(f"{ENV_PREFIX}{name} must be an integer, got {raw!r}") from exc
    if value < minimum:
        raise ConfigurationError(f"{ENV_PREFIX}{name} must be >= {minimum}, got {value}")
    return value


def _env_float(name: str, default: float) -> float:
    raw = _env(name)
    if raw is None:
        return default
    try:
        value = float(raw)
    except ValueError as exc:
        raise ConfigurationError(f"{ENV_PREFIX}{name} must be a number, got {raw!r}") from exc
    if value < 0:
        raise ConfigurationError(f"{ENV_PREFIX}{name} must not be negative, got {value}")
    return value


def _env_bool(name: str, default: bool) -> bool:
    raw = _env(name)
    if raw is None:
        return default
    value = raw.lower()
    if value in ("1", "true", "yes", "on"):
        return True
    if value in ("0", "false", "no", "off"):
        return False
    raise ConfigurationError(f"{ENV_PREFIX}{name} must be a boolean, got {raw!r}")


def load_settings() -> MonitorSettings:
    load_dotenv()
    defaults = MonitorSettings()
    report_path_raw = _env("REPORT_PATH")
    report_path = defaults.report_path
    if report_path_raw is not None:
        report_path = None if report_path_raw.lower() == "none" else Path(report_path_raw)
    return MonitorSettings(
        cloudflare_token_file=Path(_env("CLOUDFLARE_TOKEN_FILE") or defaults.cloudflare_token_file),
        cloudflare_zone_file=Path(_env("CLOUDFLARE_ZONE_FILE") or defaults.cloudflare_zone_file),
        cloudflare_api_base=_env("CLOUDFLARE_API_BASE") or defaults.cloudflare_api_base,
        mapping_url=_env("MAPPING_URL") or defaults.mapping_url,
        ledger_path=Path(_env("LEDGER_PATH") or defaults.ledger_path),
        report_path=report_path,
        user_agent=_env("USER_AGENT") or defaults.user_agent,
        request_timeout_seconds=_env_float("REQUEST_TIMEOUT", defaults.request_timeout_seconds),
        check_timeout_seconds=_env_float("CHECK_TIMEOUT", defaults.check_timeout_seconds),
        check_connect_timeout_seconds=_env_float("CHECK_CONNECT_TIMEOUT", defaults.check_connect_timeout_seconds),
        maintenance_timeout_seconds=_env_float("MAINTENANCE_TIMEOUT", defaults.maintenance_timeout_seconds),
        page_size=_env_int("PAGE_SIZE", defaults.page_size),
        page_delay_seconds=_env_float("PAGE_DELAY", defaults.page_delay_seconds),
        check_concurrency=_env_int("CHECK_CONCURRENCY", defaults.check_concurrency),
        failure_threshold=_env_int("FAILURE_THRESHOLD", defaults.failure_threshold),
        sanity_divisor=_env_int("SANITY_DIVISOR", defaults.sanity_divisor),
        mediawiki_root=_env("MEDIAWIKI_ROOT") or defaults.mediawiki_root,
        dry_run=_env_bool("DRY_RUN", defaults.dry_run),
        show_progress=_env_bool("SHOW_PROGRESS", defaults.show_progress),
    )


def init_settings(settings: MonitorSettings | None = None) -> MonitorSettings:
    global _settings
    _settings = settings if settings is not None else load_settings()
    return _settings


def get_settings() -> MonitorSettings:
    if _settings is None:
        raise ConfigurationError("Settings are not initialised, call init_settings() at startup.")
    return _settings


def _read_secret(path: Path, label: str) -> str:
    try:
        value = path.read_text(encoding="utf-8").strip()
    except OSError as exc:
        raise ConfigurationError(f"Failed to read {label} from {path}: {exc}") from exc
    if not value:
        raise ConfigurationError(f"{label} file {path} is empty")
    return value


def load_cloudflare_credentials(settings: MonitorSettings) -> CloudflareCredentials:
    return CloudflareCredentials(
        token=_read_secret(settings.cloudflare_token_file, "Cloudflare token"),
        zone_id=_read_secret(settings.cloudflare_zone_file, "Cloudflare zone id"),
    )
