import subprocess
from typing import Sequence

from src.config.logger_config import logger
from src.health.application.ports import MaintenancePort
from src.health.domain.errors import RemovalStepError

REMOVE_CUSTOM_DOMAIN_SCRIPT = "MirahezeMagic:RemoveCustomDomain"


class MediaWikiMaintenanceRunner(MaintenancePort):
    def __init__(
        self,
        version_command: Sequence[str] = ("getMWVersion",),
        maintenance_command: Sequence[str] = ("sudo", "-u", "www-data", "php"),
        mediawiki_root: str = "/srv/mediawiki",
        timeout_seconds: float = 600.0,
    ) -> None:
        self.version_command = tuple(version_command)
        self.maintenance_command = tuple(maintenance_command)
        self.mediawiki_root = mediawiki_root.rstrip("/")
        self.timeout_seconds = timeout_seconds

    def detect_version(self, site_id: str) -> str:
        output = self._run([*self.version_command, site_id], site_id, "detect_version")
        version = output.strip()
        if not version:
            raise RemovalStepError(site_id, "detect_version", "empty version output")
        return version

    def remove_custom_domain(self, site_id: str) -> None:
        version = self.detect_version(site_id)
        self._run(
            [
                *self.maintenance_command,
                f"{self.mediawiki_root}/{version}/maintenance/run.php",
                REMOVE_CUSTOM_DOMAIN_SCRIPT,
                "--wiki",
                site_id,
            ],
            site_id,
            "remove_custom_domain",
        )
        logger.info("Ran {} for {} on MediaWiki {}", REMOVE_CUSTOM_DOMAIN_SCRIPT, site_id, version)

    def _run(self, args: list[str], site_id: str, step: str) -> str:
        logger.debug("Running command: {}", args)
        try:
            completed = subprocess.run(
                args,
                capture_output=True,
                timeout=self.timeout_seconds,
                check=False,
            )
        except (OSError, subprocess.TimeoutExpired) as exc:
            raise RemovalStepError(site_id, step, f"{type(exc).__name__}: {exc}") from exc
        if completed.returncode != 0:
            stderr = completed.stderr.decode("utf-8", errors="replace").strip()
            raise RemovalStepError(site_id, step, f"exit status {completed.returncode}: {stderr}")
        return completed.stdout.decode("utf-8", errors="replace")
