import sys

from src.config.logger_config import logger
from src.config.settings import init_settings
from src.health.check import run_health_check
from src.health.domain.errors import ConfigurationError, FetchError, SanityCheckError

EXIT_OK = 0
EXIT_FETCH_FAILED = 1
EXIT_SANITY_CHECK = 2
EXIT_CONFIGURATION = 3


def main() -> int:
    try:
        settings = init_settings()
        run_health_check(settings)
    except ConfigurationError as exc:
        logger.error("Invalid configuration: {}", exc)
        return EXIT_CONFIGURATION
    except FetchError as exc:
        logger.error("Failed to fetch Cloudflare SSL data: {}", exc)
        return EXIT_FETCH_FAILED
    except SanityCheckError as exc:
        logger.critical("{}", exc)
        return EXIT_SANITY_CHECK
    return EXIT_OK


# python -m src.health
if __name__ == "__main__":
    sys.exit(main())
