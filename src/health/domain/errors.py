class DomainHealthError(Exception):
    """Base class for every error raised by the domain health monitor."""


class ConfigurationError(DomainHealthError):
    pass


class FetchError(DomainHealthError):
    """The CDN hostname list could not be fetched completely."""


class SanityCheckError(DomainHealthError):
    """Too many domains reported broken at once to trust the CDN signal."""

    def __init__(self, expired_count: int, total: int) -> None:
        super().__init__(
            f"{expired_count} of {total} CDN domains are reported expired, more than 10% is not plausible"
        )
        self.expired_count = expired_count
        self.total = total


class MappingFetchError(DomainHealthError):
    pass


class RemovalStepError(DomainHealthError):
    def __init__(self, domain: str, step: str, message: str) -> None:
        super().__init__(f"{step} failed for {domain}: {message}")
        self.domain = domain
        self.step = step


class TransportError(DomainHealthError):
    """Raised by HTTP transports when no response was received."""
