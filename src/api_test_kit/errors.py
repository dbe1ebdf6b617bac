"""Exception hierarchy for the API test kit."""


class ApiTestKitError(Exception):
    """Base class for all errors raised by the kit."""


class ConfigError(ApiTestKitError):
    """A required setting is missing or malformed."""


class ReportError(ApiTestKitError):
    """The HTML report cannot be written to its directory."""


class TransportError(ApiTestKitError):
    """A request never produced a response (network error, timeout)."""

    def __init__(self, method: str, url: str, message: str):
        super().__init__(f"{method} {url} failed: {message}")
        self.method = method
        self.url = url


class FixtureSetupError(ApiTestKitError):
    """Fixture setup (context acquisition or priming call) failed."""


class FixtureStateError(ApiTestKitError):
    """An operation was attempted in the wrong lifecycle state."""
