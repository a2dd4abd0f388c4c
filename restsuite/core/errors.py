class RestSuiteError(Exception):
    """Base class for errors raised by the test engine."""


class ConfigurationError(RestSuiteError, ValueError):
    """A suite, test, assertion or benchmark definition cannot be executed as written."""


class ExtractionError(RestSuiteError):
    """An extraction rule could not derive a value from a response."""

    def __init__(self, variable: str, reason: str):
        super().__init__(f"failed to extract variable {variable}: {reason}")
        self.variable = variable
        self.reason = reason


class AssertionFailure(RestSuiteError):
    """A single assertion did not hold."""


class PathResolutionError(RestSuiteError, ValueError):
    """A dotted/bracket path could not be walked through a JSON document."""
