# ABOUTME: Error taxonomy for generation, serving and refresh failures
# ABOUTME: Each error carries the HTTP status and machine-readable label used in {error, message} bodies


class Scrape2APIError(Exception):
    """Base exception for all scrape2api failures surfaced to callers."""

    status_code = 500
    error = "Internal server error"

    def __init__(self, message: str | None = None):
        super().__init__(message or self.error)
        self.message = message or self.error

    def to_payload(self) -> dict[str, str]:
        return {"error": self.error, "message": self.message}


class InvalidUrlError(Scrape2APIError):
    """Raised when a generation request carries a missing or malformed URL."""

    status_code = 400
    error = "Invalid URL provided"


class MissingSelectorsError(Scrape2APIError):
    """Raised when a full generation request has no selector rules."""

    status_code = 400
    error = "Missing selectors for API generation"


class InvalidSelectorRulesError(Scrape2APIError):
    """Raised when selector rules cannot be parsed (e.g. duplicate names)."""

    status_code = 400
    error = "Invalid selector rules"


class RendererError(Scrape2APIError):
    """Raised when the page could not be rendered. Fatal for the generate pipeline."""

    status_code = 502
    error = "Page rendering failed"


class DataNotFoundError(Scrape2APIError):
    """Raised when a slug is absent from the store or has expired."""

    status_code = 404
    error = "Data not found"


class InvalidRefreshTokenError(Scrape2APIError):
    """Raised when a refresh token does not match its slug."""

    status_code = 401
    error = "Invalid refresh token"


class RefreshUnsupportedError(Scrape2APIError):
    """Raised when a stale entry cannot be re-extracted because its rules were not retained."""

    status_code = 501
    error = "Automatic refresh not available"


class InternalError(Scrape2APIError):
    """Unexpected failure anywhere in the pipeline."""

    status_code = 500
    error = "Internal server error"
