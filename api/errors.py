"""
Error types shared by the proxy layer and the dashboard panels.
Both carry a message that is safe to show in the browser.
"""


class ValidationError(ValueError):
    """Bad query input (dates, codes, missing parameters). Always HTTP 400."""

    status_code = 400


class UpstreamError(Exception):
    """The analytics API failed or returned something unusable."""

    def __init__(self, message: str, status_code: int = 500):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


_STATUS_MESSAGES = {
    400: "Invalid request parameters. Please check your input.",
    404: "Requested data not found",
    429: "Too many requests. Please try again later",
}


def describe_upstream_status(status: int, body: str = "") -> UpstreamError:
    """
    Map an upstream HTTP status to the error the browser sees.
    400, 404 and 429 keep their status; anything else becomes a 500 carrying the upstream text.
    """
    message = _STATUS_MESSAGES.get(status)
    if message is not None:
        return UpstreamError(message, status_code=status)
    return UpstreamError(f"API request failed with status {status}: {body}", status_code=500)


def connection_error(service: str) -> UpstreamError:
    """Error for a network failure talking to one upstream service."""
    return UpstreamError(
        f"Unable to connect to the {service} service. Please try again later.",
        status_code=503,
    )
