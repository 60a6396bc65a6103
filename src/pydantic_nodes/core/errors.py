"""Custom exceptions for pydantic-nodes.

Node logic raises these; ``BaseNode.run`` is the boundary that turns them
into an empty result map with zero credit.
"""


class NodeError(Exception):
    """Base exception for node execution errors."""


class ConfigurationError(NodeError):
    """Raised when credentials or workflow environment values are missing.

    This occurs when:
    - A required ``env_list`` entry is absent or empty
    - A connected social account has no access token
    - A collaborator the node needs was not injected by the engine
    """


class InputError(NodeError):
    """Raised when a parameter is missing or cannot be interpreted.

    Examples are an empty required field or a JSON field that fails to parse.
    """


class ExternalCallError(NodeError):
    """Raised when a third-party API or network call fails.

    Attributes:
        status_code: HTTP status of the failed response, if there was one.
        body: Truncated response body, if there was one.

    """

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        body: str | None = None,
    ) -> None:
        """Initialize the error with optional response details."""
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class PollingTimeoutError(ExternalCallError):
    """Raised when a long-running job does not finish within the poll budget."""
