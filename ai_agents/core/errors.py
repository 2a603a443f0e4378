"""
Library errors for clean caller-side and API error handling.

Every error carries a status_code so HTTP adapters can map it directly
(422 for bad input, 404 for unknown agents, upstream status for proxy failures).
"""


class AgentsError(Exception):
    """Base class for errors raised by the orchestration layer."""

    status_code: int = 500

    def __init__(self, message: str, status_code: int | None = None) -> None:
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        super().__init__(message)


class MessageRequiredError(AgentsError):
    """Raised when a turn is requested without a non-empty string message."""

    status_code = 422

    def __init__(self) -> None:
        super().__init__("`message` is required.")


class UnknownAgentError(AgentsError):
    """Raised when an agent reference resolves neither locally nor remotely."""

    status_code = 404

    def __init__(self, ref: object) -> None:
        self.ref = ref
        super().__init__(f"Unknown agent: {ref}")


class ToolLoopExceededError(AgentsError):
    """Raised when the model keeps requesting tools past the iteration bound."""

    def __init__(self, max_iterations: int) -> None:
        self.max_iterations = max_iterations
        super().__init__(f"Tool call loop exceeded max iterations ({max_iterations})")


class ProxyRunFailedError(AgentsError):
    """Raised when the backend run endpoint answers with a non-success status."""

    def __init__(self, status_code: int) -> None:
        super().__init__(f"Proxy run failed: {status_code}", status_code=status_code)


class ProxyStreamFailedError(AgentsError):
    """Raised when the backend stream endpoint answers with a non-success status."""

    def __init__(self, status_code: int) -> None:
        super().__init__(f"Proxy stream failed: {status_code}", status_code=status_code)
