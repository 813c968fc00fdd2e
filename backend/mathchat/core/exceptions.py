from typing import Optional


class MathChatError(Exception):
    """Base error; ``message`` is what the caller is allowed to see."""

    status_code: int = 500

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class MissingPromptError(MathChatError):
    status_code = 400

    def __init__(self, message: str = "Prompt is required"):
        super().__init__(message)


class ApiKeyNotConfiguredError(MathChatError):
    def __init__(self, message: str = "API key not configured"):
        super().__init__(message)


class UpstreamError(MathChatError):
    """The model provider failed or answered with a non-2xx status.

    ``detail`` holds the raw upstream body for server-side logs only.
    """

    def __init__(
        self,
        message: str = "Failed to process math problem",
        upstream_status: Optional[int] = None,
        detail: str = "",
    ):
        super().__init__(message)
        self.upstream_status = upstream_status
        self.detail = detail


class SolutionParseError(MathChatError):
    def __init__(self, message: str = "The logic engine failed to synthesize a response"):
        super().__init__(message)


class DispatchError(MathChatError):
    """Client side: the proxy could not be reached or answered with an error."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message, status_code)


class CameraError(MathChatError):
    """The camera could not be opened or did not deliver a frame."""
