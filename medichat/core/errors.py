"""Error taxonomy shared by the request builder, completion client and record store."""


class AnalysisValidationError(ValueError):
    """Input rejected before any network call (missing user ID, missing input, wrong media type)."""


class CompletionError(RuntimeError):
    """The AI completion failed: transport fault, null output or output that does not fit the schema."""

    def __init__(self, message: str, status_code: int = 502):
        super().__init__(message)
        self.status_code = status_code


class StoreError(RuntimeError):
    """The record store backend is unavailable (read or write fault)."""
