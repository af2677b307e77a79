"""Error taxonomy for the compliance engine.

Missing data (no residents, no incidents, no interactions) is not an
error: every such case has a defined fallback value. Only two conditions
leave the engine as exceptions:

- DataUnavailable: the record store or the persistence layer failed.
  The engine never retries; retry policy belongs to the caller.
- InvalidInput: a value reaching the engine breaks an invariant
  (negative count, sentiment outside [-1, 1], malformed record).
"""


class ComplianceEngineError(Exception):
    """Base class for compliance engine errors."""


class DataUnavailable(ComplianceEngineError):
    """A record source or store could not serve the request."""

    def __init__(self, message: str, source: str | None = None) -> None:
        super().__init__(message)
        self.source = source


class InvalidInput(ComplianceEngineError, ValueError):
    """An input value violates an engine invariant."""

    def __init__(self, message: str, field: str | None = None) -> None:
        super().__init__(message)
        self.field = field
