"""
Advisor error taxonomy

Recoverable errors are absorbed by the hand loop at poll boundaries:
- ParseError: log line matches no known template (line skipped)
- IncompleteMappingError: identity maps disagree (batch retried next poll)
- IngestionError: Observer log fetch failed (cycle skipped)
- ObserverTimeout: Observer wait exceeded the hand deadline (hand ended)
- DecisionUnavailable / ActionValidationError: degrade to fallback action

Fatal errors end the session:
- ConfigurationError: invalid settings (e.g. big blind <= 0)
- SeatingError: failed to join the table
"""


class AdvisorError(Exception):
    """Base class for all advisor errors"""

    pass


class ParseError(AdvisorError):
    """Log line is not structurally recognizable"""

    def __init__(self, message: str, line: str = ""):
        super().__init__(message)
        self.line = line


class IncompleteMappingError(AdvisorError):
    """An id is present in only some of the identity maps"""

    def __init__(self, missing: dict[str, set[str]]):
        self.missing = missing
        details = ", ".join(
            f"{name}: {sorted(ids)}" for name, ids in sorted(missing.items()) if ids
        )
        super().__init__(f"Identity maps incomplete ({details})")


class IngestionError(AdvisorError):
    """Observer log fetch failed"""

    pass


class ConfigurationError(AdvisorError):
    """Invalid configuration value"""

    pass


class DecisionUnavailable(AdvisorError):
    """Oracle exhausted its retry budget"""

    def __init__(self, message: str, attempts: int = 0):
        super().__init__(message)
        self.attempts = attempts


class ActionValidationError(AdvisorError):
    """Oracle response could not be turned into a valid BotAction"""

    pass


class SeatingError(AdvisorError):
    """Failed to navigate to or join the table"""

    pass


class ObserverTimeout(AdvisorError):
    """Observer wait exceeded its deadline"""

    def __init__(self, message: str, timeout_ms: int = 0):
        super().__init__(message)
        self.timeout_ms = timeout_ms
