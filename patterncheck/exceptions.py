"""Custom exceptions for the pattern verification harness."""


class PatternCheckError(RuntimeError):
    """Base exception for verification failures that are not verdicts."""

    kind = "PatternCheckError"


class UnknownPatternError(PatternCheckError):
    """Raised when a requested pattern name is not registered."""

    kind = "UnknownPattern"


class DuplicatePatternError(PatternCheckError):
    """Raised when a template name or alias is registered twice."""

    kind = "DuplicatePattern"


class TemplateConfigError(PatternCheckError):
    """Raised when template definitions cannot be parsed."""

    kind = "TemplateConfig"


class MalformedFactSetError(PatternCheckError):
    """Raised when extractor output violates the fact model."""

    kind = "MalformedFactSet"


class CandidateExplosionError(PatternCheckError):
    """Raised when a many-role matches more types than the configured cap."""

    kind = "CandidateExplosion"

    def __init__(self, role: str, count: int, cap: int) -> None:
        super().__init__(
            f"Role '{role}' matched {count} candidate types (cap {cap})"
        )
        self.role = role
        self.count = count
        self.cap = cap


class FactSourceError(PatternCheckError):
    """Raised when a snippet cannot be read or has no extractor."""

    kind = "FactSource"
