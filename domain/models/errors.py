# domain/models/errors.py
from dataclasses import dataclass
from typing import List, Sequence


class DomainError(Exception):
    """Base class for errors raised by the generation engine"""


class ValidationFailure(DomainError):
    """Malformed request fields or mockup source, raised at construction time"""


class RegistryFrozen(DomainError):
    """Provider registration attempted after startup"""


class UnresolvableMockupSource(DomainError):
    """Object-store mockup reference with no resolver configured"""


class ProviderUnavailable(DomainError):
    """One candidate provider could not serve the call"""

    def __init__(self, provider: str, reason: str):
        super().__init__(f"{provider}: {reason}")
        self.provider = provider
        self.reason = reason


@dataclass(frozen=True)
class ProviderFailure:
    """Immutable record of one failed provider attempt"""
    provider: str
    operation: str
    reason: str
    error_type: str

    def to_dict(self) -> dict:
        return {
            "provider": self.provider,
            "operation": self.operation,
            "reason": self.reason,
            "error_type": self.error_type,
        }


class AllProvidersExhausted(DomainError):
    """Every candidate provider failed for one operation"""

    def __init__(self, operation: str, failures: Sequence[ProviderFailure]):
        self.operation = operation
        self.failures: List[ProviderFailure] = list(failures)
        if self.failures:
            detail = "; ".join(f"{f.provider}: {f.reason}" for f in self.failures)
        else:
            detail = "no providers registered"
        super().__init__(f"All providers exhausted for {operation} ({detail})")
