"""Domain registry: generation and reverse validation of value domains."""

from quizcentral.domains.inversion import NoPreimage, UninvertibleExpression, deconstruct_combine, invert_map
from quizcentral.domains.registry import (
    DomainCheck,
    DomainCheckStatus,
    DomainError,
    DomainNotFoundError,
    DomainRegistry,
    InfiniteDomainError,
)

__all__ = [
    "DomainCheck",
    "DomainCheckStatus",
    "DomainError",
    "DomainNotFoundError",
    "DomainRegistry",
    "InfiniteDomainError",
    "NoPreimage",
    "UninvertibleExpression",
    "deconstruct_combine",
    "invert_map",
]
