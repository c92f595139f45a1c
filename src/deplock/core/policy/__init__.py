"""Policy engine: allow/deny patterns and hash requirements for dependencies."""

from deplock.core.policy.engine import PolicyEngine, is_hash_verifiable, match_pattern
from deplock.core.policy.models import (
    AuditReport,
    Policy,
    ValidationResult,
    Violation,
)

__all__ = [
    "AuditReport",
    "Policy",
    "PolicyEngine",
    "ValidationResult",
    "Violation",
    "is_hash_verifiable",
    "match_pattern",
]
