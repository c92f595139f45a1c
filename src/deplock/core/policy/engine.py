"""Policy evaluation over manifest dependencies.

Rule precedence for one dependency, each rule stopping evaluation on
failure so a rejected package carries exactly one violation:

1. Deny patterns, checked first. Deny always wins over allow.
2. Allow patterns, as a whitelist when non-empty.
3. The hash requirement. Only archive sources are hash-verifiable; an
   archive without a declared hash fails under ``require_hash``. Other
   source kinds are not subject to the rule.

A pattern ending in ``*`` (including ``/*``) is a prefix match on the text
before the wildcard. Anything else is an exact name comparison.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from deplock.core.manifest.models import ArchiveSource, Dependency
from deplock.core.policy.models import (
    AuditReport,
    Policy,
    ValidationResult,
    Violation,
)

logger = logging.getLogger(__name__)


def match_pattern(name: str, pattern: str) -> bool:
    """Match *name* against a policy pattern.

    Examples::

        match_pattern("foo/bar/baz", "foo/*")  # True
        match_pattern("foo", "foo/*")  # True
        match_pattern("internal-http", "internal-*")  # True
        match_pattern("barfoo", "foo*")  # False
        match_pattern("http", "http")  # True
    """
    if pattern.endswith("/*"):
        return name.startswith(pattern[:-2])
    if pattern.endswith("*"):
        return name.startswith(pattern[:-1])
    return name == pattern


def is_hash_verifiable(dep: Dependency) -> bool:
    """True if the dependency's source kind can carry a content hash."""
    return isinstance(dep.source, ArchiveSource)


class PolicyEngine:
    """Checks dependencies against a ``Policy``.

    Example::

        engine = PolicyEngine(Policy.load(Path("deplock-policy.json")))
        report = engine.audit(read_manifest(Path("deplock.yaml")))
        if not report.passed_all:
            ...
    """

    def __init__(self, policy: Policy) -> None:
        self.policy = policy

    def validate(self, dep: Dependency) -> ValidationResult:
        violation = self._first_violation(dep)
        if violation is None:
            return ValidationResult(valid=True)
        return ValidationResult(valid=False, violations=(violation,))

    def _first_violation(self, dep: Dependency) -> Violation | None:
        for pattern in self.policy.deny_patterns:
            if match_pattern(dep.name, pattern):
                return Violation(
                    dep.name, f"Package '{dep.name}' matches deny pattern: {pattern}"
                )

        if self.policy.allow_patterns and not any(
            match_pattern(dep.name, p) for p in self.policy.allow_patterns
        ):
            return Violation(dep.name, f"Package '{dep.name}' not in allow list")

        if (
            self.policy.require_hash
            and is_hash_verifiable(dep)
            and not dep.source.hash
        ):
            return Violation(
                dep.name,
                f"Package '{dep.name}' requires hash verification but none provided",
            )
        return None

    def audit(self, deps: Iterable[Dependency]) -> AuditReport:
        """Validate every dependency; one failure never stops the rest."""
        report = AuditReport()
        for dep in deps:
            result = self.validate(dep)
            report.total += 1
            if result.valid:
                report.passed += 1
            else:
                report.failed += 1
                report.violations.extend(result.violations)
                logger.debug("Policy violation for %s", dep.name)
        return report
