"""Policy data models: Policy, Violation, ValidationResult, AuditReport.

Violations are data, never exceptions. Only a policy *file* that cannot be
parsed raises (``PolicyError``).

Policy file format (JSON)::

    {
      "allow": ["internal-*", "http"],
      "deny": ["*-legacy"],
      "require_hash": true
    }
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from deplock.exceptions import PolicyError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Policy:
    """Allow/deny name patterns and the hash requirement.

    Attributes:
        allow_patterns: If non-empty, a whitelist: every package must match
            at least one pattern.
        deny_patterns: Packages matching any of these are rejected.
        require_hash: Hash-verifiable (archive) sources must declare a hash.
    """

    allow_patterns: tuple[str, ...] = ()
    deny_patterns: tuple[str, ...] = ()
    require_hash: bool = False

    @classmethod
    def load(cls, path: Path) -> Policy:
        """Read a policy file; a missing file yields the permissive default.

        Raises:
            PolicyError: If the file exists but is not a valid policy document.
        """
        try:
            text = Path(path).read_text(encoding="utf-8")
        except FileNotFoundError:
            logger.debug("No policy file at %s; using permissive policy", path)
            return cls()
        except OSError as exc:
            raise PolicyError(f"Cannot read policy file {path}: {exc}") from exc

        try:
            data: Any = json.loads(text)
        except json.JSONDecodeError as exc:
            raise PolicyError(f"Policy file {path} is not valid JSON: {exc}") from exc
        return cls.from_dict(data, origin=str(path))

    @classmethod
    def from_dict(cls, data: Any, origin: str = "<policy>") -> Policy:
        if not isinstance(data, dict):
            raise PolicyError(f"Policy {origin} must be a JSON object")
        allow = data.get("allow", [])
        deny = data.get("deny", [])
        require_hash = data.get("require_hash", False)
        if not isinstance(allow, list) or not all(isinstance(p, str) for p in allow):
            raise PolicyError(f"Policy {origin}: 'allow' must be a list of strings")
        if not isinstance(deny, list) or not all(isinstance(p, str) for p in deny):
            raise PolicyError(f"Policy {origin}: 'deny' must be a list of strings")
        if not isinstance(require_hash, bool):
            raise PolicyError(f"Policy {origin}: 'require_hash' must be a boolean")
        return cls(
            allow_patterns=tuple(allow),
            deny_patterns=tuple(deny),
            require_hash=require_hash,
        )


@dataclass(frozen=True)
class Violation:
    package_name: str
    message: str


@dataclass(frozen=True)
class ValidationResult:
    """Outcome of checking one dependency.

    ``valid`` is True exactly when ``violations`` is empty.
    """

    valid: bool
    violations: tuple[Violation, ...] = ()


@dataclass
class AuditReport:
    """Aggregate policy outcome over a dependency list.

    Attributes:
        total: Number of dependencies audited.
        passed: Dependencies without violations.
        failed: Dependencies with at least one violation.
        violations: Every violation, in dependency order.
    """

    total: int = 0
    passed: int = 0
    failed: int = 0
    violations: list[Violation] = field(default_factory=list)

    @property
    def passed_all(self) -> bool:
        return self.failed == 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "total": self.total,
            "passed": self.passed,
            "failed": self.failed,
            "violations": [
                {"package": v.package_name, "message": v.message}
                for v in self.violations
            ],
        }
