"""
Validation module for policies.

Performs structural checks on roles, permissions and bindings, and
reference checks between bindings and the roles and groups defined in the
same document. Every problem is collected; validation never stops at the
first one.
"""

from __future__ import annotations

import logging
from enum import Enum
from pathlib import Path
from typing import Iterator, Optional

from pydantic import BaseModel, Field

from .codec import PolicyError, load_policy
from .models import (
    ALLOWED_SERVICES,
    PRINCIPAL_TYPES,
    ROLE_PREFIX,
    Binding,
    Policy,
    Principal,
)

logger = logging.getLogger(__name__)

WARNING_PREFIX = "WARNING: "
LOAD_FAILURE_PREFIX = "Failed to load policy: "


class Severity(str, Enum):
    ERROR = "error"
    WARNING = "warning"


class Finding(BaseModel):
    severity: Severity
    message: str

    @property
    def is_error(self) -> bool:
        return self.severity == Severity.ERROR

    def render(self) -> str:
        if self.severity == Severity.WARNING:
            return WARNING_PREFIX + self.message
        return self.message


class ValidationResult(BaseModel):
    """Outcome of validating one policy: pass/fail plus ordered findings."""
    valid: bool = True
    findings: list[Finding] = Field(default_factory=list)

    def add_error(self, message: str) -> None:
        self.valid = False
        self.findings.append(Finding(severity=Severity.ERROR, message=message))

    def add_warning(self, message: str) -> None:
        self.findings.append(Finding(severity=Severity.WARNING, message=message))

    @property
    def errors(self) -> list[str]:
        return [f.message for f in self.findings if f.severity == Severity.ERROR]

    @property
    def warnings(self) -> list[str]:
        return [f.message for f in self.findings if f.severity == Severity.WARNING]

    def render(self) -> list[str]:
        return [f.render() for f in self.findings]


def check_permission(permission: str) -> str | None:
    """Return an error message for a malformed permission, or None."""
    parts = permission.split(".")
    if len(parts) < 3:
        return f"invalid permission format: {permission} (expected service.resource.verb)"

    service = parts[0]
    if service not in ALLOWED_SERVICES:
        return (
            f"unknown service in permission: {service} "
            f"(expected {' or '.join(ALLOWED_SERVICES)})"
        )

    return None


def check_principal(member: str, policy: Policy) -> str | None:
    """Return an error message for an invalid or dangling principal, or None."""
    principal = Principal.parse(member)
    if principal is None:
        return f"invalid principal format: {member} (expected type:identifier)"

    if principal.special:
        return None

    if principal.type in ("user", "serviceAccount"):
        if "@" not in principal.identifier:
            return f"invalid {principal.type}: {principal.identifier} (expected email format)"
    elif principal.type == "group":
        if principal.identifier not in policy.groups:
            return f"undefined group: {principal.identifier}"
    else:
        return (
            f"unknown principal type: {principal.type} "
            f"(expected {', '.join(PRINCIPAL_TYPES[:-1])}, or {PRINCIPAL_TYPES[-1]})"
        )

    return None


class Validator:
    """Validates policies against structural and reference rules."""

    def validate(self, policy: Policy) -> ValidationResult:
        result = ValidationResult()

        self._validate_roles(policy, result)
        self._validate_projects(policy, result)

        logger.debug(
            "Validated policy: %d error(s), %d warning(s)",
            len(result.errors),
            len(result.warnings),
        )
        return result

    def _validate_roles(self, policy: Policy, result: ValidationResult) -> None:
        if not policy.roles:
            result.add_warning("No roles defined")

        for role_name, role in policy.roles.items():
            if not role_name.startswith(ROLE_PREFIX):
                result.add_error(f"Role name must start with '{ROLE_PREFIX}': {role_name}")

            if not role.permissions:
                result.add_warning(f"Role {role_name} has no permissions")

            for permission in role.permissions:
                error = check_permission(permission)
                if error:
                    result.add_error(f"Role {role_name}: {error}")

    def _validate_projects(self, policy: Policy, result: ValidationResult) -> None:
        if not policy.projects:
            result.add_warning("No projects defined")

        for project_name, project in policy.projects.items():
            if not project.bindings:
                result.add_warning(f"Project {project_name} has no bindings")

            for i, binding in enumerate(project.bindings):
                self._validate_binding(
                    policy, binding, f"Project {project_name} binding {i}", result
                )

    def _validate_binding(
        self, policy: Policy, binding: Binding, context: str, result: ValidationResult
    ) -> None:
        # Order: role, members, principals, condition
        if not binding.role.startswith(ROLE_PREFIX):
            result.add_error(f"{context}: role must start with '{ROLE_PREFIX}'")

        # Built-in roles are defined outside the document
        if binding.is_custom() and binding.role not in policy.roles:
            result.add_error(f"{context}: undefined role {binding.role}")

        if not binding.members:
            result.add_error(f"{context}: no members specified")

        for member in binding.members:
            error = check_principal(member, policy)
            if error:
                result.add_error(f"{context}: {error}")

        if binding.condition is not None and binding.condition.expression == "":
            result.add_error(f"{context}: condition has empty expression")

    def validate_file(self, path: str | Path) -> tuple[Optional[Policy], ValidationResult]:
        """
        Load and validate a single policy file.

        Load failures are reported as an error finding rather than raised,
        in which case the returned policy is None.
        """
        try:
            policy = load_policy(path)
        except (OSError, PolicyError) as e:
            result = ValidationResult()
            result.add_error(f"{LOAD_FAILURE_PREFIX}{e}")
            return None, result
        return policy, self.validate(policy)


def iter_policy_files(path: str | Path) -> Iterator[Path]:
    """Yield the policy file itself, or every YAML file under a directory."""
    path = Path(path)
    if not path.is_dir():
        yield path
        return

    files = set(path.glob("**/*.yaml")) | set(path.glob("**/*.yml"))
    yield from sorted(files)


def validate_policy(policy: Policy) -> ValidationResult:
    """Validate a policy with the default rules."""
    return Validator().validate(policy)
