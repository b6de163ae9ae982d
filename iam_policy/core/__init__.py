"""
Core modules for emulator IAM policies.
"""

from .models import (
    Policy,
    Role,
    Group,
    Project,
    Binding,
    Condition,
    Principal,
)
from .codec import (
    PolicyError,
    ParseError,
    SerializeError,
    parse_policy,
    serialize_policy,
    load_policy,
    save_policy,
)
from .validator import (
    Validator,
    ValidationResult,
    Finding,
    Severity,
    validate_policy,
)
from .templates import TEMPLATES, build_template
from .config import Config, ConfigError

__all__ = [
    "Policy",
    "Role",
    "Group",
    "Project",
    "Binding",
    "Condition",
    "Principal",
    "PolicyError",
    "ParseError",
    "SerializeError",
    "parse_policy",
    "serialize_policy",
    "load_policy",
    "save_policy",
    "Validator",
    "ValidationResult",
    "Finding",
    "Severity",
    "validate_policy",
    "TEMPLATES",
    "build_template",
    "Config",
    "ConfigError",
]
