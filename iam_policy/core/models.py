"""
Core data models for emulator IAM policies.

These Pydantic models represent the canonical schema of a policy.yaml
document: custom roles, groups of principals, and per-project bindings.
"""

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


ROLE_PREFIX = "roles/"
CUSTOM_ROLE_PREFIX = "roles/custom."

ALLOWED_SERVICES = ("secretmanager", "cloudkms")

PRINCIPAL_TYPES = ("user", "serviceAccount", "group")
SPECIAL_PRINCIPALS = ("allUsers", "allAuthenticatedUsers")


def _none_to_list(v: Any) -> Any:
    return [] if v is None else v


def _none_to_dict(v: Any) -> Any:
    if v is None:
        return {}
    if isinstance(v, dict):
        # "roles/custom.empty:" with nothing after it is an empty entity
        return {key: ({} if value is None else value) for key, value in v.items()}
    return v


class _Model(BaseModel):
    model_config = ConfigDict(extra="ignore")


# ============================================================================
# Policy Models
# ============================================================================

class Condition(_Model):
    """CEL condition attached to a binding."""
    expression: str = ""
    title: str = ""
    description: str = ""

    @field_validator("expression", "title", "description", mode="before")
    @classmethod
    def none_to_empty(cls, v: Any) -> Any:
        return "" if v is None else v


class Binding(_Model):
    role: str = ""
    members: list[str] = Field(default_factory=list)
    condition: Optional[Condition] = None

    @field_validator("role", mode="before")
    @classmethod
    def none_to_empty(cls, v: Any) -> Any:
        return "" if v is None else v

    @field_validator("members", mode="before")
    @classmethod
    def none_to_list(cls, v: Any) -> Any:
        return _none_to_list(v)

    def is_custom(self) -> bool:
        return self.role.startswith(CUSTOM_ROLE_PREFIX)


class Role(_Model):
    permissions: list[str] = Field(default_factory=list)

    @field_validator("permissions", mode="before")
    @classmethod
    def none_to_list(cls, v: Any) -> Any:
        return _none_to_list(v)


class Group(_Model):
    members: list[str] = Field(default_factory=list)

    @field_validator("members", mode="before")
    @classmethod
    def none_to_list(cls, v: Any) -> Any:
        return _none_to_list(v)


class Project(_Model):
    bindings: list[Binding] = Field(default_factory=list)

    @field_validator("bindings", mode="before")
    @classmethod
    def none_to_list(cls, v: Any) -> Any:
        return _none_to_list(v)


class Policy(_Model):
    """Root of a policy.yaml document."""
    roles: dict[str, Role] = Field(default_factory=dict)
    groups: dict[str, Group] = Field(default_factory=dict)
    projects: dict[str, Project] = Field(default_factory=dict)

    @field_validator("roles", "groups", "projects", mode="before")
    @classmethod
    def none_to_dict(cls, v: Any) -> Any:
        return _none_to_dict(v)

    def summary(self) -> dict[str, int]:
        return {
            "roles": len(self.roles),
            "groups": len(self.groups),
            "projects": len(self.projects),
        }


# ============================================================================
# Principal
# ============================================================================

class Principal(BaseModel):
    """
    A parsed member string.

    Either one of the special literals (``allUsers``,
    ``allAuthenticatedUsers``), in which case ``type`` holds the literal and
    ``identifier`` is empty, or a ``type:identifier`` pair.
    """
    type: str
    identifier: str = ""
    special: bool = False

    @classmethod
    def parse(cls, text: str) -> Optional[Principal]:
        if text in SPECIAL_PRINCIPALS:
            return cls(type=text, special=True)
        if ":" not in text:
            return None
        principal_type, identifier = text.split(":", 1)
        return cls(type=principal_type, identifier=identifier)

    def __str__(self) -> str:
        if self.special:
            return self.type
        return f"{self.type}:{self.identifier}"
