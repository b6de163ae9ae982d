"""
Starter policies for ``policy init``.

Templates:
    basic    - Simple developer role bound to one group
    advanced - Multiple roles with a conditional CI binding
    ci       - CI-focused configuration
"""

from __future__ import annotations

from .models import Binding, Condition, Group, Policy, Project, Role

TEMPLATES = ("basic", "advanced", "ci")

TEST_PROJECT = "test-project"
CI_SERVICE_ACCOUNT = f"serviceAccount:ci@{TEST_PROJECT}.iam.gserviceaccount.com"


def _basic() -> Policy:
    return Policy(
        roles={
            "roles/custom.developer": Role(permissions=[
                "secretmanager.secrets.create",
                "secretmanager.secrets.get",
                "secretmanager.versions.add",
                "secretmanager.versions.access",
                "cloudkms.cryptoKeys.encrypt",
                "cloudkms.cryptoKeys.decrypt",
            ]),
        },
        groups={
            "developers": Group(members=["user:alice@example.com"]),
        },
        projects={
            TEST_PROJECT: Project(bindings=[
                Binding(role="roles/custom.developer", members=["group:developers"]),
            ]),
        },
    )


def _advanced() -> Policy:
    return Policy(
        roles={
            "roles/custom.developer": Role(permissions=[
                "secretmanager.secrets.create",
                "secretmanager.secrets.get",
                "secretmanager.secrets.update",
                "secretmanager.versions.add",
                "secretmanager.versions.access",
                "cloudkms.keyRings.create",
                "cloudkms.cryptoKeys.create",
                "cloudkms.cryptoKeys.encrypt",
                "cloudkms.cryptoKeys.decrypt",
            ]),
            "roles/custom.ciRunner": Role(permissions=[
                "secretmanager.secrets.get",
                "secretmanager.versions.access",
                "cloudkms.cryptoKeys.encrypt",
            ]),
            "roles/custom.readonly": Role(permissions=[
                "secretmanager.secrets.get",
                "cloudkms.keyRings.get",
                "cloudkms.cryptoKeys.get",
            ]),
        },
        groups={
            "developers": Group(members=[
                "user:alice@example.com",
                "user:bob@example.com",
            ]),
            "operations": Group(members=["user:ops@example.com"]),
        },
        projects={
            TEST_PROJECT: Project(bindings=[
                Binding(role="roles/custom.developer", members=["group:developers"]),
                Binding(
                    role="roles/custom.ciRunner",
                    members=[CI_SERVICE_ACCOUNT],
                    condition=Condition(
                        expression=f'resource.name.startsWith("projects/{TEST_PROJECT}/secrets/prod-")',
                        title="CI limited to production secrets",
                    ),
                ),
                Binding(role="roles/custom.readonly", members=["group:operations"]),
            ]),
        },
    )


def _ci() -> Policy:
    return Policy(
        roles={
            "roles/custom.ciRunner": Role(permissions=[
                "secretmanager.secrets.get",
                "secretmanager.versions.access",
            ]),
        },
        groups={
            "ci-accounts": Group(members=[
                CI_SERVICE_ACCOUNT,
                f"serviceAccount:github-actions@{TEST_PROJECT}.iam.gserviceaccount.com",
            ]),
        },
        projects={
            TEST_PROJECT: Project(bindings=[
                Binding(role="roles/custom.ciRunner", members=["group:ci-accounts"]),
            ]),
        },
    )


_BUILDERS = {
    "basic": _basic,
    "advanced": _advanced,
    "ci": _ci,
}


def build_template(name: str) -> Policy:
    """Build a fresh Policy for the named template."""
    try:
        builder = _BUILDERS[name]
    except KeyError:
        raise ValueError(
            f"Unknown template: {name} (expected {', '.join(TEMPLATES)})"
        ) from None
    return builder()
