"""
Shared fixtures for policy tests.
"""

import pytest
import yaml


@pytest.fixture
def policy_data():
    """A well-formed policy document as plain data."""
    return {
        "roles": {
            "roles/custom.developer": {
                "permissions": [
                    "secretmanager.secrets.get",
                    "secretmanager.versions.access",
                    "cloudkms.cryptoKeys.encrypt",
                ],
            },
        },
        "groups": {
            "developers": {
                "members": ["user:alice@example.com", "user:bob@example.com"],
            },
        },
        "projects": {
            "test-project": {
                "bindings": [
                    {
                        "role": "roles/custom.developer",
                        "members": ["group:developers"],
                    },
                    {
                        "role": "roles/secretmanager.viewer",
                        "members": ["serviceAccount:ci@test-project.iam.gserviceaccount.com"],
                        "condition": {
                            "expression": 'resource.name.startsWith("projects/test-project/secrets/ci-")',
                            "title": "CI secrets only",
                        },
                    },
                ],
            },
        },
    }


@pytest.fixture
def policy_file(tmp_path, policy_data):
    """Write the sample policy to disk."""
    path = tmp_path / "policy.yaml"
    with open(path, "w") as f:
        yaml.dump(policy_data, f, sort_keys=False)
    return path
