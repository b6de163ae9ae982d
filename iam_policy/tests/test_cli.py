"""
Tests for the command-line interface.
"""

import pytest
import yaml
from click.testing import CliRunner

from iam_policy.cli import cli
from iam_policy.core.codec import load_policy
from iam_policy.core.templates import build_template


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def config_path(tmp_path):
    return str(tmp_path / "config.yaml")


def invoke(runner, config_path, *args):
    return runner.invoke(cli, ["--config", config_path, *args])


class TestPolicyValidate:
    def test_valid_file(self, runner, config_path, policy_file):
        result = invoke(runner, config_path, "policy", "validate", str(policy_file))

        assert result.exit_code == 0
        assert "Policy is valid" in result.output
        assert "1 roles defined" in result.output
        assert "1 projects configured" in result.output

    def test_warnings_still_succeed(self, runner, config_path, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("{}\n")

        result = invoke(runner, config_path, "policy", "validate", str(path))

        assert result.exit_code == 0
        assert "WARNING: No roles defined" in result.output
        assert "WARNING: No projects defined" in result.output

    def test_invalid_file(self, runner, config_path, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text(yaml.dump({
            "projects": {"p": {"bindings": [{"role": "roles/custom.x", "members": ["group:g"]}]}},
        }))

        result = invoke(runner, config_path, "policy", "validate", str(path))

        assert result.exit_code == 1
        assert "Validation failed" in result.output
        assert "undefined role roles/custom.x" in result.output
        assert "undefined group: g" in result.output

    def test_unparseable_file(self, runner, config_path, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("roles: [\n")

        result = invoke(runner, config_path, "policy", "validate", str(path))

        assert result.exit_code == 1
        assert "Failed to load policy" in result.output

    def test_missing_file(self, runner, config_path, tmp_path):
        result = invoke(runner, config_path, "policy", "validate", str(tmp_path / "nope.yaml"))

        assert result.exit_code == 1
        assert "Failed to load policy" in result.output

    def test_defaults_to_configured_file(self, runner, config_path, policy_file):
        invoke(runner, config_path, "config", "set", "policy-file", str(policy_file))

        result = invoke(runner, config_path, "policy", "validate")

        assert result.exit_code == 0
        assert f"Validating {policy_file}" in result.output

    def test_directory(self, runner, config_path, tmp_path, policy_file):
        (tmp_path / "other.yaml").write_text("roles:\n  custom.bad: {}\n")

        result = invoke(runner, config_path, "policy", "validate", str(tmp_path))

        assert result.exit_code == 1
        assert "Policy is valid" in result.output
        assert "Role name must start with 'roles/': custom.bad" in result.output


class TestPolicyInit:
    def test_creates_file(self, runner, config_path, tmp_path):
        output = tmp_path / "policy.yaml"

        result = invoke(
            runner, config_path, "policy", "init", "--template", "ci", "--output", str(output)
        )

        assert result.exit_code == 0
        assert load_policy(output) == build_template("ci")

    def test_refuses_overwrite(self, runner, config_path, policy_file):
        before = policy_file.read_text()

        result = invoke(runner, config_path, "policy", "init", "--output", str(policy_file))

        assert result.exit_code == 1
        assert "already exists" in result.output
        assert policy_file.read_text() == before

    def test_force_overwrite(self, runner, config_path, policy_file):
        result = invoke(
            runner, config_path, "policy", "init", "--force", "--output", str(policy_file)
        )

        assert result.exit_code == 0
        assert load_policy(policy_file) == build_template("basic")

    def test_unknown_template(self, runner, config_path, tmp_path):
        result = invoke(
            runner, config_path, "policy", "init",
            "--template", "enterprise", "--output", str(tmp_path / "p.yaml"),
        )

        assert result.exit_code == 2


class TestConfigCommands:
    def test_get_defaults(self, runner, config_path):
        result = invoke(runner, config_path, "config", "get")

        assert result.exit_code == 0
        assert "iam-mode: permissive" in result.output

    def test_set_and_reset(self, runner, config_path):
        result = invoke(runner, config_path, "config", "set", "iam-mode", "strict")
        assert result.exit_code == 0
        assert "iam-mode: strict" in invoke(runner, config_path, "config", "get").output

        result = invoke(runner, config_path, "config", "reset")
        assert result.exit_code == 0
        assert "iam-mode: permissive" in invoke(runner, config_path, "config", "get").output

    def test_set_invalid_value(self, runner, config_path):
        result = invoke(runner, config_path, "config", "set", "iam-mode", "paranoid")

        assert result.exit_code == 1
        assert "invalid iam-mode" in result.output
