"""
Tests for the policy data models.
"""

from iam_policy.core.models import Binding, Condition, Policy, Principal


class TestPolicy:
    def test_defaults_are_empty(self):
        policy = Policy()

        assert policy.roles == {}
        assert policy.groups == {}
        assert policy.projects == {}

    def test_null_sections_become_empty(self):
        policy = Policy.model_validate({
            "roles": None,
            "groups": {"devs": None},
            "projects": {"p": {"bindings": None}},
        })

        assert policy.roles == {}
        assert policy.groups["devs"].members == []
        assert policy.projects["p"].bindings == []

    def test_unknown_fields_ignored(self):
        policy = Policy.model_validate({
            "version": 2,
            "roles": {"roles/custom.a": {"permissions": [], "stage": "GA"}},
        })

        assert list(policy.roles) == ["roles/custom.a"]
        assert not hasattr(policy, "version")

    def test_summary(self, policy_data):
        policy = Policy.model_validate(policy_data)

        assert policy.summary() == {"roles": 1, "groups": 1, "projects": 1}


class TestBinding:
    def test_is_custom(self):
        assert Binding(role="roles/custom.dev", members=["allUsers"]).is_custom()
        assert not Binding(role="roles/owner", members=["allUsers"]).is_custom()

    def test_condition_optional(self):
        binding = Binding.model_validate({"role": "roles/owner", "members": ["allUsers"]})

        assert binding.condition is None

    def test_condition_without_title(self):
        condition = Condition.model_validate({"expression": "true"})

        assert condition.title == ""
        assert condition.description == ""


class TestPrincipal:
    def test_special_literals(self):
        for literal in ("allUsers", "allAuthenticatedUsers"):
            principal = Principal.parse(literal)
            assert principal.special
            assert str(principal) == literal

    def test_type_and_identifier(self):
        principal = Principal.parse("user:alice@example.com")

        assert principal.type == "user"
        assert principal.identifier == "alice@example.com"
        assert not principal.special

    def test_identifier_keeps_extra_colons(self):
        principal = Principal.parse("group:team:a")

        assert principal.type == "group"
        assert principal.identifier == "team:a"

    def test_missing_separator(self):
        assert Principal.parse("alice@example.com") is None

    def test_special_literal_with_identifier_is_not_special(self):
        principal = Principal.parse("allUsers:x")

        assert principal.type == "allUsers"
        assert not principal.special
