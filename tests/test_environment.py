"""Environment loader: required keys, role users, credential catalog."""

import pytest

from seedkit.environment import (
    REQUIRED_ENV_VARS,
    build_credential_data,
    get_available_test_credentials,
    get_available_test_users,
    load_test_environment,
    resolve_initial_chatflow_id,
)
from seedkit.exceptions import ConfigurationError
from seedkit.types import TestUserRole

from tests.conftest import ADMIN_EMAIL, BUILDER_EMAIL, ORG_AUTH0_ID, TEMPLATE_ID


class TestLoad:
    def test_builds_organization_and_role_users(self, environment):
        assert environment.organization.auth0_id == ORG_AUTH0_ID
        assert environment.organization.name == "Seedkit Enterprise"
        assert set(environment.users) == set(TestUserRole)
        admin = environment.users[TestUserRole.ADMIN]
        assert admin.email == ADMIN_EMAIL
        assert admin.auth0_id == "auth0|admin"
        assert admin.name == "Admin User"
        assert environment.users[TestUserRole.BUILDER].auth0_id is None

    def test_template_ids_are_split_and_trimmed(self, environment):
        assert environment.template_ids[0] == TEMPLATE_ID
        assert len(environment.template_ids) == 2
        assert resolve_initial_chatflow_id(environment) == TEMPLATE_ID

    def test_catalog_is_loaded(self, environment):
        assert {"openai", "exa", "jira", "confluence", "github", "slack", "contentful"} <= set(environment.credentials)
        assert environment.credentials["openai"].credential_name == "openAIApi"

    def test_user_by_email_is_case_insensitive(self, environment):
        assert environment.user_by_email(BUILDER_EMAIL.upper()).role == TestUserRole.BUILDER
        assert environment.user_by_email("nobody@seedkit.test") is None


class TestMissingKeys:
    def test_every_missing_key_is_reported(self, env_vars):
        del env_vars["TEST_USER_PASSWORD"]
        del env_vars["TEST_ENTERPRISE_ORG_NAME"]
        with pytest.raises(ConfigurationError) as exc_info:
            load_test_environment(env_vars)
        assert set(exc_info.value.missing) == {"TEST_USER_PASSWORD", "TEST_ENTERPRISE_ORG_NAME"}
        assert "TEST_USER_PASSWORD" in str(exc_info.value)

    def test_blank_value_counts_as_missing(self, env_vars):
        env_vars["TEST_USER_ENTERPRISE_MEMBER_EMAIL"] = "   "
        with pytest.raises(ConfigurationError) as exc_info:
            load_test_environment(env_vars)
        assert exc_info.value.missing == ["TEST_USER_ENTERPRISE_MEMBER_EMAIL"]

    def test_empty_mapping_reports_all_required(self):
        with pytest.raises(ConfigurationError) as exc_info:
            load_test_environment({})
        assert exc_info.value.missing == REQUIRED_ENV_VARS

    def test_template_list_without_ids(self, env_vars):
        env_vars["INITIAL_CHATFLOW_IDS"] = " , ,"
        with pytest.raises(ConfigurationError) as exc_info:
            load_test_environment(env_vars)
        assert exc_info.value.missing == ["INITIAL_CHATFLOW_IDS"]


class TestCredentialData:
    def test_defaults_when_env_unset(self, environment):
        data = build_credential_data(environment.credentials["openai"], environment)
        assert data == {"openAIApiKey": "test-openai-api-key"}

    def test_env_value_wins(self, env_vars):
        env_vars["TEST_OPENAI_API_KEY"] = "sk-real"
        environment = load_test_environment(env_vars)
        assert build_credential_data(environment.credentials["openai"], environment) == {"openAIApiKey": "sk-real"}

    def test_multi_field_definition(self, env_vars):
        env_vars["TEST_JIRA_EMAIL"] = "qa@example.com"
        environment = load_test_environment(env_vars)
        data = build_credential_data(environment.credentials["jira"], environment)
        assert data["email"] == "qa@example.com"
        assert data["apiToken"] == "test-jira-api-token"


class TestHelpers:
    def test_available_users(self, environment):
        users = get_available_test_users(environment)
        assert users["admin"] == {"email": ADMIN_EMAIL, "name": "Admin User"}
        assert users["member"]["name"] is None

    def test_available_credentials_reports_env(self, env_vars):
        env_vars["TEST_EXA_API_KEY"] = "exa-real"
        available = get_available_test_credentials(load_test_environment(env_vars))
        assert available["exa"]["has_env_vars"] is True
        assert available["openai"]["has_env_vars"] is False
        assert available["openai"]["credential_name"] == "openAIApi"
        assert available["openai"]["name"] == "E2E OpenAI Key"
