"""Credential alias resolution and entry normalization."""

import pytest

from seedkit.credentials import CredentialResolver, normalize_entries
from seedkit.exceptions import ValidationError
from seedkit.types import CredentialVisibility, SeedCredentialEntry


@pytest.fixture
def resolver(environment):
    return CredentialResolver(environment.credentials)


class TestResolve:
    @pytest.mark.parametrize("alias", ["openai", "OpenAI", "  open_ai ", "openAIApi", "OPENAIAPI"])
    def test_aliases_and_canonical_type(self, resolver, alias):
        assert resolver.resolve(alias).credential_name == "openAIApi"

    def test_unknown_returns_none(self, resolver):
        assert resolver.resolve("salesforce") is None
        assert resolver.resolve(None) is None

    def test_require_raises(self, resolver):
        with pytest.raises(ValidationError) as exc_info:
            resolver.require("salesforce")
        assert exc_info.value.invalid == ["salesforce"]
        assert exc_info.value.status_code == 400

    def test_validate_aliases_names_every_unknown(self, resolver):
        with pytest.raises(ValidationError) as exc_info:
            resolver.validate_aliases(["openai", "salesforce", "exa", "hubspot"])
        assert exc_info.value.invalid == ["salesforce", "hubspot"]
        assert "salesforce" in str(exc_info.value) and "hubspot" in str(exc_info.value)

    def test_validate_aliases_accepts_known(self, resolver):
        resolver.validate_aliases(["Jira", "confluenceCloudApi", "github"])

    def test_known_types_in_catalog_order(self, resolver):
        types = resolver.known_types()
        assert types[:2] == ["openAIApi", "exaSearchApi"]
        assert "slackApi" in types
        assert len(types) == len(set(types))


class TestNormalizeEntries:
    def test_none_is_empty(self):
        assert normalize_entries(None) == []

    def test_single_entry_becomes_list(self):
        entry = SeedCredentialEntry(name="A")
        assert normalize_entries(entry) == [entry]

    def test_dicts_are_validated(self):
        entries = normalize_entries([
            {"name": "A", "assigned": True, "visibility": ["organization"]},
            {"name": "B", "create": False},
        ])
        assert entries[0].assigned is True
        assert entries[0].visibility == [CredentialVisibility.ORGANIZATION]
        assert entries[1].create is False
