"""Typed flow graph and the clear-then-bind credential protocol."""

import json

import pytest

from seedkit.exceptions import SeedError
from seedkit.graph import FlowGraph, apply_bindings, bind_credential, bound_credentials, clear_binding
from seedkit.graph.model import CREDENTIAL_INPUT, CREDENTIAL_SLOT
from seedkit.seed.template import load_template_fixture

KNOWN = [
    "openAIApi", "exaSearchApi", "JiraApi", "confluenceCloudApi",
    "githubApi", "slackApi", "contentfulManagementApi",
]


@pytest.fixture
def graph():
    return FlowGraph.parse(load_template_fixture()["flowData"])


def _node(graph, node_id):
    return next(n for n in graph.nodes if n.id == node_id)


def _inputs(graph, node_id):
    return _node(graph, node_id).raw["data"].get("inputs", {})


class TestFlowGraph:
    def test_index_lists_nodes_per_type(self, graph):
        openai = {node.id: names for node, names in graph.matches("openAIApi")}
        assert openai == {
            "chatOpenAI_0": ("credential",),
            "openAIEmbeddings_0": ("credential",),
            "researchTool_0": ("modelCredential",),
        }
        assert graph.matches("pineconeApi") == []
        assert set(KNOWN) == graph.credential_types()

    def test_parse_accepts_string(self, graph):
        again = FlowGraph.parse(graph.dumps())
        assert [n.id for n in again.nodes] == [n.id for n in graph.nodes]

    def test_parse_empty(self):
        assert FlowGraph.parse(None).nodes == []
        assert FlowGraph.parse("").nodes == []

    def test_invalid_json(self):
        with pytest.raises(SeedError) as exc_info:
            FlowGraph.parse("{not json")
        assert exc_info.value.status_code == 422

    def test_non_object_document(self):
        with pytest.raises(SeedError):
            FlowGraph.parse("[1, 2]")

    def test_malformed_params_are_ignored(self):
        graph = FlowGraph.parse({"nodes": [
            {"id": "a", "data": {"inputParams": [
                {"name": "credential", "type": "credential", "credentialNames": "openAIApi"},
                {"name": "other", "type": "credential", "credentialNames": [None, "exaSearchApi"]},
                "garbage",
            ]}},
            {"id": "b"},
            "not-a-node",
        ]})
        assert graph.matches("openAIApi") == []
        assert [(n.id, names) for n, names in graph.matches("exaSearchApi")] == [("a", ("other",))]
        assert _node(graph, "b").label == "Unknown"


class TestBinding:
    def test_bind_writes_generic_slots_and_named_fields(self, graph):
        assert bind_credential(graph, "openAIApi", "cred-1") == 3
        chat = _node(graph, "chatOpenAI_0").raw["data"]
        assert chat[CREDENTIAL_SLOT] == "cred-1"
        assert chat["inputs"][CREDENTIAL_INPUT] == "cred-1"
        assert chat["inputs"]["modelName"] == "gpt-4o-mini"
        assert _inputs(graph, "researchTool_0")["modelCredential"] == "cred-1"
        assert "searchCredential" not in _inputs(graph, "researchTool_0")

    def test_clear_removes_only_matching_nodes(self, graph):
        bind_credential(graph, "openAIApi", "cred-1")
        bind_credential(graph, "JiraApi", "cred-2")
        clear_binding(graph, "openAIApi")
        assert CREDENTIAL_SLOT not in _node(graph, "chatOpenAI_0").raw["data"]
        assert CREDENTIAL_INPUT not in _inputs(graph, "chatOpenAI_0")
        assert _inputs(graph, "jiraTool_0")["credential"] == "cred-2"

    def test_clear_before_set(self, graph):
        apply_bindings(graph, KNOWN, {"openAIApi": "cred-1", "exaSearchApi": "cred-2"})
        apply_bindings(graph, KNOWN, {"exaSearchApi": "cred-3"})

        assert bound_credentials(graph) == {"exaSearchApi": {"cred-3"}}
        research = _inputs(graph, "researchTool_0")
        assert "modelCredential" not in research
        assert research["searchCredential"] == "cred-3"
        assert CREDENTIAL_SLOT not in _node(graph, "openAIEmbeddings_0").raw["data"]

    def test_every_accepting_node_is_bound(self, graph):
        assignments = {t: f"id-{t}" for t in KNOWN if t != "slackApi"}
        counts = apply_bindings(graph, KNOWN, assignments)

        assert counts["openAIApi"] == 3
        assert counts["exaSearchApi"] == 2
        for credential_type, credential_id in assignments.items():
            for node, names in graph.matches(credential_type):
                for name in names:
                    assert node.raw["data"]["inputs"][name] == credential_id
        assert "credential" not in _inputs(graph, "slackTool_0")

    def test_type_without_nodes_binds_nothing(self, graph):
        assert apply_bindings(graph, KNOWN, {"pineconeApi": "x"}) == {"pineconeApi": 0}
        assert bound_credentials(graph) == {}

    def test_unrelated_fields_survive(self, graph):
        before = json.loads(graph.dumps())
        apply_bindings(graph, KNOWN, {"openAIApi": "cred-1"})
        after = json.loads(graph.dumps())

        assert after["edges"] == before["edges"]
        agent_before = next(n for n in before["nodes"] if n["id"] == "toolAgent_0")
        agent_after = next(n for n in after["nodes"] if n["id"] == "toolAgent_0")
        assert agent_after == agent_before
        assert [n["position"] for n in after["nodes"]] == [n["position"] for n in before["nodes"]]

    def test_node_without_inputs_gets_them_on_bind(self):
        graph = FlowGraph.parse({"nodes": [{"id": "n", "data": {"inputParams": [
            {"name": "credential", "type": "credential", "credentialNames": ["slackApi"]},
        ]}}]})
        bind_credential(graph, "slackApi", "s-1")
        assert graph.to_dict()["nodes"][0]["data"]["inputs"] == {CREDENTIAL_INPUT: "s-1", "credential": "s-1"}
