"""Typed view over a serialized chatflow document.

The document stays the source of truth: :class:`FlowGraph` keeps the parsed
JSON and every node wrapper points at the live ``node`` dict inside it, so
serializing after a mutation preserves every unrelated field. On top of
that it builds typed parameter lists and an index from canonical credential
type to the nodes (and named input fields) that accept it.

Document shape::

    {"nodes": [{"id": "...", "data": {"inputParams": [{"name": "credential",
      "type": "credential", "credentialNames": ["openAIApi"]}], "inputs": {...},
      "credential": "<id>"}}], "edges": [...]}
"""

from __future__ import annotations

import json
from typing import Any, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from seedkit.exceptions import SeedError

CREDENTIAL_KIND = "credential"
# Generic slots: some node runtimes read data.credential, others this input.
CREDENTIAL_SLOT = "credential"
CREDENTIAL_INPUT = "FLOWISE_CREDENTIAL_ID"


class NodeParam(BaseModel):
    """One declared input parameter of a node."""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    name: str = ""
    kind: str = Field(default="", alias="type")
    accepts: list[str] = Field(default_factory=list, alias="credentialNames")

    @field_validator("name", "kind", mode="before")
    @classmethod
    def coerce_str(cls, v):
        return v if isinstance(v, str) else ""

    @field_validator("accepts", mode="before")
    @classmethod
    def coerce_accepts(cls, v):
        if not isinstance(v, list):
            return []
        return [item for item in v if isinstance(item, str)]

    @property
    def is_credential(self) -> bool:
        return self.kind == CREDENTIAL_KIND

    def accepts_type(self, canonical_type: str) -> bool:
        return self.is_credential and canonical_type in self.accepts


class FlowNode:
    """Wrapper around one node dict of the document."""

    def __init__(self, raw: dict[str, Any], position: int) -> None:
        self.raw = raw
        self.id = raw.get("id") or f"node_{position}"
        data = raw.get("data") if isinstance(raw.get("data"), dict) else {}
        self.label = data.get("name") or data.get("label") or "Unknown"
        raw_params = data.get("inputParams") if isinstance(data.get("inputParams"), list) else []
        self.params = [NodeParam.model_validate(p) for p in raw_params if isinstance(p, dict)]

    @property
    def data(self) -> dict[str, Any]:
        """The node's ``data`` dict, created in the document on first write."""
        if not isinstance(self.raw.get("data"), dict):
            self.raw["data"] = {}
        return self.raw["data"]

    @property
    def inputs(self) -> dict[str, Any]:
        data = self.data
        if not isinstance(data.get("inputs"), dict):
            data["inputs"] = {}
        return data["inputs"]

    def credential_params(self, canonical_type: str) -> list[NodeParam]:
        return [p for p in self.params if p.accepts_type(canonical_type)]

    def __repr__(self) -> str:
        return f"FlowNode(id={self.id!r}, label={self.label!r})"


class FlowGraph:
    """Parsed chatflow document with a credential-type index."""

    def __init__(self, document: dict[str, Any]) -> None:
        self.document = document
        raw_nodes = document.get("nodes") if isinstance(document.get("nodes"), list) else []
        self.nodes = [FlowNode(n, i) for i, n in enumerate(raw_nodes) if isinstance(n, dict)]
        self._index: dict[str, list[tuple[FlowNode, tuple[str, ...]]]] = {}
        for node in self.nodes:
            by_type: dict[str, list[str]] = {}
            for param in node.params:
                if not param.is_credential:
                    continue
                for canonical_type in param.accepts:
                    names = by_type.setdefault(canonical_type, [])
                    if param.name and param.name not in names:
                        names.append(param.name)
            for canonical_type, names in by_type.items():
                self._index.setdefault(canonical_type, []).append((node, tuple(names)))

    @classmethod
    def parse(cls, flow_data: Union[str, dict[str, Any], None]) -> "FlowGraph":
        """Build a graph from the stored ``flow_data`` string (or an already-parsed dict)."""
        if flow_data is None or flow_data == "":
            return cls({})
        if isinstance(flow_data, dict):
            return cls(flow_data)
        try:
            document = json.loads(flow_data)
        except json.JSONDecodeError as exc:
            raise SeedError(f"Chatflow flow_data is not valid JSON: {exc}", status_code=422) from exc
        if not isinstance(document, dict):
            raise SeedError("Chatflow flow_data must be a JSON object", status_code=422)
        return cls(document)

    def matches(self, canonical_type: str) -> list[tuple[FlowNode, tuple[str, ...]]]:
        """(node, named input fields) for every node accepting *canonical_type*."""
        return list(self._index.get(canonical_type, ()))

    def credential_types(self) -> set[str]:
        return set(self._index)

    def to_dict(self) -> dict[str, Any]:
        return self.document

    def dumps(self) -> str:
        return json.dumps(self.document)
