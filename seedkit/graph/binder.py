"""Credential binding passes over a FlowGraph.

All functions mutate the graph's document in place and are otherwise pure
(no I/O), so they can be called from the composer and from tests alike.

Protocol: clear every *known* canonical type first, then bind the requested
subset. :func:`apply_bindings` runs both phases; the single-type functions
are exposed for callers that need finer control.
"""

from __future__ import annotations

import logging
from typing import Iterable, Mapping

from seedkit.graph.model import CREDENTIAL_INPUT, CREDENTIAL_SLOT, FlowGraph

logger = logging.getLogger(__name__)


def clear_binding(graph: FlowGraph, canonical_type: str) -> int:
    """Remove the generic slots and named fields of every node accepting *canonical_type*.

    Returns the number of nodes visited.
    """
    matches = graph.matches(canonical_type)
    for node, names in matches:
        data = node.raw.get("data")
        if not isinstance(data, dict):
            continue
        data.pop(CREDENTIAL_SLOT, None)
        inputs = data.get("inputs")
        if isinstance(inputs, dict):
            inputs.pop(CREDENTIAL_INPUT, None)
            for name in names:
                inputs.pop(name, None)
        logger.debug("[Graph] Cleared %s from node %s (%s)", canonical_type, node.id, node.label)
    return len(matches)


def bind_credential(graph: FlowGraph, canonical_type: str, credential_id: str) -> int:
    """Write *credential_id* into every node accepting *canonical_type*.

    Both the generic slots and each named input field are written so nodes
    reading either representation see the same credential. Returns the
    number of nodes bound.
    """
    matches = graph.matches(canonical_type)
    for node, names in matches:
        node.data[CREDENTIAL_SLOT] = credential_id
        inputs = node.inputs
        inputs[CREDENTIAL_INPUT] = credential_id
        for name in names:
            inputs[name] = credential_id
        logger.debug("[Graph] Bound %s=%s on node %s (%s)", canonical_type, credential_id, node.id, node.label)
    return len(matches)


def apply_bindings(
    graph: FlowGraph,
    known_types: Iterable[str],
    assignments: Mapping[str, str],
) -> dict[str, int]:
    """Clear every known type, then bind *assignments* (canonical type → credential id).

    Returns canonical type → number of nodes bound.
    """
    for canonical_type in known_types:
        clear_binding(graph, canonical_type)

    bound = {}
    for canonical_type, credential_id in assignments.items():
        bound[canonical_type] = bind_credential(graph, canonical_type, credential_id)
        if not bound[canonical_type]:
            logger.warning("[Graph] No node accepts %s; credential %s left unbound", canonical_type, credential_id)
    logger.info("[Graph] Applied %d credential assignment(s)", len(bound))
    return bound


def bound_credentials(graph: FlowGraph) -> dict[str, set[str]]:
    """Canonical type → credential ids currently written into its named fields."""
    found: dict[str, set[str]] = {}
    for canonical_type in graph.credential_types():
        for node, names in graph.matches(canonical_type):
            data = node.raw.get("data")
            inputs = data.get("inputs") if isinstance(data, dict) else None
            if not isinstance(inputs, dict):
                continue
            for name in names:
                value = inputs.get(name)
                if value:
                    found.setdefault(canonical_type, set()).add(value)
    return found
