"""Typed chatflow graph and credential binding passes."""

from seedkit.graph.binder import apply_bindings, bind_credential, bound_credentials, clear_binding
from seedkit.graph.model import FlowGraph, FlowNode, NodeParam

__all__ = [
    "FlowGraph",
    "FlowNode",
    "NodeParam",
    "apply_bindings",
    "bind_credential",
    "bound_credentials",
    "clear_binding",
]
