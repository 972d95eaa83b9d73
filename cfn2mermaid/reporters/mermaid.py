"""
Mermaid flowchart renderer.
"""
import re
from typing import Iterable, List

from cfn2mermaid.models.graph import Edge
from cfn2mermaid.models.resource import (
    FunctionProperties,
    QueueProperties,
    Resource,
    ResourceKind,
)

DIRECTIONS = ("LR", "RL", "TB", "TD", "BT")

# Kind → (opening, closing) bracket pair
_SHAPES = {
    ResourceKind.FUNCTION:             ("([", "])"),   # stadium
    ResourceKind.QUEUE:                ("((", "))"),   # circle
    ResourceKind.API_METHOD:           ("[[", "]]"),   # subroutine
    ResourceKind.EVENT_SOURCE_MAPPING: ("{{", "}}"),   # hexagon
}

_BARE_LABEL_RE = re.compile(r"^[A-Za-z0-9_\-.:/ ]+$")
_RESERVED_IDS = {"end"}


def _sanitize_node_id(name: str) -> str:
    node_id = re.sub(r"[^a-zA-Z0-9_]", "_", name)
    # "end" closes a subgraph and cannot be a node id
    if node_id.lower() in _RESERVED_IDS:
        node_id += "_"
    return node_id


def _escape_label(label: str) -> str:
    if _BARE_LABEL_RE.match(label):
        return label
    return '"' + label.replace('"', "#quot;") + '"'


def display_name(r: Resource) -> str:
    props = r.properties
    if r.kind == ResourceKind.FUNCTION and isinstance(props, FunctionProperties):
        return props.function_name
    if r.kind == ResourceKind.QUEUE and isinstance(props, QueueProperties):
        return props.queue_name
    return r.name


def node_shape(r: Resource) -> str:
    """Return a full Mermaid node declaration, e.g. ``MyQueue((orders))``."""
    brackets = _SHAPES.get(r.kind)
    if brackets is None:
        return ""
    opening, closing = brackets
    return f"{_sanitize_node_id(r.name)}{opening}{_escape_label(display_name(r))}{closing}"


def render(edges: Iterable[Edge], direction: str = "LR") -> str:
    """
    Render edges as a fenced Mermaid block, one line per edge in input order.

    Nodes are declared at every occurrence; Mermaid merges repeated declarations.
    """
    if direction not in DIRECTIONS:
        raise ValueError(f"unsupported flowchart direction: {direction!r}")

    lines: List[str] = ["```mermaid", f"flowchart {direction}"]
    for edge in edges:
        lines.append(f"{node_shape(edge.source)} --> {node_shape(edge.target)}")
    lines.append("```")
    return "\n".join(lines)
