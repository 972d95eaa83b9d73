"""
Graph construction: decide which resources are related and in which direction.

Two discovery strategies coexist and are deliberately not unified:

  * event source mappings are resolved structurally, by reading the exact
    ``Fn::GetAtt`` / ``Ref`` shapes CloudFormation uses to bind a queue to a function;
  * every other relationship is found heuristically, by serialising a resource's
    reference-bearing field to text and looking for the target's logical name in it.

The heuristic has known false positives (a name that is a substring of unrelated text)
and false negatives (references hidden behind indirection such as ``Fn::ImportValue``).
"""
import json
from typing import Any, List, Optional, Tuple

from cfn2mermaid.models.graph import Edge
from cfn2mermaid.models.resource import (
    ApiMethodProperties,
    EventSourceMappingProperties,
    OtherProperties,
    Resource,
    ResourceKind,
    Template,
)


def _stringify_keys(val: Any) -> Any:
    """YAML allows dates, numbers and booleans as mapping keys; JSON only strings."""
    if isinstance(val, dict):
        return {str(k): _stringify_keys(v) for k, v in val.items()}
    if isinstance(val, list):
        return [_stringify_keys(v) for v in val]
    return val


def serialize_value(val: Any) -> str:
    """Flatten a structured property value to compact JSON text."""
    return json.dumps(
        _stringify_keys(val), separators=(",", ":"), ensure_ascii=False, default=str
    )


def _reference_field(r: Resource) -> Tuple[bool, Any]:
    props = r.properties
    if r.kind == ResourceKind.OTHER and isinstance(props, OtherProperties):
        return True, props.value
    if r.kind == ResourceKind.API_METHOD and isinstance(props, ApiMethodProperties):
        return True, props.integration
    # Functions, queues and mappings are never scanned textually
    return False, None


def references(source: Resource, target: Resource) -> bool:
    """True when ``source`` textually mentions ``target`` by logical name."""
    scanned, val = _reference_field(source)
    if not scanned:
        return False
    return target.name in serialize_value(val)


def find_referencing(template: Template, target: Resource) -> List[Resource]:
    return [r for r in template if references(r, target)]


# ------------------------------------------------------------------ event source mappings

def _get_att_target(val: Any) -> Optional[str]:
    """
    Return X from an attribute reference on X:
      {"Fn::GetAtt": ["X", "Arn"]}
      {"Fn::GetAtt": "X.Arn"}
    """
    if not isinstance(val, dict) or "Fn::GetAtt" not in val:
        return None
    att = val["Fn::GetAtt"]
    if isinstance(att, list) and len(att) == 2 and isinstance(att[0], str):
        name, attribute = att
    elif isinstance(att, str) and "." in att:
        name, attribute = att.split(".", 1)
    else:
        return None
    # Only the ARN identifies the event source
    return name if attribute == "Arn" else None


def _ref_target(val: Any) -> Optional[str]:
    if isinstance(val, dict) and isinstance(val.get("Ref"), str):
        return val["Ref"]
    return None


def resolve_event_source_mapping(
    template: Template, mapping: Resource
) -> Optional[Tuple[Resource, Resource]]:
    """
    Return the (queue, function) pair bound by ``mapping``, or None when either
    side is not in the expected shape or names a resource missing from the template
    (or one that cannot be drawn).
    """
    props = mapping.properties
    if not isinstance(props, EventSourceMappingProperties):
        return None

    source_name = _get_att_target(props.event_source_arn)
    function_name = _ref_target(props.function_name)
    if source_name is None or function_name is None:
        return None

    source = template.get(source_name)
    function = template.get(function_name)
    if source is None or function is None:
        return None
    # Endpoints must be drawable nodes: streams, tables and other mappings are dropped
    for endpoint in (source, function):
        if endpoint.kind in (ResourceKind.OTHER, ResourceKind.EVENT_SOURCE_MAPPING):
            return None
    return source, function


def find_unresolved_mappings(template: Template) -> List[Resource]:
    """Event source mappings that ``build`` drops from the graph."""
    return [
        r for r in template
        if r.kind == ResourceKind.EVENT_SOURCE_MAPPING
        and resolve_event_source_mapping(template, r) is None
    ]


# ------------------------------------------------------------------ build

def build(template: Template) -> List[Edge]:
    """
    Produce the directed edges of ``template`` in scan order.

    Edges are not deduplicated: two matches between the same pair yield two edges.
    """
    edges: List[Edge] = []

    for r in template:
        if not r.is_graph_worthy:
            continue

        if r.kind == ResourceKind.EVENT_SOURCE_MAPPING:
            pair = resolve_event_source_mapping(template, r)
            if pair is not None:
                edges.append(Edge(*pair))
            continue

        for src in find_referencing(template, r):
            if src.is_graph_worthy:
                edges.append(Edge(src, r))

    return edges
