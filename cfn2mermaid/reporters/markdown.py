"""
Markdown report generator: resource inventory plus the Mermaid diagram.
"""
from datetime import datetime, timezone
from typing import Dict, List, Sequence

from jinja2 import Environment

from cfn2mermaid import __version__
from cfn2mermaid.models.graph import Edge
from cfn2mermaid.models.resource import Resource, ResourceKind, Template
from cfn2mermaid.reporters import mermaid

_KIND_ORDER = [
    ResourceKind.API_METHOD,
    ResourceKind.FUNCTION,
    ResourceKind.QUEUE,
    ResourceKind.EVENT_SOURCE_MAPPING,
    ResourceKind.OTHER,
]


def _md_cell(text: str) -> str:
    return str(text).replace("|", "\\|")


def _count_by_kind(template: Template) -> Dict[str, int]:
    counts: Dict[str, int] = {k.value: 0 for k in _KIND_ORDER}
    for r in template:
        counts[r.kind.value] += 1
    return counts


_TEMPLATE = """\
# Architecture Diagram

**Generated:** {{ generated }}
**Source:** {{ source }}
**Tool:** cfn2mermaid v{{ version }}

---

## Summary

The template declares **{{ resource_count }} resources** connected by **{{ edge_count }} edges**:
{% for kind in kinds %}
- **{{ kind }}**: {{ counts[kind] }}{% endfor %}

---

## Resource Inventory

| # | Resource | Type | Kind | Display Name |
|---|----------|------|------|--------------|
{% for r in resources %}| {{ loop.index }} | `{{ r.name | cell }}` | `{{ r.source_type | cell }}` | {{ r.kind.value }} | {{ display_name(r) | cell }} |
{% endfor %}
{% if unresolved %}
---

## Unresolved Event Source Mappings

These mappings do not bind a known queue to a known function and are left out of the diagram.
{% for r in unresolved %}
- `{{ r.name }}`{% endfor %}
{% endif %}
---

## Diagram

{{ diagram }}
"""


def build_report(
    template: Template,
    edges: List[Edge],
    source_path: str,
    direction: str = "LR",
    unresolved: Sequence[Resource] = (),
) -> str:
    env = Environment(autoescape=False)
    env.filters["cell"] = _md_cell
    report = env.from_string(_TEMPLATE)

    return report.render(
        generated=datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M UTC"),
        source=source_path,
        version=__version__,
        resource_count=len(template),
        edge_count=len(edges),
        kinds=[k.value for k in _KIND_ORDER],
        counts=_count_by_kind(template),
        resources=list(template),
        display_name=mermaid.display_name,
        unresolved=list(unresolved),
        diagram=mermaid.render(edges, direction=direction),
    )
