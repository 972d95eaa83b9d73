"""
JSON graph export.
"""
import json
from datetime import datetime, timezone
from typing import List

from cfn2mermaid import __version__
from cfn2mermaid.models.graph import Edge
from cfn2mermaid.models.resource import ResourceKind, Template
from cfn2mermaid.reporters.mermaid import display_name


def build_report(template: Template, edges: List[Edge], source_path: str) -> str:
    report = {
        "meta": {
            "generated": datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ"),
            "source": source_path,
            "tool": "cfn2mermaid",
            "version": __version__,
        },
        "nodes": [
            {
                "name": r.name,
                "type": r.source_type,
                "kind": r.kind.value,
                "display_name": display_name(r),
            }
            for r in template
            if r.is_graph_worthy and r.kind != ResourceKind.EVENT_SOURCE_MAPPING
        ],
        "edges": [{"from": e.source.name, "to": e.target.name} for e in edges],
    }
    return json.dumps(report, indent=2)
