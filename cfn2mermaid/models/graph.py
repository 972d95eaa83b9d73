from typing import NamedTuple

from cfn2mermaid.models.resource import Resource


class Edge(NamedTuple):
    """``source`` invokes, feeds or otherwise initiates ``target``."""

    source: Resource
    target: Resource
