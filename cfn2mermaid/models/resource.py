from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterator, Optional, Tuple, Union


class ResourceKind(str, Enum):
    FUNCTION             = "Function"
    QUEUE                = "Queue"
    API_METHOD           = "ApiMethod"
    EVENT_SOURCE_MAPPING = "EventSourceMapping"
    OTHER                = "Other"


@dataclass(frozen=True)
class FunctionProperties:
    function_name: str
    architectures: Tuple[str, ...]


@dataclass(frozen=True)
class QueueProperties:
    queue_name: str


@dataclass(frozen=True)
class ApiMethodProperties:
    http_method: str
    integration: Any       # opaque; scanned textually for references


@dataclass(frozen=True)
class EventSourceMappingProperties:
    event_source_arn: Any  # expected: {"Fn::GetAtt": [queue, "Arn"]}
    function_name: Any     # expected: {"Ref": function}


@dataclass(frozen=True)
class OtherProperties:
    value: Any


Properties = Union[
    FunctionProperties,
    QueueProperties,
    ApiMethodProperties,
    EventSourceMappingProperties,
    OtherProperties,
]


@dataclass(frozen=True)
class Resource:
    name: str              # logical name in the template
    kind: ResourceKind
    properties: Properties
    source_type: str = ""  # e.g. "AWS::SQS::Queue"; reporting only

    @property
    def is_graph_worthy(self) -> bool:
        return self.kind != ResourceKind.OTHER


@dataclass(frozen=True)
class Template:
    resources: Tuple[Resource, ...] = ()

    def __iter__(self) -> Iterator[Resource]:
        return iter(self.resources)

    def __len__(self) -> int:
        return len(self.resources)

    def get(self, name: str) -> Optional[Resource]:
        for r in self.resources:
            if r.name == name:
                return r
        return None
