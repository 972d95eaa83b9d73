import json
import os
from typing import Any, Callable, Dict, List

import yaml

from cfn2mermaid.models.resource import (
    ApiMethodProperties,
    EventSourceMappingProperties,
    FunctionProperties,
    OtherProperties,
    Properties,
    QueueProperties,
    Resource,
    ResourceKind,
    Template,
)


class TemplateParseError(ValueError):
    """The template cannot be turned into typed resources."""


# ------------------------------------------------------------------ CFN YAML loader
# yaml.safe_load can't handle CloudFormation-specific tags (!Ref, !GetAtt, !Sub, etc.).
# We turn them into their long-form JSON equivalents so YAML and JSON templates
# produce identical values downstream.

class _CfnLoader(yaml.SafeLoader):
    pass


def _cfn_tag_constructor(loader: yaml.SafeLoader, tag_suffix: str, node: yaml.Node) -> Any:
    """Convert !Ref X into {"Ref": X} and any other !Tag into {"Fn::Tag": value}."""
    if isinstance(node, yaml.ScalarNode):
        value: Any = loader.construct_scalar(node)
    elif isinstance(node, yaml.SequenceNode):
        value = loader.construct_sequence(node, deep=True)
    elif isinstance(node, yaml.MappingNode):
        value = loader.construct_mapping(node, deep=True)
    else:
        value = None

    if tag_suffix == "Ref":
        return {"Ref": value}
    # !GetAtt A.B → ["A", "B"]
    if tag_suffix == "GetAtt" and isinstance(value, str):
        value = value.split(".", 1)
    return {f"Fn::{tag_suffix}": value}


_CfnLoader.add_multi_constructor("!", _cfn_tag_constructor)


def load_template(filepath: str) -> Any:
    """Read a JSON or YAML template document from disk."""
    _, ext = os.path.splitext(filepath.lower())
    try:
        with open(filepath, encoding="utf-8") as fh:
            if ext == ".json":
                return json.load(fh)
            return yaml.load(fh, Loader=_CfnLoader)
    except (OSError, ValueError, yaml.YAMLError) as exc:
        raise TemplateParseError(f"failed to read {filepath}: {exc}") from exc


# ------------------------------------------------------------------ classification

_TYPE_MAP = {
    "AWS::Lambda::Function":           ResourceKind.FUNCTION,
    "AWS::SQS::Queue":                 ResourceKind.QUEUE,
    "AWS::ApiGateway::Method":         ResourceKind.API_METHOD,
    "AWS::Lambda::EventSourceMapping": ResourceKind.EVENT_SOURCE_MAPPING,
}


def classify(resource_type: str) -> ResourceKind:
    return _TYPE_MAP.get(resource_type, ResourceKind.OTHER)


def _require(name: str, props: Dict[str, Any], key: str) -> Any:
    if key not in props:
        raise TemplateParseError(f"resource '{name}': missing required property '{key}'")
    return props[key]


def _require_str(name: str, props: Dict[str, Any], key: str) -> str:
    val = _require(name, props, key)
    if not isinstance(val, str):
        raise TemplateParseError(
            f"resource '{name}': property '{key}' must be a string, got {type(val).__name__}"
        )
    return val


def _function_props(name: str, props: Dict[str, Any]) -> Properties:
    archs = _require(name, props, "Architectures")
    if not isinstance(archs, list) or not archs or not all(isinstance(a, str) for a in archs):
        raise TemplateParseError(
            f"resource '{name}': 'Architectures' must be a non-empty list of strings"
        )
    return FunctionProperties(
        function_name=_require_str(name, props, "FunctionName"),
        architectures=tuple(archs),
    )


def _queue_props(name: str, props: Dict[str, Any]) -> Properties:
    return QueueProperties(queue_name=_require_str(name, props, "QueueName"))


def _api_method_props(name: str, props: Dict[str, Any]) -> Properties:
    return ApiMethodProperties(
        http_method=_require_str(name, props, "HttpMethod"),
        integration=_require(name, props, "Integration"),
    )


def _event_source_mapping_props(name: str, props: Dict[str, Any]) -> Properties:
    return EventSourceMappingProperties(
        event_source_arn=_require(name, props, "EventSourceArn"),
        function_name=_require(name, props, "FunctionName"),
    )


_PROPERTY_PARSERS: Dict[ResourceKind, Callable[[str, Dict[str, Any]], Properties]] = {
    ResourceKind.FUNCTION:             _function_props,
    ResourceKind.QUEUE:                _queue_props,
    ResourceKind.API_METHOD:           _api_method_props,
    ResourceKind.EVENT_SOURCE_MAPPING: _event_source_mapping_props,
}


def parse_resource(logical_name: str, definition: Any) -> Resource:
    if not isinstance(definition, dict):
        raise TemplateParseError(f"resource '{logical_name}' is not a mapping")
    resource_type = definition.get("Type")
    if not isinstance(resource_type, str) or not resource_type:
        raise TemplateParseError(f"resource '{logical_name}' has no Type")

    kind = classify(resource_type)
    properties = definition.get("Properties")

    if kind == ResourceKind.OTHER:
        parsed: Properties = OtherProperties(value=properties if properties is not None else {})
    else:
        if not isinstance(properties, dict):
            raise TemplateParseError(
                f"resource '{logical_name}' ({resource_type}) has no Properties mapping"
            )
        parsed = _PROPERTY_PARSERS[kind](logical_name, properties)

    return Resource(
        name=logical_name,
        kind=kind,
        properties=parsed,
        source_type=resource_type,
    )


def parse_template(document: Any) -> Template:
    """Classify every entry of the document's Resources section, in document order."""
    if not isinstance(document, dict):
        raise TemplateParseError("template root is not a mapping")
    cfn_resources = document.get("Resources")
    if not isinstance(cfn_resources, dict):
        raise TemplateParseError("template has no Resources mapping")

    resources: List[Resource] = [
        parse_resource(str(logical_name), definition)
        for logical_name, definition in cfn_resources.items()
    ]
    return Template(resources=tuple(resources))


def parse_file(filepath: str) -> Template:
    return parse_template(load_template(filepath))
