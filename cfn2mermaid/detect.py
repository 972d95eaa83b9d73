import json
import os

import yaml

# Loader that tolerates CloudFormation-specific YAML tags (!Ref, !Sub, etc.)
# without raising an error, so detect_format can read CFN templates.
class _TagTolerantLoader(yaml.SafeLoader):
    pass

_TagTolerantLoader.add_multi_constructor(
    "!",
    lambda loader, suffix, node: loader.construct_yaml_str(node)
    if isinstance(node, yaml.ScalarNode) else None,
)

_YAML_EXTENSIONS = (".yaml", ".yml", ".template")


def _looks_like_cfn(doc) -> bool:
    if not isinstance(doc, dict):
        return False
    if "AWSTemplateFormatVersion" in doc:
        return True
    resources = doc.get("Resources")
    if not isinstance(resources, dict):
        return False
    return any(
        isinstance(v, dict) and str(v.get("Type", "")).startswith("AWS::")
        for v in resources.values()
    )


def detect_format(filepath: str) -> str:
    """
    Return 'cloudformation' or 'unknown'.
    """
    _, ext = os.path.splitext(filepath.lower())

    if ext == ".json":
        try:
            with open(filepath, encoding="utf-8") as fh:
                data = json.load(fh)
        except (OSError, ValueError):
            return "unknown"
        return "cloudformation" if _looks_like_cfn(data) else "unknown"

    if ext in _YAML_EXTENSIONS:
        try:
            with open(filepath, encoding="utf-8") as fh:
                doc = yaml.load(fh, Loader=_TagTolerantLoader)
        except (OSError, ValueError, yaml.YAMLError):
            return "unknown"
        return "cloudformation" if _looks_like_cfn(doc) else "unknown"

    return "unknown"
