"""Basic file IO helpers."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml


class DumpLoader(yaml.SafeLoader):
    """YAML loader for front-end dumps and engine config files.

    JSON is a subset of YAML, so the same loader reads ``.json`` dumps.
    Front-ends mark types they could not resolve with ``!unresolved``::

        type: !unresolved T

    which loads as ``{"spelling": "T", "category": "unresolved"}``. Any other
    local tag (``!enum Color``, ``!ref`` ...) loads as its untagged value.
    """


def _construct_tagged(loader: DumpLoader, tag_suffix: str, node: yaml.Node) -> Any:
    if isinstance(node, yaml.ScalarNode):
        value = loader.construct_scalar(node)
        if tag_suffix == "unresolved":
            return {"spelling": value, "category": "unresolved"}
        return value
    if isinstance(node, yaml.SequenceNode):
        return loader.construct_sequence(node)
    if isinstance(node, yaml.MappingNode):
        mapping = loader.construct_mapping(node)
        if tag_suffix == "unresolved":
            mapping["category"] = "unresolved"
        return mapping
    return None


DumpLoader.add_multi_constructor("!", _construct_tagged)


def read_yaml_file(path: Path) -> Any:
    """Return the parsed dump or config if the file exists, otherwise ``None``."""

    if not path.exists():
        return None
    with path.open("r", encoding="utf-8") as handle:
        return yaml.load(handle, Loader=DumpLoader)


def read_yaml_text(text: str) -> Any:
    """Parse YAML (or JSON) text with the dump loader."""

    return yaml.load(text, Loader=DumpLoader)
