"""Document loader: reads YAML into a plain tree of builtin values."""

from __future__ import annotations

from pathlib import Path
from typing import IO, Any, Union

import structlog
import yaml

from openx_config.errors import LoadError

log = structlog.get_logger("config.loader")

# Closed set of node types a loaded document may contain.
RawValue = Union[str, int, float, bool, None, list, dict]
RawTree = dict[str, Any]

_SCALAR_TYPES = (str, int, float, bool, type(None))


class _DocumentLoader(yaml.SafeLoader):
    """SafeLoader that keeps dates and ``HH:MM`` scalars as strings.

    Also rejects duplicate and non-string mapping keys.
    """

    def construct_mapping(self, node, deep=False):
        if not isinstance(node, yaml.MappingNode):
            return super().construct_mapping(node, deep=deep)
        seen: set[str] = set()
        for key_node, _ in node.value:
            if key_node.tag == "tag:yaml.org,2002:merge":
                continue
            key = self.construct_object(key_node, deep=deep)
            if not isinstance(key, str):
                raise yaml.constructor.ConstructorError(
                    "while constructing a mapping", node.start_mark,
                    f"mapping key {key!r} is not a string", key_node.start_mark,
                )
            if key in seen:
                raise yaml.constructor.ConstructorError(
                    "while constructing a mapping", node.start_mark,
                    f"duplicate key {key!r}", key_node.start_mark,
                )
            seen.add(key)
        return super().construct_mapping(node, deep=deep)


def _construct_plain_str(loader: yaml.SafeLoader, node: yaml.ScalarNode) -> str:
    return loader.construct_scalar(node)


def _construct_int(loader: yaml.SafeLoader, node: yaml.ScalarNode) -> int | str:
    # YAML 1.1 reads 08:00 as base-60; expiry times must stay text.
    value = loader.construct_scalar(node)
    if ":" in value:
        return value
    return yaml.SafeLoader.construct_yaml_int(loader, node)


def _construct_float(loader: yaml.SafeLoader, node: yaml.ScalarNode) -> float | str:
    value = loader.construct_scalar(node)
    if ":" in value:
        return value
    return yaml.SafeLoader.construct_yaml_float(loader, node)


_DocumentLoader.add_constructor("tag:yaml.org,2002:timestamp", _construct_plain_str)
_DocumentLoader.add_constructor("tag:yaml.org,2002:int", _construct_int)
_DocumentLoader.add_constructor("tag:yaml.org,2002:float", _construct_float)


def _check_node(value: Any, where: str, parents: frozenset[int] = frozenset()) -> None:
    if isinstance(value, (dict, list)):
        if id(value) in parents:
            raise TypeError(f"recursive alias at {where or '<root>'}")
        parents = parents | {id(value)}
    if isinstance(value, dict):
        for key, child in value.items():
            _check_node(child, f"{where}.{key}" if where else key, parents)
    elif isinstance(value, list):
        for index, child in enumerate(value):
            _check_node(child, f"{where}[{index}]", parents)
    elif not isinstance(value, _SCALAR_TYPES):
        raise TypeError(f"unsupported value of type {type(value).__name__} at {where or '<root>'}")


def _source_name(source: str | Path | IO[str]) -> str:
    if isinstance(source, (str, Path)):
        return str(source)
    return getattr(source, "name", "<stream>")


def load_document(source: str | Path | IO[str]) -> RawTree:
    """Parse a YAML document from a path or an open text stream.

    Raises LoadError if the source can't be read, isn't valid YAML, or its
    root isn't a mapping. An empty document loads as ``{}``.
    """
    name = _source_name(source)
    try:
        if isinstance(source, (str, Path)):
            with open(source, encoding="utf-8") as f:
                data = yaml.load(f, Loader=_DocumentLoader)
        else:
            data = yaml.load(source, Loader=_DocumentLoader)
    except OSError as exc:
        raise LoadError(name, exc.strerror or str(exc)) from exc
    except yaml.YAMLError as exc:
        raise LoadError(name, f"invalid YAML: {exc}") from exc
    except UnicodeDecodeError as exc:
        raise LoadError(name, f"not valid UTF-8: {exc.reason}") from exc

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise LoadError(name, f"top-level value must be a mapping, got {type(data).__name__}")
    try:
        _check_node(data, "")
    except TypeError as exc:
        raise LoadError(name, str(exc)) from exc

    log.info("document_loaded", source=name, sections=list(data))
    return data


def dump_document(tree: RawTree, destination: str | Path | IO[str]) -> None:
    """Write a tree as YAML, keeping key order."""
    if isinstance(destination, (str, Path)):
        with open(destination, "w", encoding="utf-8") as f:
            yaml.safe_dump(tree, f, sort_keys=False, default_flow_style=False)
    else:
        yaml.safe_dump(tree, destination, sort_keys=False, default_flow_style=False)
    log.info("document_written", destination=_source_name(destination))
