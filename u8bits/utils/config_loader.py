"""Helpers for loading and validating YAML layout files.

A layout file describes one or more host classes for the source emitter:

    layouts:
      - name: StatusBytes
        size: 2
        types:
          Mode: "mypkg.modes:Mode"
        fields: |
          /// foo is bit 4 of byte 0
          foo: rw 0, 4;
          Mode, mode: rw? 1, 0, 1;
"""

import importlib
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml  # type: ignore[import-untyped]

from u8bits.core.exceptions import ConfigurationError
from u8bits.core.field_spec import FieldSpec
from u8bits.core.parser import parse_fields


@dataclass(frozen=True)
class LayoutConfig:
    name: str
    size: int
    fields: tuple[FieldSpec, ...]
    types: dict[str, Any] = field(default_factory=dict)
    type_refs: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class LayoutFile:
    path: str
    layouts: tuple[LayoutConfig, ...]


# Layout cache with thread safety
_LAYOUT_CACHE: dict[str, LayoutFile] = {}
_CACHE_LOCK = threading.RLock()


def _load_yaml_file(path: Path) -> dict[str, Any]:
    try:
        with path.open("r", encoding="utf-8") as fh:
            raw = yaml.safe_load(fh)
    except (OSError, yaml.YAMLError) as exc:
        raise ConfigurationError(f"Failed to parse layout file: {exc}") from exc

    if not isinstance(raw, dict):
        raise ConfigurationError("layout file must contain a mapping")
    return raw


def resolve_type(ref: str) -> Any:
    """Import the object named by a "package.module:Attr" reference."""
    module_name, sep, attr_path = ref.partition(":")
    if not sep or not module_name or not attr_path:
        raise ConfigurationError(
            config_key="types", message=f"'{ref}' is not of the form 'module:Name'"
        )
    try:
        obj: Any = importlib.import_module(module_name)
    except ImportError as exc:
        raise ConfigurationError(
            config_key="types", message=f"cannot import module '{module_name}': {exc}"
        ) from exc
    for part in attr_path.split("."):
        try:
            obj = getattr(obj, part)
        except AttributeError as exc:
            raise ConfigurationError(
                config_key="types", message=f"'{module_name}' has no attribute '{attr_path}'"
            ) from exc
    return obj


def _parse_layout(raw: dict[str, Any]) -> LayoutConfig:
    try:
        name = raw["name"]
        size = raw["size"]
        declarations = raw["fields"]
        type_refs = {str(k): str(v) for k, v in (raw.get("types") or {}).items()}
    except KeyError as exc:
        raise ConfigurationError(f"Missing required layout key: {exc}") from exc
    except (TypeError, ValueError, AttributeError) as exc:
        raise ConfigurationError(f"Invalid layout schema: {exc}") from exc

    if not isinstance(name, str) or not name.isidentifier():
        raise ConfigurationError(config_key="name", message=f"{name!r} is not a valid class name")
    if not isinstance(size, int) or isinstance(size, bool):
        raise ConfigurationError(config_key=f"{name}.size", message=f"{size!r} is not an integer")
    if size <= 0:
        raise ConfigurationError(config_key=f"{name}.size", message="size must be positive")
    if not isinstance(declarations, str):
        raise ConfigurationError(
            config_key=f"{name}.fields", message="fields must be declaration text"
        )
    for type_name in type_refs:
        if not type_name.isidentifier():
            raise ConfigurationError(
                config_key=f"{name}.types", message=f"{type_name!r} is not a valid Python name"
            )

    return LayoutConfig(
        name=name,
        size=size,
        fields=parse_fields(declarations),
        types={type_name: resolve_type(ref) for type_name, ref in type_refs.items()},
        type_refs=type_refs,
    )


def _parse_layout_file_from_dict(raw: dict[str, Any], path: str) -> LayoutFile:
    entries = raw.get("layouts")
    if not isinstance(entries, list):
        raise ConfigurationError(config_key="layouts", message="layouts must be a list")

    layouts = []
    seen: set[str] = set()
    for entry in entries:
        if not isinstance(entry, dict):
            raise ConfigurationError(config_key="layouts", message="each layout must be a mapping")
        layout = _parse_layout(entry)
        if layout.name in seen:
            raise ConfigurationError(
                config_key=layout.name, message="layout is defined more than once"
            )
        seen.add(layout.name)
        layouts.append(layout)

    return LayoutFile(path=path, layouts=tuple(layouts))


def load_layouts(path: str) -> LayoutFile:
    """Load and validate layouts from a YAML file.

    Args:
        path: Path to the YAML layout file

    Returns:
        LayoutFile instance

    Raises:
        ConfigurationError: on parse or schema errors
        GrammarError: if a layout's field declarations are malformed
    """
    p = Path(path)
    raw = _load_yaml_file(p)

    return _parse_layout_file_from_dict(raw=raw, path=str(p))


def get_layouts(path: str) -> LayoutFile:
    """Return the layouts in path, loading and caching if necessary.

    THREAD SAFETY: This function is thread-safe.
    """
    key = str(Path(path).resolve())
    with _CACHE_LOCK:
        if key not in _LAYOUT_CACHE:
            _LAYOUT_CACHE[key] = load_layouts(path)
        return _LAYOUT_CACHE[key]


def clear_layout_cache() -> None:
    """Clear all cached layout files.

    All subsequent calls to get_layouts() will reload from disk.
    """
    with _CACHE_LOCK:
        _LAYOUT_CACHE.clear()
