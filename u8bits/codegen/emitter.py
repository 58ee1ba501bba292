"""Build-time source emitter.

Renders layouts as a plain Python module: one ByteStruct subclass per layout
with explicit get_/set_ methods calling u8bits.core.bits. The emitted module
needs no parsing or generation at import time. Layouts go through the same
validation as runtime generation, so a module is only written when every
field is valid.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Iterable, Optional

from u8bits.core.conversion import ConversionRegistry
from u8bits.core.exceptions import ConfigurationError, ConversionError
from u8bits.core.field_spec import FieldSpec
from u8bits.core.generator import BUILTIN_TYPES, ResolvedField, plan_unit
from u8bits.interfaces.conversion import FallibleConversion
from u8bits.utils.config_loader import LayoutConfig

logger = logging.getLogger(__name__)

INDENT = "    "


def _docstring(text: str, indent: str) -> str:
    if '"""' in text or "\\" in text or text.endswith('"'):
        return f"{indent}{text!r}"
    body = text.replace("\n", "\n" + indent)
    return f'{indent}"""{body}"""'


def _metadata_decorator(spec: FieldSpec) -> Optional[str]:
    if not spec.metadata:
        return None
    items = ", ".join(f"Metadata({m.kind!r}, {m.text!r})" for m in spec.metadata)
    return f"@with_metadata({items})"


class ModuleEmitter:
    """Collects rendered classes and the imports they need."""

    def __init__(self, conversions: Optional[ConversionRegistry] = None):
        self.conversions = conversions or ConversionRegistry()
        self._imports: dict[str, str] = {}
        self._needs: set[str] = set()
        self._classes: list[str] = []

    def add_layout(self, layout: LayoutConfig) -> None:
        """Validate layout and render its class.

        Raises:
            GenerationError: If any field is invalid
            ConfigurationError: If a type name cannot be imported under that name,
                or is already bound to a different reference by another layout
        """
        for type_name, ref in layout.type_refs.items():
            if not type_name.isidentifier():
                raise ConfigurationError(
                    config_key=f"{layout.name}.types",
                    message=f"{type_name!r} is not a valid Python name",
                )
            bound = self._imports.get(type_name)
            if bound is not None and bound != ref:
                raise ConfigurationError(
                    config_key=f"{layout.name}.types",
                    message=f"{type_name!r} is already bound to {bound!r}, not {ref!r}",
                )
        planned = plan_unit(layout.fields, layout.types, self.conversions, layout.size)

        lines = [f"class {layout.name}(ByteStruct):", f"{INDENT}SIZE = {layout.size}"]
        for field in planned:
            for method in self._render_field(field):
                lines.append("")
                lines.extend(method)
        self._imports.update(layout.type_refs)
        self._classes.append("\n".join(lines))
        logger.debug("Rendered %s with %d fields", layout.name, len(planned))

    def render(self, source: Optional[str] = None) -> str:
        header = "Generated by u8bits"
        if source:
            header += f" from {source}"
        out = [f'"""{header}. Do not edit."""', ""]

        if "Optional" in self._needs:
            out.append("from typing import Optional")
            out.append("")
        out.append("from u8bits.core import bits")
        if "enum_member" in self._needs:
            out.append("from u8bits.core.conversion import enum_member")
        if "with_metadata" in self._needs:
            out.append("from u8bits.core.field_spec import Metadata")
            out.append("from u8bits.core.generator import with_metadata")
        out.append("from u8bits.core.host import ByteStruct")

        for type_name, ref in sorted(self._imports.items()):
            module_name, _, attr = ref.partition(":")
            if attr == type_name:
                out.append(f"from {module_name} import {attr}")
            elif "." not in attr:
                out.append(f"from {module_name} import {attr} as {type_name}")
            else:
                out.append(f"import {module_name}")
                out.append(f"{type_name} = {module_name}.{attr}")

        for cls in self._classes:
            out.extend(["", "", cls])
        return "\n".join(out) + "\n"

    # Private helpers -------------------------------------------------------

    def _render_field(self, field: ResolvedField) -> list[list[str]]:
        spec = field.spec
        if spec.is_range and field.semantic_type is Any:
            assert spec.semantic_type is not None
            raise ConversionError(
                spec.identifier,
                spec.semantic_type,
                "bound to a conversion object; emitted modules need an importable type",
            )
        methods = []
        if spec.direction.readable:
            methods.append(self._method(spec, spec.getter_name, "self", *self._getter(field)))
        if spec.direction.writable:
            methods.append(self._method(spec, spec.setter_name, *self._setter(field)))
        return methods

    def _method(self, spec: FieldSpec, name: str, params: str, returns: str, body: str) -> list[str]:
        lines = []
        decorator = _metadata_decorator(spec)
        if decorator:
            self._needs.add("with_metadata")
            lines.append(INDENT + decorator)
        lines.append(f"{INDENT}def {name}({params}){returns}:")
        if spec.doc:
            lines.append(_docstring(spec.doc, INDENT * 2))
        lines.append(f"{INDENT * 2}{body}")
        return lines

    @staticmethod
    def _annotation(field: ResolvedField) -> Optional[str]:
        name = field.spec.semantic_type
        if name in BUILTIN_TYPES and field.semantic_type is BUILTIN_TYPES[name]:
            return field.semantic_type.__name__
        return name

    def _getter(self, field: ResolvedField) -> tuple[str, str]:
        spec = field.spec
        if not spec.is_range:
            return " -> bool", f"return bits.get_bit(self.data[{spec.byte_index}], {spec.bit_position})"

        raw = f"bits.get_bit_range(self.data[{spec.byte_index}], {spec.lsb}, {spec.msb})"
        annotation = self._annotation(field)
        policy = field.policy
        assert policy is not None
        if spec.direction.fallible:
            assert isinstance(policy, FallibleConversion)
            expr = self._render(spec, policy.render_try_from_raw, raw)
            if annotation:
                self._needs.add("Optional")
                annotation = f"Optional[{annotation}]"
        else:
            expr = self._render(spec, policy.render_from_raw, raw)
        if "enum_member(" in expr:
            self._needs.add("enum_member")
        returns = f" -> {annotation}" if annotation else ""
        return returns, f"return {expr}"

    def _setter(self, field: ResolvedField) -> tuple[str, str, str]:
        spec = field.spec
        target = f"self.data[{spec.byte_index}]"
        if not spec.is_range:
            body = f"{target} = bits.set_bit({target}, {spec.bit_position}, bool(value))"
            return "self, value: bool", " -> None", body

        policy = field.policy
        assert policy is not None
        value = self._render(spec, policy.render_to_raw, "value")
        annotation = self._annotation(field)
        params = f"self, value: {annotation}" if annotation else "self, value"
        body = f"{target} = bits.set_bit_range({target}, {spec.lsb}, {spec.msb}, {value})"
        return params, " -> None", body

    @staticmethod
    def _render(spec: FieldSpec, render: Callable[[str, str], str], expr: str) -> str:
        assert spec.semantic_type is not None
        try:
            return render(expr, spec.semantic_type)
        except NotImplementedError as exc:
            raise ConversionError(spec.identifier, spec.semantic_type, str(exc)) from exc


def emit_module(
    layouts: Iterable[LayoutConfig],
    source: Optional[str] = None,
    conversions: Optional[ConversionRegistry] = None,
) -> str:
    """Render layouts as the source of a Python module.

    Raises:
        GenerationError: If any layout has an invalid field
    """
    emitter = ModuleEmitter(conversions)
    for layout in layouts:
        emitter.add_layout(layout)
    return emitter.render(source)
