from pathlib import Path

import pytest

from conftest import Sparse
from u8bits.codegen.emitter import ModuleEmitter, emit_module
from u8bits.core.conversion import make_conversion
from u8bits.core.exceptions import (
    ConfigurationError,
    ConversionError,
    DuplicateFieldError,
    PositionError,
)
from u8bits.core.field_spec import Metadata
from u8bits.core.parser import parse_fields
from u8bits.utils.config_loader import LayoutConfig, load_layouts


def layout(text, size=2, name="Reg", types=None, type_refs=None):
    return LayoutConfig(
        name=name,
        size=size,
        fields=parse_fields(text),
        types=types or {},
        type_refs=type_refs or {},
    )


def run(source):
    namespace = {}
    exec(compile(source, "<emitted>", "exec"), namespace)  # noqa: S102
    return namespace


class TestRenderedSource:
    def test_header_and_imports(self):
        source = emit_module([layout("foo: rw 0, 4;")], source="regs.yaml")
        assert source.startswith('"""Generated by u8bits from regs.yaml. Do not edit."""')
        assert "from u8bits.core import bits" in source
        assert "from u8bits.core.host import ByteStruct" in source
        assert "from typing import Optional" not in source
        assert "enum_member" not in source

    def test_single_bit_methods(self):
        source = emit_module([layout("foo: rw 0, 4;")])
        assert "class Reg(ByteStruct):\n    SIZE = 2" in source
        assert "    def get_foo(self) -> bool:\n" in source
        assert "        return bits.get_bit(self.data[0], 4)" in source
        assert "    def set_foo(self, value: bool) -> None:\n" in source
        assert "        self.data[0] = bits.set_bit(self.data[0], 4, bool(value))" in source

    def test_range_methods(self):
        source = emit_module([layout("u8, bar: rw 1, 0, 3;")])
        assert "    def get_bar(self) -> int:\n" in source
        assert "return bits.get_bit_range(self.data[1], 0, 3)" in source
        assert "bits.set_bit_range(self.data[1], 0, 3, int(value))" in source

    def test_docstring_and_metadata(self):
        source = emit_module([layout('/// the flag\n#[inline]\nfoo: r 0, 1;')])
        assert "from u8bits.core.generator import with_metadata" in source
        assert "    @with_metadata(Metadata('doc', 'the flag'), Metadata('attr', 'inline'))" in source
        assert '        """the flag"""' in source

    def test_awkward_docstring_uses_repr(self):
        source = emit_module([layout('/// ends with "quote"\nfoo: r 0, 1;')])
        assert "        'ends with \"quote\"'" in source

    def test_type_imports(self):
        source = emit_module(
            [
                layout(
                    "State, s: rw? 0, 0, 1; Alias, a: w 1, 0, 1;",
                    types={"State": Sparse, "Alias": Sparse},
                    type_refs={"State": "pkg.types:State", "Alias": "pkg.types:Sparse"},
                )
            ]
        )
        assert "from pkg.types import State" in source
        assert "from pkg.types import Sparse as Alias" in source
        assert "from typing import Optional" in source
        assert "from u8bits.core.conversion import enum_member" in source
        assert "def get_s(self) -> Optional[State]:" in source
        assert "return enum_member(State, bits.get_bit_range(self.data[0], 0, 1))" in source
        assert "def set_a(self, value: Alias) -> None:" in source


class TestEmittedModuleBehaviour:
    def test_matches_runtime_generation(self):
        source = emit_module(
            [layout("/// foo\nfoo: rw 0, 4;\nu8, bar: rw 0, 6, 7;\nfoobar: rw 1, 0;")]
        )
        Reg = run(source)["Reg"]

        reg = Reg()
        reg.set_foo(True)
        reg.set_bar(3)
        reg.set_foobar(True)
        assert reg.data == bytearray([0b11010000, 0x01])
        assert reg.get_foo() is True
        assert reg.get_bar() == 3
        assert Reg.get_foo.__doc__ == "foo"
        assert Reg.get_foo.field_metadata == (Metadata("doc", "foo"),)

    def test_layout_file_round_trip(self, layout_yaml_file):
        layout_file = load_layouts(str(layout_yaml_file))
        namespace = run(emit_module(layout_file.layouts))
        Control = namespace["Control"]
        State = namespace["State"]
        Mode = namespace["Mode"]

        ctl = Control()
        ctl.set_enable(True)
        ctl.set_mode(Mode.FAST)
        ctl.set_state(State.HALT)
        ctl.set_count(9)
        assert ctl.data == bytearray([0b10000010, 0b00101001])
        assert ctl.get_enable() is True
        assert ctl.get_mode() is Mode.FAST
        assert ctl.get_state() is State.HALT
        assert ctl.get_count() == 9
        assert ctl.get_busy() is False
        assert not hasattr(Control, "set_busy")

        ctl.data[1] = 0b00110000
        assert ctl.get_state() is None
        assert Control.get_enable.field_metadata == (
            Metadata("doc", "enable is bit 7 of byte 0"),
            Metadata("attr", "inline"),
        )

    def test_multiple_layouts(self):
        source = emit_module([layout("a: r 0;", name="A"), layout("b: w 1;", name="B")])
        namespace = run(source)
        assert hasattr(namespace["A"], "get_a")
        assert hasattr(namespace["B"], "set_b")


class TestEmitterValidation:
    def test_duplicate_field(self):
        with pytest.raises(DuplicateFieldError):
            emit_module([layout("a: r 0; a: w 1;")])

    def test_position_outside_size(self):
        with pytest.raises(PositionError):
            emit_module([layout("a: r 2, 0;", size=2)])

    def test_conversion_object_cannot_be_emitted(self):
        half = make_conversion("Half", to_raw=int, from_raw=int)
        with pytest.raises(ConversionError):
            emit_module([layout("Half, h: rw 0, 0, 3;", types={"Half": half})])

    def test_failed_layout_adds_nothing(self):
        emitter = ModuleEmitter()
        with pytest.raises(DuplicateFieldError):
            emitter.add_layout(layout("a: r 0; a: r 1;"))
        assert "class" not in emitter.render()

    def test_type_name_bound_twice_differently(self):
        first = layout(
            "Mode, m: rw? 0, 0, 1;",
            name="A",
            types={"Mode": Sparse},
            type_refs={"Mode": "pkg.types:ModeA"},
        )
        second = layout(
            "Mode, m: rw? 0, 0, 1;",
            name="B",
            types={"Mode": Sparse},
            type_refs={"Mode": "pkg.types:ModeB"},
        )
        with pytest.raises(ConfigurationError, match="already bound"):
            emit_module([first, second])

    def test_type_name_shared_with_same_reference(self):
        refs = {"State": "pkg.types:State"}
        source = emit_module(
            [
                layout("State, s: rw? 0, 0, 1;", name="A", types={"State": Sparse}, type_refs=refs),
                layout("State, s: w 0, 0, 1;", name="B", types={"State": Sparse}, type_refs=refs),
            ]
        )
        assert source.count("from pkg.types import State") == 1

    def test_dotted_type_name_cannot_be_emitted(self):
        emitter = ModuleEmitter()
        with pytest.raises(ConfigurationError, match="not a valid Python name"):
            emitter.add_layout(
                layout(
                    "modes.Mode, m: rw? 0, 0, 1;",
                    types={"modes.Mode": Sparse},
                    type_refs={"modes.Mode": "pkg.types:Mode"},
                )
            )
        assert "class" not in emitter.render()


def test_example_layout_file():
    path = Path(__file__).resolve().parents[2] / "examples" / "layouts.yaml"
    namespace = run(emit_module(load_layouts(str(path)).layouts))
    ctl = namespace["MotorControl"]()
    ctl.set_start(True)
    ctl.set_duty(200)
    assert ctl.data == bytearray([0x01, 200])
    assert ctl.get_running() is False
    assert not hasattr(ctl, "get_start")
