"""
Pytest configuration and shared fixtures for the u8bits test suite.
"""

import sys
import tempfile
import textwrap
from enum import IntEnum
from pathlib import Path

import pytest

# Ensure project root is on PYTHONPATH so 'u8bits' can be imported
PROJECT_ROOT = Path(__file__).resolve().parent.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))


class Enu(IntEnum):
    """Four members covering every value of a 2-bit field."""

    BAR = 0b00
    FOO = 0b01
    OOF = 0b10
    RAB = 0b11


class Sparse(IntEnum):
    """Three members in a 2-bit field: raw value 3 has no member."""

    IDLE = 0
    RUN = 1
    HALT = 2


STATUS_FIELDS = """
/// foo
foo: rw 0, 4;
/// Enum example
Enu, enu: rw 0, 0, 1;
u8, bar: rw 0, 6, 7;
/// foobarcomment
foobar: rw 1, 0;
"""

TYPES_MODULE = '''
from enum import IntEnum


class Mode(IntEnum):
    OFF = 0
    SLOW = 1
    FAST = 2
    TURBO = 3


class State(IntEnum):
    IDLE = 0
    RUN = 1
    HALT = 2
'''

LAYOUT_YAML = """
layouts:
  - name: Control
    size: 2
    types:
      Mode: "u8bits_test_types:Mode"
      State: "u8bits_test_types:State"
    fields: |
      /// enable is bit 7 of byte 0
      #[inline]
      enable: rw 0, 7;
      Mode, mode: rw 0, 0, 1;
      State, state: rw? 1, 4, 5;
      u8, count: rw 1, 0, 3;
      busy: r 1, 7;
"""


@pytest.fixture
def temp_yaml_file():
    """
    Fixture that provides a temporary YAML file.

    Yields:
        Path: Path to the temporary YAML file
    """
    with tempfile.NamedTemporaryFile(
        mode="w",
        suffix=".yaml",
        delete=False,
    ) as f:
        temp_path = Path(f.name)

    yield temp_path

    # Cleanup
    if temp_path.exists():
        temp_path.unlink()


@pytest.fixture
def types_module(tmp_path, monkeypatch):
    """Importable module `u8bits_test_types` defining the Mode and State enums."""
    (tmp_path / "u8bits_test_types.py").write_text(textwrap.dedent(TYPES_MODULE))
    monkeypatch.syspath_prepend(str(tmp_path))
    monkeypatch.delitem(sys.modules, "u8bits_test_types", raising=False)
    yield "u8bits_test_types"
    sys.modules.pop("u8bits_test_types", None)


@pytest.fixture
def layout_yaml_file(temp_yaml_file, types_module):
    """A YAML layout file whose types resolve against types_module."""
    temp_yaml_file.write_text(textwrap.dedent(LAYOUT_YAML), encoding="utf-8")
    return temp_yaml_file
