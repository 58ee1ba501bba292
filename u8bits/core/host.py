"""Host wrapper base class for byte buffers with generated accessors."""

from __future__ import annotations

from typing import ClassVar, Iterable, Optional

from u8bits.utils.consts import ConstUtils


class ByteStruct:
    """A value type that is a thin wrapper around a fixed-size bytearray.

    Subclasses set SIZE and get their accessors from the bitfields decorator:

        @bitfields('''
            /// ready flag
            ready: rw 0, 7;
            int, count: rw 1, 0, 3;
        ''')
        class Status(ByteStruct):
            SIZE = 2
    """

    SIZE: ClassVar[int] = 0

    def __init__(self, initial: Optional[Iterable[int]] = None):
        """Initialize the buffer.

        Args:
            initial: Initial contents, exactly SIZE values in 0..255.
                Zero-filled when omitted.

        Raises:
            ValueError: If initial has the wrong length or out-of-range values
        """
        if initial is None:
            self.data = bytearray(self.SIZE)
            return

        data = bytearray(initial)
        if len(data) != self.SIZE:
            raise ValueError(
                f"{type(self).__name__} holds {self.SIZE} bytes, got {len(data)}"
            )
        self.data = data

    @classmethod
    def from_bytes(cls, raw: bytes) -> ByteStruct:
        return cls(raw)

    def to_bytes(self) -> bytes:
        return bytes(self.data)

    def reset(self) -> None:
        """Clear every byte to zero."""
        for i in range(len(self.data)):
            self.data[i] = 0

    def __eq__(self, other: object) -> bool:
        if type(other) is not type(self):
            return NotImplemented
        return self.data == other.data  # type: ignore[attr-defined]

    def __repr__(self) -> str:
        hex_bytes = " ".join(f"{b & ConstUtils.MASK_8_BITS:02X}" for b in self.data)
        return f"{type(self).__name__}({hex_bytes})"
