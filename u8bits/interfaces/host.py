"""What a host wrapper type must provide for generated accessors."""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class ByteBuffer(Protocol):
    """A fixed-size, index-addressable sequence of 8-bit values.

    bytearray satisfies this directly. Getters only index; setters also assign
    one element. bytes or tuples work for read-only hosts.
    """

    def __len__(self) -> int: ...

    def __getitem__(self, index: int) -> int: ...

    def __setitem__(self, index: int, value: int) -> None: ...


@runtime_checkable
class ByteHost(Protocol):
    """A host wrapper owning its buffer under the attribute ``data``.

    Accessors can be bound to any other attribute name; this protocol only
    describes the default layout used by ByteStruct.
    """

    SIZE: int
    data: ByteBuffer
