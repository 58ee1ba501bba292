"""Core modules for u8bits.

- bits: single bit and bit range primitives on one byte
- field_spec: field declarations (FieldSpec, Direction, Metadata)
- parser: the field declaration grammar
- conversion: raw <-> semantic type conversion policies
- generator: accessor generation and the bitfields decorator
- host: ByteStruct host wrapper
"""
