"""
Borsh (Binary Object Representation Serializer for Hashing) writer.

Only the subset needed for transactions:

- unsigned little-endian integers: u8, u32, u64, u128
- fixed-size byte arrays (written raw)
- ``Vec<u8>`` / ``String``: u32 length prefix + bytes (strings are UTF-8)
- ``Vec<T>``: u32 item count + items
- ``Option<T>``: u8 0 / u8 1 + value
"""

from __future__ import annotations

from typing import Callable, Iterable, Optional, TypeVar

T = TypeVar("T")

_LIMITS = {8: 1 << 8, 32: 1 << 32, 64: 1 << 64, 128: 1 << 128}


class BorshWriter:
    def __init__(self) -> None:
        self._buf = bytearray()

    def _uint(self, value: int, bits: int) -> "BorshWriter":
        value = int(value)
        if value < 0 or value >= _LIMITS[bits]:
            raise ValueError(f"value {value} out of range for u{bits}")
        self._buf += value.to_bytes(bits // 8, "little")
        return self

    def u8(self, value: int) -> "BorshWriter":
        return self._uint(value, 8)

    def u32(self, value: int) -> "BorshWriter":
        return self._uint(value, 32)

    def u64(self, value: int) -> "BorshWriter":
        return self._uint(value, 64)

    def u128(self, value: int) -> "BorshWriter":
        return self._uint(value, 128)

    def fixed(self, data: bytes, size: int) -> "BorshWriter":
        if len(data) != size:
            raise ValueError(f"expected {size} bytes, got {len(data)}")
        self._buf += data
        return self

    def blob(self, data: bytes) -> "BorshWriter":
        self.u32(len(data))
        self._buf += data
        return self

    def string(self, text: str) -> "BorshWriter":
        return self.blob(text.encode("utf-8"))

    def vec(self, items: Iterable[T], write: Callable[["BorshWriter", T], None]) -> "BorshWriter":
        items = list(items)
        self.u32(len(items))
        for item in items:
            write(self, item)
        return self

    def option(self, value: Optional[T], write: Callable[["BorshWriter", T], None]) -> "BorshWriter":
        if value is None:
            return self.u8(0)
        self.u8(1)
        write(self, value)
        return self

    def getvalue(self) -> bytes:
        return bytes(self._buf)


__all__ = ["BorshWriter"]
