# firmware/cursor.py
from __future__ import annotations


def _check(value: int, limit: int) -> int:
    if not 0 <= value <= limit:
        raise ValueError(f"Значение {value!r} вне диапазона 0..0x{limit:X}")
    return value


class Cursor:
    """
    Запись little-endian полей в буфер относительно base.
    Выход за границы буфера — IndexError, буфер не расширяется.
    Значение, не влезающее в поле, — ValueError (без обрезки).
    """
    def __init__(self, buf: bytearray, base: int = 0):
        self.buf = buf
        self.base = base

    def _span(self, off: int, size: int) -> slice:
        start = self.base + off
        if start < 0 or start + size > len(self.buf):
            raise IndexError(f"Запись [{start:#x}, +{size}) за пределами буфера {len(self.buf):#x}")
        return slice(start, start + size)

    def u8(self, off: int, value: int) -> None:
        self.buf[self._span(off, 1)] = _check(value, 0xFF).to_bytes(1, "little")

    def u16(self, off: int, value: int) -> None:
        self.buf[self._span(off, 2)] = _check(value, 0xFFFF).to_bytes(2, "little")

    def raw(self, off: int, data: bytes) -> None:
        self.buf[self._span(off, len(data))] = data
