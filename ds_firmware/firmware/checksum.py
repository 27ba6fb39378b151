# firmware/checksum.py
"""CRC16 (отражённый, полином 0xA001) для блоков настроек прошивки.

Тот же алгоритм, что у CRC-16/MODBUS, но начальное значение передаётся
снаружи: так можно досчитывать CRC по нескольким несмежным кускам.
"""

from __future__ import annotations

CRC_SEED = 0xFFFF
CRC_POLY = 0xA001


def crc16(seed: int, data: bytes) -> int:
    crc = seed & 0xFFFF
    for byte in data:
        crc ^= byte
        for _ in range(8):
            if crc & 1:
                crc = (crc >> 1) ^ CRC_POLY
            else:
                crc >>= 1
    return crc


def crc16_region(data: bytes, offset: int, length: int, seed: int = CRC_SEED) -> int:
    """CRC по окну data[offset:offset+length]; байты за концом буфера пропускаются."""
    return crc16(seed, data[offset:offset + length])
