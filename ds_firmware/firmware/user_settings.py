# firmware/user_settings.py
"""Блок пользовательских настроек (0x100 байт, две копии в конце образа).

Поля блока (смещения от начала блока):

* 0x00 — версия формата (5).
* 0x02 — признак активной копии (1 у первой копии, 0 у второй).
* 0x03 — месяц рождения, 0x04 — день рождения.
* 0x06..0x0D — ник, 4 символа по 2 байта: [код, 0x00].
* 0x72..0x73 — CRC16 (seed 0xFFFF) по байтам 0x00..0x6F, little-endian.

Остальные байты блока остаются нулевыми.
"""

from __future__ import annotations

from dataclasses import dataclass

from .checksum import CRC_SEED, crc16
from .cursor import Cursor

BLOCK_SIZE = 0x100
BLOCK_COUNT = 2
SETTINGS_AREA = BLOCK_SIZE * BLOCK_COUNT  # последние 0x200 байт образа

VERSION_OFF = 0x00
ACTIVE_OFF = 0x02
BIRTH_MONTH_OFF = 0x03
BIRTH_DAY_OFF = 0x04
NICKNAME_OFF = 0x06
NICKNAME_LEN = 4
CRC_RANGE = 0x70
CRC_OFF = 0x72

SETTINGS_VERSION = 5
DEFAULT_NICKNAME = "Dust"


@dataclass(frozen=True)
class UserSettings:
    active: bool = False
    version: int = SETTINGS_VERSION
    birth_month: int = 1
    birth_day: int = 1
    nickname: str = DEFAULT_NICKNAME

    def __post_init__(self):
        if len(self.nickname) > NICKNAME_LEN:
            raise ValueError(f"Ник длиннее {NICKNAME_LEN} символов: {self.nickname!r}")
        if any(ord(ch) > 0xFF for ch in self.nickname):
            raise ValueError(f"Ник должен состоять из однобайтовых символов: {self.nickname!r}")
        for name in ("version", "birth_month", "birth_day"):
            value = getattr(self, name)
            if not 0 <= value <= 0xFF:
                raise ValueError(f"{name} вне диапазона 0..255: {value!r}")

    def pack(self) -> bytes:
        """Собрать блок вместе с CRC."""
        block = bytearray(BLOCK_SIZE)
        cur = Cursor(block)
        cur.u8(VERSION_OFF, self.version)
        cur.u8(ACTIVE_OFF, 1 if self.active else 0)
        cur.u8(BIRTH_MONTH_OFF, self.birth_month)
        cur.u8(BIRTH_DAY_OFF, self.birth_day)
        for i, ch in enumerate(self.nickname):
            cur.u8(NICKNAME_OFF + i * 2, ord(ch))
            cur.u8(NICKNAME_OFF + i * 2 + 1, 0x00)
        cur.u16(CRC_OFF, block_crc(block))
        return bytes(block)

    @classmethod
    def read(cls, block: bytes) -> "UserSettings":
        """Обратное к pack(); CRC не проверяется, см. crc_ok()."""
        if len(block) < BLOCK_SIZE:
            raise ValueError(f"Блок настроек короче {BLOCK_SIZE:#x} байт: {len(block)}")
        raw = block[NICKNAME_OFF:NICKNAME_OFF + NICKNAME_LEN * 2]
        nick = "".join(chr(raw[i]) for i in range(0, len(raw), 2) if raw[i])
        return cls(
            active=bool(block[ACTIVE_OFF]),
            version=block[VERSION_OFF],
            birth_month=block[BIRTH_MONTH_OFF],
            birth_day=block[BIRTH_DAY_OFF],
            nickname=nick,
        )


def block_crc(block: bytes) -> int:
    return crc16(CRC_SEED, block[:CRC_RANGE])


def stored_crc(block: bytes) -> int:
    return int.from_bytes(block[CRC_OFF:CRC_OFF + 2], "little")


def crc_ok(block: bytes) -> bool:
    return block_crc(block) == stored_crc(block)


def block_offsets(size: int) -> list[int]:
    """Смещения обеих копий блока в образе размера size."""
    base = size - SETTINGS_AREA
    return [base + i * BLOCK_SIZE for i in range(BLOCK_COUNT)]


def default_blocks() -> list[UserSettings]:
    # активна только первая копия
    return [UserSettings(active=(i == 0)) for i in range(BLOCK_COUNT)]
