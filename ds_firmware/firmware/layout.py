# firmware/layout.py
from __future__ import annotations

from .cursor import Cursor
from .models import Model, model_spec
from .user_settings import SETTINGS_AREA, block_offsets, default_blocks

# Смещения заголовка
PROLOGUE_OFF = 0x04
PROLOGUE = bytes([0x00, 0xDB, 0x1F, 0x0F])
VENDOR_TAG_OFF = 0x08
VENDOR_TAG = b"MAC" + bytes([0x68])
SIZE_CLASS_OFF = 0x14
CONSOLE_TYPE_OFF = 0x18
CONSOLE_TYPE = bytes([0x00, 0x00, 0x01, 0x01, 0x06])
HARDWARE_ID_OFF = 0x1D
HEADER_PAD_OFF = 0x1E
SETTINGS_TABLE_OFF = 0x20
SETTINGS_CONSTS = (0x0B51, 0x0DB3, 0x4F5D, 0xFFFF)


def synthesize(model: Model) -> bytes:
    """
    Собрать образ прошивки по умолчанию для модели.
    Неизвестная модель -> ConfigurationError (без подстановки размера по умолчанию).
    """
    spec = model_spec(model)
    size = spec.image_size
    buf = bytearray(size)
    cur = Cursor(buf)

    cur.raw(PROLOGUE_OFF, PROLOGUE)
    cur.raw(VENDOR_TAG_OFF, VENDOR_TAG)
    cur.u16(SIZE_CLASS_OFF, (size >> 17) << 12)
    cur.raw(CONSOLE_TYPE_OFF, CONSOLE_TYPE)
    cur.u8(HARDWARE_ID_OFF, spec.hardware_id)
    cur.u16(HEADER_PAD_OFF, 0xFFFF)

    # адрес области настроек в 8-байтных единицах + константы
    table = ((size - SETTINGS_AREA) >> 3,) + SETTINGS_CONSTS
    for i, value in enumerate(table):
        cur.u16(SETTINGS_TABLE_OFF + i * 2, value)

    for off, settings in zip(block_offsets(size), default_blocks()):
        cur.raw(off, settings.pack())

    return bytes(buf)
