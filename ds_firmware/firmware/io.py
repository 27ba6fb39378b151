# firmware/io.py
from __future__ import annotations
import os
import stat
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Protocol

from .layout import VENDOR_TAG, VENDOR_TAG_OFF
from .models import Model, model_spec
from .spi import SpiFlash
from .user_settings import BLOCK_SIZE, UserSettings, block_offsets, crc_ok


class ImageCheckError(ValueError):
    """Записанный образ не прошёл проверку."""


# ---- Источник данных для чтения образа ----
class FlashBackend(Protocol):
    def read_block(self, address: int, size: int) -> bytes: ...
    def info(self) -> dict: ...


@dataclass
class SpiBackend:
    flash: SpiFlash

    def read_block(self, address: int, size: int) -> bytes:
        return self.flash.read(address, size)

    def info(self) -> dict:
        return {"backend": "spi_flash", "size": len(self.flash), "status": f"0x{self.flash.read_status():02X}"}


# ---- Запись на диск ----
def write_image(path: Path, data: bytes) -> dict:
    """
    Атомарная запись: временный файл рядом с целью -> fsync -> os.replace.
    Новый файл получает права по umask, существующий сохраняет свои.
    При ошибке временный файл удаляется, под именем path остаётся прежнее содержимое.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = path.with_name(f".{path.name}.tmp")
    try:
        with open(tmp_path, "wb") as f:
            f.write(data)
            f.flush()
            os.fsync(f.fileno())
        if path.exists():
            # перезапись сохраняет права прежнего файла
            os.chmod(tmp_path, stat.S_IMODE(path.stat().st_mode))
        if tmp_path.stat().st_size != len(data):
            raise OSError(f"Записано {tmp_path.stat().st_size} байт вместо {len(data)}: {path}")
        os.replace(tmp_path, path)
    except BaseException:
        tmp_path.unlink(missing_ok=True)
        raise
    return {"bytes": len(data), "out": str(path)}


def sanity_check(path: Path, model: Model) -> dict:
    """Перечитать записанный образ: размер, метка 'MACh', CRC обеих копий настроек."""
    path = Path(path)
    data = path.read_bytes()
    expected = model_spec(model).image_size
    if len(data) != expected:
        raise ImageCheckError(f"Размер образа {len(data)} байт, ожидалось {expected} для {model.value}.")
    tag = data[VENDOR_TAG_OFF:VENDOR_TAG_OFF + len(VENDOR_TAG)]
    if tag != VENDOR_TAG:
        raise ImageCheckError(f"Метка по 0x{VENDOR_TAG_OFF:02X}: {tag.hex(' ')}, ожидалось {VENDOR_TAG.hex(' ')}.")
    for i, off in enumerate(block_offsets(len(data))):
        if not crc_ok(data[off:off + BLOCK_SIZE]):
            raise ImageCheckError(f"CRC блока настроек #{i} (0x{off:X}) не совпадает.")
        # активна только первая копия
        if UserSettings.read(data[off:off + BLOCK_SIZE]).active != (i == 0):
            raise ImageCheckError(f"Неверный признак активности у блока настроек #{i} (0x{off:X}).")
    return {"bytes": len(data), "path": str(path), "model": model.value}


# ---- Чтение образа блоками ----
def iter_chunks(data: bytes | None, chunk_size: int) -> Iterable[bytes]:
    if chunk_size <= 0:
        raise ValueError("chunk_size must be > 0")
    if not data:
        return
    for i in range(0, len(data), chunk_size):
        yield data[i:i+chunk_size]


def dump_image(backend: FlashBackend, size: int, out_path: Path, chunk: int = 256) -> dict:
    if chunk <= 0:
        raise ValueError("chunk must be > 0")
    buf = bytearray()
    read_total = 0
    while read_total < size:
        n = min(chunk, size - read_total)
        buf.extend(backend.read_block(read_total, n))
        read_total += n
    result = write_image(out_path, bytes(buf))
    result["info"] = backend.info()
    return result
