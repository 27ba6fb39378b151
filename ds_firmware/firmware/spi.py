# firmware/spi.py
from __future__ import annotations
from enum import IntEnum

from .checksum import crc16_region


class FlashCommand(IntEnum):
    NONE = 0x00
    READ = 0x03
    READ_STATUS = 0x05


ADDRESS_BYTES = 3
ADDRESS_LIMIT = 1 << (8 * ADDRESS_BYTES)


class SpiFlash:
    """
    Модель SPI-флеша с прошивкой, как её видит эмулятор:
    - первый байт транзакции — команда (READ / READ_STATUS, остальные игнорируются)
    - READ: 3 байта адреса (старший первым), дальше поток данных с автоинкрементом
    - READ_STATUS: один байт статус-регистра, затем снова ожидание команды
    - deselect() завершает транзакцию
    """
    def __init__(self, image: bytes | bytearray, status: int = 0x00):
        self._image = bytearray(image)
        self._status = status & 0xFF
        self._command = FlashCommand.NONE
        self._address = 0
        self._args = 0

    def __len__(self) -> int:
        return len(self._image)

    def transfer(self, value: int) -> int:
        """Один байт по SPI: отдать value чипу, вернуть ответ чипа."""
        value &= 0xFF
        if self._command == FlashCommand.NONE:
            try:
                self._command = FlashCommand(value)
            except ValueError:
                self._command = FlashCommand.NONE
            self._address = 0
            self._args = 0
            return 0x00

        if self._command == FlashCommand.READ_STATUS:
            self._command = FlashCommand.NONE
            return self._status

        # READ: сначала адрес, потом данные
        if self._args < ADDRESS_BYTES:
            self._address = (self._address << 8) | value
            self._args += 1
            return 0x00
        byte = self.get_byte(self._address)
        self._address += 1
        return byte

    def deselect(self):
        self._command = FlashCommand.NONE
        self._address = 0
        self._args = 0

    def read(self, address: int, size: int) -> bytes:
        """Полная транзакция чтения: команда + адрес + size байт данных."""
        if not 0 <= address < ADDRESS_LIMIT:
            raise ValueError(f"Адрес 0x{address:X} не помещается в {ADDRESS_BYTES} байта")
        self.deselect()
        self.transfer(FlashCommand.READ)
        for shift in (16, 8, 0):
            self.transfer((address >> shift) & 0xFF)
        out = bytes(self.transfer(0x00) for _ in range(size))
        self.deselect()
        return out

    def read_status(self) -> int:
        self.deselect()
        self.transfer(FlashCommand.READ_STATUS)
        value = self.transfer(0x00)
        self.deselect()
        return value

    def get_byte(self, address: int) -> int:
        if 0 <= address < len(self._image):
            return self._image[address]
        return 0x00

    def set_byte(self, address: int, value: int):
        if 0 <= address < len(self._image):
            self._image[address] = value & 0xFF

    def verify_crc(self, offset: int, length: int, crc_offset: int) -> bool:
        """Сравнить CRC16 окна [offset, offset+length) с записанным по crc_offset (LE)."""
        if crc_offset < 0 or crc_offset + 2 > len(self._image):
            return False
        stored = int.from_bytes(self._image[crc_offset:crc_offset + 2], "little")
        return crc16_region(self._image, offset, length) == stored
