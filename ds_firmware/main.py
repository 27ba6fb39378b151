from __future__ import annotations
import json
from pathlib import Path
from datetime import datetime, timezone

import typer
from rich import print
from rich.markup import escape
from rich.table import Table

from .config import APP_NAME, LOG_FILE, DEFAULT_OUT, DEFAULT_MODEL
from .firmware.io import ImageCheckError, SpiBackend, dump_image, iter_chunks, sanity_check, write_image
from .firmware.layout import synthesize
from .firmware.models import MODELS, ConfigurationError, Model, resolve_model
from .firmware.spi import ADDRESS_LIMIT, SpiFlash
from .firmware.user_settings import BLOCK_SIZE, CRC_OFF, CRC_RANGE, block_offsets

app = typer.Typer(add_completion=False, help=f"{APP_NAME}: сборка образа прошивки по умолчанию.")

def _log_event(kind: str, payload: dict):
    LOG_FILE.parent.mkdir(parents=True, exist_ok=True)
    record = {
        "ts": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
        "kind": kind,
        "payload": payload,
    }
    with open(LOG_FILE, "a", encoding="utf-8") as f:
        f.write(json.dumps(record, ensure_ascii=False) + "\n")

def _model_or_exit(value: str) -> Model:
    try:
        return resolve_model(value)
    except ConfigurationError as e:
        print(f"[red]{escape(str(e))}[/]")
        _log_event("config_error", {"model": value, "error": str(e)})
        raise typer.Exit(code=2)

def _int(value: str, name: str) -> int:
    # допускаем "0x3FE00" и "261632"
    try:
        return int(value, 0)
    except ValueError:
        raise typer.BadParameter(f"не число: {value!r}", param_hint=name)

@app.command()
def models():
    """Показать поддерживаемые модели."""
    table = Table(title="Модели")
    table.add_column("model", style="cyan")
    table.add_column("size", justify="right")
    table.add_column("hw id", justify="right")
    for m, spec in MODELS.items():
        table.add_row(m.value, f"0x{spec.image_size:X}", f"0x{spec.hardware_id:02X}")
    print(table)

@app.command()
def build(
    out_file: Path = typer.Argument(DEFAULT_OUT, help="Куда сохранить образ"),
    model: str = typer.Option(DEFAULT_MODEL, "--model", "-m", help="Модель: " + ", ".join(m.value for m in Model)),
):
    """
    Собрать образ прошивки по умолчанию и записать его (атомарно), затем перепроверить файл.
    """
    m = _model_or_exit(model)
    image = synthesize(m)

    try:
        result = write_image(out_file, image)
    except OSError as e:
        print(f"[red]Ошибка записи:[/] {escape(str(e))}")
        _log_event("write_error", {"out": str(out_file), "error": str(e)})
        raise typer.Exit(code=1)

    try:
        check = sanity_check(out_file, m)
    except ImageCheckError as e:
        print(f"[red]Проверка не пройдена:[/] {escape(str(e))}")
        _log_event("check_failed", {"out": str(out_file), "error": str(e)})
        raise typer.Exit(code=3)

    _log_event("build", {**result, "model": m.value})
    print(f"[green]Готово:[/] {m.value}, {result['bytes']} байт (0x{result['bytes']:X}) -> {escape(result['out'])}")
    print(f"[green]Проверка пройдена[/] ({check['model']}).")
    print(f"\n[dim]Логи записаны в: {escape(str(LOG_FILE))}[/]")

@app.command("spi-read")
def spi_read(
    model: str = typer.Option(DEFAULT_MODEL, "--model", "-m", help="Модель"),
    address: str = typer.Option("0", help="Адрес начала, напр. 0x3FE00"),
    size: str = typer.Option("0x40", help="Сколько байт прочитать"),
):
    """
    Прочитать окно образа через модель SPI-флеша (как эмулятор) и проверить CRC блоков настроек.
    """
    m = _model_or_exit(model)
    addr = _int(address, "--address")
    length = _int(size, "--size")
    if addr < 0 or length <= 0:
        raise typer.BadParameter("адрес >= 0, размер > 0", param_hint="--address/--size")
    # адрес SPI — 24 бита
    if addr >= ADDRESS_LIMIT:
        raise typer.BadParameter(f"адрес должен быть < 0x{ADDRESS_LIMIT:X}", param_hint="--address")

    flash = SpiFlash(synthesize(m))
    data = flash.read(addr, length)
    for i, row in enumerate(iter_chunks(data, 16)):
        hexs = " ".join(f"{b:02X}" for b in row)
        asc = "".join(chr(b) if 32 <= b <= 126 else "." for b in row)
        print(f"[cyan]{addr + i * 16:06X}[/]  {hexs:<47}  {escape(asc)}")

    print("\n[bold]CRC блоков настроек:[/]")
    for i, off in enumerate(block_offsets(len(flash))):
        ok = flash.verify_crc(off, CRC_RANGE, off + CRC_OFF)
        mark = "[green]OK[/]" if ok else "[red]FAIL[/]"
        print(f"  #{i} 0x{off:06X}..0x{off + BLOCK_SIZE - 1:06X}: {mark}")
    _log_event("spi_read", {"model": m.value, "address": addr, "size": length})

@app.command()
def dump(
    out_file: Path = typer.Argument(..., help="Куда сохранить дамп"),
    model: str = typer.Option(DEFAULT_MODEL, "--model", "-m", help="Модель"),
    chunk: int = typer.Option(256, help="Размер блока чтения"),
):
    """
    Считать весь образ через SPI-флеш блоками и сохранить (демо пути чтения эмулятора).
    """
    m = _model_or_exit(model)
    if chunk <= 0:
        raise typer.BadParameter("должен быть > 0", param_hint="--chunk")
    flash = SpiFlash(synthesize(m))
    try:
        result = dump_image(SpiBackend(flash), len(flash), out_file, chunk)
    except OSError as e:
        print(f"[red]Ошибка записи:[/] {escape(str(e))}")
        _log_event("write_error", {"out": str(out_file), "error": str(e)})
        raise typer.Exit(code=1)
    _log_event("dump", {**result, "model": m.value})
    print(f"[green]Готово:[/] сохранено {result['bytes']} байт -> {escape(result['out'])}")


if __name__ == "__main__":
    app()
