import json

import pytest
from typer.testing import CliRunner

from ds_firmware import main as cli
from ds_firmware.firmware.layout import synthesize
from ds_firmware.firmware.models import Model

runner = CliRunner()


@pytest.fixture(autouse=True)
def log_file(tmp_path, monkeypatch):
    path = tmp_path / "logs" / "session.jsonl"
    monkeypatch.setattr(cli, "LOG_FILE", path)
    return path


def _records(path):
    return [json.loads(line) for line in path.read_text(encoding="utf-8").splitlines()]


def test_models():
    result = runner.invoke(cli.app, ["models"])
    assert result.exit_code == 0
    assert "ique-lite" in result.output


def test_build_default_model(tmp_path, log_file):
    out = tmp_path / "firmware_dust.bin"
    result = runner.invoke(cli.app, ["build", str(out)])
    assert result.exit_code == 0, result.output
    assert out.read_bytes() == synthesize(Model.DS)
    rec = _records(log_file)[-1]
    assert rec["kind"] == "build"
    assert rec["payload"]["model"] == "ds"
    assert rec["ts"].endswith("Z")


def test_build_dsi(tmp_path):
    out = tmp_path / "dsi.bin"
    result = runner.invoke(cli.app, ["build", str(out), "--model", "dsi"])
    assert result.exit_code == 0, result.output
    assert len(out.read_bytes()) == 0x20000


def test_build_unknown_model(tmp_path, log_file):
    out = tmp_path / "x.bin"
    result = runner.invoke(cli.app, ["build", str(out), "-m", "switch"])
    assert result.exit_code == 2
    assert not out.exists()
    assert _records(log_file)[-1]["kind"] == "config_error"


def test_build_write_error(tmp_path, monkeypatch):
    def boom(path, data):
        raise OSError("read-only")

    monkeypatch.setattr(cli, "write_image", boom)
    result = runner.invoke(cli.app, ["build", str(tmp_path / "x.bin")])
    assert result.exit_code == 1


def test_build_failed_check(tmp_path, monkeypatch):
    monkeypatch.setattr(cli, "synthesize", lambda m: bytes(0x40000))
    result = runner.invoke(cli.app, ["build", str(tmp_path / "x.bin")])
    assert result.exit_code == 3


def test_spi_read_header():
    result = runner.invoke(cli.app, ["spi-read", "--address", "0x08", "--size", "4"])
    assert result.exit_code == 0, result.output
    assert "4D 41 43 68" in result.output
    assert "FAIL" not in result.output
    assert result.output.count("OK") == 2


def test_spi_read_bad_number():
    result = runner.invoke(cli.app, ["spi-read", "--size", "lots"])
    assert result.exit_code != 0


def test_dump(tmp_path):
    out = tmp_path / "dump.bin"
    result = runner.invoke(cli.app, ["dump", str(out), "-m", "ique", "--chunk", "4096"])
    assert result.exit_code == 0, result.output
    assert out.read_bytes() == synthesize(Model.IQUE)


def test_build_model_with_markup(tmp_path, log_file):
    out = tmp_path / "x.bin"
    result = runner.invoke(cli.app, ["build", str(out), "-m", "[/x]"])
    assert result.exit_code == 2
    assert "[/x]" in result.output
    rec = _records(log_file)[-1]
    assert rec["kind"] == "config_error"
    assert rec["payload"]["model"] == "[/x]"


def test_build_write_error_with_markup(tmp_path, monkeypatch):
    def boom(path, data):
        raise OSError("[/bad] read-only")

    monkeypatch.setattr(cli, "write_image", boom)
    result = runner.invoke(cli.app, ["build", str(tmp_path / "x.bin")])
    assert result.exit_code == 1
    assert "[/bad]" in result.output


def test_build_path_with_markup(tmp_path):
    out = tmp_path / "[red]" / "fw.bin"
    result = runner.invoke(cli.app, ["build", str(out)])
    assert result.exit_code == 0, result.output
    assert out.exists()


@pytest.mark.parametrize("address", ["0x1000000", "0xFFFFFFFF"])
def test_spi_read_address_beyond_24_bits(address):
    result = runner.invoke(cli.app, ["spi-read", "--address", address])
    assert result.exit_code == 2
