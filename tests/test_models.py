import pytest

from ds_firmware.firmware.models import (
    MODELS, ConfigurationError, Model, hardware_id, image_size, model_spec, resolve_model,
)


@pytest.mark.parametrize("model,size,hw", [
    (Model.DS, 0x40000, 0xFF),
    (Model.LITE, 0x40000, 0x20),
    (Model.DSI, 0x20000, 0x63),
    (Model.IQUE, 0x80000, 0x57),
    (Model.IQUE_LITE, 0x80000, 0x43),
])
def test_registry_values(model, size, hw):
    assert image_size(model) == size
    assert hardware_id(model) == hw


def test_registry_covers_enum():
    assert set(MODELS) == set(Model)


def test_registry_is_read_only():
    with pytest.raises(TypeError):
        MODELS[Model.DS] = None


@pytest.mark.parametrize("bad", ["ds", 0, None, "nds", object()])
def test_unknown_model_is_configuration_error(bad):
    with pytest.raises(ConfigurationError):
        model_spec(bad)


def test_configuration_error_is_value_error():
    assert issubclass(ConfigurationError, ValueError)


@pytest.mark.parametrize("text,expected", [
    ("ds", Model.DS),
    ("DSI", Model.DSI),
    ("ique-lite", Model.IQUE_LITE),
    ("IQUE_LITE", Model.IQUE_LITE),
    (" lite ", Model.LITE),
    (Model.IQUE, Model.IQUE),
])
def test_resolve_model(text, expected):
    assert resolve_model(text) is expected


def test_resolve_unknown_model():
    with pytest.raises(ConfigurationError, match="3ds"):
        resolve_model("3ds")
