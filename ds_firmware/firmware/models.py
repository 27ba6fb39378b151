# firmware/models.py
from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType


class ConfigurationError(ValueError):
    """Модель консоли не найдена в таблице."""


class Model(str, Enum):
    DS = "ds"
    LITE = "lite"
    DSI = "dsi"
    IQUE = "ique"
    IQUE_LITE = "ique-lite"


@dataclass(frozen=True)
class ModelSpec:
    image_size: int   # полный размер образа SPI-флеша
    hardware_id: int  # байт 0x1D заголовка


# размер и байт модели живут в одной записи, чтобы не разъехаться
MODELS = MappingProxyType({
    Model.DS:        ModelSpec(image_size=0x4_0000, hardware_id=0xFF),
    Model.LITE:      ModelSpec(image_size=0x4_0000, hardware_id=0x20),
    Model.DSI:       ModelSpec(image_size=0x2_0000, hardware_id=0x63),
    Model.IQUE:      ModelSpec(image_size=0x8_0000, hardware_id=0x57),
    Model.IQUE_LITE: ModelSpec(image_size=0x8_0000, hardware_id=0x43),
})


def model_spec(model: Model) -> ModelSpec:
    # строки сюда не принимаем, для них есть resolve_model()
    if not isinstance(model, Model) or model not in MODELS:
        raise ConfigurationError(f"Неизвестная модель: {model!r}")
    return MODELS[model]


def image_size(model: Model) -> int:
    return model_spec(model).image_size


def hardware_id(model: Model) -> int:
    return model_spec(model).hardware_id


def resolve_model(value: str | Model) -> Model:
    """Разобрать модель из строки: значение ('ique-lite') или имя ('IQUE_LITE')."""
    if isinstance(value, Model):
        return value
    text = str(value).strip()
    for m in Model:
        if text.lower() == m.value or text.upper() == m.name:
            return m
    choices = ", ".join(m.value for m in Model)
    raise ConfigurationError(f"Неизвестная модель: {value!r} (допустимо: {choices})")
