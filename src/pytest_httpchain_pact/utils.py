import math
from typing import Any

from pydantic import BaseModel


def is_primitive(value: Any) -> bool:
    return value is None or isinstance(value, str | int | float | bool)


def is_number(value: Any) -> bool:
    return isinstance(value, int | float) and not isinstance(value, bool) and not (isinstance(value, float) and math.isnan(value))


def literally_equal(a: Any, b: Any) -> bool:
    """Identity or equal primitives; ``True`` never equals ``1``."""
    if a is b:
        return True
    if isinstance(a, bool) or isinstance(b, bool):
        return type(a) is type(b) and a == b
    if is_number(a) and is_number(b):
        return a == b
    if isinstance(a, str) and isinstance(b, str):
        return a == b
    return False


def merge_options(model: type[BaseModel], *layers: BaseModel | dict[str, Any] | None) -> Any:
    """Layer option models, later layers overriding only the fields they set.

    Args:
        model: Options model to build
        *layers: Option layers from lowest to highest precedence

    Returns:
        A new options instance
    """
    merged: dict[str, Any] = {}
    for layer in layers:
        if layer is None:
            continue
        if not isinstance(layer, BaseModel):
            layer = model.model_validate(layer)
        merged.update({name: getattr(layer, name) for name in layer.model_fields_set})
    return model.model_validate(merged)
