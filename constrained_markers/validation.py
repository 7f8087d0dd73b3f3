from __future__ import annotations

from enum import Enum
from typing import Any, Optional, Type, TypeVar

from marker_geometry.geo_types import BoundaryShape, RoundedAxis, ShapeKind, SlideType

from .errors import InvalidEnumValue, bad_arg_type

E = TypeVar("E", bound=Enum)


def parse_enum(enum_cls: Type[E], value: Any, arg: int, func: str) -> E:
    """Accept an enum member or its string value."""
    if isinstance(value, enum_cls):
        return value
    if not isinstance(value, str):
        raise bad_arg_type(arg, func, "string", value)
    try:
        return enum_cls(value)
    except ValueError:
        raise InvalidEnumValue(f"unknown {_label(enum_cls)} {value!r}") from None


def _label(enum_cls: Type[Enum]) -> str:
    name = enum_cls.__name__
    words = []
    for ch in name:
        if ch.isupper() and words:
            words.append(" ")
        words.append(ch.lower())
    return "".join(words)


def check_bool(value: Any, arg: int, func: str) -> bool:
    if not isinstance(value, bool):
        raise bad_arg_type(arg, func, "boolean", value)
    return value


def parse_shape(kind: Any, option: Optional[Any] = None, func: str = "set_boundary_shape") -> BoundaryShape:
    """
    Build a BoundaryShape from caller input.

    Rectangle takes an optional slide type, TruncatedCircle an optional
    rounded axis; Circle and Ellipse take no option.
    """
    shape_kind = parse_enum(ShapeKind, kind, 1, func)
    if shape_kind is ShapeKind.RECTANGLE:
        if option is None:
            return BoundaryShape(shape_kind)
        return BoundaryShape(shape_kind, slide_type=parse_enum(SlideType, option, 2, func))
    if shape_kind is ShapeKind.TRUNCATED_CIRCLE:
        if option is None:
            return BoundaryShape(shape_kind)
        return BoundaryShape(shape_kind, rounded_axis=parse_enum(RoundedAxis, option, 2, func))
    if option is not None:
        raise bad_arg_type(2, func, "None", option)
    return BoundaryShape(shape_kind)
