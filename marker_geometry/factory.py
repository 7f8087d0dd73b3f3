from typing import Callable, Tuple

import numpy as np

from .geo_types import BoundaryShape, Region, ShapeKind
from .strategies.rectangle import evaluate_rectangle
from .strategies.unimplemented import evaluate_passthrough

Evaluator = Callable[[BoundaryShape, Region, np.ndarray], Tuple[bool, np.ndarray]]


def _rectangle(shape: BoundaryShape, region: Region, point) -> Tuple[bool, np.ndarray]:
    return evaluate_rectangle(region, point, shape.slide_type)


def _passthrough(shape: BoundaryShape, region: Region, point) -> Tuple[bool, np.ndarray]:
    return evaluate_passthrough(region, point)


_EVALUATORS: dict[ShapeKind, Evaluator] = {
    ShapeKind.RECTANGLE: _rectangle,
    ShapeKind.CIRCLE: _passthrough,
    ShapeKind.ELLIPSE: _passthrough,
    ShapeKind.TRUNCATED_CIRCLE: _passthrough,
}


def strategy_for(shape: BoundaryShape) -> Evaluator:
    return _EVALUATORS[shape.kind]


def evaluate(shape: BoundaryShape, region: Region, point) -> Tuple[bool, np.ndarray]:
    """Return ``(inside, snapped)`` for ``point`` against ``region`` shaped as ``shape``."""
    return strategy_for(shape)(shape, region, point)
