from __future__ import annotations

from typing import Tuple

import numpy as np

from ..geo_types import Region


def evaluate_passthrough(region: Region, point) -> Tuple[bool, np.ndarray]:
    """
    Placeholder for Circle, Ellipse and TruncatedCircle boundaries.

    These shapes have no geometry yet: every point counts as inside and is
    returned unchanged, so markers are never snapped.
    """
    return True, np.asarray(point, dtype=float).reshape(2).copy()
