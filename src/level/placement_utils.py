"""
Geometry helpers shared by the placers, the validator and the repair pass.
"""

import math
from typing import Optional, Sequence

from pygame.math import Vector2

from src.level.level_data import JumpPad, Platform
from src.level.level_rules import WorldConstants

PLATFORM_OVERHANG = 30        # entities may stand this far past a platform edge
PLATFORM_SEARCH_DEPTH = 300   # how far below the search origin a platform may be
RING_RADIUS = 10              # ring collision radius


def distance(a, b) -> float:
    """Euclidean distance between two objects with x/y attributes."""
    return Vector2(a.x, a.y).distance_to((b.x, b.y))


def distance_to_point(obj, x: float, y: float) -> float:
    return Vector2(obj.x, obj.y).distance_to((x, y))


def find_platform_below(
    x: float,
    y: float,
    platforms: Sequence[Platform],
    margin: float = PLATFORM_OVERHANG,
    depth: float = PLATFORM_SEARCH_DEPTH,
) -> Optional[Platform]:
    """
    Find the nearest platform under (x, y).

    A platform qualifies if its span (plus ``margin`` overhang) covers x and
    its top is at or below y but less than ``depth`` units lower.
    """
    best: Optional[Platform] = None
    min_dy = math.inf

    for platform in platforms:
        if not platform.spans(x, margin):
            continue
        if y <= platform.y < y + depth:
            dy = platform.y - y
            if dy < min_dy:
                min_dy = dy
                best = platform

    return best


def find_platform_at(x: float, platforms: Sequence[Platform]) -> Optional[Platform]:
    """First platform whose horizontal span covers x."""
    for platform in platforms:
        if platform.spans(x):
            return platform
    return None


def is_inside_platform(x: float, y: float, platforms: Sequence[Platform], radius: float = RING_RADIUS) -> bool:
    """True if (x, y) lies in any platform's bounding box expanded by ``radius``."""
    for platform in platforms:
        if (platform.left - radius <= x <= platform.right + radius
                and platform.y - radius <= y <= platform.bottom + radius):
            return True
    return False


def resting_y(x: float, entity_height: float, platforms: Sequence[Platform], constants: WorldConstants) -> float:
    """
    Top y for an entity of ``entity_height`` standing at x.

    The search starts at the top of the platform band so any platform covering
    x is found; without one the entity stands on the ground.
    """
    origin = constants.ground_height - constants.max_platform_height - entity_height
    platform = find_platform_below(x, origin, platforms)
    surface = platform.y if platform is not None else constants.ground_height
    return surface - entity_height


def calculate_landing_point(pad: JumpPad, gravity: float) -> Vector2:
    """
    Predict where a pad launch comes back down to its launch height.

    Simplified projectile motion: flight time t = 2 * vy / g, x advances by
    vx * t.
    """
    flight_time = (2 * pad.force_y) / gravity
    return Vector2(pad.x + pad.force_x * flight_time, pad.y)


def calculate_required_force(gap_distance: float, min_force: float, max_force: float) -> float:
    """Minimum launch force to clear ``gap_distance``, clamped into [min_force, max_force]."""
    required = math.sqrt(max(0.0, gap_distance) * 0.5) * 2
    return max(min_force, min(required, max_force))
