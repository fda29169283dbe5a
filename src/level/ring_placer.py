"""
Ring placer - geometric ring patterns and rare special rings per section.

Every ring of a pattern is filtered on its own, so partial patterns are
normal output.
"""

import logging
import math
import random
from typing import List, Optional, Sequence, Tuple

from src.level.level_data import (
    Enemy,
    LevelData,
    MagnetRing,
    NormalRing,
    PlacementResult,
    Ring,
    Section,
    SuperRing,
)
from src.level.level_rules import RingRules, ScalingRules, WorldConstants
from src.level.placement_utils import distance_to_point, find_platform_at, is_inside_platform

logger = logging.getLogger(__name__)

PATTERN_KINDS = ("line", "arc", "circle")
UNITS_PER_PATTERN = 300       # one pattern per 300 units at density 1.0
MIN_RING_SPACING = 20
MAX_ARC_RADIUS = 120
MAX_CIRCLE_RADIUS = 80
MIN_RING_Y = 80               # top of the visible band
GROUND_CLEARANCE = 50         # anchors stay at least this far above ground
CIRCLE_GROUND_CLEARANCE = 20

Point = Tuple[float, float]


class RingPlacer:
    """Places ring patterns for one section at a time."""

    def __init__(self, rules: RingRules, scaling: ScalingRules, constants: WorldConstants, rng: random.Random):
        self.rules = rules
        self.scaling = scaling
        self.constants = constants
        self.rng = rng
        self._next_id = 0

    def place_for_section(self, section: Section, level_data: LevelData) -> PlacementResult:
        result = PlacementResult()
        pattern_count = math.floor(section.length / UNITS_PER_PATTERN * section.rules.ring_density)
        placed: List[Ring] = list(level_data.rings)
        value = self.rules.placement.reward_value * self.scaling.ring_value

        for _ in range(pattern_count):
            kind = self.rng.choice(PATTERN_KINDS)
            x = section.start + self.rng.random() * max(0.0, section.length - 200)
            y = self.anchor_y(x, level_data)

            for ring_x, ring_y in self.generate_ring_pattern(kind, x, y):
                if not self._accepts(ring_x, ring_y, level_data, placed):
                    result.rejected += 1
                    continue
                ring = NormalRing(x=ring_x, y=ring_y, id=self._new_id("ring"), value=value)
                placed.append(ring)
                result.accepted.append(ring)

        if section.type == "bonus" or section.rules.special_rings:
            for ring in self.create_special_rings(section):
                if not self._accepts(ring.x, ring.y, level_data, placed):
                    result.rejected += 1
                    continue
                placed.append(ring)
                result.accepted.append(ring)

        logger.debug("Section %s@%s: %d rings, %d rejected",
                     section.type, section.start, len(result.accepted), result.rejected)
        return result

    def anchor_y(self, x: float, level_data: LevelData) -> float:
        """Just above the platform at x, else a jumpable height above ground."""
        ground = self.constants.ground_height
        platform = find_platform_at(x, level_data.platforms)

        if platform is not None:
            y = platform.y - platform.height - (30 + self.rng.random() * 80)
        else:
            y = ground - (50 + self.rng.random() * 100)

        return min(max(y, MIN_RING_Y), ground - GROUND_CLEARANCE)

    def generate_ring_pattern(self, kind: str, x: float, y: float, count: Optional[int] = None,
                              spacing: Optional[float] = None, radius: Optional[float] = None) -> List[Point]:
        """
        Ring positions for a line, arc or circle anchored at (x, y).

        Unspecified count/spacing/radius are drawn from the pattern rules.
        Arcs open upward; circle points that would sit on the ground are culled.
        """
        patterns = self.rules.patterns

        if kind == "line":
            rules = patterns.line
            count = count or self.rng.randint(rules.min_count, rules.max_count)
            spacing = spacing or self.rng.randint(int(rules.min_spacing), int(rules.max_spacing))
            return [(x + i * spacing, y) for i in range(count)]

        if kind == "arc":
            rules = patterns.arc
            count = count or self.rng.randint(rules.min_count, rules.max_count)
            radius = radius or self.rng.randint(int(rules.min_radius), int(rules.max_radius))
            radius = min(radius, MAX_ARC_RADIUS)
            points = []
            for i in range(count):
                angle = (math.pi / count) * i
                points.append((x + math.cos(angle) * radius, y - math.sin(angle) * radius))
            return points

        if kind == "circle":
            rules = patterns.circle
            radius = radius or self.rng.randint(int(rules.min_radius), int(rules.max_radius))
            radius = min(radius, MAX_CIRCLE_RADIUS)
            floor_y = self.constants.ground_height - CIRCLE_GROUND_CLEARANCE
            points = []
            for i in range(rules.ring_count):
                angle = (2 * math.pi / rules.ring_count) * i
                ring_y = y + math.sin(angle) * radius
                if ring_y < floor_y:
                    points.append((x + math.cos(angle) * radius, ring_y))
            return points

        raise ValueError(f"Unknown ring pattern: {kind}")

    def create_special_rings(self, section: Section) -> List[Ring]:
        """Roll independently for one super ring and one magnet ring."""
        special = self.rules.special
        rings: List[Ring] = []

        if self.rng.random() < special.super_ring.spawn_chance:
            x, y = self._special_position(section)
            rings.append(SuperRing(x=x, y=y, id=self._new_id("superring"),
                                   value=special.super_ring.value,
                                   glow_radius=special.super_ring.glow_radius))

        if self.rng.random() < special.magnet_ring.spawn_chance:
            x, y = self._special_position(section)
            rings.append(MagnetRing(x=x, y=y, id=self._new_id("magnetring"),
                                    value=special.magnet_ring.value,
                                    magnet_radius=special.magnet_ring.magnet_radius))

        return rings

    def validate_ring_position(self, x: float, y: float, enemies: Sequence[Enemy], rings: Sequence[Ring]) -> bool:
        """Keep rings away from hazards and from each other."""
        min_hazard = self.rules.placement.min_distance_from_hazard
        for enemy in enemies:
            if distance_to_point(enemy, x, y) < min_hazard:
                return False

        for ring in rings:
            if distance_to_point(ring, x, y) < MIN_RING_SPACING:
                return False

        return True

    def _accepts(self, x: float, y: float, level_data: LevelData, placed: Sequence[Ring]) -> bool:
        if self.constants.ground_height - y < self.rules.placement.min_height:
            return False
        return (self.validate_ring_position(x, y, level_data.enemies, placed)
                and not is_inside_platform(x, y, level_data.platforms))

    def _special_position(self, section: Section) -> Point:
        x = section.start + self.rng.random() * section.length
        y = self.constants.ground_height - (50 + self.rng.random() * 150)
        return x, y

    def _new_id(self, prefix: str) -> str:
        ring_id = f"{prefix}_{self._next_id}"
        self._next_id += 1
        return ring_id
