"""
Platform placer - synthesizes static, moving and crumbling platforms per section.
"""

import logging
import math
import random
from typing import List, Optional, Sequence, Tuple

from src.level.level_data import (
    CrumblingPlatform,
    MovingPlatform,
    PlacementResult,
    Platform,
    Section,
    StaticPlatform,
)
from src.level.level_rules import MovingPlatformRules, PlatformRules, WorldConstants

logger = logging.getLogger(__name__)

UNITS_PER_PLATFORM = 200      # one platform per 200 units at density 1.0
POSITION_JITTER = 100         # total horizontal jitter around each target
OVERLAP_BUFFER = 50           # extra clearance beyond combined half widths
OVERLAP_VERTICAL = 40
STACK_HORIZONTAL = 80
STACK_VERTICAL = 60
BASE_HEIGHT = 100             # height above ground the wave oscillates around
WAVE_AMPLITUDE = 80
WAVE_LENGTH = 300
HEIGHT_JITTER = 60
SPECIAL_PLATFORM_CHANCE = 0.3


def validate_platform_position(x: float, y: float, width: float, existing: Sequence[Platform]) -> bool:
    """
    Check a candidate platform against every existing one.

    Rejects true overlaps (within combined half widths + buffer horizontally
    and 40 vertically) and naive stacking (within 80 horizontally and 60
    vertically). Staggered platforms are allowed.
    """
    for platform in existing:
        horizontal = abs(x - platform.x)
        vertical = abs(y - platform.y)

        min_horizontal = (width + platform.width) / 2 + OVERLAP_BUFFER
        if horizontal < min_horizontal and vertical < OVERLAP_VERTICAL:
            return False

        if horizontal < STACK_HORIZONTAL and vertical < STACK_VERTICAL:
            return False

    return True


class PlatformPlacer:
    """Places platforms for one section at a time."""

    def __init__(self, rules: PlatformRules, constants: WorldConstants, rng: random.Random):
        self.rules = rules
        self.constants = constants
        self.rng = rng
        self._next_id = 0

    def place_for_section(self, section: Section, difficulty: str,
                          existing_platforms: Sequence[Platform]) -> PlacementResult:
        """
        Place platforms evenly across a section.

        Candidates that violate spacing against ``existing_platforms`` or the
        platforms accepted so far are dropped without retry.
        """
        result = PlacementResult()
        count = math.floor(section.length / UNITS_PER_PLATFORM * section.rules.platform_density)
        placed: List[Platform] = list(existing_platforms)

        for i in range(count):
            target_x = section.start + (i + 1) * (section.length / (count + 1))
            platform = self.create_platform_at(target_x, section, difficulty, placed)
            if platform is None:
                result.rejected += 1
                continue
            placed.append(platform)
            result.accepted.append(platform)

        logger.debug("Section %s@%s: %d platforms, %d rejected",
                     section.type, section.start, len(result.accepted), result.rejected)
        return result

    def create_platform_at(self, target_x: float, section: Section, difficulty: str,
                           existing: Sequence[Platform]) -> Optional[Platform]:
        modifiers = self.rules.difficulty[difficulty]

        platform_type = "static"
        if section.type == "platform" and self.rng.random() < SPECIAL_PLATFORM_CHANCE:
            platform_type = "moving" if self.rng.random() < 0.5 else "crumbling"
        type_rules = self.rules.types.get(platform_type)

        x = target_x + (self.rng.random() - 0.5) * POSITION_JITTER
        if x < self.constants.spawn_x + 50:
            return None

        y = self.platform_y(x)

        width = type_rules.min_width + self.rng.random() * (type_rules.max_width - type_rules.min_width)
        width = max(type_rules.min_width, width * modifiers.width_multiplier)

        if not validate_platform_position(x, y, width, existing):
            return None

        platform_id = f"platform_{self._next_id}"
        self._next_id += 1

        if platform_type == "moving":
            speed = type_rules.min_speed + self.rng.random() * (type_rules.max_speed - type_rules.min_speed)
            speed = min(type_rules.max_speed, max(type_rules.min_speed, speed * modifiers.speed_multiplier))
            return MovingPlatform(
                x=x, y=y, width=width, height=type_rules.height, id=platform_id,
                path=self.generate_platform_path(x, y, type_rules),
                speed=speed,
            )

        if platform_type == "crumbling":
            return CrumblingPlatform(
                x=x, y=y, width=width, height=type_rules.height, id=platform_id,
                stability=type_rules.stability,
                respawn_time=type_rules.respawn_time,
            )

        return StaticPlatform(x=x, y=y, width=width, height=type_rules.height, id=platform_id)

    def platform_y(self, x: float) -> float:
        """Top y from a sine wave over x plus jitter, kept inside the platform band."""
        height = (BASE_HEIGHT
                  + math.sin(x / WAVE_LENGTH) * WAVE_AMPLITUDE
                  + (self.rng.random() - 0.5) * HEIGHT_JITTER)
        height = min(self.constants.max_platform_height, max(self.constants.min_platform_height, height))
        return self.constants.ground_height - height

    def generate_platform_path(self, x: float, y: float, rules: MovingPlatformRules) -> List[Tuple[float, float]]:
        """Two-point horizontal or vertical path centred on the platform."""
        horizontal = self.rng.random() > 0.5
        length = rules.min_path + self.rng.random() * (rules.max_path - rules.min_path)

        if horizontal:
            return [(x - length / 2, y), (x + length / 2, y)]
        return [(x, y - length / 2), (x, y + length / 2)]
