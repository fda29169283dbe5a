"""
Jump pad placer - density, gap-bridging and vertical-section passes over a whole level.

All three passes append to one list and share the same spacing check, so a
pad from an earlier pass blocks later pads within ``min_spacing``.
"""

import logging
import math
import random
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from src.level.level_data import JumpPad, LevelData, PlacementResult, Platform, Section
from src.level.level_rules import JumpPadRules, WorldConstants
from src.level.placement_utils import calculate_required_force, distance_to_point, find_platform_below, resting_y

logger = logging.getLogger(__name__)

UNITS_PER_PAD = 800           # one pad per 800 units at density 1.0
GAP_THRESHOLD = 0.8           # bridge gaps wider than this share of the max gap
EDGE_INSET = 40               # gap pads sit this far in from the launch edge
SUPPORT_DEPTH = 20
VERTICAL_SECTION_THRESHOLD = 100
VERTICAL_SECTION_FORCE = 0.8  # share of max force for vertical-section pads
HORIZONTAL_LIFT = 5           # small hop so horizontal pads clear the floor


@dataclass
class PlatformGap:
    """Gap between the facing edges of two platforms adjacent in x."""
    from_platform: Platform
    to_platform: Platform
    horizontal: float
    vertical: float
    distance: float


def analyze_platform_gaps(platforms: Sequence[Platform]) -> List[PlatformGap]:
    """Measure the gap from each platform to the next one along x."""
    ordered = sorted(platforms, key=lambda p: p.x)
    gaps = []

    for current, nxt in zip(ordered, ordered[1:]):
        horizontal = nxt.left - current.right
        vertical = abs(nxt.y - current.y)
        gaps.append(PlatformGap(
            from_platform=current,
            to_platform=nxt,
            horizontal=horizontal,
            vertical=vertical,
            distance=math.hypot(horizontal, vertical),
        ))

    return gaps


def find_vertical_sections(platforms: Sequence[Platform],
                           threshold: float = VERTICAL_SECTION_THRESHOLD) -> List[Tuple[Platform, Platform]]:
    """
    Consecutive platform pairs (by x) whose tops differ by more than ``threshold``.

    Each pair is returned as (upper, lower); lower is the platform with the
    larger y.
    """
    ordered = sorted(platforms, key=lambda p: p.x)
    sections = []

    for a, b in zip(ordered, ordered[1:]):
        if abs(a.y - b.y) > threshold:
            upper, lower = (a, b) if a.y < b.y else (b, a)
            sections.append((upper, lower))

    return sections


class JumpPadPlacer:
    """Places every jump pad for a level once platforms are known."""

    def __init__(self, rules: JumpPadRules, max_gap: float, constants: WorldConstants, rng: random.Random):
        self.rules = rules
        self.max_gap = max_gap
        self.constants = constants
        self.rng = rng
        self._next_id = 0

    def place_for_level(self, level_data: LevelData) -> PlacementResult:
        result = PlacementResult()
        pads: List[JumpPad] = list(level_data.jump_pads)

        def attempt(pad: Optional[JumpPad]) -> None:
            if pad is None or not self.validate_jump_pad_position(pad, pads):
                result.rejected += 1
                return
            pads.append(pad)
            result.accepted.append(pad)

        for section in level_data.sections:
            for pad in self.generate_section_pads(section, level_data.platforms):
                attempt(pad)

        for gap in analyze_platform_gaps(level_data.platforms):
            if gap.distance > self.max_gap * GAP_THRESHOLD:
                attempt(self.create_jump_pad_for_gap(gap, level_data.platforms))

        vertical = self.rules.types.vertical
        for _, lower in find_vertical_sections(level_data.platforms):
            x, y = lower.x, lower.y - vertical.height
            # Quietly skip spots already served by a pad
            if any(distance_to_point(p, x, y) < self.rules.placement.min_spacing for p in pads):
                continue
            force = vertical.max_force * VERTICAL_SECTION_FORCE
            attempt(self._make_pad("vertical", x, y, 0.0, force, force))

        logger.debug("Placed %d jump pads, %d rejected", len(result.accepted), result.rejected)
        return result

    def generate_section_pads(self, section: Section, platforms: Sequence[Platform]) -> List[JumpPad]:
        """Density-driven pads for one section, typed by the section's flavour."""
        count = math.floor(section.length / UNITS_PER_PAD * section.rules.jump_pad_density)
        pads = []

        for _ in range(count):
            pad_type = self.choose_pad_type(section.type)
            type_rules = self.rules.types.get(pad_type)
            x = section.start + self.rng.random() * section.length
            y = resting_y(x, type_rules.height, platforms, self.constants)

            if pad_type == "horizontal":
                force = self._uniform(*type_rules.force_range())
                sign = 1 if self.rng.random() < 0.5 else -1
                pads.append(self._make_pad(pad_type, x, y, sign * force, HORIZONTAL_LIFT, force))
            elif pad_type == "diagonal":
                sign = 1 if self.rng.random() < 0.5 else -1
                force_x = sign * self._uniform(*type_rules.force_x_range())
                force_y = self._uniform(*type_rules.force_range())
                pads.append(self._make_pad(pad_type, x, y, force_x, force_y, force_y))
            else:
                force = self._uniform(*type_rules.force_range())
                pads.append(self._make_pad(pad_type, x, y, 0.0, force, force))

        return pads

    def choose_pad_type(self, section_type: str) -> str:
        roll = self.rng.random()
        if section_type == "speed":
            return "horizontal" if roll < 0.7 else "diagonal"
        if section_type == "platform":
            return "vertical" if roll < 0.6 else "diagonal"
        return "vertical"

    def create_jump_pad_for_gap(self, gap: PlatformGap, platforms: Sequence[Platform]) -> JumpPad:
        """
        Bridge a gap with the weakest pad that clears it.

        The pad type follows the dominant axis of the gap. A pad that would
        have nothing under it is dropped to the ground.
        """
        if gap.vertical > gap.horizontal * 2:
            pad_type = "vertical"
        elif gap.horizontal > gap.vertical * 2:
            pad_type = "horizontal"
        else:
            pad_type = "diagonal"
        type_rules = self.rules.types.get(pad_type)

        source = gap.from_platform
        x = source.right - EDGE_INSET
        y = source.y - type_rules.height
        if find_platform_below(x, y + SUPPORT_DEPTH, platforms) is None:
            y = self.constants.ground_height - type_rules.height

        if pad_type == "horizontal":
            force = calculate_required_force(gap.horizontal, *type_rules.force_range())
            return self._make_pad(pad_type, x, y, force, HORIZONTAL_LIFT, force)
        force = calculate_required_force(gap.vertical, *type_rules.force_range())
        if pad_type == "diagonal":
            force_x = calculate_required_force(gap.horizontal, *type_rules.force_x_range())
            return self._make_pad(pad_type, x, y, force_x, force, force)
        return self._make_pad(pad_type, x, y, 0.0, force, force)

    def validate_jump_pad_position(self, pad: JumpPad, existing: Sequence[JumpPad]) -> bool:
        min_spacing = self.rules.placement.min_spacing
        return all(distance_to_point(other, pad.x, pad.y) >= min_spacing for other in existing)

    def _make_pad(self, pad_type: str, x: float, y: float,
                  force_x: float, force_y: float, force: float) -> JumpPad:
        type_rules = self.rules.types.get(pad_type)
        pad = JumpPad(
            type=pad_type,
            x=x,
            y=y,
            width=type_rules.width,
            height=type_rules.height,
            force_x=force_x,
            force_y=force_y,
            force=force,
            cooldown=type_rules.cooldown,
            id=f"jumppad_{self._next_id}",
        )
        self._next_id += 1
        return pad

    def _uniform(self, low: float, high: float) -> float:
        return low + self.rng.random() * (high - low)
