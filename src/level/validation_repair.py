"""
Validation repair - best-effort fixes for validator errors.

Only errors are acted on; warnings are left for the designer. Each call is a
single pass, the generator decides whether to re-validate and repair again.
Rings never end up inside a platform added or reached by a repair.
"""

import logging
from collections import Counter
from typing import List, Sequence

from pygame.math import Vector2

from src.level.level_data import LevelData, Platform, Ring, StaticPlatform
from src.level.level_rules import RuleSet
from src.level.level_validator import ValidationIssue, ValidationReport, enemy_bucket
from src.level.placement_utils import calculate_landing_point, is_inside_platform

logger = logging.getLogger(__name__)

REPAIRABLE_TYPES = frozenset({"RING_SPACING", "PLATFORM_GAP", "JUMPPAD_LANDING", "ENEMY_DENSITY"})

GAP_PLATFORM_SIZE = (150, 20)
LANDING_PLATFORM_SIZE = (200, 20)
LANDING_DROP = 50             # landing platforms sit this far below the predicted point
MAX_RING_SWEEPS = 10
SPACING_SLACK = 0.5


class ValidationRepairer:
    """Applies per-type fixes to a LevelData in place."""

    def __init__(self, rules: RuleSet):
        self.rules = rules
        self.applied_fixes: Counter = Counter()
        self._next_platform_id = 0

    def fix(self, level_data: LevelData, report: ValidationReport) -> LevelData:
        handled_ring_spacing = False

        for issue in report.errors:
            if issue.type == "RING_SPACING":
                if not handled_ring_spacing:
                    self.fix_ring_spacing(level_data.rings, level_data.platforms)
                    handled_ring_spacing = True
            elif issue.type == "PLATFORM_GAP":
                self.fix_platform_gap(level_data, issue)
            elif issue.type == "JUMPPAD_LANDING":
                self.fix_jump_pad_landing(level_data, issue)
            elif issue.type == "ENEMY_DENSITY":
                self.fix_enemy_density(level_data, issue)

        return level_data

    @staticmethod
    def is_repairable(report: ValidationReport) -> bool:
        return any(issue.type in REPAIRABLE_TYPES for issue in report.errors)

    def fix_ring_spacing(self, rings: List[Ring], platforms: Sequence[Platform] = ()) -> int:
        """
        Push rings apart until no pair is closer than the line minimum spacing.

        The later ring of a pair moves along the line joining the two rings.
        A moved ring that ends up inside a platform or below the minimum ring
        height is removed from ``rings``. Returns the number of rings moved.
        """
        min_spacing = self.rules.rings.patterns.line.min_spacing
        moved_ids = set()
        moved = 0

        for _ in range(MAX_RING_SWEEPS):
            changed = False
            for i, first in enumerate(rings):
                for second in rings[i + 1:]:
                    a = Vector2(first.x, first.y)
                    b = Vector2(second.x, second.y)
                    offset = b - a
                    if offset.length() >= min_spacing:
                        continue
                    direction = offset.normalize() if offset.length() > 0 else Vector2(1, 0)
                    target = a + direction * (min_spacing + SPACING_SLACK)
                    second.x, second.y = target.x, target.y
                    moved_ids.add(second.id)
                    moved += 1
                    changed = True
            if not changed:
                break

        if moved:
            stranded = {r.id for r in rings
                        if r.id in moved_ids and (self._too_low(r) or is_inside_platform(r.x, r.y, platforms))}
            if stranded:
                rings[:] = [r for r in rings if r.id not in stranded]
            self.applied_fixes["RING_SPACING"] += 1
            logger.debug("Moved %d rings to restore spacing, dropped %d", moved, len(stranded))
        return moved

    def fix_platform_gap(self, level_data: LevelData, issue: ValidationIssue) -> None:
        if issue.x is None or issue.y is None:
            return
        width, height = GAP_PLATFORM_SIZE
        self._add_platform(level_data, self._make_platform(issue.x, issue.y, width, height))
        self.applied_fixes["PLATFORM_GAP"] += 1

    def fix_jump_pad_landing(self, level_data: LevelData, issue: ValidationIssue) -> None:
        """
        Catch an unsafe landing with a platform just below it.

        The platform is kept inside the level. When that leaves the landing
        point out of reach the pad itself is removed.
        """
        pad = None
        for pad_id in issue.entity_ids:
            pad = level_data.find_jump_pad(pad_id)
            if pad is not None:
                break
        if pad is None:
            logger.debug("No jump pad for landing issue %s", issue.entity_ids)
            return

        landing = calculate_landing_point(pad, self.rules.constants.gravity)
        width, height = LANDING_PLATFORM_SIZE
        x = min(max(landing.x, width / 2), level_data.length - width / 2)

        if abs(landing.x - x) > width / 2 + self.rules.constants.landing_margin:
            level_data.jump_pads[:] = [p for p in level_data.jump_pads if p.id != pad.id]
            logger.debug("Removed jump pad %s landing outside the level at x=%.0f", pad.id, landing.x)
        else:
            self._add_platform(level_data, self._make_platform(x, landing.y + LANDING_DROP, width, height))
        self.applied_fixes["JUMPPAD_LANDING"] += 1

    def fix_enemy_density(self, level_data: LevelData, issue: ValidationIssue) -> None:
        if issue.section is None:
            return
        limit = self.rules.enemies.placement.max_per_section
        members = [e for e in level_data.enemies if enemy_bucket(e.x) == issue.section]
        excess = len(members) - limit
        if excess <= 0:
            return

        doomed = {e.id for e in members[:excess]}
        level_data.enemies[:] = [e for e in level_data.enemies if e.id not in doomed]
        self.applied_fixes["ENEMY_DENSITY"] += 1
        logger.debug("Removed %d enemies from section %d", excess, issue.section)

    def _add_platform(self, level_data: LevelData, platform: StaticPlatform) -> None:
        level_data.platforms.append(platform)
        before = len(level_data.rings)
        level_data.rings[:] = [r for r in level_data.rings if not is_inside_platform(r.x, r.y, [platform])]
        if len(level_data.rings) < before:
            logger.debug("Dropped %d rings covered by %s", before - len(level_data.rings), platform.id)

    def _too_low(self, ring: Ring) -> bool:
        return self.rules.constants.ground_height - ring.y < self.rules.rings.placement.min_height

    def _make_platform(self, x: float, y: float, width: float, height: float) -> StaticPlatform:
        platform = StaticPlatform(x=x, y=y, width=width, height=height,
                                  id=f"platform_fix_{self._next_platform_id}")
        self._next_platform_id += 1
        return platform
