"""
Level validator - checks a generated level against the design rules.

The validator never raises for level defects. Every problem becomes a
``ValidationIssue`` in the returned report, graded by severity:

    critical  structurally invalid (unknown types, unsafe jump pad landings)
    high      playability problems (gaps, widths, density, speed, health)
    medium    degraded quality (spacing, checkpoint spacing, pad sequences)
    low       cosmetic (oversized ring groups)
"""

import logging
import math
from collections import defaultdict
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Sequence, Tuple

from pygame.math import Vector2

from src.level.level_data import Checkpoint, Enemy, JumpPad, LevelData, Platform, Ring, Section
from src.level.level_rules import RuleSet
from src.level.placement_utils import calculate_landing_point, distance, distance_to_point

logger = logging.getLogger(__name__)

PLATFORM_KINDS = ("static", "moving", "crumbling")
ENEMY_BUCKET = 1000           # enemy density is measured per 1000 units of x
RING_GROUP_FACTOR = 1.5       # rings within maxSpacing * 1.5 of a group's first ring join it
PAD_SEQUENCE_FACTOR = 1.5


class Severity(str, Enum):
    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


@dataclass
class ValidationIssue:
    type: str
    message: str
    severity: Severity
    fix: str = ""
    x: Optional[float] = None
    y: Optional[float] = None
    section: Optional[int] = None
    entity_ids: Tuple[str, ...] = ()


@dataclass
class ValidationSummary:
    total_errors: int
    total_warnings: int
    critical_errors: int
    high_errors: int
    medium_errors: int
    low_errors: int
    can_proceed: bool
    recommendation: str


@dataclass
class ValidationReport:
    is_valid: bool
    errors: List[ValidationIssue] = field(default_factory=list)
    warnings: List[ValidationIssue] = field(default_factory=list)
    summary: Optional[ValidationSummary] = None

    def error_types(self) -> List[str]:
        return sorted({issue.type for issue in self.errors})

    def errors_of_type(self, issue_type: str) -> List[ValidationIssue]:
        return [issue for issue in self.errors if issue.type == issue_type]


class LevelValidator:
    """Runs per-category and cross-component checks over a LevelData."""

    def __init__(self, rules: RuleSet):
        self.rules = rules
        self.constants = rules.constants
        self.errors: List[ValidationIssue] = []
        self.warnings: List[ValidationIssue] = []

    def validate_level(self, level_data: LevelData) -> ValidationReport:
        self.errors = []
        self.warnings = []

        self.validate_rings(level_data.rings)
        self.validate_jump_pads(level_data.jump_pads)
        self.validate_platforms(level_data.platforms)
        self.validate_enemies(level_data.enemies)
        self.validate_checkpoints(level_data.checkpoints)
        self.validate_sections(level_data.sections)
        self.validate_cross_component(level_data)

        report = ValidationReport(
            is_valid=not self.errors,
            errors=list(self.errors),
            warnings=list(self.warnings),
            summary=self.generate_summary(),
        )
        logger.debug("Level %s: %d errors, %d warnings",
                     level_data.number, len(report.errors), len(report.warnings))
        return report

    # ----- Rings -----

    def validate_rings(self, rings: Sequence[Ring]) -> None:
        line = self.rules.rings.patterns.line
        placement = self.rules.rings.placement
        ground = self.constants.ground_height

        for group in self.group_rings(rings, line.max_spacing * RING_GROUP_FACTOR):
            for prev, ring in zip(group, group[1:]):
                if distance(prev, ring) < line.min_spacing:
                    self._error("RING_SPACING", f"Rings too close at ({ring.x:.0f}, {ring.y:.0f})",
                                Severity.MEDIUM, "Increase spacing between rings",
                                x=ring.x, y=ring.y, entity_ids=(prev.id, ring.id))

            if len(group) > line.max_count:
                first = group[0]
                self._warning("RING_PATTERN", f"Ring group of {len(group)} at ({first.x:.0f}, {first.y:.0f})",
                              Severity.LOW, "Split the group into smaller patterns",
                              x=first.x, y=first.y, entity_ids=tuple(r.id for r in group))

        for ring in rings:
            height = ground - ring.y
            if height < placement.min_height:
                self._error("RING_HEIGHT", f"Ring too low at ({ring.x:.0f}, {ring.y:.0f})",
                            Severity.HIGH, "Raise the ring", x=ring.x, y=ring.y, entity_ids=(ring.id,))
            elif height > placement.max_height:
                self._warning("RING_HEIGHT", f"Ring too high at ({ring.x:.0f}, {ring.y:.0f})",
                              Severity.MEDIUM, "Lower the ring", x=ring.x, y=ring.y, entity_ids=(ring.id,))

    @staticmethod
    def group_rings(rings: Sequence[Ring], reach: float) -> List[List[Ring]]:
        """Cluster rings by distance to the first ring of each group, in list order."""
        groups: List[List[Ring]] = []
        grouped = set()

        for i, ring in enumerate(rings):
            if i in grouped:
                continue
            group = [ring]
            grouped.add(i)
            for j in range(i + 1, len(rings)):
                if j not in grouped and distance(ring, rings[j]) < reach:
                    group.append(rings[j])
                    grouped.add(j)
            groups.append(group)

        return groups

    # ----- Jump pads -----

    def validate_jump_pads(self, pads: Sequence[JumpPad]) -> None:
        placement = self.rules.jump_pads.placement

        for pad in pads:
            problem = self._force_problem(pad)
            if problem:
                self._error("JUMPPAD_FORCE", f"Jump pad {pad.id} {problem}", Severity.HIGH,
                            "Adjust jump pad force", x=pad.x, y=pad.y, entity_ids=(pad.id,))

        for i, pad in enumerate(pads):
            for other in pads[i + 1:]:
                if distance(pad, other) < placement.min_spacing:
                    self._error("JUMPPAD_SPACING", f"Jump pads too close at ({other.x:.0f}, {other.y:.0f})",
                                Severity.MEDIUM, "Increase spacing between jump pads",
                                x=other.x, y=other.y, entity_ids=(pad.id, other.id))

        ordered = sorted(pads, key=lambda p: p.x)
        reach = placement.sequence_spacing * PAD_SEQUENCE_FACTOR
        run = ordered[:1]
        for prev, pad in zip(ordered, ordered[1:]):
            if pad.x - prev.x <= reach:
                run.append(pad)
                continue
            self._check_pad_run(run, placement.max_consecutive)
            run = [pad]
        self._check_pad_run(run, placement.max_consecutive)

    def _force_problem(self, pad: JumpPad) -> Optional[str]:
        type_rules = self.rules.jump_pads.types.get(pad.type)
        if type_rules is None:
            return f"has unknown type '{pad.type}'"

        low, high = type_rules.force_range()
        if pad.type == "horizontal":
            force = abs(pad.force_x)
        else:
            force = pad.force_y
        if not low <= force <= high:
            return f"force {force:.1f} outside [{low}, {high}]"

        if pad.type == "diagonal":
            low_x, high_x = type_rules.force_x_range()
            if not low_x <= abs(pad.force_x) <= high_x:
                return f"horizontal force {abs(pad.force_x):.1f} outside [{low_x}, {high_x}]"
        return None

    def _check_pad_run(self, run: List[JumpPad], max_consecutive: int) -> None:
        if len(run) > max_consecutive:
            first = run[0]
            self._warning("JUMPPAD_SEQUENCE", f"{len(run)} consecutive jump pads from x={first.x:.0f}",
                          Severity.MEDIUM, "Break up the jump pad sequence",
                          x=first.x, y=first.y, entity_ids=tuple(p.id for p in run))

    # ----- Platforms -----

    def validate_platforms(self, platforms: Sequence[Platform]) -> None:
        types = self.rules.platforms.types
        max_gap = self.rules.platforms.placement.max_gap

        for platform in platforms:
            if platform.type not in PLATFORM_KINDS:
                self._error("PLATFORM_TYPE", f"Unknown platform type '{platform.type}'", Severity.CRITICAL,
                            "Use a known platform type", x=platform.x, y=platform.y,
                            entity_ids=(platform.id,))
                continue

            type_rules = types.get(platform.type)
            if platform.width < type_rules.min_width:
                self._error("PLATFORM_WIDTH", f"Platform {platform.id} narrower than {type_rules.min_width}",
                            Severity.HIGH, "Widen the platform", x=platform.x, y=platform.y,
                            entity_ids=(platform.id,))

            if platform.type == "moving":
                self._check_moving_platform(platform, type_rules)

        reported = set()
        for platform in platforms:
            nearest = self.nearest_platform(platform, platforms)
            if nearest is None:
                continue
            pair = frozenset((platform.id, nearest.id))
            if pair in reported:
                continue
            gap = platform_gap(platform, nearest)
            if gap > max_gap:
                reported.add(pair)
                left, right = sorted((platform, nearest), key=lambda p: p.x)
                self._error("PLATFORM_GAP", f"Gap of {gap:.0f} between {left.id} and {right.id}",
                            Severity.HIGH, "Add an intermediate platform",
                            x=(left.right + right.left) / 2, y=(left.y + right.y) / 2,
                            entity_ids=(left.id, right.id))

    def _check_moving_platform(self, platform, type_rules) -> None:
        if len(platform.path) >= 2:
            path_length = Vector2(platform.path[0]).distance_to(platform.path[-1])
            if not type_rules.min_path <= path_length <= type_rules.max_path:
                self._error("PLATFORM_PATH", f"Platform {platform.id} path length {path_length:.0f} out of range",
                            Severity.MEDIUM, "Adjust the movement path", x=platform.x, y=platform.y,
                            entity_ids=(platform.id,))

        if not type_rules.min_speed <= platform.speed <= type_rules.max_speed:
            self._error("PLATFORM_SPEED", f"Platform {platform.id} speed {platform.speed:.0f} out of range",
                        Severity.HIGH, "Adjust the platform speed", x=platform.x, y=platform.y,
                        entity_ids=(platform.id,))

    @staticmethod
    def nearest_platform(platform: Platform, platforms: Sequence[Platform]) -> Optional[Platform]:
        """Closest other platform by centre distance."""
        best = None
        best_distance = math.inf
        for other in platforms:
            if other is platform:
                continue
            d = distance(platform, other)
            if d < best_distance:
                best, best_distance = other, d
        return best

    # ----- Enemies -----

    def validate_enemies(self, enemies: Sequence[Enemy]) -> None:
        placement = self.rules.enemies.placement
        buckets: Dict[int, List[Enemy]] = defaultdict(list)

        for enemy in enemies:
            if enemy.type not in self.rules.enemies.types:
                self._error("ENEMY_TYPE", f"Unknown enemy type '{enemy.type}'", Severity.CRITICAL,
                            "Use a known enemy type", x=enemy.x, y=enemy.y, entity_ids=(enemy.id,))
            if enemy.health < 1:
                self._error("ENEMY_HEALTH", f"Enemy {enemy.id} has invalid health {enemy.health}",
                            Severity.HIGH, "Give the enemy at least 1 health", x=enemy.x, y=enemy.y,
                            entity_ids=(enemy.id,))
            buckets[enemy_bucket(enemy.x)].append(enemy)

        for bucket, members in sorted(buckets.items()):
            if len(members) > placement.max_per_section:
                self._error("ENEMY_DENSITY", f"{len(members)} enemies in section {bucket}",
                            Severity.HIGH, "Remove enemies from this section",
                            x=bucket * ENEMY_BUCKET, section=bucket,
                            entity_ids=tuple(e.id for e in members))

            for i, enemy in enumerate(members):
                for other in members[i + 1:]:
                    if distance(enemy, other) < placement.min_spacing:
                        self._warning("ENEMY_SPACING", f"Enemies too close at ({other.x:.0f}, {other.y:.0f})",
                                      Severity.MEDIUM, "Spread enemies out", x=other.x, y=other.y,
                                      section=bucket, entity_ids=(enemy.id, other.id))

    # ----- Checkpoints and sections -----

    def validate_checkpoints(self, checkpoints: Sequence[Checkpoint]) -> None:
        spacing = self.rules.checkpoints.spacing
        # The goal sits at a fixed offset from the level end
        regular = [c for c in checkpoints if not c.is_goal]

        for prev, checkpoint in zip(regular, regular[1:]):
            gap = abs(checkpoint.x - prev.x)
            if gap < spacing * 0.5:
                self._error("CHECKPOINT_SPACING", f"Checkpoints too close at x={checkpoint.x:.0f}",
                            Severity.MEDIUM, "Increase checkpoint spacing", x=checkpoint.x, y=checkpoint.y,
                            entity_ids=(prev.id, checkpoint.id))
            elif gap > spacing * 2:
                self._warning("CHECKPOINT_SPACING", f"Checkpoints far apart at x={checkpoint.x:.0f}",
                              Severity.MEDIUM, "Add a checkpoint in between", x=checkpoint.x, y=checkpoint.y,
                              entity_ids=(prev.id, checkpoint.id))

        goals = [c for c in checkpoints if c.is_goal]
        if len(goals) != 1 or checkpoints[-1] is not goals[0]:
            self._error("CHECKPOINT_GOAL", f"Expected exactly one goal as the last checkpoint, found {len(goals)}",
                        Severity.HIGH, "Flag only the final checkpoint as the goal",
                        entity_ids=tuple(c.id for c in goals))

    def validate_sections(self, sections: Sequence[Section]) -> None:
        buffer = self.rules.sections.transitions.buffer

        for i, section in enumerate(sections):
            if section.type not in self.rules.sections.types:
                self._error("SECTION_TYPE", f"Unknown section type '{section.type}'", Severity.CRITICAL,
                            "Use a known section type", x=section.start, section=i)

            if i > 0 and section.start < sections[i - 1].end + buffer:
                self._error("SECTION_OVERLAP", f"Section {i} overlaps the previous section",
                            Severity.HIGH, "Move the section start past the transition buffer",
                            x=section.start, section=i)

    # ----- Cross-component -----

    def validate_cross_component(self, level_data: LevelData) -> None:
        min_hazard = self.rules.rings.placement.min_distance_from_hazard

        for ring in level_data.rings:
            for enemy in level_data.enemies:
                if distance(ring, enemy) < min_hazard:
                    self._warning("RING_HAZARD", f"Ring {ring.id} close to enemy {enemy.id}",
                                  Severity.MEDIUM, "Move the ring away from the enemy",
                                  x=ring.x, y=ring.y, entity_ids=(ring.id, enemy.id))

        landings = []
        for pad in level_data.jump_pads:
            landing = calculate_landing_point(pad, self.constants.gravity)
            landings.append(landing)
            if not self.is_landing_safe(landing, level_data.platforms, level_data.length):
                self._error("JUMPPAD_LANDING", f"Jump pad {pad.id} lands at unsafe position "
                                               f"({landing.x:.0f}, {landing.y:.0f})",
                            Severity.CRITICAL, "Add a landing platform or adjust the force",
                            x=pad.x, y=pad.y, entity_ids=(pad.id,))

        for platform in level_data.platforms:
            if not self.is_platform_accessible(platform, level_data.platforms, landings):
                self._warning("PLATFORM_ACCESS", f"Platform {platform.id} may be unreachable",
                              Severity.HIGH, "Add a stepping platform or a jump pad",
                              x=platform.x, y=platform.y, entity_ids=(platform.id,))

    def is_landing_safe(self, landing: Vector2, platforms: Sequence[Platform], level_length: float) -> bool:
        margin = self.constants.landing_margin
        tolerance = self.constants.landing_tolerance

        for platform in platforms:
            if platform.spans(landing.x, margin) and abs(landing.y - platform.y) < tolerance:
                return True

        return (abs(landing.y - self.constants.ground_height) < tolerance
                and -margin <= landing.x <= level_length + margin)

    def is_platform_accessible(self, platform: Platform, platforms: Sequence[Platform],
                               landings: Sequence[Vector2]) -> bool:
        jump_height = self.constants.max_jump_height
        if self.constants.ground_height - platform.y <= jump_height:
            return True

        max_gap = self.rules.platforms.placement.max_gap
        for other in platforms:
            if other is platform:
                continue
            if platform_gap(platform, other) < max_gap and abs(platform.y - other.y) < jump_height:
                return True

        return any(distance_to_point(platform, landing.x, landing.y) < platform.width for landing in landings)

    # ----- Summary -----

    def generate_summary(self) -> ValidationSummary:
        counts = {severity: 0 for severity in Severity}
        for issue in self.errors:
            counts[issue.severity] += 1

        return ValidationSummary(
            total_errors=len(self.errors),
            total_warnings=len(self.warnings),
            critical_errors=counts[Severity.CRITICAL],
            high_errors=counts[Severity.HIGH],
            medium_errors=counts[Severity.MEDIUM],
            low_errors=counts[Severity.LOW],
            can_proceed=counts[Severity.CRITICAL] == 0,
            recommendation=self.get_recommendation(counts),
        )

    def get_recommendation(self, counts: Dict[Severity, int]) -> str:
        if counts[Severity.CRITICAL] > 0:
            return "Fix critical errors before proceeding - level may be unplayable"
        if counts[Severity.HIGH] > 5:
            return "Many high-severity issues found - level needs significant adjustments"
        if counts[Severity.HIGH] > 0:
            return "Some important issues to address for better gameplay"
        if self.errors:
            return "Minor issues found - consider fixing for optimal experience"
        if self.warnings:
            return "Level is valid with some warnings - review for improvements"
        return "Level passes all validation checks!"

    def _error(self, issue_type: str, message: str, severity: Severity, fix: str, **where) -> None:
        self.errors.append(ValidationIssue(issue_type, message, severity, fix, **where))

    def _warning(self, issue_type: str, message: str, severity: Severity, fix: str, **where) -> None:
        self.warnings.append(ValidationIssue(issue_type, message, severity, fix, **where))


def platform_gap(a: Platform, b: Platform) -> float:
    """Distance between facing edges: horizontal edge gap combined with the height difference."""
    horizontal = max(0.0, max(a.left, b.left) - min(a.right, b.right))
    return math.hypot(horizontal, abs(a.y - b.y))


def enemy_bucket(x: float) -> int:
    return math.floor(x / ENEMY_BUCKET)
