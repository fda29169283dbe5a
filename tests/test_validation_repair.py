"""
Tests for the validation repair pass.
"""

import math

import pytest

from src.level.level_data import BasicEnemy, Checkpoint, JumpPad, LevelData, NormalRing, StaticPlatform
from src.level.level_validator import LevelValidator, Severity, ValidationIssue, ValidationReport
from src.level.validation_repair import ValidationRepairer


@pytest.fixture
def validator(rules):
    return LevelValidator(rules)


@pytest.fixture
def repairer(rules):
    return ValidationRepairer(rules)


@pytest.fixture
def level():
    return LevelData(
        number=1,
        length=4000,
        difficulty="easy",
        checkpoints=[Checkpoint(x=3950, y=240, id="goal", is_goal=True)],
    )


def ring_distance(a, b):
    return math.hypot(a.x - b.x, a.y - b.y)


class TestRingSpacingRepair:
    """Close rings are pushed apart."""

    def test_flagged_pair_is_separated(self, rules, validator, repairer, level):
        level.rings = [NormalRing(x=1000, y=150, id="a"), NormalRing(x=1030, y=150, id="b")]
        report = validator.validate_level(level)
        assert report.errors_of_type("RING_SPACING")

        repairer.fix(level, report)

        a, b = level.rings
        assert ring_distance(a, b) >= rules.rings.patterns.line.min_spacing
        assert (a.x, a.y) == (1000, 150)
        assert b.x > a.x and b.y == pytest.approx(150)
        assert validator.validate_level(level).errors_of_type("RING_SPACING") == []
        assert repairer.applied_fixes["RING_SPACING"] == 1

    def test_coincident_rings(self, rules, repairer):
        rings = [NormalRing(x=500, y=200, id="a"), NormalRing(x=500, y=200, id="b")]
        repairer.fix_ring_spacing(rings)
        assert rings[1].x > rings[0].x
        assert ring_distance(*rings) >= rules.rings.patterns.line.min_spacing

    def test_ring_pushed_into_platform_is_dropped(self, repairer):
        rings = [NormalRing(x=1000, y=150, id="a"), NormalRing(x=1010, y=150, id="b")]
        platforms = [StaticPlatform(x=1050, y=145, width=50, height=20, id="p")]

        assert repairer.fix_ring_spacing(rings, platforms) == 1
        assert [r.id for r in rings] == ["a"]

    def test_ring_pushed_below_min_height_is_dropped(self, repairer):
        rings = [NormalRing(x=1000, y=260, id="a"), NormalRing(x=1000, y=268, id="b")]

        repairer.fix_ring_spacing(rings)
        assert [r.id for r in rings] == ["a"]

    def test_cluster_is_spread(self, rules, validator, repairer, level):
        level.rings = [NormalRing(x=1000 + 10 * i, y=150, id=f"r{i}") for i in range(4)]
        repairer.fix(level, validator.validate_level(level))

        min_spacing = rules.rings.patterns.line.min_spacing
        for i, a in enumerate(level.rings):
            for b in level.rings[i + 1:]:
                assert ring_distance(a, b) >= min_spacing


class TestPlatformRepairs:
    """Gaps and unsafe landings are fixed by inserting platforms."""

    def test_gap_gets_intermediate_platform(self, validator, repairer, level):
        level.platforms = [StaticPlatform(x=1000, y=220, width=200, height=20, id="a"),
                           StaticPlatform(x=1600, y=220, width=200, height=20, id="b")]
        report = validator.validate_level(level)
        repairer.fix(level, report)

        added = level.platforms[-1]
        assert added.id == "platform_fix_0"
        assert added.type == "static"
        assert (added.x, added.y, added.width, added.height) == (1300, 220, 150, 20)
        assert repairer.applied_fixes["PLATFORM_GAP"] == 1
        assert validator.validate_level(level).errors_of_type("PLATFORM_GAP") == []

    def test_unsafe_landing_gets_landing_platform(self, validator, repairer, level):
        launcher = JumpPad(type="horizontal", x=2000, y=100, width=100, height=20, force_x=20, force_y=5,
                           force=20, cooldown=100, id="launcher")
        level.jump_pads = [launcher]
        report = validator.validate_level(level)
        assert report.summary.critical_errors == 1

        repairer.fix(level, report)

        added = level.platforms[-1]
        assert (added.x, added.y) == (2400, 150)
        assert (added.width, added.height) == (200, 20)
        after = validator.validate_level(level)
        assert after.errors_of_type("JUMPPAD_LANDING") == []
        assert after.summary.can_proceed

    def test_gap_platform_clears_covered_rings(self, validator, repairer, level):
        level.platforms = [StaticPlatform(x=1000, y=220, width=200, height=20, id="a"),
                           StaticPlatform(x=1600, y=220, width=200, height=20, id="b")]
        level.rings = [NormalRing(x=1300, y=215, id="buried"), NormalRing(x=1300, y=150, id="above")]

        repairer.fix(level, validator.validate_level(level))

        assert [r.id for r in level.rings] == ["above"]

    def test_landing_platform_stays_inside_level(self, validator, repairer, level):
        pad = JumpPad(type="horizontal", x=3600, y=100, width=100, height=20, force_x=20, force_y=5,
                      force=20, cooldown=100, id="edge")
        level.jump_pads = [pad]

        repairer.fix(level, validator.validate_level(level))

        added = level.platforms[-1]
        assert added.x == level.length - added.width / 2
        assert added.right <= level.length
        assert validator.validate_level(level).errors_of_type("JUMPPAD_LANDING") == []

    def test_pad_landing_past_level_end_is_removed(self, validator, repairer, level):
        pad = JumpPad(type="horizontal", x=3800, y=100, width=100, height=20, force_x=20, force_y=5,
                      force=20, cooldown=100, id="overshoot")
        level.jump_pads = [pad]

        repairer.fix(level, validator.validate_level(level))

        assert level.jump_pads == []
        assert level.platforms == []
        assert repairer.applied_fixes["JUMPPAD_LANDING"] == 1
        assert validator.validate_level(level).summary.can_proceed

    def test_landing_issue_for_missing_pad_is_ignored(self, repairer, level):
        issue = ValidationIssue("JUMPPAD_LANDING", "gone", Severity.CRITICAL, entity_ids=("nope",))
        repairer.fix(level, ValidationReport(is_valid=False, errors=[issue]))
        assert level.platforms == []


class TestEnemyDensityRepair:
    """Overcrowded buckets are thinned."""

    def test_excess_enemies_removed(self, rules, validator, repairer, level):
        limit = rules.enemies.placement.max_per_section
        level.enemies = [
            BasicEnemy(x=2000 + 60 * i, y=290, health=1, max_health=1, speed=110, damage=2, points=100,
                       detection_range=200, id=f"e{i}")
            for i in range(limit + 3)
        ]
        level.enemies.append(BasicEnemy(x=3500, y=290, health=1, max_health=1, speed=110, damage=2,
                                        points=100, detection_range=200, id="other"))

        repairer.fix(level, validator.validate_level(level))

        ids = [e.id for e in level.enemies]
        assert ids[:2] == ["e3", "e4"]
        assert "other" in ids
        assert len(ids) == limit + 1
        assert validator.validate_level(level).errors_of_type("ENEMY_DENSITY") == []


class TestRepairDispatch:
    """Only errors with a handler are acted on."""

    def test_warnings_and_unknown_errors_ignored(self, repairer, level):
        warning = ValidationIssue("PLATFORM_GAP", "gap", Severity.HIGH, x=100, y=200)
        unknown = ValidationIssue("ENEMY_HEALTH", "bad", Severity.HIGH, x=100, y=200)
        report = ValidationReport(is_valid=False, errors=[unknown], warnings=[warning])

        repairer.fix(level, report)

        assert level.platforms == []
        assert not repairer.applied_fixes

    def test_is_repairable(self):
        gap = ValidationIssue("PLATFORM_GAP", "gap", Severity.HIGH, x=1, y=1)
        health = ValidationIssue("ENEMY_HEALTH", "bad", Severity.HIGH)

        assert ValidationRepairer.is_repairable(ValidationReport(is_valid=False, errors=[gap, health]))
        assert not ValidationRepairer.is_repairable(ValidationReport(is_valid=False, errors=[health]))
        assert not ValidationRepairer.is_repairable(ValidationReport(is_valid=True))

    def test_fix_returns_same_level(self, repairer, level):
        assert repairer.fix(level, ValidationReport(is_valid=True)) is level
