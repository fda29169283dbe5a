"""
Tests for ring patterns and ring filtering.
"""

import dataclasses
import math
import random

import pytest

from src.level.level_data import BasicEnemy, StaticPlatform
from src.level.ring_placer import RingPlacer


def make_placer(rules, seed=0, ring_rules=None):
    return RingPlacer(ring_rules or rules.rings, rules.progression.scaling, rules.constants, random.Random(seed))


@pytest.fixture
def busy_level(empty_level):
    """A level with a few platforms and enemies for rings to avoid."""
    level = empty_level(length=4000)
    level.platforms = [
        StaticPlatform(x=x, y=y, width=200, height=20, id=f"platform_{i}")
        for i, (x, y) in enumerate([(500, 220), (900, 160), (1400, 240), (1900, 190), (2400, 120)])
    ]
    level.enemies = [
        BasicEnemy(x=x, y=290, health=1, max_health=1, speed=100, damage=1, points=100,
                   detection_range=200, id=f"enemy_{i}")
        for i, x in enumerate([1100, 1700, 2600])
    ]
    return level


class TestRingPatterns:
    """Pattern geometry."""

    def test_line(self, rules):
        points = make_placer(rules).generate_ring_pattern("line", 1000, 200, count=4, spacing=60)
        assert points == [(1000, 200), (1060, 200), (1120, 200), (1180, 200)]

    def test_arc_is_capped_and_opens_upward(self, rules):
        points = make_placer(rules).generate_ring_pattern("arc", 1000, 250, count=4, radius=500)
        assert len(points) == 4
        assert points[0] == pytest.approx((1120, 250))
        for x, y in points:
            assert math.hypot(x - 1000, y - 250) == pytest.approx(120)
            assert y <= 250

    def test_circle_drops_points_near_ground(self, rules):
        ground = rules.constants.ground_height
        placer = make_placer(rules)
        full = placer.generate_ring_pattern("circle", 1000, 150, radius=80)
        clipped = placer.generate_ring_pattern("circle", 1000, ground - 40, radius=80)

        assert len(full) == rules.rings.patterns.circle.ring_count
        assert len(clipped) < len(full)
        assert all(y < ground - 20 for _, y in clipped)

    def test_circle_radius_is_capped(self, rules):
        points = make_placer(rules).generate_ring_pattern("circle", 1000, 100, radius=300)
        for x, y in points:
            assert math.hypot(x - 1000, y - 100) == pytest.approx(80)

    def test_unknown_pattern(self, rules):
        with pytest.raises(ValueError, match="spiral"):
            make_placer(rules).generate_ring_pattern("spiral", 0, 0)

    def test_random_line_respects_rules(self, rules):
        line = rules.rings.patterns.line
        placer = make_placer(rules, seed=3)
        for _ in range(20):
            points = placer.generate_ring_pattern("line", 0, 200)
            assert line.min_count <= len(points) <= line.max_count
            if len(points) > 1:
                assert line.min_spacing <= points[1][0] - points[0][0] <= line.max_spacing


class TestRingPlacer:
    """Placed rings are filtered one by one."""

    @pytest.mark.parametrize("section_type", ["speed", "platform", "bonus"])
    def test_rings_avoid_platforms_enemies_and_each_other(self, rules, busy_level, make_section, section_type):
        min_hazard = rules.rings.placement.min_distance_from_hazard
        min_height = rules.rings.placement.min_height
        ground = rules.constants.ground_height

        for seed in range(8):
            busy_level.rings = []
            placer = make_placer(rules, seed)
            for start in (200, 1000, 1800):
                result = placer.place_for_section(make_section(section_type, start, start + 700), busy_level)
                busy_level.rings.extend(result.accepted)

            rings = busy_level.rings
            for ring in rings:
                assert ground - ring.y >= min_height
                for p in busy_level.platforms:
                    inside = (p.left - 10 <= ring.x <= p.right + 10 and p.y - 10 <= ring.y <= p.bottom + 10)
                    assert not inside, (ring, p)
                for enemy in busy_level.enemies:
                    assert math.hypot(ring.x - enemy.x, ring.y - enemy.y) >= min_hazard
            for i, a in enumerate(rings):
                for b in rings[i + 1:]:
                    assert math.hypot(a.x - b.x, a.y - b.y) >= 20

    def test_low_circle_points_are_rejected(self, rules, empty_level, make_section):
        min_height = rules.rings.placement.min_height
        ground = rules.constants.ground_height
        level = empty_level()

        for seed in range(10):
            result = make_placer(rules, seed).place_for_section(make_section("bonus", 200, 2000), level)
            assert all(ground - ring.y >= min_height for ring in result.accepted)

    def test_anchor_stays_in_visible_band(self, rules, busy_level):
        placer = make_placer(rules, seed=5)
        ground = rules.constants.ground_height
        for x in range(200, 3000, 37):
            y = placer.anchor_y(x, busy_level)
            assert 80 <= y <= ground - 50

    def test_normal_ring_value(self, rules, empty_level, make_section):
        result = make_placer(rules, seed=1).place_for_section(make_section("bonus", 200, 2000), empty_level())
        normal = [r for r in result.accepted if r.type == "normal"]
        assert normal
        expected = rules.rings.placement.reward_value * rules.progression.scaling.ring_value
        assert all(r.value == expected for r in normal)

    def test_special_rings_in_bonus_sections(self, rules, empty_level, make_section):
        special = rules.rings.special
        always = dataclasses.replace(
            rules.rings,
            special=dataclasses.replace(
                special,
                super_ring=dataclasses.replace(special.super_ring, spawn_chance=1.0),
                magnet_ring=dataclasses.replace(special.magnet_ring, spawn_chance=1.0),
            ),
        )
        placer = make_placer(rules, seed=2, ring_rules=always)

        section = make_section("bonus", 200, 500)
        super_ring, magnet_ring = placer.create_special_rings(section)
        assert super_ring.type == "super"
        assert super_ring.value == special.super_ring.value
        assert super_ring.glow_radius == special.super_ring.glow_radius
        assert magnet_ring.type == "magnet"
        assert magnet_ring.magnet_radius == special.magnet_ring.magnet_radius
        for ring in (super_ring, magnet_ring):
            assert section.start <= ring.x <= section.end

        bonus = placer.place_for_section(section, empty_level())
        assert any(r.type in ("super", "magnet") for r in bonus.accepted)

        speed = placer.place_for_section(make_section("speed", 1000, 1600), empty_level())
        assert all(r.type == "normal" for r in speed.accepted)

    def test_ids_unique(self, rules, empty_level, make_section):
        placer = make_placer(rules, seed=7)
        level = empty_level()
        for start in (200, 1000):
            level.rings.extend(placer.place_for_section(make_section("bonus", start, start + 700), level).accepted)
        assert len({r.id for r in level.rings}) == len(level.rings)
