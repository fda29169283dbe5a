"""
Enemy placer - solo and grouped enemies with progression-scaled stats.
"""

import logging
import math
import random
from typing import List, Optional, Sequence

from src.level.level_data import (
    BasicEnemy,
    Checkpoint,
    Enemy,
    FlyingEnemy,
    LevelData,
    PlacementResult,
    ProjectileEnemy,
    Section,
    ShieldedEnemy,
)
from src.level.level_progression import LevelProgression
from src.level.level_rules import EnemyRules, WorldConstants
from src.level.placement_utils import distance_to_point, resting_y

logger = logging.getLogger(__name__)

UNITS_PER_ENEMY = 150         # one enemy per 150 units at density 1.0
GROUP_CHANCE = 0.4
MAX_CLUSTER = 3

_ENEMY_CLASSES = {
    "basic": BasicEnemy,
    "flying": FlyingEnemy,
    "shielded": ShieldedEnemy,
    "projectile": ProjectileEnemy,
}


class EnemyPlacer:
    """Places enemies for one section at a time."""

    def __init__(self, rules: EnemyRules, progression: LevelProgression,
                 constants: WorldConstants, rng: random.Random, level_number: int = 1):
        self.rules = rules
        self.progression = progression
        self.constants = constants
        self.rng = rng
        self.level_number = level_number
        self._next_id = 0

    def place_for_section(self, section: Section, level_data: LevelData) -> PlacementResult:
        """
        Place solo enemies and small clusters across a section.

        Spacing is checked against the enemies already in ``level_data`` and
        the ones accepted in this call. Rejected candidates are not retried.
        """
        result = PlacementResult()
        count = math.floor(section.length / UNITS_PER_ENEMY * section.rules.enemy_density)
        available = self.progression.available_enemy_types(self.level_number)
        placed: List[Enemy] = list(level_data.enemies)
        group_spacing = self.rules.placement.grouping.group_spacing

        def attempt(x: Optional[float] = None) -> None:
            enemy = self.create_enemy(section, available, level_data, placed, x)
            if enemy is None:
                result.rejected += 1
                return
            placed.append(enemy)
            result.accepted.append(enemy)

        i = 0
        while i < count:
            if self.rng.random() < GROUP_CHANCE and i < count - 2:
                group_size = min(MAX_CLUSTER, self.rules.placement.grouping.max_group_size, count - i)
                group_x = section.start + self.rng.random() * section.length
                for j in range(group_size):
                    attempt(group_x + j * group_spacing)
                i += group_size
            else:
                attempt()
                i += 1

        logger.debug("Section %s@%s: %d enemies, %d rejected",
                     section.type, section.start, len(result.accepted), result.rejected)
        return result

    def create_enemy(self, section: Section, available_types: Sequence[str], level_data: LevelData,
                     existing: Sequence[Enemy], override_x: Optional[float] = None) -> Optional[Enemy]:
        enemy_type = available_types[math.floor(self.rng.random() * len(available_types))]
        type_rules = self.rules.types[enemy_type]

        x = override_x if override_x is not None else section.start + self.rng.random() * section.length
        if enemy_type == "flying":
            y = self.constants.ground_height - type_rules.hover_height
        else:
            y = resting_y(x, self.constants.enemy_height, level_data.platforms, self.constants)

        if not self.validate_enemy_position(x, y, existing, level_data.checkpoints):
            return None

        multiplier = self.progression.multiplier_for_level(self.level_number)
        scaling = self.progression.enemy_stat_scaling()
        health = math.ceil(type_rules.health * multiplier)

        enemy_id = f"enemy_{self._next_id}"
        self._next_id += 1

        common = dict(
            x=x,
            y=y,
            health=health,
            max_health=health,
            speed=type_rules.speed * scaling.enemy_speed,
            damage=math.ceil(type_rules.damage * scaling.enemy_damage),
            points=type_rules.points,
            detection_range=type_rules.detection_range,
            id=enemy_id,
            direction=1 if self.rng.random() > 0.5 else -1,
            patrol_length=self.rules.behavior.patrol.path_length,
        )

        if enemy_type == "flying":
            return FlyingEnemy(base_y=y, patrol_radius=type_rules.patrol_radius, **common)
        if enemy_type == "projectile":
            return ProjectileEnemy(fire_rate=type_rules.fire_rate, **common)
        return _ENEMY_CLASSES.get(enemy_type, BasicEnemy)(**common)

    def validate_enemy_position(self, x: float, y: float, existing: Sequence[Enemy],
                                checkpoints: Sequence[Checkpoint]) -> bool:
        """
        Check spawn protection, enemy spacing and checkpoint safe zones.

        Spawn protection is horizontal distance from the player spawn.
        """
        placement = self.rules.placement

        if abs(x - self.constants.spawn_x) < placement.spawn_protection_radius:
            return False

        for enemy in existing:
            if distance_to_point(enemy, x, y) < placement.min_spacing:
                return False

        for checkpoint in checkpoints:
            if distance_to_point(checkpoint, x, y) < placement.safe_zone_radius:
                return False

        return True
