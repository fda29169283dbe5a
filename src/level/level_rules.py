"""Level rules - declarative tunables for level generation and validation.

The rules live in ``data/level_rules.json`` (camelCase keys) and are parsed
into frozen dataclasses. Every field is required: a missing key is a
configuration error and raises ``RuleSetError`` naming the key path.
"""

from __future__ import annotations

import collections.abc
import json
import logging
import os
from dataclasses import MISSING, dataclass, fields, is_dataclass
from functools import lru_cache
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, Tuple, Union, get_args, get_origin, get_type_hints

logger = logging.getLogger(__name__)

DEFAULT_RULES_PATH = os.path.join(os.path.dirname(__file__), "data", "level_rules.json")

SECTION_TYPES = ("speed", "platform", "combat", "bonus")
DIFFICULTIES = ("easy", "medium", "hard")


class RuleSetError(ValueError):
    """Raised when the rules file is missing, malformed or incomplete."""


# ----- Rings -----

@dataclass(frozen=True)
class LinePatternRules:
    min_spacing: float
    max_spacing: float
    min_count: int
    max_count: int


@dataclass(frozen=True)
class ArcPatternRules:
    min_radius: float
    max_radius: float
    min_count: int
    max_count: int


@dataclass(frozen=True)
class CirclePatternRules:
    min_radius: float
    max_radius: float
    ring_count: int


@dataclass(frozen=True)
class RingPatterns:
    line: LinePatternRules
    arc: ArcPatternRules
    circle: CirclePatternRules


@dataclass(frozen=True)
class RingPlacementRules:
    min_height: float  # above ground
    max_height: float
    min_distance_from_hazard: float
    reward_value: float
    protection_duration: int  # ms


@dataclass(frozen=True)
class SuperRingRules:
    value: int
    spawn_chance: float
    glow_radius: float


@dataclass(frozen=True)
class MagnetRingRules:
    value: int
    spawn_chance: float
    magnet_radius: float


@dataclass(frozen=True)
class SpecialRingRules:
    super_ring: SuperRingRules
    magnet_ring: MagnetRingRules


@dataclass(frozen=True)
class RingRules:
    patterns: RingPatterns
    placement: RingPlacementRules
    special: SpecialRingRules


# ----- Jump pads -----

@dataclass(frozen=True)
class VerticalPadRules:
    min_force: float
    max_force: float
    width: float
    height: float
    cooldown: int

    def force_range(self) -> Tuple[float, float]:
        return self.min_force, self.max_force


@dataclass(frozen=True)
class HorizontalPadRules:
    min_force: float
    max_force: float
    width: float
    height: float
    cooldown: int
    direction: str

    def force_range(self) -> Tuple[float, float]:
        return self.min_force, self.max_force


@dataclass(frozen=True)
class DiagonalPadRules:
    min_force_x: float
    max_force_x: float
    min_force_y: float
    max_force_y: float
    angle: float
    width: float
    height: float
    cooldown: int

    def force_range(self) -> Tuple[float, float]:
        """Range for the launch (vertical) component."""
        return self.min_force_y, self.max_force_y

    def force_x_range(self) -> Tuple[float, float]:
        return self.min_force_x, self.max_force_x


@dataclass(frozen=True)
class JumpPadTypes:
    vertical: VerticalPadRules
    horizontal: HorizontalPadRules
    diagonal: DiagonalPadRules

    def get(self, pad_type: str):
        if pad_type in ("vertical", "horizontal", "diagonal"):
            return getattr(self, pad_type)
        return None


@dataclass(frozen=True)
class JumpPadPlacementRules:
    min_spacing: float
    max_consecutive: int
    sequence_spacing: float
    height_variation: float
    near_platform_offset: float


@dataclass(frozen=True)
class JumpPadRules:
    types: JumpPadTypes
    placement: JumpPadPlacementRules


# ----- Platforms -----

@dataclass(frozen=True)
class StaticPlatformRules:
    min_width: float
    max_width: float
    height: float
    friction: float


@dataclass(frozen=True)
class MovingPlatformRules:
    min_width: float
    max_width: float
    height: float
    min_speed: float
    max_speed: float
    min_path: float
    max_path: float
    pause_duration: int


@dataclass(frozen=True)
class CrumblingPlatformRules:
    min_width: float
    max_width: float
    height: float
    stability: int
    respawn_time: int
    warning_time: int
    particle_count: int


@dataclass(frozen=True)
class RotatingPlatformRules:
    min_radius: float
    max_radius: float
    min_speed: float
    max_speed: float
    platform_count: int


@dataclass(frozen=True)
class PlatformTypes:
    static: StaticPlatformRules
    moving: MovingPlatformRules
    crumbling: CrumblingPlatformRules
    rotating: RotatingPlatformRules

    def get(self, platform_type: str):
        if platform_type in ("static", "moving", "crumbling", "rotating"):
            return getattr(self, platform_type)
        return None


@dataclass(frozen=True)
class PlatformPlacementRules:
    min_gap: float
    max_gap: float
    min_height: float
    max_height: float
    vertical_spacing: float
    safety_margin: float


@dataclass(frozen=True)
class DifficultyRules:
    gap_multiplier: float
    width_multiplier: float
    speed_multiplier: float


@dataclass(frozen=True)
class PlatformRules:
    types: PlatformTypes
    placement: PlatformPlacementRules
    difficulty: Mapping[str, DifficultyRules]


# ----- Enemies -----

@dataclass(frozen=True)
class EnemyTypeRules:
    """Base stats for one enemy type plus the optional per-type extras."""
    health: float
    speed: float
    damage: float
    points: int
    detection_range: float
    attack_range: Optional[float] = None
    respawn_time: Optional[int] = None
    hover_height: Optional[float] = None
    dive_speed: Optional[float] = None
    patrol_radius: Optional[float] = None
    shield_regen_time: Optional[int] = None
    vulnerable_time: Optional[int] = None
    fire_rate: Optional[int] = None
    projectile_speed: Optional[float] = None
    projectile_damage: Optional[float] = None


# Extras the placer reads for these types; absence is a configuration error.
_REQUIRED_ENEMY_EXTRAS = {
    "flying": ("hover_height", "patrol_radius"),
    "projectile": ("fire_rate",),
}


@dataclass(frozen=True)
class GroupingRules:
    max_group_size: int
    group_spacing: float
    group_types: Tuple[str, ...]


@dataclass(frozen=True)
class EnemyPlacementRules:
    min_spacing: float
    max_per_section: int
    difficulty_scaling: float
    safe_zone_radius: float
    spawn_protection_radius: float
    grouping: GroupingRules


@dataclass(frozen=True)
class PatrolBehavior:
    path_length: float
    pause_duration: int
    turn_speed: float


@dataclass(frozen=True)
class ChaseBehavior:
    max_distance: float
    acceleration: float
    give_up_time: int


@dataclass(frozen=True)
class AttackBehavior:
    telegraph_time: int
    cooldown: int
    knockback: float


@dataclass(frozen=True)
class EnemyBehaviorRules:
    patrol: PatrolBehavior
    chase: ChaseBehavior
    attack: AttackBehavior


@dataclass(frozen=True)
class RingDropRules:
    chance: float
    min_amount: int
    max_amount: int


@dataclass(frozen=True)
class PowerupDropRules:
    chance: float
    types: Tuple[str, ...]


@dataclass(frozen=True)
class EnemyDropRules:
    ring: RingDropRules
    powerup: PowerupDropRules


@dataclass(frozen=True)
class EnemyRules:
    types: Mapping[str, EnemyTypeRules]
    placement: EnemyPlacementRules
    behavior: EnemyBehaviorRules
    drops: EnemyDropRules


# ----- Sections, progression, checkpoints, constants -----

@dataclass(frozen=True)
class SectionTypeRules:
    length: float
    ring_density: float
    enemy_density: float
    platform_density: float
    jump_pad_density: float
    cover_elements: bool
    special_rings: bool


@dataclass(frozen=True)
class TransitionRules:
    buffer: float
    warning_distance: float
    smoothing: bool


@dataclass(frozen=True)
class SectionRules:
    types: Mapping[str, SectionTypeRules]
    transitions: TransitionRules


@dataclass(frozen=True)
class LevelProgressionRules:
    multiplier: float
    new_enemy_types: Tuple[str, ...]


@dataclass(frozen=True)
class ScalingRules:
    enemy_health: float
    enemy_speed: float
    enemy_damage: float
    platform_gaps: float
    ring_value: float


@dataclass(frozen=True)
class ProgressionRules:
    levels: Mapping[int, LevelProgressionRules]
    scaling: ScalingRules


@dataclass(frozen=True)
class CheckpointRules:
    spacing: float
    activation_radius: float
    respawn_offset: float
    heal_amount: int
    invincibility_time: int


@dataclass(frozen=True)
class WorldConstants:
    """Fixed world values shared by every placer and the validator."""
    ground_height: float
    min_platform_height: float
    max_platform_height: float
    spawn_x: float
    spawn_margin: float  # first section starts here
    end_buffer: float  # kept clear for the goal
    goal_offset: float
    checkpoint_height: float
    enemy_height: float
    gravity: float  # per tick, used by landing prediction
    landing_margin: float
    landing_tolerance: float
    max_jump_height: float
    default_length: float


@dataclass(frozen=True)
class RuleSet:
    version: str
    rings: RingRules
    jump_pads: JumpPadRules
    platforms: PlatformRules
    enemies: EnemyRules
    sections: SectionRules
    progression: ProgressionRules
    checkpoints: CheckpointRules
    constants: WorldConstants


# ----- Parsing -----

def _camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.title() for part in rest)


def _convert(tp: Any, value: Any, path: str) -> Any:
    origin = get_origin(tp)

    if origin is Union:
        inner = [arg for arg in get_args(tp) if arg is not type(None)]
        if value is None:
            return None
        return _convert(inner[0], value, path)

    if is_dataclass(tp):
        return _build(tp, value, path)

    if origin in (dict, collections.abc.Mapping):
        if not isinstance(value, dict):
            raise RuleSetError(f"'{path}' must be a mapping")
        key_tp, val_tp = get_args(tp)
        out = {}
        for raw_key, raw_val in value.items():
            try:
                key = key_tp(raw_key)
            except (TypeError, ValueError):
                raise RuleSetError(f"'{path}' has invalid key {raw_key!r}") from None
            out[key] = _convert(val_tp, raw_val, f"{path}.{raw_key}")
        return MappingProxyType(out)

    if origin is tuple:
        if not isinstance(value, list):
            raise RuleSetError(f"'{path}' must be a list")
        item_tp = get_args(tp)[0]
        return tuple(_convert(item_tp, item, f"{path}[{i}]") for i, item in enumerate(value))

    if tp is bool:
        if not isinstance(value, bool):
            raise RuleSetError(f"'{path}' must be true or false")
        return value

    if tp in (int, float):
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise RuleSetError(f"'{path}' must be a number, got {value!r}")
        if tp is int:
            if value != int(value):
                raise RuleSetError(f"'{path}' must be an integer, got {value!r}")
            return int(value)
        return float(value)

    if tp is str:
        if not isinstance(value, str):
            raise RuleSetError(f"'{path}' must be a string")
        return value

    raise RuleSetError(f"'{path}' has unsupported rule type {tp!r}")


def _build(cls, raw: Any, path: str):
    """Build dataclass ``cls`` from ``raw``, requiring every non-optional key."""
    if not isinstance(raw, dict):
        raise RuleSetError(f"'{path or 'rules'}' must be a mapping")

    hints = get_type_hints(cls)
    kwargs = {}
    for f in fields(cls):
        key = _camel(f.name)
        sub_path = f"{path}.{key}" if path else key
        if key not in raw:
            if f.default is not MISSING:
                continue
            raise RuleSetError(f"missing rule '{sub_path}'")
        kwargs[f.name] = _convert(hints[f.name], raw[key], sub_path)
    return cls(**kwargs)


def _check_cross_references(rules: RuleSet) -> None:
    for name in SECTION_TYPES:
        if name not in rules.sections.types:
            raise RuleSetError(f"missing rule 'sections.types.{name}'")

    for name in DIFFICULTIES:
        if name not in rules.platforms.difficulty:
            raise RuleSetError(f"missing rule 'platforms.difficulty.{name}'")

    for enemy_type, extras in _REQUIRED_ENEMY_EXTRAS.items():
        type_rules = rules.enemies.types.get(enemy_type)
        if type_rules is None:
            continue
        for extra in extras:
            if getattr(type_rules, extra) is None:
                raise RuleSetError(f"missing rule 'enemies.types.{enemy_type}.{_camel(extra)}'")

    if not rules.progression.levels:
        raise RuleSetError("'progression.levels' must define at least one level")
    for level, entry in rules.progression.levels.items():
        for enemy_type in entry.new_enemy_types:
            if enemy_type not in rules.enemies.types:
                raise RuleSetError(
                    f"'progression.levels.{level}.newEnemyTypes' names unknown enemy type '{enemy_type}'"
                )


def parse_rules(raw: Dict[str, Any]) -> RuleSet:
    """Parse an in-memory rules mapping (camelCase keys) into a RuleSet."""
    rules = _build(RuleSet, raw, "")
    _check_cross_references(rules)
    return rules


def load_rules(path: Optional[str] = None) -> RuleSet:
    """Load and parse a rules JSON file (defaults to the bundled rules)."""
    path = path or DEFAULT_RULES_PATH
    try:
        with open(path, "r") as f:
            raw = json.load(f)
    except OSError as exc:
        raise RuleSetError(f"cannot read rules file {path}: {exc}") from exc
    except json.JSONDecodeError as exc:
        raise RuleSetError(f"rules file {path} is not valid JSON: {exc}") from exc

    rules = parse_rules(raw)
    logger.debug("Loaded level rules %s from %s", rules.version, path)
    return rules


@lru_cache(maxsize=1)
def default_rules() -> RuleSet:
    """Bundled rules, parsed once per process."""
    return load_rules(DEFAULT_RULES_PATH)
