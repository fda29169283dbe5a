"""
Level data structures for side-scrolling level generation.

Coordinates are screen coordinates: y grows downward and the ground surface
sits at ``constants.ground_height``. Platforms are centred on ``x`` and
``y`` is their top surface.
"""

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from src.level.level_rules import SectionTypeRules


@dataclass
class Section:
    """A contiguous horizontal slice of the level with a gameplay archetype."""
    type: str  # "speed", "platform", "combat", "bonus"
    start: float
    end: float
    rules: SectionTypeRules

    @property
    def length(self) -> float:
        return self.end - self.start


@dataclass
class Checkpoint:
    x: float
    y: float
    id: str
    is_goal: bool = False
    activated: bool = False


# ----- Platforms -----

@dataclass
class Platform:
    """
    Common platform fields. Use one of the typed variants below.

    Attributes:
        x: Horizontal centre
        y: Top surface
        width: Full width
        height: Thickness
        id: Stable identifier, unique within a level
    """
    x: float
    y: float
    width: float
    height: float
    id: str
    type: str = field(init=False, default="static")

    @property
    def left(self) -> float:
        return self.x - self.width / 2

    @property
    def right(self) -> float:
        return self.x + self.width / 2

    @property
    def bottom(self) -> float:
        return self.y + self.height

    def spans(self, x: float, margin: float = 0.0) -> bool:
        """True if ``x`` lies over the platform, allowing ``margin`` overhang."""
        return self.left - margin <= x <= self.right + margin


@dataclass
class StaticPlatform(Platform):
    type: str = field(init=False, default="static")


@dataclass
class MovingPlatform(Platform):
    type: str = field(init=False, default="moving")
    path: List[Tuple[float, float]] = field(default_factory=list)
    speed: float = 0.0
    direction: int = 1
    current_path_index: int = 0


@dataclass
class CrumblingPlatform(Platform):
    type: str = field(init=False, default="crumbling")
    stability: int = 0  # ms before crumbling
    respawn_time: int = 0
    is_stable: bool = True
    touch_time: int = 0


# ----- Enemies -----

@dataclass
class Enemy:
    x: float
    y: float
    health: int
    max_health: int
    speed: float
    damage: int
    points: int
    detection_range: float
    id: str
    type: str = field(init=False, default="basic")
    state: str = "patrol"
    direction: int = 1
    patrol_length: float = 0.0


@dataclass
class BasicEnemy(Enemy):
    type: str = field(init=False, default="basic")


@dataclass
class FlyingEnemy(Enemy):
    type: str = field(init=False, default="flying")
    base_y: float = 0.0
    amplitude: float = 50.0
    frequency: float = 0.002
    patrol_radius: float = 0.0


@dataclass
class ShieldedEnemy(Enemy):
    type: str = field(init=False, default="shielded")
    has_shield: bool = True
    shield_health: int = 2
    shield_regen_timer: int = 0


@dataclass
class ProjectileEnemy(Enemy):
    type: str = field(init=False, default="projectile")
    fire_timer: int = 0
    fire_rate: int = 0
    projectiles: List[Any] = field(default_factory=list)


# ----- Rings -----

@dataclass
class Ring:
    x: float
    y: float
    id: str
    value: float = 1
    collected: bool = False
    type: str = field(init=False, default="normal")


@dataclass
class NormalRing(Ring):
    type: str = field(init=False, default="normal")


@dataclass
class SuperRing(Ring):
    type: str = field(init=False, default="super")
    glow_radius: float = 0.0


@dataclass
class MagnetRing(Ring):
    type: str = field(init=False, default="magnet")
    magnet_radius: float = 0.0


# ----- Jump pads -----

@dataclass
class JumpPad:
    type: str  # "vertical", "horizontal", "diagonal"
    x: float
    y: float
    width: float
    height: float
    force_x: float
    force_y: float  # upward launch speed
    force: float
    cooldown: int
    id: str
    active: bool = True


@dataclass
class PlacementResult:
    """Entities a placer accepted plus the number of candidates it dropped."""
    accepted: List[Any] = field(default_factory=list)
    rejected: int = 0


@dataclass
class LevelData:
    """
    A complete generated level.

    Owned by the generator while it is being built; the repair pass mutates
    it in place before it is handed to the caller.
    """
    number: int
    length: float
    difficulty: str
    sections: List[Section] = field(default_factory=list)
    checkpoints: List[Checkpoint] = field(default_factory=list)
    platforms: List[Platform] = field(default_factory=list)
    enemies: List[Enemy] = field(default_factory=list)
    rings: List[Ring] = field(default_factory=list)
    jump_pads: List[JumpPad] = field(default_factory=list)

    @property
    def goal(self) -> Optional[Checkpoint]:
        for checkpoint in self.checkpoints:
            if checkpoint.is_goal:
                return checkpoint
        return None

    def find_jump_pad(self, pad_id: str) -> Optional[JumpPad]:
        for pad in self.jump_pads:
            if pad.id == pad_id:
                return pad
        return None

    def entity_counts(self) -> Dict[str, int]:
        return {
            "sections": len(self.sections),
            "checkpoints": len(self.checkpoints),
            "platforms": len(self.platforms),
            "enemies": len(self.enemies),
            "rings": len(self.rings),
            "jump_pads": len(self.jump_pads),
        }

    def to_dict(self) -> Dict[str, Any]:
        """Plain, JSON-compatible representation for renderers and tools."""
        return asdict(self)
