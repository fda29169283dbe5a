"""
Checkpoint placer - evenly spaced respawn points plus the goal flag.
"""

from typing import List

from src.level.level_data import Checkpoint
from src.level.level_rules import CheckpointRules, WorldConstants


class CheckpointPlacer:
    """Purely arithmetic checkpoint layout; no randomness."""

    def __init__(self, rules: CheckpointRules, constants: WorldConstants):
        self.rules = rules
        self.constants = constants

    def plan(self, level_length: float) -> List[Checkpoint]:
        """One checkpoint every ``spacing`` units, stopping before the end buffer."""
        checkpoints: List[Checkpoint] = []
        y = self.constants.ground_height - self.constants.checkpoint_height
        limit = level_length - self.constants.end_buffer

        x = self.rules.spacing
        while x < limit:
            checkpoints.append(Checkpoint(x=x, y=y, id=f"checkpoint_{len(checkpoints)}"))
            x += self.rules.spacing

        return checkpoints

    def make_goal(self, level_length: float) -> Checkpoint:
        """Goal flag at the fixed final position near the end of the level."""
        return Checkpoint(
            x=level_length - self.constants.goal_offset,
            y=self.constants.ground_height - self.constants.checkpoint_height,
            id="goal",
            is_goal=True,
        )
