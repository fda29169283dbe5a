"""
Level Progression System - Handles difficulty scaling and enemy unlocks per level
"""

from typing import List

from src.level.level_rules import ProgressionRules, ScalingRules


class LevelProgression:
    """Answers per-level difficulty questions from the progression table"""

    def __init__(self, rules: ProgressionRules):
        self.rules = rules
        self._max_level = max(rules.levels)

    def difficulty_for_level(self, level_number: int) -> str:
        """Platform difficulty bracket: easy (1-3), medium (4-6), hard (7+)"""
        if level_number <= 3:
            return "easy"
        if level_number <= 6:
            return "medium"
        return "hard"

    def multiplier_for_level(self, level_number: int) -> float:
        """
        Get the stat multiplier for a level

        Levels beyond the table reuse the highest defined level.
        """
        entry = self.rules.levels.get(min(level_number, self._max_level))
        if entry is None:
            # Gaps in the table fall back to the closest lower level
            defined = [lvl for lvl in self.rules.levels if lvl <= level_number]
            entry = self.rules.levels[max(defined)] if defined else self.rules.levels[min(self.rules.levels)]
        return entry.multiplier

    def available_enemy_types(self, level_number: int) -> List[str]:
        """
        Get enemy types unlocked up to and including this level

        Returns:
            Cumulative list of newEnemyTypes, in unlock order; ['basic'] if empty
        """
        types: List[str] = []
        for level in sorted(self.rules.levels):
            if level > level_number:
                break
            for enemy_type in self.rules.levels[level].new_enemy_types:
                if enemy_type not in types:
                    types.append(enemy_type)

        return types or ["basic"]

    def enemy_stat_scaling(self) -> ScalingRules:
        """Global stat scaling constants"""
        return self.rules.scaling
