"""
Seed Manager - Handles deterministic seed management for level generation
"""

import hashlib
import random
from typing import Dict, Optional

# One independent random stream per generation stage
COMPONENTS = ("sections", "platforms", "enemies", "rings", "jump_pads")


def _hash_seed(seed_string: str) -> int:
    seed_hash = hashlib.md5(seed_string.encode()).hexdigest()
    return int(seed_hash[:8], 16)


class SeedManager:
    """Manages deterministic seeds for procedural level generation"""

    def __init__(self, world_seed: Optional[int] = None):
        """
        Initialize seed manager with optional world seed

        Args:
            world_seed: Seed shared by every level of a run. If None, one is drawn at random.
        """
        self.world_seed = world_seed if world_seed is not None else random.randint(0, 2**31 - 1)
        self.current_level_seed: Optional[int] = None
        self.sub_seeds: Dict[str, int] = {}
        self._rng_instances: Dict[str, random.Random] = {}

    def generate_level_seed(self, level_number: int, attempt: int = 0) -> int:
        """
        Generate deterministic seed for a level

        Args:
            level_number: Number of the level
            attempt: How many times this level was generated before (regeneration)

        Returns:
            Deterministic seed for this level/attempt
        """
        level_seed = _hash_seed(f"{self.world_seed}_level_{level_number}_{attempt}")
        self.use_level_seed(level_seed)
        return level_seed

    def use_level_seed(self, level_seed: int) -> None:
        """Make ``level_seed`` current and derive fresh sub-seeds from it."""
        self.current_level_seed = level_seed
        self.sub_seeds = {
            component: _hash_seed(f"{level_seed}_{component}") for component in COMPONENTS
        }
        self._rng_instances = {}

    def get_random(self, component: str) -> random.Random:
        """
        Random stream for one generation stage of the current level

        Args:
            component: Component name ('sections', 'platforms', 'enemies', ...)

        Returns:
            random.Random seeded from the component sub-seed
        """
        if self.current_level_seed is None:
            raise RuntimeError("No level seed set; call generate_level_seed() first")

        if component not in self._rng_instances:
            if component not in self.sub_seeds:
                self.sub_seeds[component] = _hash_seed(f"{self.current_level_seed}_{component}")
            self._rng_instances[component] = random.Random(self.sub_seeds[component])

        return self._rng_instances[component]

    def get_seed_info(self) -> Dict[str, int]:
        """Snapshot of the world, level and component seeds"""
        info = {
            'world_seed': self.world_seed,
            'sub_seeds': self.sub_seeds.copy()
        }
        if self.current_level_seed is not None:
            info['level_seed'] = self.current_level_seed
        return info
