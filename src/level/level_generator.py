"""
Level Generator - Main orchestrator for procedural level generation
"""

import logging
import time
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from src.level.checkpoint_placer import CheckpointPlacer
from src.level.enemy_placer import EnemyPlacer
from src.level.jump_pad_placer import JumpPadPlacer
from src.level.level_data import LevelData
from src.level.level_progression import LevelProgression
from src.level.level_rules import RuleSet, default_rules
from src.level.level_validator import LevelValidator, ValidationReport
from src.level.platform_placer import PlatformPlacer
from src.level.ring_placer import RingPlacer
from src.level.section_planner import SectionPlanner
from src.level.seed_manager import SeedManager
from src.level.validation_repair import ValidationRepairer

logger = logging.getLogger(__name__)

DEFAULT_REPAIR_PASSES = 3


class LevelGenerationError(Exception):
    """Raised when critical validation errors survive every repair pass."""

    def __init__(self, message: str, report: ValidationReport):
        super().__init__(message)
        self.report = report


@dataclass
class GenerationMetadata:
    generated_at: float
    seed: int
    world_seed: int
    rules_version: str
    repair_passes: int = 0
    initial_error_count: int = 0
    rejected: Dict[str, int] = field(default_factory=dict)


@dataclass
class GenerationResult:
    level_data: LevelData
    validation: ValidationReport
    metadata: GenerationMetadata


class LevelGeneratorSystem:
    """Main level generation orchestrator"""

    def __init__(self, rules: Optional[RuleSet] = None, world_seed: Optional[int] = None,
                 max_repair_passes: int = DEFAULT_REPAIR_PASSES):
        self.rules = rules or default_rules()
        self.seed_manager = SeedManager(world_seed)
        self.progression = LevelProgression(self.rules.progression)
        self.validator = LevelValidator(self.rules)
        self.max_repair_passes = max_repair_passes

        # Each level number gets its own regeneration counter
        self._attempts: Dict[int, int] = defaultdict(int)

        # Performance tracking
        self.generation_time_ms = 0.0
        self.validation_attempts = 0

    def generate_level(self, level_number: int, length: Optional[float] = None,
                       seed: Optional[int] = None) -> GenerationResult:
        """
        Generate, validate and repair a complete level

        Args:
            level_number: 1-based level number, drives difficulty and enemy unlocks
            length: Level length in world units (defaults to constants.defaultLength)
            seed: Optional level seed; the same seed reproduces the same level

        Returns:
            GenerationResult with the level, its final validation report and metadata

        Raises:
            ValueError: level_number < 1 or non-positive length
            LevelGenerationError: critical errors remain after repair
        """
        if level_number < 1:
            raise ValueError(f"level_number must be >= 1, got {level_number}")
        if length is None:
            length = self.rules.constants.default_length
        if length <= 0:
            raise ValueError(f"length must be positive, got {length}")

        start_time = time.time()

        if seed is None:
            seed = self.seed_manager.generate_level_seed(level_number, self._attempts[level_number])
            self._attempts[level_number] += 1
        else:
            self.seed_manager.use_level_seed(seed)

        level_data, rejected = self._build_level(level_number, length)
        validation, repair_passes, initial_errors = self._validate_and_repair(level_data)

        metadata = GenerationMetadata(
            generated_at=time.time(),
            seed=seed,
            world_seed=self.seed_manager.world_seed,
            rules_version=self.rules.version,
            repair_passes=repair_passes,
            initial_error_count=initial_errors,
            rejected=rejected,
        )
        self.generation_time_ms = (time.time() - start_time) * 1000

        counts = level_data.entity_counts()
        logger.info(
            "Level %d (seed %d): %d sections, %d platforms, %d enemies, %d rings, %d jump pads; "
            "%d errors, %d warnings after %d repair passes",
            level_number, seed, counts["sections"], counts["platforms"], counts["enemies"],
            counts["rings"], counts["jump_pads"], len(validation.errors), len(validation.warnings),
            repair_passes,
        )

        return GenerationResult(level_data=level_data, validation=validation, metadata=metadata)

    def _build_level(self, level_number: int, length: float):
        rules = self.rules
        constants = rules.constants
        difficulty = self.progression.difficulty_for_level(level_number)
        level_data = LevelData(number=level_number, length=length, difficulty=difficulty)
        rejected = {"platforms": 0, "enemies": 0, "rings": 0, "jump_pads": 0}

        planner = SectionPlanner(rules.sections, constants, self.seed_manager.get_random("sections"))
        level_data.sections = planner.plan(length)

        checkpoints = CheckpointPlacer(rules.checkpoints, constants)
        level_data.checkpoints = checkpoints.plan(length)
        level_data.checkpoints.append(checkpoints.make_goal(length))

        platforms = PlatformPlacer(rules.platforms, constants, self.seed_manager.get_random("platforms"))
        for section in level_data.sections:
            result = platforms.place_for_section(section, difficulty, level_data.platforms)
            level_data.platforms.extend(result.accepted)
            rejected["platforms"] += result.rejected

        enemies = EnemyPlacer(rules.enemies, self.progression, constants,
                              self.seed_manager.get_random("enemies"), level_number)
        for section in level_data.sections:
            result = enemies.place_for_section(section, level_data)
            level_data.enemies.extend(result.accepted)
            rejected["enemies"] += result.rejected

        rings = RingPlacer(rules.rings, rules.progression.scaling, constants, self.seed_manager.get_random("rings"))
        for section in level_data.sections:
            result = rings.place_for_section(section, level_data)
            level_data.rings.extend(result.accepted)
            rejected["rings"] += result.rejected

        pads = JumpPadPlacer(rules.jump_pads, rules.platforms.placement.max_gap, constants,
                             self.seed_manager.get_random("jump_pads"))
        result = pads.place_for_level(level_data)
        level_data.jump_pads.extend(result.accepted)
        rejected["jump_pads"] += result.rejected

        return level_data, rejected

    def _validate_and_repair(self, level_data: LevelData):
        """
        Validate, then repair and re-validate while repairable errors remain.

        At most ``max_repair_passes`` repair passes run. Residual non-critical
        errors are accepted; residual critical errors abort generation.
        """
        repairer = ValidationRepairer(self.rules)
        report = self.validator.validate_level(level_data)
        self.validation_attempts += 1
        initial_errors = len(report.errors)

        passes = 0
        while report.errors and passes < self.max_repair_passes and repairer.is_repairable(report):
            repairer.fix(level_data, report)
            passes += 1
            report = self.validator.validate_level(level_data)
            self.validation_attempts += 1

        if report.summary.critical_errors:
            raise LevelGenerationError(
                f"Level {level_data.number}: {report.summary.critical_errors} critical errors "
                f"after {passes} repair passes",
                report,
            )
        if report.errors:
            logger.warning("Level %d: %d errors remain after %d repair passes (%s)",
                           level_data.number, len(report.errors), passes, ", ".join(report.error_types()))

        return report, passes, initial_errors

    def get_generation_stats(self) -> Dict[str, Any]:
        """Get statistics about last generation"""
        return {
            'generation_time_ms': self.generation_time_ms,
            'validation_attempts': self.validation_attempts,
            'world_seed': self.seed_manager.world_seed,
            'seed_info': self.seed_manager.get_seed_info()
        }


def generate_level(level_number: int, length: Optional[float] = None,
                   rules: Optional[RuleSet] = None, seed: Optional[int] = None) -> GenerationResult:
    """
    Convenience function for generating a single level

    Args:
        level_number: 1-based level number
        length: Optional level length (defaults to constants.defaultLength)
        rules: Optional rule set (defaults to the bundled rules)
        seed: Optional level seed override

    Returns:
        GenerationResult
    """
    generator = LevelGeneratorSystem(rules)
    return generator.generate_level(level_number, length, seed)
