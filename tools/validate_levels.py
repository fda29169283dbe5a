#!/usr/bin/env python3
"""Generate levels for a range of seeds and check they are playable.

Checks:
- generation succeeds (no critical errors after repair)
- every jump pad lands safely
- the goal is the last checkpoint

Usage: python tools/validate_levels.py [levels] [seeds]
"""
from pathlib import Path
import logging
import sys

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from src.level.level_generator import LevelGenerationError, LevelGeneratorSystem

logger = logging.getLogger(__name__)

levels = int(sys.argv[1]) if len(sys.argv) > 1 else 10
seeds = int(sys.argv[2]) if len(sys.argv) > 2 else 5

errors = []
residual = 0

for world_seed in range(seeds):
    generator = LevelGeneratorSystem(world_seed=world_seed)
    for level_number in range(1, levels + 1):
        try:
            result = generator.generate_level(level_number)
        except LevelGenerationError as exc:
            errors.append(f"seed {world_seed} level {level_number}: {exc}")
            continue

        level = result.level_data
        for pad in level.jump_pads:
            landing_issues = [i for i in result.validation.errors
                              if i.type == "JUMPPAD_LANDING" and pad.id in i.entity_ids]
            if landing_issues:
                errors.append(f"seed {world_seed} level {level_number}: {pad.id} lands unsafely")

        if level.goal is None or level.checkpoints[-1] is not level.goal:
            errors.append(f"seed {world_seed} level {level_number}: goal is not the last checkpoint")

        residual += len(result.validation.errors)

if errors:
    logging.basicConfig(format='%(message)s')
    logger.error('Validation FAILED:')
    for e in errors:
        logger.error(' - %s', e)
    sys.exit(2)

print(f'Validation OK: {levels * seeds} levels generated, {residual} residual non-critical errors')
sys.exit(0)
