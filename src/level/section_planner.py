"""
Section planner - splits the level into typed gameplay sections.
"""

import logging
import random
from typing import List, Sequence

from src.level.level_data import Section
from src.level.level_rules import SectionRules, WorldConstants

logger = logging.getLogger(__name__)

# previous type -> (threshold, type if roll > threshold, type otherwise)
SECTION_TRANSITIONS = {
    "speed": (0.5, "platform", "combat"),
    "platform": (0.7, "bonus", "combat"),
    "combat": (0.6, "speed", "platform"),
    "bonus": (1.0, "speed", "speed"),
}


class SectionPlanner:
    """Lays out contiguous, buffer-separated sections along the level."""

    def __init__(self, rules: SectionRules, constants: WorldConstants, rng: random.Random):
        self.rules = rules
        self.constants = constants
        self.rng = rng

    def plan(self, level_length: float) -> List[Section]:
        """
        Partition [spawn_margin, level_length - end_buffer) into sections.

        A level too short for the spawn area and goal buffer gets no sections.
        """
        sections: List[Section] = []
        limit = level_length - self.constants.end_buffer
        cursor = self.constants.spawn_margin

        while cursor < limit:
            section_type = self.choose_section_type(sections)
            type_rules = self.rules.types[section_type]
            end = min(cursor + type_rules.length, limit)

            sections.append(Section(type=section_type, start=cursor, end=end, rules=type_rules))
            cursor = end + self.rules.transitions.buffer

        logger.debug("Planned %d sections for length %s", len(sections), level_length)
        return sections

    def choose_section_type(self, previous: Sequence[Section]) -> str:
        """Pick the next section type from the transition table."""
        # Open with a gentle speed run, then a platforming section
        if not previous:
            return "speed"
        if len(previous) == 1:
            return "platform"

        transition = SECTION_TRANSITIONS.get(previous[-1].type)
        if transition is None:
            return "speed"

        threshold, above, below = transition
        return above if self.rng.random() > threshold else below
