"""
Shared fixtures for the level generation tests.
"""

import random

import pytest

from src.level.level_data import LevelData, Section
from src.level.level_rules import default_rules


@pytest.fixture
def rules():
    """The bundled rule set."""
    return default_rules()


@pytest.fixture
def constants(rules):
    return rules.constants


@pytest.fixture
def rng() -> random.Random:
    """Fixed-seed random source so placements are repeatable."""
    return random.Random(12345)


@pytest.fixture
def make_section(rules):
    def _make(section_type="speed", start=200.0, end=800.0):
        return Section(type=section_type, start=start, end=end, rules=rules.sections.types[section_type])
    return _make


@pytest.fixture
def empty_level():
    def _make(length=3000.0, number=1):
        return LevelData(number=number, length=length, difficulty="easy")
    return _make
