"""
Tests for the complete level generation pipeline.
"""

import logging

import pytest

from src.level.level_generator import (
    GenerationResult,
    LevelGenerationError,
    LevelGeneratorSystem,
    generate_level,
)
from src.level.level_validator import (
    LevelValidator,
    Severity,
    ValidationIssue,
    ValidationReport,
    ValidationSummary,
)
from src.level.placement_utils import calculate_landing_point, is_inside_platform


def report_with(issue: ValidationIssue) -> ValidationReport:
    critical = issue.severity == Severity.CRITICAL
    return ValidationReport(
        is_valid=False,
        errors=[issue],
        summary=ValidationSummary(
            total_errors=1, total_warnings=0,
            critical_errors=int(critical), high_errors=int(not critical),
            medium_errors=0, low_errors=0,
            can_proceed=not critical, recommendation="",
        ),
    )


class TestGenerateLevel:
    """End-to-end generation on the bundled rules."""

    @pytest.mark.parametrize("world_seed", [0, 1, 2, 3, 4, 42])
    def test_short_level_is_playable(self, rules, world_seed):
        result = LevelGeneratorSystem(rules, world_seed=world_seed).generate_level(1, length=3000)
        level = result.level_data

        assert level.sections
        assert level.sections[0].type == "speed"
        assert level.checkpoints[-1].is_goal
        assert level.checkpoints[-1].x == 3000 - rules.constants.goal_offset
        assert sum(c.is_goal for c in level.checkpoints) == 1
        assert result.validation.summary.can_proceed

    def test_module_level_helper(self):
        result = generate_level(1, length=3000)
        assert isinstance(result, GenerationResult)
        assert result.level_data.sections[0].type == "speed"
        assert result.validation.summary.can_proceed

    @pytest.mark.parametrize("level_number", [1, 4, 8])
    def test_every_jump_pad_lands_safely(self, rules, level_number):
        validator = LevelValidator(rules)
        for world_seed in range(3):
            result = LevelGeneratorSystem(rules, world_seed=world_seed).generate_level(level_number, length=6000)
            level = result.level_data
            for pad in level.jump_pads:
                landing = calculate_landing_point(pad, rules.constants.gravity)
                assert validator.is_landing_safe(landing, level.platforms, level.length)

    @pytest.mark.parametrize("level_number", [1, 3, 5, 8])
    def test_rings_stay_clear_after_repair(self, rules, level_number):
        min_height = rules.rings.placement.min_height
        ground = rules.constants.ground_height
        for world_seed in range(5):
            result = LevelGeneratorSystem(rules, world_seed=world_seed).generate_level(level_number, length=6000)
            level = result.level_data
            for ring in level.rings:
                assert not is_inside_platform(ring.x, ring.y, level.platforms), ring
                assert ground - ring.y >= min_height
            assert "RING_HEIGHT" not in result.validation.error_types()

    @pytest.mark.parametrize("world_seed", range(5))
    def test_platforms_stay_inside_level(self, rules, world_seed):
        result = LevelGeneratorSystem(rules, world_seed=world_seed).generate_level(8, length=6000)
        for platform in result.level_data.platforms:
            assert 0 <= platform.x <= result.level_data.length

    def test_default_length(self, rules):
        result = LevelGeneratorSystem(rules, world_seed=9).generate_level(2)
        assert result.level_data.length == rules.constants.default_length
        assert result.level_data.difficulty == "easy"

    def test_difficulty_follows_level(self, rules):
        generator = LevelGeneratorSystem(rules, world_seed=9)
        assert generator.generate_level(5, length=2000).level_data.difficulty == "medium"
        assert generator.generate_level(8, length=2000).level_data.difficulty == "hard"

    def test_metadata(self, rules):
        result = LevelGeneratorSystem(rules, world_seed=77).generate_level(1, length=3000)
        metadata = result.metadata

        assert metadata.world_seed == 77
        assert metadata.rules_version == rules.version
        assert metadata.generated_at > 0
        assert set(metadata.rejected) == {"platforms", "enemies", "rings", "jump_pads"}
        assert all(count >= 0 for count in metadata.rejected.values())
        assert 0 <= metadata.repair_passes <= 3

    @pytest.mark.parametrize("level_number,length", [(0, 3000), (-1, 3000), (1, 0), (1, -50)])
    def test_invalid_arguments(self, rules, level_number, length):
        with pytest.raises(ValueError):
            LevelGeneratorSystem(rules, world_seed=1).generate_level(level_number, length=length)


class TestDeterminism:
    """Seeds reproduce levels exactly."""

    def test_same_world_seed_same_level(self, rules):
        a = LevelGeneratorSystem(rules, world_seed=2024).generate_level(3, length=4000)
        b = LevelGeneratorSystem(rules, world_seed=2024).generate_level(3, length=4000)

        assert a.metadata.seed == b.metadata.seed
        assert a.level_data.to_dict() == b.level_data.to_dict()

    def test_regeneration_gives_a_new_layout(self, rules):
        generator = LevelGeneratorSystem(rules, world_seed=2024)
        first = generator.generate_level(3, length=4000)
        second = generator.generate_level(3, length=4000)

        assert first.metadata.seed != second.metadata.seed

    def test_explicit_seed_reproduces_level(self, rules):
        first = LevelGeneratorSystem(rules, world_seed=5).generate_level(2, length=4000)
        again = LevelGeneratorSystem(rules, world_seed=999).generate_level(2, length=4000,
                                                                           seed=first.metadata.seed)
        assert again.metadata.seed == first.metadata.seed
        assert again.level_data.to_dict() == first.level_data.to_dict()


class TestRepairLoop:
    """Bounded repair and failure reporting."""

    def test_residual_critical_error_raises(self, rules, monkeypatch):
        generator = LevelGeneratorSystem(rules, world_seed=1)
        issue = ValidationIssue("SECTION_TYPE", "bad section", Severity.CRITICAL)
        monkeypatch.setattr(generator.validator, "validate_level", lambda level: report_with(issue))

        with pytest.raises(LevelGenerationError) as excinfo:
            generator.generate_level(1, length=3000)

        assert excinfo.value.report.errors == [issue]

    def test_repair_passes_are_bounded(self, rules, monkeypatch):
        generator = LevelGeneratorSystem(rules, world_seed=1, max_repair_passes=2)
        calls = []

        def always_gap(level):
            calls.append(level)
            return report_with(ValidationIssue("PLATFORM_GAP", "gap", Severity.HIGH, x=500, y=200))

        monkeypatch.setattr(generator.validator, "validate_level", always_gap)
        result = generator.generate_level(1, length=3000)

        assert result.metadata.repair_passes == 2
        assert len(calls) == 3
        assert result.metadata.initial_error_count == 1

    def test_unrepairable_errors_are_logged(self, rules, monkeypatch, caplog):
        generator = LevelGeneratorSystem(rules, world_seed=1)
        issue = ValidationIssue("ENEMY_HEALTH", "bad health", Severity.HIGH)
        monkeypatch.setattr(generator.validator, "validate_level", lambda level: report_with(issue))

        with caplog.at_level(logging.WARNING, logger="src.level.level_generator"):
            result = generator.generate_level(1, length=3000)

        assert result.metadata.repair_passes == 0
        assert "ENEMY_HEALTH" in caplog.text

    def test_generation_stats(self, rules):
        generator = LevelGeneratorSystem(rules, world_seed=3)
        generator.generate_level(1, length=3000)
        stats = generator.get_generation_stats()

        assert stats["world_seed"] == 3
        assert stats["validation_attempts"] >= 1
        assert "level_seed" in stats["seed_info"]
