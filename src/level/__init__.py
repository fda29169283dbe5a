from .level_rules import RuleSet, RuleSetError, default_rules, load_rules, parse_rules
from .level_data import LevelData, PlacementResult
from .level_validator import LevelValidator, Severity, ValidationIssue, ValidationReport, ValidationSummary
from .validation_repair import ValidationRepairer
from .level_generator import (
    GenerationMetadata,
    GenerationResult,
    LevelGenerationError,
    LevelGeneratorSystem,
    generate_level,
)

__all__ = [
    'RuleSet',
    'RuleSetError',
    'default_rules',
    'load_rules',
    'parse_rules',
    'LevelData',
    'PlacementResult',
    'LevelValidator',
    'Severity',
    'ValidationIssue',
    'ValidationReport',
    'ValidationSummary',
    'ValidationRepairer',
    'GenerationMetadata',
    'GenerationResult',
    'LevelGenerationError',
    'LevelGeneratorSystem',
    'generate_level',
]
