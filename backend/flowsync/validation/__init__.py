"""
Validation module for parsed workflow diagrams.
"""

from flowsync.validation.diagram_validator import (
    DiagramValidationResult,
    DiagramValidator,
    ValidationIssue,
    ValidationSeverity,
    validate_diagram,
)

__all__ = [
    "DiagramValidationResult",
    "DiagramValidator",
    "ValidationIssue",
    "ValidationSeverity",
    "validate_diagram",
]
