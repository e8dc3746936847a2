"""
Diagram Validator - lints a parsed workflow graph.

Catches issues like:
- Empty diagrams
- Duplicate IDs
- Edges pointing at undeclared nodes
- Empty labels
- Orphaned steps (no connections)
- Self loops
"""

from collections import defaultdict
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Set

from flowsync.visual.visual_schema import VisualGraph


class ValidationSeverity(Enum):
    ERROR = "error"      # Diagram will not render correctly
    WARNING = "warning"  # Diagram renders but has issues
    INFO = "info"        # Suggestions for improvement


@dataclass
class ValidationIssue:
    """A single validation issue found in the diagram"""
    severity: ValidationSeverity
    code: str           # Machine-readable issue code
    message: str        # Human-readable description
    node_id: Optional[str] = None
    edge_info: Optional[str] = None
    suggestion: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "severity": self.severity.value,
            "code": self.code,
            "message": self.message,
            "node_id": self.node_id,
            "edge_info": self.edge_info,
            "suggestion": self.suggestion,
        }


@dataclass
class DiagramValidationResult:
    """Result of diagram validation"""
    is_valid: bool
    issues: List[ValidationIssue] = field(default_factory=list)
    stats: Dict[str, int] = field(default_factory=dict)

    @property
    def error_count(self) -> int:
        return sum(1 for i in self.issues if i.severity == ValidationSeverity.ERROR)

    @property
    def warning_count(self) -> int:
        return sum(1 for i in self.issues if i.severity == ValidationSeverity.WARNING)

    @property
    def info_count(self) -> int:
        return sum(1 for i in self.issues if i.severity == ValidationSeverity.INFO)

    def codes(self) -> Set[str]:
        return {i.code for i in self.issues}

    def to_dict(self) -> dict:
        return {
            "is_valid": self.is_valid,
            "error_count": self.error_count,
            "warning_count": self.warning_count,
            "info_count": self.info_count,
            "issues": [i.to_dict() for i in self.issues],
            "stats": self.stats,
        }

    def get_summary(self) -> str:
        status = "Valid" if self.is_valid else "Invalid"
        return (
            f"{status} | "
            f"Errors: {self.error_count}, Warnings: {self.warning_count}, Info: {self.info_count}"
        )


class DiagramValidator:
    """
    Usage:
        validator = DiagramValidator()
        result = validator.validate(parse_mermaid(code))
    """

    def __init__(self, strict_mode: bool = False):
        self.strict_mode = strict_mode

    def validate(self, graph: VisualGraph) -> DiagramValidationResult:
        issues: List[ValidationIssue] = []
        node_ids = set(graph.node_ids())

        issues.extend(self._check_empty_diagram(graph))
        issues.extend(self._check_duplicate_node_ids(graph))
        issues.extend(self._check_empty_labels(graph))
        issues.extend(self._check_missing_edge_references(graph, node_ids))
        issues.extend(self._check_orphaned_nodes(graph, node_ids))
        issues.extend(self._check_self_loops(graph))

        has_errors = any(i.severity == ValidationSeverity.ERROR for i in issues)
        has_warnings = any(i.severity == ValidationSeverity.WARNING for i in issues)

        is_valid = not has_errors
        if self.strict_mode:
            is_valid = not has_errors and not has_warnings

        return DiagramValidationResult(
            is_valid=is_valid,
            issues=issues,
            stats={"nodes": len(graph.nodes), "edges": len(graph.edges)},
        )

    def _check_empty_diagram(self, graph: VisualGraph) -> List[ValidationIssue]:
        if graph.nodes:
            return []
        return [ValidationIssue(
            severity=ValidationSeverity.WARNING,
            code="EMPTY_DIAGRAM",
            message="Diagram has no recognizable nodes",
            suggestion="Declare steps like A[\"Label\"] and link them with -->",
        )]

    def _check_duplicate_node_ids(self, graph: VisualGraph) -> List[ValidationIssue]:
        issues = []
        seen_ids: Dict[str, int] = defaultdict(int)
        for node in graph.nodes:
            seen_ids[node.id] += 1
        for node_id, count in seen_ids.items():
            if count > 1:
                issues.append(ValidationIssue(
                    severity=ValidationSeverity.ERROR,
                    code="DUPLICATE_NODE_ID",
                    message=f"Duplicate node ID '{node_id}' appears {count} times",
                    node_id=node_id,
                    suggestion="Ensure each node has a unique ID",
                ))
        return issues

    def _check_empty_labels(self, graph: VisualGraph) -> List[ValidationIssue]:
        issues = []
        for node in graph.nodes:
            if not node.label or not node.label.strip():
                issues.append(ValidationIssue(
                    severity=ValidationSeverity.WARNING,
                    code="EMPTY_LABEL",
                    message=f"Node '{node.id}' has empty label",
                    node_id=node.id,
                    suggestion="Add a descriptive label to the node",
                ))
        return issues

    def _check_missing_edge_references(self, graph: VisualGraph, node_ids: Set[str]) -> List[ValidationIssue]:
        issues = []
        for edge in graph.edges:
            if edge.source not in node_ids:
                issues.append(ValidationIssue(
                    severity=ValidationSeverity.ERROR,
                    code="MISSING_SOURCE_NODE",
                    message=f"Edge references non-existent source node '{edge.source}'",
                    edge_info=f"{edge.source} -> {edge.target}",
                ))
            if edge.target not in node_ids:
                issues.append(ValidationIssue(
                    severity=ValidationSeverity.ERROR,
                    code="MISSING_TARGET_NODE",
                    message=f"Edge references non-existent target node '{edge.target}'",
                    edge_info=f"{edge.source} -> {edge.target}",
                ))
        return issues

    def _check_orphaned_nodes(self, graph: VisualGraph, node_ids: Set[str]) -> List[ValidationIssue]:
        # A lone step is a draft, not an orphan
        if not graph.edges:
            return []

        connected = {e.source for e in graph.edges} | {e.target for e in graph.edges}
        issues = []
        for node in graph.nodes:
            if node.id in connected:
                continue
            issues.append(ValidationIssue(
                severity=ValidationSeverity.WARNING,
                code="ORPHANED_NODE",
                message=f"Step '{node.label}' ({node.id}) has no connections",
                node_id=node.id,
                suggestion="Connect this step to the workflow or remove it",
            ))
        return issues

    def _check_self_loops(self, graph: VisualGraph) -> List[ValidationIssue]:
        issues = []
        for edge in graph.edges:
            if edge.source == edge.target:
                issues.append(ValidationIssue(
                    severity=ValidationSeverity.INFO,
                    code="SELF_LOOP",
                    message=f"Edge creates self-loop on node '{edge.source}'",
                    node_id=edge.source,
                    edge_info=f"{edge.source} -> {edge.target}",
                ))
        return issues


def validate_diagram(graph: VisualGraph, strict: bool = False) -> DiagramValidationResult:
    """Convenience function to validate a graph."""
    validator = DiagramValidator(strict_mode=strict)
    return validator.validate(graph)
