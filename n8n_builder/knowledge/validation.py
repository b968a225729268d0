""" Validation engine: match parameters against known formats, then check editor requirements.

The n8n storage API accepts almost any parameter object, but the editor only
renders specific shapes. Format matching answers "is this a shape we know?";
the editor requirements of the matched format answer "will the editor render it?".
"""

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Tuple

from .registry import KnowledgeBase
from .types import (
    DEPRECATED,
    SEVERITY_ERROR,
    SEVERITY_WARNING,
    EditorRequirement,
    FieldRule,
    Number,
    Quirk,
    SchemaFormat,
)

_MISSING = object()

# issue kinds
FORMAT_MISMATCH = "format"
DEPRECATED_FORMAT = "deprecated"
EDITOR_INCOMPATIBLE = "editor_compatibility"
EDITOR_REQUIREMENT = "editor_requirement"


@dataclass
class ValidationIssue:
    message: str
    kind: str
    severity: str = SEVERITY_ERROR
    path: Optional[str] = None
    suggestion: Optional[str] = None
    requirement_id: Optional[str] = None


@dataclass
class ValidationResult:
    valid: bool
    node_type: str
    type_version: Number
    matched_format: Optional[str] = None
    errors: List[ValidationIssue] = field(default_factory=list)
    warnings: List[ValidationIssue] = field(default_factory=list)
    editor_compatible: bool = False
    editor_issues: List[ValidationIssue] = field(default_factory=list)
    suggestion: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def _split(segment: str) -> Tuple[str, bool]:
    for marker in ("[*]", "[]"):
        if segment.endswith(marker):
            return segment[: -len(marker)], True
    return segment, False


def resolve_path(data: Any, path: str) -> List[Tuple[str, Any]]:
    """Resolve a dot path, expanding `[]`/`[*]` segments over list elements.

    Returns (concrete_path, value) pairs; value is _MISSING where the path does
    not exist. An empty list under a wildcard yields no pairs.
    """
    current: List[Tuple[str, Any]] = [("", data)]
    for segment in path.split("."):
        name, wildcard = _split(segment)
        nxt: List[Tuple[str, Any]] = []
        for prefix, value in current:
            here = f"{prefix}.{name}" if prefix else name
            if value is _MISSING or not isinstance(value, dict) or name not in value:
                nxt.append((here, _MISSING))
                continue
            child = value[name]
            if not wildcard:
                nxt.append((here, child))
            elif isinstance(child, list):
                nxt.extend((f"{here}[{i}]", item) for i, item in enumerate(child))
            else:
                nxt.append((f"{here}[]", _MISSING))
        current = nxt
    return current


def kind_matches(value: Any, kind: str) -> bool:
    if value is _MISSING:
        return False
    if kind == "any":
        return True
    if kind == "object":
        return isinstance(value, dict)
    if kind == "array":
        return isinstance(value, list)
    if kind == "string":
        return isinstance(value, str)
    if kind == "number":
        return isinstance(value, (int, float)) and not isinstance(value, bool)
    if kind == "boolean":
        return isinstance(value, bool)
    raise ValueError(f"Unknown kind: {kind}")


def _rule_holds(parameters: Dict[str, Any], rule: FieldRule) -> bool:
    for _, value in resolve_path(parameters, rule.path):
        if not kind_matches(value, rule.kind):
            return False
        if rule.value is not None and value != rule.value:
            return False
    return True


def format_matches(parameters: Dict[str, Any], fmt: SchemaFormat) -> bool:
    if not all(_rule_holds(parameters, rule) for rule in fmt.required):
        return False
    if fmt.any_of and not any(_rule_holds(parameters, rule) for rule in fmt.any_of):
        return False
    return True


def _requirement_holds(req: EditorRequirement, value: Any) -> bool:
    if req.check_type == "exists":
        return value is not _MISSING and value is not None
    if req.check_type == "type":
        return kind_matches(value, req.expected)
    if req.check_type == "value":
        return value is not _MISSING and value == req.expected
    if req.check_type == "custom":
        return bool(req.expected(None if value is _MISSING else value))
    raise ValueError(f"Unknown check type: {req.check_type}")


def check_requirements(parameters: Dict[str, Any], requirements: Iterable[EditorRequirement]) -> List[ValidationIssue]:
    issues = []
    for req in requirements:
        for concrete, value in resolve_path(parameters, req.path):
            if _requirement_holds(req, value):
                continue
            issues.append(ValidationIssue(
                message=f"{req.name}: {req.error_message}",
                kind=EDITOR_REQUIREMENT,
                severity=req.severity,
                path=concrete,
                suggestion=req.fix or None,
                requirement_id=req.id,
            ))
    return issues


class ValidationEngine:

    def __init__(self, knowledge: KnowledgeBase):
        self.knowledge = knowledge

    def validate(self, node_type: str, parameters: Optional[Dict[str, Any]],
                 version: Optional[Number] = None) -> ValidationResult:
        schema = self.knowledge.get_schema(node_type, version)
        parameters = parameters or {}
        result = ValidationResult(valid=False, node_type=node_type, type_version=schema.type_version)

        matched = next((fmt for fmt in schema.formats if format_matches(parameters, fmt)), None)
        if matched is None:
            names = ", ".join(schema.format_names())
            result.suggestion = f"Review schema formats: {names}"
            result.errors.append(ValidationIssue(
                message=f"Parameters do not match any known {node_type} format",
                kind=FORMAT_MISMATCH,
                suggestion=result.suggestion,
            ))
            return result

        result.matched_format = matched.name
        if matched.status == DEPRECATED:
            recommended = schema.recommended_format()
            hint = f"Use the '{recommended.name}' format instead" if recommended else None
            result.warnings.append(ValidationIssue(
                message=f"Format '{matched.name}' is deprecated",
                kind=DEPRECATED_FORMAT,
                severity=SEVERITY_WARNING,
                suggestion=hint,
            ))
            result.suggestion = hint
        if not matched.ui_compatible:
            result.warnings.append(ValidationIssue(
                message=f"Format '{matched.name}' is accepted by the API but does not render in the editor",
                kind=EDITOR_INCOMPATIBLE,
                severity=SEVERITY_WARNING,
                suggestion=result.suggestion,
            ))

        result.editor_issues = check_requirements(parameters, matched.editor_requirements)
        for issue in result.editor_issues:
            if issue.severity == SEVERITY_ERROR:
                result.errors.append(issue)
            else:
                result.warnings.append(issue)

        result.valid = not result.errors
        result.editor_compatible = matched.ui_compatible and not any(
            i.severity == SEVERITY_ERROR for i in result.editor_issues
        )
        return result

    def quirks_for(self, node_type: str, version: Optional[Number] = None) -> List[Quirk]:
        return self.knowledge.quirks_for(node_type, version)

    def search_by_symptom(self, keywords: Iterable[str]) -> List[Quirk]:
        return self.knowledge.search_by_symptom(keywords)
