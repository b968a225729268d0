""" Immutable records describing node parameter formats and known editor quirks """

from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple, Union

Number = Union[int, float]

RECOMMENDED = "recommended"
DEPRECATED = "deprecated"
EXPERIMENTAL = "experimental"

SEVERITY_ERROR = "error"
SEVERITY_WARNING = "warning"


@dataclass(frozen=True)
class FieldRule:
    """A structural rule: `path` must hold a value of JSON `kind` (and equal `value` if set)."""
    path: str
    kind: str = "any"       # any | object | array | string | number | boolean
    value: Any = None


@dataclass(frozen=True)
class EditorRequirement:
    id: str
    name: str
    path: str
    check_type: str                 # exists | type | value | custom
    error_message: str
    severity: str = SEVERITY_ERROR
    expected: Any = None            # kind name, literal value, or predicate for "custom"
    rationale: str = ""
    fix: str = ""


@dataclass(frozen=True)
class SchemaFormat:
    name: str
    status: str = RECOMMENDED
    ui_compatible: bool = True
    api_compatible: bool = True
    required: Tuple[FieldRule, ...] = ()
    any_of: Tuple[FieldRule, ...] = ()
    example: Dict[str, Any] = field(default_factory=dict, hash=False)
    notes: str = ""
    editor_requirements: Tuple[EditorRequirement, ...] = ()


@dataclass(frozen=True)
class NodeSchema:
    node_type: str
    n8n_type: str
    type_version: Number
    formats: Tuple[SchemaFormat, ...]
    display_name: str = ""
    description: str = ""
    category: str = ""

    def format_names(self):
        return [f.name for f in self.formats]

    def recommended_format(self) -> Optional[SchemaFormat]:
        for fmt in self.formats:
            if fmt.status == RECOMMENDED:
                return fmt
        return None


@dataclass(frozen=True)
class Quirk:
    id: str
    title: str
    affected_nodes: Tuple[str, ...]
    severity: str                    # critical | warning
    description: str
    symptoms: Tuple[str, ...]
    root_cause: str
    workaround: str
    affected_versions: Tuple[Number, ...] = ()
    auto_fix_available: bool = False
    discovered: str = ""
    related_quirks: Tuple[str, ...] = ()
    references: Tuple[str, ...] = ()

    def affects(self, node_type: str, version: Optional[Number] = None) -> bool:
        if node_type not in self.affected_nodes:
            return False
        if version is None or not self.affected_versions:
            return True
        return version in self.affected_versions
