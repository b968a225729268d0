""" Graph-level checks over a workflow draft. Read-only. """

from collections import Counter
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional

from ..errors import NotFoundError
from ..knowledge.validation import FORMAT_MISMATCH, ValidationEngine
from ..workflow.models import WorkflowDraft
from ..workflow.node_types import NodeTypeRegistry


@dataclass
class PreviewIssue:
    code: str
    message: str
    node: Optional[str] = None
    context: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        out = asdict(self)
        if out["node"] is None:
            del out["node"]
        if not out["context"]:
            del out["context"]
        return out


@dataclass
class PreviewReport:
    errors: List[PreviewIssue] = field(default_factory=list)
    warnings: List[PreviewIssue] = field(default_factory=list)
    summary: Dict[str, Any] = field(default_factory=dict)

    @property
    def valid(self) -> bool:
        return not self.errors

    def error_codes(self) -> List[str]:
        return [e.code for e in self.errors]

    def warning_codes(self) -> List[str]:
        return [w.code for w in self.warnings]


def find_cycles(draft: WorkflowDraft) -> List[List[str]]:
    """DFS with a recursion stack. Each cycle is returned as the node-name path
    from the first repeated node back to itself (the closing edge)."""
    adjacency: Dict[str, List[str]] = {n.name: [] for n in draft.nodes}
    for conn in draft.connections:
        source, target = draft.find_node(conn.from_node), draft.find_node(conn.to_node)
        if source is not None and target is not None:
            adjacency[source.name].append(target.name)

    visited = set()
    on_stack: List[str] = []
    cycles: List[List[str]] = []

    def visit(name: str) -> None:
        visited.add(name)
        on_stack.append(name)
        for nxt in adjacency.get(name, []):
            if nxt in on_stack:
                cycles.append(on_stack[on_stack.index(nxt):] + [nxt])
            elif nxt not in visited:
                visit(nxt)
        on_stack.pop()

    for node in draft.nodes:
        if node.name not in visited:
            visit(node.name)
    return cycles


def preview_draft(draft: WorkflowDraft, registry: NodeTypeRegistry,
                  engine: Optional[ValidationEngine] = None) -> PreviewReport:
    report = PreviewReport()
    nodes = draft.nodes

    if not nodes:
        report.errors.append(PreviewIssue("EMPTY_WORKFLOW", "Workflow has no nodes; add a trigger node first"))

    triggers = [n for n in nodes if registry.is_trigger(n.type)]
    if nodes and not triggers:
        report.errors.append(PreviewIssue(
            "NO_TRIGGER",
            "Workflow has no trigger node",
            context={"trigger_types": registry.trigger_types()},
        ))

    duplicates = sorted(name for name, count in Counter(n.name for n in nodes).items() if count > 1)
    if duplicates:
        report.warnings.append(PreviewIssue(
            "DUPLICATE_NAMES",
            f"Duplicate node names: {', '.join(duplicates)}",
            context={"names": duplicates},
        ))

    incoming = set()
    outgoing = set()
    for conn in draft.connections:
        source, target = draft.find_node(conn.from_node), draft.find_node(conn.to_node)
        if source is None or target is None:
            missing = conn.from_node if source is None else conn.to_node
            report.errors.append(PreviewIssue(
                "INVALID_CONNECTION",
                f"Connection {conn.from_node} -> {conn.to_node} references unknown node {missing}",
                context={"from": conn.from_node, "to": conn.to_node, "available": draft.node_names()},
            ))
            continue
        outgoing.add(source.id)
        incoming.add(target.id)

    orphaned = [n.name for n in nodes if not registry.is_trigger(n.type) and n.id not in incoming]
    if orphaned:
        report.warnings.append(PreviewIssue(
            "ORPHANED_NODES",
            f"Nodes with no incoming connection will never run: {', '.join(orphaned)}",
            context={"nodes": orphaned},
        ))

    dead_ends = [n.name for n in nodes if n.id not in outgoing and not registry.is_terminal(n.type)]
    if dead_ends:
        report.warnings.append(PreviewIssue(
            "DEAD_END_NODES",
            f"Nodes with no outgoing connection: {', '.join(dead_ends)}",
            context={"nodes": dead_ends},
        ))

    for path in find_cycles(draft):
        report.errors.append(PreviewIssue(
            "CIRCULAR_CONNECTION",
            f"Circular connection: {' -> '.join(path)}",
            context={"path": path},
        ))

    for node in nodes:
        params = node.parameters
        missing = None
        if node.type == "postgres" and params.get("operation") in ("executeQuery", "select") \
                and not params.get("query") and not params.get("table"):
            missing = "query"
        elif node.type == "http" and not params.get("url"):
            missing = "url"
        elif node.type == "code" and not params.get("jsCode"):
            missing = "jsCode"
        if missing:
            report.warnings.append(PreviewIssue(
                "MISSING_REQUIRED_PARAM",
                f"{node.name} is missing '{missing}'",
                node=node.name,
                context={"parameter": missing},
            ))

    if engine is not None:
        _knowledge_checks(draft, engine, report)

    report.summary = {
        "nodes_count": len(nodes),
        "connections_count": len(draft.connections),
        "trigger_type": triggers[0].type if triggers else None,
        "node_types": sorted({n.type for n in nodes}),
    }
    return report


def _knowledge_checks(draft: WorkflowDraft, engine: ValidationEngine, report: PreviewReport) -> None:
    for node in draft.nodes:
        try:
            result = engine.validate(node.type, node.parameters, node.type_version)
        except NotFoundError:
            continue
        for issue in result.errors:
            code = "SCHEMA_VALIDATION_FAILED" if issue.kind == FORMAT_MISMATCH else "EDITOR_REQUIREMENT_FAILED"
            report.errors.append(PreviewIssue(
                code, f"{node.name}: {issue.message}", node=node.name,
                context={"path": issue.path, "suggestion": issue.suggestion},
            ))
        for issue in result.warnings:
            report.warnings.append(PreviewIssue(
                "SCHEMA_WARNING", f"{node.name}: {issue.message}", node=node.name,
                context={"path": issue.path, "suggestion": issue.suggestion},
            ))
        for quirk in engine.quirks_for(node.type, node.type_version):
            if quirk.auto_fix_available and result.valid and result.editor_compatible:
                continue
            code = "CRITICAL_QUIRK" if quirk.severity == "critical" else "QUIRK_WARNING"
            report.warnings.append(PreviewIssue(
                code, f"{node.name}: {quirk.title}", node=node.name,
                context={"quirk_id": quirk.id, "workaround": quirk.workaround},
            ))
