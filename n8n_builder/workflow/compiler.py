""" Compile a workflow draft or a simplified step list into the n8n workflow payload. """

import copy
import uuid
from typing import Any, Dict, List, Optional

import yaml

from ..errors import NotFoundError, StateError, ValidationError
from .defaults import shape_parameters
from .models import DraftNode, WorkflowDraft, default_settings
from .node_types import NodeTypeRegistry
from .schema import SimplifiedWorkflow, validate_workflow

STEP_ORIGIN_X = 250
STEP_SPACING = 200
STEP_Y = 300


def load_workflow(yaml_text: str) -> SimplifiedWorkflow:
    """ Load a SimplifiedWorkflow from a YAML string. """
    data = yaml.safe_load(yaml_text)
    if not isinstance(data, dict):
        raise ValidationError("Workflow YAML must be a mapping", code="INVALID_WORKFLOW")
    for key in ("name", "steps"):
        if key not in data:
            raise ValidationError(f"Missing required top-level field: {key}", code="INVALID_WORKFLOW",
                                  details={"field": key})
    return validate_workflow(data)


def connect(connections: Dict[str, Any], source: str, target: str,
            from_output: int = 0, to_input: int = 0) -> None:
    """Add source[from_output] -> target to an n8n connection map.

    The output list grows only as far as `from_output`; earlier unused outputs
    become empty lists.
    """
    outputs: List[List[Dict[str, Any]]] = connections.setdefault(source, {"main": []})["main"]
    while len(outputs) <= from_output:
        outputs.append([])
    outputs[from_output].append({"node": target, "type": "main", "index": to_input})


def _credential_ref(kind: Optional[str], name: Optional[str], credentials: Dict[str, str]):
    if not kind or not name or name not in credentials:
        return None
    return {kind: {"id": credentials[name], "name": name}}


def _compile_node(node: DraftNode, registry: NodeTypeRegistry, credentials: Dict[str, str]) -> Dict[str, Any]:
    mapping = registry.get(node.type)
    out = {
        "id": node.id,
        "name": node.name,
        "type": node.n8n_type or mapping.n8n_type,
        "typeVersion": mapping.type_version,
        "position": list(node.position),
        "parameters": copy.deepcopy(node.parameters),
    }
    creds = _credential_ref(mapping.credential_kind, node.credential, credentials)
    if creds:
        out["credentials"] = creds
    return out


def compile_draft(draft: WorkflowDraft, credentials: Optional[Dict[str, str]],
                  registry: NodeTypeRegistry) -> Dict[str, Any]:
    """Turn a draft into {name, nodes, connections, settings}. Does not touch the draft."""
    if not draft.name or not draft.name.strip():
        raise StateError("Workflow draft has no name; the session state is corrupted",
                         code="CORRUPTED_STATE")
    credentials = credentials or {}
    nodes = [_compile_node(n, registry, credentials) for n in draft.nodes]

    resolved = []
    max_output: Dict[str, int] = {}
    for conn in draft.connections:
        source = draft.find_node(conn.from_node)
        target = draft.find_node(conn.to_node)
        if source is None or target is None:
            missing = conn.from_node if source is None else conn.to_node
            raise StateError(f"Connection references unknown node: {missing}",
                             code="UNRESOLVED_CONNECTION",
                             details={"node": missing, "available": draft.node_names()})
        resolved.append((source, target, conn))
        max_output[source.id] = max(max_output.get(source.id, 0), conn.from_output)

    for node in draft.nodes:
        if node.id not in max_output:
            continue
        expected = node.metadata.expected_outputs
        if max_output[node.id] >= expected:
            raise ValidationError(
                f"Node '{node.name}' has {expected} output(s) but is wired from output {max_output[node.id]}",
                code="OUTPUT_INDEX_OUT_OF_RANGE",
                details={
                    "node_name": node.name,
                    "expected_outputs": expected,
                    "max_output_index": max_output[node.id],
                    "suggestion": f"Use from_output between 0 and {expected - 1}",
                },
            )

    connections: Dict[str, Any] = {}
    for source, target, conn in resolved:
        connect(connections, source.name, target.name, conn.from_output, conn.to_input)

    return {
        "name": draft.name,
        "nodes": nodes,
        "connections": connections,
        "settings": dict(draft.settings or default_settings()),
    }


def _step_name(display_name: str, index: int) -> str:
    return display_name if index == 0 else f"{display_name} {index + 1}"


def compile_steps(workflow: Any, credentials: Optional[Dict[str, str]],
                  registry: NodeTypeRegistry) -> Dict[str, Any]:
    """Compile a flat step list. Steps chain in order unless a step names its `next` targets."""
    workflow = validate_workflow(workflow)
    credentials = credentials or {}

    nodes: List[Dict[str, Any]] = []
    names: List[str] = []
    for index, step in enumerate(workflow.steps):
        mapping = registry.get(step.type)
        name = step.name or _step_name(mapping.display_name, index)
        node = {
            "id": str(uuid.uuid4()),
            "name": name,
            "type": mapping.n8n_type,
            "typeVersion": mapping.type_version,
            "position": [STEP_ORIGIN_X + index * STEP_SPACING, STEP_Y],
            "parameters": shape_parameters(mapping, step.config, step.action),
        }
        if step.credential:
            if step.credential not in credentials:
                raise NotFoundError(f"Credential not found: {step.credential}",
                                    available=sorted(credentials), code="CREDENTIAL_NOT_FOUND",
                                    details={"step": name})
            creds = _credential_ref(mapping.credential_kind, step.credential, credentials)
            if creds:
                node["credentials"] = creds
        nodes.append(node)
        names.append(name)

    connections: Dict[str, Any] = {}
    for index, step in enumerate(workflow.steps):
        targets = step.next_targets()
        if targets:
            expected = registry.expected_outputs(step.type, nodes[index]["parameters"])
            if len(targets) > expected:
                raise ValidationError(
                    f"Step '{names[index]}' has {expected} output(s) but names {len(targets)} next targets",
                    code="OUTPUT_INDEX_OUT_OF_RANGE",
                    details={
                        "node_name": names[index],
                        "expected_outputs": expected,
                        "max_output_index": len(targets) - 1,
                        "next": targets,
                        "suggestion": f"List at most {expected} next target(s); target j leaves output j",
                    },
                )
            for output, target in enumerate(targets):
                if target not in names:
                    raise NotFoundError(f"Step '{names[index]}' points to unknown step: {target}",
                                        available=names, code="STEP_NOT_FOUND")
                connect(connections, names[index], target, output)
        elif index + 1 < len(names):
            connect(connections, names[index], names[index + 1])

    return {
        "name": workflow.name,
        "nodes": nodes,
        "connections": connections,
        "settings": workflow.settings or default_settings(),
    }
