"""Tests for the workflow compiler (drafts, step lists and YAML loading)."""

import pytest

from n8n_builder.errors import NotFoundError, StateError, ValidationError
from n8n_builder.workflow.compiler import compile_draft, compile_steps, connect, load_workflow
from n8n_builder.workflow.models import DraftConnection, DraftNode, NodeMetadata, WorkflowDraft


def _node(node_id, name, node_type="code", outputs=1, category="action", credential=None):
    return DraftNode(
        id=node_id, name=name, type=node_type, n8n_type=f"n8n-nodes-base.{node_type}",
        type_version=1, parameters={"k": node_id}, position=[0, 0], credential=credential,
        metadata=NodeMetadata(expected_outputs=outputs, category=category),
    )


def _branching_draft():
    return WorkflowDraft(
        name="Branches",
        nodes=[
            _node("n-a", "A", "if", outputs=2, category="branching"),
            _node("n-b", "B"),
            _node("n-c", "C"),
        ],
        connections=[
            DraftConnection(from_node="n-a", to_node="n-b", from_output=0),
            DraftConnection(from_node="A", to_node="C", from_output=1),
        ],
    )


def test_branch_outputs_land_on_their_own_index(registry):
    """A[0] -> B and A[1] -> C compile to main == [[B], [C]]."""
    workflow = compile_draft(_branching_draft(), {}, registry)
    main = workflow["connections"]["A"]["main"]
    assert len(main) == 2
    assert main[0] == [{"node": "B", "type": "main", "index": 0}]
    assert main[1] == [{"node": "C", "type": "main", "index": 0}]


def test_output_list_grows_sparsely():
    """Wiring only output 1 leaves an empty list at output 0."""
    connections = {}
    connect(connections, "Router", "Late", from_output=1)
    assert connections == {"Router": {"main": [[], [{"node": "Late", "type": "main", "index": 0}]]}}
    connect(connections, "Router", "Early", from_output=0)
    assert connections["Router"]["main"][0] == [{"node": "Early", "type": "main", "index": 0}]


def test_nodes_take_registry_type_and_version(registry):
    """Compiled nodes use the registry's n8n type and typeVersion."""
    draft = WorkflowDraft(name="One", nodes=[_node("n-1", "Check", "if", outputs=2)])
    node = compile_draft(draft, {}, registry)["nodes"][0]
    assert node["type"] == "n8n-nodes-base.if"
    assert node["typeVersion"] == registry.get("if").type_version
    assert node["parameters"] == {"k": "n-1"}
    assert set(node) == {"id", "name", "type", "typeVersion", "position", "parameters"}


def test_compile_does_not_mutate_draft(registry):
    """The draft's parameters are copied, not shared."""
    draft = _branching_draft()
    workflow = compile_draft(draft, {}, registry)
    workflow["nodes"][0]["parameters"]["k"] = "changed"
    assert draft.nodes[0].parameters["k"] == "n-a"


def test_blank_name_is_corrupted_state(registry):
    """A draft without a name is rejected as corrupted."""
    with pytest.raises(StateError) as exc:
        compile_draft(WorkflowDraft(name="  "), {}, registry)
    assert exc.value.code == "CORRUPTED_STATE"


def test_cardinality_is_rechecked_at_compile_time(registry):
    """A recorded connection past the node's outputs is refused with the node named."""
    draft = _branching_draft()
    draft.connections.append(DraftConnection(from_node="n-a", to_node="n-c", from_output=2))
    with pytest.raises(ValidationError) as exc:
        compile_draft(draft, {}, registry)
    assert exc.value.code == "OUTPUT_INDEX_OUT_OF_RANGE"
    assert exc.value.details["node_name"] == "A"
    assert exc.value.details["expected_outputs"] == 2
    assert exc.value.details["max_output_index"] == 2


def test_unresolved_connection_endpoint(registry):
    """A connection to a node that no longer exists is a state error."""
    draft = _branching_draft()
    draft.connections.append(DraftConnection(from_node="n-b", to_node="ghost"))
    with pytest.raises(StateError) as exc:
        compile_draft(draft, {}, registry)
    assert exc.value.code == "UNRESOLVED_CONNECTION"


def test_credentials_attached_only_when_resolvable(registry):
    """Known credential names become {kind: {id, name}}; unknown ones are left off."""
    draft = WorkflowDraft(name="Creds", nodes=[
        _node("n-1", "DB", "postgres", credential="main-db"),
        _node("n-2", "DB2", "postgres", credential="missing"),
        _node("n-3", "JS", "code", credential="main-db"),
    ])
    nodes = compile_draft(draft, {"main-db": "cred-7"}, registry)["nodes"]
    assert nodes[0]["credentials"] == {"postgres": {"id": "cred-7", "name": "main-db"}}
    assert "credentials" not in nodes[1]
    assert "credentials" not in nodes[2]


def test_compile_steps_chains_in_order(registry):
    """Steps without next are chained one after another."""
    workflow = compile_steps({
        "name": "Linear",
        "steps": [
            {"type": "webhook", "config": {"path": "in"}},
            {"type": "code"},
            {"type": "code"},
            {"type": "respond"},
        ],
    }, {}, registry)

    names = [n["name"] for n in workflow["nodes"]]
    assert names == ["Webhook", "Code 2", "Code 3", "Respond to Webhook 4"]
    assert [n["position"] for n in workflow["nodes"]] == [[250, 300], [450, 300], [650, 300], [850, 300]]
    assert workflow["connections"]["Webhook"]["main"] == [[{"node": "Code 2", "type": "main", "index": 0}]]
    assert "Respond to Webhook 4" not in workflow["connections"]
    assert workflow["settings"] == {"executionOrder": "v1"}


def test_compile_steps_fans_out_on_next(registry):
    """A step with next wires target j from output j."""
    workflow = compile_steps({
        "name": "Branch",
        "steps": [
            {"type": "manual", "name": "Start"},
            {"type": "if", "name": "Big?", "next": ["Big", "Small"],
             "config": {"conditions": {"number": [{"value1": "={{ $json.total }}", "value2": 100, "operation": "gt"}]}}},
            {"type": "set", "name": "Big", "next": []},
            {"type": "set", "name": "Small"},
        ],
    }, {}, registry)
    main = workflow["connections"]["Big?"]["main"]
    assert [[c["node"] for c in out] for out in main] == [["Big"], ["Small"]]
    assert workflow["connections"]["Start"]["main"][0][0]["node"] == "Big?"
    # an empty next list falls back to chaining
    assert workflow["connections"]["Big"]["main"][0][0]["node"] == "Small"


def test_compile_steps_unknown_type_and_target(registry):
    """Unknown types and unknown next targets are not-found errors with alternatives."""
    with pytest.raises(NotFoundError) as exc:
        compile_steps({"name": "X", "steps": [{"type": "ftp"}]}, {}, registry)
    assert "http" in exc.value.details["available"]

    with pytest.raises(NotFoundError) as exc:
        compile_steps({"name": "X", "steps": [{"type": "manual", "next": "Nowhere"}]}, {}, registry)
    assert exc.value.code == "STEP_NOT_FOUND"


def test_compile_steps_rejects_fan_out_beyond_outputs(registry):
    """next may not name more targets than the step has outputs."""
    with pytest.raises(ValidationError) as exc:
        compile_steps({"name": "X", "steps": [
            {"type": "manual"},
            {"type": "set", "name": "Tag", "next": ["A", "B"]},
            {"type": "code", "name": "A"},
            {"type": "code", "name": "B"},
        ]}, {}, registry)
    assert exc.value.code == "OUTPUT_INDEX_OUT_OF_RANGE"
    assert exc.value.details["expected_outputs"] == 1
    assert exc.value.details["max_output_index"] == 1

    # a switch with a fallback has one port per rule plus the fallback
    workflow = compile_steps({"name": "Route", "steps": [
        {"type": "manual"},
        {"type": "switch", "name": "Route", "next": ["High", "Low", "Other"],
         "config": {"rules": [{"value": "high"}, {"value": "low"}], "fallback": True}},
        {"type": "code", "name": "High"},
        {"type": "code", "name": "Low"},
        {"type": "code", "name": "Other"},
    ]}, {}, registry)
    main = workflow["connections"]["Route"]["main"]
    assert [[c["node"] for c in out] for out in main] == [["High"], ["Low"], ["Other"]]


def test_compile_steps_credentials(registry):
    """Step credentials must resolve; resolved ones use the type's credential kind."""
    steps = {"name": "X", "steps": [{"type": "manual"}, {"type": "http", "credential": "api",
                                                         "config": {"url": "https://x"}}]}
    workflow = compile_steps(steps, {"api": "c-1"}, registry)
    assert workflow["nodes"][1]["credentials"] == {"httpBasicAuth": {"id": "c-1", "name": "api"}}

    with pytest.raises(NotFoundError) as exc:
        compile_steps(steps, {}, registry)
    assert exc.value.code == "CREDENTIAL_NOT_FOUND"


def test_load_workflow_from_valid_yaml():
    """A YAML step list loads into a SimplifiedWorkflow."""
    workflow = load_workflow("""
name: order_alerts
description: Alert on large orders
steps:
  - type: webhook
    config: { path: orders }
  - type: if
    name: Large order?
    next: [Alert, Ignore]
    config:
      conditions:
        number:
          - { value1: "={{ $json.total }}", value2: 500, operation: gt }
  - type: discord
    name: Alert
    credential: ops-discord
    config: { channelId: "42", content: "Large order" }
  - type: set
    name: Ignore
""")
    assert workflow.name == "order_alerts"
    assert len(workflow.steps) == 4
    assert workflow.steps[1].next_targets() == ["Alert", "Ignore"]


def test_load_workflow_missing_required_field():
    """Missing top-level fields raise a validation error."""
    with pytest.raises(ValidationError, match="Missing required top-level field"):
        load_workflow("name: incomplete\n")


def test_load_workflow_rejects_unknown_keys():
    """Unexpected step keys are rejected."""
    with pytest.raises(ValidationError):
        load_workflow("name: x\nsteps:\n  - type: manual\n    colour: red\n")
