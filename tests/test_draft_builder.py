"""Tests for the draft builder commands: add_node, connect, preview, commit, discard."""

from concurrent.futures import ThreadPoolExecutor
from datetime import timedelta

import pytest

from conftest import RecordingN8NClient
from n8n_builder.builder.draft_builder import DraftBuilder
from n8n_builder.errors import NotFoundError, RemoteError, StateError, ValidationError
from n8n_builder.sessions.memory import InMemorySessionStore
from n8n_builder.sessions.models import SessionStatus, utcnow

IF_CONFIG = {"conditions": {"string": [{"value1": "={{ $json.status }}", "value2": "paid"}]}}


def _branching_session(builder):
    sid = builder.start("S1")["session_id"]
    builder.add_node(sid, {"type": "manual", "name": "Start"})
    builder.add_node(sid, {"type": "if", "name": "Paid?", "config": IF_CONFIG})
    builder.add_node(sid, {"type": "set", "name": "TargetA", "config": {"values": {"ok": True}}})
    builder.add_node(sid, {"type": "set", "name": "TargetB", "config": {"values": {"ok": False}}})
    return sid


def test_start_creates_active_session(builder):
    """start returns a session id and logs session_started."""
    result = builder.start("Orders", description="demo", credentials={"db": "c-1"})
    assert result["success"]
    session = builder.store.get(result["session_id"])
    assert session.status == SessionStatus.ACTIVE
    assert session.workflow_draft.description == "demo"
    assert session.credentials == {"db": "c-1"}
    assert session.operations_log[0].operation == "session_started"


def test_start_requires_name(builder):
    """A blank workflow name is a validation error."""
    with pytest.raises(ValidationError):
        builder.start("   ")


def test_add_node_every_registered_type(builder, registry):
    """Every registered type can be added without config, with the registry's type and version."""
    sid = builder.start("All types")["session_id"]
    for node_type in registry.types():
        result = builder.add_node(sid, {"type": node_type})
        mapping = registry.get(node_type)
        assert result["n8n_type"] == mapping.n8n_type
        assert result["type_version"] == mapping.type_version
    assert result["nodes_count"] == len(registry.types())


def test_add_node_unknown_type_lists_supported(builder):
    """Unknown types fail with the supported list; the session is unchanged."""
    sid = builder.start("X")["session_id"]
    with pytest.raises(NotFoundError) as exc:
        builder.add_node(sid, {"type": "ftp"})
    assert "webhook" in exc.value.details["available"]
    assert builder.store.get(sid).workflow_draft.nodes == []


def test_add_node_names_and_positions(builder):
    """Auto names get an ordinal per type; nodes are laid out left to right."""
    sid = builder.start("Layout")["session_id"]
    first = builder.add_node(sid, {"type": "code"})
    second = builder.add_node(sid, {"type": "code"})
    third = builder.add_node(sid, {"type": "set", "position": [100, 400]})
    fourth = builder.add_node(sid, {"type": "set"})

    assert first["node_name"] == "Code"
    assert second["node_name"] == "Code 2"
    assert third["node_name"] == "Set"
    assert fourth["node_name"] == "Set 2"
    assert first["position"] == [100, 200]
    assert second["position"] == [280, 200]
    assert third["position"] == [100, 400]
    # right of the rightmost node, at the average height of (200, 200, 400)
    assert fourth["position"] == [460, 267]


def test_add_node_reports_validation_without_failing(builder):
    """Validation problems are advisory: the node is still added."""
    sid = builder.start("Advisory")["session_id"]
    result = builder.add_node(sid, {"type": "http"})
    assert result["success"]
    assert result["validation"]["valid"] is False
    assert any("url" in e.lower() for e in result["validation"]["errors"])


def test_add_node_records_expected_outputs(builder):
    """if has 2 outputs; switch has one per rule."""
    sid = builder.start("Outputs")["session_id"]
    assert builder.add_node(sid, {"type": "if"})["expected_outputs"] == 2
    rules = [{"value": "a"}, {"value": "b"}, {"value": "c"}]
    assert builder.add_node(sid, {"type": "switch", "config": {"rules": rules}})["expected_outputs"] == 3
    assert builder.add_node(sid, {"type": "switch"})["expected_outputs"] == 2


def test_add_node_rejects_malformed_node(builder):
    """Malformed node specs are validation errors."""
    sid = builder.start("Malformed")["session_id"]
    with pytest.raises(ValidationError):
        builder.add_node(sid, {"type": "code", "position": [1, 2, 3]})


def test_missing_session(builder):
    """Commands on unknown sessions are not-found errors."""
    with pytest.raises(NotFoundError):
        builder.add_node("builder-missing", {"type": "manual"})


def test_expired_session_rejects_mutation(builder):
    """An expired session cannot be changed."""
    sid = builder.start("Old")["session_id"]
    session = builder.store.get(sid)
    session.expires_at = utcnow() - timedelta(seconds=1)
    builder.store._sessions[sid] = session

    with pytest.raises(StateError) as exc:
        builder.add_node(sid, {"type": "manual"})
    assert exc.value.details["status"] == "expired"


@pytest.mark.parametrize("from_output", [0, 1, 2, 3])
def test_connect_fails_iff_index_out_of_range(builder, from_output):
    """connect fails exactly when from_output >= expected outputs (2 for if)."""
    sid = _branching_session(builder)
    if from_output < 2:
        assert builder.connect(sid, "Paid?", "TargetA", from_output=from_output)["success"]
    else:
        with pytest.raises(ValidationError) as exc:
            builder.connect(sid, "Paid?", "TargetA", from_output=from_output)
        assert exc.value.details["valid_range"] == "0 to 1"


def test_connect_out_of_range_error_is_self_correcting(builder):
    """The error explains the branches and suggests the corrected call."""
    sid = _branching_session(builder)
    builder.connect(sid, "Paid?", "TargetB", from_output=1)

    with pytest.raises(ValidationError) as exc:
        builder.connect(sid, "Paid?", "TargetA", from_output=2)
    details = exc.value.details
    assert exc.value.code == "OUTPUT_INDEX_OUT_OF_RANGE"
    assert details["requested_output"] == 2
    assert details["expected_outputs"] == 2
    assert "true branch" in details["explanation"]
    assert details["fix"]["suggested_value"] == 1
    assert "from_output=1" in details["fix"]["example"]
    assert details["existing_connections"] == [{"to": "TargetB", "from_output": 1, "valid": True}]
    assert len(builder.store.get(sid).workflow_draft.connections) == 1


def test_connect_switch_explanation_mentions_rules(builder):
    """Switch errors talk about rules; plain nodes about their output count."""
    sid = builder.start("Switch")["session_id"]
    builder.add_node(sid, {"type": "switch", "name": "Route", "config": {"rules": [{"value": "a"}]}})
    builder.add_node(sid, {"type": "code", "name": "JS"})
    with pytest.raises(ValidationError) as exc:
        builder.connect(sid, "Route", "JS", from_output=1)
    assert "1 rule(s)" in exc.value.details["explanation"]

    with pytest.raises(ValidationError) as exc:
        builder.connect(sid, "JS", "Route", from_output=1)
    assert exc.value.details["explanation"] == "Code nodes have 1 output(s)"


def test_connect_switch_fallback_port(builder):
    """With a fallback, output len(rules) is wirable and the next index is refused."""
    sid = builder.start("Fallback")["session_id"]
    added = builder.add_node(sid, {"type": "switch", "name": "Route", "config": {
        "rules": [{"value": "a"}, {"value": "b"}], "fallback": True}})
    assert added["expected_outputs"] == 3
    builder.add_node(sid, {"type": "code", "name": "Other"})

    assert builder.connect(sid, "Route", "Other", from_output=2)["success"]
    with pytest.raises(ValidationError) as exc:
        builder.connect(sid, "Route", "Other", from_output=3)
    assert exc.value.details["valid_range"] == "0 to 2"
    assert "output 2 is the fallback" in exc.value.details["explanation"]


def test_connect_by_id_or_name_and_unknown_node(builder):
    """Endpoints resolve by id or name; unknown names list the available ones."""
    sid = builder.start("Refs")["session_id"]
    start = builder.add_node(sid, {"type": "manual"})
    builder.add_node(sid, {"type": "code", "name": "JS"})
    assert builder.connect(sid, start["node_id"], "JS")["connection"]["from"] == "Manual Trigger"

    with pytest.raises(NotFoundError) as exc:
        builder.connect(sid, "JS", "Nope")
    assert sorted(exc.value.details["available"]) == ["JS", "Manual Trigger"]


def test_connect_rejects_self_loop_and_duplicates(builder):
    """Self-loops and repeated (from, to) pairs are refused."""
    sid = builder.start("Dupes")["session_id"]
    builder.add_node(sid, {"type": "manual", "name": "Start"})
    builder.add_node(sid, {"type": "code", "name": "JS"})
    with pytest.raises(ValidationError) as exc:
        builder.connect(sid, "JS", "JS")
    assert exc.value.code == "SELF_LOOP"

    builder.connect(sid, "Start", "JS")
    with pytest.raises(ValidationError) as exc:
        builder.connect(sid, "Start", "JS")
    assert exc.value.code == "DUPLICATE_CONNECTION"


def test_scenario_branching_workflow_commits(builder, n8n_client):
    """Trigger -> if -> (TargetA | TargetB): preview is valid, commit creates and closes."""
    sid = _branching_session(builder)
    builder.connect(sid, "Start", "Paid?")
    builder.connect(sid, "Paid?", "TargetA", from_output=0)
    builder.connect(sid, "Paid?", "TargetB", from_output=1)

    preview = builder.preview(sid)
    assert preview["valid"], preview["errors"]
    assert preview["summary"]["nodes_count"] == 4
    assert preview["summary"]["trigger_type"] == "manual"
    main = preview["workflow_preview"]["connections"]["Paid?"]["main"]
    assert [[c["node"] for c in out] for out in main] == [["TargetA"], ["TargetB"]]

    result = builder.commit(sid)
    assert result["success"]
    assert result["session_closed"]
    assert result["workflow"] == {"id": "wf-1", "name": "S1", "active": False, "nodes_count": 4}
    assert builder.store.get(sid) is None
    assert n8n_client.created[0]["name"] == "S1"


def test_preview_is_read_only(builder):
    """preview does not touch the stored session."""
    sid = _branching_session(builder)
    before = builder.store.get(sid)
    builder.preview(sid)
    after = builder.store.get(sid)
    assert after.updated_at == before.updated_at
    assert len(after.operations_log) == len(before.operations_log)


def test_preview_empty_and_no_trigger(builder):
    """Empty drafts and drafts without triggers are errors."""
    sid = builder.start("Empty")["session_id"]
    assert [e["code"] for e in builder.preview(sid)["errors"]] == ["EMPTY_WORKFLOW"]

    builder.add_node(sid, {"type": "code"})
    preview = builder.preview(sid)
    assert not preview["valid"]
    assert "NO_TRIGGER" in [e["code"] for e in preview["errors"]]
    assert preview["workflow_preview"] is None


def test_preview_reports_one_cycle(builder):
    """A -> B -> A is reported once, with both nodes on the path."""
    sid = builder.start("Loop")["session_id"]
    builder.add_node(sid, {"type": "manual", "name": "Start"})
    builder.add_node(sid, {"type": "code", "name": "A"})
    builder.add_node(sid, {"type": "code", "name": "B"})
    builder.connect(sid, "Start", "A")
    builder.connect(sid, "A", "B")
    builder.connect(sid, "B", "A")

    cycles = [e for e in builder.preview(sid)["errors"] if e["code"] == "CIRCULAR_CONNECTION"]
    assert len(cycles) == 1
    assert {"A", "B"} <= set(cycles[0]["context"]["path"])


def test_preview_graph_hygiene_warnings(builder):
    """Orphans, dead ends, duplicate names and missing params are warnings, not errors."""
    sid = builder.start("Hygiene")["session_id"]
    builder.add_node(sid, {"type": "webhook", "name": "Hook", "config": {"path": "in"}})
    builder.add_node(sid, {"type": "respond", "name": "Reply"})
    builder.add_node(sid, {"type": "code", "name": "Dup"})
    builder.add_node(sid, {"type": "set", "name": "Dup"})
    builder.add_node(sid, {"type": "http", "name": "Call"})
    builder.connect(sid, "Hook", "Reply")

    preview = builder.preview(sid)
    warnings = {w["code"]: w for w in preview["warnings"]}
    assert warnings["DUPLICATE_NAMES"]["context"]["names"] == ["Dup"]
    assert set(warnings["ORPHANED_NODES"]["context"]["nodes"]) == {"Dup", "Call"}
    assert "Reply" not in warnings["DEAD_END_NODES"]["context"]["nodes"]
    assert "Hook" not in warnings["DEAD_END_NODES"]["context"]["nodes"]
    assert any(w["code"] == "MISSING_REQUIRED_PARAM" and w["node"] == "Call" for w in preview["warnings"])
    # the http url is also an editor requirement
    assert "EDITOR_REQUIREMENT_FAILED" in [e["code"] for e in preview["errors"]]


def test_preview_surfaces_legacy_format_and_quirk(builder):
    """A legacy If layout set directly on a node shows schema and quirk warnings."""
    sid = _branching_session(builder)
    session = builder.store.get(sid)
    node = session.workflow_draft.find_node("Paid?")
    node.parameters = {"conditions": {"string": [{"value1": "a", "value2": "b"}]}}
    builder.store.update(session)

    codes = [w["code"] for w in builder.preview(sid)["warnings"] if w.get("node") == "Paid?"]
    assert "SCHEMA_WARNING" in codes
    assert "CRITICAL_QUIRK" in codes


def test_commit_without_trigger_never_calls_client(builder, n8n_client):
    """No trigger: state error, no remote call, session kept and logged."""
    sid = builder.start("No trigger")["session_id"]
    builder.add_node(sid, {"type": "code"})
    with pytest.raises(StateError) as exc:
        builder.commit(sid)
    assert exc.value.code == "NO_TRIGGER"
    assert n8n_client.created == []
    session = builder.store.get(sid)
    assert session.status == SessionStatus.ACTIVE
    assert session.operations_log[-1].operation == "commit_failed"


def test_commit_empty_workflow(builder):
    """Empty drafts cannot be committed."""
    sid = builder.start("Empty")["session_id"]
    with pytest.raises(StateError) as exc:
        builder.commit(sid)
    assert exc.value.code == "EMPTY_WORKFLOW"


def test_commit_unresolved_credential(builder, n8n_client):
    """Credential names missing from the session map block the commit."""
    sid = builder.start("Creds", credentials={"db": "c-1"})["session_id"]
    builder.add_node(sid, {"type": "manual"})
    builder.add_node(sid, {"type": "postgres", "credential": "other", "config": {"query": "SELECT 1"}})
    with pytest.raises(StateError) as exc:
        builder.commit(sid)
    assert exc.value.code == "UNRESOLVED_CREDENTIAL"
    assert exc.value.details["unresolved"] == ["other"]
    assert n8n_client.created == []


def test_remote_failure_keeps_session_and_counts_retries(registry, engine, failing_remote):
    """Failed commits keep the session, extend it, and escalate after repeated failures."""
    client = RecordingN8NClient(fail_create=failing_remote)
    store = InMemorySessionStore(cleanup_interval_seconds=0)
    builder = DraftBuilder(store, registry, engine, client, retry_escalation=3)
    sid = builder.start("Flaky")["session_id"]
    builder.add_node(sid, {"type": "manual"})
    expires_before = store.get(sid).expires_at

    for attempt in (1, 2, 3):
        with pytest.raises(RemoteError) as exc:
            builder.commit(sid)
        details = exc.value.details
        assert details["retry_count"] == attempt
        assert details["session_id"] == sid
        assert details["ttl_extended"] is True
        assert "same session" in details["recovery_hint"]
        assert details["status_code"] == 500
        assert ("warning" in details) == (attempt >= 3)

    session = store.get(sid)
    assert session.status == SessionStatus.ACTIVE
    assert session.count_operations("commit_failed") == 3
    assert session.expires_at >= expires_before

    # the remote comes back: the same session commits
    client.fail_create = None
    assert builder.commit(sid)["success"]
    assert store.get(sid) is None


def test_unexpected_client_exception_is_wrapped(registry, engine):
    """Non-builder exceptions from the client surface as remote errors."""
    client = RecordingN8NClient(fail_create=ConnectionError("refused"))
    builder = DraftBuilder(InMemorySessionStore(cleanup_interval_seconds=0), registry, engine, client)
    sid = builder.start("Wrapped")["session_id"]
    builder.add_node(sid, {"type": "manual"})
    with pytest.raises(RemoteError) as exc:
        builder.commit(sid)
    assert "refused" in exc.value.details["original_error"]


def test_activation_failure_is_a_soft_warning(registry, engine):
    """Created but not activated: commit succeeds with a warning."""
    client = RecordingN8NClient(fail_activate=RuntimeError("cannot activate"))
    builder = DraftBuilder(InMemorySessionStore(cleanup_interval_seconds=0), registry, engine, client)
    sid = builder.start("Activate")["session_id"]
    builder.add_node(sid, {"type": "manual"})

    result = builder.commit(sid, activate=True)
    assert result["success"]
    assert result["workflow"]["active"] is False
    assert "activation failed" in result["warnings"][0]


def test_activation(builder, n8n_client):
    """activate=True issues the activation call."""
    sid = builder.start("Live")["session_id"]
    builder.add_node(sid, {"type": "manual"})
    result = builder.commit(sid, activate=True)
    assert result["workflow"]["active"] is True
    assert n8n_client.activated == ["wf-1"]


def test_discard_is_idempotent(builder):
    """Discarding twice never errors."""
    sid = builder.start("Throwaway")["session_id"]
    assert builder.discard(sid)["existed"] is True
    second = builder.discard(sid)
    assert second["success"] and second["existed"] is False


def test_list_drafts(builder):
    """list_drafts returns JSON-ready summaries."""
    sid = builder.start("Listed")["session_id"]
    builder.add_node(sid, {"type": "webhook"})
    listed = builder.list_drafts()
    assert listed["count"] == 1
    entry = listed["sessions"][0]
    assert entry["session_id"] == sid
    assert entry["status"] == "active"
    assert entry["last_operation"] == "node_added"
    assert isinstance(entry["expires_at"], str)


def test_list_drafts_hides_expired_by_default(builder):
    """Expired sessions appear only when include_expired is passed."""
    live = builder.start("Live")["session_id"]
    old = builder.start("Old")["session_id"]
    session = builder.store.get(old)
    session.expires_at = utcnow() - timedelta(seconds=1)
    builder.store._sessions[old] = session

    assert [s["session_id"] for s in builder.list_drafts()["sessions"]] == [live]
    everything = builder.list_drafts(include_expired=True)
    assert {s["session_id"] for s in everything["sessions"]} == {live, old}
    assert builder.store.list() == builder.store.list(include_expired=False)


def test_concurrent_sessions_do_not_leak(builder):
    """Three sessions adding nodes in parallel each see only their own nodes."""
    sids = [builder.start(f"Parallel {i}")["session_id"] for i in range(3)]

    def build(args):
        index, sid = args
        results = [builder.add_node(sid, {"type": "code", "name": f"s{index}-n{j}"}) for j in range(index + 1)]
        return sid, results[-1]["nodes_count"]

    with ThreadPoolExecutor(max_workers=3) as pool:
        counts = dict(pool.map(build, enumerate(sids)))

    for index, sid in enumerate(sids):
        assert counts[sid] == index + 1
        names = builder.store.get(sid).workflow_draft.node_names()
        assert names == [f"s{index}-n{j}" for j in range(index + 1)]
