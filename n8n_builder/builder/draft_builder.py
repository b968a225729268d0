""" Draft builder: the command surface for building an n8n workflow one step at a time.

A caller starts a session, adds nodes, connects them, previews, and finally
commits (compile + create in n8n) or discards. Every command reads the session
from the store, applies the change and writes it back with a single update.
"""

import logging
import uuid
from typing import Any, Dict, List, Optional, Union

from ..errors import BuilderError, NotFoundError, RemoteError, StateError, ValidationError
from ..knowledge.validation import ValidationEngine
from ..sessions.base import SessionStore
from ..sessions.models import DraftSession, SessionStatus
from ..workflow.compiler import compile_draft
from ..workflow.defaults import shape_parameters
from ..workflow.models import DraftConnection, DraftNode, NodeMetadata, WorkflowDraft
from ..workflow.node_types import NodeTypeRegistry
from ..workflow.schema import NodeSpec, validate_node_spec
from .preview import preview_draft

logger = logging.getLogger(__name__)

ORIGIN = (100, 200)
NODE_SPACING = 180
DEFAULT_RETRY_ESCALATION = 3


class DraftBuilder:

    def __init__(self, store: SessionStore, registry: NodeTypeRegistry,
                 engine: Optional[ValidationEngine] = None, client=None,
                 retry_escalation: int = DEFAULT_RETRY_ESCALATION):
        self.store = store
        self.registry = registry
        self.engine = engine
        self.client = client
        self.retry_escalation = retry_escalation

    # ---- session access ----

    def _load(self, session_id: str) -> DraftSession:
        session = self.store.get(session_id)
        if session is None:
            raise NotFoundError(
                f"Session not found: {session_id}",
                available=[s.session_id for s in self.store.list(include_expired=False)],
                code="SESSION_NOT_FOUND",
                details={"session_id": session_id},
            )
        return session

    def _load_active(self, session_id: str) -> DraftSession:
        session = self._load(session_id)
        if session.status != SessionStatus.ACTIVE:
            raise StateError(
                f"Session {session_id} is {session.status.value}; only active sessions can be changed",
                code="SESSION_NOT_ACTIVE",
                details={"session_id": session_id, "status": session.status.value,
                         "expires_at": session.expires_at.isoformat()},
            )
        return session

    # ---- commands ----

    def start(self, name: str, description: Optional[str] = None,
              credentials: Optional[Dict[str, str]] = None) -> Dict[str, Any]:
        if not name or not name.strip():
            raise ValidationError("Workflow name is required", code="NAME_REQUIRED",
                                  details={"fix": "Pass a non-empty name"})
        session = DraftSession(
            session_id=self.store.generate_session_id(),
            name=name,
            expires_at=self.store.new_expiry(),
            credentials=dict(credentials or {}),
            workflow_draft=WorkflowDraft(name=name, description=description),
        )
        session.log("session_started", name=name)
        self.store.create(session)
        logger.info("builder session %s started for %r", session.session_id, name)
        return {
            "success": True,
            "session_id": session.session_id,
            "name": name,
            "expires_at": session.expires_at.isoformat(),
            "ttl_seconds": self.store.ttl_seconds,
            "message": "Session started. Add a trigger node first with builder_add_node.",
        }

    def add_node(self, session_id: str, node: Union[Dict[str, Any], NodeSpec]) -> Dict[str, Any]:
        spec = validate_node_spec(node)
        session = self._load_active(session_id)
        draft = session.workflow_draft
        mapping = self.registry.get(spec.type)

        parameters = shape_parameters(mapping, spec.config, spec.action)
        new_node = DraftNode(
            id=f"node-{uuid.uuid4().hex[:8]}",
            name=spec.name or self._auto_name(draft, spec.type, mapping.display_name),
            type=spec.type,
            n8n_type=mapping.n8n_type,
            type_version=mapping.type_version,
            parameters=parameters,
            position=list(spec.position) if spec.position else self._next_position(draft),
            credential=spec.credential,
            metadata=NodeMetadata(
                expected_outputs=self.registry.expected_outputs(spec.type, parameters),
                category=mapping.category,
            ),
        )
        validation = self._advisory_validation(new_node)

        draft.nodes.append(new_node)
        session.log("node_added", node_id=new_node.id, node_name=new_node.name, node_type=new_node.type)
        self.store.update(session)
        logger.debug("session %s: added %s (%s)", session_id, new_node.name, new_node.type)

        return {
            "success": True,
            "node_id": new_node.id,
            "node_name": new_node.name,
            "node_type": new_node.type,
            "n8n_type": new_node.n8n_type,
            "type_version": new_node.type_version,
            "position": new_node.position,
            "expected_outputs": new_node.metadata.expected_outputs,
            "nodes_count": len(draft.nodes),
            "validation": validation,
            "message": f"Added {new_node.name}",
            "next_step": self._next_step_hint(draft, new_node),
        }

    def connect(self, session_id: str, from_node: str, to_node: str,
                from_output: int = 0, to_input: int = 0) -> Dict[str, Any]:
        session = self._load_active(session_id)
        draft = session.workflow_draft
        source = self._resolve(draft, from_node)
        target = self._resolve(draft, to_node)

        if from_output < 0 or to_input < 0:
            raise ValidationError("Output and input indexes must be >= 0", code="NEGATIVE_INDEX",
                                  details={"from_output": from_output, "to_input": to_input,
                                           "fix": "Use from_output=0 / to_input=0"})
        expected = source.metadata.expected_outputs
        if from_output >= expected:
            raise self._output_range_error(draft, source, target, from_output)
        if source.id == target.id:
            raise ValidationError(f"Cannot connect {source.name} to itself", code="SELF_LOOP",
                                  details={"node_name": source.name})
        for conn in draft.connections:
            if draft.find_node(conn.from_node) is source and draft.find_node(conn.to_node) is target:
                raise ValidationError(
                    f"{source.name} is already connected to {target.name}",
                    code="DUPLICATE_CONNECTION",
                    details={"existing": conn.model_dump(),
                             "fix": "Connect to a different target or use a different from_output on a new node"},
                )

        connection = DraftConnection(from_node=source.id, to_node=target.id,
                                     from_output=from_output, to_input=to_input)
        draft.connections.append(connection)
        session.log("connection_added", from_node=source.name, to_node=target.name,
                    from_output=from_output, to_input=to_input)
        self.store.update(session)
        logger.debug("session %s: %s[%d] -> %s", session_id, source.name, from_output, target.name)

        return {
            "success": True,
            "connection": {"from": source.name, "to": target.name,
                           "from_output": from_output, "to_input": to_input},
            "connections_count": len(draft.connections),
            "message": f"Connected {source.name} (output {from_output}) to {target.name}",
        }

    def preview(self, session_id: str) -> Dict[str, Any]:
        session = self._load(session_id)
        draft = session.workflow_draft
        report = preview_draft(draft, self.registry, self.engine)
        workflow_preview = None
        if report.valid:
            workflow_preview = compile_draft(draft, session.credentials, self.registry)
        return {
            "success": True,
            "session_id": session_id,
            "valid": report.valid,
            "errors": [e.to_dict() for e in report.errors],
            "warnings": [w.to_dict() for w in report.warnings],
            "summary": report.summary,
            "workflow_preview": workflow_preview,
        }

    def commit(self, session_id: str, activate: bool = False) -> Dict[str, Any]:
        session = self._load_active(session_id)
        draft = session.workflow_draft
        try:
            self._check_committable(session)
            workflow = compile_draft(draft, session.credentials, self.registry)
            if self.client is None:
                raise RemoteError("No n8n client configured", code="N8N_NOT_CONFIGURED",
                                  hint="Set N8N_URL and N8N_API_KEY")
            try:
                created = self.client.create_workflow(workflow)
            except BuilderError:
                raise
            except Exception as e:
                raise RemoteError(f"Workflow creation failed: {e}", code="N8N_CREATE_FAILED") from e
        except BuilderError as err:
            self._record_commit_failure(session, err)
            raise

        workflow_id = created.get("id")
        warnings: List[str] = []
        active = bool(created.get("active", False))
        if activate:
            try:
                self.client.activate_workflow(workflow_id)
                active = True
            except Exception as e:
                logger.warning("workflow %s created but activation failed: %s", workflow_id, e)
                warnings.append(f"Workflow created but activation failed: {e}")

        session.status = SessionStatus.COMMITTED
        session.log("committed", workflow_id=workflow_id, active=active)
        self.store.delete(session_id)
        logger.info("session %s committed as workflow %s", session_id, workflow_id)

        return {
            "success": True,
            "workflow": {
                "id": workflow_id,
                "name": created.get("name", draft.name),
                "active": active,
                "nodes_count": len(draft.nodes),
            },
            "session_closed": True,
            "warnings": warnings,
        }

    def discard(self, session_id: str) -> Dict[str, Any]:
        existed = self.store.delete(session_id)
        if existed:
            logger.info("session %s discarded", session_id)
        return {
            "success": True,
            "session_id": session_id,
            "existed": existed,
            "message": "Session discarded" if existed else "Session already gone",
        }

    def list_drafts(self, include_expired: bool = False) -> Dict[str, Any]:
        summaries = self.store.list(include_expired=include_expired)
        return {
            "success": True,
            "sessions": [s.model_dump(mode="json") for s in summaries],
            "count": len(summaries),
        }

    # ---- helpers ----

    def _resolve(self, draft: WorkflowDraft, ref: str) -> DraftNode:
        node = draft.find_node(ref)
        if node is None:
            raise NotFoundError(
                f"Node not found: {ref}. Available nodes: {', '.join(draft.node_names()) or '(none)'}",
                available=draft.node_names(),
                code="NODE_NOT_FOUND",
            )
        return node

    @staticmethod
    def _auto_name(draft: WorkflowDraft, node_type: str, display_name: str) -> str:
        same_type = sum(1 for n in draft.nodes if n.type == node_type)
        return display_name if same_type == 0 else f"{display_name} {same_type + 1}"

    @staticmethod
    def _next_position(draft: WorkflowDraft) -> List[int]:
        if not draft.nodes:
            return list(ORIGIN)
        max_x = max(n.position[0] for n in draft.nodes)
        avg_y = sum(n.position[1] for n in draft.nodes) / len(draft.nodes)
        return [max_x + NODE_SPACING, round(avg_y)]

    def _advisory_validation(self, node: DraftNode) -> Optional[Dict[str, Any]]:
        if self.engine is None:
            return None
        try:
            result = self.engine.validate(node.type, node.parameters, node.type_version)
        except NotFoundError:
            return {"valid": None, "note": f"No schema registered for {node.type}; parameters not checked"}
        info = {
            "valid": result.valid,
            "matched_format": result.matched_format,
            "editor_compatible": result.editor_compatible,
            "errors": [i.message for i in result.errors],
            "warnings": [i.message for i in result.warnings],
        }
        if result.suggestion:
            info["suggestion"] = result.suggestion
        return info

    def _next_step_hint(self, draft: WorkflowDraft, node: DraftNode) -> str:
        if len(draft.nodes) == 1 and node.metadata.category != "trigger":
            return "Add a trigger node (webhook, schedule or manual); workflows need one to run"
        if node.metadata.category == "branching":
            last = node.metadata.expected_outputs - 1
            return (f"Add the branch targets, then connect {node.name} with from_output 0..{last} "
                    f"(one call per branch)")
        if len(draft.nodes) == 1:
            return "Add the next node, then connect it with builder_connect"
        return f"Connect {node.name} with builder_connect, or builder_preview to check the graph"

    def _output_range_error(self, draft: WorkflowDraft, source: DraftNode, target: DraftNode,
                            requested: int) -> ValidationError:
        expected = source.metadata.expected_outputs
        last = expected - 1
        if source.type == "if":
            explanation = "If nodes always have exactly 2 outputs: [0] = true branch, [1] = false branch"
        elif source.type == "filter":
            explanation = "Filter nodes have exactly 2 outputs: [0] = kept items, [1] = discarded items"
        elif source.type == "switch":
            rules = len((source.parameters.get("rules") or {}).get("values") or [])
            explanation = (f"This Switch node has {rules} rule(s) and therefore {expected} output(s): "
                           f"rule i routes to output i")
            if rules and expected > rules:
                explanation += f"; output {rules} is the fallback"
        else:
            explanation = f"{source.type.capitalize()} nodes have {expected} output(s)"

        existing = []
        for conn in draft.connections:
            if draft.find_node(conn.from_node) is not source:
                continue
            conn_target = draft.find_node(conn.to_node)
            existing.append({
                "to": conn_target.name if conn_target else conn.to_node,
                "from_output": conn.from_output,
                "valid": conn.from_output < expected,
            })

        return ValidationError(
            f"Invalid from_output {requested} for {source.name}: valid range is 0 to {last}",
            code="OUTPUT_INDEX_OUT_OF_RANGE",
            details={
                "node_name": source.name,
                "node_type": source.type,
                "node_id": source.id,
                "node_category": source.metadata.category,
                "requested_output": requested,
                "expected_outputs": expected,
                "valid_range": f"0 to {last}",
                "explanation": explanation,
                "fix": {
                    "action": "Use a valid output index",
                    "parameter": "from_output",
                    "current_value": requested,
                    "suggested_value": last,
                    "example": (f'builder_connect(session_id, from_node="{source.name}", '
                                f'to_node="{target.name}", from_output={last})'),
                },
                "existing_connections": existing,
            },
        )

    def _check_committable(self, session: DraftSession) -> None:
        draft = session.workflow_draft
        if not draft.nodes:
            raise StateError("Cannot commit an empty workflow", code="EMPTY_WORKFLOW",
                             details={"fix": "Add at least a trigger node"})
        if not any(self.registry.is_trigger(n.type) for n in draft.nodes):
            raise StateError("Workflow has no trigger node", code="NO_TRIGGER",
                             details={"fix": "Add one of: " + ", ".join(self.registry.trigger_types())})
        unresolved = sorted({n.credential for n in draft.nodes
                             if n.credential and n.credential not in session.credentials})
        if unresolved:
            raise StateError(f"Unknown credential name(s): {', '.join(unresolved)}",
                             code="UNRESOLVED_CREDENTIAL",
                             details={"unresolved": unresolved, "available": sorted(session.credentials)})

    def _record_commit_failure(self, session: DraftSession, err: BuilderError) -> None:
        retry_count = session.count_operations("commit_failed") + 1
        session.log("commit_failed", error=err.message, code=err.code, retry_count=retry_count)
        self.store.update(session)
        logger.warning("commit of session %s failed (attempt %d): %s", session.session_id, retry_count, err.message)

        err.details.update({
            "session_id": session.session_id,
            "session_status": SessionStatus.ACTIVE.value,
            "ttl_extended": True,
            "expires_at": session.expires_at.isoformat(),
            "retry_count": retry_count,
            "recovery_hint": (f"Session kept alive until {session.expires_at.isoformat()}; "
                              f"fix the problem and retry commit with the same session"),
            "original_error": err.message,
        })
        if retry_count >= self.retry_escalation:
            err.details["warning"] = (f"Commit has failed {retry_count} times; consider builder_discard "
                                      f"and rebuilding the workflow")
