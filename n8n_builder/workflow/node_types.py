""" Simplified node type vocabulary and its mapping onto n8n node types. """

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

from ..errors import NotFoundError

Number = Union[int, float]

TRIGGER = "trigger"
BRANCHING = "branching"
ACTION = "action"


@dataclass(frozen=True)
class NodeMapping:
    type: str
    n8n_type: str
    type_version: Number
    category: str
    display_name: str
    credential_kind: Optional[str] = None
    terminal: bool = False
    defaults: Mapping[str, Any] = field(default_factory=dict)


class NodeTypeRegistry:
    """Read-only lookup over NodeMapping entries, built once at startup."""

    def __init__(self, mappings: Iterable[NodeMapping]):
        self._mappings = MappingProxyType({m.type: m for m in mappings})

    def __contains__(self, node_type: str) -> bool:
        return node_type in self._mappings

    def types(self) -> List[str]:
        return sorted(self._mappings)

    def get(self, node_type: str) -> NodeMapping:
        try:
            return self._mappings[node_type]
        except KeyError:
            raise NotFoundError(
                f"Unknown node type: {node_type}. Supported types: {', '.join(self.types())}",
                available=self.types(),
                code="UNKNOWN_NODE_TYPE",
            ) from None

    def is_trigger(self, node_type: str) -> bool:
        mapping = self._mappings.get(node_type)
        return mapping is not None and mapping.category == TRIGGER

    def is_terminal(self, node_type: str) -> bool:
        mapping = self._mappings.get(node_type)
        return mapping is not None and mapping.terminal

    def trigger_types(self) -> List[str]:
        return [t for t, m in sorted(self._mappings.items()) if m.category == TRIGGER]

    def expected_outputs(self, node_type: str, parameters: Optional[Dict[str, Any]] = None) -> int:
        """Number of output ports a node of this type exposes with these parameters.

        if/filter always have two (true/false, kept/discarded). A switch has one
        output per rule, plus one when options.fallbackOutput is "extra" (the
        fallback port sits at index len(rules)). A switch with no rules yet gets
        two. Everything else has a single output.
        """
        parameters = parameters or {}
        if node_type in ("if", "filter"):
            return 2
        if node_type == "switch":
            if parameters.get("mode") == "expression":
                count = parameters.get("numberOutputs")
                return count if isinstance(count, int) and count > 0 else 2
            rules = (parameters.get("rules") or {}).get("values") or []
            if not rules:
                return 2
            fallback = (parameters.get("options") or {}).get("fallbackOutput") == "extra"
            return len(rules) + 1 if fallback else len(rules)
        return 1


DEFAULT_MAPPINGS = (
    NodeMapping("webhook", "n8n-nodes-base.webhook", 2, TRIGGER, "Webhook",
                defaults={"httpMethod": "POST", "responseMode": "onReceived"}),
    NodeMapping("schedule", "n8n-nodes-base.scheduleTrigger", 1.2, TRIGGER, "Schedule Trigger"),
    NodeMapping("manual", "n8n-nodes-base.manualTrigger", 1, TRIGGER, "Manual Trigger"),
    NodeMapping("http", "n8n-nodes-base.httpRequest", 4.2, ACTION, "HTTP Request",
                credential_kind="httpBasicAuth", defaults={"method": "GET"}),
    NodeMapping("postgres", "n8n-nodes-base.postgres", 2.5, ACTION, "Postgres",
                credential_kind="postgres", defaults={"operation": "executeQuery"}),
    NodeMapping("discord", "n8n-nodes-base.discord", 2, ACTION, "Discord",
                credential_kind="discordApi", defaults={"resource": "message"}),
    NodeMapping("respond", "n8n-nodes-base.respondToWebhook", 1.1, ACTION, "Respond to Webhook",
                terminal=True, defaults={"respondWith": "json", "responseBody": "={{ $json }}"}),
    NodeMapping("if", "n8n-nodes-base.if", 2, BRANCHING, "If"),
    NodeMapping("switch", "n8n-nodes-base.switch", 3.4, BRANCHING, "Switch"),
    NodeMapping("filter", "n8n-nodes-base.filter", 2, BRANCHING, "Filter"),
    NodeMapping("merge", "n8n-nodes-base.merge", 3, ACTION, "Merge", defaults={"mode": "append"}),
    NodeMapping("set", "n8n-nodes-base.set", 3.4, ACTION, "Set"),
    NodeMapping("code", "n8n-nodes-base.code", 2, ACTION, "Code",
                defaults={"language": "javaScript", "mode": "runOnceForAllItems"}),
)


def build_node_type_registry(mappings: Optional[Iterable[NodeMapping]] = None) -> NodeTypeRegistry:
    return NodeTypeRegistry(DEFAULT_MAPPINGS if mappings is None else mappings)
