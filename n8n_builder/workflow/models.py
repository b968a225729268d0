""" Data models for the workflow draft under construction """

from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, Field

Number = Union[int, float]


def default_settings() -> Dict[str, Any]:
    return {"executionOrder": "v1"}


class NodeMetadata(BaseModel):
    expected_outputs: int = 1
    category: str = "action"   # trigger | branching | action


class DraftNode(BaseModel):
    id: str
    name: str
    type: str                   # simplified type, e.g. "if"
    n8n_type: str               # e.g. "n8n-nodes-base.if"
    type_version: Number = 1
    parameters: Dict[str, Any] = Field(default_factory=dict)
    position: List[int] = Field(default_factory=lambda: [0, 0])
    credential: Optional[str] = None
    metadata: NodeMetadata = Field(default_factory=NodeMetadata)


class DraftConnection(BaseModel):
    from_node: str
    to_node: str
    from_output: int = 0
    to_input: int = 0


class WorkflowDraft(BaseModel):
    name: str
    description: Optional[str] = None
    nodes: List[DraftNode] = Field(default_factory=list)
    connections: List[DraftConnection] = Field(default_factory=list)
    settings: Dict[str, Any] = Field(default_factory=default_settings)

    def find_node(self, ref: str) -> Optional[DraftNode]:
        """Resolve a node by id first, then by name."""
        for node in self.nodes:
            if node.id == ref:
                return node
        for node in self.nodes:
            if node.name == ref:
                return node
        return None

    def node_names(self) -> List[str]:
        return [n.name for n in self.nodes]
