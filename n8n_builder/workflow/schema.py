from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic import ValidationError as PydanticValidationError

from ..errors import ValidationError


class NodeSpec(BaseModel):
    """Input to `add_node`."""
    model_config = ConfigDict(extra="forbid")

    type: str
    name: Optional[str] = None
    action: Optional[str] = None
    config: Dict[str, Any] = Field(default_factory=dict)
    credential: Optional[str] = None
    position: Optional[List[int]] = None

    @field_validator("position")
    @classmethod
    def _two_coordinates(cls, value):
        if value is not None and len(value) != 2:
            raise ValueError("position must be [x, y]")
        return value


class SimplifiedStep(BaseModel):
    model_config = ConfigDict(extra="forbid")

    type: str
    name: Optional[str] = None
    action: Optional[str] = None
    config: Dict[str, Any] = Field(default_factory=dict)
    credential: Optional[str] = None
    next: Optional[Union[str, List[str]]] = None

    def next_targets(self) -> List[str]:
        if self.next is None:
            return []
        return [self.next] if isinstance(self.next, str) else list(self.next)


class SimplifiedWorkflow(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: str = Field(min_length=1)
    description: Optional[str] = None
    steps: List[SimplifiedStep] = Field(min_length=1)
    settings: Optional[Dict[str, Any]] = None


def errors_to_details(e: PydanticValidationError) -> Dict[str, Any]:
    return {"errors": [
        {"loc": ".".join(str(p) for p in err["loc"]), "message": err["msg"]} for err in e.errors()
    ]}


def validate_node_spec(raw: Union[Dict[str, Any], NodeSpec]) -> NodeSpec:
    if isinstance(raw, NodeSpec):
        return raw
    try:
        return NodeSpec.model_validate(raw)
    except PydanticValidationError as e:
        raise ValidationError(f"Invalid node spec: {e}", code="INVALID_NODE_SPEC",
                              details=errors_to_details(e)) from e


def validate_workflow(raw: Any) -> SimplifiedWorkflow:
    """Validate a raw dict (e.g. parsed YAML) against SimplifiedWorkflow."""
    if isinstance(raw, SimplifiedWorkflow):
        return raw
    try:
        return SimplifiedWorkflow.model_validate(raw)
    except PydanticValidationError as e:
        raise ValidationError(f"Workflow validation error: {e}", code="INVALID_WORKFLOW",
                              details=errors_to_details(e)) from e
