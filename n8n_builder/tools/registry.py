""" JSON-in / JSON-out tool surface over the builder and the knowledge base. """

import inspect
import logging
from dataclasses import asdict, dataclass
from typing import Any, Callable, Dict, List, Optional, Type, Union, get_type_hints

from pydantic import BaseModel, ConfigDict, create_model
from pydantic import ValidationError as PydanticValidationError

from ..builder.draft_builder import DraftBuilder
from ..errors import BuilderError, NotFoundError, ValidationError
from ..knowledge.types import Quirk
from ..knowledge.validation import ValidationEngine
from ..workflow.compiler import compile_steps
from ..workflow.node_types import NodeTypeRegistry
from ..workflow.schema import errors_to_details

logger = logging.getLogger(__name__)

_TOOLS: Dict[str, Callable] = {}
_ARGS: Dict[str, Type[BaseModel]] = {}


@dataclass
class ToolContext:
    builder: DraftBuilder
    engine: ValidationEngine
    registry: NodeTypeRegistry


def _args_model(name: str, fn: Callable) -> Type[BaseModel]:
    """Strict pydantic model of a tool's JSON arguments (every parameter after ctx)."""
    hints = get_type_hints(fn)
    fields = {}
    for param in list(inspect.signature(fn).parameters.values())[1:]:
        default = ... if param.default is inspect.Parameter.empty else param.default
        fields[param.name] = (hints.get(param.name, Any), default)
    model_name = "".join(part.capitalize() for part in name.split("_")) + "Args"
    return create_model(model_name, __config__=ConfigDict(extra="forbid", strict=True), **fields)


def register_tool(name: str):
    def _wrap(fn):
        _TOOLS[name] = fn
        _ARGS[name] = _args_model(name, fn)
        return fn
    return _wrap


def get_tool(name: str) -> Callable:
    if name not in _TOOLS:
        raise NotFoundError(f"Tool not found: {name}", available=tool_names(), code="TOOL_NOT_FOUND")
    return _TOOLS[name]


def tool_names() -> List[str]:
    return sorted(_TOOLS)


def call_tool(ctx: ToolContext, name: str, args: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """Run a tool; builder errors come back as {"success": False, "error": {...}}."""
    args = dict(args or {})
    try:
        tool = get_tool(name)
        try:
            parsed = _ARGS[name].model_validate(args)
        except PydanticValidationError as e:
            details = errors_to_details(e)
            details["received"] = sorted(args)
            raise ValidationError(f"Invalid arguments for {name}: {e.error_count()} problem(s)",
                                  code="INVALID_ARGUMENTS", details=details) from e
        return tool(ctx, **dict(parsed))
    except BuilderError as e:
        logger.debug("tool %s failed: %s", name, e.code)
        return {"success": False, "error": e.to_dict()}


def _quirk_dict(quirk: Quirk) -> Dict[str, Any]:
    return asdict(quirk)


# ---- builder ----

@register_tool("builder_start")
def builder_start(ctx: ToolContext, name: str, description: Optional[str] = None,
                  credentials: Optional[Dict[str, str]] = None) -> Dict[str, Any]:
    """ Start a draft session. """
    return ctx.builder.start(name, description, credentials)


@register_tool("builder_add_node")
def builder_add_node(ctx: ToolContext, session_id: str, node: Dict[str, Any]) -> Dict[str, Any]:
    """ Add a node: {type, name?, action?, config?, credential?, position?}. """
    return ctx.builder.add_node(session_id, node)


@register_tool("builder_connect")
def builder_connect(ctx: ToolContext, session_id: str, from_node: str, to_node: str,
                    from_output: int = 0, to_input: int = 0) -> Dict[str, Any]:
    """ Connect two nodes by name or id. """
    return ctx.builder.connect(session_id, from_node, to_node, from_output, to_input)


@register_tool("builder_preview")
def builder_preview(ctx: ToolContext, session_id: str) -> Dict[str, Any]:
    return ctx.builder.preview(session_id)


@register_tool("builder_commit")
def builder_commit(ctx: ToolContext, session_id: str, activate: bool = False) -> Dict[str, Any]:
    return ctx.builder.commit(session_id, activate)


@register_tool("builder_discard")
def builder_discard(ctx: ToolContext, session_id: str) -> Dict[str, Any]:
    return ctx.builder.discard(session_id)


@register_tool("builder_list")
def builder_list(ctx: ToolContext, include_expired: bool = False) -> Dict[str, Any]:
    return ctx.builder.list_drafts(include_expired)


# ---- knowledge ----

@register_tool("schema_get")
def schema_get(ctx: ToolContext, node_type: str, version: Optional[float] = None) -> Dict[str, Any]:
    """ Formats, editor requirements and related quirks for one node type. """
    schema = ctx.engine.knowledge.get_schema(node_type, version)
    formats = []
    for fmt in schema.formats:
        formats.append({
            "name": fmt.name,
            "status": fmt.status,
            "ui_compatible": fmt.ui_compatible,
            "api_compatible": fmt.api_compatible,
            "example": fmt.example,
            "notes": fmt.notes,
            "editor_requirements": [
                {"id": r.id, "name": r.name, "path": r.path, "check_type": r.check_type,
                 "severity": r.severity, "error_message": r.error_message, "fix": r.fix}
                for r in fmt.editor_requirements
            ],
        })
    recommended = schema.recommended_format()
    return {
        "success": True,
        "node_type": schema.node_type,
        "n8n_type": schema.n8n_type,
        "type_version": schema.type_version,
        "display_name": schema.display_name,
        "description": schema.description,
        "recommended_format": recommended.name if recommended else None,
        "formats": formats,
        "quirks": [q.id for q in ctx.engine.quirks_for(node_type, schema.type_version)],
    }


@register_tool("schema_list")
def schema_list(ctx: ToolContext) -> Dict[str, Any]:
    knowledge = ctx.engine.knowledge
    node_types = []
    for node_type in knowledge.node_types():
        latest = knowledge.get_schema(node_type)
        recommended = latest.recommended_format()
        node_types.append({
            "node_type": node_type,
            "n8n_type": latest.n8n_type,
            "versions": knowledge.versions(node_type),
            "recommended_format": recommended.name if recommended else None,
            "builder_supported": node_type in ctx.registry,
        })
    return {"success": True, "count": len(node_types), "node_types": node_types}


@register_tool("quirks_check")
def quirks_check(ctx: ToolContext, node_type: str, version: Optional[float] = None) -> Dict[str, Any]:
    quirks = ctx.engine.quirks_for(node_type, version)
    return {
        "success": True,
        "node_type": node_type,
        "count": len(quirks),
        "critical": [_quirk_dict(q) for q in quirks if q.severity == "critical"],
        "warnings": [_quirk_dict(q) for q in quirks if q.severity != "critical"],
    }


@register_tool("quirks_search")
def quirks_search(ctx: ToolContext, keywords: Union[List[str], str]) -> Dict[str, Any]:
    if isinstance(keywords, str):
        keywords = [keywords]
    quirks = ctx.engine.search_by_symptom(keywords)
    return {"success": True, "count": len(quirks), "quirks": [_quirk_dict(q) for q in quirks]}


@register_tool("schema_validate")
def schema_validate(ctx: ToolContext, node_type: str, parameters: Dict[str, Any],
                    version: Optional[float] = None) -> Dict[str, Any]:
    result = ctx.engine.validate(node_type, parameters, version)
    return {"success": True, **result.to_dict()}


# ---- compiler ----

@register_tool("workflow_compile")
def workflow_compile(ctx: ToolContext, workflow: Dict[str, Any],
                     credentials: Optional[Dict[str, str]] = None) -> Dict[str, Any]:
    """ Compile a simplified step list into an n8n workflow payload (nothing is sent). """
    return {"success": True, "workflow": compile_steps(workflow, credentials, ctx.registry)}
