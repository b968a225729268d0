""" Per-type parameter shaping: simplified node config -> n8n parameters.

Each simplified node type may register one shaping function. Unregistered types
get their registry defaults with the caller's config merged over them.
"""

import copy
import uuid
from typing import Any, Callable, Dict, List, Optional

from .node_types import NodeMapping

Shaper = Callable[[Dict[str, Any], Optional[str]], Dict[str, Any]]

_SHAPERS: Dict[str, Shaper] = {}

CONDITION_TYPES = ("string", "number", "boolean", "dateTime")
DEFAULT_CODE = "// Add your code here\nreturn items;"


def register_shaper(node_type: str):
    def _wrap(fn):
        _SHAPERS[node_type] = fn
        return fn
    return _wrap


def get_shaper(node_type: str) -> Optional[Shaper]:
    return _SHAPERS.get(node_type)


def shape_parameters(mapping: NodeMapping, config: Optional[Dict[str, Any]] = None,
                     action: Optional[str] = None) -> Dict[str, Any]:
    """Build the final parameter object for a node of `mapping.type`."""
    config = copy.deepcopy(config or {})
    params = copy.deepcopy(dict(mapping.defaults))
    shaper = get_shaper(mapping.type)
    if shaper is None:
        params.update(config)
        return params
    params.update(shaper(config, action))
    return params


def _new_id() -> str:
    return str(uuid.uuid4())


# ---- condition blocks (if / filter / switch rules) ----

def _native_condition(cond: Dict[str, Any]) -> Dict[str, Any]:
    out = dict(cond)
    out.setdefault("id", _new_id())
    out.setdefault("leftValue", "")
    out.setdefault("rightValue", "")
    operator = dict(out.get("operator") or {})
    operator.setdefault("type", "string")
    operator.setdefault("operation", "equals")
    out["operator"] = operator
    return out


def _simplified_conditions(block: Dict[str, Any]) -> List[Dict[str, Any]]:
    conditions = []
    for value_type in CONDITION_TYPES:
        for cond in block.get(value_type) or []:
            conditions.append({
                "id": cond.get("id") or _new_id(),
                "leftValue": cond.get("value1", ""),
                "rightValue": cond.get("value2", ""),
                "operator": {"type": value_type, "operation": cond.get("operation", "equals")},
            })
    return conditions


def condition_block(config: Dict[str, Any], options_version: Optional[int] = None) -> Dict[str, Any]:
    """Expand any accepted condition spelling into the editor's combinator block.

    Accepts the native block ({combinator, conditions: [...]}), a bare list of
    conditions, or the simplified {string|number|boolean: [{value1, value2, operation}]}
    lists. Conditions without an id get one.
    """
    raw = config.get("conditions")
    combinator = config.get("combinator", "and")
    if isinstance(raw, list):
        conditions = [_native_condition(c) for c in raw]
    elif isinstance(raw, dict) and isinstance(raw.get("conditions"), list):
        conditions = [_native_condition(c) for c in raw["conditions"]]
        combinator = raw.get("combinator", combinator)
    elif isinstance(raw, dict):
        conditions = _simplified_conditions(raw)
        combinator = raw.get("combinator", combinator)
    else:
        conditions = []

    existing_options = raw.get("options") if isinstance(raw, dict) else None
    options = dict(existing_options or {})
    options.setdefault("caseSensitive", True)
    options.setdefault("leftValue", "")
    options.setdefault("typeValidation", "strict")
    if options_version is not None:
        options.setdefault("version", options_version)

    return {"options": options, "conditions": conditions, "combinator": combinator}


@register_shaper("if")
def _shape_if(config, action):
    params = {k: v for k, v in config.items() if k not in ("conditions", "combinator")}
    params["conditions"] = condition_block(config)
    params.setdefault("options", {})
    return params


@register_shaper("filter")
def _shape_filter(config, action):
    return _shape_if(config, action)


@register_shaper("switch")
def _shape_switch(config, action):
    if config.get("mode") == "expression":
        params = dict(config)
        params.setdefault("numberOutputs", 2)
        params.setdefault("output", "={{ 0 }}")
        params.setdefault("options", {})
        return params

    rules = config.get("rules") or []
    if isinstance(rules, dict):
        rules = rules.get("values") or []

    values = []
    for rule in rules:
        rule = dict(rule)
        if "value" in rule and "conditions" not in rule:
            # shorthand: route when `field` equals `value`
            rule["conditions"] = [{
                "leftValue": rule.pop("field", "={{ $json.value }}"),
                "rightValue": rule.pop("value"),
                "operator": {"type": "string", "operation": "equals"},
            }]
        entry = {"conditions": condition_block(rule, options_version=3)}
        if rule.get("output_key"):
            entry["renameOutput"] = True
            entry["outputKey"] = rule["output_key"]
        values.append(entry)

    options = dict(config.get("options") or {})
    if config.get("fallback"):
        options.setdefault("fallbackOutput", "extra")
    return {"mode": "rules", "rules": {"values": values}, "options": options}


@register_shaper("webhook")
def _shape_webhook(config, action):
    params = dict(config)
    params["httpMethod"] = config.get("method") or config.get("httpMethod") or "POST"
    params.pop("method", None)
    params["path"] = config.get("path") or _new_id()
    params.setdefault("responseMode", "onReceived")
    return params


@register_shaper("schedule")
def _shape_schedule(config, action):
    params = {k: v for k, v in config.items() if k not in ("cron", "interval")}
    if config.get("cron"):
        interval = [{"field": "cronExpression", "expression": config["cron"]}]
    elif config.get("interval"):
        interval = config["interval"]
    else:
        interval = (config.get("rule") or {}).get("interval") or [{"field": "days", "triggerAtHour": 0}]
    params["rule"] = {"interval": interval}
    return params


@register_shaper("http")
def _shape_http(config, action):
    params = dict(config)
    params["method"] = (config.get("method") or action or "GET").upper()
    return params


_POSTGRES_OPERATIONS = {"query": "executeQuery", "delete": "deleteTable"}


@register_shaper("postgres")
def _shape_postgres(config, action):
    params = dict(config)
    operation = config.get("operation") or action or "executeQuery"
    operation = _POSTGRES_OPERATIONS.get(operation, operation)
    params.pop("action", None)
    params["operation"] = operation
    return params


@register_shaper("discord")
def _shape_discord(config, action):
    params = {"resource": "message"}
    params.update(config)
    return params


@register_shaper("respond")
def _shape_respond(config, action):
    params = {k: v for k, v in config.items() if k not in ("statusCode", "body")}
    if "body" in config:
        params.setdefault("respondWith", "text")
        params["responseBody"] = config["body"]
    if "statusCode" in config:
        options = dict(params.get("options") or {})
        options["responseCode"] = config["statusCode"]
        params["options"] = options
    return params


@register_shaper("code")
def _shape_code(config, action):
    params = {k: v for k, v in config.items() if k != "code"}
    params["jsCode"] = config.get("code") or config.get("jsCode") or DEFAULT_CODE
    params.setdefault("mode", "runOnceForAllItems")
    params.setdefault("language", "javaScript")
    return params


def _assignment_type(value: Any) -> str:
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, (list, tuple)):
        return "array"
    if isinstance(value, dict):
        return "object"
    return "string"


@register_shaper("set")
def _shape_set(config, action):
    params = {k: v for k, v in config.items() if k not in ("values", "assignments")}
    existing = config.get("assignments")
    if isinstance(existing, dict):
        assignments = [dict(a) for a in existing.get("assignments") or []]
    elif isinstance(existing, list):
        assignments = [dict(a) for a in existing]
    else:
        assignments = []
    for name, value in (config.get("values") or {}).items():
        assignments.append({"name": name, "value": value, "type": _assignment_type(value)})
    for assignment in assignments:
        assignment.setdefault("id", _new_id())
        assignment.setdefault("type", _assignment_type(assignment.get("value")))
    params["assignments"] = {"assignments": assignments}
    params.setdefault("options", {})
    return params
