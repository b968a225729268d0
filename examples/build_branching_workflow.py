"""Example: build a branching workflow step by step through the tool surface.

Without N8N_API_KEY the draft is only previewed; with it, the workflow is
created in n8n and the session closes.
"""
import json

from n8n_builder.app import create_tools
from n8n_builder.config import configure_logging, get_settings
from n8n_builder.tools.registry import call_tool


def main():
    configure_logging()
    ctx = create_tools()

    session = call_tool(ctx, "builder_start", {"name": "Paid orders"})
    sid = session["session_id"]

    call_tool(ctx, "builder_add_node", {"session_id": sid, "node": {"type": "manual", "name": "Start"}})
    added = call_tool(ctx, "builder_add_node", {"session_id": sid, "node": {
        "type": "if",
        "name": "Paid?",
        "config": {"conditions": {"string": [{"value1": "={{ $json.status }}", "value2": "paid"}]}},
    }})
    print(added["next_step"])
    call_tool(ctx, "builder_add_node", {"session_id": sid, "node": {
        "type": "set", "name": "Mark shipped", "config": {"values": {"shipped": True}}}})
    call_tool(ctx, "builder_add_node", {"session_id": sid, "node": {
        "type": "set", "name": "Send reminder", "config": {"values": {"reminder": True}}}})

    call_tool(ctx, "builder_connect", {"session_id": sid, "from_node": "Start", "to_node": "Paid?"})
    call_tool(ctx, "builder_connect", {"session_id": sid, "from_node": "Paid?", "to_node": "Mark shipped"})

    # If nodes have two outputs; index 2 is refused with a suggested fix
    wrong = call_tool(ctx, "builder_connect", {"session_id": sid, "from_node": "Paid?",
                                               "to_node": "Send reminder", "from_output": 2})
    print("Refused:", wrong["error"]["message"])
    fix = wrong["error"]["details"]["fix"]
    call_tool(ctx, "builder_connect", {"session_id": sid, "from_node": "Paid?",
                                       "to_node": "Send reminder", "from_output": fix["suggested_value"]})

    preview = call_tool(ctx, "builder_preview", {"session_id": sid})
    print("valid:", preview["valid"], "warnings:", [w["code"] for w in preview["warnings"]])

    if not get_settings().n8n_api_key:
        print(json.dumps(preview["workflow_preview"], indent=2))
        call_tool(ctx, "builder_discard", {"session_id": sid})
        return

    result = call_tool(ctx, "builder_commit", {"session_id": sid})
    print(json.dumps(result, indent=2))


if __name__ == '__main__':
    main()
