""" Known cases where the n8n API stores a shape its editor cannot render. """

from .types import Quirk

IF_NODE_DUAL_FORMAT = Quirk(
    id="if-node-dual-format",
    title="If-node has two incompatible schema formats",
    affected_nodes=("if",),
    affected_versions=(1, 2),
    severity="critical",
    description="The API accepts both the legacy options/string[] condition layout and the "
                "combinator/conditions[] layout, but the editor only renders the latter.",
    symptoms=(
        "Workflow commits successfully (HTTP 200 response)",
        "Workflow appears in N8N workflow list",
        "Opening workflow shows empty canvas (no nodes visible)",
        'Browser console error: "Could not find property option"',
        "If-node settings panel shows error or missing configuration",
        "Workflow execution may work but UI is completely broken",
    ),
    root_cause="The editor expects conditions.combinator plus conditions.conditions[]; the "
               "legacy API documentation shows conditions.string[] and both are stored as-is.",
    workaround="Send the combinator format: conditions { options, conditions: [{ id, leftValue, "
               "rightValue, operator { type, operation } }], combinator }.",
    auto_fix_available=True,
    discovered="2025-01-20",
    related_quirks=("switch-node-triple-format",),
)

SWITCH_NODE_TRIPLE_FORMAT = Quirk(
    id="switch-node-triple-format",
    title="Switch-node v1 has three formats but only expression+multipleOutputs works in the editor",
    affected_nodes=("switch",),
    affected_versions=(1,),
    severity="critical",
    description="typeVersion 1 accepts rules mode, expression mode and expression with "
                "multipleOutputs; only the last renders reliably.",
    symptoms=(
        "Workflow commits successfully (HTTP 200 response)",
        "Opening workflow shows blank/empty canvas (all nodes invisible)",
        'Browser console error: "Could not find property option" OR "Could not find workflow"',
        "Switch-node settings panel shows error or missing configuration",
        "Workflow execution may fail or produce unexpected routing behavior",
        "All downstream nodes from Switch are not visible in UI",
    ),
    root_cause="The v1 editor code reads rules.rules[].outputIndex under expression mode; rules mode "
               "with rules.values is in the stored schema but not handled by the renderer.",
    workaround="Use typeVersion 3.4 with rules.values[] (one rule per output).",
    auto_fix_available=False,
    discovered="2025-01-22",
    related_quirks=("if-node-dual-format", "switch-v3-condition-ids"),
)

SWITCH_V3_CONDITION_IDS = Quirk(
    id="switch-v3-condition-ids",
    title="Switch-node v3.4 conditions without ids break the editor",
    affected_nodes=("switch",),
    affected_versions=(3.4,),
    severity="critical",
    description="typeVersion 3.4 rule conditions must each carry an id and an options wrapper "
                "with version 3. The API stores conditions without them.",
    symptoms=(
        "Opening workflow shows empty canvas (no nodes visible)",
        "Switch rules appear empty in the settings panel",
        "Browser console error: \"Cannot read properties of undefined (reading 'id')\"",
    ),
    root_cause="Condition rows are keyed by id in the editor; the API does not generate ids.",
    workaround="Give each condition a uuid id and wrap conditions with options { version: 3 }.",
    auto_fix_available=True,
    discovered="2026-01-27",
    related_quirks=("switch-node-triple-format",),
)

BRANCHING_OUTPUT_SPARSE_ARRAY = Quirk(
    id="branching-output-sparse-array",
    title="Second branch of a branching node silently receives nothing",
    affected_nodes=("if", "switch", "filter"),
    severity="warning",
    description="Connections are stored as main[outputIndex][]. Writing every target into "
                "main[0] routes all branches to the first output.",
    symptoms=(
        "False branch never receives items",
        "Both branch targets run for every item",
        "Editor shows both connections leaving the true output",
    ),
    root_cause="A connection map built with a single pre-filled output slot puts every "
               "target on output 0.",
    workaround="Connect each branch with its own from_output index (0 = true, 1 = false).",
    auto_fix_available=True,
    discovered="2025-02-03",
)

QUIRKS = (
    IF_NODE_DUAL_FORMAT,
    SWITCH_NODE_TRIPLE_FORMAT,
    SWITCH_V3_CONDITION_IDS,
    BRANCHING_OUTPUT_SPARSE_ARRAY,
)
