""" Formats for the branching and merging nodes: if, filter, switch, merge. """

from ..types import (
    DEPRECATED,
    EXPERIMENTAL,
    SEVERITY_WARNING,
    EditorRequirement,
    FieldRule,
    NodeSchema,
    SchemaFormat,
)

_CONDITION_OPTIONS = {"caseSensitive": True, "leftValue": "", "typeValidation": "strict"}

_EXAMPLE_CONDITION = {
    "id": "6e1bd2a1-1b26-4d57-9d0a-1f8a4c3b7e11",
    "leftValue": "={{ $json.status }}",
    "rightValue": "active",
    "operator": {"type": "string", "operation": "equals"},
}


def _combinator_requirements(prefix: str):
    return (
        EditorRequirement(
            id="options_wrapper_required",
            name="Options Wrapper Required",
            path=f"{prefix}.options",
            check_type="type",
            expected="object",
            error_message="conditions.options wrapper is missing",
            rationale="The editor reads caseSensitive/typeValidation from the options wrapper",
            fix='Add options: { caseSensitive: true, leftValue: "", typeValidation: "strict" }',
        ),
        EditorRequirement(
            id="condition_id_required",
            name="Condition ID Required",
            path=f"{prefix}.conditions[].id",
            check_type="type",
            expected="string",
            error_message="Each condition needs a unique id",
            rationale="The editor keys condition rows by id and fails to render without it",
            fix="Add id: <uuid4> to every condition",
        ),
        EditorRequirement(
            id="operator_type_required",
            name="Operator Type Required",
            path=f"{prefix}.conditions[].operator.type",
            check_type="type",
            expected="string",
            error_message="Each condition operator needs a type (string, number, boolean, dateTime)",
            fix='Set operator: { type: "string", operation: "equals" }',
        ),
        EditorRequirement(
            id="at_least_one_condition",
            name="At Least One Condition",
            path=f"{prefix}.conditions",
            check_type="custom",
            expected=lambda value: isinstance(value, list) and len(value) > 0,
            error_message="No conditions configured; every item will take the same branch",
            severity=SEVERITY_WARNING,
            fix="Add a condition with leftValue, rightValue and operator",
        ),
    )


IF_V2 = NodeSchema(
    node_type="if",
    n8n_type="n8n-nodes-base.if",
    type_version=2,
    display_name="If",
    description="Route items to a true (output 0) or false (output 1) branch",
    category="branching",
    formats=(
        SchemaFormat(
            name="combinator",
            required=(
                FieldRule("conditions", "object"),
                FieldRule("conditions.conditions", "array"),
                FieldRule("conditions.combinator", "string"),
            ),
            example={
                "minimal": {"conditions": {
                    "options": _CONDITION_OPTIONS,
                    "conditions": [_EXAMPLE_CONDITION],
                    "combinator": "and",
                }},
            },
            notes="Output 0 is the true branch, output 1 the false branch.",
            editor_requirements=_combinator_requirements("conditions"),
        ),
        SchemaFormat(
            name="legacy_options",
            status=DEPRECATED,
            ui_compatible=False,
            required=(FieldRule("conditions", "object"),),
            any_of=(
                FieldRule("conditions.string", "array"),
                FieldRule("conditions.number", "array"),
                FieldRule("conditions.boolean", "array"),
            ),
            example={
                "minimal": {"conditions": {"string": [
                    {"value1": "={{ $json.status }}", "operation": "equals", "value2": "active"},
                ]}},
            },
            notes="Accepted by the API, renders as an empty canvas in the editor.",
        ),
    ),
)

FILTER_V2 = NodeSchema(
    node_type="filter",
    n8n_type="n8n-nodes-base.filter",
    type_version=2,
    display_name="Filter",
    description="Keep matching items (output 0); discarded items go to output 1",
    category="branching",
    formats=(
        SchemaFormat(
            name="conditions",
            required=(
                FieldRule("conditions.conditions", "array"),
                FieldRule("conditions.combinator", "string"),
            ),
            example={"minimal": {"conditions": {
                "options": _CONDITION_OPTIONS,
                "conditions": [_EXAMPLE_CONDITION],
                "combinator": "and",
            }}},
            editor_requirements=_combinator_requirements("conditions"),
        ),
    ),
)

SWITCH_V3 = NodeSchema(
    node_type="switch",
    n8n_type="n8n-nodes-base.switch",
    type_version=3.4,
    display_name="Switch",
    description="Route items to one output per rule",
    category="branching",
    formats=(
        SchemaFormat(
            name="rules_v3",
            required=(FieldRule("rules.values", "array"),),
            example={"minimal": {
                "rules": {"values": [{"conditions": {
                    "options": dict(_CONDITION_OPTIONS, version=3),
                    "conditions": [_EXAMPLE_CONDITION],
                    "combinator": "and",
                }}]},
                "options": {},
            }},
            notes="Items matching rule[i] leave through output i. With options.fallbackOutput "
                  "\"extra\" unmatched items leave through output len(rules).",
            editor_requirements=(
                EditorRequirement(
                    id="condition_id_required",
                    name="Condition ID Required",
                    path="rules.values[].conditions.conditions[].id",
                    check_type="type",
                    expected="string",
                    error_message="Each condition MUST have a unique id",
                    rationale="typeVersion 3.4 keys condition rows by id",
                    fix="Add id: <uuid4> to each condition object",
                ),
                EditorRequirement(
                    id="options_wrapper_required",
                    name="Options Wrapper Required",
                    path="rules.values[].conditions.options",
                    check_type="type",
                    expected="object",
                    error_message="conditions.options wrapper required for typeVersion 3.4",
                    fix='Add options: { caseSensitive: true, leftValue: "", typeValidation: "strict", version: 3 }',
                ),
                EditorRequirement(
                    id="options_version_3",
                    name="Options Version Must Be 3",
                    path="rules.values[].conditions.options.version",
                    check_type="value",
                    expected=3,
                    error_message="conditions.options.version must be 3 for typeVersion 3.4",
                    rationale="A version mismatch breaks condition evaluation",
                    fix="Set options.version: 3",
                ),
                EditorRequirement(
                    id="root_options",
                    name="Root Options Object",
                    path="options",
                    check_type="type",
                    expected="object",
                    error_message="Top-level options object missing",
                    severity=SEVERITY_WARNING,
                    fix="Add options: {}",
                ),
            ),
        ),
        SchemaFormat(
            name="expression_v3",
            required=(
                FieldRule("mode", "string", "expression"),
                FieldRule("numberOutputs", "number"),
            ),
            example={"minimal": {"mode": "expression", "numberOutputs": 2, "output": "={{ $json.route }}"}},
            editor_requirements=(
                EditorRequirement(
                    id="output_expression",
                    name="Output Expression",
                    path="output",
                    check_type="type",
                    expected="string",
                    error_message="Expression mode needs an output expression",
                    fix='Set output: "={{ $json.route }}"',
                ),
            ),
        ),
    ),
)

SWITCH_V1 = NodeSchema(
    node_type="switch",
    n8n_type="n8n-nodes-base.switch",
    type_version=1,
    display_name="Switch (legacy)",
    description="Legacy switch; prefer typeVersion 3.4",
    category="branching",
    formats=(
        SchemaFormat(
            name="expression_multiple_outputs",
            required=(
                FieldRule("mode", "string", "expression"),
                FieldRule("output", "string", "multipleOutputs"),
                FieldRule("rules.rules", "array"),
            ),
            example={"minimal": {
                "mode": "expression",
                "output": "multipleOutputs",
                "rules": {"rules": [{"outputIndex": 0}, {"outputIndex": 1}]},
            }},
            editor_requirements=(
                EditorRequirement(
                    id="output_index",
                    name="Rule Output Index",
                    path="rules.rules[].outputIndex",
                    check_type="type",
                    expected="number",
                    error_message="Each rule needs an outputIndex",
                    fix="Add outputIndex: <n> to each rule",
                ),
            ),
        ),
        SchemaFormat(
            name="expression",
            required=(
                FieldRule("mode", "string", "expression"),
                FieldRule("output", "string"),
            ),
            example={"minimal": {"mode": "expression", "output": "={{ $json.route }}"}},
        ),
        SchemaFormat(
            name="rules",
            status=DEPRECATED,
            ui_compatible=False,
            required=(
                FieldRule("mode", "string", "rules"),
                FieldRule("rules.rules", "array"),
            ),
            notes="Stored by the API but not rendered by the editor.",
        ),
    ),
)

MERGE_V3 = NodeSchema(
    node_type="merge",
    n8n_type="n8n-nodes-base.merge",
    type_version=3,
    display_name="Merge",
    description="Combine items from two inputs",
    category="action",
    formats=(
        SchemaFormat(
            name="append",
            required=(FieldRule("mode", "string", "append"),),
            example={"minimal": {"mode": "append"}},
        ),
        SchemaFormat(
            name="combine",
            required=(FieldRule("mode", "string", "combine"),),
            example={"minimal": {"mode": "combine", "combineBy": "combineByPosition"}},
            editor_requirements=(
                EditorRequirement(
                    id="combine_by",
                    name="Combine By",
                    path="combineBy",
                    check_type="exists",
                    error_message="combine mode should say how to combine (combineBy)",
                    severity=SEVERITY_WARNING,
                    fix='Set combineBy: "combineByPosition" or "combineByFields"',
                ),
            ),
        ),
        SchemaFormat(
            name="choose_branch",
            status=EXPERIMENTAL,
            required=(FieldRule("mode", "string", "chooseBranch"),),
        ),
    ),
)

SCHEMAS = (IF_V2, FILTER_V2, SWITCH_V3, SWITCH_V1, MERGE_V3)
