""" Trigger node formats: webhook, schedule, manual. """

from ..types import (
    DEPRECATED,
    EXPERIMENTAL,
    SEVERITY_WARNING,
    EditorRequirement,
    FieldRule,
    NodeSchema,
    SchemaFormat,
)

_HTTP_METHODS = ("GET", "POST", "PUT", "PATCH", "DELETE", "HEAD")

WEBHOOK_V2 = NodeSchema(
    node_type="webhook",
    n8n_type="n8n-nodes-base.webhook",
    type_version=2,
    display_name="Webhook",
    description="Start the workflow on an incoming HTTP request",
    category="trigger",
    formats=(
        SchemaFormat(
            name="webhook",
            required=(FieldRule("path", "string"),),
            example={
                "minimal": {"path": "orders", "httpMethod": "POST"},
                "complete": {"path": "orders", "httpMethod": "POST", "responseMode": "responseNode"},
            },
            notes="Use responseMode=responseNode together with a Respond to Webhook node.",
            editor_requirements=(
                EditorRequirement(
                    id="path_not_empty",
                    name="Path Not Empty",
                    path="path",
                    check_type="custom",
                    expected=lambda value: isinstance(value, str) and value.strip() != "",
                    error_message="Webhook path must not be empty",
                    fix='Set path: "my-endpoint"',
                ),
                EditorRequirement(
                    id="http_method",
                    name="HTTP Method",
                    path="httpMethod",
                    check_type="custom",
                    expected=lambda value: value in _HTTP_METHODS,
                    error_message="httpMethod should be one of " + ", ".join(_HTTP_METHODS),
                    severity=SEVERITY_WARNING,
                    fix='Set httpMethod: "POST"',
                ),
            ),
        ),
    ),
)

SCHEDULE_V1_2 = NodeSchema(
    node_type="schedule",
    n8n_type="n8n-nodes-base.scheduleTrigger",
    type_version=1.2,
    display_name="Schedule Trigger",
    description="Start the workflow on a fixed interval or cron expression",
    category="trigger",
    formats=(
        SchemaFormat(
            name="interval",
            required=(FieldRule("rule.interval", "array"),),
            example={"minimal": {"rule": {"interval": [{"field": "days", "triggerAtHour": 0}]}}},
            editor_requirements=(
                EditorRequirement(
                    id="interval_field",
                    name="Interval Field",
                    path="rule.interval[].field",
                    check_type="type",
                    expected="string",
                    error_message="Each interval entry needs a field (seconds, minutes, hours, days, cronExpression)",
                    fix='Use { field: "hours", hoursInterval: 1 }',
                ),
            ),
        ),
        SchemaFormat(
            name="cron_expression",
            status=EXPERIMENTAL,
            required=(FieldRule("cronExpression", "string"),),
            notes="Top-level cronExpression is read by older releases only; "
                  "prefer rule.interval with field=cronExpression.",
        ),
        SchemaFormat(
            name="trigger_times",
            status=DEPRECATED,
            ui_compatible=False,
            required=(FieldRule("triggerTimes", "object"),),
            notes="Cron node (v1) parameter layout.",
        ),
    ),
)

MANUAL_V1 = NodeSchema(
    node_type="manual",
    n8n_type="n8n-nodes-base.manualTrigger",
    type_version=1,
    display_name="Manual Trigger",
    description="Start the workflow from the editor",
    category="trigger",
    formats=(
        SchemaFormat(name="manual_trigger", example={"minimal": {}}),
    ),
)

SCHEMAS = (WEBHOOK_V2, SCHEDULE_V1_2, MANUAL_V1)
