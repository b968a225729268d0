""" Action node formats: http, postgres, discord, respond, set, code. """

from ..types import (
    SEVERITY_WARNING,
    EditorRequirement,
    FieldRule,
    NodeSchema,
    SchemaFormat,
)


def _non_empty_string(value):
    return isinstance(value, str) and value.strip() != ""


HTTP_REQUEST_V4_2 = NodeSchema(
    node_type="http",
    n8n_type="n8n-nodes-base.httpRequest",
    type_version=4.2,
    display_name="HTTP Request",
    description="Call an HTTP endpoint",
    category="action",
    formats=(
        SchemaFormat(
            name="http_request",
            example={
                "minimal": {"method": "GET", "url": "https://api.example.com/items"},
                "complete": {
                    "method": "POST",
                    "url": "https://api.example.com/items",
                    "sendBody": True,
                    "contentType": "json",
                    "jsonBody": "={{ JSON.stringify($json) }}",
                },
            },
            editor_requirements=(
                EditorRequirement(
                    id="url_required",
                    name="URL Required",
                    path="url",
                    check_type="custom",
                    expected=_non_empty_string,
                    error_message="HTTP Request needs a url",
                    fix='Set url: "https://..."',
                ),
                EditorRequirement(
                    id="method_set",
                    name="Method Set",
                    path="method",
                    check_type="type",
                    expected="string",
                    error_message="HTTP method not set; n8n will default to GET",
                    severity=SEVERITY_WARNING,
                    fix='Set method: "GET"',
                ),
            ),
        ),
    ),
)

_QUERY_REQUIRED = EditorRequirement(
    id="query_required",
    name="Query Required",
    path="query",
    check_type="custom",
    expected=_non_empty_string,
    error_message="executeQuery needs a SQL query",
    fix='Set query: "SELECT * FROM orders WHERE id = $1"',
)

_TABLE_REQUIRED = EditorRequirement(
    id="table_required",
    name="Table Required",
    path="table",
    check_type="exists",
    error_message="This operation needs a table",
    fix='Set table: "orders"',
)

POSTGRES_V2_5 = NodeSchema(
    node_type="postgres",
    n8n_type="n8n-nodes-base.postgres",
    type_version=2.5,
    display_name="Postgres",
    description="Run queries against a PostgreSQL database",
    category="action",
    formats=(
        SchemaFormat(
            name="execute_query",
            required=(FieldRule("operation", "string", "executeQuery"),),
            example={"minimal": {"operation": "executeQuery", "query": "SELECT 1"}},
            editor_requirements=(_QUERY_REQUIRED,),
        ),
        SchemaFormat(
            name="insert",
            required=(FieldRule("operation", "string", "insert"),),
            editor_requirements=(_TABLE_REQUIRED,),
        ),
        SchemaFormat(
            name="update",
            required=(FieldRule("operation", "string", "update"),),
            editor_requirements=(_TABLE_REQUIRED,),
        ),
        SchemaFormat(
            name="delete",
            required=(FieldRule("operation", "string", "deleteTable"),),
            editor_requirements=(_TABLE_REQUIRED,),
        ),
        SchemaFormat(
            name="select",
            required=(FieldRule("operation", "string", "select"),),
            editor_requirements=(_TABLE_REQUIRED,),
        ),
    ),
)

DISCORD_V2 = NodeSchema(
    node_type="discord",
    n8n_type="n8n-nodes-base.discord",
    type_version=2,
    display_name="Discord",
    description="Send a message to a Discord channel",
    category="action",
    formats=(
        SchemaFormat(
            name="message",
            required=(FieldRule("resource", "string", "message"),),
            example={"minimal": {"resource": "message", "channelId": "123", "content": "Hello"}},
            editor_requirements=(
                EditorRequirement(
                    id="content",
                    name="Message Content",
                    path="content",
                    check_type="exists",
                    error_message="Message content is empty",
                    severity=SEVERITY_WARNING,
                    fix='Set content: "..."',
                ),
            ),
        ),
    ),
)

RESPOND_V1_1 = NodeSchema(
    node_type="respond",
    n8n_type="n8n-nodes-base.respondToWebhook",
    type_version=1.1,
    display_name="Respond to Webhook",
    description="Return the HTTP response for a webhook-started run",
    category="action",
    formats=(
        SchemaFormat(
            name="respond",
            required=(FieldRule("respondWith", "string"),),
            example={"minimal": {"respondWith": "json", "responseBody": "={{ $json }}"}},
        ),
    ),
)

SET_V3_4 = NodeSchema(
    node_type="set",
    n8n_type="n8n-nodes-base.set",
    type_version=3.4,
    display_name="Set",
    description="Add or overwrite item fields",
    category="action",
    formats=(
        SchemaFormat(
            name="manual_mapping",
            required=(FieldRule("assignments.assignments", "array"),),
            example={"minimal": {"assignments": {"assignments": [
                {"id": "0b7c7f5e-8f6c-4a47-9d1a-2b3c4d5e6f70", "name": "status", "value": "ok", "type": "string"},
            ]}, "options": {}}},
            editor_requirements=(
                EditorRequirement(
                    id="assignment_name",
                    name="Assignment Name",
                    path="assignments.assignments[].name",
                    check_type="type",
                    expected="string",
                    error_message="Each assignment needs a field name",
                    fix='Add name: "field" to each assignment',
                ),
                EditorRequirement(
                    id="assignment_type",
                    name="Assignment Type",
                    path="assignments.assignments[].type",
                    check_type="type",
                    expected="string",
                    error_message="Each assignment needs a type",
                    fix='Add type: "string" (or number, boolean, array, object)',
                ),
            ),
        ),
    ),
)

CODE_V2 = NodeSchema(
    node_type="code",
    n8n_type="n8n-nodes-base.code",
    type_version=2,
    display_name="Code",
    description="Run custom JavaScript",
    category="action",
    formats=(
        SchemaFormat(
            name="code",
            required=(FieldRule("jsCode", "string"),),
            example={"minimal": {"jsCode": "return items;", "mode": "runOnceForAllItems"}},
            editor_requirements=(
                EditorRequirement(
                    id="js_code",
                    name="Code Not Empty",
                    path="jsCode",
                    check_type="custom",
                    expected=_non_empty_string,
                    error_message="jsCode is empty",
                    fix='Set jsCode: "return items;"',
                ),
                EditorRequirement(
                    id="mode",
                    name="Execution Mode",
                    path="mode",
                    check_type="custom",
                    expected=lambda value: value in ("runOnceForAllItems", "runOnceForEachItem"),
                    error_message="mode should be runOnceForAllItems or runOnceForEachItem",
                    severity=SEVERITY_WARNING,
                    fix='Set mode: "runOnceForAllItems"',
                ),
            ),
        ),
    ),
)

SCHEMAS = (HTTP_REQUEST_V4_2, POSTGRES_V2_5, DISCORD_V2, RESPOND_V1_1, SET_V3_4, CODE_V2)
