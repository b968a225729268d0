""" Canvas-only nodes. Known to the knowledge base, not to the builder. """

from ..types import SEVERITY_WARNING, EditorRequirement, FieldRule, NodeSchema, SchemaFormat


def _within(low, high):
    def check(value):
        if value is None:
            return True
        return isinstance(value, (int, float)) and not isinstance(value, bool) and low <= value <= high
    return check


STICKY_NOTE_V1 = NodeSchema(
    node_type="stickyNote",
    n8n_type="n8n-nodes-base.stickyNote",
    type_version=1,
    display_name="Sticky Note",
    description="Markdown note on the canvas; never executes and has no connections",
    category="documentation",
    formats=(
        SchemaFormat(
            name="stickyNote",
            required=(FieldRule("content", "string"),),
            example={
                "minimal": {"content": "## Workflow Notes\n\nThis workflow processes user data."},
                "complete": {
                    "content": "## Changelog\n\n### v1.0.0\n- Initial implementation",
                    "height": 400,
                    "width": 500,
                },
            },
            notes="Supports basic markdown (##, -, **bold**, `code`). Defaults: height 300, width 400.",
            editor_requirements=(
                EditorRequirement(
                    id="content_required",
                    name="Content Required",
                    path="content",
                    check_type="custom",
                    expected=lambda value: isinstance(value, str) and value.strip() != "",
                    error_message="Sticky note content cannot be empty",
                    rationale="Empty notes clutter the canvas",
                    fix="Add meaningful content to the note",
                ),
                EditorRequirement(
                    id="height_reasonable",
                    name="Reasonable Height",
                    path="height",
                    check_type="custom",
                    expected=_within(80, 2000),
                    error_message="Note height should be between 80 and 2000 pixels",
                    severity=SEVERITY_WARNING,
                    fix="Use height: 300-400",
                ),
                EditorRequirement(
                    id="width_reasonable",
                    name="Reasonable Width",
                    path="width",
                    check_type="custom",
                    expected=_within(150, 2000),
                    error_message="Note width should be between 150 and 2000 pixels",
                    severity=SEVERITY_WARNING,
                    fix="Use width: 400-600",
                ),
            ),
        ),
    ),
)

SCHEMAS = (STICKY_NOTE_V1,)
