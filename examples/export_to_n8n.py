""" Example: compile a YAML step list to n8n JSON for import into the editor. """
from pathlib import Path

from n8n_builder.integrations.n8n.yaml_to_n8n import yaml_file_to_n8n_json


def main():
    yaml_path = Path(__file__).parent / "specs" / "yaml" / "order_alerts.yaml"
    out_json_path = "order_alerts_n8n_workflow.json"
    # credential names used in the YAML -> n8n credential ids
    credentials = {"alerts": "1", "orders_db": "2"}
    workflow = yaml_file_to_n8n_json(yaml_path, Path(out_json_path), credentials)
    print(f"Wrote n8n workflow JSON ({len(workflow['nodes'])} nodes) to: {out_json_path}")


if __name__ == '__main__':
    main()
