import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional

from ...workflow.compiler import compile_steps, load_workflow
from ...workflow.node_types import NodeTypeRegistry, build_node_type_registry

logger = logging.getLogger(__name__)


def yaml_to_n8n(yaml_text: str, credentials: Optional[Dict[str, str]] = None,
                registry: Optional[NodeTypeRegistry] = None) -> Dict[str, Any]:
    """
    Convert a YAML step list into an n8n workflow JSON dict.
    """
    workflow = load_workflow(yaml_text)
    return compile_steps(workflow, credentials, registry or build_node_type_registry())


def yaml_file_to_n8n_json(yaml_path: Path, json_path: Path,
                          credentials: Optional[Dict[str, str]] = None) -> Dict[str, Any]:
    """
    Load a YAML step list, compile it, and write the n8n JSON next to it.
    """
    n8n_workflow = yaml_to_n8n(Path(yaml_path).read_text(), credentials)
    Path(json_path).write_text(json.dumps(n8n_workflow, indent=2))
    logger.info("wrote n8n workflow to %s", json_path)
    return n8n_workflow
