""" Wiring: settings -> registries, session store, n8n client, builder, tools. """

import logging
from typing import Optional

from .builder.draft_builder import DraftBuilder
from .config import Settings, get_settings
from .integrations.n8n.client import N8NClient
from .knowledge.registry import build_knowledge_base
from .knowledge.validation import ValidationEngine
from .sessions.factory import create_session_store
from .tools.registry import ToolContext
from .workflow.node_types import build_node_type_registry

logger = logging.getLogger(__name__)


def create_builder(settings: Optional[Settings] = None, client=None, store=None) -> DraftBuilder:
    settings = settings or get_settings()
    registry = build_node_type_registry()
    engine = ValidationEngine(build_knowledge_base())
    if store is None:
        store = create_session_store(settings)
    if client is None and settings.n8n_api_key:
        client = N8NClient.from_settings(settings)
    if client is None:
        logger.warning("N8N_API_KEY not set; builder_commit will fail until a client is configured")
    return DraftBuilder(store, registry, engine, client,
                        retry_escalation=settings.commit_retry_escalation)


def create_tools(settings: Optional[Settings] = None, **kwargs) -> ToolContext:
    builder = create_builder(settings, **kwargs)
    return ToolContext(builder=builder, engine=builder.engine, registry=builder.registry)
