""" Knowledge base: node schemas keyed by (type, version) plus the quirk catalogue. """

import logging
from types import MappingProxyType
from typing import Dict, Iterable, List, Optional, Tuple

from ..errors import NotFoundError
from .quirks import QUIRKS
from .schemas import actions, logic, notes, triggers
from .types import NodeSchema, Number, Quirk

logger = logging.getLogger(__name__)


class KnowledgeBase:
    """Immutable once built. Pass it to the ValidationEngine and the builder."""

    def __init__(self, schemas: Iterable[NodeSchema], quirks: Iterable[Quirk]):
        by_key: Dict[Tuple[str, Number], NodeSchema] = {}
        for schema in schemas:
            key = (schema.node_type, schema.type_version)
            if key in by_key:
                raise ValueError(f"Duplicate schema registration: {schema.node_type} v{schema.type_version}")
            by_key[key] = schema
        self._schemas = MappingProxyType(by_key)

        quirk_list = tuple(quirks)
        ids = [q.id for q in quirk_list]
        if len(ids) != len(set(ids)):
            raise ValueError("Duplicate quirk ids")
        self._quirks = quirk_list

    # ---- schemas ----

    def node_types(self) -> List[str]:
        return sorted({node_type for node_type, _ in self._schemas})

    def versions(self, node_type: str) -> List[Number]:
        return sorted(v for t, v in self._schemas if t == node_type)

    def get_schema(self, node_type: str, version: Optional[Number] = None) -> NodeSchema:
        """Schema for `node_type` at `version`, or its latest version when omitted."""
        versions = self.versions(node_type)
        if not versions:
            raise NotFoundError(
                f"No schema for node type: {node_type}",
                available=self.node_types(),
                code="SCHEMA_NOT_FOUND",
            )
        if version is None:
            version = versions[-1]
        schema = self._schemas.get((node_type, version))
        if schema is None:
            raise NotFoundError(
                f"No schema for {node_type} typeVersion {version}",
                available=versions,
                code="SCHEMA_VERSION_NOT_FOUND",
            )
        return schema

    def has_schema(self, node_type: str, version: Optional[Number] = None) -> bool:
        if version is None:
            return bool(self.versions(node_type))
        return (node_type, version) in self._schemas

    def schemas(self) -> List[NodeSchema]:
        return [self._schemas[k] for k in sorted(self._schemas, key=lambda k: (k[0], k[1]))]

    # ---- quirks ----

    def quirks(self) -> Tuple[Quirk, ...]:
        return self._quirks

    def get_quirk(self, quirk_id: str) -> Quirk:
        for quirk in self._quirks:
            if quirk.id == quirk_id:
                return quirk
        raise NotFoundError(f"Unknown quirk: {quirk_id}", available=[q.id for q in self._quirks])

    def quirks_for(self, node_type: str, version: Optional[Number] = None) -> List[Quirk]:
        return [q for q in self._quirks if q.affects(node_type, version)]

    def search_by_symptom(self, keywords: Iterable[str]) -> List[Quirk]:
        """Quirks with any symptom containing any keyword (case-insensitive)."""
        needles = [k.lower() for k in keywords if k and k.strip()]
        if not needles:
            return []
        found = []
        for quirk in self._quirks:
            symptoms = [s.lower() for s in quirk.symptoms]
            if any(needle in symptom for needle in needles for symptom in symptoms):
                found.append(quirk)
        return found


def build_knowledge_base(schemas: Optional[Iterable[NodeSchema]] = None,
                         quirks: Optional[Iterable[Quirk]] = None) -> KnowledgeBase:
    if schemas is None:
        schemas = triggers.SCHEMAS + logic.SCHEMAS + actions.SCHEMAS + notes.SCHEMAS
    kb = KnowledgeBase(schemas, QUIRKS if quirks is None else quirks)
    logger.debug("knowledge base loaded: %d schemas, %d quirks", len(kb.schemas()), len(kb.quirks()))
    return kb
