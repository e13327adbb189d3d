"""
Context Prioritizer - Orders context components for budget packing

The compressor only consumes the ordering; this module is the default
policy. Components come from two places in a context object:

1. An explicit `components` list, ordered by descending `priority`
   (stable for ties).
2. A knowledge bundle (`knowledge` key, or the context itself when it
   has `entities`), turned into components in the order
   code -> dependencies -> documentation -> relationships.
"""

import json
from typing import Any, Dict, List, Mapping

from task_orchestrator.models.enums import ComponentType, NodeType
from task_orchestrator.models.context import ContextComponent

DIRECT_DEPENDENCY_IMPORTANCE = 1.0
TRANSITIVE_DEPENDENCY_IMPORTANCE = 0.5


def _priority(component: Mapping[str, Any]) -> float:
    try:
        return float(component.get("priority", 0) or 0)
    except (TypeError, ValueError):
        return 0.0


class ContextPrioritizer:
    """Default prioritization policy for the context compressor."""

    def prioritize(self, context: Mapping[str, Any]) -> List[ContextComponent]:
        """
        Build the priority-ordered component sequence for a context.

        Args:
            context: Caller-defined context object

        Returns:
            Components, highest priority first
        """
        explicit = [
            c for c in context.get("components") or []
            if isinstance(c, Mapping) and c.get("type")
        ]
        components: List[ContextComponent] = sorted(explicit, key=lambda c: -_priority(c))

        bundle = context.get("knowledge")
        if bundle is None and "entities" in context:
            bundle = context
        if isinstance(bundle, Mapping):
            components.extend(self.components_from_bundle(bundle))

        return components

    def components_from_bundle(self, bundle: Mapping[str, Any]) -> List[ContextComponent]:
        """Turn a knowledge bundle's entities and relationships into components."""
        code_lines: List[str] = []
        doc_lines: List[str] = []
        dependencies: List[Dict[str, Any]] = []

        for entity in bundle.get("entities", []):
            node_type = entity.get("type")
            data = entity.get("data") or {}

            if node_type == NodeType.FILE.value:
                code_lines.append(f"file {data.get('path')} ({data.get('language') or 'unknown'})")
            elif node_type == NodeType.CODE_ENTITY.value:
                code_lines.append(
                    f"{data.get('entity_type')} {data.get('name')} "
                    f"in {data.get('file')} at {data.get('position')}"
                )
            elif node_type == NodeType.DEPENDENCY.value:
                dependencies.append({
                    "name": data.get("name"),
                    "version": data.get("version"),
                    "importance_score": (
                        DIRECT_DEPENDENCY_IMPORTANCE if data.get("is_direct")
                        else TRANSITIVE_DEPENDENCY_IMPORTANCE
                    ),
                })
            elif node_type == NodeType.FRAMEWORK.value:
                doc_lines.append(
                    f"framework {data.get('name')}: {data.get('category')} ({data.get('ecosystem')})"
                )
            elif node_type == NodeType.ERROR_PATTERN.value:
                solutions = "; ".join(data.get("solutions") or [])
                doc_lines.append(f"known error '{data.get('message')}': {solutions}")
            else:
                doc_lines.append(f"{node_type} {entity.get('id')}: {json.dumps(data, default=str)}")

        components: List[ContextComponent] = []
        if code_lines:
            components.append({
                "type": ComponentType.CODE.value,
                "path": "knowledge-graph",
                "content": "\n".join(code_lines),
            })
        if dependencies:
            components.append({
                "type": ComponentType.DEPENDENCIES.value,
                "dependencies": dependencies,
            })
        if doc_lines:
            components.append({
                "type": ComponentType.DOCUMENTATION.value,
                "path": "knowledge-graph",
                "content": "\n".join(doc_lines),
            })
        relationships = bundle.get("relationships") or []
        if relationships:
            components.append({
                "type": "relationships",
                "relationships": list(relationships),
            })
        return components
