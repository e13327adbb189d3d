"""
Knowledge Graph Service - Project knowledge ingestion and relevance queries

Owns one GraphStore seeded with baseline framework and error-pattern
knowledge. Project-scan results are merged into it, and tasks query it
for the nodes most relevant to their text.
"""

import copy
import json
import re
import threading
from collections import Counter
from typing import Any, Callable, Dict, Iterator, List, Mapping, Optional, Tuple

from task_orchestrator.config.orchestrator_config import KnowledgeGraphConfig
from task_orchestrator.core.graph_store import GraphStore
from task_orchestrator.models.context import (
    ContextBundle,
    ContextEntity,
    ContextRelationship,
    ContextSummary,
    RelatedIssue,
    UserAbility,
    empty_context_bundle,
)
from task_orchestrator.models.enums import EdgeType, NodeType, TaskType
from task_orchestrator.models.graph import (
    GraphEdge,
    GraphNode,
    code_entity_node_id,
    dependency_node_id,
    file_node_id,
)
from task_orchestrator.models.scan import ProjectScan
from task_orchestrator.utils.exceptions import InvalidParameterError
from task_orchestrator.utils.logger import get_logger
from task_orchestrator.utils.profile_cache import ProfileCache

logger = get_logger(__name__)

STOP_WORDS = {"the", "and", "that", "have", "for", "with", "this", "from", "into", "will", "then"}
MIN_KEYWORD_LENGTH = 4
PUNCTUATION_PATTERN = re.compile(r"[^\w\s]")

BASELINE_FRAMEWORKS = [
    ("react", "React", "ui", "javascript"),
    ("angular", "Angular", "ui", "javascript"),
    ("vue", "Vue", "ui", "javascript"),
    ("django", "Django", "backend", "python"),
    ("flask", "Flask", "backend", "python"),
    ("express", "Express", "backend", "javascript"),
    ("spring", "Spring", "backend", "java"),
]

BASELINE_ECOSYSTEM = [
    ("react", "react-router"),
    ("react", "redux"),
]

BASELINE_ERROR_PATTERNS = [
    ("javascript:undefined", "Cannot read property of undefined", "javascript", [
        "Check if object exists before accessing properties",
        "Use optional chaining",
    ]),
    ("python:indentation", "IndentationError", "python", [
        "Check spaces vs tabs",
        "Ensure consistent indentation",
    ]),
    ("python:module-not-found", "ModuleNotFoundError", "python", [
        "Install the missing package in the active environment",
        "Check the import path and package name",
    ]),
    ("python:key-error", "KeyError", "python", [
        "Use dict.get() with a default",
        "Check that the key exists before indexing",
    ]),
]

# Reference search collaborator: error text -> list of issue records
ReferenceSearch = Callable[[str], List[RelatedIssue]]
AbilityPolicy = Callable[[str], UserAbility]


def default_ability_policy(user_id: str) -> UserAbility:
    """Static placeholder profile used until real interaction analysis exists."""
    return UserAbility(
        programming_level="intermediate",
        languages={"javascript": 0.8, "python": 0.6, "typescript": 0.7},
        frameworks={"react": 0.75, "node": 0.8},
        preferred_explanation_level="detailed",
    )


def _field(record: Mapping[str, Any], key: str, default: Any = None) -> Any:
    """Read a snake_case key, falling back to its camelCase spelling."""
    if key in record:
        return record[key]
    head, *rest = key.split("_")
    return record.get(head + "".join(part.title() for part in rest), default)


class KnowledgeGraphService:
    """
    Knowledge graph of project files, dependencies, code entities,
    frameworks and error patterns.

    All graph mutation and queries are serialized by a service-level
    lock, so one instance may be shared by concurrent orchestration runs.
    Use snapshot() to give a run its own isolated copy.

    Args:
        config: Query and cache settings
        graph: Store to use; an empty store is seeded with baseline knowledge
        reference_search: Optional external lookup used by get_related_issues
        ability_policy: Computes a user's ability profile (cached per user)
        type_bonuses: Extra (task_type, node_type) -> bonus score entries
    """

    def __init__(
        self,
        config: Optional[KnowledgeGraphConfig] = None,
        graph: Optional[GraphStore] = None,
        reference_search: Optional[ReferenceSearch] = None,
        ability_policy: Optional[AbilityPolicy] = None,
        type_bonuses: Optional[Dict[Tuple[str, str], float]] = None,
    ):
        self.config = config or KnowledgeGraphConfig()
        self._graph = graph if graph is not None else GraphStore()
        self._lock = threading.RLock()
        self._reference_search = reference_search
        self._ability_policy = ability_policy or default_ability_policy
        self._profiles = ProfileCache(
            max_size=self.config.profile_cache_size,
            ttl_seconds=self.config.profile_cache_ttl,
        )

        self.type_bonuses: Dict[Tuple[str, str], float] = {
            (TaskType.DEPENDENCY_CHECK.value, NodeType.DEPENDENCY.value): self.config.task_type_bonus,
            (TaskType.STATIC_ANALYSIS.value, NodeType.CODE_ENTITY.value): self.config.task_type_bonus,
        }
        if type_bonuses:
            self.type_bonuses.update(type_bonuses)

        if len(self._graph) == 0:
            self._seed_baseline()

        logger.debug(
            f"Knowledge Graph Service initialized "
            f"({self._graph.node_count} nodes, {self._graph.edge_count} edges)"
        )

    @property
    def graph(self) -> GraphStore:
        return self._graph

    def snapshot(self) -> GraphStore:
        """Independent copy of the current graph."""
        with self._lock:
            return self._graph.copy()

    # ------------------------------------------------------------------
    # Baseline knowledge
    # ------------------------------------------------------------------

    def _seed_baseline(self) -> None:
        for key, name, category, ecosystem in BASELINE_FRAMEWORKS:
            self._graph.add_node(GraphNode(
                id=f"framework:{key}",
                type=NodeType.FRAMEWORK.value,
                data={"name": name, "category": category, "ecosystem": ecosystem},
            ))

        for framework, dependency in BASELINE_ECOSYSTEM:
            self._graph.add_edge(GraphEdge(
                from_id=f"framework:{framework}",
                to_id=dependency_node_id(dependency),
                type=EdgeType.ECOSYSTEM.value,
            ))

        for key, message, language, solutions in BASELINE_ERROR_PATTERNS:
            self._graph.add_node(GraphNode(
                id=f"error:{key}",
                type=NodeType.ERROR_PATTERN.value,
                data={"message": message, "language": language, "solutions": list(solutions)},
            ))

    # ------------------------------------------------------------------
    # Ingestion
    # ------------------------------------------------------------------

    def build_project_graph(self, scan: ProjectScan) -> None:
        """
        Merge a project-scan result into the graph.

        Nodes are upserted, so re-ingesting a scan never duplicates them.
        Edges are appended on every call.
        """
        with self._lock:
            nodes_before = self._graph.node_count
            edges_before = self._graph.edge_count

            self._add_files(scan.get("files") or [])
            self._add_dependencies(scan.get("dependencies") or {})
            entity_ids = self._add_code_entities(_field(scan, "code_entities") or [])
            self._add_imports(scan.get("imports") or [])
            self._add_calls(_field(scan, "function_calls") or [], entity_ids)

            logger.info(
                f"[GRAPH] Ingested project scan: "
                f"+{self._graph.node_count - nodes_before} nodes, "
                f"+{self._graph.edge_count - edges_before} edges "
                f"(total {self._graph.node_count} nodes, {self._graph.edge_count} edges)"
            )

    def _add_files(self, files: List[Mapping[str, Any]]) -> None:
        for scanned in files:
            path = scanned.get("path")
            if not path:
                logger.debug(f"[GRAPH] Skipping scanned file without path: {scanned!r}")
                continue
            self._graph.add_node(GraphNode(
                id=file_node_id(path),
                type=NodeType.FILE.value,
                data={
                    "path": path,
                    "language": scanned.get("language"),
                    "size": scanned.get("size"),
                    "last_modified": _field(scanned, "last_modified"),
                },
            ))

    def _add_dependencies(self, analysis: Mapping[str, Any]) -> None:
        direct = analysis.get("direct") or {}
        transitive = analysis.get("transitive") or {}

        for name, version in direct.items():
            self._upsert_dependency(name, version, is_direct=True)
        for name, version in transitive.items():
            if name in direct:
                continue
            self._upsert_dependency(name, version, is_direct=False)

        tree = _field(analysis, "dependency_tree")
        if isinstance(tree, Mapping):
            for parent, child in self._walk_dependency_tree(tree):
                self._graph.add_edge(GraphEdge(
                    from_id=dependency_node_id(parent),
                    to_id=dependency_node_id(child),
                    type=EdgeType.REQUIRES.value,
                ))

    def _upsert_dependency(self, name: str, version: Any, is_direct: bool) -> None:
        self._graph.add_node(GraphNode(
            id=dependency_node_id(name),
            type=NodeType.DEPENDENCY.value,
            data={"name": name, "version": version, "is_direct": is_direct},
        ))

    @staticmethod
    def _walk_dependency_tree(tree: Mapping[str, Any]) -> Iterator[Tuple[str, str]]:
        """Yield (parent, child) pairs at every nesting level, depth first."""
        stack: List[Tuple[Optional[str], Iterator[Tuple[str, Any]]]] = [(None, iter(tree.items()))]
        while stack:
            parent, children = stack[-1]
            entry = next(children, None)
            if entry is None:
                stack.pop()
                continue
            name, subtree = entry
            if parent is not None:
                yield parent, name
            if isinstance(subtree, Mapping) and subtree:
                stack.append((name, iter(subtree.items())))

    def _add_code_entities(self, entities: List[Mapping[str, Any]]) -> Dict[Tuple[str, str], str]:
        """Add entity nodes and their `contains` edges; return (file, name) -> node id."""
        index: Dict[Tuple[str, str], str] = {}
        for entity in entities:
            name = entity.get("name")
            file = entity.get("file")
            if not name or not file:
                logger.debug(f"[GRAPH] Skipping code entity without name/file: {entity!r}")
                continue
            entity_type = entity.get("type") or "unknown"
            position = entity.get("position")
            node_id = code_entity_node_id(entity_type, name, file, position)

            self._graph.add_node(GraphNode(
                id=node_id,
                type=NodeType.CODE_ENTITY.value,
                data={
                    "name": name,
                    "entity_type": entity_type,
                    "file": file,
                    "position": position,
                    "complexity": entity.get("complexity"),
                    "lines": entity.get("lines"),
                },
            ))
            self._graph.add_edge(GraphEdge(
                from_id=file_node_id(file),
                to_id=node_id,
                type=EdgeType.CONTAINS.value,
            ))
            # First declaration wins when a name repeats within a file
            index.setdefault((file, name), node_id)
        return index

    def _add_imports(self, imports: List[Mapping[str, Any]]) -> None:
        for edge in imports:
            source = _field(edge, "source_file")
            target = _field(edge, "target_file")
            if not source or not target:
                continue
            self._graph.add_edge(GraphEdge(
                from_id=file_node_id(source),
                to_id=file_node_id(target),
                type=EdgeType.IMPORTS.value,
            ))

    def _add_calls(self, calls: List[Mapping[str, Any]], entity_ids: Dict[Tuple[str, str], str]) -> None:
        skipped = 0
        for call in calls:
            caller = entity_ids.get((_field(call, "source_file"), _field(call, "source_function")))
            callee = entity_ids.get((_field(call, "target_file"), _field(call, "target_function")))
            if caller is None or callee is None:
                skipped += 1
                continue
            self._graph.add_edge(GraphEdge(
                from_id=caller,
                to_id=callee,
                type=EdgeType.CALLS.value,
                data={"count": call.get("count") or 1},
            ))
        if skipped:
            logger.debug(f"[GRAPH] Skipped {skipped} call(s) with unresolved entities")

    # ------------------------------------------------------------------
    # Relevance queries
    # ------------------------------------------------------------------

    @staticmethod
    def extract_keywords(text: str) -> List[str]:
        """
        Lowercase words longer than three characters, minus stop words.

        Repeats are kept, so a word that occurs twice counts twice in the
        relevance score.
        """
        words = PUNCTUATION_PATTERN.sub("", text.lower()).split()
        return [w for w in words if len(w) >= MIN_KEYWORD_LENGTH and w not in STOP_WORDS]

    def get_relevant_context(self, task_message: Any, max_nodes: Optional[int] = None) -> ContextBundle:
        """
        Select the graph nodes most relevant to a task.

        Args:
            task_message: Task text, a TaskRecord, or an envelope
                {"content": ..., "metadata": {"taskType": ...}}
            max_nodes: Maximum entities returned (config default when None)

        Returns:
            ContextBundle with the selected nodes, the edges between them,
            and per-type counts
        """
        if max_nodes is None:
            max_nodes = self.config.max_context_nodes
        if max_nodes < 0:
            raise InvalidParameterError(
                parameter_name="max_nodes",
                message="max_nodes cannot be negative",
                expected_type="non-negative int",
                actual_value=max_nodes,
            )

        content, task_type = self._unpack_task_message(task_message)
        if not content or not content.strip() or max_nodes == 0:
            logger.debug("[CONTEXT] No query content; returning empty context")
            return empty_context_bundle()

        keywords = self.extract_keywords(content)

        with self._lock:
            scored = []
            for node in self._graph.get_all_nodes():
                score = self._score_node(node, keywords, task_type)
                if score > 0:
                    scored.append((score, node))

            # sorted() is stable, so equal scores keep graph insertion order
            scored = sorted(scored, key=lambda item: -item[0])[:max_nodes]
            selected = [node for _, node in scored]
            bundle = self._build_bundle(selected)

        logger.info(
            f"[CONTEXT] Selected {bundle['summary']['entity_count']} entities, "
            f"{bundle['summary']['relationship_count']} relationships "
            f"(keywords={keywords[:8]}, task_type={task_type})"
        )
        return bundle

    @staticmethod
    def _unpack_task_message(task_message: Any) -> Tuple[Optional[str], Optional[str]]:
        if task_message is None:
            return None, None
        if isinstance(task_message, str):
            return task_message, None
        if isinstance(task_message, Mapping):
            metadata = task_message.get("metadata")
            metadata = metadata if isinstance(metadata, Mapping) else {}
            task_type = _field(task_message, "task_type") or _field(metadata, "task_type")
            content = task_message.get("content")
            return (str(content) if content is not None else None), task_type
        return str(task_message), None

    def _score_node(self, node: GraphNode, keywords: List[str], task_type: Optional[str]) -> float:
        lexical = 0.0
        if keywords:
            node_text = json.dumps(node["data"], sort_keys=True, default=str).lower()
            matches = sum(1 for keyword in keywords if keyword in node_text)
            lexical = matches / len(keywords)

        bonus = self.type_bonuses.get((task_type, node["type"]), 0.0) if task_type else 0.0
        return lexical + bonus

    def _build_bundle(self, nodes: List[GraphNode]) -> ContextBundle:
        selected_ids = {node["id"] for node in nodes}

        entities = [
            ContextEntity(id=node["id"], type=node["type"], data=copy.deepcopy(node["data"]))
            for node in nodes
        ]
        relationships = [
            ContextRelationship(
                from_id=edge["from_id"],
                to_id=edge["to_id"],
                type=edge["type"],
                data=copy.deepcopy(edge.get("data")),
            )
            for edge in self._graph.get_all_edges()
            if edge["from_id"] in selected_ids and edge["to_id"] in selected_ids
        ]

        return ContextBundle(
            entities=entities,
            relationships=relationships,
            summary=ContextSummary(
                entity_count=len(entities),
                relationship_count=len(relationships),
                entity_types=dict(Counter(e["type"] for e in entities)),
                relationship_types=dict(Counter(r["type"] for r in relationships)),
            ),
        )

    # ------------------------------------------------------------------
    # Ancillary lookups
    # ------------------------------------------------------------------

    def get_related_issues(self, error: Any) -> List[RelatedIssue]:
        """
        Known error patterns found in the error text, followed by any
        external references returned by the reference search collaborator.
        """
        if not error:
            return []

        if isinstance(error, Mapping):
            message = str(error.get("message") or error)
        elif isinstance(error, BaseException):
            message = f"{type(error).__name__}: {error}"
        else:
            message = str(getattr(error, "message", None) or error)

        with self._lock:
            patterns = self._graph.find_nodes(
                lambda node: node["type"] == NodeType.ERROR_PATTERN.value
                and node["data"].get("message", "") in message
            )
            issues: List[RelatedIssue] = [
                RelatedIssue(
                    type="knownPattern",
                    message=node["data"]["message"],
                    solutions=list(node["data"].get("solutions", [])),
                )
                for node in patterns
            ]

        if self._reference_search is not None:
            try:
                issues.extend(self._reference_search(message) or [])
            except Exception as e:
                logger.warning(f"[ISSUES] External reference search failed: {e}")

        logger.debug(f"[ISSUES] {len(issues)} related issue(s) for: {message[:80]}")
        return issues

    def get_user_ability(self, user_id: str) -> UserAbility:
        """Ability profile for user_id, computed once and cached."""
        profile = self._profiles.get_or_compute(user_id, self._ability_policy)
        return copy.deepcopy(profile)
