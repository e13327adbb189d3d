"""
Graph Store - Generic directed, labeled multigraph

Holds opaque node and edge records with no domain knowledge:
- Nodes are upserted by id (attribute bags merge, never duplicate)
- Edges are appended; endpoints may be missing from the node table
  and identical edges accumulate
- Reads return the stored records in insertion order
"""

import copy
import threading
from collections import defaultdict
from typing import Callable, Dict, List, Optional

from task_orchestrator.models.graph import GraphNode, GraphEdge


class GraphStore:
    """
    In-memory multigraph with out/in edge indexes.

    Mutations and reads are guarded by a re-entrant lock so a single
    store can be shared between threads. Callers that need several
    operations to be atomic together must hold their own lock.
    """

    def __init__(self):
        self._lock = threading.RLock()
        self._nodes: Dict[str, GraphNode] = {}
        self._edges: List[GraphEdge] = []
        self._out: Dict[str, List[int]] = defaultdict(list)
        self._in: Dict[str, List[int]] = defaultdict(list)

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def add_node(self, node: GraphNode) -> GraphNode:
        """
        Insert a node, or merge it into the node with the same id.

        On merge the incoming type replaces the stored one and incoming
        attributes overwrite stored attributes key by key.

        Returns:
            The stored node
        """
        with self._lock:
            existing = self._nodes.get(node["id"])
            if existing is None:
                stored = GraphNode(
                    id=node["id"],
                    type=node["type"],
                    data=dict(node.get("data") or {}),
                )
                self._nodes[stored["id"]] = stored
                return stored

            existing["type"] = node["type"]
            existing["data"].update(node.get("data") or {})
            return existing

    def add_edge(self, edge: GraphEdge) -> GraphEdge:
        """Append an edge. Duplicates are kept as separate edges."""
        with self._lock:
            stored = GraphEdge(from_id=edge["from_id"], to_id=edge["to_id"], type=edge["type"])
            if edge.get("data") is not None:
                stored["data"] = dict(edge["data"])
            index = len(self._edges)
            self._edges.append(stored)
            self._out[stored["from_id"]].append(index)
            self._in[stored["to_id"]].append(index)
            return stored

    def clear(self) -> None:
        with self._lock:
            self._nodes.clear()
            self._edges.clear()
            self._out.clear()
            self._in.clear()

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_node(self, node_id: str) -> Optional[GraphNode]:
        with self._lock:
            return self._nodes.get(node_id)

    def has_node(self, node_id: str) -> bool:
        with self._lock:
            return node_id in self._nodes

    def get_all_nodes(self) -> List[GraphNode]:
        with self._lock:
            return list(self._nodes.values())

    def find_nodes(self, predicate: Callable[[GraphNode], bool]) -> List[GraphNode]:
        """Return nodes for which predicate(node) is true."""
        with self._lock:
            return [node for node in self._nodes.values() if predicate(node)]

    def get_all_edges(self) -> List[GraphEdge]:
        with self._lock:
            return list(self._edges)

    def get_edges_from(self, node_id: str, edge_type: Optional[str] = None) -> List[GraphEdge]:
        """Outgoing edges of node_id, optionally filtered by label."""
        with self._lock:
            edges = [self._edges[i] for i in self._out.get(node_id, [])]
        if edge_type is not None:
            edges = [e for e in edges if e["type"] == edge_type]
        return edges

    def get_edges_to(self, node_id: str, edge_type: Optional[str] = None) -> List[GraphEdge]:
        """Incoming edges of node_id, optionally filtered by label."""
        with self._lock:
            edges = [self._edges[i] for i in self._in.get(node_id, [])]
        if edge_type is not None:
            edges = [e for e in edges if e["type"] == edge_type]
        return edges

    def get_neighbors(self, node_id: str, edge_type: Optional[str] = None) -> List[str]:
        """Distinct target ids of node_id's outgoing edges, in edge order."""
        seen: Dict[str, None] = {}
        for edge in self.get_edges_from(node_id, edge_type):
            seen.setdefault(edge["to_id"], None)
        return list(seen)

    @property
    def node_count(self) -> int:
        with self._lock:
            return len(self._nodes)

    @property
    def edge_count(self) -> int:
        with self._lock:
            return len(self._edges)

    def __len__(self) -> int:
        return self.node_count

    def __contains__(self, node_id: str) -> bool:
        return self.has_node(node_id)

    # ------------------------------------------------------------------
    # Copies
    # ------------------------------------------------------------------

    def copy(self) -> "GraphStore":
        """Deep copy; later changes to either store do not affect the other."""
        clone = GraphStore()
        with self._lock:
            clone._nodes = copy.deepcopy(self._nodes)
            clone._edges = copy.deepcopy(self._edges)
            for index, edge in enumerate(clone._edges):
                clone._out[edge["from_id"]].append(index)
                clone._in[edge["to_id"]].append(index)
        return clone
