"""
Graph module - Knowledge graph node and edge records

Nodes share a common envelope (id, type, data). The data bag of each
built-in node kind has its own typed record; callers may store nodes
of other kinds with an arbitrary mapping.
"""

from typing import TypedDict, Optional, Any, Dict, List, Union, NotRequired


# ============================================================================
# NODE ATTRIBUTE RECORDS (one per built-in NodeType)
# ============================================================================

class FileNodeData(TypedDict):
    path: str
    language: Optional[str]
    size: Optional[int]
    last_modified: Optional[str]


class DependencyNodeData(TypedDict):
    name: str
    version: Optional[str]
    is_direct: bool


class CodeEntityNodeData(TypedDict):
    name: str
    entity_type: str             # class, function, method, ...
    file: str
    position: Any
    complexity: Optional[float]
    lines: Optional[int]


class FrameworkNodeData(TypedDict):
    name: str
    category: str                # ui, backend, ...
    ecosystem: str


class ErrorPatternNodeData(TypedDict):
    message: str
    language: str
    solutions: List[str]


NodeData = Union[
    FileNodeData,
    DependencyNodeData,
    CodeEntityNodeData,
    FrameworkNodeData,
    ErrorPatternNodeData,
    Dict[str, Any],
]


# ============================================================================
# ENVELOPES
# ============================================================================

class GraphNode(TypedDict):
    """Node envelope. `id` is unique within one graph instance."""
    id: str                      # Namespaced "<kind>:<key>"
    type: str                    # NodeType value or caller tag
    data: NodeData


class GraphEdge(TypedDict):
    """
    Directed, labeled edge. Endpoints need not exist in the node table
    and identical edges may repeat (multigraph).
    """
    from_id: str
    to_id: str
    type: str                    # EdgeType value or caller label
    data: NotRequired[Optional[Dict[str, Any]]]


def file_node_id(path: str) -> str:
    return f"file:{path}"


def dependency_node_id(name: str) -> str:
    return f"dependency:{name}"


def code_entity_node_id(entity_type: str, name: str, file: str, position: Any) -> str:
    return f"entity:{entity_type}:{name}:{file}:{position}"
