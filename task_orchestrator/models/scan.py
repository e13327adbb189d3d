"""
Scan module - Project-scan result bundle consumed by knowledge-graph ingestion

The bundle is produced by an external scanning collaborator. Every
field is optional; missing sections are treated as empty.
"""

from typing import TypedDict, Optional, Any, Dict, List


class ScannedFile(TypedDict, total=False):
    path: str
    language: Optional[str]
    size: Optional[int]
    last_modified: Optional[str]


class DependencyAnalysis(TypedDict, total=False):
    direct: Dict[str, Optional[str]]          # name -> version
    transitive: Dict[str, Optional[str]]      # name -> version
    dependency_tree: Dict[str, Any]           # name -> subtree mapping or leaf value


class CodeEntity(TypedDict, total=False):
    name: str
    type: str                                 # class, function, method, ...
    file: str
    position: Any
    complexity: Optional[float]
    lines: Optional[int]


class ImportEdge(TypedDict):
    source_file: str
    target_file: str


class FunctionCall(TypedDict, total=False):
    source_file: str
    source_function: str
    target_file: str
    target_function: str
    count: int


class ProjectScan(TypedDict, total=False):
    files: List[ScannedFile]
    dependencies: DependencyAnalysis
    code_entities: List[CodeEntity]
    imports: List[ImportEdge]
    function_calls: List[FunctionCall]
