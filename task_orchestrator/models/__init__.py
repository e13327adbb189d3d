"""
Models module - Data structures and enums for the Task Orchestrator
"""

from .enums import TaskStatus, TaskType, NodeType, EdgeType, ComponentType
from .task import TaskRecord
from .graph import (
    GraphNode,
    GraphEdge,
    FileNodeData,
    DependencyNodeData,
    CodeEntityNodeData,
    FrameworkNodeData,
    ErrorPatternNodeData,
    file_node_id,
    dependency_node_id,
    code_entity_node_id,
)
from .scan import (
    ProjectScan,
    ScannedFile,
    DependencyAnalysis,
    CodeEntity,
    ImportEdge,
    FunctionCall,
)
from .context import (
    ContextBundle,
    ContextEntity,
    ContextRelationship,
    ContextSummary,
    ContextComponent,
    CodeComponent,
    DependenciesComponent,
    DependencyItem,
    DocumentationComponent,
    CompressedContext,
    EssentialMetadata,
    UserAbility,
    RelatedIssue,
    ESSENTIAL_FIELDS,
    empty_context_bundle,
)
from .state import OrchestrationState, OrchestrationResult

__all__ = [
    'TaskStatus',
    'TaskType',
    'NodeType',
    'EdgeType',
    'ComponentType',
    'TaskRecord',
    'GraphNode',
    'GraphEdge',
    'FileNodeData',
    'DependencyNodeData',
    'CodeEntityNodeData',
    'FrameworkNodeData',
    'ErrorPatternNodeData',
    'file_node_id',
    'dependency_node_id',
    'code_entity_node_id',
    'ProjectScan',
    'ScannedFile',
    'DependencyAnalysis',
    'CodeEntity',
    'ImportEdge',
    'FunctionCall',
    'ContextBundle',
    'ContextEntity',
    'ContextRelationship',
    'ContextSummary',
    'ContextComponent',
    'CodeComponent',
    'DependenciesComponent',
    'DependencyItem',
    'DocumentationComponent',
    'CompressedContext',
    'EssentialMetadata',
    'UserAbility',
    'RelatedIssue',
    'ESSENTIAL_FIELDS',
    'empty_context_bundle',
    'OrchestrationState',
    'OrchestrationResult',
]
