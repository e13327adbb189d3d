"""
Core module - Graph store, knowledge graph, decomposer, compressor and workflow
"""

from .graph_store import GraphStore
from .knowledge_graph import KnowledgeGraphService
from .task_decomposer import TaskDecomposer
from .context_compressor import ContextCompressor
from .workflow import WorkflowBuilder
from .orchestrator import Orchestrator, AssistantAdapter, EchoAssistantAdapter

__all__ = [
    'GraphStore',
    'KnowledgeGraphService',
    'TaskDecomposer',
    'ContextCompressor',
    'WorkflowBuilder',
    'Orchestrator',
    'AssistantAdapter',
    'EchoAssistantAdapter',
]
