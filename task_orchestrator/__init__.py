"""
Task Orchestrator - Decomposition, knowledge retrieval and context compression

Turns a natural-language task breakdown into a dependency-ordered plan,
pulls the most relevant project knowledge for it from a knowledge graph,
and compresses that knowledge into a token budget before handing it to
an assistant.

Features:
- Structured (JSON) or free-text (`Task N:` blocks) task breakdowns
- Dependency-respecting execution plans with cycle detection
- Project knowledge graph built from scan results
- Token-bounded context compression with essential metadata preserved
- Optional LLM-drafted breakdowns (Anthropic, OpenAI)
- LangGraph workflow with checkpointing

Installation:
pip install langgraph langchain-anthropic langchain-core python-dotenv

Example:
    >>> from task_orchestrator import Orchestrator, OrchestratorConfig, EnvConfig
    >>>
    >>> EnvConfig.load_env_file()
    >>> orchestrator = Orchestrator(OrchestratorConfig.from_env(prefix="ORCH_"))
    >>> result = orchestrator.process_prompt(
    ...     "Task 1: Scan the project\\nTask 2: Check packages\\nDependencies: 1",
    ...     context_metadata={"user_id": "u-1", "project_type": "python"},
    ... )
    >>> [t["task_id"] for t in result["plan"]]
    ['task-1', 'task-2']
"""

__version__ = "1.0.0"
__all__ = [
    'Orchestrator',
    'OrchestratorConfig',
    'EnvConfig',
    'GraphStore',
    'KnowledgeGraphService',
    'TaskDecomposer',
    'ContextCompressor',
    'TaskRecord',
    'TaskStatus',
    'TaskType',
]

from task_orchestrator.core import (
    Orchestrator,
    GraphStore,
    KnowledgeGraphService,
    TaskDecomposer,
    ContextCompressor,
)
from task_orchestrator.config import OrchestratorConfig, EnvConfig
from task_orchestrator.models import TaskRecord, TaskStatus, TaskType
