"""
State module - LangGraph state for one orchestration run
"""

from typing import TypedDict, Optional, Any, Dict, List

from .task import TaskRecord
from .context import ContextBundle, CompressedContext


class OrchestrationState(TypedDict):
    """
    Workflow state threaded through the orchestration graph.

    Each node returns a partial update; LangGraph merges it into the state.
    """
    prompt: str
    assistant: str
    context_metadata: Dict[str, Any]
    decomposition: Optional[str]             # Raw breakdown text (LLM output or prompt)
    tasks: List[TaskRecord]                  # Parsed, unordered
    plan: List[TaskRecord]                   # Dependency-respecting order
    context: Optional[ContextBundle]          # Whole-prompt knowledge bundle
    task_bundles: Dict[str, ContextBundle]    # Per-task bundles (per_task_context only)
    compressed_context: Optional[CompressedContext]
    task_contexts: Dict[str, CompressedContext]
    output: Optional[str]


class OrchestrationResult(TypedDict):
    """Summary returned to the caller of Orchestrator.process_prompt."""
    assistant: str
    plan: List[TaskRecord]
    compressed_context: Optional[CompressedContext]
    task_contexts: Dict[str, CompressedContext]
    output: Optional[str]
