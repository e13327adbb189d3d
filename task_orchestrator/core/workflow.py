"""
Workflow module - LangGraph workflow construction for orchestration runs
"""

from typing import Literal

from langgraph.graph import StateGraph, END

from task_orchestrator.models import OrchestrationState
from task_orchestrator.utils.logger import get_logger

logger = get_logger(__name__)


class WorkflowBuilder:
    """
    Builds the LangGraph workflow for one prompt-to-handoff run.

    Node callables live on the Orchestrator; this class only wires them.
    """

    def __init__(self, orchestrator):
        """
        Args:
            orchestrator: The Orchestrator instance providing node callables
        """
        self.orchestrator = orchestrator

    def build(self) -> StateGraph:
        """
        Build the workflow graph.

        Workflow:
        1. Decompose → Draft (LLM) and parse the task breakdown
        2. Build Plan → Order tasks by dependency
        3. Retrieve Context → Query the knowledge graph
        4. Compress Context → Fit knowledge into the token budget
        5. Dispatch → Hand off to the assistant adapter

        An empty plan ends the run after planning.

        Returns:
            Configured (uncompiled) StateGraph instance
        """
        workflow = StateGraph(OrchestrationState)

        workflow.add_node("decompose", self.orchestrator._decompose)
        workflow.add_node("build_plan", self.orchestrator._plan)
        workflow.add_node("retrieve_context", self.orchestrator._retrieve_context)
        workflow.add_node("compress_context", self.orchestrator._compress_context)
        workflow.add_node("dispatch", self.orchestrator._dispatch)

        workflow.set_entry_point("decompose")

        workflow.add_edge("decompose", "build_plan")
        workflow.add_conditional_edges(
            "build_plan",
            self._route_after_plan,
            {
                "retrieve_context": "retrieve_context",
                "complete": END,
            }
        )
        workflow.add_edge("retrieve_context", "compress_context")
        workflow.add_edge("compress_context", "dispatch")
        workflow.add_edge("dispatch", END)

        logger.debug("Orchestration workflow graph built")
        return workflow

    def _route_after_plan(self, state: OrchestrationState) -> Literal["retrieve_context", "complete"]:
        """Stop when there is nothing to hand off."""
        if not state.get("plan"):
            logger.warning("[WORKFLOW] Empty execution plan; ending run without dispatch")
            return "complete"
        return "retrieve_context"
