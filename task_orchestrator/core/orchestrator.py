"""
Orchestrator - Prompt to assistant handoff

Runs one orchestration per prompt through the LangGraph workflow:
decompose the prompt into tasks, order them, pull relevant knowledge,
compress it to the token budget and hand everything to an assistant
adapter.
"""

import json
import logging
import uuid
from typing import Any, Dict, List, Optional, Protocol, runtime_checkable

from langgraph.checkpoint.memory import MemorySaver

from task_orchestrator.config.orchestrator_config import OrchestratorConfig
from task_orchestrator.core.context_compressor import ContextCompressor
from task_orchestrator.core.knowledge_graph import KnowledgeGraphService
from task_orchestrator.core.task_decomposer import TaskDecomposer
from task_orchestrator.core.workflow import WorkflowBuilder
from task_orchestrator.models import (
    CompressedContext,
    OrchestrationResult,
    OrchestrationState,
    TaskRecord,
)
from task_orchestrator.utils.exceptions import (
    AssistantExecutionError,
    InvalidParameterError,
    LLMError,
    OrchestratorError,
)
from task_orchestrator.utils.llm_client import create_chat_model, invoke_text
from task_orchestrator.utils.logger import ROOT_LOGGER_NAME, get_logger
from task_orchestrator.utils.prompt_builder import PromptBuilder

logger = get_logger(__name__)

SINGLE_TASK_NAME_LENGTH = 80


@runtime_checkable
class AssistantAdapter(Protocol):
    """Receives the compressed context and ordered plan of a run."""

    name: str

    def execute(self, compressed_context: CompressedContext, tasks: List[TaskRecord]) -> str:
        ...


class EchoAssistantAdapter:
    """Local adapter that returns the handoff payload as JSON."""

    name = "echo"

    def execute(self, compressed_context: CompressedContext, tasks: List[TaskRecord]) -> str:
        return json.dumps(
            {
                "assistant": self.name,
                "context": compressed_context,
                "tasks": [
                    {
                        "task_id": t["task_id"],
                        "task_name": t["task_name"],
                        "task_type": t["task_type"],
                        "dependencies": t["dependencies"],
                    }
                    for t in tasks
                ],
            },
            indent=2,
            default=str,
        )


class Orchestrator:
    """
    Coordinates decomposition, knowledge retrieval, compression and handoff.

    Usage:
        orchestrator = Orchestrator()
        orchestrator.knowledge_graph.build_project_graph(scan)
        result = orchestrator.process_prompt(
            "Task 1: Scan the project\\nTask 2: Check packages\\nDependencies: 1",
            context_metadata={"user_id": "u-1", "project_type": "python"},
        )
        print(result["output"])
    """

    def __init__(
        self,
        config: Optional[OrchestratorConfig] = None,
        knowledge_graph: Optional[KnowledgeGraphService] = None,
        decomposer: Optional[TaskDecomposer] = None,
        compressor: Optional[ContextCompressor] = None,
        assistants: Optional[Dict[str, AssistantAdapter]] = None,
        llm: Any = None,
    ):
        """
        Args:
            config: Orchestrator settings (defaults when None)
            knowledge_graph: Shared knowledge graph service
            decomposer: Task decomposer
            compressor: Context compressor
            assistants: Extra assistant adapters keyed by name
            llm: LangChain chat model used to draft decompositions; built
                from config.llm when omitted
        """
        self.config = config or OrchestratorConfig()
        # Without an explicit config the level set from ORCH_LOG_LEVEL stands
        if config is not None:
            logging.getLogger(ROOT_LOGGER_NAME).setLevel("DEBUG" if self.config.debug else self.config.log_level)

        self.knowledge_graph = knowledge_graph or KnowledgeGraphService(self.config.knowledge_graph)
        self.decomposer = decomposer or TaskDecomposer(
            strict_dependencies=self.config.decomposer.strict_dependencies
        )
        self.compressor = compressor or ContextCompressor(self.config.compression)

        self.assistants: Dict[str, AssistantAdapter] = {EchoAssistantAdapter.name: EchoAssistantAdapter()}
        for name, adapter in (assistants or {}).items():
            self.register_assistant(name, adapter)

        if llm is None and self.config.llm is not None:
            llm = create_chat_model(self.config.llm)
        self.llm = llm

        self.workflow = WorkflowBuilder(self).build()
        self.memory = MemorySaver()
        self.app = self.workflow.compile(checkpointer=self.memory)

        logger.debug(f"Orchestrator initialized: {self.config.to_dict()}")

    def register_assistant(self, name: str, adapter: AssistantAdapter) -> None:
        if not callable(getattr(adapter, "execute", None)):
            raise InvalidParameterError(
                parameter_name="adapter",
                message=f"Assistant '{name}' has no execute() method",
                expected_type="AssistantAdapter",
                actual_value=type(adapter).__name__,
            )
        self.assistants[name] = adapter
        logger.info(f"[ASSISTANT] Registered assistant adapter: {name}")

    def process_prompt(
        self,
        prompt: str,
        assistant: Optional[str] = None,
        context_metadata: Optional[Dict[str, Any]] = None,
        thread_id: Optional[str] = None,
    ) -> OrchestrationResult:
        """
        Run one orchestration for a prompt.

        Args:
            prompt: The user's request, or a ready-made task breakdown
            assistant: Assistant adapter name (config default when None)
            context_metadata: Essential metadata (user_id, project_type,
                request_type, timestamp) kept in every compressed context
            thread_id: Checkpoint thread id. When None a random id is used and
                its checkpoints are deleted once the run ends

        Returns:
            OrchestrationResult with the plan, compressed context(s) and
            the assistant's output

        Raises:
            InvalidParameterError: Blank prompt or unknown assistant
            DependencyCycleError / DuplicateTaskError: Unschedulable plan
            AssistantExecutionError: The assistant adapter failed
        """
        if not prompt or not prompt.strip():
            raise InvalidParameterError(
                parameter_name="prompt",
                message="Prompt cannot be empty",
                expected_type="non-empty str",
                actual_value=prompt,
            )

        assistant = assistant or self.config.default_assistant
        if assistant not in self.assistants:
            raise InvalidParameterError(
                parameter_name="assistant",
                message=f"Unknown assistant '{assistant}'. Registered: {sorted(self.assistants)}",
                actual_value=assistant,
            )

        keep_checkpoints = thread_id is not None
        thread_id = thread_id or uuid.uuid4().hex
        initial_state = OrchestrationState(
            prompt=prompt,
            assistant=assistant,
            context_metadata=dict(context_metadata or {}),
            decomposition=None,
            tasks=[],
            plan=[],
            context=None,
            task_bundles={},
            compressed_context=None,
            task_contexts={},
            output=None,
        )

        logger.info("=" * 80)
        logger.info(f"ORCHESTRATION RUN {thread_id}")
        logger.info("=" * 80)
        logger.info(f"Prompt: {prompt[:100]}...")
        logger.info(f"Assistant: {assistant}")

        try:
            final_state = self.app.invoke(initial_state, {"configurable": {"thread_id": thread_id}})
        finally:
            if not keep_checkpoints:
                self.memory.delete_thread(thread_id)

        logger.info(f"[RUN] Completed {thread_id}: {len(final_state.get('plan', []))} task(s) handed to {assistant}")
        return OrchestrationResult(
            assistant=assistant,
            plan=final_state.get("plan", []),
            compressed_context=final_state.get("compressed_context"),
            task_contexts=final_state.get("task_contexts", {}),
            output=final_state.get("output"),
        )

    # ------------------------------------------------------------------
    # Workflow nodes
    # ------------------------------------------------------------------

    def _decompose(self, state: OrchestrationState) -> Dict[str, Any]:
        prompt = state["prompt"]
        decomposition = prompt
        tasks: List[TaskRecord] = []

        if self.llm is not None:
            try:
                decomposition = self._draft_decomposition(prompt, state["context_metadata"])
                tasks = self.decomposer.parse_decomposition(decomposition)
                if not tasks:
                    logger.warning("[DECOMPOSE] LLM breakdown had no parseable tasks; parsing prompt instead")
            except LLMError as e:
                logger.warning(f"[DECOMPOSE] LLM decomposition failed, parsing prompt instead: {e}")
                decomposition = prompt

        if not tasks:
            decomposition = prompt
            tasks = self.decomposer.parse_decomposition(prompt)

        if not tasks:
            first_line = prompt.strip().splitlines()[0]
            logger.info("[DECOMPOSE] No task blocks found; treating the prompt as a single task")
            tasks = self.decomposer.parse_decomposition([{
                "task_name": first_line[:SINGLE_TASK_NAME_LENGTH],
                "description": prompt.strip(),
            }])

        return {"decomposition": decomposition, "tasks": tasks}

    def _draft_decomposition(self, prompt: str, metadata: Dict[str, Any]) -> str:
        project_type = metadata.get("project_type") or metadata.get("projectType")
        system_prompt, user_prompt = PromptBuilder.build_decomposition_prompt(prompt, project_type)
        provider = self.config.llm.provider if self.config.llm else "custom"
        logger.info("[DECOMPOSE] Calling LLM to draft task breakdown...")
        return invoke_text(self.llm, system_prompt, user_prompt, provider=provider)

    def _plan(self, state: OrchestrationState) -> Dict[str, Any]:
        return {"plan": self.decomposer.build_execution_plan(state["tasks"])}

    def _retrieve_context(self, state: OrchestrationState) -> Dict[str, Any]:
        update: Dict[str, Any] = {"context": self.knowledge_graph.get_relevant_context(state["prompt"])}

        if self.config.per_task_context:
            update["task_bundles"] = {
                task["task_id"]: self.knowledge_graph.get_relevant_context(task)
                for task in state["plan"]
            }
        return update

    def _compress_context(self, state: OrchestrationState) -> Dict[str, Any]:
        metadata = state["context_metadata"]
        compressed = self.compressor.compress({**metadata, "knowledge": state["context"]})

        task_contexts = {
            task_id: self.compressor.compress({**metadata, "knowledge": bundle})
            for task_id, bundle in (state.get("task_bundles") or {}).items()
        }
        return {"compressed_context": compressed, "task_contexts": task_contexts}

    def _dispatch(self, state: OrchestrationState) -> Dict[str, Any]:
        name = state["assistant"]
        adapter = self.assistants[name]
        logger.info(f"[DISPATCH] Handing {len(state['plan'])} task(s) to '{name}'")
        try:
            output = adapter.execute(state["compressed_context"], state["plan"])
        except OrchestratorError:
            raise
        except Exception as e:
            raise AssistantExecutionError(name, "Adapter raised during execute()", e)
        return {"output": output}
