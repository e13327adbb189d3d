"""
Integration tests for the orchestration workflow.

Runs prompts end to end through the LangGraph workflow with the echo
adapter, recording adapters and LangChain's fake chat model.
"""

import json
import logging
import unittest

from langchain_core.language_models.fake_chat_models import FakeListChatModel

from task_orchestrator.config import OrchestratorConfig, CompressionConfig
from task_orchestrator.core.knowledge_graph import KnowledgeGraphService
from task_orchestrator.core.orchestrator import (
    AssistantAdapter,
    EchoAssistantAdapter,
    Orchestrator,
)
from task_orchestrator.models import TaskType
from task_orchestrator.utils.logger import ROOT_LOGGER_NAME
from task_orchestrator.utils.exceptions import (
    AssistantExecutionError,
    DependencyCycleError,
    InvalidParameterError,
)

BREAKDOWN = "Task 1: Scan the project\nTask 2: Check flask packages\nDependencies: 1"


class RecordingAdapter:
    name = "recorder"

    def __init__(self):
        self.calls = []

    def execute(self, compressed_context, tasks):
        self.calls.append((compressed_context, tasks))
        return "recorded"


class BrokenAdapter:
    name = "broken"

    def execute(self, compressed_context, tasks):
        raise RuntimeError("backend offline")


class BrokenLLM:
    def invoke(self, messages, **kwargs):
        raise RuntimeError("connection refused")


def task_ids(result):
    return [t["task_id"] for t in result["plan"]]


class TestOrchestratorRun(unittest.TestCase):

    def setUp(self):
        self.knowledge = KnowledgeGraphService()
        self.knowledge.build_project_graph({
            "files": [{"path": "app.py", "language": "python"}],
            "dependencies": {"direct": {"flask": "2.3.0"}, "transitive": {"werkzeug": "2.3.0"}},
        })
        self.orchestrator = Orchestrator(knowledge_graph=self.knowledge)

    def test_echo_run(self):
        result = self.orchestrator.process_prompt(
            BREAKDOWN,
            context_metadata={"user_id": "u1", "project_type": "python"},
        )

        self.assertEqual(result["assistant"], "echo")
        self.assertEqual(task_ids(result), ["task-1", "task-2"])
        self.assertEqual(result["compressed_context"]["user_id"], "u1")
        self.assertEqual(result["compressed_context"]["project_type"], "python")
        self.assertEqual(result["task_contexts"], {})

        payload = json.loads(result["output"])
        self.assertEqual(payload["assistant"], "echo")
        self.assertEqual([t["task_id"] for t in payload["tasks"]], ["task-1", "task-2"])
        self.assertEqual(payload["tasks"][1]["dependencies"], ["task-1"])

    def test_knowledge_reaches_compressed_context(self):
        result = self.orchestrator.process_prompt(BREAKDOWN)

        types = [c["type"] for c in result["compressed_context"]["components"]]
        self.assertIn("dependencies", types)

    def test_prompt_without_blocks_becomes_single_task(self):
        result = self.orchestrator.process_prompt("Refactor the login flow\nKeep the API stable")

        self.assertEqual(len(result["plan"]), 1)
        task = result["plan"][0]
        self.assertEqual(task["task_id"], "task-1")
        self.assertEqual(task["task_name"], "Refactor the login flow")
        self.assertEqual(task["description"], "Refactor the login flow\nKeep the API stable")

    def test_per_task_context(self):
        orchestrator = Orchestrator(
            OrchestratorConfig(per_task_context=True, compression=CompressionConfig(max_tokens=500)),
            knowledge_graph=self.knowledge,
        )

        result = orchestrator.process_prompt(BREAKDOWN, context_metadata={"userId": "u2"})

        self.assertEqual(set(result["task_contexts"]), {"task-1", "task-2"})
        for compressed in result["task_contexts"].values():
            self.assertEqual(compressed["user_id"], "u2")

    def test_custom_adapter_receives_plan(self):
        recorder = RecordingAdapter()
        orchestrator = Orchestrator(knowledge_graph=self.knowledge, assistants={"recorder": recorder})

        result = orchestrator.process_prompt(BREAKDOWN, assistant="recorder")

        self.assertEqual(result["output"], "recorded")
        compressed, tasks = recorder.calls[0]
        self.assertEqual([t["task_id"] for t in tasks], ["task-1", "task-2"])
        self.assertIn("components", compressed)

    def test_adapter_failure(self):
        orchestrator = Orchestrator(assistants={"broken": BrokenAdapter()})

        with self.assertRaises(AssistantExecutionError):
            orchestrator.process_prompt(BREAKDOWN, assistant="broken")

    def test_cycle_fails_the_run(self):
        with self.assertRaises(DependencyCycleError):
            self.orchestrator.process_prompt("Task 1: A\nDependencies: 2\nTask 2: B\nDependencies: 1")

    def test_unknown_assistant(self):
        with self.assertRaises(InvalidParameterError):
            self.orchestrator.process_prompt(BREAKDOWN, assistant="nobody")

    def test_blank_prompt(self):
        with self.assertRaises(InvalidParameterError):
            self.orchestrator.process_prompt("   ")

    def test_register_invalid_adapter(self):
        with self.assertRaises(InvalidParameterError):
            self.orchestrator.register_assistant("bad", object())

    def test_echo_adapter_satisfies_protocol(self):
        self.assertIsInstance(EchoAssistantAdapter(), AssistantAdapter)
        self.assertIsInstance(RecordingAdapter(), AssistantAdapter)


class TestRunHousekeeping(unittest.TestCase):

    def setUp(self):
        self.package_logger = logging.getLogger(ROOT_LOGGER_NAME)
        self.saved_level = self.package_logger.level

    def tearDown(self):
        self.package_logger.setLevel(self.saved_level)

    def test_default_config_keeps_logger_level(self):
        self.package_logger.setLevel(logging.DEBUG)

        Orchestrator()

        self.assertEqual(self.package_logger.level, logging.DEBUG)

    def test_explicit_config_sets_logger_level(self):
        self.package_logger.setLevel(logging.DEBUG)

        Orchestrator(OrchestratorConfig(log_level="WARNING"))

        self.assertEqual(self.package_logger.level, logging.WARNING)

    def test_anonymous_runs_leave_no_checkpoints(self):
        orchestrator = Orchestrator()

        orchestrator.process_prompt(BREAKDOWN)
        orchestrator.process_prompt(BREAKDOWN)

        self.assertEqual(list(orchestrator.memory.list(None)), [])

    def test_named_thread_keeps_its_checkpoints(self):
        orchestrator = Orchestrator()

        orchestrator.process_prompt(BREAKDOWN, thread_id="review-1")

        state = orchestrator.app.get_state({"configurable": {"thread_id": "review-1"}})
        self.assertEqual(task_ids(state.values), ["task-1", "task-2"])

    def test_failed_anonymous_run_leaves_no_checkpoints(self):
        orchestrator = Orchestrator(assistants={"broken": BrokenAdapter()})

        with self.assertRaises(AssistantExecutionError):
            orchestrator.process_prompt(BREAKDOWN, assistant="broken")

        self.assertEqual(list(orchestrator.memory.list(None)), [])


class TestLLMDecomposition(unittest.TestCase):

    def test_llm_breakdown_is_parsed(self):
        llm = FakeListChatModel(responses=[
            "Here you go:\n\nTask 1: Scan the project\nTask 2: Review lockfile\n"
            "Dependencies: 1\nWorker: dependency-check"
        ])
        orchestrator = Orchestrator(llm=llm)

        result = orchestrator.process_prompt("Make sure our packages are healthy")

        self.assertEqual(task_ids(result), ["task-1", "task-2"])
        self.assertEqual(result["plan"][1]["task_type"], TaskType.DEPENDENCY_CHECK.value)

    def test_llm_failure_falls_back_to_prompt(self):
        orchestrator = Orchestrator(llm=BrokenLLM())

        result = orchestrator.process_prompt(BREAKDOWN)

        self.assertEqual(task_ids(result), ["task-1", "task-2"])

    def test_unparseable_llm_reply_falls_back_to_prompt(self):
        llm = FakeListChatModel(responses=["I cannot help with that."])
        orchestrator = Orchestrator(llm=llm)

        result = orchestrator.process_prompt(BREAKDOWN)

        self.assertEqual(task_ids(result), ["task-1", "task-2"])


if __name__ == '__main__':
    unittest.main()
