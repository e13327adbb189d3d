#!/usr/bin/env python
"""
Task Orchestrator - Demo Execution

This script runs one prompt through the orchestrator against a small
sample project scan.
"""

import json
import sys
from datetime import datetime

from task_orchestrator import Orchestrator
from task_orchestrator.config import EnvConfig, OrchestratorConfig
from task_orchestrator.utils.exceptions import OrchestratorError

SAMPLE_SCAN = {
    "files": [
        {"path": "app.py", "language": "python", "size": 1200},
        {"path": "models.py", "language": "python", "size": 800},
    ],
    "dependencies": {
        "direct": {"flask": "2.3.0", "sqlalchemy": "2.0.0"},
        "transitive": {"werkzeug": "2.3.0", "jinja2": "3.1.2"},
        "dependency_tree": {"flask": {"werkzeug": {}, "jinja2": {}}},
    },
    "code_entities": [
        {"file": "app.py", "name": "create_app", "type": "function", "position": 12},
        {"file": "models.py", "name": "User", "type": "class", "position": 4},
    ],
    "imports": [{"source_file": "app.py", "target_file": "models.py"}],
    "function_calls": [{
        "source_file": "app.py",
        "source_function": "create_app",
        "target_file": "models.py",
        "target_function": "User",
    }],
}

SAMPLE_PROMPT = """Task 1: Scan the project
Description: Inventory files and modules

Task 2: Check flask packages
Description: Review flask and werkzeug versions for known issues
Dependencies: 1
Priority: 2

Task 3: Suggest improvements
Dependencies: 1, 2
Worker: innovation-suggestion
"""


def main():
    """Main entry point for the orchestrator demo."""
    print("=" * 70)
    print("Task Orchestrator - Demo Execution")
    print("=" * 70)
    print()

    print("Step 1: Loading configuration from .env...")
    EnvConfig.load_env_file()
    config = OrchestratorConfig.from_env(prefix="ORCH_")
    print("        Configuration:")
    print(f"          - LLM: {config.llm.provider if config.llm else 'disabled (prompt parsed as-is)'}")
    print(f"          - Token budget: {config.compression.max_tokens}")
    print(f"          - Per-task context: {config.per_task_context}")
    print(f"          - Assistant: {config.default_assistant}")
    for key, value in EnvConfig.describe().items():
        print(f"          - {key}={value}")
    print()

    print("Step 2: Building project knowledge graph...")
    orchestrator = Orchestrator(config)
    orchestrator.knowledge_graph.build_project_graph(SAMPLE_SCAN)
    graph = orchestrator.knowledge_graph.graph
    print(f"        {graph.node_count} nodes, {graph.edge_count} edges")
    print()

    print("Step 3: Running orchestration...")
    try:
        result = orchestrator.process_prompt(
            SAMPLE_PROMPT,
            context_metadata={
                "user_id": "demo-user",
                "project_type": "python",
                "request_type": "review",
                "timestamp": datetime.now().isoformat(),
            },
            thread_id="demo-run-001",
        )
    except OrchestratorError as e:
        print(f"Orchestration failed: {e}")
        return 1

    print()
    print("=" * 70)
    print("Execution Plan")
    print("=" * 70)
    for i, task in enumerate(result["plan"], 1):
        deps = ", ".join(task["dependencies"]) or "none"
        print(f"  {i}. [{task['task_id']}] {task['task_name']} ({task['task_type']}, depends on: {deps})")

    print()
    print("Compressed context components:")
    for component in result["compressed_context"]["components"]:
        marker = " (compressed)" if component.get("is_compressed") else ""
        print(f"  - {component['type']}{marker}")

    print()
    print("Assistant output:")
    print(result["output"])

    with open("demo_result.json", "w", encoding="utf-8") as f:
        json.dump(result, f, indent=2, default=str)
    print()
    print("Full result written to demo_result.json")
    return 0


if __name__ == "__main__":
    sys.exit(main())
