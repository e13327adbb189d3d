"""
Prompt builder module - Constructs prompts for LLM interactions
"""

from typing import Optional, Tuple

from task_orchestrator.models.enums import TaskType


class PromptBuilder:
    """
    Builds the prompts sent to the LLM when drafting a task decomposition.

    The requested output format is exactly the block grammar the
    TaskDecomposer parses, so the reply can be fed to it unchanged.
    """

    @staticmethod
    def build_decomposition_system_prompt() -> str:
        worker_types = ", ".join(t.value for t in TaskType)
        return f"""You are a planning assistant that breaks software requests into small tasks.

Respond ONLY with task blocks in this exact format, one block per task:

Task 1: <short task name>
Description: <what to do>
Dependencies: <comma-separated task numbers this task needs, or none>
Priority: <positive integer, 1 = normal>
Worker: <one of: {worker_types}>

Rules:
- Number tasks from 1 without gaps
- Only depend on tasks with a lower number
- Keep the field order shown above
"""

    @staticmethod
    def build_decomposition_prompt(
        prompt: str,
        project_type: Optional[str] = None,
        max_tasks: int = 8
    ) -> Tuple[str, str]:
        """
        Build the system and user prompts for a decomposition request.

        Args:
            prompt: The user's request
            project_type: Optional project type hint
            max_tasks: Upper bound on tasks requested

        Returns:
            (system_prompt, user_prompt)
        """
        project_hint = f"\nPROJECT TYPE: {project_type}" if project_type else ""
        user_prompt = f"""Break the following request into at most {max_tasks} tasks.
{project_hint}
REQUEST:
{prompt.strip()}
"""
        return PromptBuilder.build_decomposition_system_prompt(), user_prompt
