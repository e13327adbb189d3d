"""
Standardized Exception Hierarchy for the Task Orchestrator

Exception Categories:
- Configuration Errors: Issues with settings, environment, or optional packages
- Validation Errors: Invalid parameters or task records
- Planning Errors: Structural problems in a task dependency graph
- Compression Errors: Token budget violations
- Execution Errors: Failures in external collaborators (LLMs, assistants)

Usage:
    from task_orchestrator.utils.exceptions import (
        OrchestratorError,
        DependencyCycleError,
    )

    try:
        plan = decomposer.build_execution_plan(tasks)
    except DependencyCycleError as e:
        logger.error(f"Cannot schedule plan: {e}")
"""

from typing import Optional, Any, Dict, List


# ============================================================================
# Base Exception
# ============================================================================

class OrchestratorError(Exception):
    """
    Base exception for all orchestrator errors.

    All custom exceptions inherit from this class to enable
    centralized error handling and logging.
    """

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        """
        Initialize base exception.

        Args:
            message: Human-readable error message
            error_code: Optional error code for categorization
            details: Optional dictionary with additional error context
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for serialization."""
        return {
            "error_type": self.__class__.__name__,
            "error_code": self.error_code,
            "message": self.message,
            "details": self.details
        }

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


# ============================================================================
# Configuration Errors
# ============================================================================

class ConfigurationError(OrchestratorError):
    """Raised when there's an issue with configuration or settings."""

    def __init__(
        self,
        setting_name: str,
        message: str,
        expected_value: Optional[Any] = None,
        actual_value: Optional[Any] = None
    ):
        details = {"setting_name": setting_name}
        if expected_value is not None:
            details["expected_value"] = str(expected_value)
        if actual_value is not None:
            details["actual_value"] = str(actual_value)

        super().__init__(
            message=f"Configuration error for '{setting_name}': {message}",
            error_code="CONFIG_ERROR",
            details=details
        )
        self.setting_name = setting_name


class MissingDependencyError(OrchestratorError):
    """Raised when an optional package needed at runtime is not installed."""

    def __init__(
        self,
        package_name: str,
        install_command: Optional[str] = None,
        purpose: Optional[str] = None
    ):
        message = f"Required package '{package_name}' is not installed"
        if purpose:
            message += f" (needed for {purpose})"
        if install_command:
            message += f"\nInstall with: {install_command}"

        super().__init__(
            message=message,
            error_code="MISSING_DEPENDENCY",
            details={
                "package_name": package_name,
                "install_command": install_command,
                "purpose": purpose
            }
        )
        self.package_name = package_name


# ============================================================================
# Validation Errors
# ============================================================================

class ValidationError(OrchestratorError):
    """Base class for validation errors."""
    pass


class InvalidParameterError(ValidationError):
    """Raised when a parameter value is invalid."""

    def __init__(
        self,
        parameter_name: str,
        message: str,
        expected_type: Optional[str] = None,
        actual_value: Optional[Any] = None
    ):
        details = {"parameter_name": parameter_name}
        if expected_type:
            details["expected_type"] = expected_type
        if actual_value is not None:
            details["actual_value"] = str(actual_value)

        super().__init__(
            message=f"Invalid parameter '{parameter_name}': {message}",
            error_code="INVALID_PARAM",
            details=details
        )
        self.parameter_name = parameter_name


class DuplicateTaskError(ValidationError):
    """Raised when two tasks in one plan share a task id."""

    def __init__(self, task_id: str):
        super().__init__(
            message=f"Duplicate task id in plan: '{task_id}'",
            error_code="DUPLICATE_TASK",
            details={"task_id": task_id}
        )
        self.task_id = task_id


# ============================================================================
# Planning Errors
# ============================================================================

class PlanningError(OrchestratorError):
    """Base class for execution-plan construction errors."""
    pass


class DependencyCycleError(PlanningError):
    """
    Raised when the task dependency graph contains a cycle.

    Attributes:
        task_id: Task at which the cycle was detected
        cycle: Task ids forming the cycle, closed on task_id
    """

    def __init__(self, task_id: str, cycle: Optional[List[str]] = None):
        cycle = cycle or [task_id]
        super().__init__(
            message=f"Dependency cycle detected involving task {task_id}",
            error_code="DEPENDENCY_CYCLE",
            details={"task_id": task_id, "cycle": " -> ".join(cycle)}
        )
        self.task_id = task_id
        self.cycle = cycle


class DanglingDependencyError(PlanningError):
    """Raised in strict mode when a task depends on a task absent from the plan."""

    def __init__(self, task_id: str, missing: List[str]):
        super().__init__(
            message=f"Task {task_id} depends on tasks not in the plan: {', '.join(missing)}",
            error_code="DANGLING_DEPENDENCY",
            details={"task_id": task_id, "missing": missing}
        )
        self.task_id = task_id
        self.missing = missing


# ============================================================================
# Compression Errors
# ============================================================================

class CompressionError(OrchestratorError):
    """Base class for context compression errors."""
    pass


class TokenBudgetError(CompressionError):
    """Raised in strict mode when essential metadata alone exceeds the token budget."""

    def __init__(self, max_tokens: int, essential_tokens: int):
        super().__init__(
            message=(
                f"Essential metadata needs {essential_tokens} tokens "
                f"but the budget is {max_tokens}"
            ),
            error_code="TOKEN_BUDGET",
            details={"max_tokens": max_tokens, "essential_tokens": essential_tokens}
        )
        self.max_tokens = max_tokens
        self.essential_tokens = essential_tokens


# ============================================================================
# Execution Errors
# ============================================================================

class ExecutionError(OrchestratorError):
    """Base class for execution-time errors."""
    pass


class AssistantExecutionError(ExecutionError):
    """Raised when an assistant adapter fails to execute a handoff."""

    def __init__(
        self,
        assistant: str,
        message: str,
        original_error: Optional[Exception] = None
    ):
        full_message = f"[{assistant}] Assistant execution failed: {message}"
        if original_error:
            full_message += f"\nCaused by: {str(original_error)}"

        super().__init__(
            message=full_message,
            error_code="ASSISTANT_EXEC_ERROR",
            details={
                "assistant": assistant,
                "original_error": str(original_error) if original_error else None
            }
        )
        self.assistant = assistant
        self.original_error = original_error


class LLMError(ExecutionError):
    """Raised when LLM operations fail."""

    def __init__(
        self,
        provider: str,
        message: str,
        model: Optional[str] = None,
        original_error: Optional[Exception] = None
    ):
        full_message = f"LLM error with provider '{provider}': {message}"
        if model:
            full_message += f" (model: {model})"

        super().__init__(
            message=full_message,
            error_code="LLM_ERROR",
            details={
                "provider": provider,
                "model": model,
                "original_error": str(original_error) if original_error else None
            }
        )
        self.provider = provider
        self.model = model
        self.original_error = original_error


__all__ = [
    "OrchestratorError",
    "ConfigurationError",
    "MissingDependencyError",
    "ValidationError",
    "InvalidParameterError",
    "DuplicateTaskError",
    "PlanningError",
    "DependencyCycleError",
    "DanglingDependencyError",
    "CompressionError",
    "TokenBudgetError",
    "ExecutionError",
    "AssistantExecutionError",
    "LLMError",
]
