"""
Utilities module - Logging, errors and collaborators used by the core
"""

from .logger import get_logger, configure_logging
from .token_counter import TokenCounter
from .summarizer import Summarizer
from .context_prioritizer import ContextPrioritizer
from .profile_cache import ProfileCache
from .prompt_builder import PromptBuilder
from .llm_client import create_chat_model, invoke_text

from .exceptions import (
    OrchestratorError,
    ConfigurationError,
    MissingDependencyError,
    ValidationError,
    InvalidParameterError,
    DuplicateTaskError,
    PlanningError,
    DependencyCycleError,
    DanglingDependencyError,
    CompressionError,
    TokenBudgetError,
    ExecutionError,
    AssistantExecutionError,
    LLMError,
)

__all__ = [
    'get_logger',
    'configure_logging',
    'TokenCounter',
    'Summarizer',
    'ContextPrioritizer',
    'ProfileCache',
    'PromptBuilder',
    'create_chat_model',
    'invoke_text',

    # Exception hierarchy
    'OrchestratorError',
    'ConfigurationError',
    'MissingDependencyError',
    'ValidationError',
    'InvalidParameterError',
    'DuplicateTaskError',
    'PlanningError',
    'DependencyCycleError',
    'DanglingDependencyError',
    'CompressionError',
    'TokenBudgetError',
    'ExecutionError',
    'AssistantExecutionError',
    'LLMError',
]
