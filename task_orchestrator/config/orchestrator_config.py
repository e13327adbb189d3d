"""
Orchestrator configuration - Settings for decomposition, knowledge queries and compression
"""

from dataclasses import dataclass, field
from typing import Optional, Dict, Any
from enum import Enum
import os

from .env_config import EnvConfig


class LLMProvider(str, Enum):
    """Supported LLM providers"""
    ANTHROPIC = "anthropic"
    OPENAI = "openai"


@dataclass
class LLMConfig:
    """
    Configuration for the LLM used to draft task decompositions.

    Attributes:
        provider: LLM provider (anthropic, openai)
        model_name: Model identifier for the provider
        api_key: API key (reads LLM_API_KEY or the provider variable if not provided)
        base_url: Base URL for API (useful for proxies and compatible servers)
        temperature: Temperature for response generation (0-2)
        max_tokens: Maximum tokens in response
        timeout: Request timeout in seconds
    """

    provider: str = "anthropic"
    model_name: str = "claude-sonnet-4-20250514"
    api_key: Optional[str] = None
    base_url: Optional[str] = None
    temperature: float = 0.2
    max_tokens: Optional[int] = None
    timeout: int = 30

    def __post_init__(self):
        valid_providers = [p.value for p in LLMProvider]
        if self.provider not in valid_providers:
            raise ValueError(f"Provider must be one of {valid_providers}, got {self.provider}")

        if not 0 <= self.temperature <= 2:
            raise ValueError(f"Temperature must be between 0 and 2, got {self.temperature}")

        if self.timeout < 1:
            raise ValueError("timeout must be at least 1 second")

        if not self.api_key:
            env_var = self._get_env_var_for_provider()
            self.api_key = os.getenv('LLM_API_KEY') or os.getenv(env_var)
            if not self.api_key:
                raise ValueError(
                    f"API key not provided and LLM_API_KEY or {env_var} environment variable not set. "
                    f"Set it via config or environment: export LLM_API_KEY=your-key"
                )

    def _get_env_var_for_provider(self) -> str:
        env_vars = {
            "anthropic": "ANTHROPIC_API_KEY",
            "openai": "OPENAI_API_KEY",
        }
        return env_vars.get(self.provider, f"{self.provider.upper()}_API_KEY")

    @classmethod
    def from_env(cls, prefix: str = "ORCH_") -> Optional["LLMConfig"]:
        """
        Create LLM config from environment variables.

        Returns None when {prefix}LLM_PROVIDER is unset, which disables
        LLM-drafted decompositions.
        """
        provider = os.getenv(f"{prefix}LLM_PROVIDER")
        if not provider:
            return None
        return cls(
            provider=provider.lower(),
            model_name=os.getenv(f"{prefix}LLM_MODEL", "claude-sonnet-4-20250514"),
            api_key=os.getenv("LLM_API_KEY"),
            base_url=os.getenv("LLM_API_BASE_URL"),
            temperature=EnvConfig.get_float(f"{prefix}LLM_TEMPERATURE", 0.2),
            max_tokens=EnvConfig.get_int(f"{prefix}LLM_MAX_TOKENS", 0) or None,
            timeout=EnvConfig.get_int(f"{prefix}LLM_TIMEOUT", 30),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary, excluding API key for security."""
        return {
            "provider": self.provider,
            "model_name": self.model_name,
            "temperature": self.temperature,
            "max_tokens": self.max_tokens,
            "timeout": self.timeout,
            "base_url": self.base_url,
        }


@dataclass
class DecomposerConfig:
    """
    Attributes:
        strict_dependencies: Fail plans that reference tasks not in the plan
            instead of treating those references as satisfied
    """
    strict_dependencies: bool = False

    @classmethod
    def from_env(cls, prefix: str = "ORCH_") -> "DecomposerConfig":
        return cls(
            strict_dependencies=EnvConfig.get_bool(f"{prefix}STRICT_DEPENDENCIES"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {"strict_dependencies": self.strict_dependencies}


@dataclass
class KnowledgeGraphConfig:
    """
    Attributes:
        max_context_nodes: Default cap on entities returned by relevance queries
        task_type_bonus: Score added when a task type matches a node type
        profile_cache_size: Maximum cached user ability profiles
        profile_cache_ttl: Seconds before a cached profile expires (None = never)
    """
    max_context_nodes: int = 20
    task_type_bonus: float = 0.5
    profile_cache_size: int = 256
    profile_cache_ttl: Optional[float] = None

    def __post_init__(self):
        if self.max_context_nodes < 1:
            raise ValueError("max_context_nodes must be at least 1")
        if self.task_type_bonus < 0:
            raise ValueError("task_type_bonus cannot be negative")
        if self.profile_cache_size < 1:
            raise ValueError("profile_cache_size must be at least 1")
        if self.profile_cache_ttl is not None and self.profile_cache_ttl <= 0:
            raise ValueError("profile_cache_ttl must be positive")

    @classmethod
    def from_env(cls, prefix: str = "ORCH_") -> "KnowledgeGraphConfig":
        return cls(
            max_context_nodes=EnvConfig.get_int(f"{prefix}MAX_CONTEXT_NODES", 20),
            task_type_bonus=EnvConfig.get_float(f"{prefix}TASK_TYPE_BONUS", 0.5),
            profile_cache_size=EnvConfig.get_int(f"{prefix}PROFILE_CACHE_SIZE", 256),
            profile_cache_ttl=EnvConfig.get_optional_float(f"{prefix}PROFILE_CACHE_TTL"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "max_context_nodes": self.max_context_nodes,
            "task_type_bonus": self.task_type_bonus,
            "profile_cache_size": self.profile_cache_size,
            "profile_cache_ttl": self.profile_cache_ttl,
        }


@dataclass
class CompressionConfig:
    """
    Attributes:
        max_tokens: Default token budget for compressed contexts
        chars_per_token: Characters per token used by the estimator
        dependency_item_cost: Estimated tokens per dependency kept when compressing
        strict_budget: Raise when essential metadata alone exceeds the budget
            instead of clamping the component budget to zero
    """
    max_tokens: int = 2000
    chars_per_token: int = 4
    dependency_item_cost: int = 50
    strict_budget: bool = False

    def __post_init__(self):
        if self.max_tokens < 0:
            raise ValueError("max_tokens cannot be negative")
        if self.chars_per_token < 1:
            raise ValueError("chars_per_token must be at least 1")
        if self.dependency_item_cost < 1:
            raise ValueError("dependency_item_cost must be at least 1")

    @classmethod
    def from_env(cls, prefix: str = "ORCH_") -> "CompressionConfig":
        return cls(
            max_tokens=EnvConfig.get_int(f"{prefix}MAX_TOKENS", 2000),
            chars_per_token=EnvConfig.get_int(f"{prefix}CHARS_PER_TOKEN", 4),
            dependency_item_cost=EnvConfig.get_int(f"{prefix}DEPENDENCY_ITEM_COST", 50),
            strict_budget=EnvConfig.get_bool(f"{prefix}STRICT_BUDGET"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "max_tokens": self.max_tokens,
            "chars_per_token": self.chars_per_token,
            "dependency_item_cost": self.dependency_item_cost,
            "strict_budget": self.strict_budget,
        }


@dataclass
class OrchestratorConfig:
    """
    Configuration settings for the orchestrator.

    Attributes:
        llm: Optional LLM configuration; without it prompts are parsed as-is
        decomposer: Task decomposer settings
        knowledge_graph: Knowledge graph query settings
        compression: Context compression settings
        default_assistant: Assistant adapter used when none is requested
        per_task_context: Also build a compressed context for every task
        log_level: Logging level (default: 'INFO')
        debug: Enable debug mode with detailed logging (default: False)
    """

    llm: Optional[LLMConfig] = None
    decomposer: DecomposerConfig = field(default_factory=DecomposerConfig)
    knowledge_graph: KnowledgeGraphConfig = field(default_factory=KnowledgeGraphConfig)
    compression: CompressionConfig = field(default_factory=CompressionConfig)
    default_assistant: str = "echo"
    per_task_context: bool = False
    log_level: str = "INFO"
    debug: bool = False

    def __post_init__(self):
        if self.log_level not in ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']:
            raise ValueError(f"Invalid log_level: {self.log_level}")

        if not self.default_assistant:
            raise ValueError("default_assistant cannot be empty")

        if isinstance(self.llm, dict):
            self.llm = LLMConfig(**self.llm)
        if isinstance(self.decomposer, dict):
            self.decomposer = DecomposerConfig(**self.decomposer)
        if isinstance(self.knowledge_graph, dict):
            self.knowledge_graph = KnowledgeGraphConfig(**self.knowledge_graph)
        if isinstance(self.compression, dict):
            self.compression = CompressionConfig(**self.compression)

    @classmethod
    def from_env(cls, prefix: str = "ORCH_") -> "OrchestratorConfig":
        """
        Create configuration from environment variables.

        Example:
            export ORCH_LOG_LEVEL=DEBUG
            export ORCH_MAX_TOKENS=1500
            export ORCH_LLM_PROVIDER=anthropic
            export ANTHROPIC_API_KEY=sk-...
            config = OrchestratorConfig.from_env()
        """
        return cls(
            llm=LLMConfig.from_env(prefix),
            decomposer=DecomposerConfig.from_env(prefix),
            knowledge_graph=KnowledgeGraphConfig.from_env(prefix),
            compression=CompressionConfig.from_env(prefix),
            default_assistant=os.getenv(f"{prefix}DEFAULT_ASSISTANT", "echo"),
            per_task_context=EnvConfig.get_bool(f"{prefix}PER_TASK_CONTEXT"),
            log_level=os.getenv(f"{prefix}LOG_LEVEL", "INFO").upper(),
            debug=EnvConfig.get_bool(f"{prefix}DEBUG"),
        )

    @classmethod
    def from_dict(cls, config_dict: Dict[str, Any]) -> "OrchestratorConfig":
        """
        Create configuration from dictionary.

        Example:
            config = OrchestratorConfig.from_dict({
                "compression": {"max_tokens": 1500},
                "per_task_context": True,
            })
        """
        return cls(**dict(config_dict))

    def to_dict(self, include_secrets: bool = False) -> Dict[str, Any]:
        """
        Convert to dictionary.

        Args:
            include_secrets: Whether to include API keys (default: False)
        """
        result = {
            "llm": self.llm.to_dict() if self.llm else None,
            "decomposer": self.decomposer.to_dict(),
            "knowledge_graph": self.knowledge_graph.to_dict(),
            "compression": self.compression.to_dict(),
            "default_assistant": self.default_assistant,
            "per_task_context": self.per_task_context,
            "log_level": self.log_level,
            "debug": self.debug,
        }

        if include_secrets and self.llm and self.llm.api_key:
            result["llm"]["api_key"] = self.llm.api_key

        return result
