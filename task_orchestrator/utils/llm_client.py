"""
LLM Client - LangChain chat model construction and text invocation

Example usage:
    from task_orchestrator.config import LLMConfig
    from task_orchestrator.utils.llm_client import create_chat_model, invoke_text

    model = create_chat_model(LLMConfig(provider="anthropic"))
    reply = invoke_text(model, "You are a planner.", "Break this down: ...")
"""

from typing import Any, TYPE_CHECKING

from langchain_core.messages import HumanMessage, SystemMessage

from .exceptions import ConfigurationError, MissingDependencyError, LLMError
from .logger import get_logger

if TYPE_CHECKING:
    from task_orchestrator.config.orchestrator_config import LLMConfig

logger = get_logger(__name__)


def create_chat_model(config: "LLMConfig") -> Any:
    """
    Build a LangChain chat model for the configured provider.

    Args:
        config: LLM configuration

    Returns:
        A LangChain chat model instance

    Raises:
        MissingDependencyError: If the provider's LangChain package is not installed
        ConfigurationError: If the provider is unsupported
    """
    logger.debug(f"Initializing LangChain wrapper for {config.provider}")

    if config.provider == "anthropic":
        from langchain_anthropic import ChatAnthropic

        kwargs = {
            "model_name": config.model_name,
            "temperature": config.temperature,
            "timeout": config.timeout,
            "api_key": config.api_key,
        }
        if config.max_tokens:
            kwargs["max_tokens"] = config.max_tokens
        if config.base_url:
            kwargs["base_url"] = config.base_url
        model = ChatAnthropic(**kwargs)

    elif config.provider == "openai":
        try:
            from langchain_openai import ChatOpenAI
        except ImportError:
            raise MissingDependencyError(
                package_name="langchain-openai",
                install_command="pip install langchain-openai",
                purpose="LangChain OpenAI wrapper"
            )

        kwargs = {
            "model": config.model_name,
            "temperature": config.temperature,
            "timeout": config.timeout,
            "api_key": config.api_key,
        }
        if config.max_tokens:
            kwargs["max_tokens"] = config.max_tokens
        if config.base_url:
            kwargs["base_url"] = config.base_url
        model = ChatOpenAI(**kwargs)

    else:
        raise ConfigurationError(
            setting_name="provider",
            message="Unsupported LLM provider",
            expected_value="anthropic or openai",
            actual_value=config.provider
        )

    logger.info(f"Initialized {config.provider} chat model: {config.model_name}")
    return model


def invoke_text(llm: Any, system_prompt: str, user_prompt: str, provider: str = "unknown") -> str:
    """
    Send a system + user message pair and return the reply text.

    Raises:
        LLMError: If the call fails or returns no text
    """
    messages = [
        SystemMessage(content=system_prompt),
        HumanMessage(content=user_prompt),
    ]
    try:
        response = llm.invoke(messages)
    except Exception as e:
        raise LLMError(provider=provider, message="Model invocation failed", original_error=e)

    content = getattr(response, "content", response)
    if isinstance(content, list):
        # Content blocks (e.g. Anthropic): keep the text parts
        content = "".join(
            block.get("text", "") if isinstance(block, dict) else str(block)
            for block in content
        )
    text = str(content).strip()
    if not text:
        raise LLMError(provider=provider, message="Model returned an empty response")
    return text
