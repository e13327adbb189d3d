"""
Environment configuration - .env loading and typed reads of ORCH_ settings
"""

import os
import json
from pathlib import Path
from typing import Any, Callable, Dict, Optional, TypeVar

from dotenv import load_dotenv

from task_orchestrator.utils.logger import get_logger

logger = get_logger(__name__)

T = TypeVar("T")

TRUE_VALUES = ('true', '1', 'yes', 'on')
SECRET_MARKERS = ('KEY', 'SECRET', 'TOKEN', 'PASSWORD')
ENV_SEARCH_DEPTH = 4


class EnvConfig:
    """
    Typed access to environment variables, with .env file loading.

    Variables already exported take priority over values from .env.
    Malformed numeric or JSON values fall back to the default and are
    logged, so a typo in .env never aborts start-up.
    """

    @staticmethod
    def find_env_file(start: Optional[Path] = None) -> Optional[Path]:
        """Look for .env in start (default cwd) and up to three parents."""
        current = start or Path.cwd()
        for _ in range(ENV_SEARCH_DEPTH):
            candidate = current / ".env"
            if candidate.exists():
                return candidate
            if current.parent == current:
                break
            current = current.parent
        return None

    @classmethod
    def load_env_file(cls, path: Optional[str] = None) -> bool:
        """
        Load environment variables from a .env file.

        Args:
            path: Explicit .env path (default: search cwd and parents)

        Returns:
            True if a file was loaded
        """
        env_path = Path(path) if path else cls.find_env_file()
        if env_path is None or not env_path.exists():
            logger.debug("No .env file found")
            return False

        load_dotenv(env_path, override=False)
        logger.info(f"Loaded environment from {env_path}")
        return True

    @staticmethod
    def _read(key: str, default: T, parse: Callable[[str], T]) -> T:
        raw = os.getenv(key)
        if raw is None or raw.strip() == "":
            return default
        try:
            return parse(raw.strip())
        except ValueError:
            logger.warning(f"Ignoring malformed value for {key}: {raw!r}")
            return default

    @staticmethod
    def get(key: str, default: Optional[str] = None) -> Optional[str]:
        return os.getenv(key, default)

    @classmethod
    def get_bool(cls, key: str, default: bool = False) -> bool:
        return cls._read(key, default, lambda raw: raw.lower() in TRUE_VALUES)

    @classmethod
    def get_int(cls, key: str, default: int = 0) -> int:
        return cls._read(key, default, int)

    @classmethod
    def get_float(cls, key: str, default: float = 0.0) -> float:
        return cls._read(key, default, float)

    @classmethod
    def get_optional_float(cls, key: str) -> Optional[float]:
        return cls._read(key, None, float)

    @classmethod
    def get_json(cls, key: str, default: Optional[Dict] = None) -> Optional[Dict]:
        # JSONDecodeError is a ValueError
        return cls._read(key, default, json.loads)

    @staticmethod
    def check_required(*keys: str) -> bool:
        """Return False (and log the names) if any of keys is unset."""
        missing = [key for key in keys if not os.getenv(key)]
        if missing:
            logger.error(f"Missing required environment variables: {', '.join(missing)}")
            return False
        return True

    @staticmethod
    def describe(prefix: str = "ORCH_") -> Dict[str, Any]:
        """
        Current settings under prefix, with secret-looking values masked.

        Example:
            >>> EnvConfig.describe()
            {'ORCH_LLM_PROVIDER': 'anthropic', 'ORCH_MAX_TOKENS': '1500'}
        """
        settings = {}
        for key in sorted(os.environ):
            if not key.startswith(prefix):
                continue
            value = os.environ[key]
            if any(marker in key for marker in SECRET_MARKERS):
                value = "***"
            settings[key] = value
        return settings

    @staticmethod
    def show_config_template(llm_provider: Optional[str] = "anthropic") -> str:
        """
        Example .env for the orchestrator.

        Args:
            llm_provider: anthropic, openai, or None for parse-only mode
        """
        llm_sections = {
            "anthropic": (
                "ANTHROPIC_API_KEY=sk-ant-...\n"
                "ORCH_LLM_PROVIDER=anthropic\n"
                "ORCH_LLM_MODEL=claude-sonnet-4-20250514\n"
            ),
            "openai": (
                "OPENAI_API_KEY=sk-...\n"
                "ORCH_LLM_PROVIDER=openai\n"
                "ORCH_LLM_MODEL=gpt-4o-mini\n"
            ),
        }
        llm_section = llm_sections.get(llm_provider or "", "# No ORCH_LLM_PROVIDER: prompts are parsed as-is\n")

        return (
            "# LLM (task breakdown drafting)\n"
            f"{llm_section}"
            "\n# Compression\n"
            "ORCH_MAX_TOKENS=2000\n"
            "ORCH_STRICT_BUDGET=false\n"
            "\n# Planning and knowledge queries\n"
            "ORCH_STRICT_DEPENDENCIES=false\n"
            "ORCH_MAX_CONTEXT_NODES=20\n"
            "ORCH_PER_TASK_CONTEXT=false\n"
            "\n# Logging\n"
            "ORCH_LOG_LEVEL=INFO\n"
            "ORCH_ENABLE_FILE_LOGGING=false\n"
        )
