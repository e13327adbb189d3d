"""
Context Compressor - Packs a context into a token budget

Essential request metadata is always kept verbatim. The remaining
budget is filled greedily with components in priority order; the first
component that has to be compressed ends the packing.
"""

import copy
from typing import Any, Dict, List, Mapping, Optional

from task_orchestrator.config.orchestrator_config import CompressionConfig
from task_orchestrator.models.context import (
    ESSENTIAL_FIELDS,
    CompressedContext,
    ContextComponent,
    EssentialMetadata,
)
from task_orchestrator.models.enums import ComponentType
from task_orchestrator.utils.context_prioritizer import ContextPrioritizer
from task_orchestrator.utils.exceptions import InvalidParameterError, TokenBudgetError
from task_orchestrator.utils.logger import get_logger
from task_orchestrator.utils.summarizer import Summarizer
from task_orchestrator.utils.token_counter import TokenCounter

logger = get_logger(__name__)

TEXT_COMPONENT_TYPES = {ComponentType.CODE.value, ComponentType.DOCUMENTATION.value}


def _camel(key: str) -> str:
    head, *rest = key.split("_")
    return head + "".join(part.title() for part in rest)


def _importance(dependency: Any) -> float:
    """Importance of a dependency item; bare names and bad scores rank as 0."""
    if not isinstance(dependency, Mapping):
        return 0.0
    score = dependency.get("importance_score")
    if score is None:
        score = dependency.get(_camel("importance_score"))
    try:
        return float(score or 0)
    except (TypeError, ValueError):
        return 0.0


class ContextCompressor:
    """
    Reduces a caller-defined context object to a token budget.

    Args:
        config: Budget and estimation settings
        token_counter: Token estimator (default TokenCounter)
        prioritizer: Supplies the component order (default ContextPrioritizer)
        summarizer: Summarizes code/documentation content (default Summarizer)
    """

    def __init__(
        self,
        config: Optional[CompressionConfig] = None,
        token_counter: Optional[TokenCounter] = None,
        prioritizer: Optional[ContextPrioritizer] = None,
        summarizer: Optional[Summarizer] = None,
    ):
        self.config = config or CompressionConfig()
        self.token_counter = token_counter or TokenCounter(self.config.chars_per_token)
        self.prioritizer = prioritizer or ContextPrioritizer()
        self.summarizer = summarizer or Summarizer(self.token_counter)

    def compress(self, context: Optional[Mapping[str, Any]], max_tokens: Optional[int] = None) -> CompressedContext:
        """
        Compress a context to fit max_tokens.

        Args:
            context: Context object; may carry essential metadata
                (user_id, project_type, request_type, timestamp, or their
                camelCase spellings), a `components` list and/or a
                knowledge bundle
            max_tokens: Token budget (config default when None)

        Returns:
            Essential metadata plus the packed `components`

        Raises:
            InvalidParameterError: If max_tokens is negative
            TokenBudgetError: If strict_budget is set and the essential
                metadata alone exceeds max_tokens
        """
        if max_tokens is None:
            max_tokens = self.config.max_tokens
        if max_tokens < 0:
            raise InvalidParameterError(
                parameter_name="max_tokens",
                message="Token budget cannot be negative",
                expected_type="non-negative int",
                actual_value=max_tokens,
            )

        context = context or {}
        essentials = self._extract_essentials(context)
        essential_tokens = self.token_counter.count_json(essentials)

        remaining = max_tokens - essential_tokens
        if remaining < 0:
            if self.config.strict_budget:
                raise TokenBudgetError(max_tokens, essential_tokens)
            logger.warning(
                f"[COMPRESS] Essential metadata ({essential_tokens} tokens) exceeds budget "
                f"of {max_tokens}; no components will be included"
            )
            remaining = 0

        included: List[ContextComponent] = []
        for component in self.prioritizer.prioritize(context):
            cost = self.token_counter.count_json(component)
            if cost <= remaining:
                included.append(copy.deepcopy(component))
                remaining -= cost
                continue

            compressed = self.compress_component(component, remaining)
            if compressed is not None:
                included.append(compressed)
                remaining -= self.token_counter.count_json(compressed)
                logger.debug(f"[COMPRESS] Compressed '{component.get('type')}' component; packing stops")
                break

            logger.debug(
                f"[COMPRESS] Dropped '{component.get('type')}' component "
                f"({cost} tokens, {remaining} remaining)"
            )

        logger.info(
            f"[COMPRESS] Kept {len(included)} component(s) within {max_tokens} tokens "
            f"(essentials {essential_tokens}, unused {remaining})"
        )
        return CompressedContext(**essentials, components=included)

    def compress_component(self, component: Mapping[str, Any], budget: int) -> Optional[ContextComponent]:
        """
        Compress one component to fit budget using its type's strategy.

        Returns:
            The compressed component, or None when the type has no
            strategy or the strategy declines
        """
        if budget <= 0:
            return None

        component_type = component.get("type")
        if component_type in TEXT_COMPONENT_TYPES:
            return self._compress_text(component, budget)
        if component_type == ComponentType.DEPENDENCIES.value:
            return self._compress_dependencies(component, budget)
        return None

    def _extract_essentials(self, context: Mapping[str, Any]) -> EssentialMetadata:
        essentials: Dict[str, Any] = {}
        for key in ESSENTIAL_FIELDS:
            value = context.get(key)
            if value is None:
                value = context.get(_camel(key))
            essentials[key] = value
        return EssentialMetadata(**essentials)

    def _compress_text(self, component: Mapping[str, Any], budget: int) -> Optional[ContextComponent]:
        content = str(component.get("content") or "")
        if self.token_counter.count(content) <= budget:
            return None

        compressed: Dict[str, Any] = {
            "type": component["type"],
            "path": component.get("path"),
            "summarized_content": "",
            "is_compressed": True,
        }
        summary_budget = budget - self.token_counter.count_json(compressed)

        # JSON escaping can make the serialized summary larger than its
        # raw estimate; shrink until the whole component fits
        while summary_budget > 0:
            compressed["summarized_content"] = self.summarizer.summarize(content, summary_budget)
            if not compressed["summarized_content"]:
                return None
            overflow = self.token_counter.count_json(compressed) - budget
            if overflow <= 0:
                return compressed
            summary_budget -= overflow
        return None

    def _compress_dependencies(self, component: Mapping[str, Any], budget: int) -> Optional[ContextComponent]:
        dependencies = list(component.get("dependencies") or [])
        if not dependencies:
            return None

        ranked = sorted(dependencies, key=lambda dep: -_importance(dep))
        keep = max(1, budget // self.config.dependency_item_cost)

        compressed: Dict[str, Any] = {
            "type": ComponentType.DEPENDENCIES.value,
            "dependencies": copy.deepcopy(ranked[:keep]),
            "total_count": len(dependencies),
            "is_compressed": True,
        }
        while compressed["dependencies"] and self.token_counter.count_json(compressed) > budget:
            compressed["dependencies"].pop()

        if not compressed["dependencies"]:
            return None
        return compressed
