"""
Token Counter - Character-based token estimation

Token cost is an estimate, not an exact count for any particular model.
"""

import json
import math
from typing import Any


class TokenCounter:
    """
    Estimates token cost as ceil(characters / chars_per_token).

    Usage:
        counter = TokenCounter()
        counter.count("some text")          # -> 3
        counter.count_json({"a": 1})        # cost of the serialized object
    """

    def __init__(self, chars_per_token: int = 4):
        if chars_per_token < 1:
            raise ValueError("chars_per_token must be at least 1")
        self.chars_per_token = chars_per_token

    def count(self, text: str) -> int:
        """Estimate tokens in a string."""
        if not text:
            return 0
        return math.ceil(len(text) / self.chars_per_token)

    def count_json(self, value: Any) -> int:
        """Estimate tokens of a value serialized with json.dumps default separators."""
        return self.count(json.dumps(value, default=str, ensure_ascii=False))

    def truncate(self, text: str, max_tokens: int) -> str:
        """Cut text down to at most max_tokens estimated tokens."""
        if max_tokens <= 0:
            return ""
        return text[:max_tokens * self.chars_per_token]
