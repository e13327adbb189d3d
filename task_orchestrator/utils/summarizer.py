"""
Summarizer - Structural summaries of code and documentation

Keeps the lines that carry structure (imports, class and function
signatures, markdown headings) and fills the remaining budget with the
leading text, then truncates to the token budget.
"""

import re
from typing import List, Optional

from .token_counter import TokenCounter

STRUCTURAL_LINE = re.compile(
    r"""^\s*(
        (?:async\s+)?def\s+\w+          # python functions
      | class\s+\w+                     # classes
      | (?:from\s+\S+\s+)?import\s+     # imports
      | (?:export\s+)?(?:default\s+)?(?:async\s+)?function\b
      | (?:export\s+)?(?:interface|type|enum)\s+\w+
      | (?:public|private|protected)\s+[\w<>\[\]]+\s+\w+\s*\(
      | \#{1,6}\s+\S                    # markdown headings
    )""",
    re.VERBOSE,
)


class Summarizer:
    """
    Default summarization collaborator for the context compressor.

    Any object with a compatible `summarize(content, max_tokens)` method
    can be injected instead.
    """

    def __init__(self, token_counter: Optional[TokenCounter] = None):
        self.token_counter = token_counter or TokenCounter()

    def summarize(self, content: str, max_tokens: int) -> str:
        """
        Produce a summary of content no larger than max_tokens.

        Args:
            content: Source code or documentation text
            max_tokens: Token budget for the summary

        Returns:
            Summary text (empty when the budget is not positive)
        """
        if max_tokens <= 0 or not content:
            return ""

        structural = self._structural_lines(content)
        if structural:
            summary = "\n".join(structural)
            # Structure alone fits: spend what is left on the opening lines
            if self.token_counter.count(summary) < max_tokens:
                leading = [line for line in content.splitlines() if line.strip()]
                extra = [line for line in leading if line not in structural]
                for line in extra:
                    candidate = summary + "\n" + line
                    if self.token_counter.count(candidate) > max_tokens:
                        break
                    summary = candidate
        else:
            summary = content

        return self.token_counter.truncate(summary, max_tokens)

    @staticmethod
    def _structural_lines(content: str) -> List[str]:
        return [line.rstrip() for line in content.splitlines() if STRUCTURAL_LINE.match(line)]
