"""
Task module - Decomposed task record definition
"""

from typing import TypedDict, List


class TaskRecord(TypedDict):
    """
    One unit of decomposed work.

    Identity and dependencies are fixed once the decomposer creates the
    record; only the executor mutates status and retries.
    """
    task_id: str
    task_name: str
    description: str
    content: str                 # Text used for knowledge-graph queries
    task_type: str               # TaskType value
    priority: int                # Positive, no uniqueness constraint
    dependencies: List[str]      # Ordered, de-duplicated task ids; may dangle
    status: str                  # TaskStatus value
    retries: int
