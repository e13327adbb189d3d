"""
Enums module - Task, graph and context enumeration types
"""

from enum import Enum


class TaskStatus(str, Enum):
    """Enumeration of possible task statuses"""
    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


class TaskType(str, Enum):
    """Worker categories a task can be routed to"""
    PROJECT_SCAN = "project-scan"
    STATIC_ANALYSIS = "static-analysis"
    DEPENDENCY_CHECK = "dependency-check"
    INNOVATION_SUGGESTION = "innovation-suggestion"
    KNOWLEDGE = "knowledge"
    LOCAL_DATA = "local-data"

    @classmethod
    def values(cls) -> set:
        return {member.value for member in cls}


class NodeType(str, Enum):
    """Built-in knowledge graph node kinds. Callers may use other tags."""
    FILE = "file"
    DEPENDENCY = "dependency"
    CODE_ENTITY = "codeEntity"
    FRAMEWORK = "framework"
    ERROR_PATTERN = "errorPattern"


class EdgeType(str, Enum):
    """Built-in knowledge graph relationship labels."""
    CONTAINS = "contains"
    IMPORTS = "imports"
    CALLS = "calls"
    REQUIRES = "requires"
    ECOSYSTEM = "ecosystem"


class ComponentType(str, Enum):
    """Context component kinds with a compression strategy."""
    CODE = "code"
    DEPENDENCIES = "dependencies"
    DOCUMENTATION = "documentation"
