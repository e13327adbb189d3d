"""
Task Decomposer - Turns a task breakdown into an ordered execution plan

Accepts either:
- A structured sequence of task-like mappings (a list, or a string
  holding a JSON array), each normalized into a TaskRecord
- Free text made of numbered blocks:

    Task 1: Scan the project
    Description: Walk the source tree
    Dependencies: none
    Priority: 2
    Worker: project-scan

The execution plan is a topological order of the tasks in which every
task appears after all of its in-plan dependencies.
"""

import json
import re
from typing import Any, Dict, Iterator, List, Mapping, Optional, Tuple

from task_orchestrator.models.enums import TaskStatus, TaskType
from task_orchestrator.models.task import TaskRecord
from task_orchestrator.utils.logger import get_logger
from task_orchestrator.utils.exceptions import (
    DuplicateTaskError,
    DependencyCycleError,
    DanglingDependencyError,
)

logger = get_logger(__name__)


# ============================================================================
# TEXT GRAMMAR
# ============================================================================

HEADER_PATTERN = re.compile(r"^\s*(?:[-*#>]+\s*)?(?:\d+[.)]\s*)?task\s+(\d+)\s*:\s*(.+?)\s*$", re.IGNORECASE)
FIELD_PATTERN = re.compile(
    r"^\s*(?:[-*]+\s*)?(description|dependencies|priority|worker)\s*:\s*(.*?)\s*$",
    re.IGNORECASE,
)
PRIORITY_PATTERN = re.compile(r"^(\d+)\b")

# Numbers (optionally written "Task 3", "task-3", "#3") or lowercase ids
DEPENDENCY_TOKEN_PATTERN = re.compile(
    r"(?i:\btask\s*[-#]?\s*)(\d+)|\b(\d+)\b|\b([a-z][a-z0-9_-]*)\b"
)
DEPENDENCY_FILLER_WORDS = {
    "none", "and", "or", "after", "on", "depends", "task", "tasks", "n", "a",
}

# Parser states, in the order fields may appear within a block
HEADER = "header"
DESCRIPTION = "description"
DEPENDENCIES = "dependencies"
PRIORITY = "priority"
WORKER = "worker"
FIELD_ORDER = [HEADER, DESCRIPTION, DEPENDENCIES, PRIORITY, WORKER]
CONTINUABLE_FIELDS = {DESCRIPTION, DEPENDENCIES, WORKER}

# (keywords, task type); first match wins
TASK_TYPE_RULES: List[Tuple[Tuple[str, ...], TaskType]] = [
    (("scan", "project"), TaskType.PROJECT_SCAN),
    (("analyze", "static"), TaskType.STATIC_ANALYSIS),
    (("depend", "package"), TaskType.DEPENDENCY_CHECK),
    (("innovat", "suggest"), TaskType.INNOVATION_SUGGESTION),
    (("knowledge", "graph"), TaskType.KNOWLEDGE),
]

# Plan traversal marks
_UNVISITED, _PENDING, _RESOLVED = 0, 1, 2


class _TaskBlock:
    """Fields collected for one `Task N:` block while scanning."""

    def __init__(self, number: int, name: str, line_no: int):
        self.number = number
        self.name = name
        self.line_no = line_no
        self.description: List[str] = []
        self.dependencies: List[str] = []
        self.priority: Optional[int] = None
        self.worker: List[str] = []
        self.state = HEADER
        self.error: Optional[str] = None

    def append(self, field_name: str, text: str) -> None:
        if text:
            getattr(self, field_name).append(text)


class TaskDecomposer:
    """
    Parses task breakdowns and orders them by dependency.

    Args:
        strict_dependencies: Raise DanglingDependencyError when a task depends
            on an id that is not part of the plan. By default such references
            are treated as already satisfied and logged.
    """

    def __init__(self, strict_dependencies: bool = False):
        self.strict_dependencies = strict_dependencies
        logger.debug(f"Task Decomposer initialized (strict_dependencies={strict_dependencies})")

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def decompose(self, content: Any) -> List[TaskRecord]:
        """Parse content and return its tasks in execution order."""
        return self.build_execution_plan(self.parse_decomposition(content))

    def parse_decomposition(self, content: Any) -> List[TaskRecord]:
        """
        Parse a task breakdown into TaskRecords (input order).

        Args:
            content: List of task mappings, JSON array string, or block text

        Returns:
            Normalized TaskRecords; empty when nothing could be parsed
        """
        if content is None:
            return []

        if isinstance(content, (list, tuple)):
            return self._normalize_all(content)

        if isinstance(content, Mapping) and isinstance(content.get("tasks"), list):
            return self._normalize_all(content["tasks"])

        text = str(content)
        structured = self._try_parse_json(text)
        if structured is not None:
            return self._normalize_all(structured)

        tasks = self._parse_text(text)
        logger.info(f"[DECOMPOSE] Parsed {len(tasks)} task(s) from text breakdown")
        return tasks

    def parse_dependencies(self, text: Optional[str]) -> List[str]:
        """
        Tokenize dependency text into task-id references.

        Numbers become "task-<n>", lowercase identifiers are kept as
        literal ids, everything else is ignored. Order is preserved and
        duplicates are removed.

        Example:
            >>> TaskDecomposer().parse_dependencies("Task 1, #2 and setup-db")
            ['task-1', 'task-2', 'setup-db']
        """
        if not text:
            return []

        refs: Dict[str, None] = {}
        for prefixed, bare, literal in DEPENDENCY_TOKEN_PATTERN.findall(text):
            number = prefixed or bare
            if number:
                refs.setdefault(f"task-{int(number)}", None)
            elif literal and literal not in DEPENDENCY_FILLER_WORDS:
                refs.setdefault(literal, None)
        return list(refs)

    def infer_task_type(self, name: Optional[str], description: Optional[str] = "") -> TaskType:
        """Pick a task type from keywords in the task's name and description."""
        haystack = f"{name or ''} {description or ''}".lower()
        for keywords, task_type in TASK_TYPE_RULES:
            if any(keyword in haystack for keyword in keywords):
                return task_type
        return TaskType.LOCAL_DATA

    def build_execution_plan(self, tasks: List[TaskRecord]) -> List[TaskRecord]:
        """
        Order tasks so that each appears after all of its in-plan dependencies.

        Independent tasks keep their input order.

        Raises:
            DuplicateTaskError: If two tasks share a task_id
            DependencyCycleError: If the in-plan dependencies form a cycle
            DanglingDependencyError: If strict_dependencies is set and a task
                depends on an id that is not in the plan
        """
        by_id: Dict[str, TaskRecord] = {}
        for task in tasks:
            task_id = task["task_id"]
            if task_id in by_id:
                raise DuplicateTaskError(task_id)
            by_id[task_id] = task

        # Forward map restricted to in-plan references
        requires: Dict[str, List[str]] = {}
        for task in tasks:
            in_plan = []
            missing = []
            for dep in task.get("dependencies") or []:
                (in_plan if dep in by_id else missing).append(dep)
            if missing:
                if self.strict_dependencies:
                    raise DanglingDependencyError(task["task_id"], missing)
                logger.warning(
                    f"[PLAN] {task['task_id']} depends on unknown task(s) {missing}; treating as satisfied"
                )
            requires[task["task_id"]] = in_plan

        marks = {task_id: _UNVISITED for task_id in by_id}
        plan: List[TaskRecord] = []

        for root in by_id:
            if marks[root] != _UNVISITED:
                continue

            marks[root] = _PENDING
            path = [root]
            stack: List[Tuple[str, Iterator[str]]] = [(root, iter(requires[root]))]

            while stack:
                task_id, pending_deps = stack[-1]
                dep = next(pending_deps, None)

                if dep is None:
                    stack.pop()
                    path.pop()
                    marks[task_id] = _RESOLVED
                    plan.append(by_id[task_id])
                    continue

                if marks[dep] == _PENDING:
                    cycle = path[path.index(dep):] + [dep]
                    logger.error(f"[PLAN] Dependency cycle: {' -> '.join(cycle)}")
                    raise DependencyCycleError(dep, cycle)

                if marks[dep] == _UNVISITED:
                    marks[dep] = _PENDING
                    path.append(dep)
                    stack.append((dep, iter(requires[dep])))

        logger.info(f"[PLAN] Execution order: {' -> '.join(t['task_id'] for t in plan) or '(empty)'}")
        return plan

    # ------------------------------------------------------------------
    # Structured input
    # ------------------------------------------------------------------

    def _try_parse_json(self, text: str) -> Optional[List[Any]]:
        stripped = text.strip()
        if not stripped.startswith(("[", "{")):
            return None
        try:
            parsed = json.loads(stripped)
        except json.JSONDecodeError:
            return None
        if isinstance(parsed, list):
            return parsed
        if isinstance(parsed, dict) and isinstance(parsed.get("tasks"), list):
            return parsed["tasks"]
        return None

    def _normalize_all(self, items: List[Any]) -> List[TaskRecord]:
        tasks = []
        for index, item in enumerate(items, start=1):
            if not isinstance(item, Mapping):
                logger.debug(f"[DECOMPOSE] Skipping non-mapping task entry #{index}: {item!r}")
                continue
            tasks.append(self._normalize(item, index))
        logger.info(f"[DECOMPOSE] Normalized {len(tasks)} structured task(s)")
        return tasks

    def _normalize(self, item: Mapping[str, Any], index: int) -> TaskRecord:
        """Fill defaults and reset executor-owned fields."""
        metadata = item.get("metadata")
        metadata = metadata if isinstance(metadata, Mapping) else {}

        def pick(*keys: str) -> Any:
            for source in (item, metadata):
                for key in keys:
                    value = source.get(key)
                    if value is not None and value != "":
                        return value
            return None

        task_name = str(pick("task_name", "taskName", "name", "title") or f"Task {index}")
        description = str(pick("description") or "")

        raw_dependencies = pick("dependencies", "depends_on", "dependsOn")
        if isinstance(raw_dependencies, str):
            dependencies = self.parse_dependencies(raw_dependencies)
        else:
            dependencies = self._dependency_list(raw_dependencies or [])

        return self._make_record(
            task_id=str(pick("task_id", "taskId", "id") or f"task-{index}"),
            task_name=task_name,
            description=description,
            content=pick("content"),
            worker=pick("task_type", "taskType", "worker"),
            priority=pick("priority"),
            dependencies=dependencies,
        )

    @staticmethod
    def _dependency_list(values: Any) -> List[str]:
        if not isinstance(values, (list, tuple)):
            values = [values]
        refs: Dict[str, None] = {}
        for value in values:
            if isinstance(value, bool) or value is None:
                continue
            ref = f"task-{value}" if isinstance(value, int) else str(value).strip()
            if ref:
                refs.setdefault(ref, None)
        return list(refs)

    def _make_record(
        self,
        task_id: str,
        task_name: str,
        description: str,
        content: Optional[str],
        worker: Any,
        priority: Any,
        dependencies: List[str],
    ) -> TaskRecord:
        worker_value = str(worker).strip().lower() if worker else ""
        if worker_value in TaskType.values():
            task_type = worker_value
        else:
            if worker_value:
                logger.debug(f"[DECOMPOSE] {task_id}: unknown worker '{worker}', inferring type")
            task_type = self.infer_task_type(task_name, description).value

        if not content:
            content = f"Execute task: {task_name}"
            if description:
                content += f"\n{description}"

        return TaskRecord(
            task_id=task_id,
            task_name=task_name,
            description=description,
            content=str(content),
            task_type=task_type,
            priority=self._coerce_priority(priority),
            dependencies=list(dependencies),
            status=TaskStatus.PENDING.value,
            retries=0,
        )

    @staticmethod
    def _coerce_priority(value: Any) -> int:
        try:
            priority = int(value)
        except (TypeError, ValueError):
            return 1
        return priority if priority >= 1 else 1

    # ------------------------------------------------------------------
    # Text input
    # ------------------------------------------------------------------

    def _parse_text(self, text: str) -> List[TaskRecord]:
        blocks: List[_TaskBlock] = []
        current: Optional[_TaskBlock] = None

        for line_no, line in enumerate(text.splitlines(), start=1):
            header = HEADER_PATTERN.match(line)
            if header:
                current = _TaskBlock(int(header.group(1)), header.group(2), line_no)
                blocks.append(current)
                continue

            # Preamble before the first header, or the rest of a bad block
            if current is None or current.error:
                continue

            field_match = FIELD_PATTERN.match(line)
            if field_match:
                self._read_field(current, field_match.group(1).lower(), field_match.group(2))
                continue

            if current.state in CONTINUABLE_FIELDS:
                current.append(current.state, line.strip())

        tasks = []
        for block in blocks:
            if block.error:
                logger.debug(
                    f"[DECOMPOSE] Dropping malformed block 'Task {block.number}' "
                    f"(line {block.line_no}): {block.error}"
                )
                continue
            tasks.append(self._make_record(
                task_id=f"task-{block.number}",
                task_name=block.name,
                description="\n".join(block.description),
                content=None,
                worker=" ".join(block.worker),
                priority=block.priority,
                dependencies=self.parse_dependencies(" ".join(block.dependencies)),
            ))
        return tasks

    @staticmethod
    def _read_field(block: _TaskBlock, field_name: str, value: str) -> None:
        if FIELD_ORDER.index(field_name) <= FIELD_ORDER.index(block.state):
            block.error = f"'{field_name.title()}' appears after '{block.state.title()}'"
            return

        block.state = field_name
        if field_name == PRIORITY:
            number = PRIORITY_PATTERN.match(value)
            if not number:
                block.error = f"non-numeric priority '{value}'"
                return
            block.priority = int(number.group(1))
        else:
            block.append(field_name, value)
