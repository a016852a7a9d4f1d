"""Task decomposition and execution.

This module provides the complete orchestration pipeline:
- Decomposition (task description -> TaskPlan of typed sub-tasks)
- Dependency ordering (sub-tasks -> execution order)
- Execution (execution order -> results, with retry and resumable state)
- Synthesis (completed outputs -> one summary)
"""

from conductor.decomposition.models import (
    AgentType,
    ExecutionResult,
    OrchestratorState,
    ProgressCallback,
    ProgressEvent,
    SubTask,
    SubTaskResult,
    SubTaskStatus,
    TaskPlan,
)
from conductor.decomposition.dependency_resolver import (
    detect_cycles,
    missing_dependencies,
    topological_order,
)
from conductor.decomposition.parser import extract_json_object
from conductor.decomposition.decomposer import TicketDecomposer
from conductor.decomposition.executor import OrchestratorEngine

__all__ = [
    # Models
    "AgentType",
    "ExecutionResult",
    "OrchestratorState",
    "ProgressCallback",
    "ProgressEvent",
    "SubTask",
    "SubTaskResult",
    "SubTaskStatus",
    "TaskPlan",
    # Ordering
    "detect_cycles",
    "missing_dependencies",
    "topological_order",
    # Parsing
    "extract_json_object",
    # Decomposition
    "TicketDecomposer",
    # Execution
    "OrchestratorEngine",
]
