"""
Conductor - multi-agent task orchestration.

Decompose a task into typed sub-tasks, execute them through role-specific
agents in dependency order, and synthesize the results.
"""

__version__ = "0.1.0"
__author__ = "Conductor Team"

from conductor.core.orchestrator import Conductor

__all__ = ["Conductor", "__version__"]
