"""Dependency resolver - linearizes sub-tasks in dependency order.

The engine consumes the order strictly sequentially, so no wave grouping
is computed. Dangling references and cycles never raise: the sort always
terminates, and run-time readiness checks decide what actually executes.
"""

from loguru import logger

from conductor.decomposition.models import SubTask


def topological_order(sub_tasks: list[SubTask]) -> list[SubTask]:
    """
    Order sub-tasks so each follows the sub-tasks it depends on.

    Depth-first traversal over the plan order: visiting a sub-task first
    visits every ID in its ``depends_on``, then appends the sub-task itself.
    IDs absent from the plan are ignored, and a visited set guards cycles.

    Args:
        sub_tasks: Sub-tasks in the decomposer's suggested order.

    Returns:
        Every sub-task exactly once, in execution order.

    Example:
        >>> ordered = topological_order([b_depends_on_a, a])
        >>> [t.id for t in ordered]
        ['a', 'b']
    """
    task_map = {task.id: task for task in sub_tasks}
    visited: set[str] = set()
    ordered: list[SubTask] = []

    # Iterative DFS so long dependency chains cannot hit the recursion limit.
    for root in sub_tasks:
        if root.id in visited:
            continue
        visited.add(root.id)
        stack: list[tuple[SubTask, int]] = [(root, 0)]

        while stack:
            task, dep_index = stack.pop()
            if dep_index < len(task.depends_on):
                stack.append((task, dep_index + 1))
                dep_id = task.depends_on[dep_index]
                dep = task_map.get(dep_id)
                if dep is not None and dep_id not in visited:
                    visited.add(dep_id)
                    stack.append((dep, 0))
            else:
                ordered.append(task)

    return ordered


def detect_cycles(sub_tasks: list[SubTask]) -> list[list[str]]:
    """
    Detect dependency cycles using DFS coloring.

    Args:
        sub_tasks: Sub-tasks to inspect.

    Returns:
        List of cycle paths, each closed by repeating its first ID.

    Example:
        >>> detect_cycles([a_depends_on_b, b_depends_on_a])
        [['a', 'b', 'a']]
    """
    graph = {task.id: task.depends_on for task in sub_tasks}
    WHITE, GRAY, BLACK = 0, 1, 2
    colors: dict[str, int] = {node: WHITE for node in graph}
    cycles: list[list[str]] = []

    def dfs(node: str, path: list[str]) -> None:
        colors[node] = GRAY
        path.append(node)

        for neighbor in graph[node]:
            if neighbor not in colors:
                continue  # dangling reference
            if colors[neighbor] == GRAY:
                cycle_start = path.index(neighbor)
                cycles.append(path[cycle_start:] + [neighbor])
            elif colors[neighbor] == WHITE:
                dfs(neighbor, path)

        path.pop()
        colors[node] = BLACK

    for node in graph:
        if colors[node] == WHITE:
            dfs(node, [])

    return cycles


def missing_dependencies(sub_tasks: list[SubTask]) -> dict[str, list[str]]:
    """
    Find dependency IDs that name no sub-task in the plan.

    Args:
        sub_tasks: Sub-tasks to inspect.

    Returns:
        Sub-task ID -> dangling dependency IDs, for sub-tasks that have any.
    """
    known = {task.id for task in sub_tasks}
    missing: dict[str, list[str]] = {}
    for task in sub_tasks:
        dangling = [dep for dep in task.depends_on if dep not in known]
        if dangling:
            missing[task.id] = dangling
    return missing


def log_graph_warnings(sub_tasks: list[SubTask]) -> None:
    """Log cycles and dangling references; affected sub-tasks will be skipped."""
    for task_id, dangling in missing_dependencies(sub_tasks).items():
        logger.warning(f"Sub-task {task_id} depends on unknown ids: {', '.join(dangling)}")

    for cycle in detect_cycles(sub_tasks):
        logger.warning(f"Circular dependency detected: {' -> '.join(cycle)}")
