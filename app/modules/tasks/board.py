"""
Kanban board ordering.

Pure functions over task rows (dicts with at least id, status and position).
The board route resolves a drop into a (status, position) pair here and then
writes it through TaskService.update_task, so a move behaves like any other edit.
"""
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence

from app.modules.tasks.schemas import TASK_STATUSES


@dataclass(frozen=True)
class DropTarget:
    status: str
    position: int


def _position(task: Dict) -> float:
    value = task.get("position")
    return value if value is not None else 0


def find_column(item_id: str, tasks: Sequence[Dict], columns: Sequence[str] = TASK_STATUSES) -> Optional[str]:
    """Column an id refers to: the id itself when it names a column, else the status of that task"""
    if item_id in columns:
        return item_id
    for task in tasks:
        if task.get("id") == item_id:
            return task.get("status")
    return None


def compute_drop_position(
    tasks: Sequence[Dict],
    active_id: str,
    over_id: Optional[str],
    columns: Sequence[str] = TASK_STATUSES,
) -> Optional[DropTarget]:
    """
    Where a dragged task lands.

    Returns None when the drop should be reverted: nothing under the pointer,
    an unknown target, or an unknown dragged task.
    """
    if over_id is None:
        return None

    destination = find_column(over_id, tasks, columns)
    if destination is None:
        return None

    if not any(t.get("id") == active_id for t in tasks):
        return None

    candidates = sorted(
        (t for t in tasks if t.get("status") == destination and t.get("id") != active_id),
        key=_position,
    )

    position = len(candidates)
    if over_id != destination:
        for index, task in enumerate(candidates):
            if task.get("id") == over_id:
                position = index
                break

    return DropTarget(status=destination, position=position)


def group_by_status(tasks: Sequence[Dict], columns: Sequence[str] = TASK_STATUSES) -> Dict[str, List[Dict]]:
    """Tasks per column, each column sorted by position. Every column key is present."""
    grouped: Dict[str, List[Dict]] = {column: [] for column in columns}
    for task in tasks:
        status = task.get("status")
        if status in grouped:
            grouped[status].append(task)
    for column in grouped:
        grouped[column].sort(key=_position)
    return grouped
