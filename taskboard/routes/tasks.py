# taskboard/routes/tasks.py
"""CRUD endpoints for tasks."""

from typing import Any

from fastapi import APIRouter, Body, Depends, Request

from taskboard.backends import KeyValueStore, get_kv_store
from taskboard.service import TaskService
from taskboard.store import TaskStore
from taskboard.validation import validate_create_task, validate_list_query, validate_update_task

router = APIRouter(prefix="/api/v1/tasks", tags=["tasks"])


def get_task_service(kv_store: KeyValueStore = Depends(get_kv_store)) -> TaskService:
    """Build a task service over the shared store for FastAPI dependency injection."""
    return TaskService(TaskStore(kv_store))


@router.get("")
def list_tasks(request: Request, service: TaskService = Depends(get_task_service)) -> dict:
    """List tasks with optional status filter, sorting and pagination."""
    query = validate_list_query(dict(request.query_params))
    return service.get_all(query.page, query.limit, query.filters).to_dict()


@router.get("/{task_id}")
def get_task(task_id: str, service: TaskService = Depends(get_task_service)) -> dict:
    """Get a single task by ID."""
    return {"data": service.get_by_id(task_id).to_dict()}


@router.post("", status_code=201)
def create_task(body: Any = Body(None), service: TaskService = Depends(get_task_service)) -> dict:
    """Create a new task. New tasks always start as pending."""
    task = service.create(validate_create_task(body))
    return {"data": task.to_dict()}


@router.put("/{task_id}")
def update_task(
    task_id: str, body: Any = Body(None), service: TaskService = Depends(get_task_service)
) -> dict:
    """Update an existing task. Only provided fields are changed."""
    task = service.update(task_id, validate_update_task(body))
    return {"data": task.to_dict()}


@router.delete("", status_code=200)
def delete_all_tasks(service: TaskService = Depends(get_task_service)) -> dict:
    """Delete every task."""
    deleted_count = service.delete_all()
    return {
        "data": {
            "message": f"Successfully deleted {deleted_count} task(s)",
            "deletedCount": deleted_count,
        }
    }


@router.delete("/{task_id}", status_code=204)
def delete_task(task_id: str, service: TaskService = Depends(get_task_service)) -> None:
    """Delete a task by ID."""
    service.delete(task_id)
