from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Response, status

from app.repositories.tasks import TaskRepository, get_task_repository
from app.schemas import TaskCollection, TaskCreate, TaskRead, TaskReplace

router = APIRouter()


@router.get("/", response_model=TaskCollection)
def list_tasks(repository: TaskRepository = Depends(get_task_repository)) -> TaskCollection:
    items = repository.list_tasks()
    return TaskCollection(items=[TaskRead.model_validate(item, from_attributes=True) for item in items])


@router.post("/", response_model=TaskRead, status_code=status.HTTP_201_CREATED)
def create_task(payload: TaskCreate, repository: TaskRepository = Depends(get_task_repository)) -> TaskRead:
    task = repository.create_task(**payload.model_dump())
    return TaskRead.model_validate(task, from_attributes=True)


@router.put("/", response_model=TaskCollection)
def replace_tasks(payload: TaskReplace, repository: TaskRepository = Depends(get_task_repository)) -> TaskCollection:
    items = repository.replace_tasks(item.model_dump() for item in payload.items)
    return TaskCollection(items=[TaskRead.model_validate(item, from_attributes=True) for item in items])


@router.delete("/", status_code=status.HTTP_204_NO_CONTENT, response_class=Response)
def clear_tasks(repository: TaskRepository = Depends(get_task_repository)) -> Response:
    repository.clear()
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{task_id}", response_model=TaskRead)
def get_task(task_id: str, repository: TaskRepository = Depends(get_task_repository)) -> TaskRead:
    task = repository.get_task(task_id)
    if task is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Task not found")
    return TaskRead.model_validate(task, from_attributes=True)


@router.delete("/{task_id}", status_code=status.HTTP_204_NO_CONTENT, response_class=Response)
def delete_task(task_id: str, repository: TaskRepository = Depends(get_task_repository)) -> Response:
    if not repository.delete_task(task_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Task not found")
    return Response(status_code=status.HTTP_204_NO_CONTENT)
