from __future__ import annotations

from fastapi import APIRouter, Depends, status

from cosmic_notes.api.v1.schemas.todo import TodoCreate, TodoUpdate  # noqa: TCH001
from cosmic_notes.core.models.todo import TodoItem
from cosmic_notes.core.schemas.auth import AuthUser  # noqa: TCH001
from cosmic_notes.core.services.todo_service import TodoService  # noqa: TCH001
from cosmic_notes.dependencies import get_current_user, get_todo_service

router = APIRouter()


@router.get("/", response_model=list[TodoItem])
async def list_todos(
    tag_family: str | None = None,
    current_user: AuthUser = Depends(get_current_user),
    service: TodoService = Depends(get_todo_service),
):
    return await service.list_todos(tag_family)


@router.post("/", response_model=TodoItem, status_code=status.HTTP_201_CREATED)
async def create_todo(
    payload: TodoCreate,
    current_user: AuthUser = Depends(get_current_user),
    service: TodoService = Depends(get_todo_service),
):
    return await service.create_todo(payload.tag_family, payload.text, current_user.id)


@router.patch("/{todo_id}", response_model=TodoItem)
async def update_todo(
    todo_id: int,
    payload: TodoUpdate,
    current_user: AuthUser = Depends(get_current_user),
    service: TodoService = Depends(get_todo_service),
):
    return await service.update_todo(todo_id, text=payload.text, done=payload.done)


@router.delete("/{todo_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_todo(
    todo_id: int,
    current_user: AuthUser = Depends(get_current_user),
    service: TodoService = Depends(get_todo_service),
):
    await service.delete_todo(todo_id)
