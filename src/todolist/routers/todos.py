from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status
from fastapi.responses import JSONResponse

from ..schemas import PriorityOut, TodoCreate, TodoDetailUpdate, TodoListOut, TodoOut
from ..store import TodoStore
from ..utils import PRIORITY_PALETTE, list_envelope

router = APIRouter(
    prefix="/api/v1/todos",
    tags=["todos"],
)

priorities_router = APIRouter(
    prefix="/api/v1/priorities",
    tags=["priorities"],
)


def get_store(request: Request) -> TodoStore:
    """
    Dependency returning the application's shared TodoStore.
    """
    return request.app.state.store


def _list_out(store: TodoStore) -> TodoListOut:
    envelope = list_envelope(
        items=[TodoOut.from_record(t) for t in store.todos],
        completed_count=store.completed_count,
        total_count=store.total_count,
    )
    return TodoListOut(**envelope)


# PUBLIC_INTERFACE
@router.get(
    "/",
    response_model=TodoListOut,
    summary="List Todos",
    description="Return all todos, newest first, with completed and total counts.",
)
def list_todos(store: TodoStore = Depends(get_store)) -> TodoListOut:
    """
    List todos with derived counters.
    """
    return _list_out(store)


# PUBLIC_INTERFACE
@router.post(
    "/",
    response_model=TodoOut,
    status_code=status.HTTP_201_CREATED,
    summary="Add Todo",
    description=(
        "Add a new todo at the top of the list. Text is trimmed; blank text is "
        "ignored and answered with 200 and the unchanged list."
    ),
    responses={
        201: {"description": "Todo created", "model": TodoOut},
        200: {"description": "Blank text ignored", "model": TodoListOut},
    },
)
async def add_todo(payload: TodoCreate, store: TodoStore = Depends(get_store)):
    """
    Add a new todo.
    """
    created = await store.add(payload.text)
    if created is None:
        body = _list_out(store).model_dump(mode="json", by_alias=True)
        return JSONResponse(status_code=status.HTTP_200_OK, content=body)
    return TodoOut.from_record(created)


# PUBLIC_INTERFACE
@router.post(
    "/reload",
    response_model=TodoListOut,
    summary="Reload Todos",
    description="Re-read the list from storage, as the list view does when it regains focus.",
)
async def reload_todos(store: TodoStore = Depends(get_store)) -> TodoListOut:
    """
    Reload the in-memory list from storage.
    """
    await store.load()
    return _list_out(store)


# PUBLIC_INTERFACE
@router.post(
    "/{todo_id}/toggle",
    response_model=TodoListOut,
    summary="Toggle Todo",
    description="Flip the completed flag of a todo. Unknown ids leave the list unchanged.",
)
async def toggle_todo(todo_id: str, store: TodoStore = Depends(get_store)) -> TodoListOut:
    """
    Toggle completion of a todo.
    """
    await store.toggle(todo_id)
    return _list_out(store)


# PUBLIC_INTERFACE
@router.delete(
    "/{todo_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete Todo",
    description="Delete a todo by ID. Deleting an unknown id is a no-op.",
    responses={204: {"description": "Todo deleted or already absent"}},
)
async def delete_todo(todo_id: str, store: TodoStore = Depends(get_store)) -> Response:
    """
    Delete a todo. Always returns 204.
    """
    await store.delete(todo_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# PUBLIC_INTERFACE
@router.get(
    "/{todo_id}",
    response_model=TodoOut,
    summary="Open Todo Detail",
    description="Return a snapshot of a single todo as currently persisted.",
    responses={
        200: {"description": "Todo found"},
        404: {"description": "Todo not found"},
    },
)
async def open_todo_detail(todo_id: str, store: TodoStore = Depends(get_store)) -> TodoOut:
    """
    Retrieve a single todo for the detail view.
    """
    record = await store.open_detail(todo_id)
    if record is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Todo not found")
    return TodoOut.from_record(record)


# PUBLIC_INTERFACE
@router.put(
    "/{todo_id}/detail",
    response_model=TodoListOut,
    summary="Save Todo Detail",
    description=(
        "Overwrite the comment and priority of a todo. Text, completion and "
        "creation time are never changed. Unknown ids leave the list unchanged."
    ),
)
async def save_todo_detail(
    todo_id: str, payload: TodoDetailUpdate, store: TodoStore = Depends(get_store)
) -> TodoListOut:
    """
    Save the detail view of a todo.
    """
    await store.update_detail(todo_id, comment=payload.comment, priority=payload.priority)
    return _list_out(store)


# PUBLIC_INTERFACE
@priorities_router.get(
    "/",
    response_model=List[PriorityOut],
    summary="List Priorities",
    description="Priority levels with their display label, color and icon.",
)
def list_priorities() -> List[PriorityOut]:
    """
    Return the priority palette in selector order.
    """
    return [PriorityOut(**p) for p in PRIORITY_PALETTE]
