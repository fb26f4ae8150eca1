from __future__ import annotations

from typing import List, Union

from fastapi import APIRouter, Depends, Request, status

from ..codec import from_document, parse_object_id
from ..exceptions import NoFieldsToUpdateError, NotFoundError, ValidationError
from ..repositories import Repository
from ..schemas import (
    ErrorOut,
    MessageOut,
    NoDataOut,
    RequestBody,
    TodoCreate,
    TodoEnvelope,
    TodoOut,
    TodoUpdate,
)
from ..utils import message_envelope, no_data_envelope

router = APIRouter(
    prefix="/api/todos",
    tags=["todos"],
)


def _get_repo(request: Request) -> Repository:
    """
    Dependency returning the storage handle built at application startup.
    """
    return request.app.state.repository


FORM_TYPES = ("application/x-www-form-urlencoded", "multipart/form-data")


async def _read_body(request: Request) -> RequestBody:
    """
    Read the undecoded request body so handlers control how decode failures map to statuses.

    Form-encoded bodies are returned as a dict of their text fields; anything else as raw bytes.
    """
    content_type = request.headers.get("content-type", "").split(";")[0].strip().lower()
    if content_type in FORM_TYPES:
        form = await request.form()
        return {key: value for key, value in form.items() if isinstance(value, str)}
    return await request.body()


def _json_body(model: type) -> dict:
    return {
        "requestBody": {
            "required": True,
            "content": {"application/json": {"schema": model.model_json_schema()}},
        }
    }


# PUBLIC_INTERFACE
@router.get("/", response_model=Union[List[TodoOut], NoDataOut], include_in_schema=False)
@router.get(
    "",
    response_model=Union[List[TodoOut], NoDataOut],
    summary="List Todos",
    description=(
        "List every todo in storage order. When the collection is empty the response is the "
        "object {\"data\": \"Todos Not Available\"} rather than an empty array."
    ),
    responses={
        200: {"description": "Todos, or the no-data sentinel"},
        500: {"model": ErrorOut, "description": "Storage error"},
    },
)
def list_todos(repo: Repository = Depends(_get_repo)):
    """
    List all todos.
    """
    items = repo.list_all()
    if not items:
        return no_data_envelope()
    return [from_document(it) for it in items]


# PUBLIC_INTERFACE
@router.get(
    "/{todo_id}",
    response_model=TodoOut,
    summary="Get Todo",
    description="Get a single Todo item by ID.",
    responses={
        200: {"description": "Todo found"},
        400: {"model": ErrorOut, "description": "Invalid todo ID"},
        500: {"model": ErrorOut, "description": "Todo not found or storage error"},
    },
)
def get_todo(todo_id: str, repo: Repository = Depends(_get_repo)) -> TodoOut:
    """
    Retrieve a single Todo item by its ID. A missing todo is reported as a server error.
    """
    item = repo.get(parse_object_id(todo_id))
    if item is None:
        raise NotFoundError(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR)
    return from_document(item)


# PUBLIC_INTERFACE
@router.post("/", response_model=TodoEnvelope, status_code=status.HTTP_201_CREATED, include_in_schema=False)
@router.post(
    "",
    response_model=TodoEnvelope,
    status_code=status.HTTP_201_CREATED,
    summary="Create Todo",
    description="Create a new Todo item and return it with its assigned ID.",
    openapi_extra=_json_body(TodoCreate),
    responses={
        201: {"description": "Todo created successfully"},
        400: {"model": ErrorOut, "description": "Empty description"},
        500: {"model": ErrorOut, "description": "Malformed body or storage error"},
    },
)
def create_todo(raw: RequestBody = Depends(_read_body), repo: Repository = Depends(_get_repo)) -> dict:
    """
    Create a new Todo.
    """
    payload = TodoCreate.decode(raw, status_code=status.HTTP_500_INTERNAL_SERVER_ERROR)
    if not payload.has_description():
        raise ValidationError()
    created = repo.create(payload)
    return message_envelope("Todo Created Successfully", from_document(created))


# PUBLIC_INTERFACE
@router.patch(
    "/{todo_id}",
    response_model=TodoEnvelope,
    summary="Update Todo",
    description=(
        "Partially update `completed` and/or `description` of a Todo item. "
        "The response carries the todo as it was before the update."
    ),
    openapi_extra=_json_body(TodoUpdate),
    responses={
        200: {"description": "Todo updated; data holds the previous state"},
        400: {"model": ErrorOut, "description": "Invalid ID, malformed body or no fields to update"},
        404: {"model": ErrorOut, "description": "Todo not found"},
    },
)
def patch_todo(
    todo_id: str,
    raw: RequestBody = Depends(_read_body),
    repo: Repository = Depends(_get_repo),
) -> dict:
    """
    Partial update of a Todo item.
    """
    oid = parse_object_id(todo_id)
    payload = TodoUpdate.decode(raw)
    changes = payload.changes()
    if not changes:
        raise NoFieldsToUpdateError()
    if "description" in changes and not changes["description"].strip():
        raise ValidationError()
    previous = repo.update(oid, payload)
    if previous is None:
        raise NotFoundError("Todo not found or failed to update")
    return message_envelope("Todo Updated Successfully", from_document(previous))


# PUBLIC_INTERFACE
@router.delete(
    "/{todo_id}",
    response_model=MessageOut,
    summary="Delete Todo",
    description="Delete a Todo item by ID. Succeeds whether or not the todo existed.",
    responses={
        200: {"description": "Todo deleted"},
        400: {"model": ErrorOut, "description": "Invalid todo ID"},
        500: {"model": ErrorOut, "description": "Storage error"},
    },
)
def delete_todo(todo_id: str, repo: Repository = Depends(_get_repo)) -> dict:
    """
    Delete a Todo. Deleting a todo that does not exist still reports success.
    """
    repo.delete(parse_object_id(todo_id))
    return message_envelope("Todo Deleted Successfully")
