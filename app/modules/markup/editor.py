"""
Markup editor state and its operations.

Every operation takes a MarkupEditorState and returns a new one; the
input state is never mutated. Mutating operations (add, update,
delete_selected, paste) push a snapshot of the current objects onto the
undo stack and clear the redo stack. Operations that have nothing to do
return the state they were given.

Objects are stored in markup_documents.markup_data with camelCase keys
(strokeWidth, fontSize, createdAt, modifiedAt), so models read and write
both spellings and serialize by alias.
"""

import uuid
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

from app.core.time_utils import utc_now_iso

PASTE_OFFSET = 20

MarkupType = Literal["box", "text", "drawing"]
ToolName = Literal["select", "box", "text", "pen", "pan"]


class Point(BaseModel):
    x: float
    y: float


class MarkupObject(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")

    id: str
    type: MarkupType
    x: float
    y: float
    width: Optional[float] = None
    height: Optional[float] = None
    color: Optional[str] = None
    stroke_width: Optional[float] = None
    text: Optional[str] = None
    font_size: Optional[float] = None
    points: Optional[List[Point]] = None
    created_at: str = Field(default_factory=utc_now_iso)
    modified_at: str = Field(default_factory=utc_now_iso)


class ToolState(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    active_tool: ToolName = "select"
    box_color: str = "red"
    text_color: str = "black"
    stroke_width: float = 2
    font_size: float = 16
    clipboard: List[MarkupObject] = []


class MarkupEditorState(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    markup_objects: List[MarkupObject] = []
    selected_objects: List[str] = []
    undo_stack: List[List[MarkupObject]] = []
    redo_stack: List[List[MarkupObject]] = []
    tool_state: ToolState = Field(default_factory=ToolState)


def new_object_id(markup_type: str) -> str:
    return f"{markup_type}-{uuid.uuid4().hex}"


def _commit(state: MarkupEditorState, objects: List[MarkupObject], **changes: Any) -> MarkupEditorState:
    """Replace the objects, recording the previous ones for undo"""
    return state.model_copy(update={
        "markup_objects": objects,
        "undo_stack": state.undo_stack + [state.markup_objects],
        "redo_stack": [],
        **changes,
    })


def add_object(state: MarkupEditorState, obj: MarkupObject) -> MarkupEditorState:
    return _commit(state, state.markup_objects + [obj])


def update_object(state: MarkupEditorState, object_id: str, changes: Dict[str, Any]) -> MarkupEditorState:
    """Apply field changes to one object; id, type and createdAt are fixed"""
    index = next((i for i, o in enumerate(state.markup_objects) if o.id == object_id), None)
    if index is None:
        return state
    current = state.markup_objects[index]
    data = current.model_dump(by_alias=True)
    fields = MarkupObject.model_fields
    for key, value in changes.items():
        data[fields[key].alias if key in fields else key] = value
    data.update({"id": current.id, "type": current.type, "createdAt": current.created_at, "modifiedAt": utc_now_iso()})
    objects = list(state.markup_objects)
    objects[index] = MarkupObject.model_validate(data)
    return _commit(state, objects)


def select_objects(state: MarkupEditorState, ids: List[str], additive: bool = False) -> MarkupEditorState:
    existing = {o.id for o in state.markup_objects}
    chosen = [i for i in ids if i in existing]
    if additive:
        chosen = state.selected_objects + [i for i in chosen if i not in state.selected_objects]
    return state.model_copy(update={"selected_objects": list(dict.fromkeys(chosen))})


def select_all(state: MarkupEditorState) -> MarkupEditorState:
    return state.model_copy(update={"selected_objects": [o.id for o in state.markup_objects]})


def deselect_all(state: MarkupEditorState) -> MarkupEditorState:
    return state.model_copy(update={"selected_objects": []})


def delete_selected(state: MarkupEditorState) -> MarkupEditorState:
    if not state.selected_objects:
        return state
    selected = set(state.selected_objects)
    remaining = [o for o in state.markup_objects if o.id not in selected]
    return _commit(state, remaining, selected_objects=[])


def copy_selected(state: MarkupEditorState) -> MarkupEditorState:
    if not state.selected_objects:
        return state
    selected = set(state.selected_objects)
    clipboard = [o for o in state.markup_objects if o.id in selected]
    tool_state = state.tool_state.model_copy(update={"clipboard": clipboard})
    return state.model_copy(update={"tool_state": tool_state})


def paste(state: MarkupEditorState) -> MarkupEditorState:
    """Clone the clipboard offset by (+20, +20) with new ids, and select the clones"""
    if not state.tool_state.clipboard:
        return state
    now = utc_now_iso()
    pasted = [
        o.model_copy(update={
            "id": new_object_id(o.type),
            "x": o.x + PASTE_OFFSET,
            "y": o.y + PASTE_OFFSET,
            "created_at": now,
            "modified_at": now,
        }, deep=True)
        for o in state.tool_state.clipboard
    ]
    return _commit(state, state.markup_objects + pasted, selected_objects=[o.id for o in pasted])


def _prune_selection(selected: List[str], objects: List[MarkupObject]) -> List[str]:
    existing = {o.id for o in objects}
    return [i for i in selected if i in existing]


def undo(state: MarkupEditorState) -> MarkupEditorState:
    if not state.undo_stack:
        return state
    previous = state.undo_stack[-1]
    return state.model_copy(update={
        "markup_objects": previous,
        "undo_stack": state.undo_stack[:-1],
        "redo_stack": state.redo_stack + [state.markup_objects],
        "selected_objects": _prune_selection(state.selected_objects, previous),
    })


def redo(state: MarkupEditorState) -> MarkupEditorState:
    if not state.redo_stack:
        return state
    following = state.redo_stack[-1]
    return state.model_copy(update={
        "markup_objects": following,
        "redo_stack": state.redo_stack[:-1],
        "undo_stack": state.undo_stack + [state.markup_objects],
        "selected_objects": _prune_selection(state.selected_objects, following),
    })


OperationName = Literal[
    "add", "update", "select", "select_all", "deselect_all",
    "delete_selected", "copy_selected", "paste", "undo", "redo",
]


class EditOperation(BaseModel):
    """One editor action as sent by a client"""

    op: OperationName
    object: Optional[Dict[str, Any]] = None
    id: Optional[str] = None
    changes: Optional[Dict[str, Any]] = None
    ids: Optional[List[str]] = None
    additive: bool = False

    @model_validator(mode="after")
    def check_arguments(self):
        if self.op == "add" and not self.object:
            raise ValueError("'add' requires object")
        if self.op == "update" and (not self.id or self.changes is None):
            raise ValueError("'update' requires id and changes")
        if self.op == "select" and self.ids is None:
            raise ValueError("'select' requires ids")
        return self


def build_object(data: Dict[str, Any]) -> MarkupObject:
    """Validate a client-supplied object, filling in id and timestamps when missing"""
    data = dict(data)
    if not data.get("id"):
        data["id"] = new_object_id(data.get("type", "box"))
    return MarkupObject.model_validate(data)


def apply_operation(state: MarkupEditorState, operation: EditOperation) -> MarkupEditorState:
    op = operation.op
    if op == "add":
        return add_object(state, build_object(operation.object))
    if op == "update":
        return update_object(state, operation.id, operation.changes)
    if op == "select":
        return select_objects(state, operation.ids, operation.additive)
    if op == "select_all":
        return select_all(state)
    if op == "deselect_all":
        return deselect_all(state)
    if op == "delete_selected":
        return delete_selected(state)
    if op == "copy_selected":
        return copy_selected(state)
    if op == "paste":
        return paste(state)
    if op == "undo":
        return undo(state)
    return redo(state)


def apply_operations(state: MarkupEditorState, operations: List[EditOperation]) -> MarkupEditorState:
    for operation in operations:
        state = apply_operation(state, operation)
    return state
