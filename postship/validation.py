# postship/validation.py
"""
Boundary between raw wire data and the typed models in `postship.models`.

`validate` is the single entry point used for payloads that do not go
through FastAPI's own body parsing (query strings, direct service calls).
FastAPI's request validation errors are rendered with the same
`format_errors` so every 400 carries the same detail shape.
"""
from typing import Any, Dict, Iterable, List, Mapping, Type, TypeVar

import pydantic

from .errors import ValidationError

M = TypeVar("M", bound=pydantic.BaseModel)

# leading location segments FastAPI adds to say where a field came from
_SOURCES = ("body", "query", "path", "header", "cookie")


def format_errors(errors: Iterable[Mapping[str, Any]], strip_location: bool = False) -> List[Dict[str, Any]]:
    """Reduce pydantic error dicts to `{"code", "path", "message"}`.

    The raw dicts also hold the rejected input and exception objects in
    `ctx`, neither of which is safe to echo back as JSON.
    """
    details = []
    for err in errors:
        path = list(err.get("loc", ()))
        if strip_location and path and path[0] in _SOURCES:
            path = path[1:]
        details.append({
            "code": err.get("type", "invalid"),
            "path": path,
            "message": err.get("msg", "Invalid value"),
        })
    return details


def validate(model: Type[M], data: Any) -> M:
    """Parse `data` into `model`, raising ValidationError listing every bad field."""
    if isinstance(data, model):
        return data
    try:
        return model.model_validate(data)
    except pydantic.ValidationError as e:
        raise ValidationError(details=format_errors(e.errors())) from e
