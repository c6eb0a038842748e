"""
ReadNote Server — Request Body Helpers
========================================

What:  Reads and decodes JSON request bodies for the API handlers.
Why:   FastAPI's automatic body validation answers 422 for both malformed
       JSON and missing fields. The reader expects 500 for the first and
       400 for the second, so bodies are decoded here and validated by
       the services.
"""

import json
from typing import Any, Type, TypeVar

from fastapi import Request
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from readnote.exceptions import RequestBodyError, ValidationError

ModelT = TypeVar("ModelT", bound=BaseModel)


async def read_json_body(request: Request) -> Any:
    """
    Decode the request body as JSON. An empty body decodes to {}.

    Raises:
        RequestBodyError: the body is not valid JSON (→ 500)
    """
    raw = await request.body()
    if not raw.strip():
        return {}
    try:
        return json.loads(raw)
    except ValueError as e:
        # UnicodeDecodeError is a ValueError too
        raise RequestBodyError(message=str(e), context={"length": len(raw)})


def validate_body(model: Type[ModelT], body: Any) -> ModelT:
    """
    Coerce a decoded body into `model`.

    Raises:
        ValidationError: the body is not an object, or a field has the wrong type (→ 400)
    """
    if not isinstance(body, dict):
        raise ValidationError(
            message="Request body must be a JSON object",
            context={"received": type(body).__name__},
        )
    try:
        return model.model_validate(body)
    except PydanticValidationError as e:
        fields = [".".join(str(p) for p in err["loc"]) for err in e.errors()]
        raise ValidationError(
            message="Invalid request fields: " + ", ".join(fields),
            field=fields[0] if fields else None,
            context={"fields": fields},
        )
