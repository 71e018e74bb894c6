"""Request-body helpers shared by the update routes."""

from pydantic import BaseModel

from trail_directory.errors import BadRequestError


def update_fields(body: BaseModel, *required: str) -> dict:
    """Fields the client sent; an explicit null on a *required* column is a 400."""
    data = body.model_dump(mode="json", exclude_unset=True)
    cleared = [field for field in required if field in data and data[field] is None]
    if cleared:
        raise BadRequestError(f"Fields cannot be null: {', '.join(cleared)}")
    return data
