"""
Base class for domain models
"""
from decimal import Decimal
from typing import Any

from pydantic import BaseModel, ConfigDict


def to_jsonable(value: Any) -> Any:
    """Recursively convert Decimal to float"""
    if isinstance(value, Decimal):
        return float(value)
    if isinstance(value, dict):
        return {key: to_jsonable(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_jsonable(item) for item in value]
    return value


class DomainModel(BaseModel):
    """
    Response models are built straight from ORM rows
    (Model.model_validate(row)) and serialized with to_dict().
    """

    model_config = ConfigDict(from_attributes=True)

    def to_dict(self) -> dict:
        """Convert to dictionary with Decimal to float conversion"""
        return to_jsonable(self.model_dump())
