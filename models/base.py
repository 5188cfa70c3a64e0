"""
Base model for Via client value objects

Value objects are immutable once built; replace them rather than mutate them.
"""
from pydantic import BaseModel


class ViaBaseModel(BaseModel):
    """Base model for immutable Via value objects."""

    model_config = {
        "frozen": True,
        "extra": "ignore",
    }
