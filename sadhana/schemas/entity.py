from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field, field_validator


class EntityIn(BaseModel):
    name: Annotated[str, Field(min_length=1, max_length=128, examples=["Radha Devi"])]

    @field_validator("name", mode="before")
    @classmethod
    def strip_and_check_empty(cls, v: str) -> str:
        stripped = v.strip() if isinstance(v, str) else v
        if not stripped:
            raise ValueError("name must not be empty after stripping whitespace")
        return stripped


class EntityResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str


class EntityDeletedResponse(BaseModel):
    id: int
    submissions_removed: int
