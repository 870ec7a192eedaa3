from pydantic import BaseModel, ConfigDict, Field


class BackendPermission(BaseModel):
    """Permission record as returned by the backend, e.g. ``{"name": "sales.view"}``."""

    name: str = Field(..., min_length=1)
    id: int | None = None
    category: str | None = None

    model_config = ConfigDict(from_attributes=True)


class BackendRole(BaseModel):
    id: int
    name: str
    guard_name: str | None = None
    permissions: list[BackendPermission] = Field(default_factory=list)
    permissions_by_category: dict[str, list[BackendPermission]] = Field(default_factory=dict)

    model_config = ConfigDict(from_attributes=True)
