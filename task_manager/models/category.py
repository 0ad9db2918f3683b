"""Category domain model."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from ..utils.clock import current_time

DEFAULT_COLOR = "#007bff"


class Category(BaseModel):
    """Named grouping of tasks owned by a user."""

    id: Optional[int] = Field(None, description="Identity assigned on first save")
    name: str = Field(..., min_length=1, max_length=100, description="Category name")
    color: str = Field(default=DEFAULT_COLOR, pattern=r"^#[0-9a-fA-F]{6}$", description="Hex color")
    description: Optional[str] = Field(None, max_length=500, description="Category description")
    user_id: int = Field(..., gt=0, description="Owner of the category")
    created_at: datetime = Field(default_factory=current_time, description="Creation timestamp")
    updated_at: datetime = Field(default_factory=current_time, description="Last update timestamp")
