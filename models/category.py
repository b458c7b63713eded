from datetime import datetime

from pydantic import BaseModel, Field
from sqlalchemy import Integer, Column, String, Text, Boolean, DateTime, ForeignKey, func

from models.base import Base


class Category(Base):
    __tablename__ = 'categories'

    id = Column(Integer, primary_key=True)
    name = Column(String(100), nullable=False)
    description = Column(Text, nullable=True)
    # NULL parent marks a root category
    parent_id = Column(Integer, ForeignKey('categories.id'), nullable=True)
    image_url = Column(String(500), nullable=True)
    sort_order = Column(Integer, nullable=False, default=0)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, default=func.now())


class CategoryDTO(BaseModel):
    id: int | None = None
    name: str | None = None
    description: str | None = None
    parent_id: int | None = None
    image_url: str | None = None
    sort_order: int | None = None
    is_active: bool | None = None
    created_at: datetime | None = None

    def is_root(self) -> bool:
        return self.parent_id is None


class CategoryTreeNodeDTO(CategoryDTO):
    children: list['CategoryTreeNodeDTO'] = Field(default_factory=list)
