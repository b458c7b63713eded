import math
from decimal import Decimal

from pydantic import BaseModel, Field, field_validator, model_validator

import config
from enums.sort_field import SortField, SortOrder
from models.product import ProductDTO


class ProductSearchCriteria(BaseModel):
    """
    Optional product search parameters.

    Out-of-range paging values are clamped instead of rejected, and unknown sort
    input falls back to the defaults, so a criteria object is always usable.
    """
    keyword: str | None = None
    category_id: int | None = None
    min_price: Decimal | None = None
    max_price: Decimal | None = None
    in_stock: bool = False
    sort_by: SortField = SortField.CREATED_AT
    sort_order: SortOrder = SortOrder.DESC
    page: int = 1
    page_size: int = config.DEFAULT_PAGE_SIZE

    @field_validator("keyword", mode="before")
    @classmethod
    def blank_keyword_is_none(cls, value):
        if isinstance(value, str) and value.strip() == "":
            return None
        return value.strip() if isinstance(value, str) else value

    @field_validator("sort_by", mode="before")
    @classmethod
    def parse_sort_by(cls, value):
        if isinstance(value, SortField):
            return value
        return SortField.from_string(value)

    @field_validator("sort_order", mode="before")
    @classmethod
    def parse_sort_order(cls, value):
        if isinstance(value, SortOrder):
            return value
        return SortOrder.from_string(value)

    @field_validator("page", mode="before")
    @classmethod
    def clamp_page(cls, value):
        if value is None or int(value) < 1:
            return 1
        return int(value)

    @field_validator("page_size", mode="before")
    @classmethod
    def clamp_page_size(cls, value):
        if value is None or not 1 <= int(value) <= config.MAX_PAGE_SIZE:
            return config.DEFAULT_PAGE_SIZE
        return int(value)

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.page_size


class PageInfoDTO(BaseModel):
    page: int
    page_size: int
    total_count: int
    total_pages: int

    @classmethod
    def build(cls, page: int, page_size: int, total_count: int) -> 'PageInfoDTO':
        return cls(page=page,
                   page_size=page_size,
                   total_count=total_count,
                   total_pages=math.ceil(total_count / page_size) if page_size > 0 else 0)


class ProductSearchResult(BaseModel):
    products: list[ProductDTO] = Field(default_factory=list)
    total_count: int = 0
    current_page: int = 1
    page_size: int = config.DEFAULT_PAGE_SIZE
    total_pages: int = 0

    @model_validator(mode="after")
    def compute_total_pages(self):
        if self.page_size > 0:
            self.total_pages = math.ceil(self.total_count / self.page_size)
        return self

    def has_next(self) -> bool:
        return self.current_page < self.total_pages

    def has_previous(self) -> bool:
        return self.current_page > 1


def normalize_paging(page: int | None, page_size: int | None) -> tuple[int, int]:
    """Same clamping rules as ProductSearchCriteria, for the plain listing endpoints."""
    page = 1 if page is None or page < 1 else page
    if page_size is None or not 1 <= page_size <= config.MAX_PAGE_SIZE:
        page_size = config.DEFAULT_PAGE_SIZE
    return page, page_size
