from pydantic import BaseModel, Field

from .config import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE


class MessageResponse(BaseModel):
    message: str


class PageParams(BaseModel):
    """Pagination shared by the list operations"""

    page: int = Field(1, ge=1)
    limit: int = Field(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE)

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit
