from pydantic import BaseModel, computed_field


class Pagination(BaseModel):
    total: int
    limit: int
    offset: int

    @computed_field  # type: ignore[misc]
    @property
    def has_more(self) -> bool:
        return self.offset + self.limit < self.total


class MessageResponse(BaseModel):
    success: bool = True
    message: str
