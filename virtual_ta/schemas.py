from typing import Any

from pydantic import BaseModel, Field, StrictStr


class QuestionRequest(BaseModel):
    question: StrictStr = Field(..., min_length=1)
    image: Any = None


class Match(BaseModel):
    id: str
    distance: float | None = None
    metadata: dict = Field(default_factory=dict)

    @property
    def url(self) -> str | None:
        return self.metadata.get('url')

    @property
    def text(self) -> str:
        return self.metadata.get('text') or ''


class Link(BaseModel):
    url: str | None
    text: str


class AnswerResponse(BaseModel):
    answer: str
    links: list[Link]


class StatusResponse(BaseModel):
    message: str


class ErrorResponse(BaseModel):
    error: str
