from pydantic import BaseModel, Field


class AssistantQuestion(BaseModel):
    question: str = Field(min_length=1, max_length=2000)


class AssistantReply(BaseModel):
    text: str
