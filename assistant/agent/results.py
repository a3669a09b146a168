"""Turn results returned by the manager."""

from typing import Annotated, Literal

from pydantic import BaseModel, Field


class TurnResponse(BaseModel):
    """A normal model-generated reply."""

    type: Literal["response"] = "response"
    content: str
    memories_extracted: int = 0
    conversation_id: str


class CodeChangeAck(BaseModel):
    """Acknowledgement that a change request was captured instead of answered."""

    type: Literal["code_change_request"] = "code_change_request"
    message: str
    request_id: str
    conversation_id: str


TurnResult = Annotated[TurnResponse | CodeChangeAck, Field(discriminator="type")]
