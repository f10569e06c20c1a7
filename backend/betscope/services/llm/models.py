from typing import Literal

from pydantic import BaseModel


class ChatTurn(BaseModel):
    """One prior message in a conversation sent to the text service."""

    role: Literal["user", "assistant"]
    content: str
