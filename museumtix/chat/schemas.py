from pydantic import Field
from typing import List, Optional

from museumtix.schemas import CamelModel, Message


class ChatStartRequest(CamelModel):
    language: Optional[str] = "en"
    user_id: Optional[int] = None

class ChatStartResponse(CamelModel):
    conversation_id: int
    session_id: str
    messages: List[Message]

class ChatMessageRequest(CamelModel):
    conversation_id: int
    message: str = Field(..., min_length=1)

class ChatMessagesResponse(CamelModel):
    messages: List[Message]
