import logging
import random
import time

from fastapi import APIRouter, Depends

from museumtix.chat.responder import WELCOME_MESSAGE, reply_for
from museumtix.chat.schemas import ChatMessageRequest, ChatMessagesResponse, ChatStartRequest, ChatStartResponse
from museumtix.context import get_storage
from museumtix.errors import ConversationNotFoundError
from museumtix.schemas import ConversationCreate, MessageCreate
from museumtix.storage.interfaces import IStorage

logger = logging.getLogger(__name__)

router = APIRouter()

@router.post("/start", response_model=ChatStartResponse)
def start_conversation(request: ChatStartRequest, storage: IStorage = Depends(get_storage)):
    """Open a conversation and greet the visitor"""
    session_id = f"session_{int(time.time() * 1000)}_{random.randint(0, 999)}"
    
    user_id = request.user_id
    if user_id is not None and not storage.get_user(user_id):
        # Unknown users chat anonymously
        user_id = None
    
    conversation = storage.create_conversation(ConversationCreate(
        session_id=session_id,
        language=request.language or "en",
        user_id=user_id
    ))
    logger.info("Conversation %s started (%s)", conversation.id, conversation.language)
    storage.create_message(MessageCreate(
        conversation_id=conversation.id,
        is_from_user=False,
        content=WELCOME_MESSAGE
    ))
    
    return ChatStartResponse(
        conversation_id=conversation.id,
        session_id=session_id,
        messages=storage.get_messages_by_conversation_id(conversation.id)
    )

@router.post("/message", response_model=ChatMessagesResponse)
def send_message(request: ChatMessageRequest, storage: IStorage = Depends(get_storage)):
    """Store the visitor's message and the bot reply; return the whole thread"""
    if not storage.get_conversation(request.conversation_id):
        raise ConversationNotFoundError(request.conversation_id)
    
    storage.create_message(MessageCreate(
        conversation_id=request.conversation_id,
        is_from_user=True,
        content=request.message
    ))
    storage.create_message(MessageCreate(
        conversation_id=request.conversation_id,
        is_from_user=False,
        content=reply_for(request.message)
    ))
    
    return ChatMessagesResponse(
        messages=storage.get_messages_by_conversation_id(request.conversation_id)
    )

@router.get("/messages/{conversation_id}", response_model=ChatMessagesResponse)
def get_messages(conversation_id: int, storage: IStorage = Depends(get_storage)):
    if not storage.get_conversation(conversation_id):
        raise ConversationNotFoundError(conversation_id)
    return ChatMessagesResponse(messages=storage.get_messages_by_conversation_id(conversation_id))
