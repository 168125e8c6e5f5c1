# bots/state.py: Registro de conversación por usuario + accessors de UserState
from enum import Enum
from typing import Optional

from botbuilder.core import StatePropertyAccessor, TurnContext, UserState


class ConversationRecord:
    """Estado del juego de un usuario de Alexa."""

    def __init__(self, display_name: Optional[str] = None, turn_count: int = 0):
        self.display_name = display_name
        self.turn_count = turn_count

    def __repr__(self) -> str:
        return f"ConversationRecord(display_name={self.display_name!r}, turn_count={self.turn_count})"


class ConversationMode(str, Enum):
    AWAITING_NAME = "awaiting_name"
    REPEAT = "repeat"
    PROMPT_FOR_QUESTION = "prompt_for_question"
    QNA = "qna"


def mode_for(record: ConversationRecord, repeat_limit: int) -> ConversationMode:
    if record.display_name is None:
        return ConversationMode.AWAITING_NAME
    if record.turn_count < repeat_limit:
        return ConversationMode.REPEAT
    if record.turn_count == repeat_limit:
        return ConversationMode.PROMPT_FOR_QUESTION
    return ConversationMode.QNA


class BotStateAccessors:
    def __init__(self, user_state: UserState):
        self._user_state = user_state
        self.conversation: StatePropertyAccessor = user_state.create_property("AlexaConversation")

    async def get_record(self, turn_context: TurnContext) -> ConversationRecord:
        return await self.conversation.get(turn_context, ConversationRecord)

    async def set_record(self, turn_context: TurnContext, record: ConversationRecord) -> None:
        await self.conversation.set(turn_context, record)

    async def save_changes(self, turn_context: TurnContext) -> None:
        await self._user_state.save_changes(turn_context)
