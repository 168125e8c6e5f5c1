"""Shared pytest fixtures for testing."""

from typing import List, Optional

import pytest
from botbuilder.core import BotAdapter, MemoryStorage, TurnContext, UserState
from botbuilder.schema import (
    Activity,
    ActivityTypes,
    ChannelAccount,
    ConversationAccount,
    ResourceResponse,
)

from bots.alexa_bot import AlexaBot
from bots.monitor_bot import MonitorBot
from bots.state import BotStateAccessors
from monitor_relay import MonitorRelay
from qna_client import QnAAnswer


class RecordingAdapter(BotAdapter):
    """Adapter en memoria: guarda todo lo que el bot envía."""

    def __init__(self):
        super().__init__()
        self.sent: List[Activity] = []

    async def send_activities(self, context, activities):
        self.sent.extend(activities)
        return [ResourceResponse(id=str(len(self.sent))) for _ in activities]

    async def update_activity(self, context, activity):
        raise NotImplementedError()

    async def delete_activity(self, context, reference):
        raise NotImplementedError()

    @property
    def texts(self) -> List[str]:
        return [a.text for a in self.sent if a.type == ActivityTypes.message]

    async def run(self, activity: Activity, logic) -> List[Activity]:
        start = len(self.sent)
        await self.run_pipeline(TurnContext(self, activity), logic)
        return self.sent[start:]


class FakeQnA:
    def __init__(self, answers: Optional[List[QnAAnswer]] = None, error: Optional[Exception] = None):
        self.answers = answers or []
        self.error = error
        self.questions: List[str] = []

    async def query(self, text: str) -> List[QnAAnswer]:
        self.questions.append(text)
        if self.error:
            raise self.error
        return self.answers


def make_activity(
    activity_type: str = ActivityTypes.message,
    text: Optional[str] = None,
    name: Optional[str] = None,
    channel_id: str = "alexa",
    user_id: str = "user-1",
    locale: str = "es-ES",
    value=None,
) -> Activity:
    return Activity(
        type=activity_type,
        id="activity-1",
        text=text,
        name=name,
        value=value,
        channel_id=channel_id,
        service_url="https://example.test",
        locale=locale,
        conversation=ConversationAccount(id=f"conv-{user_id}"),
        from_property=ChannelAccount(id=user_id, name="User"),
        recipient=ChannelAccount(id="bot", name="Bot"),
    )


def message(text: str, **kwargs) -> Activity:
    return make_activity(ActivityTypes.message, text=text, **kwargs)


def event(name: str, **kwargs) -> Activity:
    return make_activity(ActivityTypes.event, name=name, **kwargs)


@pytest.fixture
def adapter() -> RecordingAdapter:
    return RecordingAdapter()


@pytest.fixture
def accessors() -> BotStateAccessors:
    return BotStateAccessors(UserState(MemoryStorage()))


@pytest.fixture
def relay_adapter() -> RecordingAdapter:
    return RecordingAdapter()


@pytest.fixture
def relay(relay_adapter) -> MonitorRelay:
    return MonitorRelay(relay_adapter, "bot-app-id")


@pytest.fixture
def qna() -> FakeQnA:
    return FakeQnA()


@pytest.fixture
def alexa_bot(accessors, relay, qna) -> AlexaBot:
    return AlexaBot(accessors, relay, qna, repeat_limit=4)


@pytest.fixture
def monitor_bot(relay) -> MonitorBot:
    return MonitorBot(relay)
