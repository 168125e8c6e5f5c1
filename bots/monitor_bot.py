# bots/monitor_bot.py: Eco simple para canales Bot Framework + registro del monitor
import re
from typing import List, Optional

from botbuilder.core import ActivityHandler, MessageFactory, TurnContext
from botbuilder.schema import ChannelAccount

from monitor_relay import MonitorRelay
from object_logger import ObjectLogger

MONITOR_RE = re.compile(r"^monitor\s+(\S+)$", re.IGNORECASE)


class MonitorBot(ActivityHandler):
    def __init__(self, relay: MonitorRelay, object_logger: Optional[ObjectLogger] = None):
        self.relay = relay
        self.object_logger = object_logger

    async def on_turn(self, turn_context: TurnContext):
        activity = turn_context.activity
        if self.object_logger:
            await self.object_logger.log_object(activity.serialize(), f"activity+{activity.id}")
        await super().on_turn(turn_context)

    async def on_members_added_activity(self, members_added: List[ChannelAccount], turn_context: TurnContext):
        for member in members_added:
            if member.id != turn_context.activity.recipient.id:
                await turn_context.send_activity(
                    MessageFactory.text(f"Hello world - From MonitorBot! (channel: {turn_context.activity.channel_id})")
                )

    async def on_message_activity(self, turn_context: TurnContext):
        text = (turn_context.activity.text or "").strip()

        m = MONITOR_RE.match(text)
        if m:
            # Guarda la referencia para enviarle mensajes proactivos
            reference = TurnContext.get_conversation_reference(turn_context.activity)
            await self.relay.set_target(reference)
            await turn_context.send_activity(f"{m.group(1).capitalize()} monitor is on")
            return

        await turn_context.send_activity(f'Echo from MonitorBot: "**{turn_context.activity.text}**"')
