# bot.py: Enrutado por canal: "alexa" -> juego, resto -> eco/monitor
import logging
from typing import Dict

from botbuilder.core import Bot, TurnContext

log = logging.getLogger("alexa-gateway.router")

ALEXA_CHANNEL = "alexa"


class ChannelRouter(Bot):
    """Tabla explícita channel_id -> handler, con un handler por defecto."""

    def __init__(self, handlers: Dict[str, Bot], default: Bot):
        self.handlers = dict(handlers)
        self.default = default

    def handler_for(self, channel_id: str) -> Bot:
        return self.handlers.get(channel_id, self.default)

    async def on_turn(self, context: TurnContext):
        channel_id = context.activity.channel_id
        handler = self.handler_for(channel_id)
        log.debug("[ROUTER] channel=%s -> %s", channel_id, type(handler).__name__)
        await handler.on_turn(context)
