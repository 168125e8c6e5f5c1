# bots/alexa_bot.py: Juego de repetir + QnA sobre el canal de Alexa
import logging
from typing import Optional

from botbuilder.core import ActivityHandler, MessageFactory, TurnContext
from botbuilder.schema import InputHints

import presenters
from bots.state import BotStateAccessors, ConversationMode, ConversationRecord, mode_for
from monitor_relay import MonitorRelay
from object_logger import ObjectLogger
from qna_client import QnAClient, QnAError

log = logging.getLogger("alexa-gateway.alexa-bot")

GOODBYE = "adiós"

FIRST_GREETING = (
    "Hola, soy un demo de Alexa con Bot Framework y voy a repetir todo lo que digas, "
    "para empezar, por favor, dime tu nombre"
)
GAME_QNA = "Ahora estamos jugando a que tú me haces preguntas."
GAME_REPEAT = "seguimos con el mismo juego, dime cualquier cosa para repetirla."
STOP_MESSAGE = "Terminando la sesión"


class AlexaBot(ActivityHandler):
    def __init__(
        self,
        accessors: BotStateAccessors,
        relay: MonitorRelay,
        qna: QnAClient,
        repeat_limit: int = 4,
        object_logger: Optional[ObjectLogger] = None,
    ):
        self.accessors = accessors
        self.relay = relay
        self.qna = qna
        self.repeat_limit = repeat_limit
        self.object_logger = object_logger

    async def on_turn(self, turn_context: TurnContext):
        activity = turn_context.activity
        if self.object_logger:
            await self.object_logger.log_object(activity.serialize(), f"activity+{activity.id}")

        await super().on_turn(turn_context)

        # Persistir cambios del registro al final de cada turno
        await self.accessors.save_changes(turn_context)

    # ==========
    # Eventos
    # ==========
    async def on_event(self, turn_context: TurnContext):
        activity = turn_context.activity
        await self.relay.relay(presenters.event_received(activity.value))

        if activity.name == "LaunchRequest":
            await self._handle_launch_request(turn_context)
            return

        if activity.name == "StopIntent":
            await turn_context.send_activity(
                MessageFactory.text(STOP_MESSAGE, input_hint=InputHints.ignoring_input)
            )
            return

        await turn_context.send_activity(f"Event received: {activity.name}")

    async def _handle_launch_request(self, turn_context: TurnContext):
        record = await self.accessors.get_record(turn_context)

        if not record.display_name:
            greeting = FIRST_GREETING
        else:
            game = GAME_QNA if record.turn_count >= self.repeat_limit else GAME_REPEAT
            greeting = f"Hola {record.display_name}, {game}"

        await turn_context.send_activity(
            MessageFactory.text(greeting, input_hint=InputHints.expecting_input)
        )

    # ==========
    # Mensajes
    # ==========
    async def on_message_activity(self, turn_context: TurnContext):
        activity = turn_context.activity
        await self.relay.relay(presenters.user_said(activity.text, activity.locale))

        text = (activity.text or "").strip()
        message = text.lower()
        record = await self.accessors.get_record(turn_context)
        log.info("----- Retrieved conversation (%r)", record)

        if message == GOODBYE:
            farewell = f"Adiós {record.display_name}!" if record.display_name else "Adiós!"
            await turn_context.send_activity(MessageFactory.text(farewell))

            # Reinicia la conversación para la próxima interacción
            await self.accessors.set_record(turn_context, ConversationRecord())
            return

        mode = mode_for(record, self.repeat_limit)
        if mode is ConversationMode.AWAITING_NAME:
            record.display_name = message
            reply = f"Gracias {text}, ahora sí voy a repetir lo que digas."
        elif mode is ConversationMode.REPEAT:
            reply = f"{record.display_name}, dijiste {text}"
        elif mode is ConversationMode.PROMPT_FOR_QUESTION:
            reply = f"A ver {record.display_name}, esto está un poco aburrido, mejor hazme preguntas."
        else:
            reply = await self._find_answer(text, record)

        record.turn_count += 1
        await self.accessors.set_record(turn_context, record)

        await self.relay.relay(presenters.bot_said(reply))

        await turn_context.send_activity(
            MessageFactory.text(reply, input_hint=InputHints.expecting_input)
        )

    async def _find_answer(self, text: str, record: ConversationRecord) -> str:
        try:
            answers = await self.qna.query(text)
        except QnAError as e:
            log.error("[QNA] %s", e)
            return f"Perdona {record.display_name}, ahora mismo no puedo consultar mis respuestas."

        if not answers:
            return f"Perdona {record.display_name}, pero no tengo idea, prueba preguntarme otra cosa."

        return answers[0].answer
