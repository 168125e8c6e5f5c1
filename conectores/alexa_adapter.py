# conectores/alexa_adapter.py: Adapter Alexa <-> Activity (Bot Framework)
# -----------------------------------------------------------------------------
# - Convierte el request de la skill en un Activity (message o event).
#   * LaunchRequest                  -> event "LaunchRequest"
#   * IntentRequest con slot phrase  -> message con el texto del slot
#   * IntentRequest (otro)           -> event con el nombre del intent sin "AMAZON."
#   * resto (SessionEndedRequest...) -> event con el tipo del request
# - Acumula las respuestas del turno y arma un único response de Alexa.
# -----------------------------------------------------------------------------
import logging
import re
from typing import Any, Awaitable, Callable, Dict, List, Optional

from botbuilder.core import BotAdapter, TurnContext
from botbuilder.schema import (
    Activity,
    ActivityTypes,
    ChannelAccount,
    ConversationAccount,
    ConversationReference,
    InputHints,
    ResourceResponse,
    RoleTypes,
)

log = logging.getLogger("alexa-gateway.alexa-adapter")

ALEXA_CHANNEL_ID = "alexa"
SPEAK_TAG_RE = re.compile(r"^\s*<speak>(.*)</speak>\s*$", re.DOTALL | re.IGNORECASE)


class InvalidAlexaRequest(Exception):
    """Payload sin los campos mínimos (p. ej. session.sessionId)."""


class SkillIdMismatch(InvalidAlexaRequest):
    """El applicationId del request no es el de esta skill."""


def _dig(data: Dict[str, Any], *path: str) -> Any:
    for key in path:
        if not isinstance(data, dict):
            return None
        data = data.get(key)
    return data


class AlexaAdapter(BotAdapter):
    _OUTBOUND_KEY = "AlexaOutboundActivities"

    def __init__(
        self,
        skill_id: str = "",
        phrase_slot: str = "phrase",
        should_end_session_by_default: bool = True,
        on_turn_error: Optional[Callable[[TurnContext, Exception], Awaitable]] = None,
    ):
        super().__init__(on_turn_error)
        self.skill_id = skill_id
        self.phrase_slot = phrase_slot
        self.should_end_session_by_default = should_end_session_by_default

    # ==========
    # Entrada
    # ==========
    def request_to_activity(self, body: Dict[str, Any]) -> Activity:
        if not isinstance(body, dict):
            raise InvalidAlexaRequest("El body debe ser un objeto JSON")

        request = body.get("request")
        if not isinstance(request, dict) or not request.get("type"):
            raise InvalidAlexaRequest("Falta request.type")

        session_id = _dig(body, "session", "sessionId")
        if not session_id:
            raise InvalidAlexaRequest("Falta session.sessionId")

        application_id = (_dig(body, "session", "application", "applicationId")
                          or _dig(body, "context", "System", "application", "applicationId"))
        if self.skill_id and application_id != self.skill_id:
            raise SkillIdMismatch(f"applicationId no coincide: {application_id}")

        user_id = _dig(body, "session", "user", "userId") or _dig(body, "context", "System", "user", "userId")
        if not user_id:
            raise InvalidAlexaRequest("Falta session.user.userId")

        activity = Activity(
            channel_id=ALEXA_CHANNEL_ID,
            id=request.get("requestId"),
            service_url=_dig(body, "context", "System", "apiEndpoint"),
            conversation=ConversationAccount(id=session_id),
            from_property=ChannelAccount(id=user_id, role=RoleTypes.user),
            recipient=ChannelAccount(id=application_id, role=RoleTypes.bot),
            locale=request.get("locale"),
            value=request,
            channel_data=body,
        )

        request_type = request["type"]
        if request_type == "IntentRequest":
            intent = request.get("intent") or {}
            if not isinstance(intent, dict):
                raise InvalidAlexaRequest("request.intent debe ser un objeto")
            phrase = _dig(intent, "slots", self.phrase_slot, "value")
            if phrase:
                activity.type = ActivityTypes.message
                activity.text = phrase
            else:
                activity.type = ActivityTypes.event
                activity.name = (intent.get("name") or "").replace("AMAZON.", "")
        else:
            activity.type = ActivityTypes.event
            activity.name = request_type

        return activity

    async def process_activity(self, activity: Activity, logic: Callable[[TurnContext], Awaitable]) -> Dict[str, Any]:
        context = TurnContext(self, activity)
        await self.run_pipeline(context, logic)
        return self.activities_to_response(activity, context.turn_state.get(self._OUTBOUND_KEY, []))

    # ==========
    # Salida
    # ==========
    def activities_to_response(self, inbound: Activity, outbound: List[Activity]) -> Dict[str, Any]:
        # Alexa no acepta voz en respuesta a SessionEndedRequest
        if inbound.type == ActivityTypes.event and inbound.name == "SessionEndedRequest":
            return {"version": "1.0", "response": {}}

        messages = [a for a in outbound if a.type == ActivityTypes.message and (a.speak or a.text)]
        response: Dict[str, Any] = {"shouldEndSession": self._should_end_session(messages)}

        if messages:
            parts = [a.speak or a.text for a in messages]
            ssml = any(SPEAK_TAG_RE.match(p) for p in parts)
            if ssml:
                inner = " ".join(SPEAK_TAG_RE.sub(r"\1", p).strip() for p in parts)
                response["outputSpeech"] = {"type": "SSML", "ssml": f"<speak>{inner}</speak>"}
            else:
                response["outputSpeech"] = {"type": "PlainText", "text": " ".join(parts)}

        return {"version": "1.0", "response": response}

    def _should_end_session(self, messages: List[Activity]) -> bool:
        hints = [a.input_hint for a in messages]
        if InputHints.expecting_input in hints:
            return False
        if hints and hints[-1] == InputHints.ignoring_input:
            return True
        return self.should_end_session_by_default

    # ==========
    # BotAdapter
    # ==========
    async def send_activities(self, context: TurnContext, activities: List[Activity]) -> List[ResourceResponse]:
        outbound = context.turn_state.setdefault(self._OUTBOUND_KEY, [])
        responses = []
        for activity in activities:
            if activity.type == ActivityTypes.trace:
                continue
            outbound.append(activity)
            responses.append(ResourceResponse(id=activity.id or ""))
        return responses

    async def update_activity(self, context: TurnContext, activity: Activity):
        raise NotImplementedError("Alexa no permite actualizar actividades enviadas")

    async def delete_activity(self, context: TurnContext, reference: ConversationReference):
        raise NotImplementedError("Alexa no permite borrar actividades enviadas")

    async def continue_conversation(self, reference: ConversationReference, callback: Callable, bot_id: str = None,
                                    claims_identity=None, audience: str = None):
        raise NotImplementedError("Alexa no soporta mensajes proactivos")
