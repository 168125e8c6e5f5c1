# app.py: Gateway Alexa + Bot Framework (aiohttp, CloudAdapter) con monitor y diagnóstico
import logging
from typing import Optional

from aiohttp import web

from botbuilder.core import MemoryStorage, TelemetryLoggerMiddleware, TurnContext, UserState
from botbuilder.schema import Activity
from botbuilder.integration.aiohttp import CloudAdapter, ConfigurationBotFrameworkAuthentication

# Telemetría (Application Insights)
from botbuilder.applicationinsights import ApplicationInsightsTelemetryClient, bot_telemetry_processor

import settings
from bot import ALEXA_CHANNEL, ChannelRouter
from bots.alexa_bot import AlexaBot
from bots.monitor_bot import MonitorBot
from bots.state import BotStateAccessors
from conectores.alexa_adapter import AlexaAdapter, InvalidAlexaRequest, SkillIdMismatch
from conectores.bf_msft_diag import acquire_bf_token, authority_for, diagnose_activity, jwt_claims
from monitor_relay import MonitorRelay
from object_logger import ObjectLogger
from qna_client import QnAClient


# ----------------------
# Logging básico
# ----------------------
logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(levelname)s:%(name)s:%(message)s",
)
log = logging.getLogger("alexa-gateway")

ERROR_MESSAGE = "Perdona, parece que algo salió mal."


# ==========================
# Manejo global de errores
# ==========================
async def on_error(context: TurnContext, error: Exception):
    log.error("[BOT ERROR] %s", error, exc_info=True)
    try:
        await context.send_activity(ERROR_MESSAGE)
    except Exception as e:
        log.error("[BOT ERROR][send_activity] %s", e, exc_info=True)


# ==========================
# CloudAdapter + Auth
# ==========================
def bot_framework_config() -> dict:
    return {
        "MicrosoftAppId": settings.MICROSOFT_APP_ID,
        "MicrosoftAppPassword": settings.MICROSOFT_APP_PASSWORD,
        "MicrosoftAppTenantId": settings.MICROSOFT_APP_TENANT_ID,
        "MicrosoftAppType": settings.MICROSOFT_APP_TYPE,  # SingleTenant | MultiTenant | UserAssignedMSI
        "ToChannelFromBotOAuthScope": settings.TO_CHANNEL_SCOPE,
    }


def _use_telemetry(*adapters) -> None:
    conn = settings.APPLICATIONINSIGHTS_CONNECTION_STRING
    if not conn:
        return
    # "InstrumentationKey=...;IngestionEndpoint=..."
    parts = dict(p.split("=", 1) for p in conn.split(";") if "=" in p)
    try:
        ai_client = ApplicationInsightsTelemetryClient(
            parts.get("InstrumentationKey", conn), telemetry_processor=bot_telemetry_processor
        )
    except Exception as e:
        log.warning("[AI] No se pudo inicializar App Insights: %s", e)
        return
    # Loguea actividades entrantes/salientes sin PII
    for adapter in adapters:
        adapter.use(TelemetryLoggerMiddleware(ai_client, log_personal_information=False))
    log.info("[AI] Application Insights habilitado")


def create_app(
    cloud_adapter: Optional[CloudAdapter] = None,
    qna: Optional[QnAClient] = None,
    object_logger: Optional[ObjectLogger] = None,
) -> web.Application:
    if cloud_adapter is None:
        auth = ConfigurationBotFrameworkAuthentication(configuration=bot_framework_config())
        cloud_adapter = CloudAdapter(auth)
    cloud_adapter.on_turn_error = on_error

    alexa_adapter = AlexaAdapter(skill_id=settings.ALEXA_SKILL_ID, on_turn_error=on_error)
    _use_telemetry(cloud_adapter, alexa_adapter)

    if qna is None:
        qna = QnAClient(
            knowledgebase_id=settings.QNA_KNOWLEDGEBASE_ID,
            endpoint_key=settings.QNA_AUTH_KEY,
            host=settings.QNA_ENDPOINT_HOSTNAME,
            score_threshold=settings.QNA_SCORE_THRESHOLD,
        )
    if object_logger is None:
        object_logger = ObjectLogger(settings.OBJECT_LOG_FOLDER)

    # Estado en memoria + slot del monitor (compartidos por ambos bots)
    accessors = BotStateAccessors(UserState(MemoryStorage()))
    relay = MonitorRelay(cloud_adapter, settings.MICROSOFT_APP_ID)

    alexa_bot = AlexaBot(accessors, relay, qna, repeat_limit=settings.REPEAT_TURNS, object_logger=object_logger)
    monitor_bot = MonitorBot(relay, object_logger=object_logger)
    router = ChannelRouter({ALEXA_CHANNEL: alexa_bot}, default=monitor_bot)

    # ==========
    # Handlers
    # ==========
    async def messages(req: web.Request) -> web.Response:
        if "application/json" not in req.headers.get("Content-Type", ""):
            return web.Response(status=415, text="Content-Type must be application/json")

        body = await req.json()
        activity: Activity = Activity().deserialize(body)
        auth_header = req.headers.get("Authorization", "")

        log.info("[DIAG] %s", diagnose_activity(activity))
        claims = jwt_claims(auth_header)
        if claims:
            log.info("[JWT] %s", claims)

        # Orden CloudAdapter: (auth_header, activity, callback)
        response = await cloud_adapter.process_activity(auth_header, activity, router.on_turn)
        if response:
            return web.json_response(data=response.body, status=response.status)
        return web.Response(status=201)

    async def alexa(req: web.Request) -> web.Response:
        try:
            body = await req.json()
        except ValueError:
            # JSON inválido o bytes que no son UTF-8
            return web.Response(status=400, text="Body must be JSON")

        try:
            activity = alexa_adapter.request_to_activity(body)
        except SkillIdMismatch as e:
            log.warning("[ALEXA] %s", e)
            return web.Response(status=403, text=str(e))
        except InvalidAlexaRequest as e:
            log.warning("[ALEXA] Request rechazado: %s", e)
            return web.Response(status=400, text=str(e))

        await object_logger.set_session_id(activity.conversation.id)
        await object_logger.log_object(body, activity.id)

        payload = await alexa_adapter.process_activity(activity, router.on_turn)
        return web.json_response(payload)

    async def health(_: web.Request) -> web.Response:
        return web.json_response({"ok": True})

    async def diag_env(_: web.Request) -> web.Response:
        return web.json_response(settings.public_env_snapshot())

    async def diag_msal(_: web.Request) -> web.Response:
        authority = authority_for(settings.MICROSOFT_APP_TYPE, settings.MICROSOFT_APP_TENANT_ID)
        log.info("Initializing with Entra authority: %s", authority)
        try:
            token = acquire_bf_token(settings.MICROSOFT_APP_ID, settings.MICROSOFT_APP_PASSWORD, authority)
        except Exception as e:
            return web.json_response({"ok": False, "exception": str(e)}, status=500)
        ok = token["has_access_token"]
        return web.json_response({"ok": ok, **token}, status=200 if ok else 500)

    async def diag_monitor(_: web.Request) -> web.Response:
        reference = await relay.target()
        return web.json_response({
            "monitor_on": reference is not None,
            "monitor_channel": reference.channel_id if reference else None,
            "object_log_session": object_logger.session_id,
        })

    async def on_cleanup(_: web.Application) -> None:
        await relay.close()

    # ==========
    # App AIOHTTP
    # ==========
    app = web.Application()
    app.router.add_post("/api/messages", messages)
    app.router.add_post("/api/alexa", alexa)
    app.router.add_get("/health", health)
    app.router.add_get("/diag/env", diag_env)
    app.router.add_get("/diag/msal", diag_msal)
    app.router.add_get("/diag/monitor", diag_monitor)
    app.on_cleanup.append(on_cleanup)
    return app


if __name__ == "__main__":
    web.run_app(create_app(), host="0.0.0.0", port=settings.PORT)
