# monitor_relay.py: Espejo del tráfico de Alexa hacia una conversación "monitor"
import asyncio
import logging
from typing import Optional, Tuple

from botbuilder.core import BotAdapter, TurnContext
from botbuilder.schema import ConversationReference

log = logging.getLogger("alexa-gateway.monitor")


class MonitorRelay:
    """
    Slot único con la referencia de la conversación que monitorea.
    - set_target(): guarda la última referencia (sobrescribe).
    - relay(): encola el envío proactivo; un único worker los manda en orden
      de llegada y los errores solo se loguean.
    """

    def __init__(self, adapter: BotAdapter, bot_app_id: str = ""):
        self._adapter = adapter
        # Sin AppId (emulador local) el envío proactivo usa "*"
        self._bot_app_id = bot_app_id or "*"
        self._reference: Optional[ConversationReference] = None
        self._lock = asyncio.Lock()
        self._queue: "asyncio.Queue[Tuple[ConversationReference, str, asyncio.Future]]" = asyncio.Queue()
        self._worker: Optional[asyncio.Task] = None

    async def set_target(self, reference: ConversationReference) -> None:
        async with self._lock:
            self._reference = reference
        log.info("[MONITOR] Destino registrado: channel=%s conv=%s",
                 reference.channel_id, getattr(reference.conversation, "id", None))

    async def target(self) -> Optional[ConversationReference]:
        async with self._lock:
            return self._reference

    async def relay(self, text: str) -> Optional[asyncio.Future]:
        """Encola `text` para el monitor; el futuro se resuelve cuando se intentó el envío."""
        reference = await self.target()
        if reference is None:
            return None

        done = asyncio.get_running_loop().create_future()
        self._queue.put_nowait((reference, text, done))
        if self._worker is None or self._worker.done():
            self._worker = asyncio.create_task(self._drain())
        return done

    async def _drain(self) -> None:
        while not self._queue.empty():
            reference, text, done = self._queue.get_nowait()
            await self._send(reference, text)
            if not done.done():
                done.set_result(None)
            self._queue.task_done()

    async def _send(self, reference: ConversationReference, text: str) -> None:
        async def callback(context: TurnContext):
            await context.send_activity(text)

        try:
            await self._adapter.continue_conversation(reference, callback, self._bot_app_id)
        except Exception as e:
            log.error("[MONITOR] No se pudo enviar al monitor: %s", e, exc_info=True)

    async def close(self) -> None:
        if self._worker is not None:
            await self._worker
