# object_logger.py: Volcado de payloads por sesión (solo diagnóstico)
import asyncio
import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Optional

log = logging.getLogger("alexa-gateway.objects")


def _safe(name: str) -> str:
    return name.replace(":", "-")


class ObjectLogger:
    """
    Guarda cada objeto recibido como JSON indentado en
    {folder}/{fecha+hora}+{session_id}/{HH.MM.SS.fff}+{trace_id}.json

    Sin carpeta configurada o sin sesión activa no escribe nada.
    El acceso a disco corre en un hilo aparte para no bloquear el event loop.
    """

    def __init__(self, folder: Optional[str]):
        self.folder = Path(folder).resolve() if folder else None
        self.session_id: Optional[str] = None
        self.session_folder: Optional[Path] = None

    @property
    def enabled(self) -> bool:
        return self.folder is not None

    async def set_session_id(self, session_id: str) -> None:
        if session_id == self.session_id:
            return

        self.session_id = session_id
        if not self.enabled:
            return

        folder = self.folder / f"{datetime.now():%Y-%m-%d+%H.%M.%S}+{_safe(session_id)}"
        await asyncio.to_thread(folder.mkdir, parents=True, exist_ok=True)
        self.session_folder = folder
        log.info("[OBJ] Nueva sesión %s -> %s", session_id, folder)

    async def log_object(self, obj: Any, trace_id: Optional[str]) -> Optional[Path]:
        if obj is None:
            raise ValueError("obj no puede ser None")
        if self.session_folder is None:
            return None

        if isinstance(obj, (str, bytes)):
            obj = json.loads(obj)

        trace = _safe(trace_id) if trace_id else "sin-id"
        now = datetime.now()
        path = self.session_folder / f"{now:%H.%M.%S}.{now.microsecond // 1000:03d}+{trace}.json"
        content = json.dumps(obj, indent=2, ensure_ascii=False, default=str)
        await asyncio.to_thread(path.write_text, content, encoding="utf-8")
        return path
