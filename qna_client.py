import logging
from typing import Any, Dict, List, NamedTuple, Optional

import httpx

log = logging.getLogger("alexa-gateway.qna")


class QnAAnswer(NamedTuple):
    answer: str
    score: float


class QnAError(Exception):
    """La base de conocimiento no respondió (red, HTTP o payload inválido)."""


class QnAClient:
    """
    Cliente mínimo del endpoint generateAnswer de QnA Maker.
    - query(text) devuelve las respuestas con score >= score_threshold (0..1), de mayor a menor.
    - Lista vacía = sin coincidencia.
    """

    def __init__(
        self,
        knowledgebase_id: str,
        endpoint_key: str,
        host: str,
        score_threshold: float = 0.3,
        top: int = 1,
        timeout: float = 10,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.knowledgebase_id = knowledgebase_id
        self.endpoint_key = endpoint_key
        self.host = (host or "").rstrip("/")
        self.score_threshold = score_threshold
        self.top = top
        self.timeout = timeout
        self._transport = transport

    @property
    def is_configured(self) -> bool:
        return bool(self.knowledgebase_id and self.endpoint_key and self.host)

    @property
    def url(self) -> str:
        return f"{self.host}/knowledgebases/{self.knowledgebase_id}/generateAnswer"

    async def query(self, text: str) -> List[QnAAnswer]:
        if not self.is_configured:
            log.warning("[QNA] Sin configuración (kb/key/host); no se consulta: %r", text)
            return []

        payload = {"question": text, "top": self.top}
        headers = {"Authorization": f"EndpointKey {self.endpoint_key}"}

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                r = await client.post(self.url, json=payload, headers=headers)
                r.raise_for_status()
                data: Dict[str, Any] = r.json()
        except (httpx.HTTPError, ValueError) as e:
            raise QnAError(f"QnA generateAnswer falló: {e!r}") from e

        answers = []
        for item in data.get("answers", []) or []:
            # El servicio devuelve score 0..100
            score = float(item.get("score", 0) or 0) / 100
            if score >= self.score_threshold and item.get("answer"):
                answers.append(QnAAnswer(answer=item["answer"], score=score))

        answers.sort(key=lambda a: a.score, reverse=True)
        log.info("[QNA] %d respuesta(s) para %r", len(answers), text)
        return answers
