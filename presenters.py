import json
from typing import Any, Optional


def user_said(text: Optional[str], locale: Optional[str]) -> str:
    return f"User said ({locale or '?'}):\n**{text or ''}**"


def bot_said(text: str) -> str:
    return f"Bot said:\n*{text}*"


def event_received(value: Any) -> str:
    body = json.dumps(value, indent=2, ensure_ascii=False, default=str)
    return f"Event received:\n```\n{body}\n```"
