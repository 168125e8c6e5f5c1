# conectores/bf_msft_diag.py: Diagnóstico de credenciales y activities de Bot Framework
import base64
import json
import logging
from typing import Any, Dict, Optional

import msal
from botbuilder.schema import Activity

logger = logging.getLogger("alexa-gateway.bf_msft")

SCOPE = ["https://api.botframework.com/.default"]


def authority_for(app_type: str, tenant: Optional[str]) -> str:
    if app_type == "SingleTenant" and tenant:
        return f"https://login.microsoftonline.com/{tenant}"
    return "https://login.microsoftonline.com/botframework.com"


def acquire_bf_token(app_id: str, app_secret: str, authority: str) -> Dict[str, Any]:
    """Pide un token para Bot Framework con MSAL (client credentials) sin exponerlo."""
    if not app_id or not app_secret:
        return {"has_access_token": False, "error": "missing_app_credentials", "authority": authority}
    cca = msal.ConfidentialClientApplication(client_id=app_id, client_credential=app_secret, authority=authority)
    res = cca.acquire_token_for_client(scopes=SCOPE)
    out: Dict[str, Any] = {k: v for k, v in res.items() if k != "access_token"}
    out["has_access_token"] = "access_token" in res
    out["authority"] = authority
    return out


def jwt_claims(auth_header: str) -> Optional[Dict[str, Any]]:
    """Claims del Bearer entrante (sin validar firma; solo para logs)."""
    if not auth_header.startswith("Bearer "):
        return None
    parts = auth_header.split(" ", 1)[1].split(".")
    if len(parts) != 3:
        return None
    try:
        payload = json.loads(base64.urlsafe_b64decode((parts[1] + "==").encode("utf-8")))
    except ValueError as e:
        logger.warning("[JWT] No se pudieron decodificar claims: %s", e)
        return None
    return {
        "iss": payload.get("iss"),
        "aud": payload.get("aud"),
        "appid": payload.get("appid") or payload.get("azp"),
        "tid": payload.get("tid"),
    }


def diagnose_activity(activity: Activity) -> Dict[str, Any]:
    return {
        "type": activity.type,
        "channelId": activity.channel_id,
        "serviceUrl": activity.service_url,
        "recipientId": getattr(activity.recipient, "id", None),
        "conversationId": getattr(activity.conversation, "id", None),
    }
