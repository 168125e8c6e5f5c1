import os

# Alias camelCase aceptados (compat App Service / Render)
_ALIASES = {
    "MICROSOFT_APP_ID": "MicrosoftAppId",
    "MICROSOFT_APP_PASSWORD": "MicrosoftAppPassword",
    "MICROSOFT_APP_TENANT_ID": "MicrosoftAppTenantId",
    "MICROSOFT_APP_TYPE": "MicrosoftAppType",
    "TO_CHANNEL_SCOPE": "ToChannelFromBotOAuthScope",
    "QNA_KNOWLEDGEBASE_ID": "QnAKnowledgebaseId",
    "QNA_AUTH_KEY": "QnAAuthKey",
    "QNA_ENDPOINT_HOSTNAME": "QnAEndpointHostName",
}

_SECRETS = {"MICROSOFT_APP_PASSWORD", "QNA_AUTH_KEY", "APPLICATIONINSIGHTS_CONNECTION_STRING"}


def getenv(name: str, default: str = "") -> str:
    # Acepta MAYÚSCULAS y camelCase
    return os.getenv(name, os.getenv(_ALIASES.get(name, ""), default))


# Bot Framework
MICROSOFT_APP_ID       = getenv("MICROSOFT_APP_ID")
MICROSOFT_APP_PASSWORD = getenv("MICROSOFT_APP_PASSWORD")
MICROSOFT_APP_TENANT_ID = getenv("MICROSOFT_APP_TENANT_ID")   # REQUERIDO si SingleTenant
MICROSOFT_APP_TYPE     = getenv("MICROSOFT_APP_TYPE", "MultiTenant")
TO_CHANNEL_SCOPE       = getenv("TO_CHANNEL_SCOPE", "https://api.botframework.com/.default")
APPLICATIONINSIGHTS_CONNECTION_STRING = getenv("APPLICATIONINSIGHTS_CONNECTION_STRING")

# QnA (base de conocimiento)
QNA_KNOWLEDGEBASE_ID  = getenv("QNA_KNOWLEDGEBASE_ID")
QNA_AUTH_KEY          = getenv("QNA_AUTH_KEY")
QNA_ENDPOINT_HOSTNAME = getenv("QNA_ENDPOINT_HOSTNAME")
QNA_SCORE_THRESHOLD   = float(getenv("QNA_SCORE_THRESHOLD", "0.3"))

# Alexa / juego
ALEXA_SKILL_ID    = getenv("ALEXA_SKILL_ID")
REPEAT_TURNS      = int(getenv("REPEAT_TURNS", "4"))
OBJECT_LOG_FOLDER = getenv("OBJECT_LOG_FOLDER")   # vacío = sin volcado de objetos

LOG_LEVEL = getenv("LOG_LEVEL", "INFO")
PORT      = int(getenv("PORT", "3978"))


def public_env_snapshot() -> dict:
    keys = [
        "MICROSOFT_APP_ID", "MICROSOFT_APP_PASSWORD", "MICROSOFT_APP_TENANT_ID", "MICROSOFT_APP_TYPE",
        "TO_CHANNEL_SCOPE", "APPLICATIONINSIGHTS_CONNECTION_STRING",
        "QNA_KNOWLEDGEBASE_ID", "QNA_AUTH_KEY", "QNA_ENDPOINT_HOSTNAME",
        "ALEXA_SKILL_ID", "OBJECT_LOG_FOLDER",
    ]
    out = {}
    for k in keys:
        v = getenv(k)
        if k in _SECRETS:
            out[k] = "SET(***masked***)" if v else "MISSING"
        else:
            out[k] = v or "MISSING"
    out["REPEAT_TURNS"] = REPEAT_TURNS
    out["QNA_SCORE_THRESHOLD"] = QNA_SCORE_THRESHOLD
    return out
