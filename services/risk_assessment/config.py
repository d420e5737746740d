import os


SERVICE_NAME = "risk-assessment-api"
SERVICE_VERSION = os.getenv("RISK_SERVICE_VERSION", "0.1.0")

# Long enough to cover every page of one questionnaire, short enough that
# administrator edits show up by the next session.
CATALOG_CACHE_TTL_SECONDS = float(os.getenv("RISK_CATALOG_CACHE_TTL_SECONDS", "300"))
ADVICE_CACHE_TTL_SECONDS = float(os.getenv("RISK_ADVICE_CACHE_TTL_SECONDS", "300"))
