# Compatibility entrypoint for `uvicorn main:app`.

from services.risk_assessment.app import app  # noqa: F401
