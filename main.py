# =============================================================================
# 🚀 QuickQR – Hauptapplikation (main.py)
# =============================================================================

from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict

from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

# -------------------------------------------------------------------------
# 1️⃣ .env laden (muss ganz oben sein!)
# -------------------------------------------------------------------------
env_path = Path(__file__).resolve().parent / ".env"
load_dotenv(dotenv_path=env_path)

from utils.config import log_level
from utils.errors import QRServiceError

# -------------------------------------------------------------------------
# 2️⃣ Logging
# -------------------------------------------------------------------------
logging.basicConfig(
    level=log_level(),
    format="[%(asctime)s] [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger("quickqr")

# -------------------------------------------------------------------------
# 3️⃣ FastAPI App
# -------------------------------------------------------------------------
app = FastAPI(title="QuickQR", version="1.0")


# -------------------------------------------------------------------------
# 4️⃣ Fehlerbehandlung – JSON {"error": ...} für die API
# -------------------------------------------------------------------------
@app.exception_handler(QRServiceError)
async def qr_service_error_handler(request: Request, exc: QRServiceError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(f"❌ {request.method} {request.url.path}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    if errors:
        first = errors[0]
        field = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        message = f"{field}: {first.get('msg')}" if field else str(first.get("msg"))
    else:
        message = "Invalid request"
    return JSONResponse(status_code=400, content={"error": message})


# -------------------------------------------------------------------------
# 5️⃣ Routen laden
# -------------------------------------------------------------------------
from routes import api
from routes import billing_razorpay
from routes import cron
from routes import moderation
from routes import qr_resolve   # für /<short_code>

app.include_router(api.router)
app.include_router(billing_razorpay.router)
app.include_router(moderation.router)
app.include_router(cron.router)


# -------------------------------------------------------------------------
# 6️⃣ Health
# -------------------------------------------------------------------------
@app.get("/health")
def health() -> Dict[str, bool]:
    return {"ok": True}


# -------------------------------------------------------------------------
# 7️⃣ Zentraler Resolver – zuletzt, /{short_code} fängt alles mit einem Segment
# -------------------------------------------------------------------------
app.include_router(qr_resolve.router)
