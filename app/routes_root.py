# routes_root.py
"""
Root / basic endpoints (liveness, health, mail check).
"""

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from app.deps import get_mailer, get_settings
from app.services.mailer import MailDeliveryError
from config import Settings

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/")
def read_root():
    """Simple liveness check."""
    return {"activeStatus": True, "error": False}


@router.get("/api/health")
def health(settings: Settings = Depends(get_settings)):
    return {
        "status": "OK",
        "message": "Server is running",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "emailConfigured": settings.email_configured,
    }


@router.get("/api/test-email")
def test_email(
    settings: Settings = Depends(get_settings),
    mailer=Depends(get_mailer),
):
    """
    Check that the SMTP server accepts our credentials.
    Nothing is sent.
    """
    if mailer is None:
        return JSONResponse(
            status_code=500,
            content={
                "message": "Email credentials not configured",
                "details": "EMAIL_USER and EMAIL_PASS must be set in .env file",
            },
        )

    try:
        mailer.verify()
    except MailDeliveryError as e:
        logger.error("Email configuration test failed: %s", e)
        return JSONResponse(
            status_code=500,
            content={"message": "Email configuration test failed"},
        )

    return {
        "message": "Email configuration is working!",
        "emailUser": settings.email_user,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
