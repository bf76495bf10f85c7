from fastapi import APIRouter

from ..settings import settings

router = APIRouter(tags=["health"])


@router.get("/health")
def health():
	return {
		"status": "ok",
		"gemini_configured": bool(settings.gemini_api_key),
		"sms_configured": bool(settings.twilio_account_sid and settings.twilio_verify_service_sid),
	}
