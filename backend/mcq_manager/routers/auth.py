from __future__ import annotations
import logging

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from ..errors import ValidationError
from ..sms_client import TwilioVerifyClient, get_sms_client, normalize_phone
from ..storage import Storage, get_storage

router = APIRouter(prefix="/auth", tags=["auth"])

logger = logging.getLogger(__name__)


class SendOtpRequest(BaseModel):
	phone: str


class VerifyOtpRequest(BaseModel):
	phone: str
	code: str = Field(min_length=4, max_length=10)


@router.post("/send-otp")
async def send_otp(req: SendOtpRequest, sms: TwilioVerifyClient = Depends(get_sms_client)):
	phone = normalize_phone(req.phone)
	result = await sms.start_verification(phone)
	return {"success": True, "status": result.get("status")}


@router.post("/verify-otp")
async def verify_otp(
	req: VerifyOtpRequest,
	sms: TwilioVerifyClient = Depends(get_sms_client),
	storage: Storage = Depends(get_storage),
):
	phone = normalize_phone(req.phone)
	result = await sms.check_verification(phone, req.code.strip())
	if result.get("status") != "approved":
		logger.info("OTP rejected for %s: %s", phone[-4:].rjust(len(phone), "*"), result.get("status"))
		raise ValidationError("Invalid OTP")
	users = storage.update("users", {"phone_verified": True}, {"phone": phone})
	return {"success": True, "user_id": users[0]["id"] if users else None}
