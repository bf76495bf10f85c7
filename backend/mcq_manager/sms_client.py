from __future__ import annotations
import logging
import re
from typing import Any, AsyncIterator, Dict, Optional

import httpx

from .errors import UpstreamError, ValidationError
from .settings import settings


logger = logging.getLogger(__name__)

_E164 = re.compile(r"^\+[1-9]\d{6,14}$")


def normalize_phone(phone: str, default_country_code: Optional[str] = None) -> str:
	"""Turn a national number like ``98765 43210`` into E.164 (``+919876543210``)."""
	cleaned = re.sub(r"[\s\-().]", "", phone or "")
	if not cleaned:
		raise ValidationError("phone is required")
	if not cleaned.startswith("+"):
		country = default_country_code or settings.sms_default_country_code
		cleaned = country + cleaned.lstrip("0")
	if not _E164.match(cleaned):
		raise ValidationError(f"invalid phone number: {phone}")
	return cleaned


class TwilioVerifyClient:
	"""Thin async wrapper over the Twilio Verify v2 REST API."""

	def __init__(
		self,
		account_sid: Optional[str] = None,
		auth_token: Optional[str] = None,
		service_sid: Optional[str] = None,
		*,
		base_url: Optional[str] = None,
		transport: Optional[httpx.AsyncBaseTransport] = None,
	) -> None:
		self.account_sid = account_sid or settings.twilio_account_sid
		self.auth_token = auth_token or settings.twilio_auth_token
		self.service_sid = service_sid or settings.twilio_verify_service_sid
		self.base_url = (base_url or settings.twilio_base_url).rstrip("/")
		self._client = httpx.AsyncClient(
			auth=(self.account_sid or "", self.auth_token or ""),
			timeout=settings.sms_timeout_seconds,
			transport=transport,
		)

	async def start_verification(self, phone: str) -> Dict[str, Any]:
		data = await self._post("Verifications", {"To": phone, "Channel": "sms"})
		return {"status": data.get("status")}

	async def check_verification(self, phone: str, code: str) -> Dict[str, Any]:
		try:
			data = await self._post("VerificationCheck", {"To": phone, "Code": code})
		except httpx.HTTPStatusError as e:
			# Twilio answers 404 once the verification expired or was already approved
			if e.response.status_code == 404:
				return {"status": "not_found"}
			raise UpstreamError(f"Twilio verification check failed: {e.response.text[:300]}") from e
		return {"status": data.get("status")}

	async def _post(self, resource: str, form: Dict[str, str]) -> Dict[str, Any]:
		if not (self.account_sid and self.auth_token and self.service_sid):
			raise UpstreamError("Twilio credentials are not configured")
		url = f"{self.base_url}/Services/{self.service_sid}/{resource}"
		try:
			r = await self._client.post(url, data=form)
			r.raise_for_status()
		except httpx.HTTPStatusError as e:
			logger.error("Twilio %s returned %s: %s", resource, e.response.status_code, e.response.text[:300])
			if resource == "VerificationCheck":
				raise
			raise UpstreamError(f"Twilio {resource} failed: {e.response.text[:300]}") from e
		except httpx.RequestError as e:
			logger.error("Twilio %s unreachable: %s", resource, e)
			raise UpstreamError(f"Twilio {resource} failed: {e}") from e
		return r.json()

	async def aclose(self) -> None:
		await self._client.aclose()


async def get_sms_client() -> AsyncIterator[TwilioVerifyClient]:
	client = TwilioVerifyClient()
	try:
		yield client
	finally:
		await client.aclose()
