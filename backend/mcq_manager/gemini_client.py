from __future__ import annotations
import logging
from typing import Any, AsyncIterator, Dict, List, Optional

import httpx

from .errors import UpstreamError
from .settings import settings


logger = logging.getLogger(__name__)

# [{"role": "system" | "user" | "assistant", "content": "..."}]
Messages = List[Dict[str, str]]


class GeminiClient:
	def __init__(
		self,
		api_key: Optional[str] = None,
		*,
		base_url: Optional[str] = None,
		model: Optional[str] = None,
		transport: Optional[httpx.AsyncBaseTransport] = None,
	) -> None:
		self.api_key = api_key or settings.gemini_api_key
		self.model = model or settings.gemini_model
		self.provider = settings.gemini_provider
		if self.provider == "vertex":
			region = settings.vertex_region
			project = settings.vertex_project or "placeholder-project"
			# Vertex AI Generative REST endpoint (API key via header)
			self.base_url = base_url or (
				f"https://{region}-aiplatform.googleapis.com/v1/projects/{project}/locations/{region}/publishers/google/models/{self.model}:generateContent"
			)
			self._auth_in_query = False
		else:
			# Google AI Studio (Generative Language API)
			self.base_url = base_url or f"https://generativelanguage.googleapis.com/v1beta/models/{self.model}:generateContent"
			self._auth_in_query = True
		self._client = httpx.AsyncClient(timeout=settings.gemini_timeout_seconds, transport=transport)
		self._fallback_client: Optional[httpx.AsyncClient] = None
		self._fallback_enabled = bool(settings.openrouter_api_key)
		self._openrouter_api_key = settings.openrouter_api_key
		self._openrouter_model = settings.openrouter_model
		self._openrouter_base_url = settings.openrouter_base_url
		self._openrouter_headers = {
			"Authorization": f"Bearer {self._openrouter_api_key}" if self._openrouter_api_key else "",
			"Content-Type": "application/json",
			"HTTP-Referer": settings.openrouter_referer,
			"X-Title": settings.openrouter_title,
		}
		if self._fallback_enabled:
			self._fallback_client = httpx.AsyncClient(timeout=settings.gemini_timeout_seconds, transport=transport)

	async def complete(self, messages: Messages, *, temperature: Optional[float] = None) -> str:
		"""Send chat-style messages and return the model's text, unparsed."""
		# A missing key fails the call, not client construction
		if not self.api_key:
			raise UpstreamError("GEMINI_API_KEY is not configured")
		payload = _gemini_payload(messages, temperature)
		params: Dict[str, Any] = {}
		headers: Dict[str, str] = {}
		if self._auth_in_query:
			params["key"] = self.api_key
		else:
			headers["x-goog-api-key"] = self.api_key
		last_error: Optional[Exception] = None
		try:
			r = await self._client.post(self.base_url, params=params, headers=headers, json=payload)
			r.raise_for_status()
		except httpx.HTTPError as err:
			last_error = err
		if last_error is None:
			try:
				data = r.json()
				return data["candidates"][0]["content"]["parts"][0]["text"]
			except (ValueError, KeyError, IndexError, TypeError):
				last_error = UpstreamError(f"Unexpected Gemini response: {r.text[:500]}")
		if not self._fallback_enabled:
			raise _as_upstream(last_error)
		logger.warning("Gemini call failed (%s); falling back to OpenRouter", last_error)
		return await self._fallback_complete(messages, temperature, last_error)

	async def aclose(self) -> None:
		await self._client.aclose()
		if self._fallback_client is not None:
			await self._fallback_client.aclose()

	async def _fallback_complete(self, messages: Messages, temperature: Optional[float], primary_error: Exception) -> str:
		headers = {k: v for k, v in self._openrouter_headers.items() if v}
		payload: Dict[str, Any] = {"model": self._openrouter_model, "messages": messages}
		if temperature is not None:
			payload["temperature"] = temperature
		try:
			r = await self._fallback_client.post(self._openrouter_base_url, headers=headers, json=payload)
			r.raise_for_status()
			data = r.json()
			return data["choices"][0]["message"]["content"]
		except (httpx.HTTPError, ValueError, KeyError, IndexError, TypeError) as fallback_err:
			raise UpstreamError(
				f"Gemini primary call failed ({primary_error}); fallback via OpenRouter also failed ({fallback_err})"
			) from fallback_err


def _gemini_payload(messages: Messages, temperature: Optional[float]) -> Dict[str, Any]:
	system = [m["content"] for m in messages if m["role"] == "system"]
	contents = [
		{"role": "model" if m["role"] == "assistant" else "user", "parts": [{"text": m["content"]}]}
		for m in messages
		if m["role"] != "system"
	]
	payload: Dict[str, Any] = {
		"contents": contents,
		"generationConfig": {"responseMimeType": "application/json"},
	}
	if system:
		payload["systemInstruction"] = {"parts": [{"text": "\n\n".join(system)}]}
	if temperature is not None:
		payload["generationConfig"]["temperature"] = temperature
	return payload


def _as_upstream(err: Optional[Exception]) -> UpstreamError:
	if isinstance(err, UpstreamError):
		return err
	return UpstreamError(f"Gemini call failed: {err}")


async def get_llm_client() -> AsyncIterator[GeminiClient]:
	client = GeminiClient()
	try:
		yield client
	finally:
		await client.aclose()
