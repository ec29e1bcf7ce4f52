from __future__ import annotations
import logging
import httpx
from typing import Any, Dict, Optional
from .settings import settings

logger = logging.getLogger(__name__)


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
		if not self.api_key:
			raise ValueError("GEMINI_API_KEY is not configured")
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
		timeout = settings.gemini_timeout_seconds
		self._client = httpx.AsyncClient(timeout=timeout, transport=transport)
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
			self._fallback_client = httpx.AsyncClient(timeout=timeout, transport=transport)

	async def generate(self, prompt: str, *, system_instruction: Optional[str] = None) -> str:
		payload = self._payload(prompt, system_instruction)
		fallback_prompt = prompt if system_instruction is None else f"{system_instruction}\n\n{prompt}"
		return await self._post_payload(payload, fallback_prompt=fallback_prompt)

	async def generate_json(
		self,
		prompt: str,
		*,
		response_schema: Dict[str, Any],
		system_instruction: Optional[str] = None,
	) -> str:
		payload = self._payload(prompt, system_instruction)
		payload["generationConfig"] = {
			"responseMimeType": "application/json",
			"responseSchema": response_schema,
		}
		# The fallback model cannot honour a response schema
		return await self._post_payload(payload, fallback_prompt=None, allow_fallback=False)

	def _payload(self, prompt: str, system_instruction: Optional[str]) -> Dict[str, Any]:
		payload: Dict[str, Any] = {"contents": [{"role": "user", "parts": [{"text": prompt}]}]}
		if system_instruction:
			payload["systemInstruction"] = {"parts": [{"text": system_instruction}]}
		return payload

	async def _post_payload(
		self,
		payload: Dict[str, Any],
		*,
		fallback_prompt: Optional[str],
		allow_fallback: bool = True,
	) -> str:
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
			logger.warning("Gemini request to %s failed: %s", self.model, err)
			last_error = err
		if last_error is None:
			try:
				data = r.json()
				return data["candidates"][0]["content"]["parts"][0]["text"]
			except (ValueError, KeyError, IndexError, TypeError):
				last_error = RuntimeError(f"Unexpected Gemini response: {r.text}")
		if not allow_fallback or not self._fallback_enabled:
			raise last_error
		if fallback_prompt is None:
			raise last_error
		return await self._fallback_generate(fallback_prompt, last_error)

	async def aclose(self) -> None:
		await self._client.aclose()
		if self._fallback_client is not None:
			await self._fallback_client.aclose()

	async def _fallback_generate(self, prompt: str, primary_error: Exception) -> str:
		if not self._fallback_client or not self._openrouter_api_key:
			raise primary_error
		headers = {k: v for k, v in self._openrouter_headers.items() if v}
		payload: Dict[str, Any] = {
			"model": self._openrouter_model,
			"messages": [{"role": "user", "content": prompt}],
		}
		logger.info("Falling back to OpenRouter model %s", self._openrouter_model)
		try:
			r = await self._fallback_client.post(
				self._openrouter_base_url,
				headers=headers,
				json=payload,
			)
			r.raise_for_status()
			data = r.json()
			return data["choices"][0]["message"]["content"]
		except (httpx.HTTPError, ValueError, KeyError, IndexError, TypeError) as fallback_err:
			raise RuntimeError(
				f"Gemini primary call failed ({primary_error}); fallback via OpenRouter also failed"
			) from fallback_err
