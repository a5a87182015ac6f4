"""OpenAI-compatible chat completion client and response text helpers."""

from __future__ import annotations

import json
import logging
import re
import time
from enum import StrEnum
from typing import Any

import httpx

from cropwise.config import Settings

logger = logging.getLogger("cropwise.llm")

_FENCE_OPEN = re.compile(r"^```[a-zA-Z]*\s*\n?")
_FENCE_CLOSE = re.compile(r"\n?```\s*$")


class LLMNotConfiguredError(RuntimeError):
	"""Raised when no provider API key is configured."""


class LLMServiceError(RuntimeError):
	"""Raised when the provider call fails or returns an unusable payload."""


class ModelTier(StrEnum):
	standard = "standard"
	analysis = "analysis"


def strip_code_fences(text: str) -> str:
	"""Remove a leading ```json / ``` marker and the trailing ``` marker."""
	cleaned = text.strip()
	if cleaned.startswith("```"):
		cleaned = _FENCE_OPEN.sub("", cleaned, count=1)
		cleaned = _FENCE_CLOSE.sub("", cleaned, count=1)
	return cleaned.strip()


def extract_json_object(text: str) -> str | None:
	"""Return the first balanced ``{...}`` substring, ignoring braces in strings."""
	start = text.find("{")
	while start != -1:
		depth = 0
		in_string = False
		escaped = False
		for index in range(start, len(text)):
			char = text[index]
			if in_string:
				if escaped:
					escaped = False
				elif char == "\\":
					escaped = True
				elif char == '"':
					in_string = False
				continue
			if char == '"':
				in_string = True
			elif char == "{":
				depth += 1
			elif char == "}":
				depth -= 1
				if depth == 0:
					return text[start : index + 1]
		start = text.find("{", start + 1)
	return None


def parse_json_object(text: str) -> dict[str, Any] | None:
	"""Best-effort parse of an LLM reply into a JSON object."""
	cleaned = strip_code_fences(text)
	try:
		parsed = json.loads(cleaned)
	except json.JSONDecodeError:
		candidate = extract_json_object(cleaned)
		if candidate is None:
			return None
		try:
			parsed = json.loads(candidate)
		except json.JSONDecodeError:
			return None
	return parsed if isinstance(parsed, dict) else None


class LLMClient:
	"""Prompt-in / text-out wrapper over OpenAI or Together AI chat completions."""

	def __init__(self, settings: Settings, transport: httpx.AsyncBaseTransport | None = None):
		self.settings = settings
		self._transport = transport

	@property
	def provider(self) -> str | None:
		if self.settings.openai_api_key:
			return "openai"
		if self.settings.together_api_key:
			return "together"
		return None

	@property
	def available(self) -> bool:
		return self.provider is not None

	def model_for(self, tier: ModelTier = ModelTier.standard) -> str:
		if self.provider == "openai":
			return self.settings.openai_model
		if tier == ModelTier.analysis:
			return self.settings.together_analysis_model
		return self.settings.together_model

	def _endpoint(self) -> tuple[str, str]:
		if self.provider == "openai":
			return self.settings.openai_base_url, self.settings.openai_api_key
		if self.provider == "together":
			return self.settings.together_base_url, self.settings.together_api_key
		raise LLMNotConfiguredError(
			"LLM service not configured. Please set OPENAI_API_KEY or TOGETHER_API_KEY environment variable."
		)

	async def complete(
		self,
		*,
		system: str,
		user: str,
		temperature: float = 0.7,
		max_tokens: int = 500,
		json_mode: bool = False,
		tier: ModelTier = ModelTier.standard,
	) -> str:
		base_url, api_key = self._endpoint()
		model = self.model_for(tier)
		body: dict[str, Any] = {
			"model": model,
			"messages": [
				{"role": "system", "content": system},
				{"role": "user", "content": user},
			],
			"temperature": temperature,
			"max_tokens": max_tokens,
		}
		if json_mode:
			body["response_format"] = {"type": "json_object"}
		headers = {
			"authorization": f"Bearer {api_key}",
			"content-type": "application/json",
		}

		start = time.perf_counter()
		try:
			async with httpx.AsyncClient(
				timeout=self.settings.llm_timeout_seconds,
				transport=self._transport,
			) as client:
				response = await client.post(f"{base_url.rstrip('/')}/chat/completions", headers=headers, json=body)
				response.raise_for_status()
				payload = response.json()
		except (httpx.HTTPError, ValueError) as exc:
			self._log_call(model, start, ok=False, error=str(exc))
			raise LLMServiceError(f"LLM request failed: {exc}") from exc

		try:
			content = payload["choices"][0]["message"]["content"]
		except (KeyError, IndexError, TypeError) as exc:
			self._log_call(model, start, ok=False, error="malformed completion payload")
			raise LLMServiceError("LLM returned a malformed completion payload") from exc
		if not isinstance(content, str) or not content.strip():
			self._log_call(model, start, ok=False, error="empty completion")
			raise LLMServiceError("LLM returned an empty completion")

		self._log_call(model, start, ok=True)
		return content

	def _log_call(self, model: str, start: float, *, ok: bool, error: str | None = None) -> None:
		extra = {
			"provider": self.provider,
			"model": model,
			"duration_ms": round((time.perf_counter() - start) * 1000.0, 2),
			"ok": ok,
			"error": error,
		}
		if ok:
			logger.info("llm_call", extra=extra)
		else:
			logger.error("llm_call_failed", extra=extra)
