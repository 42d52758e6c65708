from __future__ import annotations

import json
import logging
from typing import Any, Callable, Optional, Sequence

import requests

from ..common.images import JPEG_MIME, compress_image, strip_data_uri
from ..core.constants import (
    DEFAULT_API_URL,
    DEFAULT_MAX_CANDIDATES,
    DEFAULT_MODEL_NAME,
    DEFAULT_TIMEOUT_SECONDS,
    VALIDATE_IMAGE_QUALITY,
    VALIDATE_IMAGE_WIDTH,
    VERIFY_IMAGE_QUALITY,
    VERIFY_IMAGE_WIDTH,
)
from ..core.enums import LivenessAction
from ..core.exceptions import GatewayError
from ..users.model import User
from .gateway import ImageValidator, Verifier
from .model import ImageValidation, VerificationResult
from .prompts import (
    SAFETY_SETTINGS,
    VALIDATION_PROMPT,
    VALIDATION_SCHEMA,
    VERIFICATION_SCHEMA,
    verification_prompt,
)

logger = logging.getLogger(__name__)


def image_part(image: str) -> dict[str, Any]:
    return {"inline_data": {"mime_type": JPEG_MIME, "data": strip_data_uri(image)}}


def text_part(text: str) -> dict[str, Any]:
    return {"text": text}


class GeminiClient:
    """Thin wrapper over the Gemini ``generateContent`` REST endpoint.

    Every problem (transport, HTTP status, empty or non-JSON answer) surfaces
    as ``GatewayError``; callers decide how to present it.
    """

    def __init__(
        self,
        api_key: Optional[str],
        *,
        model: str = DEFAULT_MODEL_NAME,
        base_url: str = DEFAULT_API_URL,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        session: Optional[requests.Session] = None,
    ):
        self._api_key = (api_key or "").strip()
        self._model = model
        self._base_url = base_url.rstrip("/")
        self._timeout = float(timeout)
        self._session = session or requests.Session()

    @property
    def has_api_key(self) -> bool:
        return bool(self._api_key)

    @property
    def endpoint(self) -> str:
        return f"{self._base_url}/models/{self._model}:generateContent"

    def generate_json(self, parts: Sequence[dict[str, Any]], schema: dict[str, Any]) -> dict[str, Any]:
        if not self._api_key:
            raise GatewayError("API key is missing")

        body = {
            "contents": [{"role": "user", "parts": list(parts)}],
            "generationConfig": {
                "responseMimeType": "application/json",
                "responseSchema": schema,
            },
            "safetySettings": SAFETY_SETTINGS,
        }

        try:
            response = self._session.post(
                self.endpoint,
                headers={"x-goog-api-key": self._api_key},
                json=body,
                timeout=self._timeout,
            )
        except requests.RequestException as exc:
            raise GatewayError(f"Network error: {exc}") from exc

        if response.status_code >= 400:
            raise GatewayError(
                f"HTTP {response.status_code}: {_error_message(response)}",
                status_code=response.status_code,
            )

        try:
            payload = response.json()
        except ValueError as exc:
            raise GatewayError("Invalid JSON envelope from AI service") from exc

        text = _response_text(payload)
        if not text:
            raise GatewayError("No response text from model")

        try:
            result = json.loads(text)
        except ValueError as exc:
            raise GatewayError("Invalid JSON response from AI") from exc
        if not isinstance(result, dict):
            raise GatewayError("Invalid JSON response from AI")
        return result


def _error_message(response: requests.Response) -> str:
    try:
        data = response.json()
    except ValueError:
        return response.reason or "error"
    if isinstance(data, dict) and isinstance(data.get("error"), dict):
        return str(data["error"].get("message") or response.reason or "error")
    return response.reason or "error"


def _response_text(payload: Any) -> str:
    if not isinstance(payload, dict):
        return ""
    for candidate in payload.get("candidates") or []:
        content = (candidate or {}).get("content") or {}
        texts = [p.get("text", "") for p in content.get("parts") or [] if isinstance(p, dict)]
        text = "".join(texts).strip()
        if text:
            return text
    return ""


def describe_gateway_error(exc: GatewayError) -> str:
    """Friendly message for the kiosk screen."""
    code = exc.status_code
    if code in (400, 413):
        return f"Request too large ({code}). Try clearing some users."
    if code in (401, 403):
        return f"API key invalid or expired ({code})."
    if code == 429:
        return "AI service quota exceeded (429). Try again later."
    if code in (500, 502, 503, 504):
        return f"AI service unavailable ({code}). Try again."
    return str(exc)


def _as_index(value: Any) -> Optional[int]:
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return None


def parse_verification(data: dict[str, Any], candidates: Sequence[User]) -> VerificationResult:
    """Map the model's answer back onto our users.

    ``matchedUserIndex`` points into ``candidates`` as sent; ``-1``, missing or
    out-of-range values mean no match.
    """

    try:
        confidence = float(data.get("confidence") or 0.0)
    except (TypeError, ValueError) as exc:
        raise GatewayError(f"Malformed confidence value: {data.get('confidence')!r}") from exc
    confidence = min(1.0, max(0.0, confidence))

    match = bool(data.get("match"))
    user_id = None
    index = _as_index(data.get("matchedUserIndex"))
    if match and index is not None and 0 <= index < len(candidates):
        user_id = candidates[index].user_id

    return VerificationResult(
        match=match,
        user_id=user_id,
        confidence=confidence,
        liveness_confirmed=bool(data.get("livenessConfirmed")),
        spoof_detected=bool(data.get("spoofDetected")),
        reason=str(data.get("reason") or ""),
    )


class GeminiVerifier(Verifier, ImageValidator):
    """Verifier and image validator backed by a Gemini vision model."""

    def __init__(
        self,
        client: GeminiClient,
        *,
        max_candidates: int = DEFAULT_MAX_CANDIDATES,
        compress: Callable[[str, int, int], str] = compress_image,
    ):
        if max_candidates < 1:
            raise ValueError("max_candidates must be at least 1")
        self._client = client
        self._max_candidates = int(max_candidates)
        self._compress = compress

    @property
    def max_candidates(self) -> int:
        return self._max_candidates

    def verify(self, image: str, candidates: Sequence[User], challenge: LivenessAction) -> VerificationResult:
        if not self._client.has_api_key:
            return VerificationResult.failed("System Error: API key is missing.")
        if not candidates:
            return VerificationResult.failed("No users registered in the database.")

        active = list(candidates)[: self._max_candidates]
        if len(candidates) > len(active):
            logger.warning(
                "Candidate pool truncated: sending %d of %d registered users", len(active), len(candidates)
            )

        parts = [image_part(self._compress(image, VERIFY_IMAGE_WIDTH, VERIFY_IMAGE_QUALITY))]
        parts.extend(image_part(self._compress(u.face_image, VERIFY_IMAGE_WIDTH, VERIFY_IMAGE_QUALITY)) for u in active)
        parts.append(text_part(verification_prompt(len(active), challenge)))

        try:
            data = self._client.generate_json(parts, VERIFICATION_SCHEMA)
            result = parse_verification(data, active)
        except GatewayError as exc:
            logger.error("Verification call failed: %s", exc)
            return VerificationResult.failed(f"Verification Error: {describe_gateway_error(exc)}")

        logger.info(
            "Verification answered: match=%s user=%s liveness=%s spoof=%s confidence=%.2f",
            result.match,
            result.user_id,
            result.liveness_confirmed,
            result.spoof_detected,
            result.confidence,
        )
        return result

    def validate(self, image: str) -> ImageValidation:
        if not self._client.has_api_key:
            return ImageValidation(valid=False, reason="API key is missing.")

        parts = [
            image_part(self._compress(image, VALIDATE_IMAGE_WIDTH, VALIDATE_IMAGE_QUALITY)),
            text_part(VALIDATION_PROMPT),
        ]
        try:
            data = self._client.generate_json(parts, VALIDATION_SCHEMA)
        except GatewayError as exc:
            logger.error("Registration image validation failed: %s", exc)
            return ImageValidation(valid=False, reason=f"Validation Error: {describe_gateway_error(exc)}")

        reason = data.get("reason")
        return ImageValidation(valid=bool(data.get("valid")), reason=str(reason) if reason else None)
