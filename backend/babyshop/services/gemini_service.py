"""
BabyShop Backend — Google Gemini Image Recognition
==================================================

What:  VisionService implementation backed by the Gemini vision API.
Why:   Lets a shopper photograph a baby product and find the closest items
       in the catalog.
How:   Sends the image and a JSON-only prompt to Gemini, extracts the first
       `{...}` block from the answer and validates it into ImageAnalysis.

Resilience Strategy:
    1. Tenacity retry with exponential backoff + jitter for transient failures
    2. Circuit breaker so a Gemini outage costs <1ms per request, not a
       full retry cycle
    3. Every failure ends in a fallback analysis; the analyze endpoint keeps
       working (with fewer matches) while Gemini is down or unconfigured
"""

import json
import logging
import re
import time
import uuid
from typing import Any, Dict, Optional

import google.generativeai as genai
from pydantic import ValidationError as SchemaValidationError
from tenacity import (
    before_sleep_log,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential_jitter,
)

from babyshop.config import settings
from babyshop.exceptions import CircuitBreakerOpenError, VisionServiceError
from babyshop.schemas.image import ImageAnalysis
from babyshop.services.vision_base import VisionService

logger = logging.getLogger(__name__)

UNAVAILABLE = "AI analysis is unavailable at the moment."
INCONCLUSIVE = "AI analysis was inconclusive."
FAILED = "AI analysis failed."

_JSON_BLOCK = re.compile(r"\{.*\}", re.DOTALL)


def fallback_analysis(description: str) -> ImageAnalysis:
    return ImageAnalysis(description=description)


def parse_analysis(raw: str) -> ImageAnalysis:
    """
    Turn the model's answer into an ImageAnalysis.

    No JSON object in the text → inconclusive fallback. A JSON object that
    does not parse or does not fit the schema → failed fallback.
    """
    match = _JSON_BLOCK.search(raw or "")
    if not match:
        return fallback_analysis(INCONCLUSIVE)
    try:
        payload: Any = json.loads(match.group(0))
        if not isinstance(payload, dict):
            return fallback_analysis(FAILED)
        return ImageAnalysis.model_validate(payload)
    except (json.JSONDecodeError, SchemaValidationError) as exc:
        logger.warning("Unusable analysis payload: %s", exc)
        return fallback_analysis(FAILED)


# ══════════════════════════════════════════════════════════════════════════
# Circuit Breaker Implementation
# ══════════════════════════════════════════════════════════════════════════

class CircuitBreaker:
    """
    Circuit breaker guarding the Gemini calls.

    State Machine:
        CLOSED     → failures counted; threshold reached → OPEN
        OPEN       → calls rejected with CircuitBreakerOpenError until
                     recovery_timeout has elapsed → HALF_OPEN
        HALF_OPEN  → one call allowed; success → CLOSED, failure → OPEN

    Not thread-safe; fine for a single-process async server.
    """

    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"

    def __init__(self, failure_threshold: int = 5, recovery_timeout: int = 60):
        self.failure_threshold = failure_threshold
        self.recovery_timeout = recovery_timeout
        self.failure_count = 0
        self.state = self.CLOSED
        self.last_failure_time: Optional[float] = None

    def can_execute(self) -> bool:
        """
        Raises:
            CircuitBreakerOpenError if OPEN and the recovery timeout has not elapsed.
        """
        if self.state == self.CLOSED:
            return True

        if self.state == self.OPEN:
            elapsed = time.time() - (self.last_failure_time or 0)
            if elapsed >= self.recovery_timeout:
                logger.info("Circuit breaker transitioning to HALF_OPEN after %.1fs", elapsed)
                self.state = self.HALF_OPEN
                return True
            remaining = int(self.recovery_timeout - elapsed)
            raise CircuitBreakerOpenError(recovery_time=remaining)

        return True

    def record_success(self) -> None:
        if self.state == self.HALF_OPEN:
            logger.info("Circuit breaker transitioning to CLOSED (service recovered)")
        self.failure_count = 0
        self.state = self.CLOSED
        self.last_failure_time = None

    def record_failure(self) -> None:
        self.failure_count += 1
        self.last_failure_time = time.time()

        if self.state == self.HALF_OPEN:
            logger.warning("Circuit breaker returning to OPEN (test request failed)")
            self.state = self.OPEN
        elif self.failure_count >= self.failure_threshold:
            logger.warning(
                "Circuit breaker OPENING after %d consecutive failures",
                self.failure_count,
            )
            self.state = self.OPEN


# ══════════════════════════════════════════════════════════════════════════
# Gemini Service
# ══════════════════════════════════════════════════════════════════════════

class GeminiVisionService(VisionService):
    """
    Error Handling Chain:
        API call fails → tenacity retries (3 attempts with backoff)
        → all retries fail → circuit breaker failure + VisionServiceError
        → describe_image() logs it and returns a fallback analysis
    """

    ANALYZE_PROMPT = """You are an expert in baby and childcare products (feeding, bath,
sleep, strollers, car seats, toys, clothing, hygiene, health).
1. Identify the product in the image.
2. Look for a brand name or a serial/reference number on the product.
3. Give a short description and a usage guide.

Answer with strict JSON only, using exactly these keys:
{
  "productNameEn": "Product name in English (e.g. Baby bottle)",
  "productNameFr": "Product name in French (e.g. Biberon)",
  "description": "What the product is for and how to check its condition.",
  "usageGuide": "How to use it safely.",
  "brandDetected": "Brand visible on the image, or null",
  "category": "Shop category (e.g. Feeding, Bath, Sleep, Travel, Toys)",
  "serialNumber": "Reference or serial code visible on the image, or null",
  "keywords": ["search", "keywords"]
}"""

    def __init__(self):
        self.enabled = settings.vision_enabled
        if self.enabled:
            genai.configure(api_key=settings.gemini_api_key)

        self.model = genai.GenerativeModel(settings.gemini_model)

        self.circuit_breaker = CircuitBreaker(
            failure_threshold=settings.cb_failure_threshold,
            recovery_timeout=settings.cb_recovery_timeout,
        )

        logger.info(
            "GeminiVisionService initialized with model=%s enabled=%s, "
            "circuit_breaker(threshold=%d, recovery=%ds)",
            settings.gemini_model,
            self.enabled,
            settings.cb_failure_threshold,
            settings.cb_recovery_timeout,
        )

    async def describe_image(self, image: bytes, media_type: str = "image/jpeg") -> ImageAnalysis:
        if not self.enabled:
            return fallback_analysis(UNAVAILABLE)

        try:
            raw = await self.analyze(image, media_type)
        except CircuitBreakerOpenError as exc:
            logger.warning("Image analysis skipped: %s", exc.message)
            return fallback_analysis(UNAVAILABLE)
        except VisionServiceError as exc:
            logger.warning("Image analysis fell back: %s | Context: %s", exc.message, exc.context)
            return fallback_analysis(FAILED)

        return parse_analysis(raw)

    async def analyze(self, image: bytes, media_type: str) -> str:
        """
        Raw model answer for one image, guarded by the circuit breaker.

        Raises:
            CircuitBreakerOpenError: circuit is open.
            VisionServiceError: Gemini failed after all retry attempts.
        """
        request_id = str(uuid.uuid4())[:8]
        self.circuit_breaker.can_execute()

        logger.info("[%s] Starting Gemini analysis (%s, %d bytes)", request_id, media_type, len(image))

        try:
            result = await self._call_gemini_with_retry(image, media_type, request_id)
        except Exception as e:
            self.circuit_breaker.record_failure()
            logger.error("[%s] Gemini analysis failed: %s", request_id, e)
            raise VisionServiceError(
                message="Image analysis failed after multiple attempts",
                context={"request_id": request_id, "error_type": type(e).__name__},
            ) from e

        self.circuit_breaker.record_success()
        return result

    @retry(
        # The SDK raises generic exceptions for API errors
        retry=retry_if_exception_type(Exception),
        stop=stop_after_attempt(settings.retry_max_attempts),
        wait=wait_exponential_jitter(
            initial=settings.retry_min_wait,
            max=settings.retry_max_wait,
            jitter=1,
        ),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True,
    )
    async def _call_gemini_with_retry(self, image: bytes, media_type: str, request_id: str) -> str:
        start_time = time.time()
        blob: Dict[str, Any] = {"mime_type": media_type, "data": image}

        try:
            response = await self.model.generate_content_async(
                [self.ANALYZE_PROMPT, blob],
                request_options={"timeout": 60},
            )
            text = response.text.strip() if response.text else ""
        except Exception as e:
            duration_ms = (time.time() - start_time) * 1000
            logger.warning("[%s] Gemini call failed after %.0fms: %s", request_id, duration_ms, e)
            raise

        logger.info(
            "[%s] Gemini analysis completed in %.0fms, %d chars",
            request_id,
            (time.time() - start_time) * 1000,
            len(text),
        )
        return text

    async def health_check(self) -> bool:
        """
        Lists models (no token cost) to verify the key and connectivity.
        Always False when no key is configured.
        """
        if not self.enabled:
            return False
        try:
            models = genai.list_models()
            target = f"models/{settings.gemini_model}"
            if target not in [m.name for m in models]:
                logger.warning("Configured model %s not found in available models", target)
            return True
        except Exception as e:
            logger.warning("Gemini health check failed: %s", e)
            return False


gemini_service = GeminiVisionService()
