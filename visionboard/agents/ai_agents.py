"""
AI Agents for Vision Board

DESIGN DECISION: Every Gemini call is best-effort. The board must stay fully
usable without a key, without network, and when Gemini refuses a prompt.

CRITICAL BOUNDARIES:

1. PROMPT ENHANCER:
   - CAN: Translate/expand a wish description into an image prompt
   - MUST: Keep brands, models, colors and years verbatim
   - MUST: Return the original prompt on any failure

2. IMAGE GENERATION ORCHESTRATOR:
   - No key -> curated fallback image (offline/demo mode, not an error)
   - Any failure (network, timeout, safety block, no image in the
     response) -> curated fallback image
   - NEVER raises to its caller

3. ACTION PLAN GENERATOR:
   - No key or any failure -> the fixed generic 3-step plan
   - NEVER raises to its caller

The API key is resolved once per call and never logged.
"""

import base64
from typing import Any, Callable, Optional

import google.generativeai as genai
import structlog

from visionboard.audit import AuditLogger
from visionboard.config import ApiKeyResolver, get_settings
from visionboard.queries.board import format_amount
from visionboard.services.image import FallbackImageSelector, match_bucket


logger = structlog.get_logger(__name__)


GENERIC_ACTION_PLAN = (
    "1. Define tu objetivo con claridad absoluta.\n"
    "2. Ahorra e invierte el 20% de tus ingresos consistentemente.\n"
    "3. Visualiza el éxito diariamente y actúa como si ya fuera tuyo."
)

IMAGE_STYLE_SUFFIX = "photorealistic, 8k, cinematic lighting, highly detailed, masterpiece."

# Luxury/wealth concepts get flagged surprisingly often
PERMISSIVE_SAFETY_SETTINGS = [
    {"category": "HARM_CATEGORY_HARASSMENT", "threshold": "BLOCK_NONE"},
    {"category": "HARM_CATEGORY_HATE_SPEECH", "threshold": "BLOCK_NONE"},
    {"category": "HARM_CATEGORY_SEXUALLY_EXPLICIT", "threshold": "BLOCK_NONE"},
    {"category": "HARM_CATEGORY_DANGEROUS_CONTENT", "threshold": "BLOCK_NONE"},
]

DEFAULT_IMAGE_MIME_TYPE = "image/png"


class ImageGenerationError(Exception):
    """Base exception for image generation failures."""
    pass


class SafetyBlockedError(ImageGenerationError):
    """Gemini refused the prompt or the output on safety grounds."""
    pass


class NoImageDataError(ImageGenerationError):
    """The response carried no inline image."""
    pass


ModelFactory = Callable[..., Any]


def build_gemini_model(
    api_key: str,
    model_name: str,
    generation_config: Optional[dict] = None,
    safety_settings: Optional[list[dict]] = None,
):
    """Configure Google Generative AI and build a model handle."""
    genai.configure(api_key=api_key)
    return genai.GenerativeModel(
        model_name=model_name,
        generation_config=generation_config,
        safety_settings=safety_settings,
    )


def response_text(response) -> str:
    """
    Text of the first candidate, or "" when there is none.

    response.text raises ValueError when the answer was blocked or empty.
    """
    try:
        text = response.text
    except (ValueError, AttributeError, IndexError):
        return ""
    return (text or "").strip()


def _enum_name(value) -> str:
    return getattr(value, "name", None) or str(value or "")


def check_safety(response) -> None:
    """Raise SafetyBlockedError if the prompt or the first candidate was blocked."""
    feedback = getattr(response, "prompt_feedback", None)
    block_reason = getattr(feedback, "block_reason", None)
    if block_reason and _enum_name(block_reason) != "BLOCK_REASON_UNSPECIFIED":
        raise SafetyBlockedError(f"Prompt blocked: {_enum_name(block_reason)}")

    candidates = getattr(response, "candidates", None) or []
    if candidates and _enum_name(getattr(candidates[0], "finish_reason", None)) == "SAFETY":
        raise SafetyBlockedError("Image blocked by SAFETY filters")


def extract_inline_image(response) -> tuple[str, str]:
    """
    Find the first inline image in the response.

    Returns:
        (mime_type, base64_payload)

    Raises:
        NoImageDataError: If no candidate carries inline image data
    """
    for candidate in getattr(response, "candidates", None) or []:
        content = getattr(candidate, "content", None)
        for part in getattr(content, "parts", None) or []:
            inline = getattr(part, "inline_data", None)
            data = getattr(inline, "data", None)
            if not data:
                continue
            if isinstance(data, (bytes, bytearray)):
                payload = base64.b64encode(bytes(data)).decode("ascii")
            else:
                # Some transports hand back the payload already base64-encoded
                payload = str(data)
            mime_type = getattr(inline, "mime_type", None) or DEFAULT_IMAGE_MIME_TYPE
            return mime_type, payload
    raise NoImageDataError("No image data in response")


def to_data_uri(mime_type: str, payload: str) -> str:
    return f"data:{mime_type};base64,{payload}"


class PromptEnhancer:
    """
    Turns a wish description into an image-generator friendly prompt.

    Enhancement is always attempted for a non-blank prompt and fails open:
    whatever goes wrong, the caller gets the original text back.
    """

    def __init__(
        self,
        model_factory: Optional[ModelFactory] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._settings = get_settings().gemini
        self._model_factory = model_factory or build_gemini_model
        self._audit_logger = audit_logger

    def build_instruction(self, user_prompt: str) -> str:
        return f"""Translate this text (usually Spanish) to a detailed English prompt for an image generator (like Midjourney/DALL-E).
RULES:
1. Keep it under {self._settings.enhance_max_words} words.
2. PRESERVE EXACTLY: Colors, Brands (Ferrari, Rolex, etc.), Models, Years.
3. Do NOT add generic filler like "luxury lifestyle" if it conflicts with the object.
4. If it's a car, mention the car clearly.
5. Respond with the prompt only.

Input: "{user_prompt}"
"""

    async def enhance(self, user_prompt: str, api_key: str) -> str:
        if not user_prompt or not user_prompt.strip():
            return user_prompt

        try:
            model = self._model_factory(
                api_key=api_key,
                model_name=self._settings.text_model,
                generation_config={
                    "temperature": 0.4,
                    "max_output_tokens": self._settings.max_output_tokens,
                },
            )
            response = await model.generate_content_async(
                self.build_instruction(user_prompt),
                request_options={"timeout": self._settings.request_timeout_seconds},
            )
            enhanced = response_text(response)
        except Exception as e:
            logger.warning(
                "prompt_enhancement_skipped",
                error_type=type(e).__name__,
                error=str(e),
            )
            return user_prompt

        if not enhanced:
            logger.warning("prompt_enhancement_empty")
            return user_prompt

        if self._audit_logger:
            self._audit_logger.log_prompt_enhanced(user_prompt, enhanced)
        return enhanced


class ImageGenerationOrchestrator:
    """
    Produces an image reference for a wish.

    FLOW:
    1. Resolve the API key (absent -> fallback, demo mode)
    2. Enhance the prompt (best-effort)
    3. Ask the image model, extract the first inline image
    4. Any failure -> fallback

    force_fresh_on_failure makes a user-initiated "regenerate" visibly
    different even when it ends up on the fallback path (random pick
    instead of the stable hash pick).
    """

    def __init__(
        self,
        key_resolver: Optional[ApiKeyResolver] = None,
        fallback_selector: Optional[FallbackImageSelector] = None,
        prompt_enhancer: Optional[PromptEnhancer] = None,
        model_factory: Optional[ModelFactory] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._settings = get_settings().gemini
        self._key_resolver = key_resolver or ApiKeyResolver()
        self._fallback_selector = fallback_selector or FallbackImageSelector()
        self._model_factory = model_factory or build_gemini_model
        self._audit_logger = audit_logger
        self._prompt_enhancer = prompt_enhancer or PromptEnhancer(
            model_factory=self._model_factory,
            audit_logger=audit_logger,
        )

    def fallback(
        self,
        prompt: str,
        fresh_variant: bool,
        reason: str,
        error_message: Optional[str] = None,
    ) -> str:
        image_url = self._fallback_selector.select(prompt, fresh_variant)
        if self._audit_logger:
            self._audit_logger.log_image_fallback(
                reason=reason,
                bucket=match_bucket(prompt).value,
                fresh_variant=fresh_variant,
                error_message=error_message,
            )
        return image_url

    def build_image_prompt(self, enhanced_prompt: str) -> str:
        return f"{enhanced_prompt} . {IMAGE_STYLE_SUFFIX}"

    async def _generate_with_gemini(self, prompt: str, api_key: str) -> str:
        final_prompt = await self._prompt_enhancer.enhance(prompt, api_key)
        logger.info("generating_image", prompt=final_prompt)

        model = self._model_factory(
            api_key=api_key,
            model_name=self._settings.image_model,
            safety_settings=PERMISSIVE_SAFETY_SETTINGS,
        )
        response = await model.generate_content_async(
            self.build_image_prompt(final_prompt),
            request_options={"timeout": self._settings.request_timeout_seconds},
        )

        check_safety(response)
        mime_type, payload = extract_inline_image(response)

        if self._audit_logger:
            self._audit_logger.log_image_generated(
                model=self._settings.image_model,
                mime_type=mime_type,
                payload_size=len(payload),
            )
        return to_data_uri(mime_type, payload)

    async def generate(self, prompt: str, force_fresh_on_failure: bool = False) -> str:
        """
        Generate an image reference (data URI or curated URL).

        Never raises.
        """
        api_key = self._key_resolver.resolve()
        if not api_key:
            logger.warning("api_key_missing_using_fallback")
            return self.fallback(prompt, force_fresh_on_failure, reason="missing_api_key")

        try:
            return await self._generate_with_gemini(prompt, api_key)
        except Exception as e:
            if isinstance(e, SafetyBlockedError) or "SAFETY" in str(e):
                reason = "safety_blocked"
                logger.warning("image_blocked_by_safety_filters", error=str(e))
            elif isinstance(e, NoImageDataError):
                reason = "no_image_data"
                logger.error("image_generation_failed", reason=reason)
            else:
                reason = "generation_failed"
                logger.error(
                    "image_generation_failed",
                    reason=reason,
                    error_type=type(e).__name__,
                    error=str(e),
                )
                if self._audit_logger:
                    self._audit_logger.log_external_service_error(
                        service="gemini",
                        operation="generate_image",
                        error_message=str(e),
                    )
            return self.fallback(
                prompt,
                force_fresh_on_failure,
                reason=reason,
                error_message=str(e),
            )


class ActionPlanGenerator:
    """
    Writes a short 3-step savings plan for a wish.

    Without a key, or when Gemini fails, the generic plan is returned.
    """

    def __init__(
        self,
        key_resolver: Optional[ApiKeyResolver] = None,
        model_factory: Optional[ModelFactory] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._settings = get_settings().gemini
        self._key_resolver = key_resolver or ApiKeyResolver()
        self._model_factory = model_factory or build_gemini_model
        self._audit_logger = audit_logger

    def build_prompt(self, title: str, target_amount: float) -> str:
        return (
            f'Plan de acción de 3 pasos breves para conseguir: "{title}" '
            f"({format_amount(target_amount)}). "
            "Tono: asesor financiero de élite, motivador. "
            "Responde solo con los 3 pasos numerados (1., 2., 3.), una línea cada uno. "
            "Español."
        )

    def _fallback(self, reason: str, error_message: Optional[str] = None) -> str:
        if self._audit_logger:
            self._audit_logger.log_plan_fallback(reason, error_message)
        return GENERIC_ACTION_PLAN

    async def generate_plan(self, title: str, target_amount: float) -> str:
        """Never raises."""
        api_key = self._key_resolver.resolve()
        if not api_key:
            return self._fallback("missing_api_key")

        try:
            model = self._model_factory(
                api_key=api_key,
                model_name=self._settings.text_model,
                generation_config={
                    "temperature": self._settings.temperature,
                    "max_output_tokens": self._settings.max_output_tokens,
                },
            )
            response = await model.generate_content_async(
                self.build_prompt(title, target_amount),
                request_options={"timeout": self._settings.request_timeout_seconds},
            )
            plan = response_text(response)
        except Exception as e:
            logger.error(
                "action_plan_generation_failed",
                error_type=type(e).__name__,
                error=str(e),
            )
            return self._fallback("generation_failed", str(e))

        if not plan:
            return self._fallback("empty_response")

        if self._audit_logger:
            self._audit_logger.log_plan_generated(self._settings.text_model, title)
        return plan
