"""
Tests for the Gemini-backed agents.

Every failure mode must degrade to a usable result; none may raise.
"""

import asyncio
import random
from types import SimpleNamespace

import pytest

from conftest import FakeGemini, image_response, text_response
from visionboard.agents.ai_agents import (
    GENERIC_ACTION_PLAN,
    IMAGE_STYLE_SUFFIX,
    ActionPlanGenerator,
    ImageGenerationOrchestrator,
    NoImageDataError,
    PromptEnhancer,
    SafetyBlockedError,
    check_safety,
    extract_inline_image,
    response_text,
)
from visionboard.config import get_settings
from visionboard.models.audit import AuditEventType
from visionboard.services.image import CATEGORIZED_FALLBACKS, FallbackBucket, FallbackImageSelector


def text_model():
    return get_settings().gemini.text_model


def image_model():
    return get_settings().gemini.image_model


def make_orchestrator(gemini, resolver, audit_logger=None):
    selector = FallbackImageSelector(rng=random.Random(3), clock_ms=lambda: 1700000000000)
    return ImageGenerationOrchestrator(
        key_resolver=resolver,
        fallback_selector=selector,
        model_factory=gemini,
        audit_logger=audit_logger,
    )


def event_types(audit_logger):
    return [e.event_type for e in audit_logger.recent_events()]


class TestResponseHelpers:
    """Tests for response parsing helpers."""

    def test_response_text_handles_blocked_answers(self):
        """Test .text raising ValueError counts as empty."""
        class Blocked:
            @property
            def text(self):
                raise ValueError("no parts")

        assert response_text(Blocked()) == ""
        assert response_text(text_response("  hola  ")) == "hola"
        assert response_text(None) == ""

    def test_extract_inline_image_encodes_bytes(self):
        """Test raw bytes are base64 encoded with their mime type."""
        mime_type, payload = extract_inline_image(image_response(b"\x89PNG", "image/jpeg"))
        assert mime_type == "image/jpeg"
        assert payload == "iVBORw=="

    def test_extract_inline_image_passes_through_base64(self):
        """Test an already-encoded payload is kept as is."""
        mime_type, payload = extract_inline_image(image_response("QUJD", mime_type=None))
        assert mime_type == "image/png"
        assert payload == "QUJD"

    def test_extract_inline_image_without_image(self):
        """Test a text-only response raises NoImageDataError."""
        with pytest.raises(NoImageDataError):
            extract_inline_image(text_response("I can't draw that"))

    def test_check_safety(self):
        """Test both prompt-level and candidate-level blocks."""
        with pytest.raises(SafetyBlockedError):
            check_safety(image_response(b"x", finish_reason="SAFETY"))
        with pytest.raises(SafetyBlockedError):
            check_safety(image_response(b"x", block_reason="SAFETY"))
        check_safety(image_response(b"x"))


class TestPromptEnhancer:
    """Tests for PromptEnhancer."""

    def test_enhanced_prompt_is_returned(self, audit_logger):
        """Test the model's answer replaces the prompt."""
        gemini = FakeGemini({text_model(): text_response("A red Ferrari on a coastal road")})
        enhancer = PromptEnhancer(model_factory=gemini, audit_logger=audit_logger)

        result = asyncio.run(enhancer.enhance("Ferrari rojo", "key"))

        assert result == "A red Ferrari on a coastal road"
        assert 'Input: "Ferrari rojo"' in gemini.prompts_for(text_model())[0]
        assert AuditEventType.PROMPT_ENHANCED in event_types(audit_logger)

    def test_failure_returns_original_prompt(self):
        """Test enhancement fails open."""
        gemini = FakeGemini({text_model(): RuntimeError("503 unavailable")})
        enhancer = PromptEnhancer(model_factory=gemini)

        assert asyncio.run(enhancer.enhance("Ferrari rojo", "key")) == "Ferrari rojo"

    def test_empty_answer_returns_original_prompt(self):
        """Test an empty answer is not used."""
        gemini = FakeGemini({text_model(): text_response("   ")})
        enhancer = PromptEnhancer(model_factory=gemini)

        assert asyncio.run(enhancer.enhance("Casa en la playa", "key")) == "Casa en la playa"

    def test_blank_prompt_skips_the_call(self):
        """Test nothing is sent for a blank prompt."""
        gemini = FakeGemini()
        enhancer = PromptEnhancer(model_factory=gemini)

        assert asyncio.run(enhancer.enhance("  ", "key")) == "  "
        assert gemini.calls == []

    def test_instruction_mentions_word_budget(self):
        """Test the instruction carries the configured word budget."""
        enhancer = PromptEnhancer(model_factory=FakeGemini())
        instruction = enhancer.build_instruction("Rolex")
        assert f"under {get_settings().gemini.enhance_max_words} words" in instruction
        assert "PRESERVE EXACTLY" in instruction


class TestImageGenerationOrchestrator:
    """Tests for ImageGenerationOrchestrator."""

    def test_success_returns_data_uri(self, online_resolver, audit_logger):
        """Test a generated image comes back as a data URI."""
        gemini = FakeGemini({
            text_model(): text_response("A red Ferrari"),
            image_model(): image_response(b"\x89PNG"),
        })
        orchestrator = make_orchestrator(gemini, online_resolver, audit_logger)

        result = asyncio.run(orchestrator.generate("Ferrari rojo"))

        assert result == "data:image/png;base64,iVBORw=="
        assert gemini.prompts_for(image_model()) == [f"A red Ferrari . {IMAGE_STYLE_SUFFIX}"]
        assert AuditEventType.IMAGE_GENERATED in event_types(audit_logger)

    def test_image_model_gets_permissive_safety_settings(self, online_resolver):
        """Test the image request relaxes safety thresholds."""
        gemini = FakeGemini({image_model(): image_response(b"img")})
        orchestrator = make_orchestrator(gemini, online_resolver)

        asyncio.run(orchestrator.generate("Yate"))

        image_kwargs = [k for k in gemini.factory_kwargs if k["model_name"] == image_model()]
        thresholds = {s["threshold"] for s in image_kwargs[0]["safety_settings"]}
        assert thresholds == {"BLOCK_NONE"}

    def test_missing_key_uses_stable_fallback(self, offline_resolver, audit_logger):
        """Test demo mode never calls the model."""
        gemini = FakeGemini()
        orchestrator = make_orchestrator(gemini, offline_resolver, audit_logger)

        first = asyncio.run(orchestrator.generate("Ferrari rojo"))
        second = asyncio.run(orchestrator.generate("Ferrari rojo"))

        assert first == second
        assert first in CATEGORIZED_FALLBACKS[FallbackBucket.VEHICLES]
        assert gemini.calls == []
        fallback = audit_logger.recent_events()[0]
        assert fallback.event_type == AuditEventType.IMAGE_FALLBACK_USED
        assert fallback.details["reason"] == "missing_api_key"

    def test_endpoint_failure_uses_fallback(self, online_resolver, audit_logger):
        """Test a network error degrades to a curated image."""
        gemini = FakeGemini({image_model(): ConnectionError("network down")})
        orchestrator = make_orchestrator(gemini, online_resolver, audit_logger)

        result = asyncio.run(orchestrator.generate("Casa con piscina"))

        assert result in CATEGORIZED_FALLBACKS[FallbackBucket.HOME]
        types = event_types(audit_logger)
        assert AuditEventType.EXTERNAL_SERVICE_ERROR in types
        assert AuditEventType.IMAGE_FALLBACK_USED in types

    def test_safety_rejection_uses_fallback(self, online_resolver, audit_logger):
        """Test a SAFETY finish reason degrades to a curated image."""
        gemini = FakeGemini({image_model(): image_response(b"x", finish_reason="SAFETY")})
        orchestrator = make_orchestrator(gemini, online_resolver, audit_logger)

        result = asyncio.run(orchestrator.generate("Rolex de oro"))

        assert result in CATEGORIZED_FALLBACKS[FallbackBucket.TECH]
        assert audit_logger.recent_events()[0].details["reason"] == "safety_blocked"

    def test_safety_message_in_exception_uses_fallback(self, online_resolver, audit_logger):
        """Test an SDK error mentioning SAFETY is classified as a block."""
        gemini = FakeGemini({image_model(): ValueError("finish_reason: SAFETY")})
        orchestrator = make_orchestrator(gemini, online_resolver, audit_logger)

        asyncio.run(orchestrator.generate("Rolex"))

        assert audit_logger.recent_events()[0].details["reason"] == "safety_blocked"

    def test_malformed_response_uses_fallback(self, online_resolver, audit_logger):
        """Test a response without image data degrades to a curated image."""
        gemini = FakeGemini({image_model(): SimpleNamespace(candidates=None)})
        orchestrator = make_orchestrator(gemini, online_resolver, audit_logger)

        result = asyncio.run(orchestrator.generate("Ser feliz"))

        assert result in CATEGORIZED_FALLBACKS[FallbackBucket.DEFAULT]
        assert audit_logger.recent_events()[0].details["reason"] == "no_image_data"

    def test_forced_fresh_variant_on_failure(self, online_resolver):
        """Test 'Ferrari rojo' regeneration lands on a cache-busted vehicle image."""
        gemini = FakeGemini({
            text_model(): RuntimeError("timeout"),
            image_model(): RuntimeError("timeout"),
        })
        orchestrator = make_orchestrator(gemini, online_resolver)

        result = asyncio.run(orchestrator.generate("Ferrari rojo", force_fresh_on_failure=True))

        base, _, marker = result.rpartition("&v=")
        assert marker == "1700000000000"
        assert base in CATEGORIZED_FALLBACKS[FallbackBucket.VEHICLES]
        # The original prompt is used when enhancement fails
        assert gemini.prompts_for(image_model()) == [f"Ferrari rojo . {IMAGE_STYLE_SUFFIX}"]


class TestActionPlanGenerator:
    """Tests for ActionPlanGenerator."""

    def test_plan_without_key_is_generic(self, offline_resolver, fake_gemini):
        """Test demo mode returns the fixed plan without a call."""
        generator = ActionPlanGenerator(key_resolver=offline_resolver, model_factory=fake_gemini)

        plan = asyncio.run(generator.generate_plan("Ferrari", 250000))

        assert plan == GENERIC_ACTION_PLAN
        assert fake_gemini.calls == []

    def test_plan_from_model(self, online_resolver, audit_logger):
        """Test the model's plan is returned trimmed."""
        gemini = FakeGemini({text_model(): text_response("1. Uno\n2. Dos\n3. Tres\n")})
        generator = ActionPlanGenerator(
            key_resolver=online_resolver,
            model_factory=gemini,
            audit_logger=audit_logger,
        )

        plan = asyncio.run(generator.generate_plan("Ferrari", 250000))

        assert plan == "1. Uno\n2. Dos\n3. Tres"
        prompt = gemini.prompts_for(text_model())[0]
        assert '"Ferrari"' in prompt
        assert "$250,000" in prompt
        assert AuditEventType.PLAN_GENERATED in event_types(audit_logger)

    def test_plan_failure_is_generic(self, online_resolver, audit_logger):
        """Test an endpoint error returns the fixed plan."""
        gemini = FakeGemini({text_model(): RuntimeError("quota exceeded")})
        generator = ActionPlanGenerator(
            key_resolver=online_resolver,
            model_factory=gemini,
            audit_logger=audit_logger,
        )

        assert asyncio.run(generator.generate_plan("Casa", 100000)) == GENERIC_ACTION_PLAN
        assert audit_logger.recent_events()[0].event_type == AuditEventType.PLAN_FALLBACK_USED

    def test_empty_plan_is_generic(self, online_resolver):
        """Test an empty answer returns the fixed plan."""
        gemini = FakeGemini({text_model(): text_response("")})
        generator = ActionPlanGenerator(key_resolver=online_resolver, model_factory=gemini)

        assert asyncio.run(generator.generate_plan("Casa", 100000)) == GENERIC_ACTION_PLAN


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
