"""
Tests for curated fallback image selection.
"""

import random

import pytest

from visionboard.services.image.fallback_selector import (
    CATEGORIZED_FALLBACKS,
    FallbackBucket,
    FallbackImageSelector,
    add_cache_buster,
    match_bucket,
    prompt_hash,
)


class TestPromptHash:
    """Tests for the rolling prompt hash."""

    def test_known_values(self):
        """Test values that existing boards depend on."""
        assert prompt_hash("") == 0
        assert prompt_hash("a") == 97
        assert prompt_hash("ab") == 3105
        assert prompt_hash("abc") == 96354

    def test_hash_is_never_negative(self):
        """Test abs() on long strings that overflow the shift."""
        for text in ("Ferrari rojo en la costa amalfitana", "x" * 500, "ñandú 🚗"):
            assert prompt_hash(text) >= 0

    def test_hash_is_deterministic(self):
        """Test same text, same hash."""
        assert prompt_hash("Casa en la playa") == prompt_hash("Casa en la playa")


class TestMatchBucket:
    """Tests for keyword matching."""

    @pytest.mark.parametrize("prompt,expected", [
        ("Ferrari rojo", FallbackBucket.VEHICLES),
        ("Vacaciones en Grecia", FallbackBucket.TRAVEL),
        ("Un Rolex de oro", FallbackBucket.TECH),
        ("Mansión con piscina", FallbackBucket.HOME),
        ("Ser feliz", FallbackBucket.DEFAULT),
        ("", FallbackBucket.DEFAULT),
    ])
    def test_buckets(self, prompt, expected):
        """Test each bucket is reachable."""
        assert match_bucket(prompt) == expected

    def test_match_is_case_insensitive(self):
        """Test upper-case prompts still match."""
        assert match_bucket("LAMBORGHINI") == FallbackBucket.VEHICLES

    def test_vehicles_win_over_travel(self):
        """Test priority order when several buckets match."""
        assert match_bucket("viaje en ferrari") == FallbackBucket.VEHICLES
        assert match_bucket("hotel con piscina") == FallbackBucket.TRAVEL


class TestCacheBuster:
    """Tests for the cache-busting marker."""

    def test_appends_to_existing_query(self):
        """Test '&' is used when the URL already has a query string."""
        assert add_cache_buster("https://x.test/a.jpg?q=80", 123) == "https://x.test/a.jpg?q=80&v=123"

    def test_starts_query_when_missing(self):
        """Test '?' is used for a bare URL."""
        assert add_cache_buster("https://x.test/a.jpg", 123) == "https://x.test/a.jpg?v=123"


class TestFallbackImageSelector:
    """Tests for FallbackImageSelector."""

    def test_stable_selection_is_deterministic(self):
        """Test the same prompt always maps to the same image."""
        selector = FallbackImageSelector()
        first = selector.select("Ferrari rojo")
        assert first == selector.select("Ferrari rojo")
        assert first in CATEGORIZED_FALLBACKS[FallbackBucket.VEHICLES]
        assert "&v=" not in first

    def test_stable_selection_uses_hash_index(self):
        """Test the index is hash modulo bucket size."""
        selector = FallbackImageSelector()
        images = CATEGORIZED_FALLBACKS[FallbackBucket.DEFAULT]
        prompt = "Ser feliz"
        assert selector.select(prompt) == images[prompt_hash(prompt) % len(images)]

    def test_fresh_variant_has_cache_buster(self):
        """Test fresh variants come from the bucket and carry a marker."""
        selector = FallbackImageSelector(rng=random.Random(7), clock_ms=lambda: 1700000000000)
        url = selector.select("Ferrari rojo", wants_fresh_variant=True)
        base, _, marker = url.rpartition("&v=")
        assert marker == "1700000000000"
        assert base in CATEGORIZED_FALLBACKS[FallbackBucket.VEHICLES]

    def test_fresh_variants_differ_over_time(self):
        """Test two regenerations are never the same URL."""
        ticks = iter([1, 2])
        selector = FallbackImageSelector(rng=random.Random(0), clock_ms=lambda: next(ticks))
        first = selector.select("Casa", wants_fresh_variant=True)
        second = selector.select("Casa", wants_fresh_variant=True)
        assert first != second

    def test_empty_prompt_uses_default_bucket(self):
        """Test an empty or missing prompt never raises."""
        selector = FallbackImageSelector()
        assert selector.select("") in CATEGORIZED_FALLBACKS[FallbackBucket.DEFAULT]
        assert selector.select(None) in CATEGORIZED_FALLBACKS[FallbackBucket.DEFAULT]

    def test_missing_bucket_falls_back_to_default(self):
        """Test a custom bucket table without the matched bucket."""
        buckets = {FallbackBucket.DEFAULT: ("https://x.test/default.jpg",)}
        selector = FallbackImageSelector(buckets=buckets)
        assert selector.select("Ferrari") == "https://x.test/default.jpg"


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
