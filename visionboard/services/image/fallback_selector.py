"""
Curated Fallback Image Selection

Used whenever AI image generation is unavailable (no API key) or fails.
The prompt is matched against keyword sets to pick a relevant bucket of
curated stock photos, so a "Ferrari rojo" still gets a car.

Selection modes:
- Stable: a hash of the prompt picks the image, so re-renders and the
  initial generation for a new wish always show the same picture.
- Fresh: a random image plus a cache-busting marker, so a user-initiated
  "regenerate" is visibly different even when it degrades to a fallback.

This module never raises.
"""

import random
import time
from enum import Enum
from typing import Callable, Optional


class FallbackBucket(str, Enum):
    """Curated image buckets, keyed by what the prompt talks about."""
    VEHICLES = "VEHICLES"
    TRAVEL = "TRAVEL"
    TECH = "TECH"
    HOME = "HOME"
    DEFAULT = "DEFAULT"


_UNSPLASH = "https://images.unsplash.com/{}?q=80&w=1000&auto=format&fit=crop"

CATEGORIZED_FALLBACKS: dict[FallbackBucket, tuple[str, ...]] = {
    FallbackBucket.VEHICLES: tuple(_UNSPLASH.format(p) for p in (
        "photo-1503376763036-066120622c74",  # supercar
        "photo-1583847668182-f8759530598b",
        "photo-1552519507-da3b142c6e3d",     # classic car
        "photo-1494976388531-d1058494cdd8",
        "photo-1563911302283-d2bc129e7c1f",  # private jet
        "photo-1559087867-ce4c91325525",     # yacht
    )),
    FallbackBucket.TRAVEL: tuple(_UNSPLASH.format(p) for p in (
        "photo-1519167758481-83f550bb49b3",
        "photo-1476514525535-07fb3b4ae5f1",
        "photo-1502602898657-3e91760cbb34",
        "photo-1520250497591-112f2f40a3f4",
        "photo-1507525428034-b723cf961d3e",
    )),
    FallbackBucket.TECH: tuple(_UNSPLASH.format(p) for p in (
        "photo-1519389950473-47ba0277781c",
        "photo-1550745165-9bc0b252726f",
        "photo-1525547719571-a2d4ac8945e2",
    )),
    FallbackBucket.HOME: tuple(_UNSPLASH.format(p) for p in (
        "photo-1565514020176-db79339a6a5d",
        "photo-1618221195710-dd6b41faaea6",
        "photo-1600607686527-6fb886090705",
        "photo-1512917774080-9991f1c4c750",
    )),
    FallbackBucket.DEFAULT: tuple(_UNSPLASH.format(p) for p in (
        "photo-1622627958569-8d7d91e84605",
        "photo-1579546929518-9e396f3cc809",
        "photo-1550684848-fac1c5b4e853",
    )),
}

# Priority order matters: the first bucket with a matching keyword wins
KEYWORDS: tuple[tuple[FallbackBucket, tuple[str, ...]], ...] = (
    (FallbackBucket.VEHICLES, (
        "auto", "carro", "coche", "ferrari", "lamborghini", "porsche", "bmw",
        "mercedes", "audi", "moto", "yate", "barco", "jet", "avion", "avión",
        "tesla", "camioneta", "bugatti", "mclaren",
    )),
    (FallbackBucket.TRAVEL, (
        "viaje", "trip", "paris", "roma", "playa", "montaña", "hotel",
        "resort", "vacaciones", "mundo", "japon", "dubai", "grecia",
        "italia", "suiza",
    )),
    (FallbackBucket.TECH, (
        "computadora", "pc", "macbook", "iphone", "celular", "camara",
        "cámara", "setup", "gamer", "reloj", "rolex", "patek",
    )),
    (FallbackBucket.HOME, (
        "casa", "hogar", "mansion", "mansión", "departamento", "apartamento",
        "muebles", "sala", "cocina", "jardin", "piscina", "penthouse",
    )),
)

CACHE_BUST_PARAM = "v"


def _to_int32(value: int) -> int:
    value &= 0xFFFFFFFF
    return value - 0x100000000 if value >= 0x80000000 else value


def prompt_hash(text: str) -> int:
    """
    Rolling string hash: h = c + ((h << 5) - h) per UTF-16 code unit,
    absolute value at the end.

    Only the shift is 32-bit (the accumulator itself is not wrapped), which
    keeps it bit-compatible with the hash the board has always used, so
    existing wishes keep mapping to the same fallback image.
    """
    data = text.encode("utf-16-le")
    h = 0
    for i in range(0, len(data), 2):
        code_unit = data[i] | (data[i + 1] << 8)
        h = code_unit + _to_int32(_to_int32(h) << 5) - h
    return abs(h)


def match_bucket(prompt_text: str) -> FallbackBucket:
    """Case-insensitive keyword match in fixed priority order."""
    lower = (prompt_text or "").lower()
    for bucket, keywords in KEYWORDS:
        if any(keyword in lower for keyword in keywords):
            return bucket
    return FallbackBucket.DEFAULT


def add_cache_buster(url: str, marker: int) -> str:
    separator = "&" if "?" in url else "?"
    return f"{url}{separator}{CACHE_BUST_PARAM}={marker}"


class FallbackImageSelector:
    """
    Picks a curated image for a prompt.

    Args:
        rng: random source for fresh variants (injectable for tests)
        clock_ms: returns the cache-busting marker (epoch milliseconds)
    """

    def __init__(
        self,
        rng: Optional[random.Random] = None,
        clock_ms: Optional[Callable[[], int]] = None,
        buckets: Optional[dict[FallbackBucket, tuple[str, ...]]] = None,
    ):
        self._rng = rng or random.Random()
        self._clock_ms = clock_ms or (lambda: int(time.time() * 1000))
        self._buckets = buckets or CATEGORIZED_FALLBACKS

    def bucket_images(self, bucket: FallbackBucket) -> tuple[str, ...]:
        return self._buckets.get(bucket) or self._buckets[FallbackBucket.DEFAULT]

    def select(self, prompt_text: str, wants_fresh_variant: bool = False) -> str:
        """
        Return a fallback image URL for the prompt.

        wants_fresh_variant=True: random pick + cache-busting marker.
        wants_fresh_variant=False: deterministic pick for the same prompt.
        """
        prompt_text = prompt_text or ""
        images = self.bucket_images(match_bucket(prompt_text))

        if wants_fresh_variant:
            url = self._rng.choice(images)
            return add_cache_buster(url, self._clock_ms())

        return images[prompt_hash(prompt_text) % len(images)]
