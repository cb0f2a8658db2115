"""Image loading and raster transforms for card faces.

Every failure to obtain an image turns into ``None``; nothing here raises to
the composer. Loads are memoised per URL so a batch fetches each logo once.
"""
from __future__ import annotations

import base64
import binascii
import http.client
import urllib.error
import urllib.request
from io import BytesIO
from pathlib import Path
from typing import Callable, Dict, NamedTuple, Optional

from PIL import Image, ImageDraw, ImageFile, ImageOps, UnidentifiedImageError

ImageFile.LOAD_TRUNCATED_IMAGES = True

DEFAULT_ASSET_TIMEOUT = 10.0
DEFAULT_PORTRAIT_PIXELS = 400
USER_AGENT = "id-card-maker/1.0"

# DecompressionBombError and HTTPException are not OSError subclasses
FETCH_ERRORS = (
    OSError,
    ValueError,
    binascii.Error,
    urllib.error.URLError,
    http.client.HTTPException,
    UnidentifiedImageError,
    Image.DecompressionBombError,
)


class AssetResult(NamedTuple):
    image: Optional[Image.Image]
    error: Optional[str]


def _read_bytes(url: str, timeout: float) -> bytes:
    if url.startswith("data:"):
        header, _, payload = url.partition(",")
        if ";base64" not in header:
            raise ValueError("only base64 data URIs are supported")
        return base64.b64decode(payload, validate=True)
    if url.startswith(("http://", "https://", "file://")):
        request = urllib.request.Request(url, headers={"User-Agent": USER_AGENT, "Accept": "*/*"})
        with urllib.request.urlopen(request, timeout=timeout) as response:
            return response.read()
    return Path(url).read_bytes()


def fetch_image(url: Optional[str], timeout: float = DEFAULT_ASSET_TIMEOUT) -> AssetResult:
    """Fetch and decode one image; the failure reason is returned, not raised."""
    if not url:
        return AssetResult(None, "no image source")
    try:
        data = _read_bytes(url, timeout)
        image = Image.open(BytesIO(data))
        image.load()
    except FETCH_ERRORS as exc:
        return AssetResult(None, f"{type(exc).__name__}: {exc}")
    return AssetResult(image.convert("RGBA"), None)


class AssetCache:
    """Per-batch image cache keyed by URL; failures are cached too."""

    def __init__(
        self,
        timeout: float = DEFAULT_ASSET_TIMEOUT,
        log_fn: Optional[Callable[[str], None]] = None,
        fetch_fn: Callable[[Optional[str], float], AssetResult] = fetch_image,
    ) -> None:
        self.timeout = timeout
        self.log_fn = log_fn
        self._fetch = fetch_fn
        self._results: Dict[str, AssetResult] = {}

    def __contains__(self, url: str) -> bool:
        return url in self._results

    def fetch(self, url: Optional[str]) -> AssetResult:
        key = url or ""
        if key not in self._results:
            result = self._fetch(url, self.timeout)
            if result.error and self.log_fn is not None:
                self.log_fn(f"⚠️ image unavailable ({key or 'empty'}): {result.error}")
            self._results[key] = result
        return self._results[key]

    def load(self, url: Optional[str]) -> Optional[Image.Image]:
        return self.fetch(url).image


def to_circular_portrait(source: Optional[Image.Image], target_size: int = DEFAULT_PORTRAIT_PIXELS) -> Optional[Image.Image]:
    """Aspect-fill ``source`` into a square and mask it with a centred circle."""
    if source is None:
        return None
    width, height = source.size
    if width <= 0 or height <= 0:
        return None

    # crops to the centred square first, so the resize never exceeds target_size
    canvas = ImageOps.fit(source.convert("RGBA"), (target_size, target_size), Image.LANCZOS)

    mask = Image.new("L", (target_size, target_size), 0)
    ImageDraw.Draw(mask).ellipse((0, 0, target_size - 1, target_size - 1), fill=255)
    alpha = Image.composite(canvas.getchannel("A"), mask, mask)
    canvas.putalpha(alpha)
    return canvas


def to_rectangle(source: Optional[Image.Image]) -> Optional[Image.Image]:
    """Rasterise ``source`` at its native resolution."""
    if source is None:
        return None
    return source.convert("RGBA").copy()


def load_portrait(cache: AssetCache, url: Optional[str], target_size: int = DEFAULT_PORTRAIT_PIXELS) -> Optional[Image.Image]:
    return to_circular_portrait(cache.load(url), target_size)
