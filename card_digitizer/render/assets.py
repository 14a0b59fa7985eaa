"""
Load-once cache for card templates and fonts.

Templates and fonts are read-only configuration shared by every pipeline
run. The first caller loads an asset under a lock; later callers get the
cached object. Cached template images must not be drawn on directly,
callers take a .copy() first.
"""

import logging
import os
import threading
from typing import Dict, Iterable, Mapping, Tuple

from PIL import Image, ImageFont

from ..errors import FontResolutionFailed, TemplateLoadFailed

logger = logging.getLogger(__name__)

FontKey = Tuple[str, str]

# CSS-style numeric weights folded onto the names used in font tables
_WEIGHT_ALIASES = {
    "400": "normal",
    "regular": "normal",
    "700": "bold",
}


def normalize_weight(weight: str) -> str:
    weight = str(weight or "normal").strip().lower()
    return _WEIGHT_ALIASES.get(weight, weight)


class AssetCache:
    """
    Thread-safe, load-once store for templates and fonts.

    Usage:
        cache = AssetCache()
        template = cache.template("assets/front.png").copy()
        font = cache.font("assets/ebrima.ttf", 48)
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._templates: Dict[str, Image.Image] = {}
        self._fonts: Dict[Tuple[str, int], ImageFont.FreeTypeFont] = {}

    def template(self, path: str) -> Image.Image:
        """
        Get a template image, loading it on first use.

        Raises:
            TemplateLoadFailed: If the file is missing or not a readable image
        """
        key = os.path.abspath(path)
        with self._lock:
            if key not in self._templates:
                try:
                    with Image.open(key) as img:
                        img.load()
                        self._templates[key] = img.convert("RGBA")
                except (OSError, ValueError) as exc:
                    raise TemplateLoadFailed(f"Cannot load template '{path}': {exc}") from exc
                logger.info("Loaded template %s (%dx%d)", path, *self._templates[key].size)
            return self._templates[key]

    def font(self, path: str, size: int) -> ImageFont.FreeTypeFont:
        """
        Get a TrueType font at a pixel size, loading it on first use.

        Raises:
            FontResolutionFailed: If the font file cannot be loaded
        """
        key = (os.path.abspath(path), int(size))
        with self._lock:
            if key not in self._fonts:
                try:
                    self._fonts[key] = ImageFont.truetype(key[0], key[1])
                except OSError as exc:
                    raise FontResolutionFailed(f"Cannot load font '{path}': {exc}") from exc
                logger.debug("Loaded font %s at %dpx", path, key[1])
            return self._fonts[key]

    def clear(self) -> None:
        """Drop every cached asset."""
        with self._lock:
            self._templates.clear()
            self._fonts.clear()

    def __len__(self) -> int:
        return len(self._templates) + len(self._fonts)


# Process-wide cache used when no explicit cache is passed
shared_assets = AssetCache()


class FontTable:
    """
    Maps (family, weight) to a font file.

    A weight with no entry falls back to the family's "normal" weight;
    if that is missing too, resolution fails.
    """

    def __init__(self, fonts: Mapping[FontKey, str]):
        self._fonts: Dict[FontKey, str] = {
            (family, normalize_weight(weight)): path
            for (family, weight), path in fonts.items()
        }

    @classmethod
    def from_specs(cls, specs: Iterable[str]) -> "FontTable":
        """
        Parse "FAMILY:WEIGHT=PATH" entries (command-line form).

        Raises:
            FontResolutionFailed: On a malformed entry
        """
        fonts = {}
        for spec in specs:
            key, sep, path = spec.partition("=")
            family, _, weight = key.partition(":")
            if not sep or not family or not path:
                raise FontResolutionFailed(f"Malformed font spec {spec!r}, expected FAMILY:WEIGHT=PATH")
            fonts[(family.strip(), weight.strip() or "normal")] = path.strip()
        return cls(fonts)

    def resolve(self, family: str, weight: str) -> str:
        """
        Find the font file for a family/weight.

        Raises:
            FontResolutionFailed: If neither the weight nor "normal" is configured
        """
        weight = normalize_weight(weight)
        for key in ((family, weight), (family, "normal")):
            if key in self._fonts:
                if key[1] != weight:
                    logger.debug("Font %s/%s not configured, using %s/normal", family, weight, family)
                return self._fonts[key]
        raise FontResolutionFailed(f"No font configured for {family} ({weight})")

    def load(self, family: str, weight: str, size: int, cache: AssetCache = shared_assets) -> ImageFont.FreeTypeFont:
        return cache.font(self.resolve(family, weight), size)

    def __contains__(self, key: FontKey) -> bool:
        family, weight = key
        return (family, normalize_weight(weight)) in self._fonts
