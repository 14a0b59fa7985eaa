"""Typed errors raised by the digitizer pipeline.

Per-field and per-code-region failures never surface here: extraction
degrades a field to "" and decoding returns None. These types cover the
failures a caller has to act on.
"""

from typing import Optional, Tuple


class CardDigitizerError(Exception):
    """Base class for every error raised by card_digitizer."""


class RegionOutOfBounds(CardDigitizerError):
    """A RegionSpec crop extends past the rendered page."""

    def __init__(
        self,
        region: str,
        box: Tuple[int, int, int, int],
        page_size: Tuple[int, int],
    ):
        self.region = region
        self.box = box
        self.page_size = page_size
        super().__init__(
            f"Region '{region}' crop {box} exceeds rendered page "
            f"{page_size[0]}x{page_size[1]}"
        )


class CodeEncodeInvalid(CardDigitizerError, ValueError):
    """Payload cannot be represented in the requested symbology."""


class ExtractionFailed(CardDigitizerError):
    """No usable field could be extracted from the document."""


class RenderFailed(CardDigitizerError):
    """A card side could not be composited."""

    def __init__(self, message: str, side: Optional[str] = None):
        self.side = side
        super().__init__(message)


class TemplateLoadFailed(RenderFailed):
    """Card template image is missing or unreadable."""


class UnsupportedFormat(RenderFailed, ValueError):
    """Requested export format is not supported."""


class FontResolutionFailed(RenderFailed):
    """No font file is configured (or loadable) for a family/weight."""
