"""
Card Digitizer v1.0

Turns a digital ID document PDF into a bilingual (Amharic/English)
profile record and printable front/back card images.

Stages:
- Text layout reconstruction from the PDF text layer
- Rule-based bilingual field extraction
- Region rasterization (photo, barcode, date strip, QR)
- QR/barcode decoding and clean re-encoding
- Template-based card composition
"""

__version__ = "1.0.0"


def __getattr__(name):
    """Lazy imports so that light submodules (models, extractors.fields)
    do not pull in fitz, OpenCV or zbar."""

    _model_names = {"ProfileRecord"}
    _error_names = {
        "CardDigitizerError", "RegionOutOfBounds", "CodeEncodeInvalid",
        "ExtractionFailed", "RenderFailed", "TemplateLoadFailed",
        "UnsupportedFormat", "FontResolutionFailed",
    }
    _codec_names = {"decode", "encode", "encode_png"}
    _extractor_names = {"extract_profile", "reconstruct_text", "rasterize_region"}
    _render_names = {"FontTable", "CardLayout", "compose_card", "render_card"}
    _pipeline_names = {
        "CardTemplateSet", "DigitizationResult", "digitize_and_render", "DEFAULT_REGIONS",
    }

    if name in _model_names:
        from . import models
        return getattr(models, name)
    elif name in _error_names:
        from . import errors
        return getattr(errors, name)
    elif name in _codec_names:
        from . import codec
        return getattr(codec, name)
    elif name in _extractor_names:
        from . import extractors
        return getattr(extractors, name)
    elif name in _render_names:
        from . import render
        return getattr(render, name)
    elif name in _pipeline_names:
        from . import pipeline
        return getattr(pipeline, name)

    raise AttributeError(f"module 'card_digitizer' has no attribute {name!r}")
