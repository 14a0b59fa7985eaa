"""
Default region table for the single-page ID document layout.

Coordinates are PDF points from the top-left of the page. Each region is
grouped under the card side whose slots it feeds; regions with
code_formats are also passed to the code scanner.
"""

from typing import Dict, Iterator, Mapping, Tuple

from ..codec.scanner import BARCODE_FORMATS, QR
from ..contracts import RegionSpec

RegionTable = Mapping[str, Mapping[str, RegionSpec]]

DEFAULT_REGIONS: Dict[str, Dict[str, RegionSpec]] = {
    "front": {
        "photo": RegionSpec(55, 100, 80, 110, scale=5, remove_near_white_background=True),
        "barcode": RegionSpec(
            432, 290, 80, 23, scale=5,
            remove_near_white_background=True,
            code_formats=BARCODE_FORMATS,
        ),
        # Vertical strip, turned upright for reading
        "issue_date": RegionSpec(535, 128, 10, 83, scale=5, rotation=90, remove_near_white_background=True),
    },
    "back": {
        "qr_code": RegionSpec(110, 410, 165, 163, scale=10, code_formats=(QR,)),
    },
}


def iter_regions(regions: RegionTable) -> Iterator[Tuple[str, str, RegionSpec]]:
    """
    Yield (side, region name, spec) for every declared region.

    Region names key the sub-images fed to both card sides, so a name may
    be declared on one side only.

    Raises:
        ValueError: If a region name appears under more than one side
    """
    seen: Dict[str, str] = {}
    for side, specs in regions.items():
        for name, spec in specs.items():
            if name in seen:
                raise ValueError(f"Region '{name}' declared on both '{seen[name]}' and '{side}'")
            seen[name] = side
            yield side, name, spec
