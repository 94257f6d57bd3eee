"""Informational scan of static image assets."""

import logging
import re
from pathlib import Path
from typing import List, Optional

from .models import ImageRecommendation

logger = logging.getLogger(__name__)

LEGACY_FORMATS = {'.jpg', '.jpeg', '.png', '.gif'}
MODERN_FORMATS = {'.webp', '.avif'}
IMAGE_FORMATS = LEGACY_FORMATS | MODERN_FORMATS | {'.svg'}

DEFAULT_MAX_IMAGE_BYTES = 1024 * 1024

# e.g. hero-640w.webp, logo@2x.png
RESPONSIVE_VARIANT = re.compile(r'(-\d+w|@\dx)$')


def scan_images(image_dir: Optional[str],
                max_image_bytes: int = DEFAULT_MAX_IMAGE_BYTES) -> List[ImageRecommendation]:
    """Flag legacy formats, oversized files and missing responsive variants."""
    if not image_dir:
        return []
    root = Path(image_dir)
    if not root.is_dir():
        logger.debug(f"Image directory {root} not found, skipping image scan")
        return []

    images = [p for p in root.rglob('*') if p.is_file() and p.suffix.lower() in IMAGE_FORMATS]
    if not images:
        return []

    recommendations: List[ImageRecommendation] = []
    raster = [p for p in images if p.suffix.lower() != '.svg']

    legacy = [p for p in raster if p.suffix.lower() in LEGACY_FORMATS]
    modern = [p for p in raster if p.suffix.lower() in MODERN_FORMATS]
    if len(legacy) > len(modern):
        recommendations.append(ImageRecommendation(
            type='format',
            issue=f"{len(legacy)} of {len(raster)} images use legacy formats",
            suggestions=(
                "Serve WebP or AVIF with a JPEG/PNG fallback",
                "Convert images at upload time instead of on request",
            )
        ))

    oversized = [p for p in raster if p.stat().st_size > max_image_bytes]
    if oversized:
        recommendations.append(ImageRecommendation(
            type='size',
            issue=(f"{len(oversized)} images exceed "
                   f"{max_image_bytes // 1024}KB (largest: {max(oversized, key=lambda p: p.stat().st_size).name})"),
            suggestions=(
                "Compress large images and cap their dimensions",
                "Lazy-load images below the fold",
            )
        ))

    single_size = [p for p in raster if not RESPONSIVE_VARIANT.search(p.stem)]
    if raster and len(single_size) * 2 > len(raster):
        recommendations.append(ImageRecommendation(
            type='responsive',
            issue=f"{len(single_size)} images have no responsive size variants",
            suggestions=(
                "Generate width variants (e.g. name-320w, name-640w) and use srcset",
            )
        ))

    return recommendations
