"""
Image processing: generates thumbnail/medium/large variants with Pillow.

Images are only ever scaled down. A size is skipped entirely when the
original is not wider than its target width.
"""

from __future__ import annotations

import io
from dataclasses import dataclass, field

import structlog
from PIL import Image, ImageOps, UnidentifiedImageError
from starlette.concurrency import run_in_threadpool

from photocomp.core.errors import AppError
from photocomp_shared.schemas.common import PhotoSize

log = structlog.get_logger()

# Target width and encoder quality per generated size
SIZES: dict[PhotoSize, tuple[int, int]] = {
    PhotoSize.THUMBNAIL: (200, 80),
    PhotoSize.MEDIUM: (600, 85),
    PhotoSize.LARGE: (1600, 90),
}

_EXTENSIONS = {"JPEG": "jpg", "PNG": "png", "WEBP": "webp", "GIF": "gif"}
_CONTENT_TYPES = {"JPEG": "image/jpeg", "PNG": "image/png", "WEBP": "image/webp", "GIF": "image/gif"}


@dataclass
class ImageVariant:
    data: bytes
    content_type: str
    extension: str
    width: int
    height: int


@dataclass
class ProcessedImage:
    format: str
    width: int
    height: int
    variants: dict[PhotoSize, ImageVariant] = field(default_factory=dict)


def _has_alpha(image: Image.Image) -> bool:
    return image.mode in ("RGBA", "LA") or (image.mode == "P" and "transparency" in image.info)


def _output_format(source_format: str, image: Image.Image) -> str:
    """PNG with transparency stays PNG, WebP stays WebP, everything else is JPEG."""
    if source_format == "PNG" and _has_alpha(image):
        return "PNG"
    if source_format == "WEBP":
        return "WEBP"
    return "JPEG"


def _resize(image: Image.Image, width: int, fmt: str, quality: int) -> ImageVariant:
    height = max(1, round(image.height * width / image.width))
    resized = image.resize((width, height), Image.Resampling.LANCZOS)
    if fmt == "JPEG" and resized.mode not in ("RGB", "L"):
        resized = resized.convert("RGB")

    buffer = io.BytesIO()
    save_kwargs = {"optimize": True} if fmt == "PNG" else {"quality": quality}
    resized.save(buffer, format=fmt, **save_kwargs)
    return ImageVariant(
        data=buffer.getvalue(),
        content_type=_CONTENT_TYPES[fmt],
        extension=_EXTENSIONS[fmt],
        width=width,
        height=height,
    )


def generate_image_sizes(data: bytes, mime_type: str = "image/jpeg") -> ProcessedImage:
    """Decode ``data`` and build every size variant narrower than the original."""
    try:
        image = Image.open(io.BytesIO(data))
        image.load()
    except (UnidentifiedImageError, OSError) as exc:
        raise AppError(f"Invalid image file: {exc}", 400) from exc

    source_format = (image.format or "").upper()
    # Respect camera orientation before measuring widths
    image = ImageOps.exif_transpose(image)

    result = ProcessedImage(format=source_format, width=image.width, height=image.height)
    result.variants[PhotoSize.ORIGINAL] = ImageVariant(
        data=data,
        content_type=_CONTENT_TYPES.get(source_format, mime_type),
        extension=_EXTENSIONS.get(source_format, "jpg"),
        width=image.width,
        height=image.height,
    )

    fmt = _output_format(source_format, image)
    for size, (width, quality) in SIZES.items():
        if image.width > width:
            result.variants[size] = _resize(image, width, fmt, quality)

    log.info(
        "image.processed",
        format=source_format,
        width=image.width,
        height=image.height,
        variants=[s.value for s in result.variants],
    )
    return result


class ImageProcessor:
    """Async facade; Pillow work runs in the threadpool."""

    async def generate_sizes(self, data: bytes, mime_type: str = "image/jpeg") -> ProcessedImage:
        return await run_in_threadpool(generate_image_sizes, data, mime_type)
