"""Screenshot handling: decoding, base64 payloads, cropping, resizing, overlays.

All pixel work goes through Pillow. Images travel through the pipeline as
immutable ``SourceImage`` values holding PNG or JPEG bytes; other formats
are converted to PNG on load.
"""

from __future__ import annotations

import base64
import io
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Sequence, Tuple, Union

from PIL import Image, ImageDraw, UnidentifiedImageError

from .errors import InvalidArgument
from .models import BoundingBox, Detection

logger = logging.getLogger(__name__)

_PASSTHROUGH_FORMATS = {"PNG": "image/png", "JPEG": "image/jpeg"}

BOX_COLOR = (0, 255, 0, 204)
LABEL_FILL = (0, 255, 0, 178)
LABEL_TEXT = (0, 0, 0, 255)


@dataclass(frozen=True)
class SourceImage:
    """Encoded screenshot plus the metadata the gateway needs."""

    data: bytes
    media_type: str
    width: int
    height: int

    @classmethod
    def from_bytes(cls, data: bytes) -> "SourceImage":
        """Decode ``data`` and keep it as PNG/JPEG.

        Raises:
            InvalidArgument: If the bytes are not a readable image
        """
        if not data:
            raise InvalidArgument("Image payload is empty")
        try:
            with Image.open(io.BytesIO(data)) as img:
                img.load()
                fmt = img.format or ""
                width, height = img.size
                if fmt in _PASSTHROUGH_FORMATS:
                    return cls(data, _PASSTHROUGH_FORMATS[fmt], width, height)
                logger.info("Converting %s screenshot to PNG", fmt or "unknown")
                return cls(_encode_png(img), "image/png", width, height)
        except Image.DecompressionBombError as e:
            raise InvalidArgument(f"Image too large: {e}") from e
        except (UnidentifiedImageError, OSError) as e:
            raise InvalidArgument(f"Unreadable image: {e}") from e

    @classmethod
    def from_path(cls, path: Union[str, Path]) -> "SourceImage":
        with open(path, "rb") as f:
            return cls.from_bytes(f.read())

    def to_base64(self) -> str:
        return base64.b64encode(self.data).decode("ascii")

    def data_url(self) -> str:
        return f"data:{self.media_type};base64,{self.to_base64()}"

    def open(self) -> Image.Image:
        img = Image.open(io.BytesIO(self.data))
        img.load()
        return img


def _encode_png(img: Image.Image) -> bytes:
    if img.mode not in ("RGB", "RGBA", "L", "LA"):
        img = img.convert("RGBA")
    buf = io.BytesIO()
    img.save(buf, format="PNG")
    return buf.getvalue()


def clamp_box(bbox: BoundingBox, width: int, height: int) -> Tuple[int, int, int, int]:
    """Clamp an (x, y, w, h) box to the image; returns (left, top, right, bottom)."""
    x, y, w, h = bbox
    left = max(0, min(int(x), width))
    top = max(0, min(int(y), height))
    right = max(left, min(int(x + w), width))
    bottom = max(top, min(int(y + h), height))
    return left, top, right, bottom


def crop_detection(image: SourceImage, bbox: BoundingBox) -> SourceImage:
    """Cut the bounding box region out of the screenshot.

    Raises:
        ValueError: If the clamped region has no area
    """
    left, top, right, bottom = clamp_box(bbox, image.width, image.height)
    if right <= left or bottom <= top:
        raise ValueError(f"Empty crop region for bbox {bbox}")

    with image.open() as img:
        cropped = img.crop((left, top, right, bottom))
        data = _encode_png(cropped)
    return SourceImage(data, "image/png", right - left, bottom - top)


def resize_image(image: SourceImage, max_width: int, max_height: int) -> SourceImage:
    """Downscale to fit within max_width x max_height, keeping aspect ratio.

    Images already inside the bounds are returned unchanged.
    """
    if image.width <= max_width and image.height <= max_height:
        return image

    if image.width / image.height > max_width / max_height:
        new_width = max_width
        new_height = max(1, round(image.height * max_width / image.width))
    else:
        new_height = max_height
        new_width = max(1, round(image.width * max_height / image.height))

    with image.open() as img:
        resized = img.resize((new_width, new_height), Image.LANCZOS)
        data = _encode_png(resized)
    logger.info(
        "Resized screenshot %dx%d -> %dx%d",
        image.width, image.height, new_width, new_height,
    )
    return SourceImage(data, "image/png", new_width, new_height)


def visualize_detections(image: SourceImage, detections: Sequence[Detection]) -> bytes:
    """Draw numbered detection boxes over the screenshot and return PNG bytes.

    Labels read ``"<n>: <kind>"`` with n starting at 1.
    """
    with image.open() as img:
        canvas = img.convert("RGBA")
    overlay = Image.new("RGBA", canvas.size, (0, 0, 0, 0))
    draw = ImageDraw.Draw(overlay)

    for i, detection in enumerate(detections):
        left, top, right, bottom = clamp_box(
            detection.bounding_box, canvas.width, canvas.height,
        )
        if right <= left or bottom <= top:
            continue
        draw.rectangle((left, top, right, bottom), outline=BOX_COLOR, width=3)

        label = f"{i + 1}: {detection.kind}"
        text_box = draw.textbbox((0, 0), label)
        text_w = text_box[2] - text_box[0] + 10
        label_top = max(0, top - 20)
        draw.rectangle((left, label_top, left + text_w, label_top + 20), fill=LABEL_FILL)
        draw.text((left + 5, label_top + 4), label, fill=LABEL_TEXT)

    composed = Image.alpha_composite(canvas, overlay)
    buf = io.BytesIO()
    composed.save(buf, format="PNG")
    return buf.getvalue()
