"""Pillow-backed image tool: grayscale decoding and glyph rasterization."""

from __future__ import annotations

import logging
from pathlib import Path

from PIL import Image, ImageDraw, ImageFont

logger = logging.getLogger(__name__)

# Monospace fallbacks tried when the configured font is not resolvable by name
FALLBACK_FONTS = [
    "/usr/share/fonts/truetype/dejavu/DejaVuSansMono.ttf",
    "/usr/share/fonts/truetype/liberation/LiberationMono-Regular.ttf",
    "/usr/share/fonts/TTF/DejaVuSansMono.ttf",
    "/System/Library/Fonts/Courier.dfont",
    "C:/Windows/Fonts/cour.ttf",
]

Font = ImageFont.FreeTypeFont | ImageFont.ImageFont


def load_font(font_name: str, font_size: int) -> Font:
    """Load a font by name or path, falling back to a monospace system font.

    Pillow's bundled font is the last resort, so this never fails.
    """
    for candidate in [font_name, *FALLBACK_FONTS]:
        try:
            return ImageFont.truetype(candidate, font_size)
        except OSError:
            continue

    logger.warning(f"Font '{font_name}' not found, using Pillow default font")
    return ImageFont.load_default(font_size)


def _text_origin(font: Font, offset: tuple[int, int]) -> tuple[int, int]:
    """Convert a baseline offset into the top-left origin Pillow draws from."""
    x, y = offset
    if isinstance(font, ImageFont.FreeTypeFont):
        ascent, _ = font.getmetrics()
        return x, max(0, y - ascent)
    return x, y


class PillowImageTool:
    """ImageTool implementation using Pillow."""

    def __init__(self) -> None:
        self._fonts: dict[tuple[str, int], Font] = {}

    def _font(self, font_name: str, font_size: int) -> Font:
        key = (font_name, font_size)
        if key not in self._fonts:
            self._fonts[key] = load_font(font_name, font_size)
        return self._fonts[key]

    def decode_gray(self, image: Path, width: int, height: int) -> bytes:
        try:
            with Image.open(image) as img:
                gray = img.convert("L").resize(
                    (width, height), Image.Resampling.BILINEAR
                )
                return gray.tobytes()
        except (OSError, ValueError) as e:
            logger.warning(f"Failed to decode {image}: {e}")
            return b""

    def rasterize(
        self,
        text_path: Path,
        output: Path,
        width: int,
        height: int,
        font_name: str,
        font_size: int,
        offset: tuple[int, int],
    ) -> None:
        """Draw the text grid in white on a black ``width x height`` image.

        The image is written to a temporary name and renamed into place, so
        ``output`` exists only when rasterization completed.
        """
        tmp_path = output.with_name(output.name + ".tmp")
        try:
            text = text_path.read_text()
            font = self._font(font_name, font_size)

            img = Image.new("RGB", (width, height), "black")
            draw = ImageDraw.Draw(img)
            draw.multiline_text(
                _text_origin(font, offset), text, font=font, fill="white", spacing=0
            )
            img.save(tmp_path, format="PNG")
            tmp_path.replace(output)
        except (OSError, ValueError) as e:
            logger.warning(f"Failed to rasterize {text_path.name}: {e}")
            tmp_path.unlink(missing_ok=True)
