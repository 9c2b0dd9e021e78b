"""
ThumbnailGenerator - Image resizing, thumbnail encoding and preview hashing.
"""

import logging
from typing import Optional, Tuple

import blurhash
from PIL import Image, ImageOps

from .errors import DerivativeFailure


class ThumbnailGenerator:
    """
    Generates resized JPEG derivatives from images using Pillow.
    """

    HASH_SOURCE_SIZE = 32
    HASH_COMPONENTS = 4

    def __init__(
        self,
        size: int = 900,
        quality: int = 90,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize thumbnail generator.

        Args:
            size: Maximum dimension for thumbnails (default: 900)
            quality: JPEG quality for output (default: 90)
            logger: Optional logger instance
        """
        self.size = size
        self.quality = quality
        self.logger = logger or logging.getLogger(__name__)

    def generate(
        self,
        input_path: str,
        output_path: str,
        max_dimension: Optional[int] = None,
        with_hash: bool = True
    ) -> Tuple[int, int, Optional[str]]:
        """
        Write a resized JPEG of an image.

        The image is rotated according to its EXIF orientation, fitted inside
        a max_dimension square and never enlarged.

        Args:
            input_path: Source image
            output_path: Destination JPEG
            max_dimension: Bounding box size (defaults to self.size)
            with_hash: Also compute the BlurHash of the output

        Returns:
            Tuple of (source_width, source_height, blurhash or None)
        """
        box = max_dimension or self.size
        try:
            with Image.open(input_path) as opened:
                img = ImageOps.exif_transpose(opened)
                width, height = img.size
                img = self._convert_color_mode(img)
                img.thumbnail((box, box), Image.Resampling.LANCZOS)
                img.save(output_path, format='JPEG', quality=self.quality, optimize=True)
                preview_hash = self.blur_hash(img) if with_hash else None
        except (OSError, ValueError, Image.DecompressionBombError) as e:
            self.logger.error(f"Error generating thumbnail from {input_path}: {e}")
            raise DerivativeFailure(f"Failed to create image derivative: {e}") from e

        return width, height, preview_hash

    def blur_hash(self, img: Image.Image) -> str:
        """Encode a compact BlurHash preview of an image."""
        small = img.convert('RGB')
        small.thumbnail((self.HASH_SOURCE_SIZE, self.HASH_SOURCE_SIZE))
        w, h = small.size
        data = small.tobytes()
        stride = w * 3
        rows = [
            [tuple(data[offset:offset + 3]) for offset in range(y * stride, (y + 1) * stride, 3)]
            for y in range(h)
        ]
        return blurhash.encode(
            rows,
            components_x=self.HASH_COMPONENTS,
            components_y=self.HASH_COMPONENTS,
        )

    def _convert_color_mode(self, img: Image.Image) -> Image.Image:
        """Flatten transparency onto white; JPEG has no alpha channel."""
        if img.mode in ('RGBA', 'LA'):
            background = Image.new('RGB', img.size, (255, 255, 255))
            if img.mode == 'LA':
                img = img.convert('RGBA')
            background.paste(img, mask=img.split()[-1])
            return background
        elif img.mode == 'P':
            img = img.convert('RGBA')
            background = Image.new('RGB', img.size, (255, 255, 255))
            background.paste(img, mask=img.split()[-1])
            return background
        elif img.mode != 'RGB':
            return img.convert('RGB')
        return img
