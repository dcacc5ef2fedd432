"""Pillow implementation of ImageProcessor."""

import io
import logging

from PIL import Image, UnidentifiedImageError

from domain.model.errors import UploadRejectedError

logger = logging.getLogger(__name__)

AVATAR_SIZE = (250, 250)
PNG_MODES = ('1', 'L', 'LA', 'I', 'I;16', 'P', 'RGB', 'RGBA')


class PillowImageProcessor:
    def __init__(self, size: tuple[int, int] = AVATAR_SIZE):
        self.size = size

    def to_avatar(self, data: bytes) -> bytes:
        """Resize to exactly `self.size` (aspect ratio not kept) and encode as PNG."""
        try:
            with Image.open(io.BytesIO(data)) as img:
                img.load()
                resized = img.resize(self.size)
        except (UnidentifiedImageError, Image.DecompressionBombError, OSError) as e:
            logger.warning("Failed to decode uploaded image", extra={"error": str(e)})
            raise UploadRejectedError("Please upload an image") from e

        # Modes PNG cannot store (CMYK, YCbCr, ...)
        if resized.mode not in PNG_MODES:
            resized = resized.convert('RGB')

        buffer = io.BytesIO()
        resized.save(buffer, format='PNG')
        return buffer.getvalue()
