from typing import Protocol


class ImageProcessor(Protocol):
    """Protocol for turning uploaded image bytes into a stored avatar."""

    def to_avatar(self, data: bytes) -> bytes:
        """Decode `data`, resize to the avatar size, and return PNG bytes.

        Raises UploadRejectedError if the data is not a decodable image.
        """
        ...
