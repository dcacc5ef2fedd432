"""Multipart upload parsing for avatar images.

Rejections raise UploadRejectedError, which the application turns into a
400 `{"error": message}` response before the route handler runs.
"""

import re
from typing import Optional

from fastapi import File, UploadFile

from domain.model.errors import UploadRejectedError

MAX_AVATAR_BYTES = 1_000_000
AVATAR_FILENAME_PATTERN = re.compile(r'\.(jpg|jpeg|png)$')


async def read_avatar_upload(avatar: Optional[UploadFile] = File(None)) -> bytes:
    """Return the bytes of the `avatar` form field.

    Raises:
        UploadRejectedError: missing file, wrong extension, or larger than MAX_AVATAR_BYTES
    """
    if avatar is None or not avatar.filename or not AVATAR_FILENAME_PATTERN.search(avatar.filename):
        raise UploadRejectedError("Please upload an image")

    data = await avatar.read(MAX_AVATAR_BYTES + 1)
    if len(data) > MAX_AVATAR_BYTES:
        raise UploadRejectedError("File too large")
    return data
