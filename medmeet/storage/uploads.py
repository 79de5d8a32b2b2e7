"""Local disk storage for profile photos."""

import logging
import os
import secrets
import time

from fastapi import UploadFile

from medmeet.core import config, errors

logger = logging.getLogger(__name__)

ALLOWED_IMAGE_TYPES = {
    'image/jpeg': '.jpg',
    'image/png': '.png',
    'image/webp': '.webp',
    'image/gif': '.gif',
}


def build_stored_filename(content_type: str) -> str:
    extension = ALLOWED_IMAGE_TYPES[content_type]
    unique_suffix = f'{int(time.time() * 1000)}-{secrets.randbelow(10**9)}'
    return f'{unique_suffix}{extension}'
def save_photo(upload: UploadFile) -> tuple[str, str]:
    """Write an uploaded image under UPLOAD_DIR.

    Returns the path on disk and the public URL path it is served under.
    """
    content_type = (upload.content_type or '').lower()
    if content_type not in ALLOWED_IMAGE_TYPES:
        raise errors.ValidationError('Only JPEG, PNG, WebP or GIF images can be uploaded.')

    data = upload.file.read(config.MAX_UPLOAD_BYTES + 1)
    if not data:
        raise errors.ValidationError('Uploaded file is empty.')
    if len(data) > config.MAX_UPLOAD_BYTES:
        raise errors.ValidationError(f'Uploaded file must be {config.MAX_UPLOAD_BYTES} bytes or smaller.')

    filename = build_stored_filename(content_type)
    os.makedirs(config.UPLOAD_DIR, exist_ok=True)
    stored_path = os.path.join(config.UPLOAD_DIR, filename)
    with open(stored_path, 'wb') as destination:
        destination.write(data)

    logger.info('Stored upload %s (%d bytes)', filename, len(data))
    return stored_path, f'{config.UPLOAD_URL_PREFIX}/{filename}'


def discard_photo(stored_path: str) -> None:
    try:
        os.remove(stored_path)
    except FileNotFoundError:
        return
    logger.info('Discarded upload %s', stored_path)
