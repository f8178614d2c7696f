import io
import os
import base64
import hashlib
import logging
from dataclasses import dataclass
from typing import Optional, Tuple
from PIL import Image, UnidentifiedImageError

from .config import settings
from .exceptions import ValidationError

logger = logging.getLogger(__name__)


@dataclass
class PreparedImage:
    data: bytes
    mime_type: str
    width: int
    height: int


def checksum(data: bytes) -> str:
    return hashlib.sha256(data).hexdigest()

def to_data_uri(data: bytes, mime_type: str) -> str:
    """Convert image bytes to a data URI for display"""
    return f"data:{mime_type};base64,{base64.b64encode(data).decode('ascii')}"

def parse_data_uri(data_uri: str) -> Tuple[bytes, str]:
    """Split a data URI (or bare base64) into bytes and MIME type"""
    if ',' in data_uri:
        header, data = data_uri.split(',', 1)
        mime_type = header.split(':')[1].split(';')[0] if ':' in header else 'image/jpeg'
    else:
        data = data_uri
        mime_type = 'image/jpeg'
    try:
        return base64.b64decode(data, validate=True), mime_type
    except ValueError as e:
        raise ValidationError("Invalid base64 image data") from e

def display_name(filename: Optional[str]) -> str:
    """Filename without its extension, as shown in the gallery"""
    if not filename:
        return "Untitled"
    name = os.path.splitext(os.path.basename(filename))[0].strip()
    return name or "Untitled"

def prepare_upload(data: bytes, content_type: Optional[str]) -> PreparedImage:
    """Validate an upload and re-encode it as progressive JPEG"""
    if not content_type or not content_type.startswith('image/'):
        raise ValidationError("File must be an image", status_code=415)
    if not data:
        raise ValidationError("No file provided")
    if len(data) > settings.MAX_FILE_SIZE:
        raise ValidationError(
            f"File too large (max {settings.MAX_FILE_SIZE // (1024 * 1024)}MB)", status_code=413
        )

    try:
        with Image.open(io.BytesIO(data)) as img:
            img.load()
            width, height = img.size
            # Convert to RGB if necessary
            if img.mode != 'RGB':
                img = img.convert('RGB')
            output = io.BytesIO()
            img.save(output, format='JPEG', quality=settings.JPEG_QUALITY, progressive=True, optimize=True)
    except (UnidentifiedImageError, OSError) as e:
        raise ValidationError("Invalid image data") from e

    return PreparedImage(data=output.getvalue(), mime_type='image/jpeg', width=width, height=height)
