# workverify/image_io.py
import base64
import io
from pathlib import Path
from typing import Optional
from PIL import Image, UnidentifiedImageError

DEFAULT_MEDIA_TYPE = "image/jpeg"

def detect_media_type(data: bytes) -> Optional[str]:
    """
    Bytes (jpg/png/webp/gif/...) -> "image/<format>", or None if Pillow
    does not recognise them. Only the header is parsed, pixels are not decoded.
    """
    try:
        with Image.open(io.BytesIO(data)) as img:
            fmt = img.format
    except (UnidentifiedImageError, OSError):
        return None
    return Image.MIME.get(fmt) if fmt else None

def media_type_for(data: bytes, declared: Optional[str]) -> str:
    if declared and declared.startswith("image/") and declared != "image/*":
        return declared
    return detect_media_type(data) or DEFAULT_MEDIA_TYPE

def to_data_url(data: bytes, media_type: str) -> str:
    b64 = base64.b64encode(data).decode("ascii")
    return f"data:{media_type};base64,{b64}"

def encode_image_file(path: Path, declared: Optional[str] = None) -> str:
    """Read a persisted upload back and inline it as a base64 data URL."""
    data = Path(path).read_bytes()
    return to_data_url(data, media_type_for(data, declared))
