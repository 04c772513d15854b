import base64
import binascii
import re
import time

from app.core.errors import ValidationError

_DATA_URL = re.compile(r"^data:(?P<mime>[\w.+-]+/[\w.+-]+);base64,(?P<data>.*)$", re.DOTALL)


class ImagePayload:
    def __init__(self, content: bytes, content_type: str, encoded: str):
        self.content = content
        self.content_type = content_type
        self.encoded = encoded

    @property
    def data_url(self) -> str:
        return f"data:{self.content_type};base64,{self.encoded}"


def decode_image_payload(value: str, *, field: str = "imageFile") -> ImagePayload:
    """Decode a base64 image, with or without a `data:<mime>;base64,` prefix."""
    text = value.strip()
    content_type = "image/jpeg"
    match = _DATA_URL.match(text)
    if match:
        content_type = match.group("mime")
        text = match.group("data")
    text = "".join(text.split())
    try:
        content = base64.b64decode(text, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise ValidationError(f"{field} must be base64-encoded") from exc
    if not content:
        raise ValidationError(f"{field} is empty")
    return ImagePayload(content=content, content_type=content_type, encoded=text)


def upload_file_name(user_id: str, suffix: str) -> str:
    return f"{int(time.time() * 1000)}_{user_id}_{suffix}.jpg"
