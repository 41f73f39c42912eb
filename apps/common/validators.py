from django.conf import settings
from PIL import Image, UnidentifiedImageError

from .errors import ValidationError


def validate_max_size(file, max_bytes: int):
    size = getattr(file, "size", 0) or 0
    if size > max_bytes:
        raise ValidationError(f"Image exceeds {max_bytes // (1024 * 1024)}MB.")


def validate_mime(file, allowed: set[str]):
    mime = getattr(file, "content_type", "") or ""
    if mime not in allowed:
        raise ValidationError("File type not allowed.")


def verify_image(file):
    pos = file.tell()
    try:
        img = Image.open(file)
        fmt = (img.format or "").upper()
        img.verify()
    except (UnidentifiedImageError, OSError):
        raise ValidationError("Corrupted or invalid image.")
    finally:
        file.seek(pos)
    if fmt not in {"JPEG", "PNG", "WEBP"}:
        raise ValidationError("Invalid image content.")


def validate_upload(file):
    validate_max_size(file, getattr(settings, "MAX_UPLOAD_BYTES", 2 * 1024 * 1024))
    validate_mime(file, getattr(settings, "ALLOWED_IMAGE_MIME_TYPES", {"image/jpeg", "image/png", "image/webp"}))
    verify_image(file)
