"""Normalization of uploaded image inputs into validated bytes.

A form value for an image slot can be missing, raw bytes, a ``data:`` URI
string or an uploaded file. ``to_buffer`` turns any of these into image bytes
or ``None``, where ``None`` always means "leave the stored image alone".
"""
import base64
import binascii
import io
import logging
import re

from flask import current_app, has_app_context
from PIL import Image as PILImage

logger = logging.getLogger(__name__)

DEFAULT_MIN_BYTES = 100
DEFAULT_MAX_BYTES = 10 * 1024 * 1024  # 10 MB

DATA_URI_RE = re.compile(r"^data:image/\w+;base64,(.+)$", re.DOTALL)


class ImageInput:
    kind = None

    def __repr__(self):
        return f"<{self.__class__.__name__}>"


class Absent(ImageInput):
    kind = "absent"


class DataUri(ImageInput):
    kind = "data_uri"

    def __init__(self, text):
        self.text = text


class RawBytes(ImageInput):
    kind = "raw_bytes"

    def __init__(self, data):
        self.data = bytes(data)

    def __repr__(self):
        return f"<RawBytes {len(self.data)} bytes>"


class FileHandle(ImageInput):
    kind = "file"

    def __init__(self, stream):
        self.stream = stream

    @property
    def mimetype(self):
        return getattr(self.stream, "mimetype", None) or None

    def read(self):
        return read_file_bytes(self.stream)


def classify(value):
    """Wrap a raw form value in its ``ImageInput`` variant.

    Raises ``TypeError`` for values that cannot carry an image.
    """
    if isinstance(value, ImageInput):
        return value
    if value is None:
        return Absent()
    if isinstance(value, (bytes, bytearray, memoryview)):
        return RawBytes(value)
    if isinstance(value, str):
        return DataUri(value) if value else Absent()
    if hasattr(value, "read"):
        # Werkzeug sends an empty FileStorage for an untouched file input
        if getattr(value, "filename", None) == "":
            return Absent()
        return FileHandle(value)
    raise TypeError(f"unsupported image input: {type(value).__name__}")


def read_file_bytes(file_obj):
    """Read an uploaded file from the start, fully into memory."""
    if hasattr(file_obj, "seek"):
        file_obj.seek(0)
    return file_obj.read()


def _limit(key, default):
    if has_app_context():
        return current_app.config.get(key, default)
    return default


def _decode_data_uri(text):
    if not text.startswith("data:image/"):
        logger.debug("Image string is not a data URI, treating as unchanged")
        return None
    match = DATA_URI_RE.match(text)
    if not match:
        logger.warning("Data URI does not match expected format: %.50s", text)
        return None
    try:
        return base64.b64decode(match.group(1))
    except (binascii.Error, ValueError):
        logger.warning("Data URI payload is not valid base64")
        return None


def probe_format(data):
    """Return the Pillow format name of ``data`` (e.g. "PNG"), or None."""
    try:
        img = PILImage.open(io.BytesIO(data))
        fmt = img.format
        img.verify()
    except Exception:
        return None
    return fmt


def mime_type_for(data):
    fmt = probe_format(data)
    if not fmt:
        return None
    return PILImage.MIME.get(fmt)


def _validated(data):
    min_bytes = _limit("IMAGE_MIN_BYTES", DEFAULT_MIN_BYTES)
    max_bytes = _limit("IMAGE_MAX_BYTES", DEFAULT_MAX_BYTES)

    if len(data) < min_bytes:
        logger.warning("Image rejected: too small (%d bytes)", len(data))
        return None
    if len(data) > max_bytes:
        logger.warning("Image rejected: too large (%d bytes)", len(data))
        return None
    if not probe_format(data):
        logger.warning("Image rejected: unrecognized format")
        return None
    return data


def to_buffer(value):
    """Normalize an image input into validated bytes.

    Returns None when nothing was supplied, when the value is not a new
    image (e.g. an unchanged pass-through string) or when the supplied data
    is not a usable image. Never raises.
    """
    try:
        image = classify(value)
    except TypeError:
        logger.warning("Image rejected: unsupported input type %s", type(value).__name__)
        return None

    try:
        if isinstance(image, Absent):
            logger.debug("No image supplied")
            return None
        elif isinstance(image, RawBytes):
            data = image.data
        elif isinstance(image, DataUri):
            data = _decode_data_uri(image.text)
            if data is None:
                return None
        elif isinstance(image, FileHandle):
            data = bytes(image.read())
        else:
            raise TypeError(f"unhandled image input {image!r}")

        logger.debug("Image buffer created, length %d", len(data))
        return _validated(data)
    except Exception:
        logger.exception("Error converting image to buffer")
        return None
