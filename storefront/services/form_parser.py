"""Parse multipart variant forms into plain records.

Parsing is deliberately loose: every key is always present, numbers that are
missing or malformed become NaN, and correctness is left to the schema in
``storefront.schemas``.
"""
import json
import logging
import math

from werkzeug.sansio.multipart import (
    Epilogue,
    Field,
    File,
    MultipartDecoder,
    NeedData,
)

logger = logging.getLogger(__name__)

IMAGES_FIELD = "images[]"


def _getlist(source, key):
    if source is None:
        return []
    if hasattr(source, "getlist"):
        return source.getlist(key)
    value = source.get(key)
    if value is None:
        return []
    return value if isinstance(value, list) else [value]


def to_number(raw):
    """Loose numeric conversion: int when integral, float otherwise, NaN on failure."""
    if raw is None or isinstance(raw, bool):
        return math.nan
    if isinstance(raw, (int, float)):
        return raw
    text = str(raw).strip()
    if not text:
        return math.nan
    try:
        return int(text)
    except ValueError:
        pass
    try:
        return float(text)
    except ValueError:
        return math.nan


def _is_set(number):
    return not (isinstance(number, float) and math.isnan(number)) and number != 0


def parse_specifications(raw):
    if not raw or not isinstance(raw, str):
        return []
    try:
        specifications = json.loads(raw)
    except json.JSONDecodeError as e:
        logger.warning("Error parsing specifications JSON: %s", e)
        return []
    if not isinstance(specifications, list):
        logger.warning(
            "Specifications JSON is a %s, expected a list",
            type(specifications).__name__,
        )
        return []
    return specifications


def parse_variant_form(form, files=None):
    """Extract variant fields from a form payload.

    ``form`` is a Werkzeug ``MultiDict`` (``request.form``) or a plain dict;
    uploaded files are looked up in ``files`` (``request.files``) under
    ``images[]``. ``variantId`` is only included when a non-zero number was
    sent.
    """
    data = {
        "productId": to_number(form.get("productId")),
        "variantPrice": to_number(form.get("variantPrice")),
        "variantQuantity": to_number(form.get("variantQuantity")),
        "variantStatus": form.get("variantStatus"),
        "specifications": parse_specifications(form.get("specifications")),
        "images": [
            f for f in _getlist(files, IMAGES_FIELD)
            if f is not None and getattr(f, "filename", None) != ""
        ],
    }

    variant_id = to_number(form.get("variantId"))
    if _is_set(variant_id):
        data["variantId"] = variant_id

    return data


def multipart_order(body, boundary, name):
    """Kinds of the ``name`` parts in a multipart body, in the order sent.

    Werkzeug splits a multipart request into ``request.form`` (plain values)
    and ``request.files`` (uploads), which loses how the two interleave.
    Returns a list of ``"field"``/``"file"`` entries, or None when the body
    cannot be decoded.
    """
    if not body or not boundary:
        return None
    decoder = MultipartDecoder(boundary.encode("ascii"))
    decoder.receive_data(body)
    decoder.receive_data(None)

    kinds = []
    try:
        event = decoder.next_event()
        while not isinstance(event, (Epilogue, NeedData)):
            if isinstance(event, (Field, File)) and event.name == name:
                kinds.append("file" if isinstance(event, File) else "field")
            event = decoder.next_event()
    except ValueError as e:
        logger.warning("Could not decode multipart body for %r ordering: %s", name, e)
        return None
    return kinds
