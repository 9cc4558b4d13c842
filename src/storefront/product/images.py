"""Conversions from flat command fields to ``ImagePayload`` values."""

import json

from protean.exceptions import ValidationError

from storefront.product.product import ImagePayload


def image_from_command(data, mime_type):
    if not data:
        return None
    return ImagePayload(data=data, mime_type=mime_type or "")


def images_from_json(raw):
    """Decode a JSON list of ``{"data", "mime_type"}`` objects, preserving order."""
    if raw is None:
        return None
    try:
        items = json.loads(raw)
    except (json.JSONDecodeError, TypeError):
        raise ValidationError({"detail_images": ["Detail images must be valid JSON"]}) from None
    if not isinstance(items, list) or not all(isinstance(item, dict) for item in items):
        raise ValidationError({"detail_images": ["Detail images must be a list of objects"]})
    return [ImagePayload(data=item.get("data"), mime_type=item.get("mime_type")) for item in items]
