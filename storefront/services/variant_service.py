"""Create, update, read and soft-delete product variants.

Writes run as one transaction per call: the variant row, its specification
values and combinations, and its images either all commit or all roll back.
"""
import base64
import logging
from datetime import datetime, timezone

import sqlalchemy as sa

from storefront.cache import get_cache, path_key, revalidate_path
from storefront.db import db_operation, insert_row
from storefront.exceptions import NotFoundError
from storefront.models import (
    Product,
    Specification,
    Variant,
    VariantCombination,
    VariantImage,
    VariantValue,
)
from storefront.schemas import validate_variant_form
from storefront.services import image_service
from storefront.services.form_parser import parse_variant_form

logger = logging.getLogger(__name__)

products = Product.__table__
specifications = Specification.__table__
variants = Variant.__table__
variant_values = VariantValue.__table__
variant_combinations = VariantCombination.__table__
variant_images = VariantImage.__table__

FALLBACK_MIME_TYPE = "application/octet-stream"


def variants_path(product_id):
    return f"/dashboard/products/{product_id}/variants"


def _error(message, code, details=None):
    result = {"error": message, "code": code}
    if details is not None:
        result["details"] = details
    return result


# ---------------------------------------------------------------------------
# Writes
# ---------------------------------------------------------------------------

def create_variant(form, files=None, cache=None):
    """Create a variant from a submitted form.

    A ``variantId`` in the form turns this into an update of that variant.
    """
    data = parse_variant_form(form, files)
    variant, details = validate_variant_form(data)
    if details is not None:
        return _error("Invalid fields", "invalid", details)
    return upsert_variant(variant, cache=cache)


def update_variant(variant_id, form, files=None, cache=None):
    """Update ``variant_id`` from a submitted form."""
    if not variant_id:
        return _error("Invalid variant ID", "invalid")

    data = parse_variant_form(form, files)
    # The id in the URL wins over anything in the form
    data["variantId"] = variant_id

    variant, details = validate_variant_form(data)
    if details is not None:
        return _error("Invalid fields", "invalid", details)
    return upsert_variant(variant, cache=cache)


def resolve_variant_value(connection, specification_id, value):
    """Return the id of the ``(specification_id, value)`` row, inserting it if absent."""
    existing = connection.execute(
        sa.select(variant_values.c.variant_value_id).where(
            variant_values.c.specification_id == specification_id,
            variant_values.c.value == value,
        )
    ).scalar()
    if existing is not None:
        return existing
    return insert_row(
        connection,
        variant_values,
        specification_id=specification_id,
        value=value,
    )


def _read_uploads(files):
    """Read uploaded files into ``(bytes, mime_type)`` pairs."""
    uploads = []
    for f in files:
        data = bytes(image_service.read_file_bytes(f))
        image_type = (
            getattr(f, "mimetype", None)
            or image_service.mime_type_for(data)
            or FALLBACK_MIME_TYPE
        )
        uploads.append((data, image_type))
    return uploads


def _replace_images(connection, variant_id, uploads):
    connection.execute(
        sa.delete(variant_images).where(variant_images.c.variant_id == variant_id)
    )
    for data, image_type in uploads:
        insert_row(
            connection,
            variant_images,
            variant_id=variant_id,
            image_data=data,
            image_type=image_type,
        )


def upsert_variant(variant, cache=None):
    """Persist a validated ``VariantForm`` in a single transaction.

    Existing variants get their combinations fully replaced; images are
    replaced only when at least one image was supplied.
    """
    try:
        uploads = _read_uploads(variant.images)
    except Exception:
        logger.exception("Error reading variant image uploads")
        return _error("Failed to upsert variant", "failed")

    def operation(connection):
        variant_id = variant.variantId

        if variant_id:
            result = connection.execute(
                sa.update(variants)
                .where(
                    variants.c.variant_id == variant_id,
                    variants.c.deleted_at.is_(None),
                )
                .values(
                    variant_price=variant.variantPrice,
                    variant_quantity=variant.variantQuantity,
                    variant_status=variant.variantStatus,
                )
            )
            if result.rowcount == 0:
                raise NotFoundError("Variant", variant_id)
            product_id = connection.execute(
                sa.select(variants.c.product_id).where(
                    variants.c.variant_id == variant_id
                )
            ).scalar()
            connection.execute(
                sa.delete(variant_combinations).where(
                    variant_combinations.c.variant_id == variant_id
                )
            )
        else:
            product_exists = connection.execute(
                sa.select(products.c.product_id).where(
                    products.c.product_id == variant.productId
                )
            ).scalar()
            if product_exists is None:
                raise NotFoundError("Product", variant.productId)
            product_id = variant.productId
            variant_id = insert_row(
                connection,
                variants,
                product_id=variant.productId,
                variant_price=variant.variantPrice,
                variant_quantity=variant.variantQuantity,
                variant_status=variant.variantStatus,
            )

        for spec in variant.specifications:
            variant_value_id = resolve_variant_value(
                connection, spec.specificationId, spec.value
            )
            insert_row(
                connection,
                variant_combinations,
                variant_id=variant_id,
                specification_id=spec.specificationId,
                variant_value_id=variant_value_id,
            )

        if uploads:
            _replace_images(connection, variant_id, uploads)

        return variant_id, product_id

    try:
        variant_id, product_id = db_operation(operation)
    except NotFoundError as e:
        logger.warning("Variant upsert rejected: %s", e)
        return _error(f"{e.entity} not found", "not_found")
    except Exception:
        logger.exception("Error upserting variant for product %s", variant.productId)
        return _error("Failed to upsert variant", "failed")

    logger.info(
        "%s variant %d for product %d (%d specifications, %d images)",
        "Updated" if variant.variantId else "Created",
        variant_id,
        product_id,
        len(variant.specifications),
        len(uploads),
    )
    revalidate_path(variants_path(product_id), cache)
    return {"success": True, "variantId": variant_id}


def delete_variant(variant_id, cache=None):
    """Soft-delete a variant and drop its cached listing."""
    if not variant_id:
        return _error("Invalid variant ID", "invalid")

    def operation(connection):
        product_id = connection.execute(
            sa.select(variants.c.product_id).where(
                variants.c.variant_id == variant_id,
                variants.c.deleted_at.is_(None),
            )
        ).scalar()
        if product_id is None:
            raise NotFoundError("Variant", variant_id)
        connection.execute(
            sa.update(variants)
            .where(variants.c.variant_id == variant_id)
            .values(deleted_at=datetime.now(timezone.utc))
        )
        return product_id

    try:
        product_id = db_operation(operation)
    except NotFoundError:
        return _error("Variant not found", "not_found")
    except Exception:
        logger.exception("Error deleting variant %s", variant_id)
        return _error("Failed to delete variant", "failed")

    revalidate_path(variants_path(product_id), cache)
    return {"success": True, "variantId": variant_id}


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------

def _isoformat(value):
    return value.isoformat() if value else None


def _serialize(connection, rows):
    ids = [row.variant_id for row in rows]
    specs_by_variant = {vid: [] for vid in ids}
    images_by_variant = {vid: [] for vid in ids}
    if not ids:
        return []

    spec_rows = connection.execute(
        sa.select(
            variant_combinations.c.variant_id,
            variant_combinations.c.specification_id,
            specifications.c.specification_name,
            variant_combinations.c.variant_value_id,
            variant_values.c.value,
        )
        .select_from(
            variant_combinations.join(
                specifications,
                variant_combinations.c.specification_id
                == specifications.c.specification_id,
            ).join(
                variant_values,
                variant_combinations.c.variant_value_id
                == variant_values.c.variant_value_id,
            )
        )
        .where(variant_combinations.c.variant_id.in_(ids))
        .order_by(variant_combinations.c.variant_combination_id)
    )
    for row in spec_rows:
        specs_by_variant[row.variant_id].append(
            {
                "specificationId": row.specification_id,
                "specificationName": row.specification_name,
                "variantValueId": row.variant_value_id,
                "variantValue": row.value,
            }
        )

    image_rows = connection.execute(
        sa.select(variant_images)
        .where(variant_images.c.variant_id.in_(ids))
        .order_by(variant_images.c.variant_image_id)
    )
    for row in image_rows:
        images_by_variant[row.variant_id].append(
            {
                "imageId": row.variant_image_id,
                "imageType": row.image_type,
                "imageData": base64.b64encode(row.image_data).decode("ascii"),
            }
        )

    return [
        {
            "variant_id": row.variant_id,
            "product_id": row.product_id,
            "variant_price": str(row.variant_price),
            "variant_quantity": row.variant_quantity,
            "variant_status": row.variant_status,
            "created_at": _isoformat(row.created_at),
            "updated_at": _isoformat(row.updated_at),
            "specifications": specs_by_variant[row.variant_id],
            "images": images_by_variant[row.variant_id],
        }
        for row in rows
    ]


def fetch_variants_by_product_id(product_id, cache=None):
    """All live variants of a product, newest first, with specs and images."""
    if not product_id:
        raise ValueError("Invalid product ID")

    cache = get_cache(cache)
    key = path_key(variants_path(product_id), "list")
    if cache is not None:
        cached = cache.get(key)
        if cached is not None:
            return cached

    def operation(connection):
        rows = connection.execute(
            sa.select(variants)
            .where(
                variants.c.product_id == product_id,
                variants.c.deleted_at.is_(None),
            )
            .order_by(variants.c.variant_id.desc())
        ).all()
        return _serialize(connection, rows)

    result = db_operation(operation)
    if cache is not None:
        cache.set(key, result)
    return result


def fetch_variant_by_id(variant_id):
    if not variant_id:
        raise ValueError("Invalid variant ID")

    def operation(connection):
        rows = connection.execute(
            sa.select(variants).where(
                variants.c.variant_id == variant_id,
                variants.c.deleted_at.is_(None),
            )
        ).all()
        serialized = _serialize(connection, rows)
        return serialized[0] if serialized else None

    return db_operation(operation)


def get_variant_image(variant_image_id):
    """Return ``(bytes, mime_type)`` for a stored variant image, or None."""

    def operation(connection):
        return connection.execute(
            sa.select(variant_images.c.image_data, variant_images.c.image_type)
            .select_from(
                variant_images.join(
                    variants, variant_images.c.variant_id == variants.c.variant_id
                )
            )
            .where(
                variant_images.c.variant_image_id == variant_image_id,
                variants.c.deleted_at.is_(None),
            )
        ).first()

    row = db_operation(operation)
    if row is None:
        return None
    return row.image_data, row.image_type
