"""Column-by-column merge of a product's main image and thumbnails.

Unlike variant images, which are replaced as a set, each product image slot is
overwritten only when a new, valid image arrives for it. Any slot whose input
normalizes to ``None`` keeps its stored bytes.
"""
import logging

import sqlalchemy as sa

from storefront.cache import revalidate_path
from storefront.db import db_operation, insert_row
from storefront.exceptions import NotFoundError
from storefront.models import Product, ProductImages
from storefront.services import image_service

logger = logging.getLogger(__name__)

products = Product.__table__
product_images = ProductImages.__table__

PRODUCTS_PATH = "/dashboard/products"
MAIN_IMAGE_FIELD = "main_image"
THUMBNAILS_FIELD = "thumbnails"


def product_path(product_id):
    return f"{PRODUCTS_PATH}/{product_id}"


THUMBNAIL_COLUMNS = ProductImages.THUMBNAIL_COLUMNS
IMAGE_COLUMNS = ProductImages.IMAGE_COLUMNS

# URL slot name -> column
SLOT_COLUMNS = {"main": "main_image"}
SLOT_COLUMNS.update(
    {f"thumbnail{i}": col for i, col in enumerate(THUMBNAIL_COLUMNS, start=1)}
)

# NULL parameters leave the column untouched
MERGE_IMAGES_SQL = sa.text(
    """
    UPDATE product_images SET
        main_image = COALESCE(:main_image, main_image),
        thumbnail_image1 = COALESCE(:thumbnail_image1, thumbnail_image1),
        thumbnail_image2 = COALESCE(:thumbnail_image2, thumbnail_image2),
        thumbnail_image3 = COALESCE(:thumbnail_image3, thumbnail_image3),
        thumbnail_image4 = COALESCE(:thumbnail_image4, thumbnail_image4),
        thumbnail_image5 = COALESCE(:thumbnail_image5, thumbnail_image5)
    WHERE product_id = :product_id
    """
).bindparams(*[sa.bindparam(col, type_=sa.LargeBinary) for col in IMAGE_COLUMNS])


def _getlist(source, key):
    if source is None:
        return []
    if hasattr(source, "getlist"):
        return source.getlist(key)
    value = source.get(key)
    if value is None:
        return []
    return value if isinstance(value, list) else [value]


def _first(source, key):
    values = _getlist(source, key)
    return values[0] if values else None


def _positional_thumbnails(form, files, order):
    values = _getlist(form, THUMBNAILS_FIELD)
    uploads = _getlist(files, THUMBNAILS_FIELD)
    if order is None:
        return values + uploads

    sources = {"field": iter(values), "file": iter(uploads)}
    entries = [next(sources[kind], None) for kind in order]
    # Anything the order did not account for keeps its relative position
    entries.extend(sources["field"])
    entries.extend(sources["file"])
    return entries


def collect_image_inputs(form, files=None, slots=5, order=None):
    """Pull the main image and per-slot thumbnail inputs out of a request.

    Positional ``thumbnails`` entries fill slots in the order they were
    sent. ``order`` lists the kind (``"field"`` or ``"file"``) of each
    entry as it appeared in the request body, see
    ``form_parser.multipart_order``; without it, string values come before
    uploaded files. An explicit ``thumbnail_image<N>`` field overrides the
    positional entry for slot N.
    """
    main_input = _first(files, MAIN_IMAGE_FIELD)
    if main_input is None or getattr(main_input, "filename", None) == "":
        main_input = _first(form, MAIN_IMAGE_FIELD) or main_input

    positional = _positional_thumbnails(form, files, order)
    if len(positional) > slots:
        logger.debug(
            "Ignoring %d thumbnail entries beyond %d slots",
            len(positional) - slots,
            slots,
        )
    thumbnails = positional[:slots]

    for index, column in enumerate(THUMBNAIL_COLUMNS[:slots]):
        explicit = _first(files, column) or _first(form, column)
        if explicit is None:
            continue
        while len(thumbnails) <= index:
            thumbnails.append(None)
        thumbnails[index] = explicit

    return main_input, thumbnails


def merge_slots(current, main_buffer, thumbnail_buffers):
    """Compute the six column values and whether anything changed.

    ``current`` maps column name to stored bytes (or None). A ``None`` buffer
    falls back to the stored value of its slot; missing trailing thumbnails
    are padded with stored values.
    """
    merged = {"main_image": main_buffer}
    for index, column in enumerate(THUMBNAIL_COLUMNS):
        buffer = thumbnail_buffers[index] if index < len(thumbnail_buffers) else None
        merged[column] = buffer if buffer is not None else current.get(column)

    changed = main_buffer is not None or any(
        merged[column] != current.get(column) for column in THUMBNAIL_COLUMNS
    )
    return merged, changed


def update_product_images(product_id, form, files=None, cache=None, order=None):
    """Merge newly supplied images into a product's image row.

    Returns ``{"success": True, "productId": ..., "updated": bool}`` or an
    error result (``code`` is ``invalid``, ``not_found`` or ``failed``).
    ``order`` is passed through to ``collect_image_inputs``.
    """
    if not product_id:
        return {"error": "Invalid product ID", "code": "invalid"}

    main_input, thumbnail_inputs = collect_image_inputs(
        form, files, slots=len(THUMBNAIL_COLUMNS), order=order
    )
    main_buffer = image_service.to_buffer(main_input)
    if main_buffer is None and main_input is not None:
        logger.info("Main image for product %s not updated, keeping existing", product_id)
    thumbnail_buffers = [image_service.to_buffer(value) for value in thumbnail_inputs]

    def operation(connection):
        exists = connection.execute(
            sa.select(products.c.product_id).where(products.c.product_id == product_id)
        ).scalar()
        if exists is None:
            raise NotFoundError("Product", product_id)

        current = connection.execute(
            sa.select(*[product_images.c[col] for col in IMAGE_COLUMNS]).where(
                product_images.c.product_id == product_id
            )
        ).mappings().first()
        if current is None:
            logger.info("No image row for product %s, inserting placeholder", product_id)
            insert_row(connection, product_images, product_id=product_id)
            current = {col: None for col in IMAGE_COLUMNS}
        else:
            current = dict(current)

        merged, changed = merge_slots(current, main_buffer, thumbnail_buffers)
        logger.debug(
            "Image slots for product %s: %s",
            product_id,
            {
                col: (len(merged[col]) if merged[col] is not None else "unchanged")
                for col in IMAGE_COLUMNS
            },
        )
        if not changed:
            return False

        params = dict(merged, product_id=product_id)
        connection.execute(MERGE_IMAGES_SQL, params)
        return True

    try:
        updated = db_operation(operation)
    except NotFoundError:
        return {"error": "Product not found", "code": "not_found"}
    except Exception:
        logger.exception("Error updating images for product %s", product_id)
        return {"error": "Failed to update product images", "code": "failed"}

    logger.info("Product %s images %s", product_id, "updated" if updated else "unchanged")
    revalidate_path(PRODUCTS_PATH, cache)
    revalidate_path(product_path(product_id), cache)
    return {"success": True, "productId": product_id, "updated": updated}


def get_product_images(product_id):
    """Map of image column to stored bytes, or None when the product has no image row."""

    def operation(connection):
        return connection.execute(
            sa.select(*[product_images.c[col] for col in IMAGE_COLUMNS]).where(
                product_images.c.product_id == product_id
            )
        ).mappings().first()

    row = db_operation(operation)
    if row is None:
        return None
    return {col: (bytes(row[col]) if row[col] is not None else None) for col in IMAGE_COLUMNS}


def get_image_slot(product_id, slot):
    """Bytes stored in a named slot (``main``, ``thumbnail1``..``thumbnail5``)."""
    column = SLOT_COLUMNS.get(slot)
    if column is None:
        return None
    images = get_product_images(product_id)
    if images is None:
        return None
    return images[column]
