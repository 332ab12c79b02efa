import logging

import sqlalchemy as sa

from storefront.cache import get_cache, path_key
from storefront.db import db_operation
from storefront.models import CategorySpecification, Product, Specification

logger = logging.getLogger(__name__)

products = Product.__table__
specifications = Specification.__table__
category_specifications = CategorySpecification.__table__


def specifications_path(product_id):
    return f"/dashboard/products/{product_id}/specifications"


def get_specifications_for_product(product_id, cache=None):
    """Specifications that apply to the product's category.

    Returns an empty list for a missing id or when the lookup fails.
    """
    if not product_id:
        logger.warning("Invalid product ID: %r", product_id)
        return []

    cache = get_cache(cache)
    key = path_key(specifications_path(product_id))
    if cache is not None:
        cached = cache.get(key)
        if cached is not None:
            return cached

    def operation(connection):
        rows = connection.execute(
            sa.select(
                specifications.c.specification_id,
                specifications.c.specification_name,
            )
            .select_from(
                specifications.join(
                    category_specifications,
                    specifications.c.specification_id
                    == category_specifications.c.specification_id,
                ).join(
                    products,
                    category_specifications.c.category_id == products.c.category_id,
                )
            )
            .where(products.c.product_id == product_id)
            .order_by(specifications.c.specification_name)
        )
        return [
            {
                "specification_id": row.specification_id,
                "specification_name": row.specification_name,
            }
            for row in rows
        ]

    try:
        result = db_operation(operation)
    except Exception:
        logger.exception("Failed to fetch specifications for product %s", product_id)
        return []

    if cache is not None:
        cache.set(key, result)
    return result
