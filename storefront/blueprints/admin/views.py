"""Dashboard endpoints for variants, product images and specifications."""
from flask import abort, request
from storefront.blueprints.admin import admin_bp
from storefront.services import (
    product_image_service,
    specification_service,
    variant_service,
)
from storefront.services.form_parser import multipart_order, parse_variant_form

STATUS_CODES = {"invalid": 400, "not_found": 404, "failed": 500}


def _respond(result, success_status=200):
    if result.get("success"):
        return result, success_status
    return result, STATUS_CODES.get(result.get("code"), 500)


@admin_bp.route("/products/<int:product_id>/variants", methods=["GET"])
def list_variants(product_id):
    return {"variants": variant_service.fetch_variants_by_product_id(product_id)}


@admin_bp.route("/products/<int:product_id>/variants", methods=["POST"])
def create_variant(product_id):
    """Create a variant; the product id in the URL wins over the form."""
    form = request.form.copy()
    form["productId"] = str(product_id)
    result = variant_service.create_variant(form, request.files)
    updated = "variantId" in parse_variant_form(form)
    return _respond(result, 200 if updated else 201)


@admin_bp.route("/variants/<int:variant_id>", methods=["GET"])
def get_variant(variant_id):
    variant = variant_service.fetch_variant_by_id(variant_id)
    if variant is None:
        abort(404)
    return variant


@admin_bp.route("/variants/<int:variant_id>", methods=["POST"])
def update_variant(variant_id):
    result = variant_service.update_variant(variant_id, request.form, request.files)
    return _respond(result)


@admin_bp.route("/variants/<int:variant_id>", methods=["DELETE"])
def delete_variant(variant_id):
    return _respond(variant_service.delete_variant(variant_id))


def _thumbnail_order():
    # Must run before request.form is touched so the body is still readable
    if request.mimetype != "multipart/form-data":
        return None
    return multipart_order(
        request.get_data(cache=True),
        request.mimetype_params.get("boundary"),
        product_image_service.THUMBNAILS_FIELD,
    )


@admin_bp.route("/products/<int:product_id>/images", methods=["POST"])
def update_product_images(product_id):
    order = _thumbnail_order()
    result = product_image_service.update_product_images(
        product_id, request.form, request.files, order=order
    )
    return _respond(result)


@admin_bp.route("/products/<int:product_id>/specifications", methods=["GET"])
def product_specifications(product_id):
    return {
        "specifications": specification_service.get_specifications_for_product(
            product_id
        )
    }
