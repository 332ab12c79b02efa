"""Image bytes stored in the database, served to the storefront."""
from flask import Response, abort
from storefront.blueprints.public import public_bp
from storefront.services import image_service, product_image_service, variant_service

IMAGE_MAX_AGE = 3600


def _image_response(data, mimetype):
    resp = Response(data, mimetype=mimetype)
    resp.headers["Cache-Control"] = f"public, max-age={IMAGE_MAX_AGE}"
    return resp


@public_bp.route("/img/variant/<int:variant_image_id>")
def variant_image(variant_image_id):
    image = variant_service.get_variant_image(variant_image_id)
    if image is None:
        abort(404)
    data, image_type = image
    return _image_response(data, image_type)


@public_bp.route("/img/product/<int:product_id>/<slot>")
def product_image(product_id, slot):
    if slot not in product_image_service.SLOT_COLUMNS:
        abort(404)
    data = product_image_service.get_image_slot(product_id, slot)
    if not data:
        abort(404)
    mimetype = image_service.mime_type_for(data) or "application/octet-stream"
    return _image_response(data, mimetype)
