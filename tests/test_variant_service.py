"""Tests for the variant upsert workflow and variant reads."""
import json

import sqlalchemy as sa
from werkzeug.datastructures import MultiDict

from storefront.cache import path_key
from storefront.models import Variant, VariantCombination, VariantImage, VariantValue
from storefront.services import variant_service


def _form(product_id=42, specs=(), **fields):
    data = {
        "productId": str(product_id),
        "variantPrice": "599",
        "variantQuantity": "10",
        "variantStatus": "active",
        "specifications": json.dumps(
            [{"specificationId": s, "value": v} for s, v in specs]
        ),
    }
    data.update(fields)
    return MultiDict(data)


def _files(*uploads):
    return MultiDict([("images[]", u) for u in uploads])


def _count(db, model, **filters):
    return db.session.query(model).filter_by(**filters).count()


def _combinations(db, variant_id):
    rows = db.session.execute(
        sa.select(
            VariantCombination.specification_id, VariantCombination.variant_value_id
        ).where(VariantCombination.variant_id == variant_id)
    ).all()
    return {tuple(r) for r in rows}


def _value_id(db, specification_id, value):
    return db.session.execute(
        sa.select(VariantValue.variant_value_id).where(
            VariantValue.specification_id == specification_id,
            VariantValue.value == value,
        )
    ).scalar()


def test_create_variant_without_images(db, catalog, cache):
    ram = catalog["ram_id"]

    result = variant_service.create_variant(_form(specs=[(ram, "16GB")]), cache=cache)

    assert result["success"] is True
    variant_id = result["variantId"]
    variant = db.session.get(Variant, variant_id)
    assert variant.product_id == 42
    assert str(variant.variant_price) == "599.00"
    assert variant.variant_quantity == 10
    assert variant.variant_status == "active"
    assert _count(db, VariantValue, specification_id=ram, value="16GB") == 1
    assert _combinations(db, variant_id) == {(ram, _value_id(db, ram, "16GB"))}
    assert _count(db, VariantImage, variant_id=variant_id) == 0


def test_update_replaces_combinations_and_images(db, catalog, cache, png, upload):
    ram = catalog["ram_id"]
    created = variant_service.create_variant(
        _form(specs=[(ram, "16GB")]),
        _files(upload(png(1)), upload(png(2)), upload(png(3))),
        cache=cache,
    )
    variant_id = created["variantId"]
    assert _count(db, VariantImage, variant_id=variant_id) == 3

    new_image = png(9)
    result = variant_service.update_variant(
        variant_id,
        _form(specs=[(ram, "32GB")], variantPrice="649.50", variantStatus="inactive"),
        _files(upload(new_image, "new.png")),
        cache=cache,
    )

    assert result == {"success": True, "variantId": variant_id}
    assert _combinations(db, variant_id) == {(ram, _value_id(db, ram, "32GB"))}
    images = db.session.query(VariantImage).filter_by(variant_id=variant_id).all()
    assert len(images) == 1
    assert images[0].image_data == new_image
    assert images[0].image_type == "image/png"
    variant = db.session.get(Variant, variant_id)
    assert str(variant.variant_price) == "649.50"
    assert variant.variant_status == "inactive"
    # The superseded value row stays available for other variants
    assert _value_id(db, ram, "16GB") is not None


def test_identical_specs_are_still_fully_replaced(db, catalog, cache, sql_log):
    ram, storage = catalog["ram_id"], catalog["storage_id"]
    created = variant_service.create_variant(
        _form(specs=[(ram, "16GB"), (storage, "512GB")]), cache=cache
    )
    variant_id = created["variantId"]
    sql_log.clear()

    variant_service.update_variant(variant_id, _form(specs=[(ram, "16GB")]), cache=cache)

    statements = [s.lstrip().upper() for s in sql_log]
    deletes = [
        i for i, s in enumerate(statements)
        if s.startswith("DELETE FROM VARIANT_COMBINATIONS")
    ]
    inserts = [
        i for i, s in enumerate(statements)
        if s.startswith("INSERT INTO VARIANT_COMBINATIONS")
    ]
    assert len(deletes) == 1
    assert len(inserts) == 1
    assert deletes[0] < inserts[0]

    rows = db.session.query(VariantCombination).filter_by(variant_id=variant_id).all()
    assert len(rows) == 1
    assert (rows[0].specification_id, rows[0].variant_value_id) == (
        ram,
        _value_id(db, ram, "16GB"),
    )


def test_update_without_images_keeps_stored_images(db, catalog, cache, png, upload):
    created = variant_service.create_variant(
        _form(), _files(upload(png(1)), upload(png(2))), cache=cache
    )
    variant_id = created["variantId"]

    variant_service.update_variant(variant_id, _form(variantQuantity="3"), cache=cache)

    assert _count(db, VariantImage, variant_id=variant_id) == 2


def test_variant_values_are_deduplicated(db, catalog, cache):
    ram = catalog["ram_id"]

    first = variant_service.create_variant(_form(specs=[(ram, "16GB")]), cache=cache)
    second = variant_service.create_variant(_form(specs=[(ram, "16GB")]), cache=cache)

    assert first["variantId"] != second["variantId"]
    assert _count(db, VariantValue, specification_id=ram, value="16GB") == 1
    value_id = _value_id(db, ram, "16GB")
    assert _combinations(db, first["variantId"]) == {(ram, value_id)}
    assert _combinations(db, second["variantId"]) == {(ram, value_id)}


def test_resolve_variant_value_reuses_existing_row(db, catalog):
    from storefront.db import transaction

    ram = catalog["ram_id"]
    with transaction() as connection:
        first = variant_service.resolve_variant_value(connection, ram, "8GB")
        second = variant_service.resolve_variant_value(connection, ram, "8GB")
        other = variant_service.resolve_variant_value(connection, ram, "12GB")

    assert first == second
    assert other != first
    assert _count(db, VariantValue) == 2


def test_failure_mid_transaction_rolls_back_everything(
    db, catalog, cache, monkeypatch, png, upload
):
    ram, storage = catalog["ram_id"], catalog["storage_id"]
    real_resolve = variant_service.resolve_variant_value
    calls = []

    def flaky_resolve(connection, specification_id, value):
        calls.append(value)
        if len(calls) == 2:
            raise RuntimeError("connection lost")
        return real_resolve(connection, specification_id, value)

    monkeypatch.setattr(variant_service, "resolve_variant_value", flaky_resolve)

    result = variant_service.create_variant(
        _form(specs=[(ram, "16GB"), (storage, "1TB")]),
        _files(upload(png(1))),
        cache=cache,
    )

    assert result == {"error": "Failed to upsert variant", "code": "failed"}
    assert _count(db, Variant) == 0
    assert _count(db, VariantValue) == 0
    assert _count(db, VariantCombination) == 0
    assert _count(db, VariantImage) == 0


def test_failed_update_leaves_previous_state(db, catalog, cache, monkeypatch):
    ram = catalog["ram_id"]
    created = variant_service.create_variant(_form(specs=[(ram, "16GB")]), cache=cache)
    variant_id = created["variantId"]
    before = _combinations(db, variant_id)

    def broken_resolve(connection, specification_id, value):
        raise RuntimeError("boom")

    monkeypatch.setattr(variant_service, "resolve_variant_value", broken_resolve)
    result = variant_service.update_variant(
        variant_id, _form(specs=[(ram, "64GB")], variantQuantity="99"), cache=cache
    )

    assert result["code"] == "failed"
    db.session.expire_all()
    assert _combinations(db, variant_id) == before
    assert db.session.get(Variant, variant_id).variant_quantity == 10


def test_invalid_form_is_rejected_before_any_sql(db, catalog, cache, sql_log):
    result = variant_service.create_variant(
        _form(variantStatus="archived", variantQuantity="-2"), cache=cache
    )

    assert result["error"] == "Invalid fields"
    assert result["code"] == "invalid"
    fields = {err["loc"][0] for err in result["details"]}
    assert fields == {"variantStatus", "variantQuantity"}
    assert sql_log == []


def test_update_requires_variant_id(db, cache):
    assert variant_service.update_variant(0, _form(), cache=cache) == {
        "error": "Invalid variant ID",
        "code": "invalid",
    }


def test_update_unknown_variant_is_not_found(db, catalog, cache):
    result = variant_service.update_variant(999, _form(), cache=cache)
    assert result == {"error": "Variant not found", "code": "not_found"}


def test_create_for_unknown_product_is_not_found(db, catalog, cache):
    result = variant_service.create_variant(_form(product_id=7), cache=cache)
    assert result == {"error": "Product not found", "code": "not_found"}
    assert _count(db, Variant) == 0


def test_form_variant_id_routes_create_to_update(db, catalog, cache):
    created = variant_service.create_variant(_form(), cache=cache)
    variant_id = created["variantId"]

    result = variant_service.create_variant(
        _form(variantId=str(variant_id), variantQuantity="4"), cache=cache
    )

    assert result["variantId"] == variant_id
    assert _count(db, Variant) == 1
    assert db.session.get(Variant, variant_id).variant_quantity == 4


def test_fetch_variants_by_product_id(db, catalog, cache, png, upload):
    ram = catalog["ram_id"]
    older = variant_service.create_variant(_form(specs=[(ram, "8GB")]), cache=cache)
    newer = variant_service.create_variant(
        _form(specs=[(ram, "16GB")]), _files(upload(png(5))), cache=cache
    )

    variants = variant_service.fetch_variants_by_product_id(42, cache=cache)

    assert [v["variant_id"] for v in variants] == [newer["variantId"], older["variantId"]]
    first = variants[0]
    assert first["variant_price"] == "599.00"
    assert first["specifications"] == [
        {
            "specificationId": ram,
            "specificationName": "RAM",
            "variantValueId": _value_id(db, ram, "16GB"),
            "variantValue": "16GB",
        }
    ]
    assert len(first["images"]) == 1
    assert first["images"][0]["imageType"] == "image/png"
    assert variants[1]["images"] == []


def test_variant_listing_is_cached_until_revalidated(db, catalog, cache):
    variant_service.create_variant(_form(), cache=cache)
    key = path_key(variant_service.variants_path(42), "list")

    listed = variant_service.fetch_variants_by_product_id(42, cache=cache)
    assert cache.get(key) == listed

    variant_service.create_variant(_form(), cache=cache)
    assert cache.get(key) is None
    assert len(variant_service.fetch_variants_by_product_id(42, cache=cache)) == 2


def test_fetch_variant_by_id(db, catalog, cache):
    created = variant_service.create_variant(_form(), cache=cache)

    variant = variant_service.fetch_variant_by_id(created["variantId"])

    assert variant["product_id"] == 42
    assert variant["specifications"] == []
    assert variant_service.fetch_variant_by_id(12345) is None


def test_delete_variant_is_soft(db, catalog, cache):
    created = variant_service.create_variant(_form(), cache=cache)
    variant_id = created["variantId"]

    assert variant_service.delete_variant(variant_id, cache=cache)["success"] is True
    assert variant_service.fetch_variant_by_id(variant_id) is None
    assert variant_service.fetch_variants_by_product_id(42, cache=cache) == []
    assert _count(db, Variant) == 1
    assert variant_service.delete_variant(variant_id, cache=cache)["code"] == "not_found"


def test_update_revalidates_the_stored_products_listing(db, catalog, cache):
    created = variant_service.create_variant(_form(), cache=cache)
    listing = path_key(variant_service.variants_path(42), "list")
    variant_service.fetch_variants_by_product_id(42, cache=cache)
    assert cache.get(listing) is not None

    result = variant_service.update_variant(
        created["variantId"], _form(product_id=7, variantQuantity="1"), cache=cache
    )

    assert result["success"] is True
    assert cache.get(listing) is None
    assert db.session.get(Variant, created["variantId"]).product_id == 42
