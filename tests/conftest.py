import io
from decimal import Decimal

import pytest
from PIL import Image as PILImage
from sqlalchemy import event
from werkzeug.datastructures import FileStorage

from storefront import create_app, extensions
from storefront.cache import MemoryCache
from storefront.extensions import db as _db
from storefront.models import Category, Product, Specification


@pytest.fixture(scope="session")
def app():
    """Create application for testing."""
    app = create_app("testing")
    with app.app_context():
        yield app


@pytest.fixture
def db(app):
    """Fresh schema per test; the workflows commit on their own connections."""
    _db.create_all()
    extensions.cache = MemoryCache(default_ttl=app.config["CACHE_DEFAULT_TTL"])
    yield _db
    _db.session.remove()
    _db.drop_all()


@pytest.fixture
def client(app, db):
    return app.test_client()


class FakeClock:
    def __init__(self, now=1000.0):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def cache(clock):
    return MemoryCache(default_ttl=60, clock=clock)


@pytest.fixture
def catalog(db):
    """A category with RAM/Storage specifications and product 42."""
    category = Category(category_name="Laptops")
    ram = Specification(specification_name="RAM")
    storage = Specification(specification_name="Storage")
    category.specifications = [ram, storage]
    db.session.add(category)
    db.session.flush()

    product = Product(
        product_id=42,
        product_name="Aero 14",
        product_sku="AERO-14",
        product_price=Decimal("599.00"),
        product_quantity=10,
        product_status="approved",
        category_id=category.category_id,
    )
    db.session.add(product)
    db.session.commit()
    return {
        "category_id": category.category_id,
        "ram_id": ram.specification_id,
        "storage_id": storage.specification_id,
        "product_id": product.product_id,
    }


def make_png(seed=1, size=(48, 48)):
    """Deterministic, distinct PNG bytes per seed."""
    width, height = size
    img = PILImage.new("RGB", size)
    img.putdata(
        [
            ((x * seed) % 256, (y * 7 + seed) % 256, (x + y + seed * 13) % 256)
            for y in range(height)
            for x in range(width)
        ]
    )
    buffer = io.BytesIO()
    img.save(buffer, format="PNG")
    return buffer.getvalue()


def make_upload(data, filename="image.png", content_type="image/png"):
    return FileStorage(
        stream=io.BytesIO(data), filename=filename, content_type=content_type
    )


@pytest.fixture
def png():
    return make_png


@pytest.fixture
def upload():
    return make_upload


@pytest.fixture
def sql_log(db):
    """Record every SQL statement sent to the database."""
    statements = []

    def capture(conn, cursor, statement, parameters, context, executemany):
        statements.append(statement)

    event.listen(db.engine, "before_cursor_execute", capture)
    yield statements
    event.remove(db.engine, "before_cursor_execute", capture)
