from datetime import datetime, timezone
from storefront.extensions import db


class Product(db.Model):
    __tablename__ = "products"

    product_id = db.Column(db.Integer, primary_key=True)
    product_name = db.Column(db.String(255), nullable=False)
    product_sku = db.Column(db.String(255), unique=True, nullable=False, index=True)
    product_description = db.Column(db.Text, default="")
    product_price = db.Column(db.Numeric(10, 2), nullable=False)
    product_quantity = db.Column(db.Integer, nullable=False, default=0)
    product_status = db.Column(
        db.String(20), nullable=False, default="draft", index=True
    )
    category_id = db.Column(
        db.Integer,
        db.ForeignKey("categories.category_id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    created_at = db.Column(
        db.DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
    )
    updated_at = db.Column(
        db.DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    category = db.relationship("Category", lazy="joined")
    images = db.relationship(
        "ProductImages",
        backref="product",
        uselist=False,
        cascade="all, delete-orphan",
    )
    variants = db.relationship(
        "Variant",
        backref="product",
        lazy="select",
        cascade="all, delete-orphan",
        order_by="Variant.variant_id",
    )

    def __repr__(self):
        return f"<Product {self.product_sku}: {self.product_name}>"
