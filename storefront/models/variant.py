from datetime import datetime, timezone
from storefront.extensions import db


class Variant(db.Model):
    __tablename__ = "variants"

    variant_id = db.Column(db.Integer, primary_key=True)
    product_id = db.Column(
        db.Integer,
        db.ForeignKey("products.product_id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    variant_price = db.Column(db.Numeric(10, 2), nullable=False)
    variant_quantity = db.Column(db.Integer, nullable=False, default=0)
    variant_status = db.Column(db.String(20), nullable=False, default="active")
    created_at = db.Column(
        db.DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
    )
    updated_at = db.Column(
        db.DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )
    deleted_at = db.Column(db.DateTime(timezone=True))

    combinations = db.relationship(
        "VariantCombination", backref="variant", cascade="all, delete-orphan"
    )
    images = db.relationship(
        "VariantImage", backref="variant", cascade="all, delete-orphan"
    )

    __table_args__ = (
        db.CheckConstraint("variant_quantity >= 0", name="ck_variant_quantity"),
    )

    def __repr__(self):
        return f"<Variant {self.variant_id} of product {self.product_id}>"


class VariantValue(db.Model):
    """A concrete value of a specification, shared across variants."""

    __tablename__ = "variant_values"

    variant_value_id = db.Column(db.Integer, primary_key=True)
    specification_id = db.Column(
        db.Integer,
        db.ForeignKey("specifications.specification_id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    value = db.Column(db.String(255), nullable=False)

    __table_args__ = (
        db.UniqueConstraint("specification_id", "value", name="uq_variant_value"),
    )

    def __repr__(self):
        return f"<VariantValue {self.specification_id}: {self.value}>"


class VariantCombination(db.Model):
    __tablename__ = "variant_combinations"

    variant_combination_id = db.Column(db.Integer, primary_key=True)
    variant_id = db.Column(
        db.Integer,
        db.ForeignKey("variants.variant_id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    specification_id = db.Column(
        db.Integer,
        db.ForeignKey("specifications.specification_id", ondelete="CASCADE"),
        nullable=False,
    )
    variant_value_id = db.Column(
        db.Integer,
        db.ForeignKey("variant_values.variant_value_id", ondelete="CASCADE"),
        nullable=False,
    )

    def __repr__(self):
        return (
            f"<VariantCombination v{self.variant_id} "
            f"spec={self.specification_id} value={self.variant_value_id}>"
        )
