from storefront.extensions import db


class Category(db.Model):
    __tablename__ = "categories"

    category_id = db.Column(db.Integer, primary_key=True)
    category_name = db.Column(db.String(255), nullable=False, unique=True)

    specifications = db.relationship(
        "Specification",
        secondary="category_specifications",
        lazy="select",
        order_by="Specification.specification_name",
    )

    def __repr__(self):
        return f"<Category {self.category_name}>"


class Specification(db.Model):
    """A named attribute (e.g. "RAM") that variants can take values for."""

    __tablename__ = "specifications"

    specification_id = db.Column(db.Integer, primary_key=True)
    specification_name = db.Column(db.String(255), nullable=False, unique=True)

    def __repr__(self):
        return f"<Specification {self.specification_name}>"


class CategorySpecification(db.Model):
    __tablename__ = "category_specifications"

    category_spec_id = db.Column(db.Integer, primary_key=True)
    category_id = db.Column(
        db.Integer,
        db.ForeignKey("categories.category_id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    specification_id = db.Column(
        db.Integer,
        db.ForeignKey("specifications.specification_id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    __table_args__ = (
        db.UniqueConstraint(
            "category_id", "specification_id", name="uq_category_specification"
        ),
    )
