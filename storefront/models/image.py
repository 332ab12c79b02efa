from storefront.extensions import db


class ProductImages(db.Model):
    """One row per product holding the main image and five thumbnails."""

    __tablename__ = "product_images"

    product_image_id = db.Column(db.Integer, primary_key=True)
    product_id = db.Column(
        db.Integer,
        db.ForeignKey("products.product_id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
        index=True,
    )
    main_image = db.Column(db.LargeBinary)
    thumbnail_image1 = db.Column(db.LargeBinary)
    thumbnail_image2 = db.Column(db.LargeBinary)
    thumbnail_image3 = db.Column(db.LargeBinary)
    thumbnail_image4 = db.Column(db.LargeBinary)
    thumbnail_image5 = db.Column(db.LargeBinary)

    THUMBNAIL_COLUMNS = (
        "thumbnail_image1",
        "thumbnail_image2",
        "thumbnail_image3",
        "thumbnail_image4",
        "thumbnail_image5",
    )
    IMAGE_COLUMNS = ("main_image",) + THUMBNAIL_COLUMNS

    def __repr__(self):
        return f"<ProductImages product={self.product_id}>"


class VariantImage(db.Model):
    __tablename__ = "variant_images"

    variant_image_id = db.Column(db.Integer, primary_key=True)
    variant_id = db.Column(
        db.Integer,
        db.ForeignKey("variants.variant_id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    image_data = db.Column(db.LargeBinary, nullable=False)
    image_type = db.Column(db.String(100), nullable=False)  # MIME type

    def __repr__(self):
        return f"<VariantImage {self.variant_image_id} [{self.image_type}]>"
