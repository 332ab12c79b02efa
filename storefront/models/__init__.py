from storefront.models.category import Category, CategorySpecification, Specification
from storefront.models.product import Product
from storefront.models.image import ProductImages, VariantImage
from storefront.models.variant import Variant, VariantCombination, VariantValue

__all__ = [
    "Category",
    "CategorySpecification",
    "Specification",
    "Product",
    "ProductImages",
    "VariantImage",
    "Variant",
    "VariantCombination",
    "VariantValue",
]
