"""Validation schemas for parsed admin forms."""
import json
from decimal import Decimal
from typing import Any, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator


class SpecificationValue(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    specificationId: int = Field(..., gt=0)
    value: str = Field(..., min_length=1, max_length=255)


class VariantForm(BaseModel):
    model_config = ConfigDict(arbitrary_types_allowed=True)

    productId: int = Field(..., gt=0)
    variantId: Optional[int] = Field(None, gt=0)
    variantPrice: Decimal = Field(..., ge=0, max_digits=10, decimal_places=2)
    variantQuantity: int = Field(..., ge=0)
    variantStatus: Literal["active", "inactive"]
    specifications: List[SpecificationValue] = Field(default_factory=list)
    images: List[Any] = Field(default_factory=list)

    @field_validator("images")
    @classmethod
    def images_are_files(cls, images):
        for image in images:
            if not hasattr(image, "read"):
                raise ValueError("images must be uploaded files")
        return images


def error_details(error: ValidationError):
    """JSON-safe list of field errors."""
    return json.loads(error.json(include_url=False, include_input=False))


def validate_variant_form(data):
    """Return ``(VariantForm, None)`` or ``(None, details)``; never raises."""
    try:
        return VariantForm.model_validate(data), None
    except ValidationError as e:
        return None, error_details(e)
