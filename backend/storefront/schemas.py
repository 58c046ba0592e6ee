"""
Request Schemas

Pydantic models used by the request-validation middleware
(storefront.utils.validation.validate_json) to check JSON bodies before
they reach the route handlers.
"""

import re
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from storefront.utils.slug_generator import is_valid_slug

EMAIL_PATTERN = re.compile(r'^[^@\s]+@[^@\s]+\.[^@\s]+$')


def _blank_to_none(value):
    if isinstance(value, str) and not value.strip():
        return None
    return value


# -------------------------------- Catalog ---------------------------------

class CategoryPayload(BaseModel):
    """
    Body of POST /api/admin/categories
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(..., min_length=2, max_length=100, description="Category name")
    slug: Optional[str] = Field(None, description="URL friendly slug, derived from name when omitted")
    description: Optional[str] = Field(None, max_length=500, description="Short description")
    parent: Optional[int] = Field(None, description="Parent category id")
    is_active: Optional[bool] = Field(None, description="Active status")

    @field_validator('slug', 'parent', mode='before')
    @classmethod
    def empty_as_none(cls, value):
        return _blank_to_none(value)

    @field_validator('slug')
    @classmethod
    def slug_format(cls, value):
        if value is None:
            return value
        value = value.lower()
        if not is_valid_slug(value):
            raise ValueError('slug may only contain lowercase letters, digits and single hyphens')
        return value


class CategoryUpdatePayload(CategoryPayload):
    """
    Body of PUT /api/admin/categories/<id>; every field is optional
    """
    name: Optional[str] = Field(None, min_length=2, max_length=100, description="Category name")


# ----------------------------- Auth & Session -----------------------------

class LoginPayload(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    email: str = Field(..., description="Account email")
    password: str = Field(..., min_length=1, description="Account password")


class ForgotPasswordPayload(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    email: str = Field(..., description="Email of the account to reset")

    @field_validator('email')
    @classmethod
    def email_format(cls, value):
        if not EMAIL_PATTERN.match(value):
            raise ValueError('A valid email is required')
        return value.lower()


class ResetPasswordPayload(BaseModel):
    password: str = Field(..., min_length=6, description="New password")
