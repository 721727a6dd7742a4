"""Contact (sales enquiry) form."""

from __future__ import annotations

from pydantic import EmailStr, Field

from .common import CamelModel


class ContactForm(CamelModel):
    name: str = Field(min_length=2, max_length=100)
    position: str = Field(min_length=2, max_length=100)
    number: str = Field(min_length=7, max_length=20, description="Phone number")
    email: EmailStr
    company: str = Field(min_length=2, max_length=100)
    country: str = Field(min_length=2, max_length=100)
