"""
Pydantic schemas for address autocomplete.
"""

from pydantic import BaseModel, Field
from typing import List, Optional


class AddressSuggestion(BaseModel):
    label: str = Field(..., examples=["123 Main St, Birmingham, AL 35203"])
    street: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip_code: Optional[str] = None


class AddressAutocompleteResponse(BaseModel):
    suggestions: List[AddressSuggestion]
    fallback: bool = Field(False, description="True when static suggestions were returned")
