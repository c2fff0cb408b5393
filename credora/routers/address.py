"""
Address autocomplete endpoint.
"""

from fastapi import APIRouter, Depends, Query
from credora.services.address import AddressService
from credora.schemas.address import AddressAutocompleteResponse
from credora.utils.dependencies import get_address_service

router = APIRouter(prefix="/address", tags=["Address"])


@router.get(
    "/autocomplete",
    response_model=AddressAutocompleteResponse,
    summary="Suggest US addresses",
    description="Queries shorter than three characters return no suggestions.",
)
async def autocomplete(
    q: str = Query("", max_length=200, description="Partial address"),
    limit: int = Query(5, ge=1, le=10),
    address_service: AddressService = Depends(get_address_service)
) -> AddressAutocompleteResponse:
    return AddressAutocompleteResponse.model_validate(await address_service.suggest(q, limit))
