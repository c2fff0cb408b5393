"""
Apartment listing and floor plan models.
Listings are submitted by landlords, published by admins and read by search.
"""

from sqlalchemy import String, Text, Integer, Numeric, Boolean, Date, JSON, ForeignKey, Index, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship
from credora.database import Base
from credora.utils.formatting import format_price_range, format_floor_plan
from datetime import date
from decimal import Decimal
import uuid
from typing import List, Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from credora.models.landlord import Landlord
    from credora.models.review import Review

DEFAULT_IMAGE_URL = "https://images.unsplash.com/photo-1545324418-cc1a3fa10c00?w=800&h=600&fit=crop"
DEFAULT_CONTACT_PHONE = "(555) 000-0000"
DEFAULT_CONTACT_EMAIL = "info@apartment.com"
DEFAULT_SQUARE_FEET = 800
DEFAULT_RATING = Decimal("4.0")


class Apartment(Base):
    """
    Apartment listing with address, pricing, amenities, images and floor plans.
    Only verified (published) listings are visible to search and detail pages.
    """

    __tablename__ = "apartments"

    title: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    building_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    property_type: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        default="Apartment"
    )

    # Address
    address: Mapped[str] = mapped_column(String(255), nullable=False)
    city: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    state: Mapped[str] = mapped_column(String(2), nullable=False, index=True)
    zip_code: Mapped[Optional[str]] = mapped_column(String(10), nullable=True)
    neighborhood: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)

    # Pricing and size
    price: Mapped[Decimal] = mapped_column(
        Numeric(precision=10, scale=2),
        nullable=False,
        index=True,
        comment="Monthly rent in USD"
    )
    deposit: Mapped[Optional[Decimal]] = mapped_column(Numeric(precision=10, scale=2), nullable=True)
    bedrooms: Mapped[int] = mapped_column(Integer, nullable=False, default=0, index=True)
    bathrooms: Mapped[Decimal] = mapped_column(
        Numeric(precision=3, scale=1),
        nullable=False,
        default=Decimal("1.0")
    )
    square_feet: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    # Features
    amenities: Mapped[List[str]] = mapped_column(JSON, nullable=False, default=list)
    images: Mapped[List[str]] = mapped_column(JSON, nullable=False, default=list)
    lease_terms: Mapped[List[str]] = mapped_column(JSON, nullable=False, default=list)
    pet_friendly: Mapped[Optional[bool]] = mapped_column(Boolean, nullable=True)
    parking: Mapped[Optional[bool]] = mapped_column(Boolean, nullable=True)
    available_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)

    # Contact
    contact_phone: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    contact_email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    management_company: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    website: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)

    # Reviews
    rating: Mapped[Optional[Decimal]] = mapped_column(Numeric(precision=2, scale=1), nullable=True)
    review_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    # Publication
    verified: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
        index=True,
        comment="Published listings are visible to search"
    )
    landlord_submitted: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    landlord_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("landlords.id", ondelete="SET NULL"),
        nullable=True,
        index=True
    )

    landlord: Mapped[Optional["Landlord"]] = relationship(
        "Landlord",
        back_populates="apartments",
        lazy="noload"
    )

    floor_plans: Mapped[List["FloorPlan"]] = relationship(
        "FloorPlan",
        back_populates="apartment",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="FloorPlan.bedrooms"
    )

    reviews: Mapped[List["Review"]] = relationship(
        "Review",
        back_populates="apartment",
        cascade="all, delete-orphan",
        lazy="noload"
    )

    def __repr__(self) -> str:
        return f"<Apartment(id={self.id}, title={self.title[:30]}, price={self.price})>"

    @property
    def primary_image(self) -> str:
        return self.images[0] if self.images else DEFAULT_IMAGE_URL

    @property
    def listing_status(self) -> str:
        """Status shown to the owning landlord."""
        return "active" if self.verified else "pending"

    def validate_all(self) -> None:
        """
        Validate listing values.

        Raises:
            ValueError: If any value is out of range
        """
        if self.price is None or self.price <= 0:
            raise ValueError("Monthly rent must be greater than 0")
        if self.bedrooms is not None and not (0 <= self.bedrooms <= 20):
            raise ValueError("Number of bedrooms must be between 0 and 20")
        if self.bathrooms is not None and not (0 <= self.bathrooms <= 20):
            raise ValueError("Number of bathrooms must be between 0 and 20")
        if self.square_feet is not None and self.square_feet <= 0:
            raise ValueError("Square footage must be greater than 0")

    def to_listing(self) -> dict:
        """
        Listing card representation with display defaults filled in.

        Missing optional values fall back to the defaults shown on listing
        cards: building name from title, neighborhood from city, 800 sq ft,
        first image or a stock photo, deposit equal to one month's rent.
        """
        price = float(self.price)
        bathrooms = float(self.bathrooms)
        return {
            "id": str(self.id),
            "title": self.title,
            "building_name": self.building_name or self.title,
            "description": self.description or "",
            "address": self.address,
            "city": self.city,
            "state": self.state,
            "zip_code": self.zip_code or "00000",
            "neighborhood": self.neighborhood or self.city,
            "price": price,
            "price_range": format_price_range(self.price),
            "bedrooms": self.bedrooms,
            "bathrooms": bathrooms,
            "square_feet": self.square_feet or DEFAULT_SQUARE_FEET,
            "property_type": self.property_type or "Apartment",
            "floor_plan": format_floor_plan(self.bedrooms, self.bathrooms),
            "image_url": self.primary_image,
            "images": list(self.images or []),
            "amenities": list(self.amenities or []),
            "pet_friendly": self.pet_friendly is not False,
            "parking": self.parking is not False,
            "deposit": float(self.deposit) if self.deposit is not None else price,
            "lease_terms": list(self.lease_terms or []) or ["12 months"],
            "available_date": self.available_date.isoformat() if self.available_date else None,
            "contact_phone": self.contact_phone or DEFAULT_CONTACT_PHONE,
            "contact_email": self.contact_email or DEFAULT_CONTACT_EMAIL,
            "management_company": self.management_company,
            "rating": float(self.rating) if self.rating is not None else float(DEFAULT_RATING),
            "review_count": self.review_count,
            "verified": self.verified,
            "created_at": self.created_at.isoformat(),
        }


class FloorPlan(Base):
    """Unit layout offered within an apartment building."""

    __tablename__ = "floor_plans"

    apartment_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("apartments.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    name: Mapped[str] = mapped_column(String(100), nullable=False)
    bedrooms: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    bathrooms: Mapped[Decimal] = mapped_column(Numeric(precision=3, scale=1), nullable=False, default=Decimal("1.0"))
    square_feet: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    price: Mapped[Decimal] = mapped_column(Numeric(precision=10, scale=2), nullable=False)
    available: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    apartment: Mapped["Apartment"] = relationship("Apartment", back_populates="floor_plans")

    def to_dict(self) -> dict:
        return {
            "id": str(self.id),
            "name": self.name,
            "bedrooms": self.bedrooms,
            "bathrooms": float(self.bathrooms),
            "square_feet": self.square_feet,
            "price": float(self.price),
            "available": self.available,
        }


# Composite index for the published-listing search path
search_index = Index(
    "idx_apartments_search",
    Apartment.verified,
    Apartment.price,
    Apartment.bedrooms
)

landlord_listing_index = Index(
    "idx_apartments_landlord_created",
    Apartment.landlord_id,
    Apartment.created_at.desc()
)
