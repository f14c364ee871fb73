"""Customer domain models."""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from uuid import UUID

from pydantic import BaseModel, Field, EmailStr


class CustomerType(str, Enum):
    """Kind of customer."""

    INDIVIDUAL = "individual"
    BUSINESS = "business"
    GOVERNMENT = "government"
    NONPROFIT = "nonprofit"


class CustomerStatus(str, Enum):
    """Customer account status."""

    ACTIVE = "active"
    INACTIVE = "inactive"
    PENDING = "pending"
    BLOCKED = "blocked"


class CustomerAddress(BaseModel):
    """Postal address. Stored flattened on the customer row."""

    line1: str = Field(..., max_length=255)
    line2: str | None = Field(None, max_length=255)
    city: str = Field(..., max_length=100)
    state: str | None = Field(None, max_length=100)
    postal_code: str | None = Field(None, max_length=20)
    country: str = Field(..., max_length=100)

    def to_columns(self) -> dict[str, str | None]:
        """Column values for the customers table."""
        return {
            "address_line1": self.line1,
            "address_line2": self.line2,
            "city": self.city,
            "state": self.state,
            "postal_code": self.postal_code,
            "country": self.country,
        }


class CustomerCreate(BaseModel):
    """Data required to create a customer."""

    name: str = Field(..., min_length=1, max_length=255)
    email: EmailStr | None = None
    phone: str | None = Field(None, max_length=50)
    address: CustomerAddress | None = None
    company_name: str | None = Field(None, max_length=255)
    industry: str | None = Field(None, max_length=100)
    annual_revenue: Decimal | None = Field(None, ge=0)
    employee_count: int | None = Field(None, ge=0)
    type: CustomerType = CustomerType.INDIVIDUAL
    status: CustomerStatus = CustomerStatus.ACTIVE
    notes: str | None = Field(None, max_length=10000)


class CustomerUpdate(BaseModel):
    """Data that can be updated on a customer. All fields optional."""

    name: str | None = Field(None, min_length=1, max_length=255)
    email: EmailStr | None = None
    phone: str | None = Field(None, max_length=50)
    address: CustomerAddress | None = None
    company_name: str | None = Field(None, max_length=255)
    industry: str | None = Field(None, max_length=100)
    annual_revenue: Decimal | None = Field(None, ge=0)
    employee_count: int | None = Field(None, ge=0)
    type: CustomerType | None = None
    status: CustomerStatus | None = None
    notes: str | None = Field(None, max_length=10000)


class Customer(BaseModel):
    """Full customer entity as stored."""

    id: UUID
    name: str
    email: str | None
    phone: str | None
    address_line1: str | None
    address_line2: str | None
    city: str | None
    state: str | None
    postal_code: str | None
    country: str | None
    company_name: str | None
    industry: str | None
    annual_revenue: Decimal | None
    employee_count: int | None
    type: CustomerType
    status: CustomerStatus
    notes: str | None
    created_by: UUID
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}

    @property
    def display_name(self) -> str:
        """Human-readable name for display."""
        if self.company_name:
            return f"{self.name} ({self.company_name})"
        return self.name
