from __future__ import annotations

import uuid
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, EmailStr, Field, field_validator, model_validator

from mall_app.models.enums import (
    Currency,
    ExpiryWarning,
    LeaseStatus,
    MaintenancePriority,
    MaintenanceStatus,
    PaymentMethod,
    PaymentStatus,
    PropertyStatus,
    RecipientType,
    RenewalStatus,
    Severity,
    UserRole,
)


class SuccessOut(BaseModel):
    success: bool = True
    message: str


# profiles


class ProfileBase(BaseModel):
    name: str = Field(..., min_length=2, max_length=255)
    email: EmailStr
    phone: Optional[str] = Field(default=None, max_length=50)

    @field_validator("email", mode="before")
    @classmethod
    def normalize_email(cls, value: str) -> str:
        return value.strip().lower()

    @field_validator("name", mode="before")
    @classmethod
    def strip_name(cls, value: str) -> str:
        return value.strip()


class ProfileCreate(ProfileBase):
    role: UserRole = UserRole.TENANT
    preferred_currency: Currency = Currency.USD


class ProfileUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=2, max_length=255)
    phone: Optional[str] = Field(default=None, max_length=50)
    preferred_currency: Optional[Currency] = None


class RoleUpdate(BaseModel):
    role: UserRole


class ActiveUpdate(BaseModel):
    is_active: bool


class ProfileOut(BaseModel):
    id: uuid.UUID
    name: str
    email: str
    phone: Optional[str]
    role: UserRole
    preferred_currency: Currency
    is_active: bool
    created_at: datetime

    model_config = {"from_attributes": True}


# currency


class PreferredCurrencyIn(BaseModel):
    currency: Currency


class ExchangeRateIn(BaseModel):
    # validated by the currency service so <= 0 maps to a configuration error
    exchange_rate_usd_to_ugx: Decimal


class CurrencySettingsOut(BaseModel):
    base_currency: str
    exchange_rate_usd_to_ugx: Decimal
    last_updated: Optional[datetime]
    updated_by: Optional[uuid.UUID]
    is_default: bool = False

    model_config = {"from_attributes": True}


class ConversionOut(BaseModel):
    amount: Decimal
    from_currency: Currency
    to_currency: Currency
    rate: Decimal
    converted: Decimal
    formatted: str


class FormattedAmountOut(BaseModel):
    amount: Decimal
    currency: Currency
    formatted: str


# properties


class PropertyCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    location: str = Field(..., min_length=1, max_length=255)
    unit_number: str = Field(..., min_length=1, max_length=50)
    size_sqft: int = Field(default=0, ge=0)
    description: Optional[str] = None
    image_url: Optional[str] = Field(default=None, max_length=500)
    rent_amount: Decimal = Field(..., gt=0)
    currency: Currency = Currency.USD
    landlord_id: Optional[uuid.UUID] = None


class PropertyUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    location: Optional[str] = Field(default=None, min_length=1, max_length=255)
    unit_number: Optional[str] = Field(default=None, min_length=1, max_length=50)
    size_sqft: Optional[int] = Field(default=None, ge=0)
    description: Optional[str] = None
    image_url: Optional[str] = Field(default=None, max_length=500)
    rent_amount: Optional[Decimal] = Field(default=None, gt=0)
    currency: Optional[Currency] = None
    status: Optional[PropertyStatus] = None


class PropertyOut(BaseModel):
    id: uuid.UUID
    landlord_id: uuid.UUID
    name: str
    location: str
    unit_number: str
    size_sqft: int
    description: Optional[str]
    image_url: Optional[str]
    rent_amount: Decimal
    currency: Currency
    status: PropertyStatus
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


# leases


class LeaseCreate(BaseModel):
    property_id: uuid.UUID
    tenant_id: uuid.UUID
    start_date: date
    end_date: date
    monthly_rent: Decimal = Field(..., gt=0)
    deposit: Decimal = Field(default=Decimal("0"), ge=0)
    currency: Currency = Currency.USD
    terms: Optional[str] = None

    @model_validator(mode="after")
    def check_dates(self):
        if self.end_date <= self.start_date:
            raise ValueError("end_date must be after start_date")
        return self


class LeaseUpdate(BaseModel):
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    monthly_rent: Optional[Decimal] = Field(default=None, gt=0)
    deposit: Optional[Decimal] = Field(default=None, ge=0)
    currency: Optional[Currency] = None
    terms: Optional[str] = None


class LeaseOut(BaseModel):
    id: uuid.UUID
    property_id: uuid.UUID
    tenant_id: uuid.UUID
    landlord_id: uuid.UUID
    start_date: date
    end_date: date
    monthly_rent: Decimal
    deposit: Decimal
    currency: Currency
    terms: Optional[str]
    stored_status: LeaseStatus
    status: LeaseStatus
    days_until_expiry: int
    expiry_warning: Optional[ExpiryWarning]
    severity: Severity
    created_at: datetime


class LeaseDeleteIn(BaseModel):
    reason: Optional[str] = Field(default=None, max_length=1000)


class LeaseHistoryOut(BaseModel):
    id: uuid.UUID
    lease_id: Optional[uuid.UUID]
    property_id: uuid.UUID
    tenant_id: uuid.UUID
    start_date: date
    end_date: Optional[date]
    reason: Optional[str]
    created_at: datetime

    model_config = {"from_attributes": True}


class RenewalRequestCreate(BaseModel):
    # defaults to twelve months past the current end date
    requested_end_date: Optional[date] = None
    requested_rent: Optional[Decimal] = Field(default=None, gt=0)
    request_message: Optional[str] = Field(default=None, max_length=2000)


class RenewalDecision(BaseModel):
    approve: bool
    response_message: Optional[str] = Field(default=None, max_length=2000)


class RenewalRequestOut(BaseModel):
    id: uuid.UUID
    lease_id: uuid.UUID
    tenant_id: uuid.UUID
    landlord_id: uuid.UUID
    requested_end_date: date
    requested_rent: Decimal
    request_message: Optional[str]
    status: RenewalStatus
    response_message: Optional[str]
    responded_at: Optional[datetime]
    created_at: datetime

    model_config = {"from_attributes": True}


# payments


class PaymentCreate(BaseModel):
    lease_id: uuid.UUID
    amount: Decimal = Field(..., gt=0)
    currency: Optional[Currency] = None
    due_date: date
    payment_method: Optional[PaymentMethod] = None
    payment_method_id: Optional[uuid.UUID] = None
    payment_reference: Optional[str] = Field(default=None, max_length=255)
    notes: Optional[str] = None
    status: PaymentStatus = PaymentStatus.PENDING
    paid_amount: Optional[Decimal] = Field(default=None, gt=0)


class PaymentSubmission(BaseModel):
    submitted_amount: Decimal = Field(..., gt=0)
    payment_method: Optional[PaymentMethod] = None
    payment_method_id: Optional[uuid.UUID] = None
    payment_reference: Optional[str] = Field(default=None, max_length=255)
    notes: Optional[str] = None

    @model_validator(mode="after")
    def check_method(self):
        if self.payment_method is None and self.payment_method_id is None:
            raise ValueError("payment_method or payment_method_id is required")
        return self


class PaymentConfirmation(BaseModel):
    amount: Optional[Decimal] = Field(default=None, gt=0)
    payment_date: Optional[date] = None
    payment_method: Optional[PaymentMethod] = None
    payment_reference: Optional[str] = Field(default=None, max_length=255)


class PaymentUpdate(BaseModel):
    due_date: Optional[date] = None
    notes: Optional[str] = None
    payment_method: Optional[PaymentMethod] = None
    payment_reference: Optional[str] = Field(default=None, max_length=255)
    status: Optional[PaymentStatus] = None


class PaymentOut(BaseModel):
    id: uuid.UUID
    lease_id: Optional[uuid.UUID]
    tenant_id: uuid.UUID
    landlord_id: uuid.UUID
    parent_payment_id: Optional[uuid.UUID]
    amount: Decimal
    currency: Currency
    exchange_rate: Decimal
    due_date: date
    payment_date: Optional[date]
    stored_status: PaymentStatus
    status: PaymentStatus
    payment_method: Optional[PaymentMethod]
    payment_method_id: Optional[uuid.UUID] = None
    payment_reference: Optional[str]
    submitted_amount: Optional[Decimal]
    notes: Optional[str]
    formatted_amount: str
    display_currency: Currency
    display_amount: Decimal
    formatted_display_amount: str
    created_at: datetime


class PaymentConfirmationOut(BaseModel):
    success: bool = True
    payment: PaymentOut
    remaining: Decimal
    remainder_payment: Optional[PaymentOut] = None


# payment methods


class PaymentMethodDetails(BaseModel):
    instructions: Optional[str] = None
    provider: Optional[str] = Field(default=None, max_length=255)
    account_number: Optional[str] = Field(default=None, max_length=100)


class PaymentMethodCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    method_type: PaymentMethod
    details: PaymentMethodDetails = Field(default_factory=PaymentMethodDetails)
    is_active: bool = True


class PaymentMethodUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    method_type: Optional[PaymentMethod] = None
    details: Optional[PaymentMethodDetails] = None
    is_active: Optional[bool] = None


class PaymentMethodOut(BaseModel):
    id: uuid.UUID
    name: str
    method_type: PaymentMethod
    details: Dict[str, Any] = Field(default_factory=dict)
    is_active: bool
    created_by: Optional[uuid.UUID] = None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}

# maintenance


class MaintenanceCreate(BaseModel):
    property_id: uuid.UUID
    title: str = Field(..., min_length=1, max_length=255)
    description: str = Field(..., min_length=1)
    image_url: Optional[str] = Field(default=None, max_length=500)
    priority: MaintenancePriority = MaintenancePriority.MEDIUM


class MaintenanceUpdate(BaseModel):
    status: Optional[MaintenanceStatus] = None
    priority: Optional[MaintenancePriority] = None
    assigned_to: Optional[str] = Field(default=None, max_length=255)


class MaintenanceOut(BaseModel):
    id: uuid.UUID
    tenant_id: uuid.UUID
    landlord_id: uuid.UUID
    property_id: uuid.UUID
    title: str
    description: str
    image_url: Optional[str]
    priority: MaintenancePriority
    status: MaintenanceStatus
    assigned_to: Optional[str]
    completed_at: Optional[datetime]
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


# notices


class NoticeCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    content: str = Field(..., min_length=1)
    recipient_type: RecipientType = RecipientType.ALL
    recipient_id: Optional[uuid.UUID] = None
    property_id: Optional[uuid.UUID] = None
    is_urgent: bool = False

    @model_validator(mode="after")
    def check_recipient(self):
        if self.recipient_type == RecipientType.INDIVIDUAL and not self.recipient_id:
            raise ValueError("recipient_id is required for individual notices")
        if self.recipient_type == RecipientType.PROPERTY and not self.property_id:
            raise ValueError("property_id is required for property notices")
        return self


class NoticeOut(BaseModel):
    id: uuid.UUID
    sender_id: uuid.UUID
    title: str
    content: str
    recipient_type: RecipientType
    recipient_id: Optional[uuid.UUID]
    property_id: Optional[uuid.UUID]
    is_urgent: bool
    read_status: Dict[str, bool] = Field(default_factory=dict)
    read_count: int = 0
    is_read: bool = False
    created_at: datetime


# dashboard


class MoneyTotal(BaseModel):
    currency: Currency
    amount: Decimal
    formatted: str


class DashboardStatsOut(BaseModel):
    role: UserRole
    properties_total: int = 0
    properties_by_status: Dict[str, int] = Field(default_factory=dict)
    active_leases: int = 0
    leases_expiring_soon: int = 0
    collected_this_month: List[MoneyTotal] = Field(default_factory=list)
    pending_payments: int = 0
    overdue_payments: int = 0
    open_maintenance: int = 0
    unread_notices: int = 0
