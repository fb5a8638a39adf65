from enum import Enum


class UserRole(str, Enum):
    SUPERADMIN = "superadmin"
    LANDLORD = "landlord"
    TENANT = "tenant"


class Currency(str, Enum):
    USD = "USD"
    UGX = "UGX"


class PropertyStatus(str, Enum):
    AVAILABLE = "available"
    OCCUPIED = "occupied"
    MAINTENANCE = "maintenance"


class LeaseStatus(str, Enum):
    ACTIVE = "active"
    EXPIRED = "expired"


class ExpiryWarning(str, Enum):
    EXPIRED = "expired"
    THIS_WEEK = "expires this week"
    SOON = "expires soon"


class Severity(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class PaymentStatus(str, Enum):
    PENDING = "pending"
    PARTIAL = "partial"
    PAID = "paid"
    OVERDUE = "overdue"


class PaymentMethod(str, Enum):
    BANK_TRANSFER = "bank_transfer"
    MOBILE_MONEY = "mobile_money"
    CASH = "cash"
    CREDIT_CARD = "credit_card"


class MaintenanceStatus(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"


class MaintenancePriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class RecipientType(str, Enum):
    ALL = "all"
    INDIVIDUAL = "individual"
    PROPERTY = "property"


class RenewalStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class ChangeEvent(str, Enum):
    INSERT = "INSERT"
    UPDATE = "UPDATE"
    DELETE = "DELETE"
