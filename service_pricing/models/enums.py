from enum import Enum

class CompanyType(str, Enum):
    SIMPSON_HOUSING = "simpson_housing"
    GREYSTAR = "greystar"
    VISTA = "vista"
    OTHER = "other"

class ServiceCategory(str, Enum):
    PAINTING = "painting"
    CLEANING = "cleaning"
    REPAIRS = "repairs"
    REMODELING = "remodeling"
    OTHER = "other"

class UnitType(str, Enum):
    PER_ROOM = "per_room"
    PER_SQFT = "per_sqft"
    PER_APARTMENT = "per_apartment"
    PER_HOUR = "per_hour"
    FIXED = "fixed"

class ApartmentType(str, Enum):
    STANDARD = "standard"
    STUDIO = "studio"
    LOFT = "loft"
    DUPLEX = "duplex"
    PENTHOUSE = "penthouse"
    OTHER = "other"

class PaymentTerms(str, Enum):
    NET_15 = "net_15"
    NET_30 = "net_30"
    NET_60 = "net_60"
    NET_90 = "net_90"

class ContactRole(str, Enum):
    PROPERTY_MANAGER = "property_manager"
    MAINTENANCE_SUPERVISOR = "maintenance_supervisor"
    BILLING_CONTACT = "billing_contact"
    OTHER = "other"

class Role(str, Enum):
    """Caller role tiers, lowest first."""
    WORKER = "worker"
    SUPERVISOR = "supervisor"
    MANAGER = "manager"
    ADMIN = "admin"
    SUPERUSER = "superuser"

ROLE_TIERS: dict[str, int] = {
    Role.WORKER.value: 1,
    Role.SUPERVISOR.value: 2,
    Role.MANAGER.value: 3,
    Role.ADMIN.value: 4,
    Role.SUPERUSER.value: 5,
}
