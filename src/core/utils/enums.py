import enum


class ServiceType(str, enum.Enum):
    BUSINESS = "BUSINESS"
    LEASE = "LEASE"
    OTHER = "OTHER"
    PERSONAL = "PERSONAL"
    SOFTWARE = "SOFTWARE"
    SUPPLIER = "SUPPLIER"
    TAX = "TAX"
    UTILITY = "UTILITY"


class ServiceOwnership(str, enum.Enum):
    COMPANY = "COMPANY"
    OWNER = "OWNER"
    MIXED = "MIXED"
    THIRD_PARTY = "THIRD_PARTY"


class ServiceObligationType(str, enum.Enum):
    SERVICE = "SERVICE"
    DEBT = "DEBT"
    LOAN = "LOAN"
    OTHER = "OTHER"


class ServiceRecurrenceType(str, enum.Enum):
    RECURRING = "RECURRING"
    ONE_OFF = "ONE_OFF"


class ServiceFrequency(str, enum.Enum):
    WEEKLY = "WEEKLY"          # +7 dias
    BIWEEKLY = "BIWEEKLY"      # +14 dias
    MONTHLY = "MONTHLY"        # +1 mês
    BIMONTHLY = "BIMONTHLY"    # +2 meses
    QUARTERLY = "QUARTERLY"    # +3 meses
    SEMIANNUAL = "SEMIANNUAL"  # +6 meses
    ANNUAL = "ANNUAL"          # +12 meses
    ONCE = "ONCE"              # Período único


class AmountIndexation(str, enum.Enum):
    NONE = "NONE"
    UF = "UF"  # Unidade de Fomento (valor diário)


class EmissionMode(str, enum.Enum):
    FIXED_DAY = "FIXED_DAY"
    DATE_RANGE = "DATE_RANGE"
    SPECIFIC_DATE = "SPECIFIC_DATE"


class LateFeeMode(str, enum.Enum):
    NONE = "NONE"
    FIXED = "FIXED"
    PERCENTAGE = "PERCENTAGE"


class ServiceStatus(str, enum.Enum):
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"
    ARCHIVED = "ARCHIVED"


class ScheduleStatus(str, enum.Enum):
    PENDING = "PENDING"
    PARTIAL = "PARTIAL"
    PAID = "PAID"
    SKIPPED = "SKIPPED"
