"""Family-related enums."""

from enum import Enum


class FamilyHousing(str, Enum):
    """Housing situation of a beneficiary household."""

    HOUSED = "housed"
    PENDING_PLACEMENT = "pending_placement"
    NOT_HOUSED = "not_housed"


class ChildSex(str, Enum):
    MALE = "male"
    FEMALE = "female"


class DocumentType(str, Enum):
    """Kinds of supporting documents kept for a family."""

    IDENTITY = "identity"
    INCOME = "income"
    HOUSING = "housing"
    MEDICAL = "medical"
    ADMINISTRATIVE = "administrative"
    OTHER = "other"
