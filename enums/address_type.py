from enum import Enum


class AddressType(Enum):
    BILLING = "billing"
    SHIPPING = "shipping"
    BOTH = "both"
