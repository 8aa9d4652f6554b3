from enum import Enum


class DiscountType(Enum):
    PERCENTAGE = "percentage"      # discount_value is a percent of the subtotal
    FIXED_AMOUNT = "fixed_amount"  # discount_value is a money amount
