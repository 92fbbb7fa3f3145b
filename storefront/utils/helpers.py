"""
Helper utilities
"""

from decimal import Decimal, ROUND_HALF_UP

PAISA = Decimal("0.01")
RUPEE = Decimal("1")


def round_money(amount: Decimal) -> Decimal:
    """Round to paise"""
    return Decimal(amount).quantize(PAISA, rounding=ROUND_HALF_UP)


def round_rupee(amount: Decimal) -> Decimal:
    """Round to the nearest whole rupee, halves up"""
    return Decimal(amount).quantize(RUPEE, rounding=ROUND_HALF_UP)


def format_currency(amount: Decimal, currency: str = "INR") -> str:
    """
    Format amount as currency

    Args:
        amount: Amount to format
        currency: Currency code

    Returns:
        Formatted currency string, Indian digit grouping for INR
    """
    amount = round_money(amount)
    if currency == "INR":
        sign = "-" if amount < 0 else ""
        integer_part, decimal_part = f"{abs(amount):.2f}".split(".")

        # Last 3 digits, then commas every 2 digits
        if len(integer_part) > 3:
            result = integer_part[-3:]
            integer_part = integer_part[:-3]
            while integer_part:
                result = integer_part[-2:] + "," + result
                integer_part = integer_part[:-2]
        else:
            result = integer_part

        return f"{sign}₹{result}.{decimal_part}"

    # Default formatting for other currencies
    return f"{currency} {amount:.2f}"
