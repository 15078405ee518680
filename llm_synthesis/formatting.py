"""Currency formatting shared by prompts and user-facing messages."""


def format_rupiah(value: float) -> str:
    """Format a price the way Indonesian marketplaces display it.

    Rounds to whole Rupiah and groups thousands with dots, e.g.
    ``1234567.4`` -> ``"Rp1.234.567"``.
    """
    rounded = int(round(value))
    sign = "-" if rounded < 0 else ""
    grouped = f"{abs(rounded):,}".replace(",", ".")
    return f"{sign}Rp{grouped}"
