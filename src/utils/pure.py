import re
from decimal import ROUND_HALF_UP, Decimal
from typing import Dict, List, Literal, Optional

TAX_RATE = Decimal("0.08")
CENT = Decimal("0.01")

EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
ZIP_RE = re.compile(r"^\d{1,5}$")
CARD_RE = re.compile(r"^\d{4} \d{4} \d{4} \d{4}$")
EXPIRY_RE = re.compile(r"^(0[1-9]|1[0-2])/\d{2}$")
CVV_RE = re.compile(r"^\d{3,4}$")


def generate_markdown_table(
    headers: Optional[List[str]],
    rows: List[List[str]],
    aligns: Optional[List[Literal["l", "c", "r"]]] = None,
) -> str:
    """
    Generate a Markdown table.

    Args:
        headers: List of column headers, or None to use first row as headers.
        rows: List of rows, each a list of strings.
        aligns: List of alignments ('l', 'c', 'r') for each column.
                Defaults to all center ('c').

    Returns:
        str: Markdown formatted table.
    """
    if not rows:
        return ""

    # If no headers, take the first row as header and remove it from rows
    if not headers:
        headers, rows = rows[0], rows[1:]

    headers = list(map(str, headers))
    rows = [list(map(str, row)) for row in rows]

    num_cols = len(headers)
    if aligns is None:
        aligns = ["c"] * num_cols
    elif len(aligns) != num_cols:
        raise ValueError("Length of aligns must match number of headers.")

    align_map = {
        "l": ":---",
        "c": ":---:",
        "r": "---:",
    }

    header_line = "| " + " | ".join(headers) + " |"
    align_line = "| " + " | ".join(align_map[a] for a in aligns) + " |"
    row_lines = ["| " + " | ".join(map(str, row)) + " |" for row in rows]

    return "\n".join([header_line, align_line, *row_lines])


# ---------------------------
# Money
# ---------------------------


def to_cents(amount: Decimal) -> Decimal:
    return Decimal(amount).quantize(CENT, rounding=ROUND_HALF_UP)


def compute_tax(subtotal: Decimal) -> Decimal:
    return to_cents(subtotal * TAX_RATE)


def compute_total(subtotal: Decimal) -> Decimal:
    return to_cents(subtotal) + compute_tax(subtotal)


def format_money(amount: Decimal) -> str:
    return f"${to_cents(amount):,.2f}"


# ---------------------------
# Format-as-you-type
# ---------------------------


def digits_only(raw: str) -> str:
    return re.sub(r"\D", "", raw or "")


def format_card_number(raw: str) -> str:
    """'4242424242424242' -> '4242 4242 4242 4242', at most 16 digits."""
    digits = digits_only(raw)[:16]
    return " ".join(digits[i : i + 4] for i in range(0, len(digits), 4))


def format_expiry(raw: str) -> str:
    """'1225' -> '12/25'; the slash appears once a third digit is typed."""
    digits = digits_only(raw)[:4]
    if len(digits) >= 3:
        return digits[:2] + "/" + digits[2:]
    return digits


def format_cvv(raw: str) -> str:
    return digits_only(raw)[:4]


def format_city(raw: str) -> str:
    return re.sub(r"[0-9]", "", raw or "")


def format_zip(raw: str) -> str:
    return digits_only(raw)[:5]


# ---------------------------
# Validation
# ---------------------------


def validate_shipping(
    first_name: str, last_name: str, email: str, address: str, city: str, zip: str
) -> Dict[str, str]:
    """Return {field: problem}; empty when the shipping form is valid."""
    errors: Dict[str, str] = {}
    required = {
        "first_name": first_name,
        "last_name": last_name,
        "email": email,
        "address": address,
        "city": city,
        "zip": zip,
    }
    for name, value in required.items():
        if not (value or "").strip():
            errors[name] = "Required."

    if "email" not in errors and not EMAIL_RE.match(email.strip()):
        errors["email"] = "Enter a valid email address."
    if "city" not in errors and re.search(r"\d", city):
        errors["city"] = "City cannot contain digits."
    if "zip" not in errors and not ZIP_RE.match(zip.strip()):
        errors["zip"] = "ZIP must be up to 5 digits."
    return errors


def validate_payment(
    card_number: str, expiry: str, cvv: str, name_on_card: str
) -> Dict[str, str]:
    """Structural checks only, nothing is sent to a processor."""
    errors: Dict[str, str] = {}
    if len((name_on_card or "").strip()) < 2:
        errors["name_on_card"] = "Enter the cardholder's full name."
    if not CARD_RE.match(card_number or ""):
        errors["card_number"] = "Enter a 16-digit card number."
    if not EXPIRY_RE.match(expiry or ""):
        errors["expiry"] = "Enter a valid expiry date as MM/YY."
    if not CVV_RE.match(cvv or ""):
        errors["cvv"] = "Enter the 3 or 4 digit security code."
    return errors


def stock_label(stock: int) -> str:
    if stock <= 0:
        return "Out of stock"
    if stock > 10:
        return f"{stock} in stock"
    return f"Only {stock} left"
