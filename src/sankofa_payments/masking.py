"""Helpers that keep card data out of storage, logs and display payloads."""

from typing import Any

CARD_NUMBER_KEYS = ("card_number", "cardNumber")
SECRET_KEYS = ("cvv", "cvc", "cvv2", "pin")


def mask_card_number(card_number: str) -> str:
    """Return ``****`` followed by the last four digits."""
    digits = "".join(c for c in card_number if c.isdigit())
    return f"****{digits[-4:]}" if digits else "****"


def strip_secrets(account_details: dict[str, Any]) -> dict[str, Any]:
    """Copy of account details without security codes or PINs."""
    return {k: v for k, v in account_details.items() if k.lower() not in SECRET_KEYS}


def display_account_details(account_details: dict[str, Any]) -> dict[str, Any]:
    """Copy of stored account details that is safe to show or log."""
    safe = strip_secrets(account_details)
    for key in CARD_NUMBER_KEYS:
        if key in safe and safe[key]:
            safe[key] = mask_card_number(str(safe[key]))
    return safe
