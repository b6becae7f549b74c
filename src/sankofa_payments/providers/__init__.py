"""Payment provider adapters."""

from .base import ChargeContext, ProviderAdapter, ProviderResult
from .card import CardAdapter, CardPaymentRequest
from .mtn_momo import MTN_PROVIDER_NAME, MTNMoMoAdapter, MTNMoMoPaymentRequest
from .registry import AdapterRegistry
from .vodafone_cash import VODAFONE_PROVIDER_NAME, VodafoneCashAdapter, VodafoneCashPaymentRequest

__all__ = [
    "AdapterRegistry",
    "CardAdapter",
    "CardPaymentRequest",
    "ChargeContext",
    "MTN_PROVIDER_NAME",
    "MTNMoMoAdapter",
    "MTNMoMoPaymentRequest",
    "ProviderAdapter",
    "ProviderResult",
    "VODAFONE_PROVIDER_NAME",
    "VodafoneCashAdapter",
    "VodafoneCashPaymentRequest",
]
