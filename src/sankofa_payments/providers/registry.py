"""Maps (payment method kind, provider name) to the adapter that charges it."""

import logging

from ..core.exceptions import (
    ConfigurationError,
    UnsupportedPaymentMethod,
    UnsupportedPaymentMethodType,
)
from ..models import PaymentMethodKind
from ..settings import Settings
from .base import ProviderAdapter
from .card import CardAdapter
from .mtn_momo import MTNMoMoAdapter
from .vodafone_cash import VodafoneCashAdapter

logger = logging.getLogger(__name__)

ANY_PROVIDER = None


class AdapterRegistry:
    """Adapter lookup by method kind and exact provider name."""

    def __init__(self, adapters: list[ProviderAdapter] | None = None):
        self._routes: dict[PaymentMethodKind, dict[str | None, ProviderAdapter]] = {}
        for adapter in adapters or []:
            self.register(adapter)

    def register(self, adapter: ProviderAdapter) -> None:
        providers = adapter.provider_names or (ANY_PROVIDER,)
        for kind in adapter.kinds:
            routes = self._routes.setdefault(kind, {})
            for provider in providers:
                if provider in routes:
                    raise ConfigurationError(
                        f"Adapter already registered for {kind.value}/{provider or '*'}"
                    )
                routes[provider] = adapter

    def resolve(self, kind: PaymentMethodKind | str, provider: str) -> ProviderAdapter:
        """Pick the adapter for a method.

        Raises:
            UnsupportedPaymentMethodType: No adapter handles the kind at all.
            UnsupportedPaymentMethod: The kind is handled, the provider is not.
        """
        try:
            kind = PaymentMethodKind(kind)
        except ValueError as e:
            raise UnsupportedPaymentMethodType(details={"type": str(kind)}) from e

        routes = self._routes.get(kind)
        if not routes:
            raise UnsupportedPaymentMethodType(details={"type": kind.value})

        adapter = routes.get(provider) or routes.get(ANY_PROVIDER)
        if adapter is None:
            raise UnsupportedPaymentMethod(
                f"Unsupported {kind.value} provider: {provider}",
                details={"type": kind.value, "provider": provider},
            )
        return adapter

    @classmethod
    def from_settings(cls, settings: Settings) -> "AdapterRegistry":
        timeout = settings.payments.provider_timeout_seconds
        adapters: list[ProviderAdapter] = [
            MTNMoMoAdapter(settings.mtn_momo, timeout=timeout),
            VodafoneCashAdapter(settings.vodafone_cash, timeout=timeout),
            CardAdapter(settings.card_gateway, timeout=timeout),
        ]
        for adapter in adapters:
            mode = "live" if adapter.settings.live else "sandbox"
            logger.info(f"Registered {adapter.name} adapter ({mode})")
        return cls(adapters)
