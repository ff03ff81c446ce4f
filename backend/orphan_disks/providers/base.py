"""Base abstract class for disk inventory providers."""

from abc import ABC, abstractmethod

from orphan_disks.schemas.disk import DiskRecord, SubscriptionRef


class ProviderError(Exception):
    """Provider call failed (authorization, network, malformed response)."""

    pass


class ProviderAuthenticationError(ProviderError):
    """Provider sign-in failed; no session can be established."""

    pass


class DiskProviderBase(ABC):
    """
    Abstract base class for disk inventory providers.

    Providers only read inventory. They never attach, detach, or delete
    anything.
    """

    @abstractmethod
    async def list_subscriptions(self) -> list[SubscriptionRef]:
        """
        List subscriptions visible to the current credentials.

        Returns:
            Subscription id/name pairs

        Raises:
            ProviderAuthenticationError: If sign-in fails
            ProviderError: If the listing call fails
        """
        pass

    @abstractmethod
    async def list_disks(self, subscription: SubscriptionRef) -> list[DiskRecord]:
        """
        List every managed disk in a subscription, attached or not.

        Args:
            subscription: Subscription to list

        Returns:
            Disk records stamped with the subscription id and name

        Raises:
            ProviderAuthenticationError: If sign-in fails
            ProviderError: If the listing call fails
        """
        pass
