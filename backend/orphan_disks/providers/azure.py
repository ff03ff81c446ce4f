"""Azure managed disk inventory provider."""

import asyncio
from typing import Any

from azure.core.exceptions import AzureError, ClientAuthenticationError, HttpResponseError

from orphan_disks.core.log import get_logger
from orphan_disks.providers.base import (
    DiskProviderBase,
    ProviderAuthenticationError,
    ProviderError,
)
from orphan_disks.schemas.disk import DiskRecord, SubscriptionRef

logger = get_logger(__name__)


class AzureDiskProvider(DiskProviderBase):
    """
    Azure implementation of the disk inventory provider.

    Authentication uses an Azure Service Principal (tenant_id, client_id,
    client_secret) when all three are given, otherwise DefaultAzureCredential
    (environment, managed identity, Azure CLI login, ...).

    The Azure SDK clients are synchronous, so every call runs in a worker
    thread to keep the event loop free.
    """

    def __init__(
        self,
        tenant_id: str = "",
        client_id: str = "",
        client_secret: str = "",
        credential: Any | None = None,
    ) -> None:
        """
        Initialize Azure provider.

        Args:
            tenant_id: Azure AD Tenant ID
            client_id: Service Principal Application/Client ID
            client_secret: Service Principal Client Secret
            credential: Prebuilt azure-identity credential (overrides the above)
        """
        self.tenant_id = tenant_id
        self.client_id = client_id
        self.client_secret = client_secret
        self._credential = credential

    def _get_credential(self) -> Any:
        if self._credential is None:
            if self.tenant_id and self.client_id and self.client_secret:
                from azure.identity import ClientSecretCredential

                self._credential = ClientSecretCredential(
                    tenant_id=self.tenant_id,
                    client_id=self.client_id,
                    client_secret=self.client_secret,
                )
            else:
                from azure.identity import DefaultAzureCredential

                self._credential = DefaultAzureCredential()
        return self._credential

    def _subscription_client(self) -> Any:
        from azure.mgmt.resource import SubscriptionClient

        return SubscriptionClient(self._get_credential())

    def _compute_client(self, subscription_id: str) -> Any:
        from azure.mgmt.compute import ComputeManagementClient

        return ComputeManagementClient(self._get_credential(), subscription_id)

    @staticmethod
    def extract_resource_group(resource_id: str) -> str:
        """
        Extract the resource group name from an Azure resource ID.

        Format: /subscriptions/{sub}/resourceGroups/{rg}/providers/...
        The segment name is matched case-insensitively since Azure returns
        both ``resourceGroups`` and ``resourcegroups``.
        """
        parts = resource_id.split("/")
        for index, part in enumerate(parts):
            if part.lower() == "resourcegroups" and index + 1 < len(parts):
                return parts[index + 1]
        return ""

    @classmethod
    def to_disk_record(cls, disk: Any, subscription: SubscriptionRef) -> DiskRecord:
        """Map an azure-mgmt-compute Disk model to a DiskRecord."""
        disk_id = disk.id or ""
        return DiskRecord(
            id=disk_id,
            name=disk.name or disk_id.split("/")[-1],
            subscription_id=subscription.id,
            subscription_name=subscription.name,
            resource_group=cls.extract_resource_group(disk_id),
            location=disk.location or "",
            sku_name=disk.sku.name if disk.sku and disk.sku.name else "",
            size_gib=disk.disk_size_gb or 0,
            managed_by=disk.managed_by or None,
            max_shares=getattr(disk, "max_shares", None),
            created_at=disk.time_created,
            tags=dict(disk.tags or {}),
        )

    @staticmethod
    def _translate_error(error: Exception, target: str) -> ProviderError:
        """Turn an Azure SDK exception into a provider error with a readable message."""
        if isinstance(error, ClientAuthenticationError):
            return ProviderAuthenticationError(
                f"Authentication failed while accessing {target}. "
                f"Verify tenant_id, client_id and client_secret, or sign in with 'az login'. "
                f"Error: {error}"
            )
        if isinstance(error, HttpResponseError):
            if error.status_code == 403:
                return ProviderError(
                    f"Access denied to {target}. Ensure the 'Reader' role is assigned."
                )
            if error.status_code == 404:
                return ProviderError(f"{target} not found.")
            return ProviderError(f"Azure API error (status {error.status_code}) for {target}: {error}")
        return ProviderError(f"Azure error for {target}: {error}")

    def _fetch_subscriptions(self) -> list[SubscriptionRef]:
        client = self._subscription_client()
        return [
            SubscriptionRef(
                id=subscription.subscription_id,
                name=subscription.display_name or subscription.subscription_id,
            )
            for subscription in client.subscriptions.list()
        ]

    def _fetch_disks(self, subscription: SubscriptionRef) -> list[DiskRecord]:
        client = self._compute_client(subscription.id)
        return [self.to_disk_record(disk, subscription) for disk in client.disks.list()]

    async def list_subscriptions(self) -> list[SubscriptionRef]:
        try:
            subscriptions = await asyncio.to_thread(self._fetch_subscriptions)
        except AzureError as e:
            raise self._translate_error(e, "subscription list") from e

        logger.debug("azure.subscriptions_listed", count=len(subscriptions))
        return subscriptions

    async def list_disks(self, subscription: SubscriptionRef) -> list[DiskRecord]:
        try:
            disks = await asyncio.to_thread(self._fetch_disks, subscription)
        except AzureError as e:
            raise self._translate_error(e, f"subscription '{subscription.name}'") from e

        logger.debug(
            "azure.disks_listed",
            subscription_name=subscription.name,
            count=len(disks),
        )
        return disks
