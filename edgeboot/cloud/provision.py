import logging
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from edgeboot.cloud.azure.api import AzureApi
from edgeboot.config.defaults import (
    ARC_ADDON_API_VERSION,
    ARM_ENDPOINT,
    CLI_EXTENSIONS,
    CUSTOM_LOCATION_NAMESPACE,
    DEFAULT_ARC_ADDON,
    DEFAULT_IDENTITY_ROLE,
    DEFAULT_KUBERNETES_ROLE,
)
from edgeboot.params.models import ProvisioningParameters
from edgeboot.utils.polling import RetryPolicy, poll_until

logger = logging.getLogger(__name__)

ARC_STATE_CREATED = "Created"


@dataclass(frozen=True)
class ClusterExtension:
    name: str
    extension_type: str
    release_train: str = "stable"


NETWORK_FUNCTION_OPERATOR = ClusterExtension(
    name="networkfunction-operator",
    extension_type="Microsoft.Azure.HybridNetwork",
)
PACKET_CORE_MONITOR = ClusterExtension(
    name="packet-core-monitor",
    extension_type="Microsoft.Azure.MobileNetwork.PacketCoreMonitor",
)


def arc_addon_uri(
    params: ProvisioningParameters,
    kubernetes_role: str = DEFAULT_KUBERNETES_ROLE,
    addon: str = DEFAULT_ARC_ADDON,
) -> str:
    return (
        f"{ARM_ENDPOINT}{params.ase_resource_id}"
        f"/roles/{kubernetes_role}/addons/{addon}"
        f"?api-version={ARC_ADDON_API_VERSION}"
    )


def arc_addon_body(params: ProvisioningParameters) -> dict[str, Any]:
    return {
        "kind": "ArcForKubernetes",
        "properties": {
            "subscriptionId": params.subscription_id,
            "resourceGroupName": params.resource_group,
            "resourceName": params.arc_cluster_name,
            "resourceLocation": params.location,
        },
    }


def _provisioning_state(addon: Any) -> str:
    if not isinstance(addon, dict):
        return "<empty>"
    return str((addon.get("properties") or {}).get("provisioningState"))


@dataclass
class ProvisionOutput:
    principal_id: str
    role_created: bool
    extension_ids: dict[str, str]
    custom_location_id: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "principalId": self.principal_id,
            "roleCreated": self.role_created,
            "extensionIds": self.extension_ids,
            "customLocationId": self.custom_location_id,
        }


class CloudProvisioner:
    """Runs the cloud control-plane steps for an attached appliance."""

    def __init__(
        self,
        params: ProvisioningParameters,
        arc_poll: RetryPolicy,
        api: type[AzureApi] = AzureApi,
        identity_role: str = DEFAULT_IDENTITY_ROLE,
        kubernetes_role: str = DEFAULT_KUBERNETES_ROLE,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.params = params
        self.arc_poll = arc_poll
        self.api = api
        self.identity_role = identity_role
        self.kubernetes_role = kubernetes_role
        self.sleep = sleep

    def ensure_identity_role(self) -> tuple[str, bool]:
        """Grant the appliance identity its role unless already granted.

        Returns:
            The principal id and whether an assignment was created
        """
        principal_id = self.api.get_principal_id(self.params.ase_resource_id)
        scope = self.params.resource_group_id
        if self.api.role_assignment_exists(
            principal_id, self.identity_role, scope
        ):
            logger.info(
                f"Role {self.identity_role} already assigned to "
                f"{principal_id}, skipping"
            )
            return principal_id, False
        self.api.create_role_assignment(principal_id, self.identity_role, scope)
        return principal_id, True

    def attach_arc(self) -> dict[str, Any]:
        uri = arc_addon_uri(self.params, self.kubernetes_role)
        logger.info(
            f"Creating Arc attachment for {self.params.arc_cluster_name}"
        )
        self.api.rest_put(
            "Create Arc attachment", uri, arc_addon_body(self.params)
        )
        return poll_until(
            "Arc attachment",
            lambda: self.api.rest_get("Get Arc attachment", uri),
            lambda addon: _provisioning_state(addon) == ARC_STATE_CREATED,
            self.arc_poll,
            describe=_provisioning_state,
            sleep=self.sleep,
        )

    def install_extensions(self) -> dict[str, str]:
        for extension in CLI_EXTENSIONS:
            self.api.add_cli_extension(extension)

        extension_ids = {}
        for extension, config in (
            (
                NETWORK_FUNCTION_OPERATOR,
                {
                    "networkFunctionOperator.customLocationId": (
                        self.params.custom_location_id
                    )
                },
            ),
            (PACKET_CORE_MONITOR, None),
        ):
            extension_ids[extension.name] = self.api.create_cluster_extension(
                name=extension.name,
                extension_type=extension.extension_type,
                cluster_name=self.params.arc_cluster_name,
                resource_group=self.params.resource_group,
                release_train=extension.release_train,
                config_settings=config,
            )
        return extension_ids

    def create_custom_location(self, extension_ids: dict[str, str]) -> str:
        nfo_id = extension_ids.get(NETWORK_FUNCTION_OPERATOR.name) or (
            f"{self.params.connected_cluster_id}/providers/"
            f"Microsoft.KubernetesConfiguration/extensions/"
            f"{NETWORK_FUNCTION_OPERATOR.name}"
        )
        self.api.create_custom_location(
            name=self.params.custom_location_name,
            resource_group=self.params.resource_group,
            location=self.params.location,
            namespace=CUSTOM_LOCATION_NAMESPACE,
            host_resource_id=self.params.connected_cluster_id,
            cluster_extension_ids=[nfo_id],
        )
        return self.params.custom_location_id

    def ensure_packet_core_resource_group(self) -> None:
        name = self.params.packet_core_resource_group
        if self.api.resource_group_exists(name):
            logger.info(f"Resource group {name} already exists, skipping")
            return
        self.api.create_resource_group(name, self.params.location)

    def run(self) -> ProvisionOutput:
        principal_id, role_created = self.ensure_identity_role()
        self.attach_arc()
        extension_ids = self.install_extensions()
        custom_location_id = self.create_custom_location(extension_ids)
        self.ensure_packet_core_resource_group()
        logger.info("Cloud provisioning complete")
        return ProvisionOutput(
            principal_id=principal_id,
            role_created=role_created,
            extension_ids=extension_ids,
            custom_location_id=custom_location_id,
        )
