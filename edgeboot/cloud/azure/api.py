#!/usr/bin/env python3
"""
Azure API functionality.
Azure CLI wrapper for the cloud side of provisioning.
"""

import json
import logging
import subprocess
from typing import Any

from edgeboot.errors import RemoteOperationError

logger = logging.getLogger(__name__)


class AzureApi:
    """Wrapper for Azure CLI commands."""

    @staticmethod
    def run_command(
        cmd: list[str],
        show_logs: bool = False,
    ) -> subprocess.CompletedProcess:
        """Execute an Azure CLI command."""
        try:
            result = subprocess.run(
                cmd,
                capture_output=not show_logs,
                text=True,
                check=True,
            )
            return result
        except subprocess.CalledProcessError as e:
            logger.info(f"Command failed: {' '.join(cmd)}")
            logger.info(f"Error: {e.stderr}")
            raise

    @classmethod
    def run_operation(
        cls,
        operation: str,
        cmd: list[str],
        show_logs: bool = False,
    ) -> str:
        """Run a command, surfacing failure as RemoteOperationError."""
        try:
            result = cls.run_command(cmd, show_logs=show_logs)
        except subprocess.CalledProcessError as e:
            stderr = (e.stderr or "").strip() or f"exit code {e.returncode}"
            raise RemoteOperationError(operation, stderr) from e
        except FileNotFoundError as e:
            raise RemoteOperationError(
                operation, f"'{cmd[0]}' command not found"
            ) from e
        return (result.stdout or "").strip()

    @classmethod
    def run_json(cls, operation: str, cmd: list[str]) -> Any:
        """Run a command with JSON output and parse it."""
        output = cls.run_operation(operation, [*cmd, "-o", "json"])
        if not output:
            return None
        try:
            return json.loads(output)
        except json.JSONDecodeError as e:
            raise RemoteOperationError(
                operation, f"unexpected output: {output[:200]}"
            ) from e

    @staticmethod
    def check_dependencies():
        """Check if required tools are installed."""
        tools = ["az"]
        for tool in tools:
            try:
                subprocess.run(
                    [tool, "--version"], capture_output=True, check=True
                )
            except (subprocess.CalledProcessError, FileNotFoundError) as e:
                raise RuntimeError(
                    f"Error: '{tool}' command not found. Please install {tool}."
                ) from e

    # Session

    @classmethod
    def login(cls) -> None:
        logger.info("Signing in to Azure")
        cls.run_operation("Azure login", ["az", "login"], show_logs=True)

    @classmethod
    def logout(cls) -> None:
        cls.run_operation("Azure logout", ["az", "logout"])

    @classmethod
    def set_subscription(cls, subscription_id: str) -> None:
        logger.info(f"Using subscription {subscription_id}")
        cmd = ["az", "account", "set", "--subscription", subscription_id]
        cls.run_operation("Set subscription", cmd)

    # Identity and roles

    @classmethod
    def get_principal_id(cls, resource_id: str) -> str:
        """Get the managed identity principal id of a resource."""
        cmd = [
            "az",
            "resource",
            "show",
            "--ids",
            resource_id,
            "--query",
            "identity.principalId",
            "-o",
            "tsv",
        ]
        principal_id = cls.run_operation("Get managed identity", cmd)
        if not principal_id or principal_id == "None":
            raise RemoteOperationError(
                "Get managed identity",
                f"{resource_id} has no managed identity",
            )
        return principal_id

    @classmethod
    def role_assignment_exists(
        cls, principal_id: str, role: str, scope: str
    ) -> bool:
        cmd = [
            "az",
            "role",
            "assignment",
            "list",
            "--assignee",
            principal_id,
            "--role",
            role,
            "--scope",
            scope,
        ]
        assignments = cls.run_json("List role assignments", cmd)
        return bool(assignments)

    @classmethod
    def create_role_assignment(
        cls, principal_id: str, role: str, scope: str
    ) -> None:
        logger.info(f"Assigning role {role} to {principal_id} on {scope}")
        cmd = [
            "az",
            "role",
            "assignment",
            "create",
            "--assignee-object-id",
            principal_id,
            "--assignee-principal-type",
            "ServicePrincipal",
            "--role",
            role,
            "--scope",
            scope,
        ]
        cls.run_operation("Create role assignment", cmd)

    # ARM REST

    @classmethod
    def rest_put(cls, operation: str, uri: str, body: dict[str, Any]) -> Any:
        cmd = [
            "az",
            "rest",
            "--method",
            "put",
            "--uri",
            uri,
            "--body",
            json.dumps(body),
        ]
        return cls.run_json(operation, cmd)

    @classmethod
    def rest_get(cls, operation: str, uri: str) -> Any:
        cmd = ["az", "rest", "--method", "get", "--uri", uri]
        return cls.run_json(operation, cmd)

    # Extensions

    @classmethod
    def add_cli_extension(cls, name: str) -> None:
        logger.info(f"Ensuring az CLI extension {name} is installed")
        cmd = ["az", "extension", "add", "--upgrade", "--yes", "--name", name]
        cls.run_operation(f"Add CLI extension {name}", cmd)

    @classmethod
    def create_cluster_extension(
        cls,
        name: str,
        extension_type: str,
        cluster_name: str,
        resource_group: str,
        release_train: str,
        config_settings: dict[str, str] | None = None,
    ) -> str:
        """Create a cluster extension on a connected cluster.

        Returns:
            The extension's resource id
        """
        logger.info(f"Creating cluster extension {name} ({extension_type})")
        cmd = [
            "az",
            "k8s-extension",
            "create",
            "--name",
            name,
            "--cluster-name",
            cluster_name,
            "--resource-group",
            resource_group,
            "--cluster-type",
            "connectedClusters",
            "--extension-type",
            extension_type,
            "--scope",
            "cluster",
            "--release-train",
            release_train,
            "--auto-upgrade",
            "false",
        ]
        if config_settings:
            cmd.append("--config")
            cmd.extend(f"{k}={v}" for k, v in config_settings.items())
        extension = cls.run_json(f"Create cluster extension {name}", cmd)
        return (extension or {}).get("id", "")

    @classmethod
    def create_custom_location(
        cls,
        name: str,
        resource_group: str,
        location: str,
        namespace: str,
        host_resource_id: str,
        cluster_extension_ids: list[str],
    ) -> None:
        logger.info(f"Creating custom location {name}")
        cmd = [
            "az",
            "customlocation",
            "create",
            "--name",
            name,
            "--resource-group",
            resource_group,
            "--location",
            location,
            "--namespace",
            namespace,
            "--host-resource-id",
            host_resource_id,
            "--cluster-extension-ids",
            *cluster_extension_ids,
        ]
        cls.run_operation(f"Create custom location {name}", cmd)

    # Resource groups

    @classmethod
    def resource_group_exists(cls, name: str) -> bool:
        """Check if resource group exists."""
        try:
            cmd = ["az", "group", "show", "--name", name]
            cls.run_command(cmd)
            return True
        except subprocess.CalledProcessError:
            return False

    @classmethod
    def create_resource_group(cls, name: str, location: str) -> None:
        """Create a resource group."""
        logger.info(f"Creating resource group: {name} in {location}")
        cmd = ["az", "group", "create", "--name", name, "--location", location]
        cls.run_operation(f"Create resource group {name}", cmd)


class AzureSession:
    """Authenticated az CLI session, scoped to one provisioning run.

    Signs in on entry unless ``skip_login`` is set, and signs out on exit
    only if it signed in.
    """

    def __init__(
        self,
        subscription_id: str,
        skip_login: bool = False,
        api: type[AzureApi] = AzureApi,
    ):
        self.subscription_id = subscription_id
        self.skip_login = skip_login
        self.api = api
        self.logged_in = False

    def __enter__(self) -> type[AzureApi]:
        self.api.check_dependencies()
        if self.skip_login:
            logger.info("Skipping login, reusing the current az session")
        else:
            self.api.login()
            self.logged_in = True
        try:
            self.api.set_subscription(self.subscription_id)
        except BaseException:
            self.__exit__(None, None, None)
            raise
        return self.api

    def __exit__(self, exc_type, exc, tb) -> None:
        if self.logged_in:
            try:
                self.api.logout()
            except RemoteOperationError as e:
                logger.warning(f"Could not sign out of Azure: {e}")
            self.logged_in = False
