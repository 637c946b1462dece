"""
Default values for provisioning runs.
"""

# Output
DEFAULT_OUTPUT_DIR = "edgeboot-output"

# Device configuration apply: poll every 30s, up to ~10 minutes
CONFIG_POLL_INTERVAL = 30
CONFIG_POLL_ATTEMPTS = 20

# Single status fetch: absorbs transient connectivity failures
STATUS_FETCH_INTERVAL = 5
STATUS_FETCH_ATTEMPTS = 3

# Arc attachment: poll every 60s, up to 30 minutes
ARC_POLL_INTERVAL = 60
ARC_POLL_ATTEMPTS = 30

# Device management API
DEVICE_API_PORT = 443
DEVICE_API_PREFIX = "api/v1"
DEVICE_REQUEST_TIMEOUT = 60

# Kubernetes on the appliance
DEFAULT_WORKLOAD_PROFILE = "AP5GC"
DEFAULT_KUBERNETES_ROLE = "kubernetesRole"
DEFAULT_ARC_ADDON = "arcName"

# Cloud
DEFAULT_IDENTITY_ROLE = "Contributor"
CUSTOM_LOCATION_NAMESPACE = "azurehybridnetwork"
ARC_ADDON_API_VERSION = "2022-03-01"
ARM_ENDPOINT = "https://management.azure.com"
CLI_EXTENSIONS = ("k8s-extension", "customlocation")
