"""Bootstrap an edge appliance into a cloud-managed mobile network."""

__version__ = "0.1.0"
