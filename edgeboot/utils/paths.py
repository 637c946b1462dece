from dataclasses import dataclass
from pathlib import Path


@dataclass
class OutputPaths:
    def __init__(self, output_dir: str):
        self.output_dir = Path(output_dir)

    def ensure(self) -> None:
        self.output_dir.mkdir(parents=True, exist_ok=True)

    @property
    def commissioning_parameters(self) -> Path:
        return self.output_dir / "commissioning.parameters.json"

    @property
    def mobile_network_parameters(self) -> Path:
        return self.output_dir / "mobile-network.parameters.json"

    @property
    def current_device_configuration(self) -> Path:
        return self.output_dir / "device-configuration.current.json"

    @property
    def desired_device_configuration(self) -> Path:
        return self.output_dir / "device-configuration.desired.json"
