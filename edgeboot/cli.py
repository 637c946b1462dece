import logging
import sys
import traceback

from edgeboot.cloud.azure.api import AzureSession
from edgeboot.cloud.provision import CloudProvisioner, ProvisionOutput
from edgeboot.config import RunConfig
from edgeboot.device.api import HttpDeviceApi
from edgeboot.device.commission import CommissionOutput, Commissioner
from edgeboot.errors import RemoteOperationError, ValidationError
from edgeboot.params.builder import (
    build_commissioning_parameters,
    build_mobile_network_parameters,
    write_parameter_file,
)
from edgeboot.params.loader import load_parameter_sheet
from edgeboot.params.models import ProvisioningParameters
from edgeboot.params.validators import validate_parameters
from edgeboot.utils.logging_setup import setup_logging
from edgeboot.utils.paths import OutputPaths

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_REMOTE_FAILURE = 1
EXIT_VALIDATION_FAILURE = 2


def prepare(config: RunConfig) -> ProvisioningParameters:
    """Load, validate and stage the parameter files."""
    raw = load_parameter_sheet(config.parameter_sheet)
    params = validate_parameters(raw)

    paths = OutputPaths(config.output_dir)
    paths.ensure()
    write_parameter_file(
        build_commissioning_parameters(params),
        paths.commissioning_parameters,
    )
    write_parameter_file(
        build_mobile_network_parameters(params),
        paths.mobile_network_parameters,
    )
    return params


def commission(
    config: RunConfig, params: ProvisioningParameters
) -> CommissionOutput:
    with HttpDeviceApi(
        device_ip=params.device_ip,
        username=params.device_username,
        password=params.device_password,
        verify_tls=config.verify_tls,
    ) as device:
        output = Commissioner(
            device=device,
            params=params,
            config_poll=config.config_poll,
            status_fetch=config.status_fetch,
            allowed_failures=config.allowed_failures,
            paths=OutputPaths(config.output_dir),
        ).run()
    logger.debug(f"Commissioning output: {output.to_dict()}")
    return output


def provision(
    config: RunConfig, params: ProvisioningParameters
) -> ProvisionOutput:
    with AzureSession(
        params.subscription_id, skip_login=config.skip_login
    ) as api:
        output = CloudProvisioner(
            params, arc_poll=config.arc_poll, api=api
        ).run()
    logger.debug(f"Provisioning output: {output.to_dict()}")
    return output


def main(argv: list[str] | None = None) -> int:
    try:
        config = RunConfig.parse(argv)
    except ValueError as e:
        setup_logging()
        logger.error(str(e))
        return EXIT_VALIDATION_FAILURE

    setup_logging(verbose=config.show_logs)
    logger.debug(f"Run configuration: {config.to_dict()}")

    try:
        params = prepare(config)
        if config.validate_only:
            logger.info("Validation complete, stopping (--validate-only)")
            return EXIT_OK

        commission(config, params)
        provision(config, params)
        logger.info(f"Provisioning of {params.ase_name} complete")
        return EXIT_OK
    except ValidationError as e:
        logger.error(f"Validation failed: {e}")
        return EXIT_VALIDATION_FAILURE
    except RemoteOperationError as e:
        logger.error(f"Failed: {e}")
        logger.debug(traceback.format_exc())
        return EXIT_REMOTE_FAILURE
    except Exception as e:
        logger.error(f"Failed: {str(e)}\n{traceback.format_exc()}")
        return EXIT_REMOTE_FAILURE


if __name__ == "__main__":
    sys.exit(main())
