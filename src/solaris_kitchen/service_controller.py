"""SMF service state and property management."""

import logging
import shlex

from .command_runner import CommandRunner
from .kitchen_models import CommandError, CommandSpec, PropertySpec, ServiceError

logger = logging.getLogger(__name__)


class ServiceController:
    """Converges SMF services through svcprop, svcadm and svccfg."""

    def __init__(self, runner: CommandRunner):
        self.runner = runner

    def is_enabled(self, fmri: str) -> bool:
        """Check the persistent enabled flag of a service instance."""
        result = self.runner.capture(f"svcprop -p general/enabled {shlex.quote(fmri)}")
        return result.succeeded and result.output.strip() == "true"

    def enable(self, fmri: str) -> bool:
        """
        Enable the service if it is not already enabled.

        Returns:
            True if svcadm was invoked

        Raises:
            ServiceError: If svcadm fails
        """
        if self.is_enabled(fmri):
            logger.debug(f"{fmri} already enabled")
            return False

        logger.info(f"Enabling {fmri}")
        self._execute(fmri, f"svcadm enable -s {shlex.quote(fmri)}")
        return True

    def set_property(self, spec: PropertySpec) -> None:
        """
        Set an SMF property and refresh the instance.

        The value is always written so the property converges to the desired
        value regardless of its current state.

        Raises:
            ServiceError: If svccfg or svcadm refresh fails
        """
        logger.info(f"Setting {spec.identifier} = {spec.value}")
        fmri = shlex.quote(spec.fmri)
        value = shlex.quote(spec.value)
        self._execute(spec.fmri, f"svccfg -s {fmri} setprop {spec.name} = {spec.type}: {value}")
        self._execute(spec.fmri, f"svcadm refresh {fmri}")

    def _execute(self, fmri: str, command: str) -> None:
        try:
            self.runner.execute(CommandSpec(command))
        except CommandError as e:
            raise ServiceError(fmri, str(e)) from e
