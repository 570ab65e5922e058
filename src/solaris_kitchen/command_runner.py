"""Run OS administration commands with idempotence guards."""

import logging
import os
import subprocess
import sys
from typing import List, Optional, TextIO

from .kitchen_models import CommandError, CommandResult, CommandSpec

logger = logging.getLogger(__name__)


class CommandRunner:
    """Executes shell commands on the local host.

    A command is skipped when its check command exits zero or its guard path
    exists. A non-zero exit from the check command is the normal "not yet
    applied" signal, not an error.
    """

    def __init__(self, shell: str = "/bin/sh", stream: Optional[TextIO] = None):
        """
        Initialize the runner.

        Args:
            shell: Shell used to interpret commands
            stream: Where live output is echoed (defaults to sys.stdout)
        """
        self.shell = shell
        self.stream = stream

    def is_satisfied(self, spec: CommandSpec) -> bool:
        """Check whether the command's effect is already present."""
        if spec.guard_path is not None and os.path.exists(spec.guard_path):
            logger.debug(f"Guard path {spec.guard_path} exists, skipping {spec.command!r}")
            return True

        if spec.check_command is not None:
            result = self.capture(spec.check_command)
            if result.succeeded:
                logger.debug(f"Check {spec.check_command!r} passed, skipping {spec.command!r}")
                return True
            logger.debug(f"Check {spec.check_command!r} exited {result.exit_code}")

        return False

    def capture(self, command: str) -> CommandResult:
        """Run a read-only query and return its result without raising."""
        try:
            result = subprocess.run(
                command,
                shell=True,
                executable=self.shell,
                capture_output=True,
                text=True,
                errors="replace",
            )
        except OSError as e:
            logger.warning(f"Failed to start {command!r}: {e}")
            return CommandResult(command=command, exit_code=127, output=str(e))

        return CommandResult(
            command=command, exit_code=result.returncode, output=result.stdout + result.stderr
        )

    def execute(self, spec: CommandSpec) -> CommandResult:
        """
        Run the command unconditionally.

        Raises:
            CommandError: If the command exits non-zero or cannot be started
        """
        logger.info(f"Running {spec.command!r}")

        try:
            if spec.live_stream:
                exit_code, output = self._run_streaming(spec.command)
            else:
                result = subprocess.run(
                    spec.command,
                    shell=True,
                    executable=self.shell,
                    capture_output=True,
                    text=True,
                    errors="replace",
                )
                exit_code, output = result.returncode, result.stdout + result.stderr
        except OSError as e:
            raise CommandError(spec.command, 127, str(e)) from e

        if exit_code != 0:
            logger.error(f"Command {spec.command!r} failed with exit code {exit_code}")
            raise CommandError(spec.command, exit_code, output)

        return CommandResult(command=spec.command, exit_code=exit_code, output=output)

    def run(self, spec: CommandSpec) -> CommandResult:
        """Run the command unless its guard says it is already applied."""
        if self.is_satisfied(spec):
            return CommandResult(command=spec.command, skipped=True)
        return self.execute(spec)

    def _run_streaming(self, command: str) -> tuple[int, str]:
        """Run command, echoing combined stdout/stderr line by line."""
        stream = self.stream or sys.stdout
        lines: List[str] = []

        with subprocess.Popen(
            command,
            shell=True,
            executable=self.shell,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            text=True,
            errors="replace",
            bufsize=1,
        ) as process:
            for line in process.stdout:
                stream.write(line)
                stream.flush()
                lines.append(line)
            exit_code = process.wait()

        return exit_code, "".join(lines)
