"""
DDC/CI Controller - ddcutil-backed access to a single display
=============================================================

ddcutil does the actual I2C transport. This module runs one ddcutil command
at a time for a selected display, hands the raw capabilities string to the
parser, and uses the parsed report to refuse reads and writes the monitor
does not advertise.
"""

import subprocess
import re
import logging
import threading
import time
from typing import Optional, List, Tuple, Union
from dataclasses import dataclass

from .capabilities import CapabilityReport, parse_capabilities
from .vcp import VcpCode, feature_name, parse_vcp_code

logger = logging.getLogger(__name__)

CodeLike = Union[int, str]


@dataclass
class VcpReading:
    """Current value of a VCP feature as reported by ddcutil."""
    code: int
    name: str
    current_value: int
    max_value: int
    feature_type: str  # "C" (continuous) or "NC" (non-continuous)


class DDCError(Exception):
    """Exception raised for DDC communication errors."""
    pass


class DDCController:
    """
    Controller for one monitor through the ddcutil command-line tool.

    Capabilities are fetched and parsed on every call to
    ``get_capabilities``; callers keep the returned report for as long as
    they need it and pass it to ``get_vcp``/``set_vcp`` to guard access.
    """

    CAPABILITIES_RE = re.compile(r'capabilities string:\s*(.+?)\s*$', re.IGNORECASE | re.MULTILINE)

    # "VCP code 0x10 (Brightness): current value = 50, max value = 100"
    CONTINUOUS_RE = re.compile(
        r'VCP code 0x([0-9A-Fa-f]+)\s+\(([^)]+)\).*?'
        r'current value\s*=\s*(\d+).*?max value\s*=\s*(\d+)',
        re.IGNORECASE
    )

    # "VCP code 0x60 (Input Source): DisplayPort-1 (sl=0x0f)"
    NON_CONTINUOUS_RE = re.compile(
        r'VCP code 0x([0-9A-Fa-f]+)\s+\(([^)]+)\).*?'
        r'sl=0x([0-9A-Fa-f]+)',
        re.IGNORECASE
    )

    def __init__(
        self,
        display: Optional[int] = None,
        retry_count: int = 3,
        sleep_multiplier: float = 1.0,
    ):
        """
        Initialize DDC controller.

        Args:
            display: ddcutil display number (1-based), or None for the default
            retry_count: Number of attempts per command
            sleep_multiplier: Multiplier for ddcutil's inter-command delays
        """
        self.display = display
        self.retry_count = max(1, retry_count)
        self.sleep_multiplier = sleep_multiplier
        self._lock = threading.Lock()
        self._last_command_time = 0.0
        self._min_command_interval = 0.1 * sleep_multiplier

    def _build_display_args(self) -> List[str]:
        """Build ddcutil arguments for display selection."""
        args = ["--sleep-multiplier", f"{self.sleep_multiplier:.1f}"]
        if self.display is not None:
            args.extend(["--display", str(self.display)])
        return args

    def _run_ddcutil(self, command: List[str], timeout: float = 5.0) -> subprocess.CompletedProcess:
        """
        Run a ddcutil command with retry logic.

        Args:
            command: Command arguments to pass to ddcutil
            timeout: Command timeout in seconds

        Returns:
            CompletedProcess result

        Raises:
            DDCError: If command fails after retries
        """
        with self._lock:
            elapsed = time.time() - self._last_command_time
            if elapsed < self._min_command_interval:
                time.sleep(self._min_command_interval - elapsed)

            full_command = ["ddcutil"] + self._build_display_args() + command
            logger.debug(f"DDC[{self.display}] Running: {' '.join(full_command)}")

            last_error = None
            for attempt in range(self.retry_count):
                try:
                    result = subprocess.run(
                        full_command,
                        capture_output=True,
                        text=True,
                        timeout=timeout,
                        check=True,
                    )
                    self._last_command_time = time.time()
                    return result
                except subprocess.CalledProcessError as e:
                    last_error = e
                    stderr_msg = e.stderr.strip() if e.stderr else "(no stderr)"
                    logger.warning(
                        f"DDC[{self.display}] Command failed (attempt {attempt + 1}/{self.retry_count}): "
                        f"{' '.join(command)} → {stderr_msg}"
                    )
                except subprocess.TimeoutExpired as e:
                    last_error = e
                    logger.warning(
                        f"DDC[{self.display}] Command timed out (attempt {attempt + 1}/{self.retry_count}): "
                        f"{' '.join(command)}"
                    )
                except FileNotFoundError as e:
                    raise DDCError("ddcutil not found. Install with: sudo apt install ddcutil") from e
                if attempt < self.retry_count - 1:
                    time.sleep(0.3 * (attempt + 1))

            logger.error(f"DDC[{self.display}] All retries failed for '{' '.join(command)}'")
            raise DDCError(f"DDC command '{' '.join(command)}' failed after {self.retry_count} attempts: {last_error}")

    def get_capabilities_string(self) -> str:
        """
        Read the raw capabilities string from the monitor.

        Raises:
            DDCError: If ddcutil fails or prints no capabilities string
        """
        result = self._run_ddcutil(["capabilities", "--verbose"], timeout=30)
        match = self.CAPABILITIES_RE.search(result.stdout)
        if not match:
            raise DDCError(f"No capabilities string in ddcutil output for display {self.display}")
        return match.group(1)

    def get_capabilities(self) -> CapabilityReport:
        """Read and parse the monitor's capabilities."""
        raw = self.get_capabilities_string()
        logger.debug(f"DDC[{self.display}] Capabilities: {raw}")
        return parse_capabilities(raw)

    def get_vcp(self, feature_code: CodeLike, capabilities: Optional[CapabilityReport] = None) -> VcpReading:
        """
        Get current value of a VCP feature.

        Args:
            feature_code: VCP code as int or hex text
            capabilities: Report used to reject codes the monitor does not list

        Returns:
            VcpReading with current and max values

        Raises:
            DDCError: If the feature is unsupported or the read fails
            ValueError: If the feature code is malformed
        """
        code = parse_vcp_code(feature_code)
        name = feature_name(code)

        if capabilities is not None and not capabilities.supports(code):
            raise DDCError(f"Feature {name} (0x{code:02X}) is not supported by this monitor")

        logger.debug(f"Reading {name}...")
        result = self._run_ddcutil(["getvcp", f"0x{code:02x}"])

        match = self.CONTINUOUS_RE.search(result.stdout)
        if match:
            return VcpReading(
                code=int(match.group(1), 16),
                name=match.group(2),
                current_value=int(match.group(3)),
                max_value=int(match.group(4)),
                feature_type="C",
            )

        match = self.NON_CONTINUOUS_RE.search(result.stdout)
        if match:
            return VcpReading(
                code=int(match.group(1), 16),
                name=match.group(2),
                current_value=int(match.group(3), 16),
                max_value=255,
                feature_type="NC",
            )

        raise DDCError(f"Failed to parse VCP response: {result.stdout}")

    def set_vcp(
        self,
        feature_code: CodeLike,
        value: int,
        capabilities: Optional[CapabilityReport] = None,
    ) -> bool:
        """
        Set a VCP feature value.

        Args:
            feature_code: VCP code as int or hex text
            value: Value to set
            capabilities: Report used to refuse unsupported codes and values

        Returns:
            True if the monitor accepted the command
        """
        code = parse_vcp_code(feature_code)
        name = feature_name(code)

        if capabilities is not None:
            if not capabilities.supports(code):
                logger.warning(f"Refusing to set {name} (0x{code:02X}): not supported by this monitor")
                return False
            if not capabilities.allows_value(code, value):
                allowed = ", ".join(capabilities.get_feature(code).supported_values)
                logger.warning(f"Refusing to set {name} to 0x{value:02X}: monitor only lists [{allowed}]")
                return False

        try:
            self._run_ddcutil(["setvcp", f"0x{code:02x}", str(value)])
        except DDCError as e:
            logger.error(f"Failed to set {name}: {e}")
            return False

        logger.info(f"Set {name} to {value}")
        return True

    def set_input_source(self, value: int, capabilities: Optional[CapabilityReport] = None) -> bool:
        """Switch the monitor to another input."""
        return self.set_vcp(VcpCode.INPUT_SOURCE, value, capabilities)

    def get_input_source(self, capabilities: Optional[CapabilityReport] = None) -> int:
        """Get the currently selected input."""
        return self.get_vcp(VcpCode.INPUT_SOURCE, capabilities).current_value


def check_ddcutil_available() -> Tuple[bool, str]:
    """
    Check if ddcutil is installed and working.

    Returns:
        Tuple of (is_available, message)
    """
    try:
        result = subprocess.run(
            ["ddcutil", "--version"],
            capture_output=True,
            text=True,
            timeout=5,
        )
    except FileNotFoundError:
        return False, "ddcutil not found. Install with: sudo apt install ddcutil"
    except subprocess.TimeoutExpired:
        return False, "ddcutil timed out"

    if result.returncode != 0:
        return False, f"ddcutil error: {result.stderr.strip()}"
    version = result.stdout.splitlines()[0] if result.stdout else "unknown"
    return True, f"ddcutil found: {version}"
