"""Discovery and ownership of input module transports."""

from __future__ import annotations

import logging
import os
from collections.abc import Callable, Iterator

from serial.tools import list_ports

from inputmodule.core.device_match import classify_port
from inputmodule.core.errors import DeviceDiscoveryError
from inputmodule.core.model import DetectedPort, ModuleType, Profile
from inputmodule.core.profile_loader import load_profiles
from inputmodule.transports.base import InputModule
from inputmodule.transports.posix import SerialInputModule

TransportFactory = Callable[[ModuleType, str, float | None], InputModule]
LOGGER = logging.getLogger(__name__)


class InputModuleManager:
    """Finds the host's input modules once and owns their transports.

    Modules of a type are indexed in the order the host enumerated them. An
    index is a position in that list, not a stable hardware slot. The registry
    is not rescanned, so it can be read from several threads without locking;
    a single transport must still be used by one thread at a time.
    """

    def __init__(
        self,
        *,
        profiles: dict[str, Profile] | None = None,
        read_timeout_s: float | None = None,
        transport_factory: TransportFactory | None = None,
        enumerate_ports: Callable[[], list[DetectedPort]] | None = None,
    ) -> None:
        if profiles is None:
            loaded = load_profiles()
            self.profiles = loaded.profiles
            self.load_warnings = loaded.warnings
        else:
            self.profiles = dict(profiles)
            self.load_warnings = ()
        self.runtime_warnings = _runtime_warnings()
        self._read_timeout_s = read_timeout_s
        self._transport_factory = transport_factory or _open_serial_module
        self._enumerate_ports = enumerate_ports or _enumerate_serial_ports
        self._modules: dict[ModuleType, list[InputModule]] = {}

        if self.runtime_warnings:
            LOGGER.warning("Skipping discovery: %s", "; ".join(self.runtime_warnings))
        else:
            self._discover()

    def _discover(self) -> None:
        try:
            ports = self._enumerate_ports()
        except DeviceDiscoveryError as exc:
            LOGGER.warning("%s", exc)
            return

        for port in ports:
            match = classify_port(port, self.profiles)
            if match is None:
                LOGGER.debug("Skipping %s (serial %r): no profile match", port.device, port.serial_number)
                continue
            if not port.device:
                LOGGER.debug("Skipping %s match without a device node", match.module_type.value)
                continue

            read_timeout_s = self._read_timeout_s
            if read_timeout_s is None:
                read_timeout_s = match.profile.transport.read_timeout_s
            module = self._transport_factory(match.module_type, port.device, read_timeout_s)
            self._modules.setdefault(match.module_type, []).append(module)
            LOGGER.debug(
                "Registered %s #%d at %s",
                match.module_type.value,
                len(self._modules[match.module_type]) - 1,
                port.device,
            )

    def get_input_module(self, module_type: ModuleType, index: int = 0) -> InputModule | None:
        """Return the ``index``-th module of ``module_type``, or None.

        The manager keeps ownership; the returned transport must not be used
        after ``close()``.
        """
        modules = self._modules.get(module_type)
        if not modules or index < 0 or index >= len(modules):
            return None
        return modules[index]

    def is_type_available(self, module_type: ModuleType) -> int:
        return len(self._modules.get(module_type, ()))

    def modules(self) -> Iterator[tuple[ModuleType, int, InputModule]]:
        for module_type in ModuleType:
            for index, module in enumerate(self._modules.get(module_type, ())):
                yield module_type, index, module

    def close(self) -> None:
        for _, _, module in self.modules():
            module.close()

    def __enter__(self) -> InputModuleManager:
        return self

    def __exit__(self, exc_type: object, exc_val: object, exc_tb: object) -> None:
        self.close()


def _open_serial_module(module_type: ModuleType, device_path: str, read_timeout_s: float | None) -> InputModule:
    return SerialInputModule(module_type, device_path, read_timeout_s=read_timeout_s)


def _enumerate_serial_ports() -> list[DetectedPort]:
    try:
        ports = list_ports.comports()
    except OSError as exc:
        raise DeviceDiscoveryError(f"Serial port enumeration failed: {exc}") from exc
    return [DetectedPort(device=p.device or "", serial_number=p.serial_number) for p in ports]


def _runtime_warnings() -> tuple[str, ...]:
    warnings: list[str] = []
    if os.name != "posix":
        warnings.append(
            "Input module transport requires a POSIX serial stack; no modules will be discovered."
        )
    return tuple(warnings)
