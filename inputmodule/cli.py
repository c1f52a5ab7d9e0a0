"""Typer CLI entrypoint."""

from __future__ import annotations

import logging
import time

import typer

from inputmodule.core.commands import send
from inputmodule.core.errors import DeviceSelectionError, InputModuleError, TransportSendError
from inputmodule.core.manager import InputModuleManager
from inputmodule.core.model import ModuleType
from inputmodule.core.protocol import (
    Animate,
    Bootloader,
    Brightness,
    Command,
    GetAnimate,
    GetBrightness,
    GetSleep,
    Pattern,
    PatternType,
    Sleep,
    Version,
)
from inputmodule.transports.base import InputModule

app = typer.Typer(help="Control Framework input modules over their USB serial protocol")

_ON_OFF = {"on": True, "off": False}

TypeOption = typer.Option(ModuleType.LED_MATRIX, "--type", help="Module type")
IndexOption = typer.Option(0, "--index", min=0, help="Position among modules of that type")


def _positive_timeout(value: float | None) -> float | None:
    if value is not None and value <= 0:
        raise typer.BadParameter("must be greater than 0")
    return value


TimeoutOption = typer.Option(
    None, "--timeout", callback=_positive_timeout, help="Reply timeout in seconds"
)


@app.callback()
def main(verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging")) -> None:
    logging.basicConfig(level=logging.DEBUG if verbose else logging.WARNING)


def _build_manager(read_timeout_s: float | None = None) -> InputModuleManager:
    manager = InputModuleManager(read_timeout_s=read_timeout_s)
    for warning in getattr(manager, "load_warnings", ()):
        typer.echo(f"Warning: {warning}", err=True)
    for warning in getattr(manager, "runtime_warnings", ()):
        typer.echo(f"Warning: {warning}", err=True)
    return manager


def _select(manager: InputModuleManager, module_type: ModuleType, index: int) -> InputModule:
    module = manager.get_input_module(module_type, index)
    if module is None:
        available = manager.is_type_available(module_type)
        raise DeviceSelectionError(
            f"No {module_type.value} module at index {index} ({available} available)"
        )
    if not module.is_valid():
        raise DeviceSelectionError(
            f"{module_type.value} module at {module.device_path} could not be opened"
        )
    return module


def _write(module: InputModule, payload: Command) -> None:
    written = send(module, payload)
    if written < 0:
        raise TransportSendError(f"Write to {module.device_path} failed")


def _parse_toggle(value: str) -> bool:
    try:
        return _ON_OFF[value.lower()]
    except KeyError:
        raise typer.BadParameter("expected 'on' or 'off'") from None


def _parse_pattern(name: str) -> PatternType:
    try:
        return PatternType[name.upper().replace("-", "_")]
    except KeyError:
        available = ", ".join(p.name.lower().replace("_", "-") for p in PatternType)
        raise typer.BadParameter(f"unknown pattern '{name}'. Available: {available}") from None


@app.command("devices")
def list_devices() -> None:
    """List discovered input modules."""
    try:
        with _build_manager() as manager:
            found = False
            for module_type, index, module in manager.modules():
                found = True
                state = "ok" if module.is_valid() else "invalid"
                typer.echo(f"{module_type.value}[{index}] {module.device_path} ({state})")
            if not found:
                typer.echo("No input modules found")
    except InputModuleError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from None


@app.command("version")
def show_version(
    module_type: ModuleType = TypeOption,
    index: int = IndexOption,
    timeout: float | None = TimeoutOption,
) -> None:
    """Print the firmware version of a module."""
    try:
        with _build_manager(timeout) as manager:
            module = _select(manager, module_type, index)
            reply = send(module, Version(), strict=True)
            typer.echo(str(reply))
    except InputModuleError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from None


@app.command("brightness")
def set_brightness(
    value: int | None = typer.Argument(None, min=0, max=255),
    module_type: ModuleType = TypeOption,
    index: int = IndexOption,
    timeout: float | None = TimeoutOption,
) -> None:
    """Set the brightness (0-255). Without VALUE, print the current brightness."""
    try:
        with _build_manager(timeout) as manager:
            module = _select(manager, module_type, index)
            if value is None:
                typer.echo(str(send(module, GetBrightness(), strict=True).brightness))
                return
            _write(module, Brightness(brightness=value))
            typer.echo(f"Brightness set to {value}")
    except InputModuleError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from None


@app.command("sleep")
def set_sleep(
    state: str | None = typer.Argument(None, help="on or off"),
    module_type: ModuleType = TypeOption,
    index: int = IndexOption,
    timeout: float | None = TimeoutOption,
) -> None:
    """Put a module to sleep or wake it. Without STATE, print the sleep state."""
    try:
        with _build_manager(timeout) as manager:
            module = _select(manager, module_type, index)
            if state is None:
                sleeping = send(module, GetSleep(), strict=True).sleeping
                typer.echo("on" if sleeping else "off")
                return
            _write(module, Sleep(sleeping=_parse_toggle(state)))
            typer.echo(f"Sleep {state.lower()}")
    except InputModuleError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from None


@app.command("animate")
def set_animate(
    state: str | None = typer.Argument(None, help="on or off"),
    module_type: ModuleType = TypeOption,
    index: int = IndexOption,
    timeout: float | None = TimeoutOption,
) -> None:
    """Start or stop scrolling. Without STATE, print the animation state."""
    try:
        with _build_manager(timeout) as manager:
            module = _select(manager, module_type, index)
            if state is None:
                animating = send(module, GetAnimate(), strict=True).animating
                typer.echo("on" if animating else "off")
                return
            _write(module, Animate(animate=_parse_toggle(state)))
            typer.echo(f"Animate {state.lower()}")
    except InputModuleError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from None


@app.command("pattern")
def show_pattern(
    name: str,
    extra: int = typer.Option(0, "--extra", min=0, max=255, help="Pattern parameter, e.g. percentage"),
    module_type: ModuleType = TypeOption,
    index: int = IndexOption,
) -> None:
    """Display one of the built-in firmware patterns."""
    pattern = _parse_pattern(name)
    try:
        with _build_manager() as manager:
            module = _select(manager, module_type, index)
            _write(module, Pattern(pattern=pattern, extra=extra))
            typer.echo(f"Pattern {pattern.name.lower().replace('_', '-')}")
    except InputModuleError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from None


@app.command("sweep")
def percentage_sweep(
    brightness: int = typer.Option(30, "--brightness", min=0, max=255),
    delay: float = typer.Option(0.1, "--delay", min=0.0, help="Seconds between steps"),
    module_type: ModuleType = TypeOption,
    index: int = IndexOption,
) -> None:
    """Sweep the percentage pattern from 0 to 100, then scroll a zigzag."""
    try:
        with _build_manager() as manager:
            module = _select(manager, module_type, index)
            _write(module, Sleep(sleeping=False))
            _write(module, Animate(animate=False))
            _write(module, Brightness(brightness=brightness))
            for percent in range(101):
                _write(module, Pattern(pattern=PatternType.PERCENTAGE, extra=percent))
                time.sleep(delay)
            _write(module, Pattern(pattern=PatternType.ZIG_ZAG))
            _write(module, Animate(animate=True))
            typer.echo("Sweep done")
    except InputModuleError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from None


@app.command("bootloader")
def jump_to_bootloader(
    module_type: ModuleType = TypeOption,
    index: int = IndexOption,
) -> None:
    """Reboot a module into its bootloader for flashing."""
    try:
        with _build_manager() as manager:
            module = _select(manager, module_type, index)
            _write(module, Bootloader())
            typer.echo(f"Bootloader requested on {module.device_path}")
    except InputModuleError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from None


def run() -> None:
    app()


if __name__ == "__main__":
    run()
