from __future__ import annotations

from typer.testing import CliRunner

from inputmodule import cli
from inputmodule.core.model import ModuleType


class FakeModule:
    def __init__(self, *, valid: bool = True, reply: bytes = bytes(32)) -> None:
        self.module_type = ModuleType.LED_MATRIX
        self.device_path = "/dev/ttyACM0"
        self.valid = valid
        self.reply = reply
        self.writes: list[bytes] = []

    def is_valid(self) -> bool:
        return self.valid

    def write(self, data: bytes) -> int:
        self.writes.append(data)
        return len(data)

    def read(self, size: int) -> bytes:
        return self.reply

    def close(self) -> None:
        pass


def _fake_manager(modules: dict[ModuleType, list[FakeModule]], warnings: tuple[str, ...] = ()):
    class FakeManager:
        def __init__(self, read_timeout_s: float | None = None) -> None:
            self.read_timeout_s = read_timeout_s
            self.load_warnings = warnings
            self.runtime_warnings = ()

        def get_input_module(self, module_type: ModuleType, index: int = 0):
            found = modules.get(module_type, [])
            return found[index] if 0 <= index < len(found) else None

        def is_type_available(self, module_type: ModuleType) -> int:
            return len(modules.get(module_type, []))

        def modules(self):
            for module_type, found in modules.items():
                for index, module in enumerate(found):
                    yield module_type, index, module

        def __enter__(self):
            return self

        def __exit__(self, *exc_info) -> None:
            pass

    return FakeManager


runner = CliRunner()


def test_devices_command(monkeypatch):
    monkeypatch.setattr(cli, "InputModuleManager", _fake_manager({ModuleType.LED_MATRIX: [FakeModule()]}))
    result = runner.invoke(cli.app, ["devices"])
    assert result.exit_code == 0
    assert "LEDMatrix[0] /dev/ttyACM0 (ok)" in result.stdout


def test_devices_command_without_modules(monkeypatch):
    monkeypatch.setattr(cli, "InputModuleManager", _fake_manager({}))
    result = runner.invoke(cli.app, ["devices"])
    assert result.exit_code == 0
    assert "No input modules found" in result.stdout


def test_version_command(monkeypatch):
    module = FakeModule(reply=bytes([1, 0x23, 1]) + bytes(29))
    monkeypatch.setattr(cli, "InputModuleManager", _fake_manager({ModuleType.LED_MATRIX: [module]}))
    result = runner.invoke(cli.app, ["version"])
    assert result.exit_code == 0
    assert "1.2.3-pre" in result.stdout
    assert module.writes == [bytes.fromhex("32ac20")]


def test_version_short_reply_is_clean_error(monkeypatch):
    module = FakeModule(reply=b"")
    monkeypatch.setattr(cli, "InputModuleManager", _fake_manager({ModuleType.LED_MATRIX: [module]}))
    result = runner.invoke(cli.app, ["version"])
    assert result.exit_code == 1
    assert "Error:" in result.stderr
    assert "Traceback" not in result.stderr


def test_brightness_command(monkeypatch):
    module = FakeModule()
    monkeypatch.setattr(cli, "InputModuleManager", _fake_manager({ModuleType.LED_MATRIX: [module]}))
    result = runner.invoke(cli.app, ["brightness", "200"])
    assert result.exit_code == 0
    assert "Brightness set to 200" in result.stdout
    assert module.writes == [bytes([0x32, 0xAC, 0x00, 0xC8])]


def test_brightness_without_value_reads_it_back(monkeypatch):
    module = FakeModule(reply=bytes([80]) + bytes(31))
    monkeypatch.setattr(cli, "InputModuleManager", _fake_manager({ModuleType.LED_MATRIX: [module]}))
    result = runner.invoke(cli.app, ["brightness"])
    assert result.exit_code == 0
    assert result.stdout.strip() == "80"
    assert module.writes == [bytes.fromhex("32ac00")]


def test_sleep_command(monkeypatch):
    module = FakeModule()
    monkeypatch.setattr(cli, "InputModuleManager", _fake_manager({ModuleType.LED_MATRIX: [module]}))
    result = runner.invoke(cli.app, ["sleep", "off"])
    assert result.exit_code == 0
    assert module.writes == [bytes.fromhex("32ac0300")]


def test_sleep_rejects_unknown_state(monkeypatch):
    monkeypatch.setattr(cli, "InputModuleManager", _fake_manager({ModuleType.LED_MATRIX: [FakeModule()]}))
    result = runner.invoke(cli.app, ["sleep", "maybe"])
    assert result.exit_code == 2


def test_animate_without_state_reports_it(monkeypatch):
    module = FakeModule(reply=b"\x01" + bytes(31))
    monkeypatch.setattr(cli, "InputModuleManager", _fake_manager({ModuleType.LED_MATRIX: [module]}))
    result = runner.invoke(cli.app, ["animate"])
    assert result.exit_code == 0
    assert result.stdout.strip() == "on"


def test_pattern_command(monkeypatch):
    module = FakeModule()
    monkeypatch.setattr(cli, "InputModuleManager", _fake_manager({ModuleType.LED_MATRIX: [module]}))
    result = runner.invoke(cli.app, ["pattern", "zig-zag"])
    assert result.exit_code == 0
    assert module.writes == [bytes.fromhex("32ac010400")]


def test_pattern_unknown_name_lists_available(monkeypatch):
    monkeypatch.setattr(cli, "InputModuleManager", _fake_manager({ModuleType.LED_MATRIX: [FakeModule()]}))
    result = runner.invoke(cli.app, ["pattern", "plasma"])
    assert result.exit_code == 2
    assert "Available" in result.output


def test_sweep_command(monkeypatch):
    module = FakeModule()
    monkeypatch.setattr(cli, "InputModuleManager", _fake_manager({ModuleType.LED_MATRIX: [module]}))
    result = runner.invoke(cli.app, ["sweep", "--delay", "0"])
    assert result.exit_code == 0
    assert len(module.writes) == 3 + 101 + 2
    assert module.writes[3] == bytes.fromhex("32ac010000")
    assert module.writes[103] == bytes.fromhex("32ac010064")
    assert module.writes[-1] == bytes.fromhex("32ac0401")


def test_missing_module_is_clean_error(monkeypatch):
    monkeypatch.setattr(cli, "InputModuleManager", _fake_manager({ModuleType.LED_MATRIX: [FakeModule()]}))
    result = runner.invoke(cli.app, ["bootloader", "--type", "B1Display"])
    assert result.exit_code == 1
    assert "Error: No B1Display module at index 0" in result.stderr
    assert "Traceback" not in result.stdout


def test_invalid_module_is_clean_error(monkeypatch):
    monkeypatch.setattr(
        cli, "InputModuleManager", _fake_manager({ModuleType.LED_MATRIX: [FakeModule(valid=False)]})
    )
    result = runner.invoke(cli.app, ["brightness", "10"])
    assert result.exit_code == 1
    assert "could not be opened" in result.stderr


def test_profile_warning_is_printed(monkeypatch):
    monkeypatch.setattr(
        cli,
        "InputModuleManager",
        _fake_manager({}, warnings=("User profile 'framework' overrides packaged profile",)),
    )
    result = runner.invoke(cli.app, ["devices"])
    assert result.exit_code == 0
    assert "Warning: User profile 'framework' overrides packaged profile" in result.stderr


def test_zero_timeout_is_rejected(monkeypatch):
    monkeypatch.setattr(cli, "InputModuleManager", _fake_manager({ModuleType.LED_MATRIX: [FakeModule()]}))
    result = runner.invoke(cli.app, ["version", "--timeout", "0"])
    assert result.exit_code == 2
    assert "greater than 0" in result.output


def test_positive_timeout_reaches_manager(monkeypatch):
    created = []
    fake = _fake_manager({ModuleType.LED_MATRIX: [FakeModule(reply=bytes([1, 0x23, 1]) + bytes(29))]})

    def build(read_timeout_s=None):
        manager = fake(read_timeout_s=read_timeout_s)
        created.append(manager)
        return manager

    monkeypatch.setattr(cli, "InputModuleManager", build)
    result = runner.invoke(cli.app, ["version", "--timeout", "0.5"])
    assert result.exit_code == 0
    assert created[0].read_timeout_s == 0.5
