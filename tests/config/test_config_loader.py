# tests/config/test_config_loader.py
"""
ConfigLoaderとSystemBuilderの単体テスト。
"""
import pytest

from pp8085_tracer.common.errors import ConfigError
from pp8085_tracer.config.loader import ConfigLoader
from pp8085_tracer.config.builder import SystemBuilder
from pp8085_tracer.config.models import EmulatorConfig

YAML_TEXT = """
memory_size: 0x1000
cadence:
  initial_interval_ms: 250
  min_interval_ms: "0x10"
io_ports: [0x01, "20h", 3]
theme: Dark
"""

@pytest.fixture
def loader():
    return ConfigLoader()

def test_load_from_file(tmp_path, loader):
    path = tmp_path / "config.yaml"
    path.write_text(YAML_TEXT, encoding="utf-8")

    config = loader.load_from_file(str(path))

    assert config.memory_size == 0x1000
    assert config.cadence.initial_interval_ms == 250
    assert config.cadence.min_interval_ms == 16
    assert config.cadence.max_interval_ms == 3000
    assert config.io_ports == [0x01, 0x20, 3]
    assert config.theme == "dark"

def test_empty_file_gives_defaults(tmp_path, loader):
    path = tmp_path / "empty.yaml"
    path.write_text("", encoding="utf-8")
    assert loader.load_from_file(str(path)) == EmulatorConfig()

def test_missing_file(tmp_path, loader):
    with pytest.raises(ConfigError):
        loader.load_from_file(str(tmp_path / "missing.yaml"))

def test_invalid_yaml(tmp_path, loader):
    path = tmp_path / "broken.yaml"
    path.write_text("memory_size: [1, 2\n", encoding="utf-8")
    with pytest.raises(ConfigError):
        loader.load_from_file(str(path))

@pytest.mark.parametrize("data", [
    {"memory_size": 3000},
    {"memory_size": 0x20000},
    {"memory_size": True},
    {"memory_size": "lots"},
    {"io_ports": [256]},
    {"theme": "solarized"},
    {"cadence": {"min_interval_ms": 5000}},
    {"cadence": [1, 2]},
    {"io_ports": 5},
    {"io_ports": "01"},
    {"io_ports": {"01": 0}},
])
def test_invalid_values(loader, data):
    with pytest.raises(ConfigError):
        loader.load_from_dict(data)

def test_root_must_be_mapping(loader):
    with pytest.raises(ConfigError):
        loader.load_from_dict(["memory_size"])

class TestSystemBuilder:
    def test_build_default_system(self):
        cpu, bus = SystemBuilder().build_system(EmulatorConfig())
        assert bus.capacity() == 0x2000
        assert cpu.get_state().pc == 0
        assert bus.io_ports.ports() == {}

    def test_build_registers_ports(self):
        _, bus = SystemBuilder().build_system(EmulatorConfig(memory_size=0x100, io_ports=[0x02, 0x01]))
        assert bus.capacity() == 0x100
        assert list(bus.io_ports.ports()) == [0x01, 0x02]

    def test_duplicate_ports_are_skipped(self, caplog):
        _, bus = SystemBuilder().build_system(EmulatorConfig(io_ports=[0x05, 0x05]))
        assert bus.io_ports.ports() == {0x05: 0}
        assert "Skipping I/O port" in caplog.text
