# tests/transport/test_bus.py
"""
pp8085_tracer.transport.busモジュールの単体テスト。
"""
import pytest
from pp8085_tracer.transport.bus import Bus, RAM, BusAccessType, IoPortRegistry

# @intent:test_suite 共通バス、RAM、I/Oポートレジストリの基本的な機能とエラーハンドリングを検証します。

class TestRAM:
    """
    RAMデバイスの単体テスト。
    """
    def test_ram_init_valid_size(self):
        ram = RAM(16)
        assert ram.get_size() == 16
        assert all(ram.read(i) == 0 for i in range(16))

    # @intent:test_case_init 無効なサイズでRAMを初期化するとValueErrorが発生することを検証します。
    def test_ram_init_invalid_size(self):
        with pytest.raises(ValueError, match="RAM size must be a positive integer."):
            RAM(0)
        with pytest.raises(ValueError, match="RAM size must be a positive integer."):
            RAM(-1)
        with pytest.raises(ValueError, match="RAM size must be a positive integer."):
            RAM(1.5)

    def test_ram_read_write_within_bounds(self):
        ram = RAM(4)
        for i, value in enumerate([0x12, 0x34, 0x56, 0x78]):
            ram.write(i, value)
        assert [ram.read(i) for i in range(4)] == [0x12, 0x34, 0x56, 0x78]

    # @intent:test_case_oob 境界外アドレスへのアクセス時にIndexErrorが発生することを検証します。
    def test_ram_read_write_out_of_bounds(self):
        ram = RAM(4)
        with pytest.raises(IndexError, match="out of bounds"):
            ram.read(4)
        with pytest.raises(IndexError, match="out of bounds"):
            ram.write(-1, 0x00)

    def test_ram_write_invalid_data(self):
        ram = RAM(1)
        with pytest.raises(ValueError, match="Data 256 is not an 8-bit value."):
            ram.write(0, 0x100)
        with pytest.raises(ValueError, match="Data -1 is not an 8-bit value."):
            ram.write(0, -1)

    def test_ram_clear(self):
        ram = RAM(8)
        ram.write(3, 0xAB)
        ram.clear()
        assert ram.read(3) == 0


class TestBus:
    """
    Busの単体テスト。
    """
    def test_bus_register_and_access_device(self):
        bus = Bus()
        ram1 = RAM(16)
        ram2 = RAM(16)
        bus.register_device(0x0000, 0x000F, ram1)
        bus.register_device(0x0010, 0x001F, ram2)

        bus.write(0x0005, 0xAA)
        assert bus.read(0x0005) == 0xAA
        assert ram1.read(5) == 0xAA

        bus.write(0x001A, 0xBB)
        assert ram2.read(0x0A) == 0xBB  # オフセット計算が正しいことを確認
        assert bus.capacity() == 0x20

    def test_bus_access_unmapped_address(self):
        bus = Bus()
        bus.register_device(0x100, 0x10F, RAM(16))
        with pytest.raises(IndexError, match="Address 0x0000 not mapped to any device."):
            bus.read(0x0000)
        with pytest.raises(IndexError, match="Address 0x0110 not mapped to any device."):
            bus.write(0x0110, 0xCC)

    def test_bus_register_invalid_address_range(self):
        bus = Bus()
        with pytest.raises(ValueError, match="Invalid address range"):
            bus.register_device(0x0010, 0x000F, RAM(16))

    def test_bus_register_ram_size_mismatch(self):
        bus = Bus()
        with pytest.raises(ValueError, match=r"Registered RAM device size \(10 bytes\) does not match"):
            bus.register_device(0x0000, 0x000F, RAM(10))

    def test_bus_register_invalid_device_type(self):
        bus = Bus()
        class MyClass: pass
        with pytest.raises(TypeError, match="Device must be an instance of a class derived from Device."):
            bus.register_device(0x0000, 0x000F, MyClass())

    # @intent:test_case_log 読み書きはログに記録され、peekは記録されないことを検証します。
    def test_activity_log_and_peek(self):
        bus = Bus()
        bus.register_device(0x0000, 0x00FF, RAM(0x100))
        bus.write(0x10, 0x42)
        assert bus.peek(0x10) == 0x42
        assert bus.read(0x10) == 0x42

        log = bus.get_and_clear_activity_log()
        assert [(a.address, a.data, a.access_type) for a in log] == [
            (0x10, 0x42, BusAccessType.WRITE),
            (0x10, 0x42, BusAccessType.READ),
        ]
        assert bus.get_and_clear_activity_log() == []

    # @intent:test_case_load_image load_imageはメモリ全体をゼロクリアしてから0番地に書き込むことを検証します。
    def test_load_image_replaces_memory(self):
        bus = Bus()
        bus.register_device(0x0000, 0x00FF, RAM(0x100))
        bus.write(0x80, 0x99)

        bus.load_image(bytes([0x3E, 0x0F, 0x76]))

        assert [bus.peek(i) for i in range(3)] == [0x3E, 0x0F, 0x76]
        assert bus.peek(0x80) == 0x00

    def test_load_image_too_large(self):
        bus = Bus()
        bus.register_device(0x0000, 0x000F, RAM(16))
        bus.write(0x00, 0x11)
        with pytest.raises(ValueError, match="does not fit"):
            bus.load_image(bytes(17))
        assert bus.peek(0x00) == 0x11

    def test_io_access_goes_to_registry(self):
        bus = Bus()
        bus.io_ports.add(0x01)
        bus.write_io(0x01, 0x5A)
        bus.write_io(0x02, 0x77)  # 未登録ポートへの書き込みは無視される

        assert bus.read_io(0x01) == 0x5A
        assert bus.read_io(0x02) == 0x00
        types = [a.access_type for a in bus.get_and_clear_activity_log()]
        assert types == [BusAccessType.IO_WRITE, BusAccessType.IO_WRITE, BusAccessType.IO_READ, BusAccessType.IO_READ]


class TestIoPortRegistry:
    def test_add_and_list(self):
        registry = IoPortRegistry()
        assert registry.add(0x10) is True
        assert registry.add(0x02) is True
        assert registry.ports() == {0x02: 0, 0x10: 0}
        assert list(registry.ports()) == [0x02, 0x10]

    # @intent:test_case_noop 範囲外と重複の追加は何もしないことを検証します。
    @pytest.mark.parametrize("address", [256, 300, -1])
    def test_add_out_of_range_is_noop(self, address):
        registry = IoPortRegistry()
        assert registry.add(address) is False
        assert registry.ports() == {}

    def test_add_duplicate_keeps_data(self):
        registry = IoPortRegistry()
        registry.add(0x01)
        registry.write(0x01, 0x33)
        assert registry.add(0x01) is False
        assert registry.read(0x01) == 0x33

    def test_remove_is_idempotent(self):
        registry = IoPortRegistry()
        registry.add(0x01)
        assert registry.remove(0x01) is True
        assert registry.remove(0x01) is False
        assert registry.remove(0x99) is False
        assert registry.ports() == {}

    def test_write_rules(self):
        registry = IoPortRegistry()
        registry.add(0x01)
        assert registry.write(0x01, 0xFF) is True
        assert registry.write(0x01, 0x100) is False
        assert registry.write(0x02, 0x01) is False
        assert registry.ports() == {0x01: 0xFF}

    def test_ports_returns_copy(self):
        registry = IoPortRegistry()
        registry.add(0x01)
        snapshot = registry.ports()
        snapshot[0x02] = 0
        assert not registry.contains(0x02)
