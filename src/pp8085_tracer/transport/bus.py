# pp8085_tracer/transport/bus.py
"""
Transport Layer (共通バス)

このモジュールは、8085のメモリアドレス空間と独立したI/O空間を抽象化し、
読み書きアクセスを適切なデバイスに委譲する責務を負います。
"""
from abc import ABC, abstractmethod
from typing import List, Tuple
from dataclasses import dataclass
from enum import Enum
import logging

from pp8085_tracer.common.types import IoPortMap

logger = logging.getLogger(__name__)

# @intent:responsibility バスアクセスを記録するためのタイプを定義します。
class BusAccessType(Enum):
    READ = "READ"
    WRITE = "WRITE"
    IO_READ = "IO_READ"
    IO_WRITE = "IO_WRITE"

# @intent:responsibility 個々のバスアクセス操作を記録します。
@dataclass(frozen=True) # 不変データ構造
class BusAccess:
    """
    バス上で行われた単一のアクセス（読み込みまたは書き込み）を記録するデータクラス。
    """
    address: int
    data: int # 8bit value
    access_type: BusAccessType

# @intent:responsibility バスの抽象デバイスインターフェースを定義します。
class Device(ABC):
    """
    バスに接続されるデバイスの抽象基底クラス。
    全てのデバイスはreadとwriteのインターフェースを実装する必要があります。
    """
    # @intent:responsibility 指定されたアドレスから8bitのデータを読み出す責務を負います。
    # @intent:pre-condition アドレスはデバイスの有効範囲内である必要があります。
    @abstractmethod
    def read(self, address: int) -> int:
        """
        指定されたアドレスから8bitのデータを読み出します。
        アドレスはデバイス内でのオフセットとして扱われます。
        """
        pass

    # @intent:responsibility 指定されたアドレスに8bitのデータを書き込みます。
    @abstractmethod
    def write(self, address: int, data: int) -> None:
        pass

    # @intent:responsibility デバイスの内容をゼロクリアします。
    @abstractmethod
    def clear(self) -> None:
        pass

# @intent:responsibility 基本的なRAMデバイスの機能を提供します。
class RAM(Device):
    """
    プログラムとデータを保持するRAMデバイス。
    """
    # @intent:pre-condition sizeは正の整数である必要があります。
    def __init__(self, size: int):
        if not isinstance(size, int) or size <= 0:
            raise ValueError("RAM size must be a positive integer.")
        self._memory = bytearray(size)
        self._size = size

    def read(self, address: int) -> int:
        if not 0 <= address < self._size:
            raise IndexError(f"Address {address:#06x} out of bounds for RAM of size {self._size:#06x}.")
        return self._memory[address]

    def write(self, address: int, data: int) -> None:
        if not 0 <= address < self._size:
            raise IndexError(f"Address {address:#06x} out of bounds for RAM of size {self._size:#06x}.")
        if not 0 <= data <= 0xFF:
            raise ValueError(f"Data {data} is not an 8-bit value.")
        self._memory[address] = data

    def clear(self) -> None:
        self._memory[:] = bytes(self._size)

    # @intent:responsibility RAMのサイズを返します。
    def get_size(self) -> int:
        return self._size

# @intent:responsibility ユーザーが動的に追加・削除するI/Oポートの集合を管理します。
# @intent:rationale 8085のI/O空間は256ポートですが、画面に表示するのは明示的に登録されたポートのみです。
#                  未登録ポートへのアクセスは実機のオープンバスと同様に扱います（読み込みは0、書き込みは無視）。
class IoPortRegistry:
    """
    ポートアドレス（0x00〜0xFF）から8bitデータ値への対応を保持するレジストリ。
    """
    MAX_PORT = 0xFF

    def __init__(self):
        self._ports: IoPortMap = {}

    # @intent:responsibility ポートを登録します。範囲外や登録済みのアドレスは無視します。
    # @intent:return 新たに登録された場合True。
    def add(self, address: int) -> bool:
        if not 0 <= address <= self.MAX_PORT:
            logger.debug("Ignoring I/O port %r: outside 0x00-0xFF", address)
            return False
        if address in self._ports:
            return False
        self._ports[address] = 0x00
        return True

    # @intent:responsibility ポートの登録を解除します。未登録のアドレスに対しては何もしません（冪等）。
    def remove(self, address: int) -> bool:
        return self._ports.pop(address, None) is not None

    def contains(self, address: int) -> bool:
        return address in self._ports

    def read(self, address: int) -> int:
        return self._ports.get(address, 0x00)

    # @intent:return 書き込みが反映された場合True。未登録ポートや8bit範囲外のデータは無視されます。
    def write(self, address: int, data: int) -> bool:
        if address not in self._ports:
            return False
        if not 0 <= data <= 0xFF:
            logger.debug("Ignoring I/O write of %r to port %#04x: not an 8-bit value", data, address)
            return False
        self._ports[address] = data
        return True

    # @intent:responsibility 現在のポート集合のコピーをアドレス順で返します。
    def ports(self) -> IoPortMap:
        return dict(sorted(self._ports.items()))

# @intent:responsibility メモリアドレス空間を管理し、デバイスへのアクセスをディスパッチする共通バス。
# @intent:rationale バスの全てのアクセスを記録し、Snapshotに含めることでシステムの観測可能性を高めます。
class Bus:
    """
    メモリアドレス空間とI/O空間を管理し、デバイスへのアクセスをディスパッチする共通バス。
    バス上で行われた全てのメモリ/IOアクセスを記録する機能を提供します。
    """
    def __init__(self):
        # メモリマップ: (start_address, end_address, device) のタプルリスト
        self._memory_map: List[Tuple[int, int, Device]] = []
        self._bus_activity_log: List[BusAccess] = [] # バスアクセスログ
        self.io_ports = IoPortRegistry()

    def _log_access(self, address: int, data: int, access_type: BusAccessType) -> None:
        self._bus_activity_log.append(BusAccess(address=address, data=data, access_type=access_type))

    # @intent:responsibility 記録されたバスアクティビティログを取得し、クリアします。
    def get_and_clear_activity_log(self) -> List[BusAccess]:
        """
        現在のバスアクティビティログを返し、内部ログをクリアします。
        """
        log = self._bus_activity_log
        self._bus_activity_log = []
        return log

    # @intent:responsibility 指定されたアドレス範囲にデバイスを登録します。
    # @intent:pre-condition start_address <= end_addressかつ非負であり、deviceはDeviceのインスタンスである必要があります。
    def register_device(self, start_address: int, end_address: int, device: Device) -> None:
        """
        指定されたアドレス範囲にデバイスを登録します。
        アドレス範囲の重複チェックは行いません。呼び出し元が責任を持ちます。
        """
        if not (0 <= start_address <= end_address):
            raise ValueError("Invalid address range: start_address must be <= end_address and non-negative.")
        if not isinstance(device, Device):
            raise TypeError("Device must be an instance of a class derived from Device.")

        if isinstance(device, RAM):
            expected_size = end_address - start_address + 1
            if device.get_size() != expected_size:
                raise ValueError(
                    f"Registered {type(device).__name__} device size ({device.get_size()} bytes) does not match "
                    f"the specified address range size ({expected_size} bytes)."
                )

        self._memory_map.append((start_address, end_address, device))

    # @intent:responsibility マップされたメモリの総容量（最終アドレス+1）を返します。
    def capacity(self) -> int:
        if not self._memory_map:
            return 0
        return max(end for _, end, _ in self._memory_map) + 1

    # @intent:post-condition デバイスが見つからなかった場合、IndexErrorを発生させます。
    def _find_device(self, address: int) -> Tuple[Device, int]:
        for start, end, device in self._memory_map:
            if start <= address <= end:
                return device, address - start
        raise IndexError(f"Address {address:#06x} not mapped to any device.")

    def read(self, address: int) -> int:
        """
        指定されたアドレスから8bitのデータを読み出します。
        アクセスはログに記録されます。
        """
        device, offset = self._find_device(address)
        data = device.read(offset)
        self._log_access(address, data, BusAccessType.READ)
        return data

    # @intent:responsibility ログを記録せずに指定されたアドレスからデータを読み出します。
    def peek(self, address: int) -> int:
        """
        指定されたアドレスから8bitのデータを読み出します（ログ記録なし）。
        UIなどのインスペクタ用。
        """
        device, offset = self._find_device(address)
        return device.read(offset)

    def write(self, address: int, data: int) -> None:
        device, offset = self._find_device(address)
        device.write(offset, data)
        self._log_access(address, data, BusAccessType.WRITE)

    # @intent:responsibility 全デバイスをゼロクリアした上でプログラムイメージを0番地から書き込みます。
    # @intent:pre-condition imageはマップされたメモリ容量に収まっている必要があります。
    def load_image(self, image: bytes) -> None:
        """
        メモリ全体を置き換えます。ログは記録されません。
        """
        if len(image) > self.capacity():
            raise ValueError(f"Image of {len(image)} bytes does not fit in {self.capacity()} bytes of memory.")
        for _, _, device in self._memory_map:
            device.clear()
        for address, byte in enumerate(image):
            device, offset = self._find_device(address)
            device.write(offset, byte)

    # @intent:responsibility 指定されたI/Oポートから8bitのデータを読み出します。
    def read_io(self, address: int) -> int:
        """
        登録済みポートであればその値を、未登録ポートであれば0を返します。
        """
        data = self.io_ports.read(address)
        self._log_access(address, data, BusAccessType.IO_READ)
        return data

    # @intent:responsibility 指定されたI/Oポートに8bitのデータを書き込みます。
    def write_io(self, address: int, data: int) -> None:
        """
        登録済みポートにのみ反映されます。アクセス自体は常にログに記録されます。
        """
        self.io_ports.write(address, data)
        self._log_access(address, data, BusAccessType.IO_WRITE)
