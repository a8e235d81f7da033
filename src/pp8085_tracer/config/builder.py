# pp8085_tracer/config/builder.py
import logging
from typing import Tuple

from pp8085_tracer.transport.bus import Bus, RAM
from pp8085_tracer.arch.i8085.cpu import I8085Cpu
from .models import EmulatorConfig

logger = logging.getLogger(__name__)

# @intent:responsibility 構成（Config）に基づいて、Bus、RAM、CPUを生成・接続し、初期I/Oポートを登録します。
class SystemBuilder:
    def build_system(self, config: EmulatorConfig) -> Tuple[I8085Cpu, Bus]:
        bus = Bus()
        bus.register_device(0x0000, config.memory_size - 1, RAM(config.memory_size))

        for port in config.io_ports:
            if not bus.io_ports.add(port):
                logger.warning("Skipping I/O port %r from config: out of range or duplicate", port)

        cpu = I8085Cpu(bus)
        cpu.reset()
        logger.debug("Built 8085 system with %d bytes of RAM and ports %s",
                     config.memory_size, list(bus.io_ports.ports()))
        return cpu, bus
