# pp8085_tracer/ui/app.py
"""
Qtアプリケーションのエントリポイント。
コマンドライン引数を解析し、ログ、構成、エンジン、コントローラを初期化してメインウィンドウを起動します。
"""
import argparse
import logging
import sys
from typing import List, Optional

from PySide6.QtWidgets import QApplication

from pp8085_tracer.common.errors import ConfigError
from pp8085_tracer.config.loader import ConfigLoader
from pp8085_tracer.config.models import EmulatorConfig
from pp8085_tracer.controller.controller import ExecutionController
from pp8085_tracer.engine.adapter import EngineAdapter
from .main_window import MainWindow, DEFAULT_PROGRAM
from .qt_scheduler import QtScheduler

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="pp8085-tracer", description="Intel 8085 emulator and execution tracer")
    parser.add_argument("--config", metavar="PATH", help="YAML configuration file")
    parser.add_argument("--source", metavar="PATH", help="assembly source to open instead of the built-in example")
    parser.add_argument("-v", "--verbose", action="count", default=0, help="increase log verbosity (-v INFO, -vv DEBUG)")
    parser.add_argument("--log-file", metavar="PATH", help="also write logs to this file")
    return parser


# @intent:responsibility -vの数に応じたレベルでルートロガーを設定します。
def setup_logging(verbosity: int, log_file: Optional[str] = None) -> None:
    if verbosity >= 2:
        level = logging.DEBUG
    elif verbosity == 1:
        level = logging.INFO
    else:
        level = logging.WARNING

    handlers: List[logging.Handler] = [logging.StreamHandler()]
    if log_file:
        handlers.append(logging.FileHandler(log_file, encoding="utf-8"))
    logging.basicConfig(level=level, format=LOG_FORMAT, handlers=handlers, force=True)


def load_config(path: Optional[str]) -> EmulatorConfig:
    if not path:
        return EmulatorConfig()
    return ConfigLoader().load_from_file(path)


# @intent:responsibility アプリケーションを起動し、メインウィンドウを表示します。
def main(argv: Optional[List[str]] = None) -> int:
    """
    アプリケーションのメイン関数。
    """
    args = build_parser().parse_args(argv)
    setup_logging(args.verbose, args.log_file)

    try:
        config = load_config(args.config)
    except ConfigError as e:
        logger.error("%s", e)
        return 2

    source = DEFAULT_PROGRAM
    if args.source:
        try:
            with open(args.source, 'r', encoding="utf-8") as f:
                source = f.read()
        except OSError as e:
            logger.error("Cannot read source file %s: %s", args.source, e)
            return 2

    app = QApplication(sys.argv[:1])
    scheduler = QtScheduler()
    controller = ExecutionController(EngineAdapter(config), scheduler, config.cadence)
    main_win = MainWindow(controller, theme=config.theme, initial_source=source)
    scheduler.set_fault_handler(main_win.report_engine_fault)
    controller.compile_and_load(source)
    main_win.show()
    return app.exec()


if __name__ == '__main__':
    sys.exit(main())
