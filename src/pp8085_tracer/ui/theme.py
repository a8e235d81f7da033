# pp8085_tracer/ui/theme.py
"""
UIテーマとフォント管理モジュール。

ライト/ダークの2種類のパレットと、クロスプラットフォームで最適な等幅フォントの選択を提供します。
"""
from typing import Dict

from PySide6.QtGui import QColor, QFont, QFontDatabase, QPalette
from PySide6.QtWidgets import QApplication, QWidget

LIGHT = "light"
DARK = "dark"

# @intent:constant テーマごとのパレット色。キーはQPalette.ColorRole。
_PALETTES: Dict[str, Dict[QPalette.ColorRole, QColor]] = {
    DARK: {
        QPalette.Window: QColor(29, 29, 29),
        QPalette.WindowText: QColor(224, 224, 224),
        QPalette.Base: QColor(30, 30, 30),
        QPalette.AlternateBase: QColor(53, 53, 53),
        QPalette.ToolTipBase: QColor(29, 29, 29),
        QPalette.ToolTipText: QColor(224, 224, 224),
        QPalette.Text: QColor(224, 224, 224),
        QPalette.Button: QColor(53, 53, 53),
        QPalette.ButtonText: QColor(224, 224, 224),
        QPalette.BrightText: QColor(255, 0, 0),
        QPalette.Link: QColor(42, 130, 218),
        QPalette.Highlight: QColor(42, 130, 218),
        QPalette.HighlightedText: QColor(0, 0, 0),
    },
    LIGHT: {
        QPalette.Window: QColor(240, 240, 240),
        QPalette.WindowText: QColor(20, 20, 20),
        QPalette.Base: QColor(255, 255, 255),
        QPalette.AlternateBase: QColor(233, 233, 233),
        QPalette.ToolTipBase: QColor(255, 255, 220),
        QPalette.ToolTipText: QColor(20, 20, 20),
        QPalette.Text: QColor(20, 20, 20),
        QPalette.Button: QColor(225, 225, 225),
        QPalette.ButtonText: QColor(20, 20, 20),
        QPalette.BrightText: QColor(200, 0, 0),
        QPalette.Link: QColor(0, 90, 180),
        QPalette.Highlight: QColor(42, 130, 218),
        QPalette.HighlightedText: QColor(255, 255, 255),
    },
}

# 値表示（レジスタ値など）の強調色
ACCENT_COLORS = {DARK: "#FFD700", LIGHT: "#8A4B00"}
PC_ROW_COLORS = {DARK: QColor("#404000"), LIGHT: QColor("#FFF3A0")}


# @intent:responsibility 現在のシステムで利用可能な最適な等幅フォントファミリー名を返します。
def get_monospace_font_family() -> str:
    """
    優先順位: Consolas -> Menlo -> Monaco -> Courier New -> システムの等幅フォント
    """
    available_families = QFontDatabase.families()
    for font in ("Consolas", "Menlo", "Monaco", "Courier New"):
        if font in available_families:
            return font
    return QFontDatabase.systemFont(QFontDatabase.FixedFont).family()


def get_monospace_font(size: int = 10) -> QFont:
    return QFont(get_monospace_font_family(), size)


def other_theme(theme: str) -> str:
    return LIGHT if theme == DARK else DARK


# @intent:responsibility アプリケーション全体にパレットを、ウィンドウにスタイルシートを適用します。
def apply_theme(window: QWidget, theme: str) -> None:
    if theme not in _PALETTES:
        raise ValueError(f"Unknown theme: {theme}")
    palette = QPalette()
    for role, color in _PALETTES[theme].items():
        palette.setColor(role, color)
    QApplication.setPalette(palette)

    base = _PALETTES[theme][QPalette.Base].name()
    window_bg = _PALETTES[theme][QPalette.Window].name()
    font_family = get_monospace_font_family()
    # MacOSでの表示崩れ（タブ文字の重なり）を防ぐため、paddingを調整
    window.setStyleSheet(f"""
        QWidget {{ font-family: '{font_family}', monospace; font-size: 10pt; }}
        QMainWindow, QToolBar {{ background-color: {window_bg}; border: none; }}
        QDockWidget::title {{ text-align: left; background: {base}; padding: 4px; font-weight: bold; }}
        QTabWidget::pane {{ border-top: 2px solid #2A82DA; }}
        QTabBar::tab {{ padding: 8px 12px; min-width: 80px; }}
    """)
