"""
エラー分類モジュール。

ユーザーが修正可能なエラー（ParseError）と、エンジンの契約違反（EngineFault）を
明確に区別するための例外階層を定義します。
"""
from typing import Optional


class Pp8085Error(Exception):
    """このパッケージが送出する全ての例外の基底クラス。"""


# @intent:responsibility アセンブリソースの解析失敗を表します。回復可能であり、ユーザーに通知されます。
class ParseError(Pp8085Error):
    """
    ソーステキストが不正な場合に送出されます。
    lineは1始まりの行番号で、特定できない場合はNoneです。
    """
    def __init__(self, message: str, line: Optional[int] = None):
        self.message = message
        self.line = line
        super().__init__(self.__str__())

    def __str__(self) -> str:
        if self.line is None:
            return self.message
        return f"line {self.line}: {self.message}"


# @intent:responsibility 本来失敗しないはずのエンジン呼び出しの失敗を表します。
# @intent:rationale プログラミング上の契約違反として扱い、コントローラはこれを握りつぶさず伝播させます。
class EngineFault(Pp8085Error):
    """エンジン操作中に発生した予期しない失敗。"""


class ConfigError(Pp8085Error):
    """設定ファイルまたは設定値が不正な場合に送出されます。"""
