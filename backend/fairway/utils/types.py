from enum import StrEnum
from typing import Any


class EnumAutoStr(StrEnum):
    @staticmethod
    def _generate_next_value_(name: str, *_: Any) -> str:
        return name
