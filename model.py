from dataclasses import dataclass
from enum import Enum


class LuckTier(Enum):
    GREAT_LUCK = "大吉"
    LUCK = "吉"
    NEAR_LUCK = "末吉"
    NEAR_ILL = "末凶"
    ILL = "凶"
    GREAT_ILL = "大凶"


@dataclass
class QuoteRecord:
    id: int
    sender: str        # 投稿人 ID
    sentence: str
    fingerprint: str   # 归一化后的去重键
    source: str
    created_at: int    # epoch 毫秒


@dataclass
class LuckResult:
    score: int
    tier: LuckTier
    tip: str

    @property
    def basis(self) -> int:
        return self.score - 1

    @property
    def luck_index(self) -> int:
        return 100 - self.score


@dataclass
class DisplayQuote:
    text: str
    source: str
    sender: str
