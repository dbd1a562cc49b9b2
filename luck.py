import hashlib
from datetime import date, datetime
from typing import Optional, Tuple, Union

from .model import LuckResult, LuckTier

# (上界, 档位, 提示)，按 0-99 的基数值划分，左闭右开
TIER_TABLE: Tuple[Tuple[int, LuckTier, str], ...] = (
    (16, LuckTier.GREAT_LUCK, "万事如意，一帆风顺 ~"),
    (33, LuckTier.LUCK, "今天是幸运的一天！"),
    (50, LuckTier.NEAR_LUCK, "每日小幸运(1/1)"),
    (66, LuckTier.NEAR_ILL, "好像有点小问题？"),
    (83, LuckTier.ILL, "嘶……问题不大(?)"),
    (100, LuckTier.GREAT_ILL, "开溜(逃)"),
)

SEED_TAG = "luck"


def today_yymmdd(now: Optional[Union[date, datetime]] = None) -> str:
    """本地日期，格式为两位年月日，例如 261017"""
    day = now or datetime.now()
    return day.strftime("%y%m%d")


def make_seed(platform: str, user: str, day: Optional[Union[date, datetime]] = None) -> str:
    return f"{platform}:{user}:{today_yymmdd(day)}:{SEED_TAG}"


def hash_to_uint32(seed: str) -> int:
    """SHA-256 摘要的前 4 字节，按大端无符号 32 位整数解释"""
    digest = hashlib.sha256(seed.encode("utf-8")).digest()
    return int.from_bytes(digest[:4], "big", signed=False)


def tier_for(basis: int) -> Tuple[LuckTier, str]:
    if not 0 <= basis < 100:
        raise ValueError(f"basis out of range: {basis}")
    for upper, tier, tip in TIER_TABLE:
        if basis < upper:
            return tier, tip
    raise AssertionError("unreachable")


def roll_luck(platform: str, user: str, day: Optional[Union[date, datetime]] = None) -> LuckResult:
    """同一平台、同一用户、同一天得到同一结果"""
    basis = hash_to_uint32(make_seed(platform, user, day)) % 100
    tier, tip = tier_for(basis)
    return LuckResult(score=basis + 1, tier=tier, tip=tip)
