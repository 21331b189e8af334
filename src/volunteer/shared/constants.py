"""Centralized defaults for the volunteer engine. Overridable via configuration."""

from __future__ import annotations

# =============================================================================
# RANKING
# =============================================================================

MAX_ITEMS_PER_GROUP = 6
PLACEHOLDER_RANK = 0  # Ranks start at 1; 0 is only ever held inside a transaction.
RACE_RETRY_LIMIT = 1

# =============================================================================
# PARTITIONING
# =============================================================================

DEFAULT_CYCLE_YEAR = "2025"
DEFAULT_ENROLLMENT_TYPE = "普通类"
SUBJECT_SEPARATORS = (",", "，")

# =============================================================================
# REGION CAPACITY (max distinct group ranks per province)
# =============================================================================

REGION_VOLUNTEER_SLOTS: dict[str, int] = {
    "北京": 20,
    "天津": 20,
    "河北": 20,
    "山西": 45,
    "内蒙古": 45,
    "辽宁": 60,
    "吉林": 40,
    "黑龙江": 40,
    "上海": 8,
    "江苏": 40,
    "浙江": 80,
    "安徽": 45,
    "福建": 40,
    "江西": 45,
    "山东": 96,
    "河南": 48,
    "湖北": 20,
    "湖南": 30,
    "广东": 45,
    "广西": 40,
    "海南": 10,
    "重庆": 96,
    "四川": 45,
    "贵州": 96,
    "云南": 20,
    "西藏": 0,
    "陕西": 45,
    "甘肃": 45,
    "青海": 96,
    "宁夏": 45,
    "新疆": 9,
}

# =============================================================================
# STORAGE / TIMEOUTS
# =============================================================================

DEFAULT_DATABASE_PATH = "volunteer.db"
DEFAULT_LOCK_TIMEOUT_SECONDS = 5.0
DEFAULT_TIMEOUT_SECONDS = 10
