"""
日期区间工具

注意 intervals_overlap 是闭区间判断：一个预订的退房时刻与另一个预订的
入住时刻完全相同时，也视为重叠。
"""
from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP

SECONDS_PER_DAY = Decimal(86400)


def days_between(check_in: datetime, check_out: datetime) -> int:
    """
    两个时间点之间的天数

    按毫秒差 / 一天的毫秒数四舍五入（非按日期截断），
    23 小时计 1 天，36 小时计 2 天。
    """
    seconds = Decimal(str(abs((check_out - check_in).total_seconds())))
    return int((seconds / SECONDS_PER_DAY).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def intervals_overlap(start_a: datetime, end_a: datetime,
                      start_b: datetime, end_b: datetime) -> bool:
    """闭区间重叠：start_a <= end_b 且 start_b <= end_a"""
    return start_a <= end_b and start_b <= end_a
