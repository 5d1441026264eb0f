"""Annual Failure Rate calibration data.

Breakpoints map the raw value of a SMART attribute to the Annual Failure
Rate observed at that value, from the Backblaze SMART statistics:
https://www.backblaze.com/blog-smart-stats-2014-8.html

AFR is failures per device-year (AFR = 8760 / MTBF in hours), so it can
exceed 1. Every table starts with the (0, 0) point.
"""

from __future__ import annotations

from typing import Dict, Tuple

CalibrationTable = Tuple[Tuple[int, float], ...]

AFR_5: CalibrationTable = (
    (0, 0.0),
    (1, 0.027432608477803388),
    (4, 0.07501976284584981),
    (16, 0.23589260654405794),
    (70, 0.36193219378600433),
    (260, 0.5676621428968173),
    (1100, 1.5028253400346423),
    (4500, 2.0659987547404763),
    (17000, 1.7755385684503124),
)

AFR_187: CalibrationTable = (
    (0, 0.0),
    (1, 0.33877621175661743),
    (3, 0.5014425058387142),
    (11, 0.5346094598348444),
    (20, 0.8428063943161636),
    (35, 1.4429071005017484),
    (65, 1.6190935390549661),
)

AFR_188: CalibrationTable = (
    (0, 0.0),
    (1, 0.10044174089362015),
    (13000000000, 0.334030592234279),
    (26000000000, 0.36724705400842445),
)

AFR_193: CalibrationTable = (
    (0, 0.0),
    (1300, 0.024800489215129725),
    (5500, 0.05859661417772557),
    (21000, 0.19566577603409208),
    (90000, 0.2673688205712117),
)

AFR_197: CalibrationTable = (
    (0, 0.0),
    (1, 0.34196613799103254),
    (2, 0.6823772508117681),
    (16, 0.9564879341127684),
    (40, 1.6519989942167461),
    (100, 2.5137741046831956),
    (250, 3.3203378817413904),
)

AFR_198: CalibrationTable = (
    (0, 0.0),
    (1, 0.8135764944275583),
    (2, 1.1173469387755102),
    (4, 1.3558692421991083),
    (10, 1.7464114832535886),
    (12, 2.6449275362318843),
)

# Attribute id -> table. 5: reallocated sectors, 187: reported uncorrectable,
# 188: command timeout, 193: load cycle count, 197: pending sectors,
# 198: offline uncorrectable.
AFR_TABLES: Dict[int, CalibrationTable] = {
    5: AFR_5,
    187: AFR_187,
    188: AFR_188,
    193: AFR_193,
    197: AFR_197,
    198: AFR_198,
}


def interpolate(table: CalibrationTable, value: int) -> float:
    """Estimated AFR at ``value``, linear between breakpoints."""
    if value == 0:
        return 0.0

    i = 1
    while i < len(table) and table[i][0] < value:
        i += 1

    # past the last point
    if i == len(table):
        return table[-1][1]

    upper_value, upper_afr = table[i]
    if upper_value == value:
        return upper_afr

    lower_value, lower_afr = table[i - 1]
    return lower_afr + (value - lower_value) * (upper_afr - lower_afr) / (upper_value - lower_value)
