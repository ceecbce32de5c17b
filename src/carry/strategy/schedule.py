"""UTC strategy update schedule.

Strategy evaluations are labelled with the most recent scheduled boundary,
ten minutes after each 8h funding settlement (00:10, 08:10, 16:10 UTC).
"""

from datetime import datetime, time, timedelta, timezone

STRATEGY_UPDATE_SCHEDULE: tuple[time, ...] = (
    time(0, 10),
    time(8, 10),
    time(16, 10),
)


def align_to_strategy_schedule(moment: datetime) -> datetime:
    """Return the latest schedule boundary at or before ``moment``.

    A timestamp exactly on a boundary maps to that boundary. Timestamps
    before the first boundary of the day map to the last boundary of the
    previous day. Naive datetimes are taken to be UTC.

    Args:
        moment: The timestamp to align.

    Returns:
        Timezone-aware UTC datetime of the boundary.
    """
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    else:
        moment = moment.astimezone(timezone.utc)

    day = moment.date()
    last_match: datetime | None = None
    for boundary in STRATEGY_UPDATE_SCHEDULE:
        candidate = datetime.combine(day, boundary, tzinfo=timezone.utc)
        if candidate <= moment:
            last_match = candidate
        else:
            break

    if last_match is not None:
        return last_match

    previous_day = day - timedelta(days=1)
    return datetime.combine(
        previous_day, STRATEGY_UPDATE_SCHEDULE[-1], tzinfo=timezone.utc
    )
