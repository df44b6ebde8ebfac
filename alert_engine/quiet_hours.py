"""Do-not-disturb window evaluation.

`is_within_quiet_hours` answers "is this instant inside the quiet window";
delivery code asks the opposite question through `is_sending_allowed`.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, time

logger = logging.getLogger(__name__)


@dataclass
class QuietHours:
    """A wall-clock window, possibly wrapping midnight."""
    enabled: bool = False
    start: str = "20:00"  # HH:MM
    end: str = "08:00"    # HH:MM

    def to_dict(self) -> dict:
        return {"enabled": self.enabled, "start": self.start, "end": self.end}

    @classmethod
    def from_dict(cls, data: dict | None, default: "QuietHours | None" = None) -> "QuietHours":
        """Overlay `data` on `default`; invalid entries are logged and skipped."""
        base = default or cls()
        result = cls(base.enabled, base.start, base.end)
        if not isinstance(data, dict):
            return result

        if "enabled" in data:
            if isinstance(data["enabled"], bool):
                result.enabled = data["enabled"]
            else:
                logger.warning(f"Ignoring non-boolean quiet_hours.enabled: {data['enabled']!r}")
        for key in ("start", "end"):
            if key not in data:
                continue
            value = data[key]
            try:
                parse_hhmm(value)
            except (AttributeError, TypeError, ValueError):
                logger.warning(f"Ignoring invalid quiet_hours.{key}: {value!r}")
                continue
            setattr(result, key, value.strip())
        return result


def parse_hhmm(value: str) -> int:
    """Convert "HH:MM" to minutes since midnight.

    Raises:
        ValueError: If the value is not a valid 24h time
    """
    parsed = time.fromisoformat(value.strip())
    return parsed.hour * 60 + parsed.minute


def is_within_quiet_hours(now: datetime | time, quiet_hours: QuietHours) -> bool:
    """Check whether `now` falls inside the quiet window.

    Windows with start <= end cover [start, end). Windows with start > end
    wrap midnight and cover start..23:59 plus 00:00..end inclusive.
    """
    if not quiet_hours.enabled:
        return False

    try:
        start = parse_hhmm(quiet_hours.start)
        end = parse_hhmm(quiet_hours.end)
    except (AttributeError, ValueError) as e:
        logger.warning(
            f"Invalid quiet hours {quiet_hours.start!r}-{quiet_hours.end!r}: {e}"
        )
        return False

    current = now.hour * 60 + now.minute

    if start > end:
        return current >= start or current <= end
    return start <= current < end


def is_sending_allowed(now: datetime | time, quiet_hours: QuietHours) -> bool:
    """Proactive delivery is allowed whenever we are outside quiet hours."""
    return not is_within_quiet_hours(now, quiet_hours)
