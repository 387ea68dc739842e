def convert_to_hours_mins(minutes: int, fmt: str = "%02dh %02dmin") -> str:
    if minutes < 60:
        return f"{minutes}min"
    if minutes == 60:
        return "1h"
    return fmt % (minutes // 60, minutes % 60)
