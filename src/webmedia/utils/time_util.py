def format_runtime(seconds: float) -> str:
    """Format elapsed seconds as ``HH:MM:SS.mmm``."""
    millis = int(round(seconds * 1000))
    hours, millis = divmod(millis, 3_600_000)
    mins, millis = divmod(millis, 60_000)
    secs, millis = divmod(millis, 1000)
    return f"{hours:02d}:{mins:02d}:{secs:02d}.{millis:03d}"
