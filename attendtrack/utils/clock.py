from datetime import datetime


def now() -> datetime:
    """Current local wall-clock time (naive).

    Class session times are entered as local times, so comparisons use the
    same frame. Services take a ``clock`` callable so tests can pin it.
    """
    return datetime.now()
