DEFAULT_START_MINUTES = 9 * 60
DEFAULT_END_MINUTES = 17 * 60
DEFAULT_STEP_MINUTES = 30


def generate_time_slots(
    start_minutes: int = DEFAULT_START_MINUTES,
    end_minutes: int = DEFAULT_END_MINUTES,
    step_minutes: int = DEFAULT_STEP_MINUTES,
) -> list[str]:
    if step_minutes <= 0:
        raise ValueError("step_minutes must be positive")

    return [
        format_minutes(minutes)
        for minutes in range(start_minutes, end_minutes, step_minutes)
    ]


def format_minutes(minutes: int) -> str:
    hours, remainder = divmod(minutes, 60)
    return f"{hours:02d}:{remainder:02d}"
