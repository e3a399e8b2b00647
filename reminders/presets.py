"""Quick-pick times offered by the edit screens."""

WAKE_PRESETS = {"early": "06:00", "normal": "07:30", "late": "09:00"}
SLEEP_PRESETS = {"early": "21:30", "normal": "23:00", "late": "00:30"}

MEAL_PRESETS = {
    "breakfast": {"early": "07:00", "normal": "08:00", "late": "09:30"},
    "lunch": {"early": "12:00", "normal": "13:00", "late": "14:00"},
    "dinner": {"early": "18:00", "normal": "19:00", "late": "20:30"},
}

REMINDER_MINUTE_CHOICES = [15, 30, 45, 60]

PRESETS = {
    "wake": WAKE_PRESETS,
    "sleep": SLEEP_PRESETS,
    **MEAL_PRESETS,
}


def preset_time(kind: str, variant: str) -> str:
    """Look up a preset, e.g. ``preset_time("lunch", "late") == "14:00"``."""
    return PRESETS[kind][variant]


def all_presets() -> dict:
    return {
        "times": {kind: dict(variants) for kind, variants in PRESETS.items()},
        "reminderMinutes": list(REMINDER_MINUTE_CHOICES),
    }
