import json
import os


def subject_hours_from_env() -> dict:
    """SUBJECT_HOURS='{"English": 60, "French": 45}' -> {"English": 60.0, ...}."""
    raw = os.getenv("SUBJECT_HOURS", "").strip()
    if not raw:
        return {}
    return {str(k): float(v) for k, v in json.loads(raw).items()}
