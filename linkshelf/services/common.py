def clean_text(value) -> str:
    if value is None:
        return ""
    return str(value).strip()


def to_bool(value, default=False):
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in {"1", "true", "yes", "on"}
