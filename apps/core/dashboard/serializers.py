from dataclasses import asdict, is_dataclass
from datetime import date, datetime
from decimal import Decimal


def to_primitive(obj):
    """Recursively convert dashboard dataclasses into JSON-ready values."""
    if is_dataclass(obj) and not isinstance(obj, type):
        return to_primitive(asdict(obj))
    if isinstance(obj, (datetime, date)):
        return obj.isoformat()
    if isinstance(obj, Decimal):
        return str(obj)
    if isinstance(obj, (list, tuple)):
        return [to_primitive(item) for item in obj]
    if isinstance(obj, dict):
        return {key: to_primitive(value) for key, value in obj.items()}
    return obj


def serialize_state(state):
    return to_primitive(state)
