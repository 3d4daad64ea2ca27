from typing import Any, Optional

# Helpers for decoding the wire representation of flag evaluations. A property of the wrong
# JSON type rejects the whole payload.


def opt_type(data: dict, name: str, desired_type) -> Any:
    value = data.get(name)
    if value is not None and not isinstance(value, desired_type):
        raise ValueError('error in flag data: property "%s" should be type %s but was %s' % (name, desired_type, value.__class__))
    return value


def opt_dict(data: dict, name: str) -> Optional[dict]:
    return opt_type(data, name, dict)


def opt_str(data: dict, name: str) -> Optional[str]:
    return opt_type(data, name, str)


def req_type(data: dict, name: str, desired_type) -> Any:
    value = opt_type(data, name, desired_type)
    if value is None:
        raise ValueError('error in flag data: required property "%s" is missing' % name)
    return value


def req_bool(data: dict, name: str) -> bool:
    return req_type(data, name, bool)


def req_str(data: dict, name: str) -> str:
    return req_type(data, name, str)
