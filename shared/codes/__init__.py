"""
Business codes shared by the domain exceptions and the HTTP envelope.

Gateway and directory failures live in `shared.codes.payment_codes`.
"""
from enum import IntEnum


class BusinessCode(IntEnum):
    SUCCESS = 0

    # Purchase input rejected before any network call (1xxxx)
    PARAM_ERROR = 10000
    PARAM_MISSING = 10001
    PARAM_VALIDATION_ERROR = 10003

    NOT_FOUND = 20006

    # Credential problems (3xxxx)
    UNAUTHORIZED = 30001
    FORBIDDEN = 30002

    # Host failures (4xxxx)
    SYSTEM_ERROR = 40000
    SERVICE_UNAVAILABLE = 40003


__all__ = ["BusinessCode"]
