"""Entity identifiers: 24 lowercase hex characters (96 bits)."""

import re
import secrets
import time

IDENTIFIER_LENGTH = 24
IDENTIFIER_PATTERN = re.compile(r'^[0-9a-f]{24}$')


def new_identifier() -> str:
    # 4-byte seconds timestamp followed by 8 random bytes, so ids sort roughly by creation.
    timestamp = int(time.time()).to_bytes(4, 'big')
    return (timestamp + secrets.token_bytes(8)).hex()


def is_valid_identifier(value: object) -> bool:
    return isinstance(value, str) and IDENTIFIER_PATTERN.fullmatch(value) is not None
