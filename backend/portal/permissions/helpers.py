# Overview: Utility functions for permission lookups and validation.

import re

from .definitions import PERMISSION_DEFINITIONS

PERMISSION_KEY_PATTERN = re.compile(r"^[a-z][a-z0-9_]{1,63}$")


def get_all_permission_keys():
    """Get list of all built-in permission keys."""
    return [perm[0] for perm in PERMISSION_DEFINITIONS]


def is_valid_permission_key(key) -> bool:
    """Permission keys are lower snake_case identifiers."""
    return isinstance(key, str) and bool(PERMISSION_KEY_PATTERN.match(key))
