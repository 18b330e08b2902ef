"""Client-side attribute constraints.

Each check raises :class:`ValidationError` naming the attribute and the
offending value.
"""

from __future__ import annotations

from typing import Iterable, Mapping, Sequence

from keboola_provider.errors import ValidationError

BUCKET_STAGES = ("in", "out", "sys")
BUCKET_BACKENDS = ("snowflake", "mysql", "redshift")
BUCKET_PERMISSIONS = ("read", "write", "manage")
NOTIFICATION_CHANNELS = ("error", "warning", "processing")

# Values encrypted by the platform carry this prefix.
ENCRYPTED_VALUE_PREFIX = "KBC::ProjectSecure::"


def _choices(allowed: Sequence[str]) -> str:
    if len(allowed) == 1:
        return allowed[0]
    return f"{', '.join(allowed[:-1])} or {allowed[-1]}"


def check_one_of(key: str, value: str, allowed: Sequence[str], *, allow_empty: bool = False) -> None:
    if allow_empty and not value:
        return
    if value not in allowed:
        raise ValidationError(f'"{key}" must be set to one of {_choices(allowed)}, got "{value}"')


def check_each_one_of(key: str, values: Iterable[str], allowed: Sequence[str]) -> None:
    for value in values:
        check_one_of(key, value, allowed)


def check_bucket_permissions(key: str, permissions: Mapping[str, str]) -> None:
    check_each_one_of(key, permissions.values(), BUCKET_PERMISSIONS)


def check_encrypted(key: str, value: str) -> None:
    if not value.startswith(ENCRYPTED_VALUE_PREFIX):
        raise ValidationError(
            f'"{key}" must be a value encrypted by Keboola (prefixed "{ENCRYPTED_VALUE_PREFIX}")'
        )
