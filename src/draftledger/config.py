"""Environment-based configuration."""

import os
from typing import Mapping, Optional

from draftledger.domain.errors import ValidationError
from draftledger.domain.grouping import (
    DEFAULT_MAX_ENTRIES_PER_DRAFT,
    ImportSplitMode,
    ImportSplitSettings,
)

DEFAULT_OWNER_ID = 1


def _int_setting(env: Mapping[str, str], name: str) -> Optional[int]:
    value = env.get(name)
    if value is None or not value.strip():
        return None
    try:
        return int(value)
    except ValueError:
        raise ValidationError(f"{name} must be an integer, got '{value}'")


def load_import_split_settings(env: Optional[Mapping[str, str]] = None) -> ImportSplitSettings:
    """Build import split settings from DRAFTLEDGER_* environment variables.

    Args:
        env: Mapping to read from (defaults to os.environ)

    Raises:
        ValidationError: If a value is malformed or the combination is invalid
    """
    env = os.environ if env is None else env
    mode_name = (env.get("DRAFTLEDGER_SPLIT_MODE") or ImportSplitMode.MONTHLY_OR_FIXED.value).strip()
    try:
        mode = ImportSplitMode(mode_name.lower())
    except ValueError:
        choices = ", ".join(m.value for m in ImportSplitMode)
        raise ValidationError(f"Unknown split mode '{mode_name}' (expected one of: {choices})")

    max_entries = _int_setting(env, "DRAFTLEDGER_MAX_ENTRIES_PER_DRAFT")
    min_entries = _int_setting(env, "DRAFTLEDGER_MIN_ENTRIES_PER_DRAFT")
    return ImportSplitSettings(
        mode=mode,
        max_entries_per_draft=DEFAULT_MAX_ENTRIES_PER_DRAFT if max_entries is None else max_entries,
        monthly_split_threshold=_int_setting(env, "DRAFTLEDGER_MONTHLY_SPLIT_THRESHOLD"),
        min_entries_per_draft=1 if min_entries is None else min_entries,
    )


def load_owner_id(env: Optional[Mapping[str, str]] = None) -> int:
    """Return the owner id from DRAFTLEDGER_OWNER_ID, defaulting to 1."""
    env = os.environ if env is None else env
    owner_id = _int_setting(env, "DRAFTLEDGER_OWNER_ID")
    return DEFAULT_OWNER_ID if owner_id is None else owner_id
