"""Typed view of `organizations.settings` and the single way to write it.

The blob is shared with other modules, so onboarding never replaces it.
It has three named sections this module knows about:

  onboarding    setup_completed_at, setup_skipped_at, setup_step
  office        office              (final office configuration)
  team          pending_team        (members without an account yet)

`merge_settings()` semantics:
  - keys outside these sections are always preserved untouched
  - onboarding keys merge one by one (writing setup_step keeps the timestamps)
  - office / pending_team are replaced as a whole when given (last write wins)
"""

import logging
from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, ConfigDict, ValidationError

logger = logging.getLogger(__name__)

ONBOARDING_KEYS = frozenset({"setup_completed_at", "setup_skipped_at", "setup_step"})


class OrganizationSettings(BaseModel):
    model_config = ConfigDict(extra="allow")

    setup_completed_at: str | None = None
    setup_skipped_at: str | None = None
    setup_step: int | None = None
    office: dict | None = None
    pending_team: list[dict] | None = None

    @property
    def is_completed(self) -> bool:
        return bool(self.setup_completed_at)

    @property
    def is_skipped(self) -> bool:
        return bool(self.setup_skipped_at)

    @property
    def resume_step(self) -> int:
        return self.setup_step or 1


def parse_settings(raw: dict | None) -> OrganizationSettings:
    """Read the blob, tolerating values of the wrong type.

    Other modules write to the same dict, so a field that does not fit its
    declared type is read loosely instead of failing the whole parse:
    timestamps by truthiness, `setup_step` only when it is an int in range,
    `office` / `pending_team` only when they are a dict / list.
    """
    raw = raw if isinstance(raw, dict) else {}
    try:
        return OrganizationSettings.model_validate(raw)
    except ValidationError as exc:
        logger.warning(
            "Organization settings have unexpected types (%s), reading loosely",
            ", ".join(".".join(map(str, err["loc"])) for err in exc.errors()),
        )

    step = raw.get("setup_step")
    if isinstance(step, bool) or not isinstance(step, int) or step < 1:
        step = None
    office = raw.get("office")
    team = raw.get("pending_team")
    loose = {
        "setup_completed_at": _timestamp(raw.get("setup_completed_at")),
        "setup_skipped_at": _timestamp(raw.get("setup_skipped_at")),
        "setup_step": step,
        "office": office if isinstance(office, dict) else None,
        "pending_team": (
            [m for m in team if isinstance(m, dict)] if isinstance(team, list) else None
        ),
    }
    extra = {k: v for k, v in raw.items() if k not in loose}
    return OrganizationSettings.model_validate({**extra, **loose})


def _timestamp(value: Any) -> str | None:
    return str(value) if value else None


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def merge_settings(
    current: dict | None,
    *,
    onboarding: dict[str, Any] | None = None,
    office: dict | None = None,
    pending_team: list[dict] | None = None,
) -> dict:
    """Return a new settings dict with the given sections merged in.

    Raises:
        ValueError: If `onboarding` names a key outside the onboarding section
    """
    merged = dict(current or {})

    if onboarding:
        unknown = set(onboarding) - ONBOARDING_KEYS
        if unknown:
            raise ValueError(f"Not onboarding settings: {', '.join(sorted(unknown))}")
        merged.update(onboarding)

    if office is not None:
        merged["office"] = office

    if pending_team is not None:
        merged["pending_team"] = pending_team

    return merged
