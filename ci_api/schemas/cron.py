"""Pydantic schemas for cron API."""

from typing import Any

from pydantic import AliasChoices, BaseModel, Field


class CronCreate(BaseModel):
    """Body for creating a cron. Both plain and ``cron.``-prefixed keys are accepted."""

    # Left unconstrained: the cron-create pipeline reports a bad interval with its own message
    interval: Any = Field(None, validation_alias=AliasChoices("interval", "cron.interval"))
    # Lax bool parsing: "false" and "0" are False, non-boolean values are rejected
    run_only_when_new_commit: bool | None = Field(
        None,
        validation_alias=AliasChoices("run_only_when_new_commit", "cron.run_only_when_new_commit"),
    )
