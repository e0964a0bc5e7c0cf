"""Airtable configuration values."""

from __future__ import annotations

import os
from dataclasses import dataclass

from .env import require_env_vars
from .http_resilience import RateLimit, ResilienceConfig

AIRTABLE_BASE_URL = "https://api.airtable.com/v0/"
AIRTABLE_TIMEOUT_SECONDS = 20.0

DEFAULT_HOUSING_TABLE = "Housing Database"
DEFAULT_UNITS_TABLE = "Units"
DEFAULT_RESPONSES_TABLE = "Form Responses"
DEFAULT_REJECTS_TABLE = "Rejected Changes"


@dataclass(frozen=True)
class AirtableConfig:
    """Holds Airtable API configuration values."""

    api_key: str
    base_id: str
    housing_table: str
    units_table: str
    responses_table: str
    rejects_table: str
    resilience: ResilienceConfig


def get_airtable_config(*, resilience: ResilienceConfig | None = None) -> AirtableConfig:
    values = require_env_vars(("AIRTABLE_API_KEY", "AIRTABLE_BASE_ID"))
    return AirtableConfig(
        api_key=values["AIRTABLE_API_KEY"],
        base_id=values["AIRTABLE_BASE_ID"],
        housing_table=os.getenv("AIRTABLE_HOUSING_TABLE") or DEFAULT_HOUSING_TABLE,
        units_table=os.getenv("AIRTABLE_UNITS_TABLE") or DEFAULT_UNITS_TABLE,
        responses_table=os.getenv("AIRTABLE_RESPONSES_TABLE") or DEFAULT_RESPONSES_TABLE,
        rejects_table=os.getenv("AIRTABLE_REJECTS_TABLE") or DEFAULT_REJECTS_TABLE,
        resilience=resilience
        or ResilienceConfig(
            name="airtable",
            base_url=AIRTABLE_BASE_URL,
            timeout_seconds=AIRTABLE_TIMEOUT_SECONDS,
            ratelimit=RateLimit(max_calls=5, per_seconds=1.0),
        ),
    )
