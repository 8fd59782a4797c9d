"""
Desired configuration of a MongoDB database.

Provides type-safe user input using pydantic, with the naming rules enforced
by Azure for Cosmos DB entities, accounts and resource groups, and the
throughput bounds accepted by the service.
"""

import re
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .models import AutoscaleSettings

_ACCOUNT_NAME_PATTERN = re.compile(r"^[a-z0-9][a-z0-9-]{1,42}[a-z0-9]$")
_RESOURCE_GROUP_PATTERN = re.compile(r"^[-\w._()]{1,90}$")
_ENTITY_NAME_FORBIDDEN = set("/\\#?")

MIN_THROUGHPUT = 400
THROUGHPUT_STEP = 100
MIN_AUTOSCALE_MAX_THROUGHPUT = 1000
MAX_AUTOSCALE_MAX_THROUGHPUT = 1000000
AUTOSCALE_STEP = 1000


def validate_entity_name(value: str) -> str:
    """Cosmos DB entity names: 1-255 chars, no ``/ \\ # ?``, no trailing space."""
    if not value or len(value) > 255:
        raise ValueError("name must be between 1 and 255 characters")
    if _ENTITY_NAME_FORBIDDEN & set(value):
        raise ValueError("name must not contain any of: / \\ # ?")
    if value.endswith(" "):
        raise ValueError("name must not end with a space")
    return value


def validate_account_name(value: str) -> str:
    """Account names: 3-44 lowercase letters, digits or hyphens, no edge hyphens."""
    if not _ACCOUNT_NAME_PATTERN.match(value):
        raise ValueError(
            "account_name must be 3-44 characters of lowercase letters, digits "
            "and hyphens, and must not start or end with a hyphen"
        )
    return value


def validate_resource_group_name(value: str) -> str:
    if not _RESOURCE_GROUP_PATTERN.match(value) or value.endswith("."):
        raise ValueError(
            "resource_group_name must be 1-90 characters of letters, digits, "
            "underscores, parentheses, hyphens and periods, and must not end "
            "with a period"
        )
    return value


class DesiredConfig(BaseModel):
    """User-declared configuration of a MongoDB database."""

    name: str = Field(description="Database name, immutable after creation")
    resource_group_name: str = Field(
        description="Resource group of the account, immutable"
    )
    account_name: str = Field(description="Cosmos DB account name, immutable")
    throughput: Optional[int] = Field(
        default=None, description="Fixed throughput in RU/s"
    )
    autoscale_settings: Optional[AutoscaleSettings] = Field(
        default=None, description="Autoscale settings"
    )

    model_config = ConfigDict(extra="forbid", frozen=True)

    @field_validator("name")
    @classmethod
    def _check_name(cls, value: str) -> str:
        return validate_entity_name(value)

    @field_validator("account_name")
    @classmethod
    def _check_account_name(cls, value: str) -> str:
        return validate_account_name(value)

    @field_validator("resource_group_name")
    @classmethod
    def _check_resource_group_name(cls, value: str) -> str:
        return validate_resource_group_name(value)

    @field_validator("throughput")
    @classmethod
    def _check_throughput(cls, value: Optional[int]) -> Optional[int]:
        if value is None:
            return value
        if value < MIN_THROUGHPUT:
            raise ValueError(f"throughput must be at least {MIN_THROUGHPUT}")
        if value % THROUGHPUT_STEP != 0:
            raise ValueError(f"throughput must be a multiple of {THROUGHPUT_STEP}")
        return value

    @field_validator("autoscale_settings")
    @classmethod
    def _check_autoscale_settings(
        cls, value: Optional[AutoscaleSettings]
    ) -> Optional[AutoscaleSettings]:
        if value is None:
            return value
        maximum = value.max_throughput
        if not MIN_AUTOSCALE_MAX_THROUGHPUT <= maximum <= MAX_AUTOSCALE_MAX_THROUGHPUT:
            raise ValueError(
                f"autoscale max_throughput must be between "
                f"{MIN_AUTOSCALE_MAX_THROUGHPUT} and {MAX_AUTOSCALE_MAX_THROUGHPUT}"
            )
        if maximum % AUTOSCALE_STEP != 0:
            raise ValueError(
                f"autoscale max_throughput must be a multiple of {AUTOSCALE_STEP}"
            )
        return value

    @model_validator(mode="after")
    def _check_capacity_exclusive(self) -> "DesiredConfig":
        if self.throughput is not None and self.autoscale_settings is not None:
            raise ValueError(
                "throughput and autoscale_settings are mutually exclusive"
            )
        return self
