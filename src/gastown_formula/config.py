# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/gastown_formula

import os
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

LogLevel = Literal["TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL"]


class Settings(BaseModel):
    """
    Runtime settings, read from the environment.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    log_level: LogLevel = "INFO"
    max_parallel_cooks: int = Field(default=10, ge=1)


def get_settings() -> Settings:
    """Builds Settings from ``GASTOWN_*`` environment variables."""
    return Settings(
        log_level=os.getenv("GASTOWN_LOG_LEVEL", "INFO").upper(),  # type: ignore[arg-type]
        max_parallel_cooks=os.getenv("GASTOWN_MAX_PARALLEL_COOKS", "10"),  # type: ignore[arg-type]
    )
