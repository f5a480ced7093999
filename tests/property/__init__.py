# -*- coding: utf-8 -*-
"""
Property-test package bootstrap.

Registers the Hypothesis profiles used by this suite and activates one on
import:

- dev : local runs, random examples
- ci  : more examples, derandomized to keep CI reproducible

Selection: HYPOTHESIS_PROFILE if set, otherwise "ci" when CI is truthy and
"dev" locally. Per-test overrides go through @settings(...) as usual.
"""
from __future__ import annotations

import os
from typing import Final

from hypothesis import HealthCheck, settings

settings.register_profile(
    "dev",
    max_examples=100,
    deadline=None,
    suppress_health_check=(HealthCheck.too_slow,),
)

settings.register_profile(
    "ci",
    max_examples=200,
    deadline=None,
    suppress_health_check=(HealthCheck.too_slow,),
    derandomize=True,
)


def _env_truthy(name: str) -> bool:
    return (os.getenv(name) or "").lower() not in ("", "0", "false", "no", "off")


ACTIVE_PROFILE: Final[str] = os.getenv("HYPOTHESIS_PROFILE") or (
    "ci" if _env_truthy("CI") else "dev"
)
settings.load_profile(ACTIVE_PROFILE)
