# commerce_kernel/config/flags.py
"""
Feature flag router
──────────────────────────────────────────────
Services ask the router whether a flag is on instead of
reading settings directly, so tests can flip flags per instance.
"""
from __future__ import annotations

from typing import Dict, Optional

import structlog

from commerce_kernel.config.base_settings import KernelSettings

logger = structlog.get_logger(__name__)

TAX_INCLUSIVE_PRICING = "tax_inclusive_pricing"


class FeatureFlagRouter:
    def __init__(self, flags: Optional[Dict[str, bool]] = None):
        self._flags: Dict[str, bool] = dict(flags or {})

    @classmethod
    def from_settings(cls, settings: KernelSettings) -> "FeatureFlagRouter":
        return cls({TAX_INCLUSIVE_PRICING: settings.tax_inclusive_pricing})

    def is_feature_enabled(self, key: str) -> bool:
        return bool(self._flags.get(key, False))

    def set_flag(self, key: str, value: bool = True) -> None:
        logger.info("feature flag set", flag=key, value=value)
        self._flags[key] = bool(value)

    def list_flags(self) -> Dict[str, bool]:
        return dict(self._flags)
