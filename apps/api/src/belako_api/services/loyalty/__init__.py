"""Loyalty service exports."""

from .progress_service import TierProgressService  # noqa: F401
from .rewards_config import (  # noqa: F401
    DEFAULT_REWARDS_CONFIG,
    RewardItem,
    RewardsConfig,
    RewardsConfigService,
    TierConfigItem,
    XpActionItem,
)
from .tiers import (  # noqa: F401
    DEFAULT_TIER_THRESHOLDS,
    TierResult,
    TierThreshold,
    evaluate_tiers,
    highest_unlocked_tier,
)
