"""SQLAlchemy models package."""

# Import all models
from .user import AuthProviderEnum, User, UserRoleEnum  # noqa: F401
from .loyalty import (  # noqa: F401
    BandReward,
    JourneyTierConfig,
    JourneyTierId,
    RewardTriggerType,
    TierProgress,
    XpActionCode,
    XpActionConfig,
)
from .catalog import Concert, Live, StoreItem  # noqa: F401
from .sales import (  # noqa: F401
    ConcertRegistration,
    RegistrationSource,
    RegistrationStatus,
    Sale,
    SaleItemType,
    SaleStatus,
)
from .wallet import (  # noqa: F401
    CustodialWallet,
    NftAsset,
    NftCollectible,
    NftGrant,
    NftGrantOrigin,
    NftGrantStatus,
    NftMintStatus,
    NftRarity,
    NftTokenCounter,
)
from .meet_greet import MeetGreetAccess, MeetGreetAccessStatus, MeetGreetEvent  # noqa: F401
from .analytics import AnalyticsEvent  # noqa: F401
