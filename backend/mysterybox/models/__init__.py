from .tenant import Tenant
from .profile import Profile, ProfileRole, STAFF_ROLES
from .credit_ledger import CreditLedgerEntry, LedgerKind
from .rarity import Rarity, RarityCode
from .reward import Reward, RewardType
from .tier_rarity_weight import TierRarityWeight
from .box_transaction import BoxTransaction, BoxStatus

__all__ = [
    "Tenant",
    "Profile",
    "ProfileRole",
    "STAFF_ROLES",
    "CreditLedgerEntry",
    "LedgerKind",
    "Rarity",
    "RarityCode",
    "Reward",
    "RewardType",
    "TierRarityWeight",
    "BoxTransaction",
    "BoxStatus",
]
