"""
Player action records accepted by the economy engine between months.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional, Union


@dataclass
class TariffChange:
    target: str
    sector: str
    rate: float  # 0..1 levied on imports from target in sector

    type = "tariff_change"


@dataclass
class TradeAgreementProposal:
    partner: str
    tariff_reduction: float = 0.3
    market_access: float = 0.5
    intellectual_property: float = 0.2

    type = "trade_agreement"


@dataclass
class MilitaryMove:
    target: str
    kind: str = "mobilization"  # or "invasion"
    intensity: float = 0.5

    type = "military_move"


PlayerAction = Union[TariffChange, TradeAgreementProposal, MilitaryMove]

ACTION_TYPES = {cls.type: cls for cls in (TariffChange, TradeAgreementProposal, MilitaryMove)}


def action_from_dict(data: Dict[str, Any]) -> Optional[PlayerAction]:
    """Build an action from a ``{"type": ..., **fields}`` record; unknown types give None."""
    cls = ACTION_TYPES.get(data.get("type"))
    if cls is None:
        return None
    return cls(**{k: v for k, v in data.items() if k != "type"})


def action_to_dict(action: PlayerAction) -> Dict[str, Any]:
    return {"type": action.type, **vars(action)}
