"""
Pricing Engine

Maps (device type, player count, minutes played) to a charge.

Rules:
- Up to 7 minutes played is free.
- Beyond that, time is rounded up to the next 15-minute tier:
  8-22 min -> 15, 23-37 min -> 30, and so on.
- Each device type has a table of player count -> {tier minutes: price}.
  Player counts missing from a table use the 1-player row.
- Tiers past 60 minutes are billed pro rata from the 60-minute price.
- Frame is billed per player (Rs 50 each) and ignores time.

The engine never raises. Any internal fault falls back to the default curve
(the cheapest console row) so a bill can always be produced.
"""

from __future__ import annotations

import logging
import math
import re
from datetime import datetime
from decimal import Decimal
from typing import Dict, Mapping, Optional, Union

from gamespace.core.timeutils import utcnow
from gamespace.models.device import DeviceType
from gamespace.models.validators import to_money

logger = logging.getLogger(__name__)

FREE_MINUTES = 7
TIER_MINUTES = 15
MAX_TABULATED_TIER = 60
FRAME_PRICE_PER_PLAYER = Decimal("50")

ZERO = Decimal("0.00")

TierPrices = Dict[int, Decimal]


def _tiers(p15: int, p30: int, p45: int, p60: int) -> TierPrices:
    return {15: Decimal(p15), 30: Decimal(p30), 45: Decimal(p45), 60: Decimal(p60)}


PRICING_CHART: Dict[DeviceType, Dict[int, TierPrices]] = {
    DeviceType.PS5: {
        1: _tiers(40, 80, 100, 120),
        2: _tiers(60, 120, 150, 180),
        3: _tiers(60, 120, 150, 180),
        4: _tiers(70, 140, 170, 200),
    },
    DeviceType.PS4: {
        1: _tiers(25, 50, 65, 80),
        2: _tiers(35, 70, 95, 120),
    },
    DeviceType.RACING: {
        1: _tiers(100, 150, 175, 200),
    },
    DeviceType.VR: {
        1: _tiers(100, 150, 175, 200),
    },
    DeviceType.VR_RACING: {
        1: _tiers(150, 200, 250, 300),
    },
    DeviceType.POOL: {
        1: _tiers(50, 80, 120, 160),
    },
}

# Base console tier; also what unrecognized device names are priced as
DEFAULT_DEVICE_TYPE = DeviceType.PS4
DEFAULT_TIER_PRICES: TierPrices = PRICING_CHART[DeviceType.PS4][1]

DEVICE_TYPE_ALIASES: Dict[str, DeviceType] = {
    "PLAYSTATION_5": DeviceType.PS5,
    "PLAYSTATION5": DeviceType.PS5,
    "PS_5": DeviceType.PS5,
    "PLAYSTATION_4": DeviceType.PS4,
    "PLAYSTATION4": DeviceType.PS4,
    "PS_4": DeviceType.PS4,
    "CONSOLE": DeviceType.PS4,
    "VIRTUAL_REALITY": DeviceType.VR,
    "VRRACING": DeviceType.VR_RACING,
    "VR_RACE": DeviceType.VR_RACING,
    "RACING_SIM": DeviceType.RACING,
    "RACE": DeviceType.RACING,
    "SIMULATOR": DeviceType.RACING,
    "POOL_TABLE": DeviceType.POOL,
    "BILLIARDS": DeviceType.POOL,
    "FRAMES": DeviceType.FRAME,
}

_SEPARATORS = re.compile(r"[\s\-]+")


class PricingError(Exception):
    """Internal pricing fault; never escapes calculate_price."""


def normalize_device_type(device_type: Union[DeviceType, str, None]) -> DeviceType:
    """Map a free-form device name onto a pricing chart key.

    "VR RACING", "vr-racing" and "VR_RACING" all become VR_RACING. Unknown
    names become the base console tier rather than failing.
    """
    if isinstance(device_type, DeviceType):
        return device_type
    if not device_type:
        return DEFAULT_DEVICE_TYPE

    key = _SEPARATORS.sub("_", str(device_type).strip().upper())
    if key in DeviceType.__members__:
        return DeviceType[key]
    if key in DEVICE_TYPE_ALIASES:
        return DEVICE_TYPE_ALIASES[key]

    logger.warning(f"Unrecognized device type {device_type!r}, pricing as {DEFAULT_DEVICE_TYPE.value}")
    return DEFAULT_DEVICE_TYPE


def round_time_to_charge(minutes_played: Union[int, float]) -> int:
    """Round minutes played up to the billable tier (0 when within the free window)."""
    if minutes_played <= FREE_MINUTES:
        return 0
    intervals = math.ceil((minutes_played - FREE_MINUTES) / TIER_MINUTES)
    return intervals * TIER_MINUTES


def calculate_duration(start_time: datetime, end_time: Optional[datetime] = None) -> int:
    """Elapsed whole minutes between two instants, rounded up, never negative."""
    end_time = end_time or utcnow()
    seconds = (end_time - start_time).total_seconds()
    return max(0, math.ceil(seconds / 60))


def _price_from_tiers(tier_prices: Mapping[int, Decimal], rounded: int) -> Decimal:
    if not tier_prices:
        raise PricingError("empty tier table")

    if rounded <= MAX_TABULATED_TIER:
        if rounded in tier_prices:
            return Decimal(tier_prices[rounded])
        available = sorted(tier_prices)
        for tier in available:
            if rounded <= tier:
                return Decimal(tier_prices[tier])
        return Decimal(tier_prices[available[-1]])

    if MAX_TABULATED_TIER not in tier_prices:
        raise PricingError(f"no {MAX_TABULATED_TIER}-minute price to extrapolate from")
    per_minute = Decimal(tier_prices[MAX_TABULATED_TIER]) / MAX_TABULATED_TIER
    return per_minute * rounded


def _default_price(minutes_played) -> Decimal:
    try:
        rounded = round_time_to_charge(max(0, int(math.ceil(float(minutes_played)))))
    except (TypeError, ValueError, OverflowError):
        return ZERO
    if rounded == 0:
        return ZERO
    return to_money(_price_from_tiers(DEFAULT_TIER_PRICES, rounded))


def calculate_price(
    device_type: Union[DeviceType, str, None],
    player_count: int,
    minutes_played: Union[int, float],
) -> Decimal:
    """Charge for one session.

    Always returns a non-negative Decimal with two decimal places.
    """
    try:
        game = normalize_device_type(device_type)

        if game == DeviceType.FRAME:
            return to_money(FRAME_PRICE_PER_PLAYER * max(int(player_count), 0))

        rounded = round_time_to_charge(minutes_played)
        if rounded == 0:
            return ZERO

        game_table = PRICING_CHART.get(game)
        if not game_table:
            raise PricingError(f"no pricing table for {game.value}")

        players = player_count if player_count in game_table else 1
        tier_prices = game_table.get(players)
        if not tier_prices:
            raise PricingError(f"no pricing row for {game.value} with {player_count} players")

        price = _price_from_tiers(tier_prices, rounded)
        if price < 0:
            raise PricingError(f"negative price {price} for {game.value}")
        return to_money(price)
    except Exception:
        logger.exception(
            f"Pricing failed for device={device_type!r} players={player_count!r} "
            f"minutes={minutes_played!r}; using default curve"
        )
        return _default_price(minutes_played)


def get_hourly_rate(device_type: Union[DeviceType, str, None], player_count: int) -> Decimal:
    """Display rate: the 60-minute price, or the per-frame charge for Frame."""
    game = normalize_device_type(device_type)
    if game == DeviceType.FRAME:
        return to_money(FRAME_PRICE_PER_PLAYER * max(player_count, 0))

    game_table = PRICING_CHART.get(game, {})
    tier_prices = game_table.get(player_count) or game_table.get(1) or {}
    if MAX_TABULATED_TIER in tier_prices:
        return to_money(tier_prices[MAX_TABULATED_TIER])
    return ZERO


def calculate_session_cost(session, now: Optional[datetime] = None) -> Decimal:
    """Current cost of a session.

    Ended sessions keep the cost stored when they closed. Active Frame
    sessions cost the per-player amount; other active sessions are priced on
    the time elapsed so far.
    """
    if not session.is_active:
        return to_money(session.cost or 0)

    device = session.device
    if device is None:
        raise PricingError(f"session {session.id} has no device")

    if device.type == DeviceType.FRAME:
        return calculate_price(DeviceType.FRAME, session.player_count, 0)

    minutes = calculate_duration(session.start_time, now)
    return calculate_price(device.type, session.player_count, minutes)
