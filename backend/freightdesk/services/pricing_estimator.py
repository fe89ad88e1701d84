"""
Pricing estimator - suggests a sale price for a load.

Business rules (admin load queue):
1. Distance comes from a static city-pair table; unmapped routes get a
   placeholder distance from the injected fallback (random by default)
2. base = distance_km * rate_per_km[truck_type] (45/km for unknown types)
3. Loads above 5 t add 2% of base per extra tonne
4. fuel surcharge 12% of base, admin margin 8% of base, handling fee 500
5. Each component is rounded half-up to whole rupees before summing
"""
from __future__ import annotations

import random
from decimal import Decimal
from types import MappingProxyType
from typing import Callable, Mapping, Optional, Tuple

from freightdesk.core.config import Settings, get_settings
from freightdesk.core.logging import logger
from freightdesk.models.loads import Load, TRUCK_TYPES, quantize_half_up, to_decimal
from freightdesk.models.pricing import PriceBreakdown, PriceEstimate, PriceParams


RATE_PER_KM: Mapping[str, int] = MappingProxyType({
    "17 ft": 38,
    "19 ft": 40,
    "20 ft": 42,
    "22 ft": 45,
    "24 ft": 48,
    "28 ft SXL": 52,
    "28 ft MXL": 55,
    "32 ft SXL": 58,
    "32 ft MXL": 62,
    "Open Truck": 45,
    "Trailer 20ft": 65,
    "Trailer 40ft": 75,
    "Container 20ft": 60,
    "Container 40ft": 70,
    "Taurus 14T": 55,
    "Taurus 16T": 58,
    "Taurus 21T": 62,
    "TATA Ace": 25,
    "Bolero Pickup": 28,
})

if set(RATE_PER_KM) != set(TRUCK_TYPES):
    raise RuntimeError("Rate table out of sync with truck types")

_RATE_BY_KEY = {name.lower(): rate for name, rate in RATE_PER_KM.items()}

# Road distance in km, keyed "<pickup>_<dropoff>" on lower-cased city names.
DISTANCE_KM: Mapping[str, int] = MappingProxyType({
    "mumbai_delhi": 1400,
    "delhi_mumbai": 1400,
    "bangalore_chennai": 350,
    "chennai_bangalore": 350,
    "bengaluru_chennai": 350,
    "chennai_bengaluru": 350,
    "kolkata_delhi": 1500,
    "delhi_kolkata": 1500,
    "mumbai_chennai": 1340,
    "chennai_mumbai": 1340,
    "bangalore_hyderabad": 570,
    "hyderabad_bangalore": 570,
    "bengaluru_hyderabad": 570,
    "hyderabad_bengaluru": 570,
    "delhi_jaipur": 280,
    "jaipur_delhi": 280,
    "mumbai_pune": 150,
    "pune_mumbai": 150,
    "bhiwandi_ahmedabad": 530,
    "ahmedabad_bhiwandi": 530,
    "ahmedabad_mumbai": 524,
    "mumbai_ahmedabad": 524,
    "ludhiana_jaipur": 580,
    "jaipur_ludhiana": 580,
    "kolkata_guwahati": 980,
    "guwahati_kolkata": 980,
    "delhi_ludhiana": 310,
    "ludhiana_delhi": 310,
    "chennai_hyderabad": 625,
    "hyderabad_chennai": 625,
    "surat_mumbai": 284,
    "mumbai_surat": 284,
    "ahmedabad_surat": 265,
    "surat_ahmedabad": 265,
    "nagpur_mumbai": 840,
    "mumbai_nagpur": 840,
    "indore_mumbai": 585,
    "mumbai_indore": 585,
})

DistanceFallback = Callable[[str, str], int]


def round_half_up(value: Decimal) -> int:
    return int(quantize_half_up(value, Decimal("1")))


def _city_key(location: Optional[str]) -> str:
    return (location or "").lower().split(",")[0].strip()


def route_key(pickup: Optional[str], dropoff: Optional[str]) -> str:
    return f"{_city_key(pickup)}_{_city_key(dropoff)}"


class RandomDistanceFallback:
    """Placeholder distance for unmapped routes: uniform integer in [low, high)."""

    def __init__(self, low_km: int, high_km: int, rng: Optional[random.Random] = None) -> None:
        if high_km <= low_km:
            raise ValueError("high_km must exceed low_km")
        self.low_km = low_km
        self.high_km = high_km
        self._rng = rng or random.Random()

    def __call__(self, pickup_key: str, dropoff_key: str) -> int:
        return self._rng.randrange(self.low_km, self.high_km)


class PricingEstimator:
    """Suggested-price calculator with an injectable distance fallback."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        distance_fallback: Optional[DistanceFallback] = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.distance_fallback = distance_fallback or RandomDistanceFallback(
            self.settings.distance_fallback_min_km,
            self.settings.distance_fallback_max_km,
        )

    def rate_for(self, truck_type: Optional[str]) -> int:
        key = (truck_type or "").strip().lower()
        return _RATE_BY_KEY.get(key, self.settings.default_rate_per_km)

    def estimate_distance(self, pickup: Optional[str], dropoff: Optional[str]) -> Tuple[int, str]:
        """Distance in km and where it came from ("table" or "estimated")."""
        key = route_key(pickup, dropoff)
        known = DISTANCE_KM.get(key)
        if known is not None:
            return known, "table"
        distance = int(self.distance_fallback(_city_key(pickup), _city_key(dropoff)))
        logger.info("Route not in distance table, using fallback", route=key, distance_km=distance)
        return distance, "estimated"

    def estimate(
        self,
        pickup: Optional[str],
        dropoff: Optional[str],
        truck_type: Optional[str],
        weight_tons,
    ) -> PriceEstimate:
        settings = self.settings
        distance_km, source = self.estimate_distance(pickup, dropoff)
        weight = to_decimal(weight_tons) or Decimal("0")
        rate = self.rate_for(truck_type)

        base = Decimal(distance_km) * Decimal(rate)
        threshold = Decimal(settings.heavy_load_threshold_tons)
        if weight > threshold:
            step = Decimal(settings.heavy_load_step_percent) / Decimal("100")
            base *= Decimal("1") + (weight - threshold) * step

        fuel = round_half_up(base * Decimal(settings.fuel_surcharge_percent) / Decimal("100"))
        margin = round_half_up(base * Decimal(settings.admin_margin_percent) / Decimal("100"))
        handling = settings.handling_fee
        suggested = round_half_up(base + fuel + margin + handling)

        return PriceEstimate(
            suggested_price=suggested,
            breakdown=PriceBreakdown(
                base_amount=round_half_up(base),
                fuel_surcharge=fuel,
                admin_margin=margin,
                handling_fee=handling,
            ),
            params=PriceParams(
                distance_km=distance_km,
                distance_source=source,
                weight_tons=weight,
                base_rate_per_km=rate,
            ),
        )

    def estimate_price(self, load: Load) -> PriceEstimate:
        """Suggested price for a stored load."""
        return self.estimate(
            load.pickup_city,
            load.dropoff_city,
            load.required_truck_type,
            load.weight,
        )


pricing_estimator = PricingEstimator()
