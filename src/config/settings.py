# src/config/settings.py

"""Central configuration for the pricelist_intel pipeline."""

import os
from pathlib import Path

from curl_cffi.requests import BrowserTypeLiteral
from dotenv import load_dotenv

load_dotenv()


class Settings:
    """Central configuration for the pricelist_intel pipeline."""

    # --- Fetching ---
    REQUEST_DELAY: float = 2.0          # Seconds between requests
    REQUEST_TIMEOUT: int = 30           # Seconds before a request times out
    MAX_RETRIES: int = 3                # Retry count on transient failures
    MAX_DELAY_MULTIPLIER: int = 8       # Cap for adaptive backoff

    # --- Browser Impersonation ---
    IMPERSONATE_BROWSER: BrowserTypeLiteral = "chrome131"
    DEFAULT_HEADERS: dict[str, str] = {
        "Accept": (
            "application/json, application/xml, text/xml, "
            "text/html;q=0.9, */*;q=0.8"
        ),
        "Accept-Language": "tr-TR,tr;q=0.9,en-US;q=0.8,en;q=0.7",
        "sec-ch-ua": (
            '"Google Chrome";v="131", '
            '"Chromium";v="131", '
            '"Not_A Brand";v="24"'
        ),
        "sec-ch-ua-mobile": "?0",
        "sec-ch-ua-platform": '"Windows"',
    }

    # --- Price validation (TRY) ---
    MIN_VALID_PRICE: float = 100_000.0
    MAX_VALID_PRICE: float = 50_000_000.0

    # --- Print-document table reconstruction ---
    ROW_Y_TOLERANCE: float = 8.0        # PDF units between fragments of one row

    # --- Diff / events ---
    DIFF_SKIP_FALLBACK: bool = True     # Pair only real collections
    BIG_MOVES_LIMIT: int = 20
    VOLATILITY_MODEL_LIMIT: int = 20

    # --- Scoring ---
    OUTLIER_Z_THRESHOLD: float = 2.0
    MIN_SEGMENT_SIZE: int = 5           # Smallest segment that may flag outliers
    OUTLIER_MIN_RELATIVE_GAP: float = 0.05  # vs. an all-equal remainder
    MIN_PERCENTILE_SEGMENT: int = 3     # Below this, percentile is neutral
    TOP_DEALS_LIMIT: int = 20
    OUTLIER_LIST_LIMIT: int = 10

    # --- Gap / opportunity heuristics ---
    GAP_MAX_VEHICLES: int = 2           # Cells with fewer vehicles are gaps
    OPPORTUNITY_WEIGHTS: dict[str, float] = {
        "segment": 0.40,
        "fuel": 0.25,
        "transmission": 0.20,
        "price_band": 0.15,
    }
    FUEL_PRIORS: dict[str, float] = {
        "Petrol": 0.4,
        "Hybrid": 0.3,
        "Diesel": 0.2,
    }
    DEFAULT_FUEL_PRIOR: float = 0.1
    TRANSMISSION_PRIORS: dict[str, float] = {
        "Automatic": 0.7,
        "Manual": 0.3,
    }
    PRICE_BAND_PRIORS: dict[str, float] = {
        "500K-1M": 0.4,
        "1M-1.5M": 0.4,
        "1.5M-2M": 0.4,
        "2M-3M": 0.4,
    }
    DEFAULT_PRICE_BAND_PRIOR: float = 0.2
    TOP_OPPORTUNITIES_LIMIT: int = 20

    # --- Lifecycle / promos ---
    STALE_AFTER_DAYS: int = 14
    ENTRY_DRIFT_MIN_DAYS: int = 7
    ENTRY_DRIFT_MIN_PERCENT: float = 1.0
    PEAK_DROP_MIN_PERCENT: float = 5.0
    RECENT_DROP_MIN_PERCENT: float = 1.0
    PROMO_HISTORY_DEPTH: int = 30

    # --- Health ---
    HEALTH_MAX_AGE_DAYS: int = 2        # Older latest snapshots warn
    HEALTH_PROBE_TIMEOUT: int = 10      # Seconds per homepage probe
    HEALTH_SLOW_MS: float = 5000.0

    # --- Paths ---
    BASE_DIR: Path = Path(__file__).resolve().parent.parent.parent
    DATA_DIR: Path = Path(
        os.getenv("PRICELIST_DATA_DIR", str(BASE_DIR / "data"))
    )
    LOGS_DIR: Path = BASE_DIR / "logs"

    # --- Brands (adapter registry) ---
    BRANDS: list[dict[str, str]] = [
        {
            "id": "volkswagen",
            "name": "Volkswagen",
            "adapter": "src.adapters.volkswagen_adapter.VolkswagenAdapter",
        },
        {
            "id": "skoda",
            "name": "Škoda",
            "adapter": "src.adapters.skoda_adapter.SkodaAdapter",
        },
        {
            "id": "renault",
            "name": "Renault",
            "adapter": "src.adapters.renault_adapter.RenaultAdapter",
        },
        {
            "id": "toyota",
            "name": "Toyota",
            "adapter": "src.adapters.toyota_adapter.ToyotaAdapter",
        },
        {
            "id": "hyundai",
            "name": "Hyundai",
            "adapter": "src.adapters.hyundai_adapter.HyundaiAdapter",
        },
        {
            "id": "mercedes",
            "name": "Mercedes-Benz",
            "adapter": "src.adapters.mercedes_adapter.MercedesAdapter",
        },
        {
            "id": "peugeot",
            "name": "Peugeot",
            "adapter": "src.adapters.peugeot_adapter.PeugeotAdapter",
        },
        {
            "id": "fiat",
            "name": "Fiat",
            "adapter": "src.adapters.fiat_adapter.FiatAdapter",
        },
    ]
