"""
Configuration management and loading.

Loads the currency rate table, plan catalog and risk thresholds from a
YAML file. Every section is optional and falls back to the built-in
tables.
"""

import logging
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict

import yaml

from credits_forecast.core.currency import CurrencyRateTable, DEFAULT_RATE_TABLE
from credits_forecast.core.plans import DEFAULT_CATALOG, PlanCatalog, PricingTier
from credits_forecast.core.risk import DEFAULT_THRESHOLDS, RiskThresholds

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ForecastConfig:
    """Tables every calculation is parameterized with."""
    rate_table: CurrencyRateTable = DEFAULT_RATE_TABLE
    catalog: PlanCatalog = DEFAULT_CATALOG
    thresholds: RiskThresholds = DEFAULT_THRESHOLDS


def default_config() -> ForecastConfig:
    """Configuration built from the built-in tables."""
    return ForecastConfig()


def load_forecast_config(path: str) -> ForecastConfig:
    """Load and validate forecast configuration from a YAML file.

    Strict validation rejects unknown keys so that a typo never silently
    falls back to default pricing or thresholds.

    Args:
        path: Path to YAML configuration file

    Returns:
        Validated ForecastConfig object

    Raises:
        FileNotFoundError: If config file doesn't exist
        yaml.YAMLError: If YAML is invalid
        ValueError: If configuration is invalid
    """
    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(f"Forecast config file not found: {path}")

    with open(config_path, 'r', encoding='utf-8') as f:
        try:
            raw_config = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise yaml.YAMLError(f"Invalid YAML in config file {path}: {e}")

    if not raw_config:
        raise ValueError("Configuration file is empty")
    if not isinstance(raw_config, dict):
        raise ValueError("Configuration must be a dictionary")

    allowed_top_keys = {'currencies', 'plans', 'risk'}
    unknown_keys = set(raw_config.keys()) - allowed_top_keys
    if unknown_keys:
        raise ValueError(f"Unknown configuration keys: {unknown_keys}")

    rate_table = DEFAULT_RATE_TABLE
    if 'currencies' in raw_config:
        rate_table = _parse_currencies(raw_config['currencies'])

    catalog = DEFAULT_CATALOG
    if 'plans' in raw_config:
        catalog = _parse_plans(raw_config['plans'])

    thresholds = DEFAULT_THRESHOLDS
    if 'risk' in raw_config:
        thresholds = _parse_risk(raw_config['risk'])

    logger.debug(
        "Loaded forecast config from %s: %d currencies, %d plans",
        path, len(rate_table.rates), len(catalog.tiers),
    )
    return ForecastConfig(rate_table=rate_table, catalog=catalog, thresholds=thresholds)


def _require_dict(data: Any, path: str) -> Dict:
    if not isinstance(data, dict):
        raise ValueError(f"'{path}' must be a dictionary")
    return data


def _require_number(value: Any, path: str) -> float:
    # bool is an int subclass; reject it explicitly
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"'{path}' must be a number")
    return float(value)


def _parse_currencies(data: Any) -> CurrencyRateTable:
    """Parse the currencies section.

    Raises:
        ValueError: If the section is invalid
    """
    data = _require_dict(data, "currencies")

    allowed_keys = {'base', 'rates'}
    unknown_keys = set(data.keys()) - allowed_keys
    if unknown_keys:
        raise ValueError(f"Unknown keys in currencies: {unknown_keys}")
    if 'rates' not in data:
        raise ValueError("Missing required 'rates' in currencies")

    base = data.get('base', DEFAULT_RATE_TABLE.base)
    if not isinstance(base, str):
        raise ValueError("'currencies.base' must be a string")

    rates_data = _require_dict(data['rates'], "currencies.rates")
    rates = {
        str(code).upper(): _require_number(rate, f"currencies.rates.{code}")
        for code, rate in rates_data.items()
    }
    return CurrencyRateTable(base=base.upper(), rates=rates)


def _parse_plans(data: Any) -> PlanCatalog:
    """Parse the plans section.

    Raises:
        ValueError: If the section is invalid
    """
    data = _require_dict(data, "plans")

    allowed_keys = {'baseline', 'tiers'}
    unknown_keys = set(data.keys()) - allowed_keys
    if unknown_keys:
        raise ValueError(f"Unknown keys in plans: {unknown_keys}")
    if 'tiers' not in data:
        raise ValueError("Missing required 'tiers' in plans")

    baseline = data.get('baseline', DEFAULT_CATALOG.baseline_plan)
    if not isinstance(baseline, str):
        raise ValueError("'plans.baseline' must be a string")

    tiers_data = _require_dict(data['tiers'], "plans.tiers")
    tiers = {}
    for plan_id, tier_data in tiers_data.items():
        key = str(plan_id).lower()
        tiers[key] = _parse_tier(key, tier_data, f"plans.tiers.{plan_id}")

    return PlanCatalog(tiers=tiers, baseline_plan=baseline.lower())


def _parse_tier(plan_id: str, data: Any, path: str) -> PricingTier:
    data = _require_dict(data, path)

    allowed_keys = {'price_per_credit', 'monthly_credits', 'monthly_price', 'features'}
    unknown_keys = set(data.keys()) - allowed_keys
    if unknown_keys:
        raise ValueError(f"Unknown keys in {path}: {unknown_keys}")

    for required in ('price_per_credit', 'monthly_credits'):
        if required not in data:
            raise ValueError(f"Missing required '{required}' in {path}")

    price = _require_number(data['price_per_credit'], f"{path}.price_per_credit")
    monthly_credits = _require_number(data['monthly_credits'], f"{path}.monthly_credits")
    if 'monthly_price' in data:
        monthly_price = _require_number(data['monthly_price'], f"{path}.monthly_price")
    else:
        monthly_price = price * monthly_credits

    features = data.get('features', [])
    if not isinstance(features, list) or not all(isinstance(f, str) for f in features):
        raise ValueError(f"'{path}.features' must be a list of strings")

    return PricingTier(
        plan_id=plan_id,
        price_per_credit=price,
        monthly_credits=monthly_credits,
        monthly_price=monthly_price,
        features=tuple(features),
    )


def _parse_risk(data: Any) -> RiskThresholds:
    """Parse the risk section as overrides on the default thresholds.

    Raises:
        ValueError: If the section is invalid
    """
    data = _require_dict(data, "risk")

    allowed_keys = {f.name for f in fields(RiskThresholds)}
    unknown_keys = set(data.keys()) - allowed_keys
    if unknown_keys:
        raise ValueError(f"Unknown keys in risk: {unknown_keys}")

    overrides = {}
    for key, value in data.items():
        number = _require_number(value, f"risk.{key}")
        if key == 'days_in_month':
            if not number.is_integer():
                raise ValueError(f"'risk.{key}' must be a whole number of days")
            number = int(number)
        overrides[key] = number

    defaults = {f.name: getattr(DEFAULT_THRESHOLDS, f.name) for f in fields(RiskThresholds)}
    defaults.update(overrides)
    return RiskThresholds(**defaults)
