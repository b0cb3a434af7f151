"""
Configuration schema and loader.

This module defines dataclasses that mirror the expected structure of
the YAML configuration file (`config.yaml`).  A helper function
`load_config()` reads a YAML file from disk and returns an instance
of `Config` populated with reasonable defaults for any missing
fields.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Any
import yaml

from ..reporting.metrics import BREAKEVEN_POLICIES


@dataclass
class MetricsConfig:
    """Controls how the metrics engine buckets and counts trades.

    Attributes
    ----------
    timezone : str
        IANA timezone name used to assign each trade's entry time to a
        calendar day for the daily statistics.
    breakeven_policy : str
        ``reset`` (a breakeven trade or day ends both win and loss
        streaks) or ``skip`` (breakevens are ignored by streaks).
    """

    timezone: str = "UTC"
    breakeven_policy: str = "reset"


@dataclass
class ReportConfig:
    """Output options for generated reports.

    Attributes
    ----------
    out_dir : str
        Directory receiving the CSV, JSON and PNG artefacts.
    decimals : int
        Rounding applied to monetary and ratio values in `summary.json`.
    plot : bool
        Whether to render the cumulative P&L chart.
    """

    out_dir: str = "results"
    decimals: int = 2
    plot: bool = True


@dataclass
class DataConfig:
    """Trade source.

    Attributes
    ----------
    trades_path : str
        Journal export to read, either `.csv` or `.json`.
    """

    trades_path: str = "trades.csv"


@dataclass
class Config:
    """Root configuration for the metrics tool."""

    metrics: MetricsConfig = field(default_factory=MetricsConfig)
    report: ReportConfig = field(default_factory=ReportConfig)
    data: DataConfig = field(default_factory=DataConfig)


def _merge_dict(defaults: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Recursively merge two dictionaries.

    The values in `override` take precedence over those in `defaults`.
    This helper is used when loading YAML into nested dataclasses.
    """
    result: Dict[str, Any] = defaults.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _merge_dict(result[key], value)
        else:
            result[key] = value
    return result


def load_config(path: str) -> Config:
    """Load a configuration file from the given YAML path.

    Parameters
    ----------
    path : str
        Path to the YAML file.

    Returns
    -------
    Config
        A populated configuration object.  Missing fields are filled with
        the defaults defined in the dataclasses.

    Raises
    ------
    ValueError
        If the breakeven policy or decimals setting is invalid.
    """
    with open(path, "r", encoding="utf-8") as fh:
        raw: Dict[str, Any] = yaml.safe_load(fh) or {}

    defaults: Dict[str, Any] = {
        'metrics': {
            'timezone': "UTC",
            'breakeven_policy': "reset",
        },
        'report': {
            'out_dir': "results",
            'decimals': 2,
            'plot': True,
        },
        'data': {
            'trades_path': "trades.csv",
        },
    }

    merged = _merge_dict(defaults, raw)

    metrics_cfg = MetricsConfig(
        timezone=str(merged['metrics']['timezone']),
        breakeven_policy=str(merged['metrics']['breakeven_policy']).lower(),
    )
    if metrics_cfg.breakeven_policy not in BREAKEVEN_POLICIES:
        raise ValueError(
            f"Invalid metrics.breakeven_policy {metrics_cfg.breakeven_policy!r}; "
            f"expected one of {list(BREAKEVEN_POLICIES)}"
        )

    report_cfg = ReportConfig(
        out_dir=str(merged['report']['out_dir']),
        decimals=int(merged['report']['decimals']),
        plot=bool(merged['report']['plot']),
    )
    if report_cfg.decimals < 0:
        raise ValueError(f"Invalid report.decimals {report_cfg.decimals}; must be >= 0")

    data_cfg = DataConfig(
        trades_path=str(merged['data']['trades_path']),
    )

    return Config(metrics=metrics_cfg, report=report_cfg, data=data_cfg)
