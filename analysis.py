#!/usr/bin/env python3
# analysis.py
#
# Summary:
# - Normalizes engine output into a labeled, step-indexed series (steps 1..T)
# - Reduces one scenario to its summary scalars (deaths, ICU load, peak, Rt, 60+ days)
#
# Notes:
# - Every lookup is by column name and checked against the trajectory length;
#   nothing is read by position without a bounds check.
# - "ICU cap never reached" is a valid result (None), not an error.

from dataclasses import dataclass

import numpy as np
import pandas as pd
import statsmodels.api as sm

from config import (
    INDICATOR_COLUMNS,
    MAY_30_STEP,
    RT_WINDOW_STEPS,
    SERIES_COLUMNS,
)
from errors import (
    IndicatorNotFoundError,
    MalformedTrajectoryError,
    OutOfRangeError,
    RtEstimationError,
)


# ────────────────────────────────────────────────────────────────────────────
# 1. OUTPUT PROCESSOR ADAPTER
# ────────────────────────────────────────────────────────────────────────────

def _missing(df: pd.DataFrame, required: list[str]) -> list[str]:
    return [c for c in required if c not in df.columns]


def step_indexed(df: pd.DataFrame) -> pd.DataFrame:
    """Copy of `df` re-indexed by time step 1..T."""
    out = df.reset_index(drop=True).copy()
    out.index = pd.RangeIndex(1, len(out) + 1, name='step')
    return out


def normalize_series(raw: pd.DataFrame, processed: pd.DataFrame) -> pd.DataFrame:
    """
    Check engine output and return the processed series as floats, indexed by step.

    Raises MalformedTrajectoryError when a required column is absent from either
    frame, when the two frames disagree on the number of rows, or when a series
    holds NaN or infinite values.
    """
    missing_raw = _missing(raw, ['time'] + INDICATOR_COLUMNS)
    if missing_raw:
        raise MalformedTrajectoryError(f"raw trajectory is missing columns: {missing_raw}")

    missing = _missing(processed, SERIES_COLUMNS + ['time'])
    if missing:
        raise MalformedTrajectoryError(f"processed series is missing columns: {missing}")

    if len(raw) != len(processed):
        raise MalformedTrajectoryError(
            f"row count mismatch: raw trajectory has {len(raw)} rows, "
            f"processed series has {len(processed)}"
        )
    if len(processed) == 0:
        raise MalformedTrajectoryError("engine returned an empty trajectory")

    series = step_indexed(processed[SERIES_COLUMNS + ['time']])
    try:
        series = series.astype(float)
    except (TypeError, ValueError) as e:
        raise MalformedTrajectoryError(f"non-numeric values in processed series: {e}") from e

    for column in SERIES_COLUMNS:
        bad = series.index[~np.isfinite(series[column].to_numpy())].tolist()
        if bad:
            raise MalformedTrajectoryError(
                f"non-finite values in '{column}' at steps {bad[:10]}"
            )
    return series


# ────────────────────────────────────────────────────────────────────────────
# 2. SUMMARY ANALYZER
# ────────────────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class ScenarioSummary:
    mortality: int
    pct_mortality: float
    mortality_thru_may: int
    day_icu_cap_reached: int | None
    max_icu_demand: int
    rt_estimate: float
    day_peak_infections: int
    additional_vulnerable_sd_days: int | None


def value_at(series: pd.DataFrame, column: str, step: int) -> float:
    """Named, bounds-checked read of `column` at time step `step` (1-based)."""
    if not 1 <= step <= len(series):
        raise OutOfRangeError(
            f"step {step} of '{column}' is out of range for a trajectory of {len(series)} steps"
        )
    return float(series[column].iloc[step - 1])


def first_step_at_or_above(values: pd.Series, threshold: float) -> int | None:
    hits = np.flatnonzero(values.to_numpy() >= threshold)
    return int(hits[0]) + 1 if hits.size else None


def last_active_step(active: pd.Series, label: str) -> int:
    hits = np.flatnonzero(active.to_numpy())
    if not hits.size:
        raise IndicatorNotFoundError(f"indicator '{label}' is never active")
    return int(hits[-1]) + 1


def growth_rate(series: pd.DataFrame, window: int = RT_WINDOW_STEPS) -> float:
    """Slope of an OLS fit of log(cumulative infections) on time over the first `window` steps."""
    if len(series) < window:
        raise OutOfRangeError(
            f"Rt regression needs {window} steps, trajectory has {len(series)}"
        )
    early = series.iloc[:window]
    y = early['cumulative_infections']
    if (y <= 0).any():
        bad = early.index[(y <= 0).to_numpy()].tolist()
        raise RtEstimationError(
            f"cumulative infections must be positive in steps 1..{window}; non-positive at steps {bad}"
        )

    X = sm.add_constant(early['time'], has_constant='add')
    model = sm.OLS(np.log(y), X).fit()
    return float(model.params['time'])


def estimate_rt(series: pd.DataFrame, parms: dict) -> float:
    """
    Rt from early exponential growth under staged progression:

      Rt = (1 + r * D_inf) * (1 + r * D_exp)

    where r is the fitted growth rate and D_* = n_states / (rate / timestep).
    """
    slope = growth_rate(series)
    avg_exp_dur = parms['n_exposed_states'] / (parms['exposed_transition_rate'] / parms['timestep'])
    avg_inf_dur = parms['n_infected_states'] / (parms['infected_transition_rate'] / parms['timestep'])
    return round((1 + slope * avg_inf_dur) * (1 + slope * avg_exp_dur), 2)


def additional_vulnerable_sd_days(raw: pd.DataFrame, parms: dict) -> int | None:
    """Days the 60+ group keeps distancing after general distancing / shelter-in-place ends."""
    if parms['sixty_plus_days_past_peak'] < 0:
        return None
    last_60p = last_active_step(raw['sd60p'] == 1, 'sd60p')
    last_general = last_active_step((raw['sd'] == 1) | (raw['sip'] == 1), 'sd|sip')
    return last_60p - last_general


def summarize(raw: pd.DataFrame, series: pd.DataFrame, parms: dict) -> ScenarioSummary:
    """Reduce one scenario to its summary scalars. `series` comes from normalize_series."""
    icu = series['icu_bed_demand']

    # deaths
    n_deaths = int(round(value_at(series, 'cumulative_deaths', len(series))))
    pct_deaths = round(100 * n_deaths / parms['N'], 2)
    n_deaths_may30 = int(round(value_at(series, 'cumulative_deaths', MAY_30_STEP)))

    # healthcare demand
    day_icu_cap = first_step_at_or_above(icu, parms['n_icu_beds'])
    max_icu = int(round(icu.max()))

    # infections (argmax returns the first maximum)
    day_peak = int(np.argmax(series['prevalent_infections'].to_numpy())) + 1

    rt = estimate_rt(series, parms)
    extra_days = additional_vulnerable_sd_days(raw, parms)

    return ScenarioSummary(
        mortality=n_deaths,
        pct_mortality=pct_deaths,
        mortality_thru_may=n_deaths_may30,
        day_icu_cap_reached=day_icu_cap,
        max_icu_demand=max_icu,
        rt_estimate=rt,
        day_peak_infections=day_peak,
        additional_vulnerable_sd_days=extra_days,
    )
