import math

import numpy as np
import pandas as pd
import pytest

from analysis import (
    additional_vulnerable_sd_days,
    estimate_rt,
    growth_rate,
    normalize_series,
    summarize,
)
from conftest import synthetic_processed, synthetic_raw
from errors import (
    IndicatorNotFoundError,
    MalformedTrajectoryError,
    OutOfRangeError,
    RtEstimationError,
)

TIMES = np.arange(1.0, 366.0)


@pytest.fixture
def raw(stub_parms):
    return synthetic_raw(TIMES, stub_parms)


@pytest.fixture
def series(raw):
    return normalize_series(raw, synthetic_processed(TIMES))


# ────────────────────────────────────────────────────────────────────────────
# Output processor adapter
# ────────────────────────────────────────────────────────────────────────────

def test_normalize_indexes_by_step(series):
    assert series.index[0] == 1
    assert series.index[-1] == 365
    assert list(series.columns[:6]) == [
        'icu_bed_demand', 'cumulative_deaths', 'prevalent_infections',
        'cumulative_infections', 'daily_deaths', 'prevalent_hospitalizations',
    ]


def test_normalize_rejects_missing_series_column(raw):
    processed = synthetic_processed(TIMES).drop(columns=['prevalent_hospitalizations'])
    with pytest.raises(MalformedTrajectoryError, match="prevalent_hospitalizations"):
        normalize_series(raw, processed)


def test_normalize_rejects_missing_indicator(raw):
    with pytest.raises(MalformedTrajectoryError, match="sd60p"):
        normalize_series(raw.drop(columns=['sd60p']), synthetic_processed(TIMES))


def test_normalize_rejects_row_mismatch(raw):
    with pytest.raises(MalformedTrajectoryError, match="row count"):
        normalize_series(raw, synthetic_processed(TIMES[:-1]))


@pytest.mark.parametrize("bad", [np.nan, np.inf, -np.inf])
def test_normalize_rejects_non_finite_values(raw, bad):
    processed = synthetic_processed(TIMES)
    processed.loc[200, 'icu_bed_demand'] = bad
    with pytest.raises(MalformedTrajectoryError, match=r"icu_bed_demand.*\[201\]"):
        normalize_series(raw, processed)


# ────────────────────────────────────────────────────────────────────────────
# Summary analyzer
# ────────────────────────────────────────────────────────────────────────────

def test_summary_values(raw, series, stub_parms):
    s = summarize(raw, series, stub_parms)
    assert s.mortality == 730              # 2 deaths/day * 365
    assert s.pct_mortality == 0.07
    assert s.mortality_thru_may == 140     # step 70
    assert s.max_icu_demand == 500
    assert s.day_icu_cap_reached == 79     # first step with 500*exp(-((t-100)/30)^2) >= 300
    assert s.day_peak_infections == 100
    assert s.additional_vulnerable_sd_days == 14


def test_icu_cap_never_reached_is_absent(raw, series, stub_parms):
    parms = dict(stub_parms, n_icu_beds=10_000)
    assert summarize(raw, series, parms).day_icu_cap_reached is None


def test_icu_cap_reached_at_equality(raw, series, stub_parms):
    parms = dict(stub_parms, n_icu_beds=500)
    assert summarize(raw, series, parms).day_icu_cap_reached == 100


def test_peak_tie_breaks_to_earliest(raw, series, stub_parms):
    series = series.copy()
    series['prevalent_infections'] = 0.0
    series.loc[40, 'prevalent_infections'] = 7.0
    series.loc[200, 'prevalent_infections'] = 7.0
    assert summarize(raw, series, stub_parms).day_peak_infections == 40


def test_trajectory_ending_at_may_30_is_long_enough(stub_parms):
    times = np.arange(1.0, 71.0)
    raw = synthetic_raw(times, stub_parms)
    series = normalize_series(raw, synthetic_processed(times))
    s = summarize(raw, series, stub_parms)
    assert len(series) == 70
    assert s.mortality == 140
    assert s.mortality_thru_may == 140


def test_short_trajectory_is_out_of_range(stub_parms):
    times = np.arange(1.0, 61.0)
    raw = synthetic_raw(times, stub_parms)
    series = normalize_series(raw, synthetic_processed(times))
    with pytest.raises(OutOfRangeError):
        summarize(raw, series, stub_parms)


def test_growth_rate_recovers_exponential_slope():
    t = np.arange(1.0, 21.0)
    series = pd.DataFrame({'time': t, 'cumulative_infections': np.exp(0.1 * t)})
    assert growth_rate(series) == pytest.approx(0.1, abs=1e-9)


def test_rt_product_formula(series, stub_parms):
    # exposed: 2 / 0.5 = 4 days, infectious: 2 / 0.4 = 5 days
    expected = round((1 + 0.1 * 5) * (1 + 0.1 * 4), 2)
    assert estimate_rt(series, stub_parms) == pytest.approx(expected)
    assert math.isclose(expected, 2.1)


def test_rt_rejects_non_positive_infections(series, stub_parms):
    series = series.copy()
    series.loc[5, 'cumulative_infections'] = 0.0
    with pytest.raises(RtEstimationError, match="5"):
        estimate_rt(series, stub_parms)


def test_rt_rejects_negative_infections_inside_window(series, stub_parms):
    series = series.copy()
    series.loc[7, 'cumulative_infections'] = -3.0
    with pytest.raises(RtEstimationError, match=r"\[7\]"):
        estimate_rt(series, stub_parms)


def test_rt_ignores_values_after_window(series, stub_parms):
    series = series.copy()
    series.loc[21:, 'cumulative_infections'] = 0.0
    assert estimate_rt(series, stub_parms) == pytest.approx(2.1)


def test_rt_needs_full_window(series, stub_parms):
    with pytest.raises(OutOfRangeError):
        estimate_rt(series.iloc[:10], stub_parms)


def test_vulnerable_days_absent_when_disabled(raw, stub_parms):
    parms = dict(stub_parms, sixty_plus_days_past_peak=-1)
    assert additional_vulnerable_sd_days(raw, parms) is None


def test_vulnerable_days_require_active_indicator(raw, stub_parms):
    raw = raw.assign(sd60p=0.0)
    with pytest.raises(IndicatorNotFoundError, match="sd60p"):
        additional_vulnerable_sd_days(raw, stub_parms)


def test_vulnerable_days_require_general_distancing(raw, stub_parms):
    raw = raw.assign(sd=0.0, sip=0.0)
    assert raw['sd60p'].eq(1).any()
    with pytest.raises(IndicatorNotFoundError, match=r"sd\|sip"):
        additional_vulnerable_sd_days(raw, stub_parms)
