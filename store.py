#!/usr/bin/env python3
# store.py
#
# Summary:
# - Scenario: one finished run (schedule, raw trajectory, processed series, summary)
# - ScenarioStore: append-only, session-scoped history of scenarios
# - Read-only projections for display: parameter table, results table,
#   comparison table (joined by simulation number), combined chart series
#
# Notes:
# - Scenarios are copied going in and coming out, so no caller can reach into
#   a stored trajectory and change it.
# - There is deliberately no clear/delete operation.

from dataclasses import dataclass, replace

import pandas as pd

from analysis import ScenarioSummary
from config import (
    COMPARISON_COLUMNS,
    INTEGER_RESULTS_COLUMNS,
    PARAMS_COLUMNS,
    RESULTS_COLUMNS,
    SERIES_COLUMNS,
)


# ────────────────────────────────────────────────────────────────────────────
# 1. SCENARIO
# ────────────────────────────────────────────────────────────────────────────

@dataclass(frozen=True, eq=False)
class Scenario:
    id: int
    sip_end_offset: int
    sd_end_offset: int
    sip_end_label: str              # chosen dates as display strings (MM/DD/YYYY)
    sd_end_label: str
    raw_trajectory: pd.DataFrame
    processed_series: pd.DataFrame
    summary: ScenarioSummary

    def copy(self) -> "Scenario":
        return replace(
            self,
            raw_trajectory=self.raw_trajectory.copy(deep=True),
            processed_series=self.processed_series.copy(deep=True),
        )

    def params_row(self) -> dict:
        return dict(zip(PARAMS_COLUMNS, [str(self.id), self.sip_end_label, self.sd_end_label]))

    def results_row(self) -> dict:
        s = self.summary
        return dict(zip(RESULTS_COLUMNS, [
            str(self.id),
            s.mortality,
            s.mortality_thru_may,
            s.day_icu_cap_reached,
            s.max_icu_demand,
            s.rt_estimate,
            s.day_peak_infections,
            s.additional_vulnerable_sd_days,
        ]))


# ────────────────────────────────────────────────────────────────────────────
# 2. STORE
# ────────────────────────────────────────────────────────────────────────────

class ScenarioStore:
    """Scenario history for one session. `append` is the only mutator."""

    def __init__(self):
        self._scenarios: list[Scenario] = []

    def __len__(self) -> int:
        return len(self._scenarios)

    def __iter__(self):
        return (s.copy() for s in self._scenarios)

    @property
    def next_id(self) -> int:
        return len(self._scenarios) + 1

    def append(self, scenario: Scenario) -> None:
        if scenario.id != self.next_id:
            raise ValueError(f"expected scenario #{self.next_id}, got #{scenario.id}")
        self._scenarios.append(scenario.copy())

    def get(self, scenario_id: int) -> Scenario:
        if not 1 <= scenario_id <= len(self._scenarios):
            raise KeyError(f"no scenario #{scenario_id}")
        return self._scenarios[scenario_id - 1].copy()

    def ids(self) -> list[int]:
        return [s.id for s in self._scenarios]

    def params_table(self) -> pd.DataFrame:
        return pd.DataFrame([s.params_row() for s in self._scenarios], columns=PARAMS_COLUMNS)

    def results_table(self) -> pd.DataFrame:
        # nullable ints keep day indexes whole when some cells are absent
        results = pd.DataFrame([s.results_row() for s in self._scenarios], columns=RESULTS_COLUMNS)
        return results.astype({c: "Int64" for c in INTEGER_RESULTS_COLUMNS})


# ────────────────────────────────────────────────────────────────────────────
# 3. DISPLAY PROJECTIONS
# ────────────────────────────────────────────────────────────────────────────

def comparison_table(store: ScenarioStore) -> pd.DataFrame:
    """Parameters joined with results by simulation number, fixed column order."""
    merged = pd.merge(
        store.params_table(),
        store.results_table(),
        on='Simulation',
        how='left',
    )
    return merged[COMPARISON_COLUMNS].reset_index(drop=True)


def combined_series(store: ScenarioStore) -> pd.DataFrame:
    """
    All processed series stacked for multi-series charts.

    Columns: <six series> | t (step 1..T) | simulation ("#<id>")
    """
    frames = []
    for scenario in store:
        df = scenario.processed_series[SERIES_COLUMNS].reset_index(drop=True)
        df['t'] = range(1, len(df) + 1)
        df['simulation'] = f"#{scenario.id}"
        frames.append(df)
    if not frames:
        return pd.DataFrame(columns=SERIES_COLUMNS + ['t', 'simulation'])
    return pd.concat(frames, ignore_index=True)
