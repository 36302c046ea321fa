import numpy as np
import pandas as pd
import pytest

from config import SERIES_COLUMNS
from model_engine import intervention_flags


def synthetic_processed(times: np.ndarray) -> pd.DataFrame:
    """Smooth, hand-checkable outputs: exponential early growth, one infection peak at day 100."""
    t = np.asarray(times, dtype=float)
    prevalent = 1000.0 * np.exp(-((t - 100.0) / 30.0) ** 2)
    deaths = 2.0 * t
    df = pd.DataFrame({
        'icu_bed_demand':             0.5 * prevalent,
        'cumulative_deaths':          deaths,
        'prevalent_infections':       prevalent,
        'cumulative_infections':      100.0 * np.exp(0.1 * (t - 1.0)),
        'daily_deaths':               np.diff(deaths, prepend=deaths[0]),
        'prevalent_hospitalizations': prevalent,
    })
    df = df[SERIES_COLUMNS].copy()
    df['time'] = t
    return df


def synthetic_raw(times: np.ndarray, parms: dict) -> pd.DataFrame:
    flags = np.array([intervention_flags(t, parms) for t in times])
    return pd.DataFrame({
        'time':  times,
        'S':     np.full(len(times), 1e6),
        'sd':    flags[:, 0],
        'sip':   flags[:, 1],
        'sd60p': flags[:, 2],
    })


class StubEngine:
    """Stands in for the model engine; records every solve call."""

    def __init__(self, sixty_plus_days_past_peak=14):
        self.sixty_plus_days_past_peak = sixty_plus_days_past_peak
        self.calls = []

    @staticmethod
    def model_function(y, t, parms):
        return np.zeros_like(y)

    def parameters(self, n_icu_beds=300):
        return {
            'N':                            1_000_000,
            'n_icu_beds':                   n_icu_beds,
            'timestep':                     1.0,
            'n_exposed_states':             2,
            'exposed_transition_rate':      0.5,
            'n_infected_states':            2,
            'infected_transition_rate':     0.4,
            'start_time_social_distancing': 1,
            'end_time_social_distancing':   30,
            'start_time_sip':               6,
            'end_time_sip':                 20,
            'sixty_plus_days_past_peak':    self.sixty_plus_days_past_peak,
            'init_vec':                     np.zeros(3),
        }

    def solve_model(self, init_vec, times, func, parms):
        self.calls.append(dict(parms))
        return synthetic_raw(times, parms)

    def process_output(self, raw, parms):
        return synthetic_processed(raw['time'].to_numpy())


class BrokenEngine(StubEngine):
    """Drops a required column from its processed output."""

    def process_output(self, raw, parms):
        return super().process_output(raw, parms).drop(columns=['daily_deaths'])


class NanEngine(StubEngine):
    """Lets a NaN through in the last cumulative deaths value."""

    def process_output(self, raw, parms):
        processed = super().process_output(raw, parms)
        processed.loc[processed.index[-1], 'cumulative_deaths'] = np.nan
        return processed


@pytest.fixture
def stub_engine():
    return StubEngine()


@pytest.fixture
def stub_parms(stub_engine):
    return stub_engine.parameters()
