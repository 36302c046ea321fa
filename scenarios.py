#!/usr/bin/env python3
# scenarios.py
#
# Summary:
# - Turns two user-chosen end dates into an intervention schedule (day offsets)
# - Freezes the form's current dates into an immutable run request
# - Runs one simulation per request and records it in the session's store
#
# Notes:
# - Editing the form never runs anything; only Session.run() does.
# - A failed run raises before the store is touched, and consumes no id.

from dataclasses import dataclass
from datetime import date

import numpy as np
import pandas as pd

from analysis import normalize_series, summarize
from config import (
    BASELINE_DATE,
    DEFAULT_ICU_BEDS,
    DISPLAY_DATE_FORMAT,
    HORIZON_DAYS,
    SD_START_DAY,
    SIP_START_DAY,
)
from errors import InvalidInputError
from model_engine import ModelEngine
from store import Scenario, ScenarioStore


# ────────────────────────────────────────────────────────────────────────────
# 1. INTERVENTION SCHEDULE BUILDER
# ────────────────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class InterventionSchedule:
    sd_start: int
    sd_end: int
    sip_start: int
    sip_end: int


def parse_date(value, field: str) -> date:
    """Accept a date, datetime, Timestamp or date-like string; anything else is invalid."""
    if value is None or (isinstance(value, str) and not value.strip()):
        raise InvalidInputError(f"{field} is required")
    # pandas would read a bare number as an epoch offset
    if isinstance(value, (bool, int, float, np.integer, np.floating)):
        raise InvalidInputError(f"{field}: expected a date, got the number {value!r}")
    try:
        ts = pd.to_datetime(value)
    except (TypeError, ValueError) as e:
        raise InvalidInputError(f"{field}: cannot parse {value!r} as a date") from e
    if pd.isna(ts):
        raise InvalidInputError(f"{field} is required")
    return ts.date()


def day_offset(d: date) -> int:
    """Days since the model's day 0 (March 22, 2020)."""
    return (d - BASELINE_DATE).days


def build_schedule(sip_end_date, sd_end_date) -> InterventionSchedule:
    """
    Start offsets are fixed; end offsets come from the two dates.

    An end date before its start is passed through unchanged: the engine gets
    a zero- or negative-length intervention, not a clamped one.
    """
    sip_end = day_offset(parse_date(sip_end_date, "shelter-in-place end date"))
    sd_end  = day_offset(parse_date(sd_end_date, "social distancing end date"))
    return InterventionSchedule(
        sd_start=SD_START_DAY,
        sd_end=sd_end,
        sip_start=SIP_START_DAY,
        sip_end=sip_end,
    )


# ────────────────────────────────────────────────────────────────────────────
# 2. FORM STATE → RUN REQUEST
# ────────────────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class RunRequest:
    """The two date inputs exactly as they were when the user hit run."""
    sip_end_date: object
    sd_end_date: object


class ScenarioForm:
    """Mutable date inputs. Setting them has no side effects."""

    def __init__(self, sip_end_date=None, sd_end_date=None):
        self.sip_end_date = sip_end_date
        self.sd_end_date = sd_end_date

    def snapshot(self) -> RunRequest:
        return RunRequest(sip_end_date=self.sip_end_date, sd_end_date=self.sd_end_date)


# ────────────────────────────────────────────────────────────────────────────
# 3. SCENARIO RUNNER
# ────────────────────────────────────────────────────────────────────────────

def time_grid(timestep: float) -> np.ndarray:
    """Day 1 through the horizon (inclusive) at the model's timestep."""
    return np.arange(1.0, HORIZON_DAYS + timestep / 2, timestep)


class ScenarioRunner:
    def __init__(self, engine=None, n_icu_beds: int = DEFAULT_ICU_BEDS):
        self.engine = engine if engine is not None else ModelEngine()
        self.n_icu_beds = n_icu_beds

    def build_parameters(self, schedule: InterventionSchedule) -> dict:
        parms = self.engine.parameters(n_icu_beds=self.n_icu_beds)
        parms['start_time_social_distancing'] = schedule.sd_start
        parms['end_time_social_distancing']   = schedule.sd_end
        parms['start_time_sip']               = schedule.sip_start
        parms['end_time_sip']                 = schedule.sip_end
        return parms

    def run(self, request: RunRequest, store: ScenarioStore) -> Scenario:
        """Run one scenario end to end and append it to `store`."""
        sip_end = parse_date(request.sip_end_date, "shelter-in-place end date")
        sd_end  = parse_date(request.sd_end_date, "social distancing end date")
        schedule = build_schedule(sip_end, sd_end)

        parms = self.build_parameters(schedule)
        times = time_grid(parms['timestep'])

        raw = self.engine.solve_model(
            parms['init_vec'],
            times,
            self.engine.model_function,
            parms,
        )
        processed = self.engine.process_output(raw, parms)
        series = normalize_series(raw, processed)
        summary = summarize(raw, series, parms)

        scenario = Scenario(
            id=store.next_id,
            sip_end_offset=schedule.sip_end,
            sd_end_offset=schedule.sd_end,
            sip_end_label=sip_end.strftime(DISPLAY_DATE_FORMAT),
            sd_end_label=sd_end.strftime(DISPLAY_DATE_FORMAT),
            raw_trajectory=raw.copy(deep=True),
            processed_series=series,
            summary=summary,
        )
        store.append(scenario)
        return scenario


# ────────────────────────────────────────────────────────────────────────────
# 4. SESSION
# ────────────────────────────────────────────────────────────────────────────

class Session:
    """One user's form, runner and scenario history. Nothing is shared between sessions."""

    def __init__(self, engine=None, n_icu_beds: int = DEFAULT_ICU_BEDS):
        self.form = ScenarioForm()
        self.store = ScenarioStore()
        self.runner = ScenarioRunner(engine=engine, n_icu_beds=n_icu_beds)

    def run(self) -> Scenario:
        """The explicit trigger: snapshot the form, then process the snapshot."""
        request = self.form.snapshot()
        return self.runner.run(request, self.store)
