#!/usr/bin/env python3
# model_engine.py
#
# Summary:
# - Deterministic staged-progression COVID-19 model (S → E1..Ek → I1..Im → H/ICU/R → D)
# - Contact reduction switched on/off by three intervention indicators:
#     sd    = general social distancing
#     sip   = shelter-in-place
#     sd60p = extra distancing of the 60+ group after general measures lift
# - Integrated with scipy's odeint (LSODA), one row per time step
#
# Notes:
# - Time is in days. Day 1 = March 23, 2020 (see config.BASELINE_DATE).
# - Transition rates are per timestep, so the per-day rate is rate / timestep.
# - "cumulative infections" is carried as its own state (X) so it is exact.

import numpy as np
import pandas as pd
from scipy.integrate import odeint

from config import DEFAULT_ICU_BEDS, SD_START_DAY, SIP_START_DAY, SERIES_COLUMNS


# ────────────────────────────────────────────────────────────────────────────
# 1. PARAMETERS
# ────────────────────────────────────────────────────────────────────────────

def parameters(n_icu_beds: int = DEFAULT_ICU_BEDS) -> dict:
    """Base-case parameter set. Every field can be overridden by the caller."""
    parms = {
        'N':                       5_640_000,   # Minnesota population
        'n_icu_beds':              n_icu_beds,
        'timestep':                1.0,
        'R0':                      2.5,

        # staged progression
        'n_exposed_states':        3,
        'exposed_transition_rate': 3 / 5.2,     # mean latent period 5.2 days
        'n_infected_states':       3,
        'infected_transition_rate': 3 / 7.0,    # mean infectious period 7 days

        # clinical course (fractions of those leaving the last infectious stage)
        'p_hosp':                  0.030,
        'p_icu':                   0.010,
        'hosp_los':                10.0,
        'icu_los':                 14.0,
        'icu_mortality':           0.40,
        'icu_overflow_mortality':  0.90,        # ICU-level patients beyond capacity

        # interventions (contact reductions while active)
        'start_time_social_distancing': SD_START_DAY,
        'end_time_social_distancing':   SD_START_DAY + 60,
        'start_time_sip':               SIP_START_DAY,
        'end_time_sip':                 SIP_START_DAY + 30,
        'sd_reduction':                 0.40,
        'sip_reduction':                0.70,
        'sixty_plus_share':             0.25,
        'sixty_plus_reduction':         0.60,
        'sixty_plus_days_past_peak':    14,     # < 0 → 60+ group lifts with everyone else

        'initial_infections':      100.0,
    }
    parms['init_vec'] = initial_state(parms)
    return parms


def state_labels(parms: dict) -> list[str]:
    """Column names of the state vector, in integration order."""
    exposed  = [f"E{i + 1}" for i in range(parms['n_exposed_states'])]
    infected = [f"I{i + 1}" for i in range(parms['n_infected_states'])]
    return ['S'] + exposed + infected + ['H', 'C', 'R', 'D', 'X']


def initial_state(parms: dict) -> np.ndarray:
    """Seed infections in the first infectious stage; X counts them as already infected."""
    labels = state_labels(parms)
    y0 = np.zeros(len(labels))
    seed = float(parms['initial_infections'])
    y0[labels.index('S')]  = parms['N'] - seed
    y0[labels.index('I1')] = seed
    y0[labels.index('X')]  = seed
    return y0


# ────────────────────────────────────────────────────────────────────────────
# 2. INTERVENTIONS
# ────────────────────────────────────────────────────────────────────────────

def intervention_flags(t: float, parms: dict) -> tuple[float, float, float]:
    """Return the (sd, sip, sd60p) indicators, each 0.0 or 1.0, at day t."""
    sd_start, sd_end   = parms['start_time_social_distancing'], parms['end_time_social_distancing']
    sip_start, sip_end = parms['start_time_sip'], parms['end_time_sip']

    sd  = float(sd_start <= t <= sd_end)
    sip = float(sip_start <= t <= sip_end)

    extra = parms['sixty_plus_days_past_peak']
    if extra < 0:
        return sd, sip, sd

    # 60+ keep distancing for `extra` days after the last general measure lifts;
    # a measure whose end precedes its start never ran and does not count
    ends = [end for start, end in ((sd_start, sd_end), (sip_start, sip_end)) if end >= start]
    if not ends:
        return sd, sip, 0.0
    sd60p = float(sd_start <= t <= max(ends) + extra)
    return sd, sip, sd60p


def contact_multiplier(t: float, parms: dict) -> float:
    sd, sip, sd60p = intervention_flags(t, parms)
    reduction = max(
        sd * parms['sd_reduction'],
        sip * parms['sip_reduction'],
        sd60p * parms['sixty_plus_share'] * parms['sixty_plus_reduction'],
    )
    return 1.0 - reduction


# ────────────────────────────────────────────────────────────────────────────
# 3. MODEL FUNCTION + SOLVER
# ────────────────────────────────────────────────────────────────────────────

def covid_19_model_function(y: np.ndarray, t: float, parms: dict) -> np.ndarray:
    """Right-hand side of the ODE system, in odeint's (y, t, *args) order."""
    k, m = parms['n_exposed_states'], parms['n_infected_states']
    N = parms['N']

    S = y[0]
    E = y[1:1 + k]
    I = y[1 + k:1 + k + m]
    H, C = y[1 + k + m], y[2 + k + m]

    # per-day stage rates
    sigma = parms['exposed_transition_rate'] / parms['timestep']
    gamma = parms['infected_transition_rate'] / parms['timestep']
    avg_inf_dur = m / gamma
    beta = parms['R0'] / avg_inf_dur * contact_multiplier(t, parms)

    new_inf = beta * S * I.sum() / N

    dE = np.empty(k)
    dE[0] = new_inf - sigma * E[0]
    dE[1:] = sigma * E[:-1] - sigma * E[1:]

    dI = np.empty(m)
    dI[0] = sigma * E[-1] - gamma * I[0]
    dI[1:] = gamma * I[:-1] - gamma * I[1:]

    leaving = gamma * I[-1]
    to_hosp = parms['p_hosp'] * leaving
    to_icu  = parms['p_icu'] * leaving

    cap = parms['n_icu_beds']
    icu_out = C / parms['icu_los']
    icu_deaths = (min(C, cap) * parms['icu_mortality']
                  + max(C - cap, 0.0) * parms['icu_overflow_mortality']) / parms['icu_los']

    dS = -new_inf
    dH = to_hosp - H / parms['hosp_los']
    dC = to_icu - icu_out
    dR = (leaving - to_hosp - to_icu) + H / parms['hosp_los'] + (icu_out - icu_deaths)
    dD = icu_deaths
    dX = new_inf

    return np.concatenate(([dS], dE, dI, [dH, dC, dR, dD, dX]))


def solve_model(init_vec: np.ndarray, times: np.ndarray, func, parms: dict) -> pd.DataFrame:
    """
    Integrate `func` over `times` and return the raw trajectory.

    Columns: time | S | E1..Ek | I1..Im | H | C | R | D | X | sd | sip | sd60p
    """
    # hmax keeps the integrator from stepping over an intervention switch
    sol = odeint(func, init_vec, times, args=(parms,), hmax=parms['timestep'])

    raw = pd.DataFrame(sol, columns=state_labels(parms))
    raw.insert(0, 'time', times)
    flags = np.array([intervention_flags(t, parms) for t in times])
    raw['sd']    = flags[:, 0]
    raw['sip']   = flags[:, 1]
    raw['sd60p'] = flags[:, 2]
    return raw


def process_output(raw: pd.DataFrame, parms: dict) -> pd.DataFrame:
    """Derive the six display series (plus time) from a raw trajectory."""
    labels = state_labels(parms)
    exposed_and_infected = [c for c in labels if c[0] in ('E', 'I')]

    out = pd.DataFrame({
        'icu_bed_demand':             raw['C'],
        'cumulative_deaths':          raw['D'],
        'prevalent_infections':       raw[exposed_and_infected].sum(axis=1),
        'cumulative_infections':      raw['X'],
        'daily_deaths':               raw['D'].diff().fillna(0.0),
        'prevalent_hospitalizations': raw['H'] + raw['C'],
    })
    out = out[SERIES_COLUMNS].copy()
    out['time'] = raw['time']
    return out


class ModelEngine:
    """The functions above bundled as the collaborator the scenario runner calls."""

    model_function = staticmethod(covid_19_model_function)

    def parameters(self, n_icu_beds: int = DEFAULT_ICU_BEDS) -> dict:
        return parameters(n_icu_beds=n_icu_beds)

    def solve_model(self, init_vec, times, func, parms) -> pd.DataFrame:
        return solve_model(init_vec, times, func, parms)

    def process_output(self, raw: pd.DataFrame, parms: dict) -> pd.DataFrame:
        return process_output(raw, parms)
