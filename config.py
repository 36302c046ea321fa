# config.py
#
# Fixed settings shared by the scenario runner, the analyzer and the charts.
# Day 0 of the model is March 22, 2020; day 1 is March 23, 2020.

from datetime import date

# ────────────────────────────────────────────────────────────────────────────
# 1. CALENDAR
# ────────────────────────────────────────────────────────────────────────────

BASELINE_DATE = date(2020, 3, 22)

# DO NOT CHANGE: the days these measures actually started in Minnesota
SD_START_DAY  = 1   # March 23rd
SIP_START_DAY = 6   # March 27th

HORIZON_DAYS = 365

DISPLAY_DATE_FORMAT = "%m/%d/%Y"

# ────────────────────────────────────────────────────────────────────────────
# 2. SUMMARY METRICS
# ────────────────────────────────────────────────────────────────────────────

MAY_30_STEP = 70      # cumulative deaths are read at this time step
RT_WINDOW_STEPS = 20  # early-growth window for the Rt regression

DEFAULT_ICU_BEDS = 1200

# ────────────────────────────────────────────────────────────────────────────
# 3. TABLE + CHART LABELS
# ────────────────────────────────────────────────────────────────────────────

PARAMS_COLUMNS = [
    "Simulation",
    "Shelter-In-Place End Date",
    "Social Distancing End Date",
]

RESULTS_COLUMNS = [
    "Simulation",
    "Mortality",
    "Mortality thru May",
    "Day ICU Cap Reached",
    "Max ICU Demand",
    "Rt Estimate",
    "Day of Peak Infections",
    "additional_vulnerable_sd_days",
]

INTEGER_RESULTS_COLUMNS = [
    "Mortality",
    "Mortality thru May",
    "Day ICU Cap Reached",
    "Max ICU Demand",
    "Day of Peak Infections",
    "additional_vulnerable_sd_days",
]

COMPARISON_COLUMNS = [
    "Simulation",
    "Shelter-In-Place End Date",
    "Social Distancing End Date",
    "Mortality",
    "Mortality thru May",
    "Day ICU Cap Reached",
    "Max ICU Demand",
    "Day of Peak Infections",
]

SERIES_COLUMNS = [
    "icu_bed_demand",
    "cumulative_deaths",
    "prevalent_infections",
    "cumulative_infections",
    "daily_deaths",
    "prevalent_hospitalizations",
]

SERIES_LABELS = {
    "icu_bed_demand":             "ICU Bed Demand",
    "cumulative_deaths":          "Cumulative Deaths",
    "prevalent_infections":       "Prevalent Infections",
    "cumulative_infections":      "Cumulative Infections",
    "daily_deaths":               "Daily Deaths",
    "prevalent_hospitalizations": "Prevalent Hospitalizations",
}

INDICATOR_COLUMNS = ["sd", "sip", "sd60p"]

DISCLAIMER = (
    "ℹ️  This tool runs intervention scenarios through a compartmental COVID-19 model.\n"
    "   It is meant to show possible differences in outcomes between mitigation strategies,\n"
    "   not to precisely estimate mortality. Every model relies on a simplified picture of\n"
    "   the world; understand the modeling method and its limits before using the results."
)
