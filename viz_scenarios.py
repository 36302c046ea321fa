#!/usr/bin/env python3
# viz_scenarios.py
#
# Summary:
# - Runs a list of (shelter-in-place end, social distancing end) scenarios in one session
# - Writes one comparison line chart per model output (color = simulation)
# - Writes the comparison table and a minimal index into docs/
#
# Notes:
# - The X-axis is weeks after March 22, 2020.
# - A scenario that fails prints a notice and is skipped; the rest still run.

import argparse
import os

import pandas as pd
import plotly.express as px

from config import DEFAULT_ICU_BEDS, DISCLAIMER, SERIES_COLUMNS, SERIES_LABELS
from errors import ScenarioError
from scenarios import Session
from store import ScenarioStore, combined_series, comparison_table


# Used when no --scenario is given: (shelter-in-place end, social distancing end)
DEFAULT_SCENARIOS = [
    ("2020-04-10", "2020-04-30"),
    ("2020-05-04", "2020-05-31"),
    ("2020-05-18", "2020-07-31"),
]


# ────────────────────────────────────────────────────────────────────────────
# 1. CHARTS + TABLE
# ────────────────────────────────────────────────────────────────────────────

def plot_series(df: pd.DataFrame, var_name: str):
    """Line chart of one output across all stored simulations."""
    df = df.assign(weeks=df['t'] / 7)
    label = SERIES_LABELS[var_name]
    fig = px.line(
        df,
        x="weeks", y=var_name,
        color="simulation",
        title=label,
        labels={"weeks": "Time (weeks after March 22nd)", var_name: label, "simulation": "Simulation"},
    )
    fig.update_layout(
        hovermode="x unified",
        legend_title="Simulation",
        title_x=0.5,
    )
    return fig


def write_outputs(store: ScenarioStore, outdir: str) -> list[tuple[str, str]]:
    """Write every chart, the comparison table and an index page. Returns (label, path) pairs."""
    os.makedirs(outdir, exist_ok=True)
    out_files: list[tuple[str, str]] = []

    df = combined_series(store)
    for var_name in SERIES_COLUMNS:
        fn = os.path.join(outdir, f"{var_name}.html")
        plot_series(df, var_name).write_html(fn, include_plotlyjs='cdn')
        print(f"→ wrote {fn}")
        out_files.append((SERIES_LABELS[var_name], fn))

    table_fn = os.path.join(outdir, "simulations_table.html")
    table_html = comparison_table(store).to_html(index=False, na_rep="")
    with open(table_fn, "w", encoding="utf-8") as f:
        f.write(table_html)
    print(f"→ wrote {table_fn}")
    out_files.append(("Simulations Table", table_fn))

    idx = [
        "<!DOCTYPE html>",
        "<html><head><meta charset='utf-8'><title>COVID-19 Model Sandbox</title></head>",
        "<body style='font-family:sans-serif; margin:2rem;'>",
        "<h1>📊 COVID-19 Intervention Scenarios</h1>",
        "<ul>",
    ]
    for label, fn in out_files:
        rel = os.path.basename(fn)
        idx.append(f"  <li><a href='{rel}' target='_blank'>{label}</a></li>")
    idx += [
        "</ul>",
        table_html,
        "</body></html>",
    ]
    index_fn = os.path.join(outdir, "index.html")
    with open(index_fn, "w", encoding="utf-8") as f:
        f.write("\n".join(idx))
    print(f"→ wrote {index_fn}")
    out_files.append(("Index", index_fn))
    return out_files


# ────────────────────────────────────────────────────────────────────────────
# 2. MAIN
# ────────────────────────────────────────────────────────────────────────────

def parse_args(argv=None):
    ap = argparse.ArgumentParser(
        description="Compare shelter-in-place / social distancing end dates through the COVID-19 model."
    )
    ap.add_argument("--scenario", nargs=2, action="append", metavar=("SIP_END", "SD_END"),
                    help="Shelter-in-place and social distancing end dates (e.g. 2020-05-04 2020-05-31). "
                         "Repeat for more scenarios.")
    ap.add_argument("--icu-beds", type=int, default=DEFAULT_ICU_BEDS,
                    help=f"ICU bed capacity (default: {DEFAULT_ICU_BEDS})")
    ap.add_argument("--outdir", default="docs", help="Output directory for HTML files (default: docs)")
    return ap.parse_args(argv)


def run_scenarios(scenarios, session: Session) -> None:
    for sip_end, sd_end in scenarios:
        session.form.sip_end_date = sip_end
        session.form.sd_end_date = sd_end
        try:
            scenario = session.run()
        except ScenarioError as e:
            print(f"⚠️  Simulation not recorded (SIP end {sip_end}, SD end {sd_end}): {e}")
            continue
        s = scenario.summary
        icu_day = s.day_icu_cap_reached if s.day_icu_cap_reached is not None else "not reached"
        print(f"→ simulation #{scenario.id}: deaths={s.mortality} ({s.pct_mortality}%), "
              f"ICU cap day={icu_day}, Rt≈{s.rt_estimate}")


def main(argv=None) -> None:
    args = parse_args(argv)
    print(DISCLAIMER)
    print()

    session = Session(n_icu_beds=args.icu_beds)
    run_scenarios(args.scenario or DEFAULT_SCENARIOS, session)

    if not len(session.store):
        print("No simulations recorded; nothing to write.")
        return

    write_outputs(session.store, args.outdir)
    print(f"✅ {len(session.store)} simulation(s) written into {args.outdir}/")


if __name__ == "__main__":
    main()
