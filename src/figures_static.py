import os
import numpy as np
import pandas as pd
import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt
import seaborn as sns
from matplotlib.ticker import FuncFormatter

from comparators import comparator_value


def _stack(panel, col, window, scale=1.0):
    """
    Year x country matrix of `col` (NaN as 0), stacked cumulatively across countries.
    Returns (years, lower, upper) arrays with shape (n_years, n_countries).
    """
    sub = panel[panel["year"].between(window[0], window[1])]
    wide = sub.pivot_table(index="year", columns="iso3c", values=col, aggfunc="sum").fillna(0.0)
    wide = wide.sort_index() * scale
    upper = wide.cumsum(axis=1).to_numpy()
    lower = np.hstack([np.zeros((upper.shape[0], 1)), upper[:, :-1]])
    return wide.index.to_numpy(), lower, upper


def _fill_stack_x(ax, years, lower, upper, colors):
    for j in range(upper.shape[1]):
        ax.fill_betweenx(years, lower[:, j], upper[:, j], color=colors[j % len(colors)], linewidth=0)


def _thousands(x, _pos):
    return f"{x:,.0f}"


def _impact_figure(panel, comparables, deaths_col, days_col, window, ref_lines, xlabel, size):
    fig, ax = plt.subplots(figsize=size)
    n = max(panel["iso3c"].nunique(), 1)
    colors = sns.color_palette("husl", n)

    years, lo, up = _stack(panel, deaths_col, window)
    _fill_stack_x(ax, years, lo, up, colors)
    years, lo, up = _stack(panel, days_col, window, scale=-1.0 / 1000)
    _fill_stack_x(ax, years, lo, up, colors)

    ax.axvline(0, color="k", linewidth=0.8)
    line_colors = sns.color_palette("dark", len(ref_lines))
    for (label, location, outcome, sign), c in zip(ref_lines, line_colors):
        ax.axvline(sign * comparator_value(comparables, location, outcome), color=c, label=label)

    ax.set_ylim(window[1], window[0])
    ax.set_xlabel(xlabel)
    ax.xaxis.set_major_formatter(FuncFormatter(_thousands))
    ax.legend(loc="lower center", bbox_to_anchor=(0.5, -0.3), frameon=False, ncol=2)
    sns.despine()
    plt.tight_layout()
    return fig


def plot_cumulative_impact(panel, comparables, out_path, window=(2020, 2042), size=(8, 8)):
    """
    Cumulative lives saved (right) and work days gained in thousands (left) by country.
    """
    ref_lines = [
        ("Annual deaths from cancer (2020)", "world", "deaths from cancer", 1),
        ("Annual deaths from lung cancer (2020)", "world", "deaths from lung cancer", 1),
        ("Annual days worked in Sweden (2020)", "sweden", "days worked", -1 / 1000),
        ("Annual days worked in Germany (2020)", "germany", "days worked", -1 / 1000),
    ]
    fig = _impact_figure(
        panel, comparables, "deaths_central_averted_cumulative", "work_days_lost_averted_cumulative",
        window, ref_lines, "Cumulative impact\n(<- work days gained, 000s / lives saved ->)", size,
    )
    fig.savefig(out_path)
    plt.close(fig)
    return out_path


def plot_yearly_impact(panel, comparables, out_path, window=(2020, 2042), size=(8, 8)):
    """
    Yearly lives saved and work days gained (000s) by country.
    """
    ref_lines = [
        ("Annual days worked in Sweden (2020)", "sweden", "days worked", -1 / 1000),
        ("Worldwide deaths from breast cancer (2020)", "world", "deaths from breast cancer", 1),
    ]
    fig = _impact_figure(
        panel, comparables, "deaths_central_averted", "work_days_lost_averted",
        window, ref_lines, "Yearly impact\n(<- work days gained, 000s / lives saved ->)", size,
    )
    fig.savefig(out_path)
    plt.close(fig)
    return out_path


def plot_scenario_vs_baseline(panel, out_path, size=(8, 8)):
    """
    Annual deaths if targets are met (colour, by country) over baseline deaths (grey).
    """
    window = (int(panel["year"].min()), int(panel["year"].max()))
    fig, ax = plt.subplots(figsize=size)
    base = panel.groupby("year")["deaths_central"].sum().sort_index()
    ax.fill_between(base.index, 0, base.to_numpy(), color="0.75", linewidth=0)

    n = max(panel["iso3c"].nunique(), 1)
    colors = sns.color_palette("husl", n)
    years, lo, up = _stack(panel, "deaths_central_if_scenario", window)
    for j in range(up.shape[1]):
        ax.fill_between(years, lo[:, j], up[:, j], color=colors[j % len(colors)], linewidth=0)

    ax.set_title("Annual deaths, if eradication targets met (color), or not")
    ax.yaxis.set_major_formatter(FuncFormatter(_thousands))
    sns.despine()
    plt.tight_layout()
    fig.savefig(out_path)
    plt.close(fig)
    return out_path


def plot_all(panel: pd.DataFrame, comparables: pd.DataFrame, figures_dir: str, figures_cfg: dict) -> list:
    """
    Render every chart into `figures_dir`; returns the written paths.
    """
    os.makedirs(figures_dir, exist_ok=True)
    window = (int(figures_cfg["window"]["start"]), int(figures_cfg["window"]["stop"]))
    size = (float(figures_cfg.get("width", 8)), float(figures_cfg.get("height", 8)))
    return [
        plot_cumulative_impact(panel, comparables, os.path.join(figures_dir, "cumulative_impact.png"), window, size),
        plot_yearly_impact(panel, comparables, os.path.join(figures_dir, "impact.png"), window, size),
        plot_scenario_vs_baseline(panel, os.path.join(figures_dir, "eradication_vs_current_levels.png"), size),
    ]
