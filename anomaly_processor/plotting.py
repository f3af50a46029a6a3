# anomaly_processor/plotting.py
"""
Plotting Module

Charts drawn from the classified anomaly tables. Every function saves a PNG
and returns its path.
"""

import logging
import os
from typing import List, Optional

import matplotlib
matplotlib.use('Agg')
import matplotlib.pyplot as plt
import numpy as np
import pandas as pd
import seaborn as sns

from .classification import SEASONS
from .summaries import annual_mean_anomalies, category_counts, linear_trend, seasonal_means

logger = logging.getLogger(__name__)


def _annual_series(global_table: Optional[pd.DataFrame],
                   hemisphere_table: Optional[pd.DataFrame]) -> pd.DataFrame:
    frames = []
    if global_table is not None:
        frames.append(annual_mean_anomalies(global_table, 'Identifier')
                      .rename(columns={'Identifier': 'Series'}))
    if hemisphere_table is not None:
        frames.append(annual_mean_anomalies(hemisphere_table, 'Hemisphere')
                      .rename(columns={'Hemisphere': 'Series'}))
    annual = pd.concat(frames, ignore_index=True)
    annual['Series'] = annual['Series'].astype(str)
    return annual


def plot_annual_anomalies(global_table: Optional[pd.DataFrame],
                          hemisphere_table: Optional[pd.DataFrame],
                          output_dir: str) -> str:
    """Plot annual mean anomalies with a linear trend line per series."""
    annual = _annual_series(global_table, hemisphere_table)

    sns.set_theme(style='whitegrid')
    fig, ax = plt.subplots(figsize=(14, 7))
    palette = sns.color_palette('husl', annual['Series'].nunique())

    for color, (series, rows) in zip(palette, annual.groupby('Series')):
        ax.plot(rows['Year'], rows['Anomaly'], color=color, alpha=0.7, linewidth=1.2, label=series)
        if len(rows) >= 2:
            trend = linear_trend(rows)
            fitted = np.polyval([trend['slope_per_year'], trend['intercept']], rows['Year'])
            ax.plot(rows['Year'], fitted, color=color, linestyle='--', linewidth=1.5,
                    label=f"{series} trend ({trend['slope_per_decade']:+.2f}°C/decade)")

    ax.axhline(0, color='black', linewidth=0.8)
    ax.set_title('Annual Mean Temperature Anomaly')
    ax.set_xlabel('Year')
    ax.set_ylabel('Anomaly (°C)')
    ax.legend(loc='upper left')

    output_file = os.path.join(output_dir, 'annual_anomalies.png')
    plt.tight_layout()
    plt.savefig(output_file, dpi=150, bbox_inches='tight')
    plt.close(fig)
    return output_file


def plot_category_distribution(table: pd.DataFrame, group_column: str, output_dir: str,
                               name: str = 'category_distribution') -> str:
    """Plot the share of records in each temperature category per climate period."""
    counts = category_counts(table, group_column)
    groups = list(counts[group_column].astype(str).unique())

    fig, axes = plt.subplots(1, len(groups), figsize=(7 * len(groups), 6), squeeze=False)
    fig.suptitle('Temperature Categories by Climate Period', fontsize=14)

    for ax, group in zip(axes[0], groups):
        rows = counts[counts[group_column].astype(str) == group]
        pivot = rows.pivot_table(index='ClimatePeriod', columns='TemperatureCategory',
                                 values='count', aggfunc='sum', observed=False)
        shares = pivot.div(pivot.sum(axis=1).replace(0, np.nan), axis=0).fillna(0)
        shares.plot(kind='bar', stacked=True, ax=ax, colormap='coolwarm', width=0.8)
        ax.set_title(group)
        ax.set_xlabel('Climate period')
        ax.set_ylabel('Share of months')
        ax.tick_params(axis='x', rotation=0)
        ax.legend(title='Anomaly (°C)', fontsize=8)

    output_file = os.path.join(output_dir, f'{name}.png')
    plt.tight_layout()
    plt.savefig(output_file, dpi=150, bbox_inches='tight')
    plt.close(fig)
    return output_file


def plot_seasonal_anomalies(hemisphere_table: pd.DataFrame, output_dir: str) -> str:
    """Plot mean seasonal anomaly per decade, one panel per hemisphere."""
    means = seasonal_means(hemisphere_table)
    means['Season'] = means['Season'].astype(str)
    hemispheres = list(means['Hemisphere'].astype(str).unique())

    sns.set_theme(style='whitegrid')
    fig, axes = plt.subplots(1, len(hemispheres), figsize=(7 * len(hemispheres), 6),
                             sharey=True, squeeze=False)
    fig.suptitle('Seasonal Mean Anomaly by Decade', fontsize=14)

    for ax, hemisphere in zip(axes[0], hemispheres):
        rows = means[means['Hemisphere'].astype(str) == hemisphere]
        sns.lineplot(data=rows, x='Decade', y='Anomaly', hue='Season',
                     hue_order=list(SEASONS), marker='o', ax=ax)
        ax.axhline(0, color='black', linewidth=0.8)
        ax.set_title(f'{hemisphere} Hemisphere')
        ax.set_ylabel('Anomaly (°C)')

    output_file = os.path.join(output_dir, 'seasonal_anomalies.png')
    plt.tight_layout()
    plt.savefig(output_file, dpi=150, bbox_inches='tight')
    plt.close(fig)
    return output_file


def create_all_plots(global_table: Optional[pd.DataFrame],
                     hemisphere_table: Optional[pd.DataFrame],
                     output_dir: str) -> List[str]:
    """
    Create every chart for the tables that were built.

    Args:
        global_table: Global table, or None
        hemisphere_table: Hemisphere table, or None
        output_dir: Directory for the PNG files

    Returns:
        List of saved figure paths
    """
    os.makedirs(output_dir, exist_ok=True)
    saved = []

    if global_table is None and hemisphere_table is None:
        logger.warning("No tables to plot")
        return saved

    saved.append(plot_annual_anomalies(global_table, hemisphere_table, output_dir))

    if global_table is not None:
        saved.append(plot_category_distribution(global_table, 'Identifier', output_dir,
                                                'global_category_distribution'))
    if hemisphere_table is not None:
        saved.append(plot_category_distribution(hemisphere_table, 'Hemisphere', output_dir,
                                                'hemisphere_category_distribution'))
        saved.append(plot_seasonal_anomalies(hemisphere_table, output_dir))

    logger.info(f"Saved {len(saved)} figures to {output_dir}")
    return saved
