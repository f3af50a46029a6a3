# anomaly_processor/classification.py
"""
Classification Module

Labels monthly anomaly records by decade, 30-year climate period, anomaly
magnitude category and season.

All lookup tables are built once at import time and are immutable: the
climate periods and temperature categories are tuples of frozen dataclasses
whose boundaries and labels stay paired, and the season table is a read-only
mapping. Each labelling rule has a scalar form (one value in, one label out)
and a vectorized form over pandas Series that returns an ordered categorical.
"""

import logging
from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping, Optional, Tuple

import numpy as np
import pandas as pd

logger = logging.getLogger(__name__)

PERIOD_LENGTH = 30


@dataclass(frozen=True)
class ClimatePeriod:
    """A right-closed 30-year window, (start_year, end_year]."""
    start_year: int
    end_year: int

    @property
    def label(self) -> str:
        return f"{self.start_year} - {self.end_year}"

    def __str__(self) -> str:
        return self.label


@dataclass(frozen=True)
class TemperatureCategory:
    """An anomaly magnitude bin, matched on its inclusive upper bound."""
    start: float
    end: float
    label: str


CLIMATE_PERIODS: Tuple[ClimatePeriod, ...] = tuple(
    ClimatePeriod(end_year - PERIOD_LENGTH, end_year)
    for end_year in (1930, 1960, 1990, 2020)
)
CLIMATE_PERIOD_LABELS: Tuple[str, ...] = tuple(period.label for period in CLIMATE_PERIODS)
CLIMATE_PERIOD_DTYPE = pd.CategoricalDtype(list(CLIMATE_PERIOD_LABELS), ordered=True)

# Records before the first period start are excluded from classified output
FIRST_PERIOD_START = CLIMATE_PERIODS[0].start_year

_CATEGORY_STARTS = (-2.0, 0.0, 0.5, 1.0, 1.5, 2.0)
_CATEGORY_ENDS = (0.0, 0.5, 1.0, 1.5, 2.0, 2.5)


def _format_bound(value: float) -> str:
    return "0" if value == 0 else f"{value:.1f}"


def _category_label(index: int, start: float, end: float) -> str:
    if index == 0:
        return "<0"
    if index == len(_CATEGORY_ENDS) - 1:
        return ">2"
    return f"{_format_bound(start)} to {_format_bound(end)}"


TEMPERATURE_CATEGORIES: Tuple[TemperatureCategory, ...] = tuple(
    TemperatureCategory(start, end, _category_label(index, start, end))
    for index, (start, end) in enumerate(zip(_CATEGORY_STARTS, _CATEGORY_ENDS))
)
TEMPERATURE_CATEGORY_LABELS: Tuple[str, ...] = tuple(c.label for c in TEMPERATURE_CATEGORIES)
TEMPERATURE_CATEGORY_DTYPE = pd.CategoricalDtype(list(TEMPERATURE_CATEGORY_LABELS), ordered=True)

SEASONS: Tuple[str, ...] = ('Winter', 'Spring', 'Summer', 'Autumn')
SEASON_DTYPE = pd.CategoricalDtype(list(SEASONS), ordered=True)

HEMISPHERES: Tuple[str, ...] = ('Northern', 'Southern')
HEMISPHERE_DTYPE = pd.CategoricalDtype(list(HEMISPHERES), ordered=True)

_NORTHERN_SEASON_MONTHS = {
    'Winter': ('Dec', 'Jan', 'Feb'),
    'Spring': ('Mar', 'Apr', 'May'),
    'Summer': ('Jun', 'Jul', 'Aug'),
    'Autumn': ('Sep', 'Oct', 'Nov'),
}


def _rotate_season(season: str, quarters: int) -> str:
    return SEASONS[(SEASONS.index(season) + quarters) % len(SEASONS)]


# Southern seasons are the northern ones shifted by two quarters
SEASONS_BY_HEMISPHERE: Mapping[str, Mapping[str, str]] = MappingProxyType({
    'Northern': MappingProxyType({
        month: season
        for season, months in _NORTHERN_SEASON_MONTHS.items()
        for month in months
    }),
    'Southern': MappingProxyType({
        month: _rotate_season(season, 2)
        for season, months in _NORTHERN_SEASON_MONTHS.items()
        for month in months
    }),
})


def calculate_decade(year: int) -> int:
    """
    Round a year up to its decade boundary.

    A year that is already a multiple of ten moves to the next decade:
    1995 -> 2000, 1990 -> 2000, 2001 -> 2010.
    """
    return year - year % 10 + 10


def classify_climate_period(year: int) -> Optional[str]:
    """
    Get the label of the climate period containing a year.

    Periods are checked in ascending order and the first one whose end year
    is not before the given year wins. Years after the last period end are
    left unassigned rather than clipped to the last period.

    Args:
        year: Calendar year

    Returns:
        Period label such as "1900 - 1930", or None past 2020
    """
    for period in CLIMATE_PERIODS:
        if year <= period.end_year:
            return period.label
    return None


def classify_temperature(anomaly: float) -> Optional[str]:
    """
    Get the magnitude category of an anomaly.

    Upper bounds are inclusive, so 0.0 is "<0" and 0.5 is "0 to 0.5".
    Anomalies above the top bound (2.5) are left unassigned.

    Args:
        anomaly: Temperature anomaly in degrees C

    Returns:
        Category label, or None when the anomaly is missing or above 2.5
    """
    if pd.isna(anomaly):
        return None
    for category in TEMPERATURE_CATEGORIES:
        if anomaly <= category.end:
            return category.label
    return None


def classify_season(hemisphere: str, month: str) -> str:
    """
    Look up the season of a month in a hemisphere.

    Raises:
        KeyError: If the hemisphere or month code is unknown
    """
    try:
        return SEASONS_BY_HEMISPHERE[hemisphere][month]
    except KeyError:
        raise KeyError(f"No season defined for hemisphere={hemisphere!r}, month={month!r}") from None


def assign_decades(years: pd.Series) -> pd.Series:
    """Vectorized calculate_decade."""
    years = years.astype(int)
    return (years - years % 10 + 10).rename('Decade')


def assign_climate_periods(years: pd.Series) -> pd.Series:
    """Vectorized classify_climate_period; unassigned years are NaN."""
    bins = [-np.inf] + [period.end_year for period in CLIMATE_PERIODS]
    periods = pd.cut(years, bins=bins, labels=list(CLIMATE_PERIOD_LABELS), right=True)
    return periods.astype(CLIMATE_PERIOD_DTYPE).rename('ClimatePeriod')


def assign_temperature_categories(anomalies: pd.Series) -> pd.Series:
    """Vectorized classify_temperature; anomalies above 2.5 are NaN."""
    bins = [-np.inf] + [category.end for category in TEMPERATURE_CATEGORIES]
    categories = pd.cut(anomalies, bins=bins, labels=list(TEMPERATURE_CATEGORY_LABELS), right=True)
    return categories.astype(TEMPERATURE_CATEGORY_DTYPE).rename('TemperatureCategory')


def assign_seasons(hemispheres: pd.Series, months: pd.Series) -> pd.Series:
    """Vectorized classify_season."""
    labels = [classify_season(str(h), str(m)) for h, m in zip(hemispheres, months)]
    return pd.Series(pd.Categorical(labels, dtype=SEASON_DTYPE), index=hemispheres.index, name='Season')


def classify_records(records: pd.DataFrame, first_year: int = FIRST_PERIOD_START) -> pd.DataFrame:
    """
    Filter long-format records by year and add Decade, ClimatePeriod and
    TemperatureCategory.

    Args:
        records: Output of tidy_raw_table
        first_year: Records from earlier years are dropped; never earlier
            than the first climate period start

    Returns:
        New DataFrame; the input is not modified
    """
    first_year = max(first_year, FIRST_PERIOD_START)
    classified = records.loc[records['Year'] >= first_year].copy()
    classified['Decade'] = assign_decades(classified['Year'])
    classified['ClimatePeriod'] = assign_climate_periods(classified['Year'])
    classified['TemperatureCategory'] = assign_temperature_categories(classified['Anomaly'])
    return classified.reset_index(drop=True)
