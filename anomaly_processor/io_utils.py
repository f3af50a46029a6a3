# anomaly_processor/io_utils.py
"""
I/O Utilities Module

Writes the Global and Hemisphere tables as CSV or NetCDF.
"""

import logging
import os
from datetime import datetime
from typing import Any, Dict, List, Optional

import pandas as pd
import xarray as xr

logger = logging.getLogger(__name__)

OUTPUT_EXTENSIONS = {'csv': 'csv', 'netcdf': 'nc'}

TABLE_TITLES = {
    'global_anomalies': 'Global Monthly Temperature Anomalies',
    'hemisphere_anomalies': 'Hemispheric Monthly Temperature Anomalies'
}


def table_to_dataset(table: pd.DataFrame, title: str) -> xr.Dataset:
    """
    Convert an output table to an xarray Dataset along a 'record' dimension.

    Categorical columns are stored as strings, with an empty string for
    unassigned labels; their declared category order is kept in the
    'categories' attribute.

    Args:
        table: Global or Hemisphere table
        title: Dataset title attribute

    Returns:
        xarray Dataset with one variable per column
    """
    data = table.reset_index(drop=True).copy()
    categories = {}

    for column in data.columns:
        if isinstance(data[column].dtype, pd.CategoricalDtype):
            categories[column] = [str(c) for c in data[column].cat.categories]
        if isinstance(data[column].dtype, pd.CategoricalDtype) or data[column].dtype == object:
            data[column] = data[column].astype(object).where(data[column].notna(), "").astype(str)

    data.index.name = 'record'
    dataset = xr.Dataset.from_dataframe(data)

    for column, column_categories in categories.items():
        dataset[column].attrs['categories'] = ', '.join(column_categories)

    if 'Anomaly' in dataset:
        dataset['Anomaly'].attrs.update({
            'units': 'degC',
            'long_name': 'Monthly surface temperature anomaly'
        })

    dataset.attrs.update({
        'title': title,
        'source': 'NASA GISS Surface Temperature Analysis (GISTEMP v4)',
        'baseline': '1951-1980',
        'created': datetime.now().isoformat(),
        'created_by': 'Anomaly Processor',
        'conventions': 'CF-1.8'
    })

    return dataset


def save_table(table: pd.DataFrame, name: str, config: Dict[str, Any]) -> str:
    """
    Save one table in the configured output format.

    Args:
        table: Table to save
        name: Output file stem
        config: Configuration dictionary

    Returns:
        Path to saved file
    """
    output_format = config.get('output_format', 'csv')
    output_file = os.path.join(config['output_dir'], f"{name}.{OUTPUT_EXTENSIONS[output_format]}")

    logger.info(f"Saving {len(table)} records to {output_file}...")

    if output_format == 'netcdf':
        dataset = table_to_dataset(table, TABLE_TITLES.get(name, name))
        encoding = {
            var: {'zlib': True, 'complevel': 4}
            for var in dataset.data_vars
            if dataset[var].dtype.kind in 'iuf'
        }
        dataset.to_netcdf(output_file, encoding=encoding)
    else:
        # Unassigned labels become empty cells
        table.to_csv(output_file, index=False)

    return output_file


def save_tables(global_table: Optional[pd.DataFrame], hemisphere_table: Optional[pd.DataFrame],
                config: Dict[str, Any]) -> List[str]:
    """
    Save the output tables that were built.

    Args:
        global_table: Global table, or None
        hemisphere_table: Hemisphere table, or None
        config: Configuration dictionary

    Returns:
        List of saved file paths
    """
    os.makedirs(config['output_dir'], exist_ok=True)
    saved_files = []

    if global_table is not None:
        saved_files.append(save_table(global_table, 'global_anomalies', config))
    if hemisphere_table is not None:
        saved_files.append(save_table(hemisphere_table, 'hemisphere_anomalies', config))

    return saved_files
