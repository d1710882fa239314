#! /usr/bin/env python3
#
# SPDX-License-Identifier: GPL-3.0-or-later
#

'''
Data ingestion

Reads the Inside Airbnb tables, the short term rental program tables and the
neighbourhood boundaries for Toronto.
'''

from dataclasses import dataclass
from pathlib import Path
import logging
import geopandas as gpd
import pandas as pd

from airbnb_price_model.config import CRS, POLYGON_NAME_COL, Settings
from airbnb_price_model.errors import DataLoadError, SchemaValidationError


@dataclass(frozen=True)
class Datasets:
    '''All the inputs of a run, as loaded from disk.'''
    listings: pd.DataFrame
    reviews: pd.DataFrame
    neighbourhoods: pd.DataFrame
    program_summary: pd.DataFrame
    registrations: pd.DataFrame
    polygons: gpd.GeoDataFrame

    def tables(self) -> dict:
        '''Tabular inputs by name (polygons excluded).'''
        return {
            'listings': self.listings,
            'reviews': self.reviews,
            'neighbourhoods': self.neighbourhoods,
            'program_summary': self.program_summary,
            'registrations': self.registrations,
        }


def validate_columns(df:pd.DataFrame, required:list, name:str) -> None:
    '''
    Checks that all the required columns are in the dataframe.

    :param pd.DataFrame df: table to check
    :param list[str] required: expected column names
    :param str name: table name used in the error message
    :raises SchemaValidationError: if any column is missing
    '''
    missing = [col for col in required if col not in df.columns]
    if missing:
        raise SchemaValidationError(
            f'{name} is missing columns: {", ".join(missing)}',
            columns=missing)


def load_table(path:Path, name:str) -> pd.DataFrame:
    '''
    Reads a csv file (compression inferred from the extension).

    :param Path path: file to read
    :param str name: dataset name for logs and errors
    :return: the loaded table
    :rtype: pd.DataFrame
    :raises DataLoadError: if the file is missing, empty or malformed
    '''
    path = Path(path)
    if not path.is_file():
        raise DataLoadError(f'{name}: file not found at {path}')
    try:
        df = pd.read_csv(path, low_memory=False)
    except pd.errors.EmptyDataError as e:
        raise DataLoadError(f'{name}: {path} is empty') from e
    except (pd.errors.ParserError, UnicodeDecodeError, OSError) as e:
        raise DataLoadError(f'{name}: could not parse {path}: {e}') from e

    logging.info(f'Loaded {name}: {len(df):,} rows, {df.shape[1]} columns')
    return df


def load_neighbourhoods_geometry(
        path:Path,
        name_col:str=POLYGON_NAME_COL,
        crs:str=CRS
    ) -> gpd.GeoDataFrame:
    '''
    Reads the neighbourhood boundaries, keeps only the name and geometry
    columns and makes sure they're in WGS84.

    :param Path path: GeoJSON/GeoPackage/Shapefile path
    :param str name_col: column with the neighbourhood name
    :param str crs: output coordinate reference system
    :return: one polygon per neighbourhood
    :rtype: gpd.GeoDataFrame
    '''
    path = Path(path)
    if not path.is_file():
        raise DataLoadError(f'neighbourhood polygons: file not found at {path}')
    try:
        gdf = gpd.read_file(path)
    except Exception as e:
        raise DataLoadError(f'neighbourhood polygons: could not read {path}: {e}') from e

    validate_columns(gdf, [name_col], 'neighbourhood polygons')

    gdf = gdf[[name_col, 'geometry']].rename(columns={name_col: POLYGON_NAME_COL})
    if gdf.crs is None:
        gdf = gdf.set_crs(crs)
    elif gdf.crs != crs:
        gdf = gdf.to_crs(crs)

    logging.info(f'Loaded {len(gdf)} neighbourhood polygons')
    return gdf


def load_datasets(settings:Settings) -> Datasets:
    '''
    Loads the five tables and the polygons configured in the settings.
    '''
    tables = {name: load_table(settings.path(name), name)
              for name in settings.files}
    polygons = load_neighbourhoods_geometry(settings.geometry_path)
    return Datasets(polygons=polygons, **tables)
