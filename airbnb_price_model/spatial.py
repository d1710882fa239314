#! /usr/bin/env python3
#
# SPDX-License-Identifier: GPL-3.0-or-later
#

'''
Spatial aggregation

Attaches the test-set predictions to the listings, averages predicted price
and residual by neighbourhood and joins the result onto the neighbourhood
polygons for the choropleths.

Neighbourhood names are matched exactly (no case, whitespace or accent
normalization); both datasets come from the City of Toronto's 158
neighbourhood list and mismatches are reported by check_neighbourhood_names.
'''

import logging
import geopandas as gpd
import pandas as pd

from airbnb_price_model.config import NEIGHBOURHOOD_COL, POLYGON_NAME_COL, TARGET
from airbnb_price_model.errors import JoinMismatchError, SchemaValidationError


def attach_predictions(
        listings:pd.DataFrame,
        predicted:pd.Series,
        target:str=TARGET
    ) -> pd.DataFrame:
    '''
    Returns a copy of the listings with the columns:
    - predicted_price: prediction for the rows in `predicted`'s index, NaN
      for the rest (training rows)
    - residual: price - predicted_price, NaN where there's no prediction

    :param pd.DataFrame listings: cleaned listings
    :param pd.Series predicted: predictions indexed by listing row label
    :return: listings with the two new columns
    :rtype: pd.DataFrame
    '''
    unknown = predicted.index.difference(listings.index)
    if len(unknown):
        raise SchemaValidationError(
            f'{len(unknown)} predictions don\'t match any listing row')

    predicted_price = predicted.astype(float).reindex(listings.index)
    return listings.assign(
        predicted_price=predicted_price,
        residual=listings[target] - predicted_price,
    )


def aggregate_by_neighbourhood(
        df:pd.DataFrame,
        neighbourhood_col:str=NEIGHBOURHOOD_COL
    ) -> pd.DataFrame:
    '''
    Mean predicted price and mean residual by neighbourhood, skipping the
    listings without prediction. A neighbourhood with no predicted listings
    gets NaN means and a count of 0.

    :param pd.DataFrame df: output of attach_predictions
    :param str neighbourhood_col: column with the neighbourhood name
    :return: one row per neighbourhood with columns ['neighbourhood',
        'mean_predicted_price', 'mean_residual', 'n_test_listings']
    :rtype: pd.DataFrame
    '''
    agg = (
        df.groupby(neighbourhood_col, sort=True)
        .agg(
            mean_predicted_price=('predicted_price', 'mean'),
            mean_residual=('residual', 'mean'),
            n_test_listings=('predicted_price', 'count'),
        )
        .reset_index()
        .rename(columns={neighbourhood_col: POLYGON_NAME_COL})
    )
    return agg


def check_neighbourhood_names(
        listing_names,
        polygon_names,
        strict:bool=False
    ) -> tuple:
    '''
    Compares the neighbourhood names on both sides of the polygon join.

    :param listing_names: names found in the listings
    :param polygon_names: names found in the polygons
    :param bool strict: raise instead of logging a warning
    :return: (names missing from the polygons, polygons without listings)
    :rtype: tuple[list, list]
    :raises JoinMismatchError: on mismatch when strict is True
    '''
    listing_names = set(pd.Series(listing_names).dropna())
    polygon_names = set(pd.Series(polygon_names).dropna())
    missing_polygons = sorted(listing_names - polygon_names)
    missing_listings = sorted(polygon_names - listing_names)

    if missing_polygons or missing_listings:
        message = (
            f'{len(missing_polygons)} neighbourhoods without polygon '
            f'{missing_polygons}, {len(missing_listings)} polygons without '
            f'listings {missing_listings}')
        if strict:
            raise JoinMismatchError(
                message,
                missing_polygons=missing_polygons,
                missing_listings=missing_listings)
        logging.warning(message)

    return missing_polygons, missing_listings


def join_polygons(
        polygons:gpd.GeoDataFrame,
        aggregates:pd.DataFrame,
        name_col:str=POLYGON_NAME_COL
    ) -> gpd.GeoDataFrame:
    '''
    Left joins the neighbourhood aggregates onto the polygons. Polygons
    without aggregate keep NaN values (drawn as "No data").
    '''
    joined = polygons.merge(aggregates, on=name_col, how='left')
    return gpd.GeoDataFrame(joined, geometry=polygons.geometry.name, crs=polygons.crs)
