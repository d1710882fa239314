#! /usr/bin/env python3
#
# SPDX-License-Identifier: GPL-3.0-or-later
#

'''
Cleaning

Turns the raw Inside Airbnb listings into the modeling table:
1. Normalize column names
2. Parse the price strings ("$1,200.00") to floats
3. Keep listings with PRICE_MIN < price < PRICE_MAX
4. Keep the feature columns only
5. Drop rows with any missing value (no imputation)
'''

import logging
import pandas as pd

from airbnb_price_model.config import (
    FEATURES, NUMERIC_FEATURES, PRICE_MAX, PRICE_MIN, TARGET)
from airbnb_price_model.errors import SchemaValidationError
from airbnb_price_model.ingest import validate_columns


def normalize_columns(df:pd.DataFrame) -> pd.DataFrame:
    '''Returns a copy with stripped, lowercase, snake_case column names.'''
    renamed = {
        col: '_'.join(str(col).strip().lower().split())
        for col in df.columns
    }
    return df.rename(columns=renamed)


def parse_price(prices:pd.Series) -> pd.Series:
    '''
    Removes currency symbols, thousands separators and whitespace and
    converts to float. Anything that can't be parsed becomes NaN.

    :param pd.Series prices: raw prices, e.g. "$1,200.00"
    :return: numeric prices
    :rtype: pd.Series
    '''
    if pd.api.types.is_numeric_dtype(prices):
        return prices.astype(float)
    cleaned = prices.astype(str).str.replace(r'[$,\s]', '', regex=True)
    return pd.to_numeric(cleaned, errors='coerce').astype(float)


def filter_price(
        df:pd.DataFrame,
        low:float=PRICE_MIN,
        high:float=PRICE_MAX
    ) -> pd.DataFrame:
    '''Keeps the rows with low < price < high (NaN prices are dropped).'''
    mask = df[TARGET].gt(low) & df[TARGET].lt(high)
    return df[mask]


def _check_numeric(df:pd.DataFrame, columns:list) -> None:
    wrong = [col for col in columns
             if not pd.api.types.is_numeric_dtype(df[col])]
    if wrong:
        raise SchemaValidationError(
            f'Expected numeric columns: {", ".join(wrong)}', columns=wrong)


def clean_listings(
        listings:pd.DataFrame,
        features:list=FEATURES,
        numeric:list=NUMERIC_FEATURES,
        low:float=PRICE_MIN,
        high:float=PRICE_MAX
    ) -> pd.DataFrame:
    '''
    Cleans the raw listings table. The input dataframe is not modified.

    :param pd.DataFrame listings: raw listings
    :param list[str] features: columns to keep (must include id and price)
    :param list[str] numeric: columns in features that must be numeric
    :param float low: exclusive lower price bound
    :param float high: exclusive upper price bound
    :return: listings with no nulls in the feature columns and the price
        strictly between the bounds
    :rtype: pd.DataFrame
    '''
    df = normalize_columns(listings)
    validate_columns(df, features, 'listings')

    n_raw = len(df)
    df = df.assign(**{TARGET: parse_price(df[TARGET])})
    df = filter_price(df, low=low, high=high)
    n_price = len(df)

    df = df[features].dropna()
    logging.info(
        f'Cleaning: {n_raw:,} listings, {n_raw - n_price:,} dropped by price, '
        f'{n_price - len(df):,} dropped by missing values, {len(df):,} kept')

    _check_numeric(df, [col for col in numeric if col in features])
    return df.reset_index(drop=True)
