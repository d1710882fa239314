#! /usr/bin/env python3
#
# SPDX-License-Identifier: GPL-3.0-or-later
#

'''
Exploratory analysis

Summary tables for the report.
'''

import logging
import pandas as pd

from airbnb_price_model.config import ID_COL, NEIGHBOURHOOD_COL, TARGET
from airbnb_price_model.errors import SchemaValidationError
from airbnb_price_model.ingest import validate_columns


def dataset_overview(tables:dict) -> pd.DataFrame:
    '''
    Number of rows and columns of every loaded table.

    :param dict tables: {name: dataframe}
    :return: dataframe with columns ['Dataset', 'Rows', 'Columns']
    :rtype: pd.DataFrame
    '''
    return pd.DataFrame({
        'Dataset': list(tables),
        'Rows': [len(df) for df in tables.values()],
        'Columns': [df.shape[1] for df in tables.values()],
    })


def price_summary_by(df:pd.DataFrame, column:str, target:str=TARGET) -> pd.DataFrame:
    '''Count, mean, median, min and max price for every value of column.'''
    validate_columns(df, [column, target], 'listings')
    summary = (
        df.groupby(column)[target]
        .agg(['count', 'mean', 'median', 'min', 'max'])
        .sort_values('count', ascending=False)
    )
    return summary.reset_index()


def listings_per_neighbourhood(
        df:pd.DataFrame,
        neighbourhood_col:str=NEIGHBOURHOOD_COL
    ) -> pd.DataFrame:
    '''Listing counts per neighbourhood, most listings first.'''
    validate_columns(df, [neighbourhood_col], 'listings')
    counts = df[neighbourhood_col].value_counts()
    return counts.rename_axis(neighbourhood_col).reset_index(name='listings')


def reviews_per_year(reviews:pd.DataFrame, date_col:str='date') -> pd.DataFrame:
    '''
    Number of reviews written every year. Unparsable dates are ignored.
    '''
    validate_columns(reviews, [date_col], 'reviews')
    dates = pd.to_datetime(reviews[date_col], errors='coerce')
    n_bad = int(dates.isna().sum())
    if n_bad:
        logging.warning(f'{n_bad:,} reviews with an invalid date')
    years = dates.dropna().dt.year.astype(int)
    counts = years.value_counts().sort_index()
    return counts.rename_axis('year').reset_index(name='reviews')


def numeric_correlation(df:pd.DataFrame, exclude:tuple=(ID_COL,)) -> pd.DataFrame:
    '''
    Pearson correlation between the numeric columns. The identifier and
    zero-variance columns are left out, their correlation being undefined.
    '''
    numeric = df.select_dtypes('number').drop(columns=list(exclude), errors='ignore')
    if numeric.empty:
        raise SchemaValidationError('No numeric columns to correlate')
    n_unique = numeric.nunique(dropna=True)
    constant = n_unique[n_unique <= 1].index.tolist()
    if constant:
        logging.info(f'Correlation: excluding zero-variance columns {constant}')
    return numeric.drop(columns=constant).corr()
