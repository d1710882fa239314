import pandas as pd
import pytest

from airbnb_price_model.cleaning import clean_listings
from airbnb_price_model.eda import (
    dataset_overview, listings_per_neighbourhood, numeric_correlation,
    price_summary_by, reviews_per_year)
from airbnb_price_model.errors import SchemaValidationError


def test_dataset_overview(datasets):
    overview = dataset_overview(datasets.tables())
    assert overview['Dataset'].tolist() == list(datasets.tables())
    assert overview.set_index('Dataset').loc['reviews', 'Rows'] == 4


def test_price_summary_by(raw_listings):
    listings = clean_listings(raw_listings)
    summary = price_summary_by(listings, 'room_type')
    assert summary['count'].sum() == len(listings)
    entire = summary.set_index('room_type').loc['Entire home/apt']
    private = summary.set_index('room_type').loc['Private room']
    assert entire['mean'] > private['mean']


def test_listings_per_neighbourhood(raw_listings):
    counts = listings_per_neighbourhood(clean_listings(raw_listings))
    assert list(counts.columns) == ['neighbourhood_cleansed', 'listings']
    assert counts['listings'].is_monotonic_decreasing
    assert counts['listings'].sum() == len(raw_listings)


def test_reviews_per_year(datasets):
    per_year = reviews_per_year(datasets.reviews)
    assert per_year.to_dict('list') == {'year': [2022, 2023], 'reviews': [1, 2]}


def test_reviews_per_year_missing_date():
    with pytest.raises(SchemaValidationError):
        reviews_per_year(pd.DataFrame({'listing_id': [1]}))


def test_numeric_correlation_excludes_constant():
    df = pd.DataFrame({
        'id': [1, 2, 3, 4],
        'price': [10.0, 20.0, 30.0, 40.0],
        'beds': [1, 2, 3, 4],
        'constant': [5, 5, 5, 5],
        'room_type': ['a', 'b', 'a', 'b'],
    })
    corr = numeric_correlation(df)
    assert list(corr.columns) == ['price', 'beds']
    assert corr.loc['price', 'beds'] == pytest.approx(1.0)
    assert not corr.isna().any().any()
