import matplotlib
matplotlib.use('Agg')

import numpy as np
import pandas as pd
import geopandas as gpd
import pytest
from shapely.geometry import box

from airbnb_price_model.ingest import Datasets

NEIGHBOURHOODS = {
    'Downtown': (-79.40, 43.64, -79.37, 43.66),
    'Annex': (-79.42, 43.66, -79.39, 43.68),
    'Junction': (-79.48, 43.66, -79.45, 43.68),
}
ROOM_TYPES = ['Entire home/apt', 'Private room']
PROPERTY_TYPES = ['Entire rental unit', 'Private room in home', 'Entire condo']


def make_raw_listings(n:int=120, seed:int=0) -> pd.DataFrame:
    '''Raw listings with Inside Airbnb column names and price strings.'''
    rng = np.random.default_rng(seed)
    names = list(NEIGHBOURHOODS)
    neighbourhood = rng.choice(names, size=n)
    room_type = rng.choice(ROOM_TYPES, size=n)
    accommodates = rng.integers(1, 7, size=n)
    base = np.where(room_type == 'Entire home/apt', 150, 60)
    bonus = np.select(
        [neighbourhood == 'Downtown', neighbourhood == 'Annex'], [80, 30], 0)
    price = base + bonus + 15 * accommodates + rng.normal(0, 10, size=n)

    return pd.DataFrame({
        'id': np.arange(1, n + 1),
        'name': [f'Listing {i}' for i in range(n)],
        'price': [f'${p:,.2f}' for p in price],
        'neighbourhood_cleansed': neighbourhood,
        'latitude': rng.uniform(43.64, 43.68, size=n),
        'longitude': rng.uniform(-79.48, -79.37, size=n),
        'room_type': room_type,
        'property_type': rng.choice(PROPERTY_TYPES, size=n),
        'accommodates': accommodates,
        'bedrooms': rng.integers(1, 4, size=n).astype(float),
        'bathrooms': rng.choice([1.0, 1.5, 2.0], size=n),
        'beds': rng.integers(1, 4, size=n).astype(float),
        'number_of_reviews': rng.integers(0, 200, size=n),
        'number_of_reviews_ltm': rng.integers(0, 50, size=n),
        'availability_365': rng.integers(0, 366, size=n),
        'review_scores_rating': rng.uniform(3.5, 5.0, size=n),
        'review_scores_cleanliness': rng.uniform(3.5, 5.0, size=n),
        'review_scores_value': rng.uniform(3.5, 5.0, size=n),
    })


def make_polygons(extra:tuple=('Rouge',)) -> gpd.GeoDataFrame:
    '''One box per test neighbourhood plus polygons without listings.'''
    names = list(NEIGHBOURHOODS) + list(extra)
    geoms = [box(*NEIGHBOURHOODS[name]) for name in NEIGHBOURHOODS]
    geoms += [box(-79.20 + i * 0.03, 43.78, -79.17 + i * 0.03, 43.80)
              for i in range(len(extra))]
    return gpd.GeoDataFrame({'neighbourhood': names}, geometry=geoms, crs='EPSG:4326')


@pytest.fixture
def raw_listings():
    return make_raw_listings()


@pytest.fixture
def polygons():
    return make_polygons()


@pytest.fixture
def datasets(raw_listings, polygons):
    reviews = pd.DataFrame({
        'listing_id': [1, 1, 2, 3],
        'date': ['2022-05-01', '2023-01-15', '2023-07-30', 'not a date'],
    })
    return Datasets(
        listings=raw_listings,
        reviews=reviews,
        neighbourhoods=pd.DataFrame({'neighbourhood': list(NEIGHBOURHOODS)}),
        program_summary=pd.DataFrame({'ward': ['Spadina-Fort York'], 'registrations': [1200]}),
        registrations=pd.DataFrame({'operator_registration_number': ['STR-2212-ABCDEF']}),
        polygons=polygons,
    )
