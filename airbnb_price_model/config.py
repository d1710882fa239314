#! /usr/bin/env python3
#
# SPDX-License-Identifier: GPL-3.0-or-later
#

'''
Configuration

Paths and run parameters are read from the environment (a .env file is
loaded if present). Everything else is a module constant.
'''

import os
from dataclasses import dataclass, field
from pathlib import Path
from dotenv import load_dotenv

load_dotenv()

DATA_DIR = os.getenv('AIRBNB_DATA_DIR', 'data')
OUTPUT_DIR = os.getenv('AIRBNB_OUTPUT_DIR', 'output')
RANDOM_STATE = int(os.getenv('AIRBNB_RANDOM_STATE', '42'))
LOG_LEVEL = os.getenv('AIRBNB_LOG_LEVEL', 'INFO')
LOG_FORMAT = '%(levelname)s: %(message)s'

# Input files (Inside Airbnb + City of Toronto open data)
FILES = {
    'listings': 'listings.csv.gz',
    'reviews': 'reviews.csv.gz',
    'neighbourhoods': 'neighbourhoods.csv',
    'program_summary': 'short_term_rental_program_summary.csv',
    'registrations': 'short_term_rental_registrations.csv',
}
GEOMETRY_FILE = 'neighbourhoods.geojson'
CRS = 'EPSG:4326'

# --- Cleaning --------------------------------------------------------------- #
ID_COL = 'id'
TARGET = 'price'
NEIGHBOURHOOD_COL = 'neighbourhood_cleansed'
POLYGON_NAME_COL = 'neighbourhood'
PRICE_MIN = 10
PRICE_MAX = 1500

CATEGORICAL_FEATURES = ['neighbourhood_cleansed', 'room_type', 'property_type']
NUMERIC_FEATURES = [
    'latitude',
    'longitude',
    'accommodates',
    'bedrooms',
    'bathrooms',
    'beds',
    'number_of_reviews',
    'number_of_reviews_ltm',
    'availability_365',
    'review_scores_rating',
    'review_scores_cleanliness',
    'review_scores_value',
]
FEATURES = [ID_COL, TARGET] + CATEGORICAL_FEATURES + NUMERIC_FEATURES

# --- Modeling --------------------------------------------------------------- #
TEST_SIZE = 0.2
TOP_N_IMPORTANCES = 20
XGB_PARAMS = {
    'objective': 'reg:squarederror',
    'learning_rate': 0.1,
    'max_depth': 6,
    'n_estimators': 100,
    'early_stopping_rounds': 10,
}


@dataclass
class Settings:
    '''Parameters for a single pipeline run.'''
    data_dir: Path = Path(DATA_DIR)
    output_dir: Path = Path(OUTPUT_DIR)
    random_state: int = RANDOM_STATE
    test_size: float = TEST_SIZE
    top_n: int = TOP_N_IMPORTANCES
    strict_join: bool = False
    files: dict = field(default_factory=lambda: dict(FILES))
    geometry_file: str = GEOMETRY_FILE

    @classmethod
    def from_env(cls, **overrides) -> 'Settings':
        '''
        Builds the settings from the environment constants, replacing the
        values given in overrides (None values are ignored).
        '''
        values = {k: v for k, v in overrides.items() if v is not None}
        for key in ('data_dir', 'output_dir'):
            if key in values:
                values[key] = Path(values[key])
        return cls(**values)

    def path(self, name:str) -> Path:
        '''Full path for one of the tabular inputs in `files`.'''
        return self.data_dir / self.files[name]

    @property
    def geometry_path(self) -> Path:
        return self.data_dir / self.geometry_file
