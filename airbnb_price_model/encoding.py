#! /usr/bin/env python3
#
# SPDX-License-Identifier: GPL-3.0-or-later
#

'''
Feature encoding

Builds the numeric design matrix for the tree models. The one-hot schema is
an explicit artifact (CategoryEncoder) fitted once on the full cleaned table
and reused for every partition, so train and test always share the same
columns in the same order.
'''

import json
import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
import numpy as np
import pandas as pd

from airbnb_price_model.config import CATEGORICAL_FEATURES, ID_COL, TARGET
from airbnb_price_model.errors import DegenerateFeatureError, SchemaValidationError


def _safe_name(level:str) -> str:
    # xgboost rejects feature names with [, ] or <
    return re.sub(r'[\[\]<]', '_', str(level))


@dataclass(frozen=True)
class CategoryEncoder:
    '''
    One-hot encoding schema.

    Attributes
    ----------
    numeric : list[str]
        Columns passed through unchanged, in output order.
    categories : dict[str, list]
        Levels for every categorical column, in output order.
    '''
    numeric: list = field(default_factory=list)
    categories: dict = field(default_factory=dict)

    @classmethod
    def fit(
            cls,
            df:pd.DataFrame,
            categorical:list=CATEGORICAL_FEATURES,
            exclude:tuple=(ID_COL, TARGET)
        ) -> 'CategoryEncoder':
        '''
        Derives the schema from a cleaned table.

        Parameters
        ----------
        df : pd.DataFrame
            Cleaned listings (no nulls).
        categorical : list[str]
            Columns to one-hot encode.
        exclude : tuple[str]
            Columns left out of the matrix (identifier and target).

        Returns
        -------
        CategoryEncoder
        '''
        missing = [col for col in categorical if col not in df.columns]
        if missing:
            raise SchemaValidationError(
                f'Categorical columns not found: {", ".join(missing)}',
                columns=missing)

        numeric = [col for col in df.columns
                   if col not in categorical and col not in exclude]
        categories = {
            col: sorted(df[col].astype(str).unique().tolist())
            for col in categorical
        }
        encoder = cls(numeric=numeric, categories=categories)
        logging.info(
            f'Encoder: {len(numeric)} numeric and '
            f'{len(encoder.columns) - len(numeric)} indicator columns')
        return encoder

    @property
    def columns(self) -> list:
        '''
        Output column names, in order. Indicator names that clash once made
        safe for xgboost get the level position appended.
        '''
        names = list(self.numeric)
        seen = set(names)
        for col, levels in self.categories.items():
            for i, level in enumerate(levels):
                name = f'{col}_{_safe_name(level)}'
                while name in seen:
                    name = f'{name}_{i}'
                seen.add(name)
                names.append(name)
        return names

    @property
    def column_index(self) -> dict:
        '''Maps every output column to its position in the matrix.'''
        return {col: i for i, col in enumerate(self.columns)}

    def transform(self, df:pd.DataFrame) -> pd.DataFrame:
        '''
        Encodes a table with the fitted schema. Rows keep their order and
        index. Levels not seen during fit get all-zero indicators.
        '''
        missing = [col for col in self.numeric + list(self.categories)
                   if col not in df.columns]
        if missing:
            raise SchemaValidationError(
                f'Columns needed by the encoder not found: {", ".join(missing)}',
                columns=missing)

        parts = []
        numeric = df[self.numeric]
        unencodable = [col for col in self.numeric
                       if not pd.api.types.is_numeric_dtype(numeric[col])]
        if unencodable:
            raise DegenerateFeatureError(
                f'Non numeric columns can\'t be passed through: {", ".join(unencodable)}')
        parts.append(numeric.astype(float))

        for col, levels in self.categories.items():
            values = pd.Categorical(df[col].astype(str), categories=levels)
            unseen = int(values.isna().sum())
            if unseen:
                logging.warning(f'{unseen} rows with unseen levels in "{col}"')
            dummies = pd.get_dummies(values, prefix=col, prefix_sep='_', dtype=float)
            dummies.index = df.index
            parts.append(dummies)

        X = pd.concat(parts, axis=1)
        X.columns = self.columns
        return X

    def to_dict(self) -> dict:
        return {'numeric': list(self.numeric),
                'categories': {k: list(v) for k, v in self.categories.items()}}

    @classmethod
    def from_dict(cls, data:dict) -> 'CategoryEncoder':
        return cls(numeric=list(data['numeric']),
                   categories={k: list(v) for k, v in data['categories'].items()})

    def save(self, path:Path) -> Path:
        '''Writes the schema as JSON.'''
        path = Path(path)
        path.write_text(json.dumps(self.to_dict(), indent=2))
        return path

    @classmethod
    def load(cls, path:Path) -> 'CategoryEncoder':
        return cls.from_dict(json.loads(Path(path).read_text()))


def build_design_matrix(
        df:pd.DataFrame,
        encoder:CategoryEncoder=None,
        target:str=TARGET
    ) -> tuple:
    '''
    Returns (X, y, encoder) for a cleaned table, fitting the encoder if none
    is given.
    '''
    if encoder is None:
        encoder = CategoryEncoder.fit(df)
    X = encoder.transform(df)
    y = df[target].astype(float) if target in df.columns else pd.Series(
        np.nan, index=df.index, name=target)
    return X, y, encoder
