#! /usr/bin/env python3
#
# SPDX-License-Identifier: GPL-3.0-or-later
#

'''
Modeling

Train/test split, XGBoost training with early stopping on the held-out
partition, and the evaluation metrics.
'''

from dataclasses import dataclass, field
import logging
import numpy as np
import pandas as pd
import xgboost as xgb
from sklearn.model_selection import train_test_split
from sklearn.metrics import root_mean_squared_error, r2_score

from airbnb_price_model.config import (
    RANDOM_STATE, TEST_SIZE, TOP_N_IMPORTANCES, XGB_PARAMS)
from airbnb_price_model.errors import DegenerateFeatureError


# --- Split ------------------------------------------------------------------ #
def split_indices(
        index,
        test_size:float=TEST_SIZE,
        random_state:int=RANDOM_STATE
    ) -> tuple:
    '''
    Partitions the row labels in train and test without replacement and
    without stratification. The same seed and number of rows always return
    the same partition.

    Parameters
    ----------
    index : pd.Index or array-like
        Row labels of the design matrix.
    test_size : float, default=0.2
        Proportion of rows held out.
    random_state : int
        Seed for the shuffle.

    Returns
    -------
    tuple
        (train_index, test_index) as pd.Index
    '''
    if not 0 < test_size < 1:
        raise DegenerateFeatureError(
            f'test_size must be between 0 and 1 (exclusive), got {test_size}')
    index = pd.Index(index)
    if len(index) < 2:
        raise DegenerateFeatureError(
            f'Need at least 2 rows to split, got {len(index)}')

    train_idx, test_idx = train_test_split(
        index.to_numpy(), test_size=test_size, random_state=random_state, shuffle=True)
    return pd.Index(train_idx), pd.Index(test_idx)


# --- Training --------------------------------------------------------------- #
@dataclass(frozen=True)
class PriceModel:
    '''Fitted regressor plus the columns it was trained on.'''
    regressor: xgb.XGBRegressor
    features: list
    dropped: list = field(default_factory=list)

    @property
    def best_iteration(self) -> int:
        try:
            return int(self.regressor.best_iteration)
        except AttributeError:  # trained without early stopping
            return self.regressor.get_booster().num_boosted_rounds() - 1

    def predict(self, X:pd.DataFrame) -> pd.Series:
        '''Predicted prices (best iteration), indexed like X.'''
        preds = self.regressor.predict(X[self.features])
        return pd.Series(preds, index=X.index, name='predicted_price')


def drop_constant_columns(X:pd.DataFrame) -> tuple:
    '''
    Returns (kept, dropped) column lists, dropped being the columns with a
    single distinct value.
    '''
    n_unique = X.nunique(dropna=False)
    dropped = n_unique[n_unique <= 1].index.tolist()
    kept = [col for col in X.columns if col not in dropped]
    return kept, dropped


def train_model(
        X_train:pd.DataFrame,
        y_train:pd.Series,
        X_valid:pd.DataFrame,
        y_valid:pd.Series,
        random_state:int=RANDOM_STATE,
        params:dict=None
    ) -> PriceModel:
    '''
    Fits a gradient boosted tree regressor on the squared error. Training
    stops when the validation RMSE hasn't improved for
    `early_stopping_rounds` rounds and the model keeps the best round.

    Zero-variance columns in the training data are left out of the model.

    Parameters
    ----------
    X_train, y_train : pd.DataFrame, pd.Series
        Training partition.
    X_valid, y_valid : pd.DataFrame, pd.Series
        Held-out partition used for early stopping.
    random_state : int
        Seed for xgboost.
    params : dict, optional
        Replaces the default hyperparameters in XGB_PARAMS.

    Returns
    -------
    PriceModel
    '''
    if len(X_train) == 0 or len(X_valid) == 0:
        raise DegenerateFeatureError(
            f'Empty partition: {len(X_train)} train rows, {len(X_valid)} test rows')
    if list(X_train.columns) != list(X_valid.columns):
        raise DegenerateFeatureError('Train and test matrices have different columns')

    features, dropped = drop_constant_columns(X_train)
    if dropped:
        logging.warning(
            f'Excluding {len(dropped)} zero-variance columns from training: '
            f'{", ".join(map(str, dropped))}')
    if not features:
        raise DegenerateFeatureError('No column with more than one value to train on')

    xgb_params = {**XGB_PARAMS, **(params or {})}
    regressor = xgb.XGBRegressor(random_state=random_state, **xgb_params)
    regressor.fit(
        X_train[features], y_train,
        eval_set=[(X_valid[features], y_valid)],
        verbose=False
    )

    model = PriceModel(regressor=regressor, features=features, dropped=dropped)
    logging.info(
        f'XGBoost trained on {len(X_train):,} rows, {len(features)} features, '
        f'best iteration {model.best_iteration}')
    return model


# --- Evaluation ------------------------------------------------------------- #
def _as_arrays(actual, predicted) -> tuple:
    actual = np.asarray(actual, dtype=float)
    predicted = np.asarray(predicted, dtype=float)
    if actual.shape != predicted.shape:
        raise ValueError(
            f'actual and predicted differ in length: {actual.shape} vs {predicted.shape}')
    if actual.size == 0:
        raise ValueError('Can\'t compute metrics on empty sequences')
    return actual, predicted


def rmse(actual, predicted) -> float:
    '''Root mean squared error.'''
    actual, predicted = _as_arrays(actual, predicted)
    return float(root_mean_squared_error(actual, predicted))


def r2(actual, predicted) -> float:
    '''
    Coefficient of determination. Undefined (NaN) when the actual values
    have zero variance.
    '''
    actual, predicted = _as_arrays(actual, predicted)
    if np.all(actual == actual[0]):
        logging.warning('R² undefined: actual values have zero variance')
        return float('nan')
    return float(r2_score(actual, predicted))


def feature_importance(model:PriceModel, top_n:int=TOP_N_IMPORTANCES) -> pd.Series:
    '''
    Gain based importance of the features used by the trees, descending.
    Features never used in a split are not included.
    '''
    scores = model.regressor.get_booster().get_score(importance_type='gain')
    importances = pd.Series(scores, name='gain', dtype=float)
    importances.index.name = 'feature'
    return importances.sort_values(ascending=False).head(top_n)


@dataclass(frozen=True)
class Evaluation:
    '''Held-out metrics of a trained model.'''
    rmse: float
    r2: float
    n_test: int
    best_iteration: int
    importances: pd.Series

    def summary(self) -> pd.DataFrame:
        return pd.DataFrame({
            'Metric': ['RMSE', 'R²', 'Test listings', 'Best iteration'],
            'Value': pd.Series(
                [self.rmse, self.r2, self.n_test, self.best_iteration], dtype=object),
        })


def evaluate(
        model:PriceModel,
        X_test:pd.DataFrame,
        y_test:pd.Series,
        top_n:int=TOP_N_IMPORTANCES
    ) -> Evaluation:
    '''Computes RMSE, R² and the top-N feature importances on the test set.'''
    y_pred = model.predict(X_test)
    res = Evaluation(
        rmse=rmse(y_test, y_pred),
        r2=r2(y_test, y_pred),
        n_test=len(y_test),
        best_iteration=model.best_iteration,
        importances=feature_importance(model, top_n=top_n),
    )
    logging.info(f'Test RMSE: {res.rmse:,.2f} | R²: {res.r2:,.4f}')
    return res
