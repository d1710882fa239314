#! /usr/bin/env python3
#
# SPDX-License-Identifier: GPL-3.0-or-later
#

'''
Airbnb price pipeline

Loads the Toronto data, cleans the listings, fits the XGBoost price model,
evaluates it on the held-out listings and renders the neighbourhood maps and
the HTML report in the output directory.

Usage:
    airbnb-price-model --data-dir data --output-dir output --seed 42
'''

import argparse
from dataclasses import dataclass
from pathlib import Path
import logging
import sys
import matplotlib
matplotlib.use('Agg')
import matplotlib.pyplot as plt
import geopandas as gpd
import pandas as pd

from airbnb_price_model import cleaning, eda, plot, report, spatial
from airbnb_price_model.config import (
    LOG_FORMAT, LOG_LEVEL, NEIGHBOURHOOD_COL, POLYGON_NAME_COL, Settings)
from airbnb_price_model.encoding import CategoryEncoder, build_design_matrix
from airbnb_price_model.errors import PipelineError
from airbnb_price_model.ingest import Datasets, load_datasets
from airbnb_price_model.modeling import (
    Evaluation, PriceModel, evaluate, split_indices, train_model)


@dataclass(frozen=True)
class PipelineResult:
    '''Everything a run produces, for callers that want more than the files.'''
    listings: pd.DataFrame
    encoder: CategoryEncoder
    model: PriceModel
    evaluation: Evaluation
    predictions: pd.DataFrame
    aggregates: pd.DataFrame
    neighbourhoods: gpd.GeoDataFrame
    outputs: dict


def run_pipeline(settings:Settings, datasets:Datasets=None) -> PipelineResult:
    '''
    Runs every stage in order. `datasets` can be given to skip loading the
    files from settings.data_dir.
    '''
    out = Path(settings.output_dir)
    out.mkdir(parents=True, exist_ok=True)
    outputs = {}

    # 1. Ingestion and cleaning
    if datasets is None:
        datasets = load_datasets(settings)
    listings = cleaning.clean_listings(datasets.listings)
    spatial.check_neighbourhood_names(
        listings[NEIGHBOURHOOD_COL].unique(),
        datasets.polygons[POLYGON_NAME_COL],
        strict=settings.strict_join)

    # 2. Exploratory tables
    corr = eda.numeric_correlation(listings)
    tables = {
        'Datasets': eda.dataset_overview(datasets.tables()),
        'Price by room type': eda.price_summary_by(listings, 'room_type'),
        'Listings per neighbourhood': eda.listings_per_neighbourhood(listings).head(20),
    }
    if 'date' in datasets.reviews.columns:
        tables['Reviews per year'] = eda.reviews_per_year(datasets.reviews)

    # 3. Encoding (schema fitted once on all the cleaned listings)
    X, y, encoder = build_design_matrix(listings)
    outputs['encoder'] = encoder.save(out / 'encoder.json')

    # 4. Split and training
    train_idx, test_idx = split_indices(
        X.index, test_size=settings.test_size, random_state=settings.random_state)
    logging.info(f'Split: {len(train_idx):,} train, {len(test_idx):,} test listings')
    model = train_model(
        X.loc[train_idx], y.loc[train_idx],
        X.loc[test_idx], y.loc[test_idx],
        random_state=settings.random_state)

    # 5. Evaluation
    evaluation = evaluate(model, X.loc[test_idx], y.loc[test_idx], top_n=settings.top_n)
    predicted = model.predict(X.loc[test_idx])

    # 6. Spatial aggregation
    predictions = spatial.attach_predictions(listings, predicted)
    aggregates = spatial.aggregate_by_neighbourhood(predictions)
    neighbourhoods = spatial.join_polygons(datasets.polygons, aggregates)

    # 7. Plots and report
    figures = {
        'Mean predicted price by neighbourhood': (
            plot.plot_choropleth, dict(
                gdf=neighbourhoods, column='mean_predicted_price',
                title='Mean predicted nightly price (test listings)',
                legend_label='Predicted price ($)'),
            out / 'predicted_price_map.png'),
        'Mean residual by neighbourhood': (
            plot.plot_choropleth, dict(
                gdf=neighbourhoods, column='mean_residual',
                title='Mean residual (actual - predicted)',
                cmap='RdBu_r', diverging=True, legend_label='Residual ($)'),
            out / 'residual_map.png'),
        'Actual vs. predicted price': (
            plot.plot_actual_vs_predicted, dict(
                actual=y.loc[test_idx], predicted=predicted),
            out / 'actual_vs_predicted.png'),
        'Feature importance': (
            plot.plot_feature_importance, dict(importances=evaluation.importances),
            out / 'feature_importance.png'),
        'Correlation between numeric features': (
            plot.plot_correlation_heatmap, dict(corr=corr),
            out / 'correlation.png'),
    }
    figure_paths = {}
    for name, (func, kwargs, path) in figures.items():
        fig = func(path=path, **kwargs)
        plt.close(fig)
        figure_paths[name] = path
    outputs.update(figure_paths)

    outputs['report'] = report.write_report(
        out / 'report.html', evaluation, tables=tables, figures=figure_paths)

    return PipelineResult(
        listings=listings,
        encoder=encoder,
        model=model,
        evaluation=evaluation,
        predictions=predictions,
        aggregates=aggregates,
        neighbourhoods=neighbourhoods,
        outputs=outputs,
    )


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description='Toronto Airbnb nightly price model')
    parser.add_argument('--data-dir', help='Directory with the input files')
    parser.add_argument('--output-dir', help='Directory for plots and report')
    parser.add_argument('--seed', type=int, help='Random state for split and model')
    parser.add_argument('--log-level', default=LOG_LEVEL, help='Logging level')
    parser.add_argument('--strict-join', action='store_true', default=None,
                        help='Fail if neighbourhood names don\'t match the polygons')
    return parser.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)
    logging.basicConfig(level=args.log_level.upper(), format=LOG_FORMAT)

    settings = Settings.from_env(
        data_dir=args.data_dir,
        output_dir=args.output_dir,
        random_state=args.seed,
        strict_join=args.strict_join,
    )
    try:
        result = run_pipeline(settings)
    except PipelineError as e:
        logging.error(f'Pipeline failed: {e}')
        return 1

    print(result.evaluation.summary().to_string(index=False))
    return 0


if __name__ == '__main__':
    sys.exit(main())
