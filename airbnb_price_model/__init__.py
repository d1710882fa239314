#! /usr/bin/env python3
#
# SPDX-License-Identifier: GPL-3.0-or-later
#

'''
Airbnb Price Modeling

This library has all the functions used to model the nightly price of the
Toronto Airbnb listings:
- config: paths, constants and run settings
- ingest: loading the tabular and geospatial datasets
- cleaning: price parsing, filtering and feature projection
- eda: exploratory tables (overview, price summaries, correlations)
- encoding: one-hot design matrix with a persistable category schema
- modeling: train/test split, XGBoost training and evaluation
- spatial: predictions and residuals aggregated by neighbourhood
- plot: choropleths and model diagnostics
- report: static HTML report
- pipeline: end to end run and command line entry point
'''

__version__ = '0.1.0'
