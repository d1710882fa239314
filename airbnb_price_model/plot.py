#! /usr/bin/env python3
#
# SPDX-License-Identifier: GPL-3.0-or-later
#

'''
Plots

Choropleths of the neighbourhood aggregates and the model diagnostics
(actual vs. predicted prices, feature importances, correlation heatmap).
Every function returns the figure and saves it as png when a path is given.
'''

from pathlib import Path
import geopandas as gpd
import pandas as pd
import numpy as np
import matplotlib.pyplot as plt
from matplotlib.colors import TwoSlopeNorm
from matplotlib.patches import Patch

MISSING_COLOR = 'lightgray'


def _save(fig, path:Path=None) -> None:
    if path is not None:
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        fig.savefig(path, dpi=150, bbox_inches='tight')


# --- Maps ------------------------------------------------------------------- #
def plot_choropleth(
        gdf:gpd.GeoDataFrame,
        column:str,
        title:str,
        path:Path=None,
        cmap:str='viridis',
        diverging:bool=False,
        legend_label:str=None
    ):
    '''
    Colors every neighbourhood by the value in `column`. Neighbourhoods
    without a value are drawn in light gray and labeled "No data".

    :param gpd.GeoDataFrame gdf: polygons joined with the aggregates
    :param str column: column to map
    :param str title: title for the map
    :param Path path: png file to save the figure to (optional)
    :param str cmap: matplotlib colormap
    :param bool diverging: center the colors at 0 (for residuals)
    :param str legend_label: colorbar label, defaults to the column name
    :return: the figure
    :rtype: matplotlib.figure.Figure
    '''
    fig, ax = plt.subplots(figsize=(12, 10))
    values = gdf[column].astype(float)
    has_data = values.notna()

    # 1. Base layer: neighbourhoods without data
    if (~has_data).any():
        gdf[~has_data].plot(
            ax=ax,
            color=MISSING_COLOR,
            edgecolor='black',
            linewidth=0.5,
            hatch='///'
            )
    # 2. Values layer
    if has_data.any():
        kwds = {}
        if diverging:
            bound = float(np.nanmax(np.abs(values))) or 1.0
            kwds['norm'] = TwoSlopeNorm(vmin=-bound, vcenter=0, vmax=bound)
        gdf[has_data].plot(
            ax=ax,
            column=column,
            cmap=cmap,
            edgecolor='black',
            linewidth=0.5,
            legend=True,
            legend_kwds={'label': legend_label or column, 'shrink': 0.6},
            **kwds
            )

    if (~has_data).any():
        legend_elements = [
            Patch(facecolor=MISSING_COLOR, edgecolor='black', hatch='///',
                  label='No data'),
            ]
        ax.legend(handles=legend_elements, loc='lower right')

    ax.set_title(title, fontsize=16)
    ax.set_xlabel('Longitude')
    ax.set_ylabel('Latitude')
    fig.tight_layout()
    _save(fig, path)
    return fig


# --- Model diagnostics ------------------------------------------------------ #
def plot_actual_vs_predicted(
        actual:pd.Series,
        predicted:pd.Series,
        title:str='Actual vs. predicted price',
        path:Path=None
    ):
    '''Scatter of the test prices with the identity line.'''
    fig, ax = plt.subplots(figsize=(8, 8))
    ax.scatter(actual, predicted, s=10, alpha=0.4, color='steelblue',
               edgecolor='none')
    low = float(min(np.min(actual), np.min(predicted)))
    high = float(max(np.max(actual), np.max(predicted)))
    ax.plot([low, high], [low, high], color='darkred', linestyle='--',
            linewidth=1, label='Perfect prediction')
    ax.set_title(title, fontsize=16)
    ax.set_xlabel('Actual price ($)')
    ax.set_ylabel('Predicted price ($)')
    ax.legend(loc='upper left')
    fig.tight_layout()
    _save(fig, path)
    return fig


def plot_feature_importance(
        importances:pd.Series,
        title:str='Feature importance (gain)',
        path:Path=None
    ):
    '''Horizontal bars, most important feature on top.'''
    fig, ax = plt.subplots(figsize=(10, max(4, 0.35 * len(importances))))
    ordered = importances.sort_values(ascending=True)
    ax.barh(ordered.index.astype(str), ordered.values, color='steelblue')
    ax.set_title(title, fontsize=16)
    ax.set_xlabel('Gain')
    fig.tight_layout()
    _save(fig, path)
    return fig


def plot_correlation_heatmap(
        corr:pd.DataFrame,
        title:str='Correlation between numeric features',
        path:Path=None
    ):
    '''Heatmap of a correlation matrix, values in [-1, 1].'''
    n = len(corr.columns)
    fig, ax = plt.subplots(figsize=(max(6, 0.6 * n), max(5, 0.5 * n)))
    im = ax.imshow(corr.values, cmap='coolwarm', vmin=-1, vmax=1)
    ax.set_xticks(range(n))
    ax.set_xticklabels(corr.columns, rotation=90)
    ax.set_yticks(range(n))
    ax.set_yticklabels(corr.index)
    for i in range(n):
        for j in range(n):
            ax.text(j, i, f'{corr.values[i, j]:.2f}', ha='center',
                    va='center', fontsize=7)
    fig.colorbar(im, ax=ax, shrink=0.8)
    ax.set_title(title, fontsize=16)
    fig.tight_layout()
    _save(fig, path)
    return fig
