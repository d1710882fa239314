#! /usr/bin/env python3
#
# SPDX-License-Identifier: GPL-3.0-or-later
#

'''
Report

Writes the run results as a single static HTML page.
'''

from pathlib import Path
import html
import logging
import os
import pandas as pd

from airbnb_price_model.modeling import Evaluation

STYLE = '''
body { font-family: sans-serif; margin: 2em auto; max-width: 1100px; }
table { border-collapse: collapse; margin-bottom: 1.5em; }
th, td { border: 1px solid #ccc; padding: 4px 8px; text-align: right; }
img { max-width: 100%; margin-bottom: 1.5em; }
'''


def _table(df:pd.DataFrame) -> str:
    return df.to_html(index=False, float_format=lambda x: f'{x:,.2f}',
                      na_rep='-', border=0)


def _metrics(evaluation:Evaluation) -> pd.DataFrame:
    '''Metric table with counts shown as integers.'''
    def fmt(value, spec):
        return '-' if pd.isna(value) else format(value, spec)

    return pd.DataFrame({
        'Metric': ['RMSE', 'R²', 'Test listings', 'Best iteration'],
        'Value': [
            fmt(evaluation.rmse, ',.2f'),
            fmt(evaluation.r2, '.4f'),
            fmt(evaluation.n_test, ',d'),
            fmt(evaluation.best_iteration, 'd'),
        ],
    })


def write_report(
        path:Path,
        evaluation:Evaluation,
        tables:dict=None,
        figures:dict=None,
        title:str='Toronto Airbnb price model'
    ) -> Path:
    '''
    Writes the HTML report.

    :param Path path: html file to create
    :param Evaluation evaluation: held-out metrics and importances
    :param dict tables: {section title: dataframe} added after the metrics
    :param dict figures: {section title: png path}, linked relative to the
        report
    :param str title: page title
    :return: path to the report
    :rtype: Path
    '''
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    importances = evaluation.importances.rename('Gain').reset_index()
    importances.columns = ['Feature', 'Gain']

    sections = [
        f'<h1>{html.escape(title)}</h1>',
        '<h2>Model evaluation (test set)</h2>',
        _table(_metrics(evaluation)),
        f'<h2>Top {len(importances)} features</h2>',
        _table(importances),
    ]
    for name, df in (tables or {}).items():
        sections += [f'<h2>{html.escape(name)}</h2>', _table(df)]
    for name, fig_path in (figures or {}).items():
        src = Path(os.path.relpath(fig_path, start=path.parent)).as_posix()
        sections += [f'<h2>{html.escape(name)}</h2>',
                     f'<img src="{html.escape(src)}" alt="{html.escape(name)}">']

    page = (
        '<!DOCTYPE html>\n<html>\n<head>\n<meta charset="utf-8">\n'
        f'<title>{html.escape(title)}</title>\n<style>{STYLE}</style>\n'
        '</head>\n<body>\n' + '\n'.join(sections) + '\n</body>\n</html>\n'
    )
    path.write_text(page, encoding='utf-8')
    logging.info(f'Report written to {path}')
    return path
