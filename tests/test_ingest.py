import pandas as pd
import pytest

from airbnb_price_model.config import Settings
from airbnb_price_model.errors import DataLoadError, SchemaValidationError
from airbnb_price_model.ingest import (
    load_datasets, load_neighbourhoods_geometry, load_table, validate_columns)


def test_load_table(tmp_path):
    path = tmp_path / 'listings.csv'
    pd.DataFrame({'id': [1, 2], 'price': ['$1.00', '$2.00']}).to_csv(path, index=False)
    df = load_table(path, 'listings')
    assert df.shape == (2, 2)


def test_load_table_missing_file(tmp_path):
    with pytest.raises(DataLoadError, match='not found'):
        load_table(tmp_path / 'nope.csv', 'listings')


def test_load_table_empty_file(tmp_path):
    path = tmp_path / 'empty.csv'
    path.write_text('')
    with pytest.raises(DataLoadError, match='empty'):
        load_table(path, 'reviews')


def test_validate_columns():
    df = pd.DataFrame(columns=['a', 'b'])
    validate_columns(df, ['a'], 'table')
    with pytest.raises(SchemaValidationError, match='c'):
        validate_columns(df, ['a', 'c'], 'table')


def test_load_geometry_reprojects(tmp_path, polygons):
    path = tmp_path / 'neighbourhoods.geojson'
    polygons.assign(extra=1).to_crs('EPSG:3857').to_file(path, driver='GeoJSON')
    gdf = load_neighbourhoods_geometry(path)
    assert list(gdf.columns) == ['neighbourhood', 'geometry']
    assert gdf.crs == 'EPSG:4326'
    assert sorted(gdf['neighbourhood']) == sorted(polygons['neighbourhood'])


def test_load_geometry_missing_name_field(tmp_path, polygons):
    path = tmp_path / 'neighbourhoods.geojson'
    polygons.rename(columns={'neighbourhood': 'name'}).to_file(path, driver='GeoJSON')
    with pytest.raises(SchemaValidationError):
        load_neighbourhoods_geometry(path)


def test_load_geometry_missing_file(tmp_path):
    with pytest.raises(DataLoadError):
        load_neighbourhoods_geometry(tmp_path / 'missing.geojson')


def test_load_datasets(tmp_path, datasets):
    settings = Settings(data_dir=tmp_path)
    for name, df in datasets.tables().items():
        df.to_csv(settings.path(name), index=False)
    datasets.polygons.to_file(settings.geometry_path, driver='GeoJSON')

    loaded = load_datasets(settings)
    assert len(loaded.listings) == len(datasets.listings)
    assert len(loaded.polygons) == len(datasets.polygons)
    assert set(loaded.tables()) == set(settings.files)
