import numpy as np
import pandas as pd
import pytest

from airbnb_price_model.errors import JoinMismatchError, SchemaValidationError
from airbnb_price_model.spatial import (
    aggregate_by_neighbourhood, attach_predictions, check_neighbourhood_names,
    join_polygons)


@pytest.fixture
def listings():
    return pd.DataFrame({
        'id': [1, 2, 3, 4, 5],
        'price': [100.0, 200.0, 150.0, 80.0, 90.0],
        'neighbourhood_cleansed': ['Downtown', 'Downtown', 'Annex', 'Annex', 'Junction'],
    })


def test_attach_predictions_test_rows_only(listings):
    predicted = pd.Series([110.0, 170.0, 100.0], index=[0, 2, 3])
    df = attach_predictions(listings, predicted)

    assert df['predicted_price'].isna().tolist() == [False, True, False, False, True]
    assert df.loc[0, 'residual'] == pytest.approx(-10.0)
    assert df.loc[2, 'residual'] == pytest.approx(-20.0)
    assert np.isnan(df.loc[1, 'residual'])
    assert 'predicted_price' not in listings.columns


def test_attach_predictions_unknown_rows(listings):
    with pytest.raises(SchemaValidationError):
        attach_predictions(listings, pd.Series([1.0], index=[99]))


def test_aggregate_skips_missing_predictions(listings):
    predicted = pd.Series([110.0, 170.0, 100.0], index=[0, 2, 3])
    agg = aggregate_by_neighbourhood(attach_predictions(listings, predicted))
    agg = agg.set_index('neighbourhood')

    # Downtown: only listing 0 has a prediction
    assert agg.loc['Downtown', 'mean_predicted_price'] == pytest.approx(110.0)
    assert agg.loc['Downtown', 'mean_residual'] == pytest.approx(-10.0)
    assert agg.loc['Annex', 'mean_predicted_price'] == pytest.approx(135.0)
    assert agg.loc['Annex', 'mean_residual'] == pytest.approx((-20.0 - 20.0) / 2)
    assert agg.loc['Annex', 'n_test_listings'] == 2


def test_aggregate_empty_group_is_null(listings):
    predicted = pd.Series([110.0], index=[0])
    agg = aggregate_by_neighbourhood(attach_predictions(listings, predicted))
    junction = agg.set_index('neighbourhood').loc['Junction']
    assert pd.isna(junction['mean_predicted_price'])
    assert pd.isna(junction['mean_residual'])
    assert junction['n_test_listings'] == 0


def test_check_names_warns(caplog):
    with caplog.at_level('WARNING'):
        missing_polygons, missing_listings = check_neighbourhood_names(
            ['Downtown', 'Annex', 'Nowhere'], ['Downtown', 'Annex', 'Rouge'])
    assert missing_polygons == ['Nowhere']
    assert missing_listings == ['Rouge']
    assert 'Nowhere' in caplog.text


def test_check_names_is_exact():
    missing_polygons, _ = check_neighbourhood_names(['downtown '], ['Downtown'])
    assert missing_polygons == ['downtown ']


def test_check_names_strict():
    with pytest.raises(JoinMismatchError) as err:
        check_neighbourhood_names(['Downtown', 'Nowhere'], ['Downtown'], strict=True)
    assert err.value.missing_polygons == ['Nowhere']
    assert check_neighbourhood_names(['Downtown'], ['Downtown'], strict=True) == ([], [])


def test_join_polygons_keeps_unmatched(listings, polygons):
    predicted = pd.Series([110.0, 170.0, 100.0], index=[0, 2, 3])
    agg = aggregate_by_neighbourhood(attach_predictions(listings, predicted))
    gdf = join_polygons(polygons, agg)

    assert len(gdf) == len(polygons)
    assert gdf.crs == polygons.crs
    rouge = gdf.set_index('neighbourhood').loc['Rouge']
    assert pd.isna(rouge['mean_predicted_price'])
    assert gdf.set_index('neighbourhood').loc['Downtown', 'mean_predicted_price'] == 110.0
