# tests/test_preprocessing.py
import numpy as np
import pytest

from sales_forecaster import config
from sales_forecaster.data_loader import SalesRecord
from sales_forecaster.preprocessing import (
    EncodedRecord,
    ProductEncoding,
    QuantityScale,
    encode_products,
    normalize_dates,
    normalize_quantities,
    preprocess_sales_data,
)


# ---- date normaliser ----------------------------------------------------------

def test_earliest_month_maps_to_zero_across_year_boundary():
    offsets, start = normalize_dates(["2023-02", "2022-11", "2023-01", "2024-11"])

    assert start == "2022-11"
    assert offsets.tolist() == [3, 0, 2, 24]
    assert offsets.dtype == np.int64


def test_date_normalisation_preserves_calendar_order():
    months = ["2021-12", "2022-01", "2022-06", "2023-01", "2023-12", "2024-02"]
    offsets, _ = normalize_dates(months[::-1])
    offsets = offsets[::-1]

    assert offsets[0] == 0
    assert all(a < b for a, b in zip(offsets, offsets[1:]))


def test_date_normalisation_is_pure():
    months = ["2023-05", "2023-03", "2023-04"]
    first, _ = normalize_dates(months)
    second, _ = normalize_dates(months)
    np.testing.assert_array_equal(first, second)


@pytest.mark.parametrize("bad_month", ["2023-13", "2023/01", "not a month"])
def test_malformed_month_raises(bad_month):
    with pytest.raises(ValueError):
        normalize_dates(["2023-01", bad_month])


def test_no_months_raises():
    with pytest.raises(ValueError):
        normalize_dates([])


# ---- category encoder ---------------------------------------------------------

def test_ids_follow_first_occurrence_order():
    encoding, ids = encode_products(["tea", "coffee", "tea", "cocoa", "coffee"])

    assert encoding.labels == ("tea", "coffee", "cocoa")
    assert ids.tolist() == [0, 1, 0, 2, 1]
    assert encoding.as_dict() == {"tea": 0, "coffee": 1, "cocoa": 2}


def test_distinct_labels_get_dense_ids():
    labels = [f"product-{i}" for i in range(7)]
    encoding, ids = encode_products(labels)

    assert sorted(ids.tolist()) == list(range(7))
    assert [encoding.id_for(label) for label in labels] == ids.tolist()
    assert len(encoding) == 7


def test_unknown_label_raises_key_error():
    encoding = ProductEncoding.from_labels(["A", "B"])
    assert "A" in encoding
    assert "Z" not in encoding
    with pytest.raises(KeyError, match="Unknown product label"):
        encoding.id_for("Z")


def test_label_for_inverts_id_for():
    encoding = ProductEncoding.from_labels(["B", "A", "B", "C"])
    assert [encoding.label_for(i) for i in range(len(encoding))] == ["B", "A", "C"]


@pytest.mark.parametrize("product_id", [-1, 3])
def test_label_for_rejects_unknown_ids(product_id):
    encoding = ProductEncoding.from_labels(["A", "B", "C"])
    with pytest.raises(KeyError, match="Unknown product id"):
        encoding.label_for(product_id)


def test_encoding_is_immutable():
    encoding = ProductEncoding.from_labels(["A"])
    with pytest.raises(AttributeError):
        encoding.labels = ("B",)


def test_duplicate_labels_rejected():
    with pytest.raises(ValueError):
        ProductEncoding(labels=("A", "A"))


# ---- quantity normaliser ------------------------------------------------------

def test_quantities_are_min_max_scaled():
    normalized, scale = normalize_quantities([10, 45, 80])

    assert scale == QuantityScale(min=10.0, max=80.0)
    np.testing.assert_allclose(normalized, [0.0, 0.5, 1.0])


def test_constant_quantities_use_fixed_value():
    normalized, scale = normalize_quantities([7, 7, 7])

    assert scale.is_constant
    assert np.isfinite(normalized).all()
    assert normalized.tolist() == [config.CONSTANT_SERIES_NORMALIZED_VALUE] * 3
    assert scale.denormalize(0.9) == 7


def test_normalise_then_denormalise_returns_rounded_quantity():
    quantities = [3.0, 12.4, 12.6, 57.7, 99.0, 150.0]
    normalized, scale = normalize_quantities(quantities)

    restored = [scale.denormalize(value) for value in normalized]
    assert restored == [3, 12, 13, 58, 99, 150]


def test_non_numeric_quantities_raise():
    with pytest.raises(ValueError):
        normalize_quantities(["ten", "eleven"])


def test_invalid_scale_rejected():
    with pytest.raises(ValueError):
        QuantityScale(min=5.0, max=1.0)


# ---- facade -------------------------------------------------------------------

def test_preprocess_sales_data(two_product_sales):
    data = preprocess_sales_data(two_product_sales)

    assert len(data) == 12
    assert data.start_month == "2022-10"
    assert data.last_month == "2023-03"
    assert data.last_offset == 5
    assert data.month_offsets.tolist() == [0, 0, 1, 1, 2, 2, 3, 3, 4, 4, 5, 5]
    assert data.product_ids.tolist() == [0, 1] * 6
    assert data.encoding.labels == ("Widget", "Gadget")
    assert data.scale == QuantityScale(min=20.0, max=50.0)
    assert data.quantities.min() == 0.0 and data.quantities.max() == 1.0


def test_encoded_records_are_one_per_row(single_product_sales):
    data = preprocess_sales_data(single_product_sales)
    records = data.encoded_records()

    assert len(records) == 8
    assert records[0] == EncodedRecord(month_offset=0, product_id=0, normalized_quantity=0.0)
    assert records[-1] == EncodedRecord(month_offset=7, product_id=0, normalized_quantity=1.0)


def test_preprocess_accepts_sales_records():
    records = [
        SalesRecord("2023-03", "A", 5),
        SalesRecord("2023-01", "B", 15),
    ]
    data = preprocess_sales_data(records)

    assert data.month_offsets.tolist() == [2, 0]
    assert data.product_ids.tolist() == [0, 1]
    assert data.last_month == "2023-03"


def test_preprocess_empty_table_raises(single_product_sales):
    with pytest.raises(ValueError):
        preprocess_sales_data(single_product_sales.iloc[0:0])
