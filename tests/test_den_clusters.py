import numpy as np
import pandas as pd
import pytest

from reintro.features.den_clusters import DenClusterer
from reintro.features.distances import pairwise_haversine_m
from reintro.utils.demo_data import offset_m, make_demo_data

LAT, LON = 40.55, -105.08


def make_points(animal_id, offsets, start="2021-05-01"):
    """Relocations at the given (east, north) metre offsets, one per day."""
    rows = []
    for i, (dx, dy) in enumerate(offsets):
        lat, lon = offset_m(LAT, LON, dx, dy)
        rows.append({"animal_id": animal_id,
                     "date": pd.Timestamp(start) + pd.Timedelta(days=i),
                     "latitude": lat, "longitude": lon})
    return pd.DataFrame(rows)


def test_two_separate_dens():
    """Two tight groups 1 km apart become two dens, numbered by first use."""
    pts = make_points("A", [(0, 1000), (5, 1003), (0, 0), (3, -4), (2, 998)])
    labels = DenClusterer(height_m=100).cluster_animal(pts)
    assert labels.tolist() == [1, 1, 2, 2, 1]


def test_cut_height_controls_merging():
    pts = make_points("A", [(0, 0), (0, 80)])
    assert DenClusterer(height_m=100).cluster_animal(pts).tolist() == [1, 1]
    assert DenClusterer(height_m=50).cluster_animal(pts).tolist() == [1, 2]


def test_single_and_empty_input():
    clusterer = DenClusterer(height_m=100)
    assert clusterer.cluster_animal(make_points("A", [(0, 0)])).tolist() == [1]
    assert clusterer.cluster_animal(make_points("A", [])).size == 0


def test_invalid_configuration():
    with pytest.raises(ValueError):
        DenClusterer(height_m=0)
    with pytest.raises(ValueError):
        DenClusterer(height_m=100, linkage="ward")


def test_complete_linkage_keeps_dens_within_cut_height():
    """Any two relocations sharing a den are closer than the cut height."""
    locations, _ = make_demo_data(n_per_trial=4, seed=3)
    locations["date"] = pd.to_datetime(locations["date"])
    clustered = DenClusterer(height_m=100, linkage="complete").assign_clusters(locations)

    assert len(clustered) == len(locations)
    for _, den in clustered.groupby(["animal_id", "den_cluster"]):
        dist = pairwise_haversine_m(den["latitude"], den["longitude"])
        assert dist.max() < 100.0


def test_assign_clusters_numbers_dens_per_animal():
    locations = pd.concat([
        make_points("B", [(0, 0), (0, 2000)]),
        make_points("A", [(0, 0), (10, 0), (900, 0)]),
    ], ignore_index=True)
    clustered = DenClusterer(height_m=100).assign_clusters(locations)

    assert clustered["animal_id"].tolist() == ["A", "A", "A", "B", "B"]
    assert clustered["den_cluster"].tolist() == [1, 1, 2, 1, 2]
    assert clustered["den_cluster"].dtype.kind == "i"


def test_centroids_and_visits():
    locations = make_points("A", [(0, 0), (4, 0), (0, 1000), (0, 1004), (2, 2)])
    clusterer = DenClusterer(height_m=100)
    clustered = clusterer.assign_clusters(locations)

    centroids = clusterer.cluster_centroids(clustered)
    assert centroids["den_cluster"].tolist() == [1, 2]
    assert centroids["n_relocations"].tolist() == [3, 2]
    den1 = clustered[clustered["den_cluster"] == 1]
    assert np.isclose(centroids.loc[0, "centroid_lat"], den1["latitude"].mean())

    visits = clusterer.visit_sequence(clustered)
    assert visits["den_cluster"].tolist() == [1, 2, 1]
    assert visits["n_relocations"].tolist() == [2, 2, 1]
    assert visits["start_date"].iloc[1] == pd.Timestamp("2021-05-03")
    assert visits["end_date"].iloc[1] == pd.Timestamp("2021-05-04")
