import os
import numpy as np
import pandas as pd

from reintro.ingest.loader import TrackingLoader
from reintro.utils.demo_data import offset_m

LAT, LON = 40.55, -105.08


def write_known_animal(tmp_path):
    """
    F01: released at (LAT, LON), found twice at a den on the release site,
    twice at a den 1 km north, then back at the first den.
    F02: on the roster but never relocated.
    """
    north_lat, north_lon = offset_m(LAT, LON, 0.0, 1000.0)
    fixes = [(LAT, LON), (LAT, LON), (north_lat, north_lon), (north_lat, north_lon), (LAT, LON)]
    rows = [{"animal_id": "F01", "date": f"2021-06-{i + 1:02d}", "latitude": lat, "longitude": lon}
            for i, (lat, lon) in enumerate(fixes)]
    pd.DataFrame(rows).to_csv(tmp_path / "dens.csv", index=False)
    pd.DataFrame([
        {"animal_id": "F01", "sex": "F", "trial": "T1", "survived": 1, "release_lat": LAT, "release_lon": LON},
        {"animal_id": "F02", "sex": "M", "trial": "T1", "survived": 0, "release_lat": LAT, "release_lon": LON},
    ]).to_csv(tmp_path / "animals.csv", index=False)


def test_known_animal_covariates(con, tmp_path, feature_builder):
    write_known_animal(tmp_path)
    loader = TrackingLoader(con)
    loader.load_locations(tmp_path / "dens.csv")
    loader.load_animals(tmp_path / "animals.csv")

    cov = feature_builder.build_animal_covariates(con).set_index("animal_id")
    f01 = cov.loc["F01"]

    assert f01["n_locations"] == 5
    assert f01["days_tracked"] == 4
    assert f01["n_den_clusters"] == 2
    assert abs(f01["distance_traveled_m"] - 2000.0) < 5.0, "Two 1 km moves between dens"
    assert abs(f01["dist_from_release_m"]) < 1.0, "Final den is at the release site"
    assert abs(f01["max_dist_from_release_m"] - 1000.0) < 3.0
    assert f01["movement_pct"] == 50.0

    f02 = cov.loc["F02"]
    assert f02["n_locations"] == 0
    assert np.isnan(f02["n_den_clusters"])
    assert np.isnan(f02["distance_traveled_m"])
    assert np.isnan(f02["movement_pct"])


def test_covariates_for_demo_study(covariates, loaded_con, feature_builder):
    assert len(covariates) == 36
    assert covariates["animal_id"].is_unique
    assert (covariates["n_den_clusters"] >= 1).all()
    assert covariates["movement_pct"].between(0, 100).all()
    assert (covariates["distance_traveled_m"] >= 0).all()
    assert (covariates["max_dist_from_release_m"] >= covariates["dist_from_release_m"] - 1e-6).all()

    stored = loaded_con.execute("SELECT count(*) FROM animal_covariates").fetchone()[0]
    assert stored == 36

    for name in ["animal_covariates.csv", "den_clusters.csv", "den_centroids.csv", "den_visits.csv"]:
        assert os.path.exists(os.path.join(feature_builder.output_dir, name)), f"{name} was not written"

    assert feature_builder.visits is not None
    assert set(feature_builder.centroids["animal_id"]) == set(covariates["animal_id"])


def test_tracking_summary(loaded_con, feature_builder):
    summary = feature_builder.build_tracking_summary(loaded_con)
    assert list(summary.columns) == ["animal_id", "n_locations", "first_date", "last_date", "days_tracked"]
    assert (summary["days_tracked"] >= 0).all()
    assert summary["n_locations"].sum() == loaded_con.execute("SELECT count(*) FROM locations").fetchone()[0]


def test_missing_tables_return_none(con, feature_builder):
    assert feature_builder.build_animal_covariates(con) is None
