import matplotlib
matplotlib.use("Agg")

import duckdb
import pytest

from reintro.ingest.loader import TrackingLoader
from reintro.features.build_features import FeatureBuilder
from reintro.features.den_clusters import DenClusterer
from reintro.utils.demo_data import make_demo_data


@pytest.fixture
def con():
    conn = duckdb.connect(":memory:")
    yield conn
    conn.close()


@pytest.fixture
def demo_csvs(tmp_path):
    """Writes the synthetic study data (3 trials x 12 animals) to CSV."""
    locations, animals = make_demo_data(n_per_trial=12, seed=7)
    loc_path = tmp_path / "den_locations.csv"
    animal_path = tmp_path / "animals.csv"
    locations.to_csv(loc_path, index=False)
    animals.to_csv(animal_path, index=False)
    return loc_path, animal_path


@pytest.fixture
def loaded_con(con, demo_csvs):
    loader = TrackingLoader(con)
    loader.load_locations(demo_csvs[0])
    loader.load_animals(demo_csvs[1])
    return con


@pytest.fixture
def feature_builder(tmp_path):
    return FeatureBuilder(clusterer=DenClusterer(height_m=100, linkage="complete"),
                          output_dir=tmp_path / "features")


@pytest.fixture
def covariates(loaded_con, feature_builder):
    return feature_builder.build_animal_covariates(loaded_con)


@pytest.fixture
def offline_basemap(monkeypatch):
    """Makes tile downloads fail the way they do without network access."""
    from reintro.exploration import figures

    def no_tiles(*args, **kwargs):
        raise ConnectionError("offline")
    monkeypatch.setattr(figures.ctx, "add_basemap", no_tiles)
