import glob
import importlib.util
import os
from pathlib import Path

import pandas as pd
import pytest

import run_analysis
from reintro.config import Config

SCRIPTS_DIR = Path(__file__).resolve().parent.parent / "scripts"


def load_script(name):
    """Imports a file from scripts/ as a module."""
    module_spec = importlib.util.spec_from_file_location(name, SCRIPTS_DIR / f"{name}.py")
    module = importlib.util.module_from_spec(module_spec)
    module_spec.loader.exec_module(module)
    return module


@pytest.fixture
def study_config(tmp_path, monkeypatch):
    """Points every Config path at a fresh folder."""
    monkeypatch.setattr(Config, "DB_PATH", str(tmp_path / "study.duckdb"))
    monkeypatch.setattr(Config, "DUCKDB_MEMORY_LIMIT", "1GB")
    monkeypatch.setattr(Config, "LOCATIONS_CSV", str(tmp_path / "data" / "den_locations.csv"))
    monkeypatch.setattr(Config, "ANIMALS_CSV", str(tmp_path / "data" / "animals.csv"))
    monkeypatch.setattr(Config, "OUTPUT_DIR_FEATURES", tmp_path / "outputs" / "features")
    monkeypatch.setattr(Config, "OUTPUT_DIR_MODELS", tmp_path / "outputs" / "models")
    monkeypatch.setattr(Config, "OUTPUT_DIR_FIGURES", tmp_path / "outputs" / "figures")
    monkeypatch.setenv("DEMO_ANIMALS_PER_TRIAL", "8")
    return tmp_path


def test_make_demo_data_writes_inputs(study_config):
    load_script("make_demo_data").main()

    animals = pd.read_csv(Config.ANIMALS_CSV)
    locations = pd.read_csv(Config.LOCATIONS_CSV)
    assert len(animals) == 24, "3 trials x 8 animals"
    assert set(locations["animal_id"]) <= set(animals["animal_id"])


def test_ingest_script_loads_database(study_config):
    load_script("make_demo_data").main()
    load_script("ingest_data").main()

    import duckdb
    con = duckdb.connect(Config.DB_PATH)
    try:
        assert con.execute("SELECT count(*) FROM animals").fetchone()[0] == 24
        assert con.execute("SELECT count(*) FROM ingest_manifest").fetchone()[0] == 2
    finally:
        con.close()


def test_full_run_writes_tables_and_figures(study_config, offline_basemap):
    load_script("make_demo_data").main()
    run_analysis.main()

    features = Config.OUTPUT_DIR_FEATURES
    models = Config.OUTPUT_DIR_MODELS
    figs = Config.OUTPUT_DIR_FIGURES

    assert os.path.exists(features / "animal_covariates.csv")
    assert os.path.exists(features / "den_centroids.csv")
    assert os.path.exists(models / "model_comparison.csv")
    assert os.path.exists(models / "model_coefficients.csv")
    assert os.path.exists(models / "trial_summary.csv")
    assert os.path.exists(models / "tukey_distance_traveled_m_by_trial.csv")
    assert len(glob.glob(str(models / "tukey_*_by_trial.csv"))) == 4
    assert os.path.exists(figs / "den_map_all.png")
    assert os.path.exists(figs / "plot_survival_by_trial.png")

    comparison = pd.read_csv(models / "model_comparison.csv")
    assert "surv_null" in set(comparison["model"])


def test_plot_dens_replots_one_animal(study_config, offline_basemap):
    load_script("make_demo_data").main()
    run_analysis.main()

    load_script("plot_dens").main("T1-01")
    assert os.path.exists(Config.OUTPUT_DIR_FIGURES / "den_map_T1-01.png")


def test_plot_dens_unknown_animal_exits(study_config, offline_basemap):
    load_script("make_demo_data").main()
    run_analysis.main()

    with pytest.raises(SystemExit):
        load_script("plot_dens").main("nobody")
