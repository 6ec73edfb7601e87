from dotenv import load_dotenv
from reintro.config import Config
from reintro.utils.db import DatabaseManager

SURVIVAL_PREDICTORS = {
    "surv_distance": "distance_traveled_m",
    "surv_release_dist": "dist_from_release_m",
    "surv_movement": "movement_pct",
}

TUKEY_RESPONSES = ["distance_traveled_m", "dist_from_release_m", "movement_pct", "n_den_clusters"]


def main():
    load_dotenv()

    print("=" * 80)
    print("  DEN-SITE REINTRODUCTION ANALYSIS")
    print("=" * 80)

    db_mgr = DatabaseManager(Config.DB_PATH, memory_limit=Config.DUCKDB_MEMORY_LIMIT)
    conn = db_mgr.connect()

    # --- LAYER 1: INGEST ---
    print("\n" + "=" * 80)
    print("LAYER 1: INGEST")
    print("Purpose: Load den relocations and the animal roster into DuckDB")
    print("=" * 80)

    from reintro.ingest.loader import TrackingLoader
    loader = TrackingLoader(conn)
    loader.load_locations(Config.LOCATIONS_CSV)
    loader.load_animals(Config.ANIMALS_CSV)

    print("\n→ Data quality audit")
    print(loader.check_data_quality().to_string(index=False))


    # --- LAYER 2: FEATURES ---
    print("\n" + "=" * 80)
    print("LAYER 2: MOVEMENT COVARIATES")
    print("Purpose: Cluster relocations into dens & derive per-animal movement metrics")
    print("=" * 80)

    print(f"\n→ Hierarchical clustering, tree cut at {Config.DEN_CLUSTER_HEIGHT_M:g} m")
    print("→ Distance traveled between dens, distance from release, movement %")

    from reintro.features.build_features import FeatureBuilder
    fb = FeatureBuilder()
    covariates = fb.build_animal_covariates(conn)
    if covariates is None or covariates.empty:
        print("No covariates built, stopping.")
        db_mgr.close()
        return


    # --- LAYER 3: MODELS ---
    print("\n" + "=" * 80)
    print("LAYER 3: HYPOTHESIS TESTS")
    print("Purpose: Fit the GLM series & compare release trials")
    print("=" * 80)

    from reintro.models.hypothesis_glm import HypothesisTester
    tester = HypothesisTester(covariates)

    print("\n→ Step 3.1: GLM series (AIC ranked within response)")
    comparison = tester.fit_all()
    if not comparison.empty:
        print(comparison[["response", "model", "aic", "delta_aic", "akaike_weight"]].to_string(index=False))
    tester.coefficient_table()

    print("\n→ Step 3.2: Tukey HSD between trials")
    tukey_tables = {resp: tester.run_tukey(resp, group="trial") for resp in TUKEY_RESPONSES}

    print("\n→ Step 3.3: Survival contingency & trial summary")
    tester.survival_contingency(group="trial")
    print(tester.trial_summary().to_string(index=False))


    # --- LAYER 4: FIGURES ---
    print("\n" + "=" * 80)
    print("LAYER 4: FIGURES")
    print("=" * 80)

    from reintro.exploration.figures import FigureMaker
    figs = FigureMaker()

    figs.plot_survival_by_trial(covariates)
    for metric in TUKEY_RESPONSES:
        figs.plot_metric_by_group(covariates, metric, group="trial")
    for model_name, predictor in SURVIVAL_PREDICTORS.items():
        figs.plot_survival_curve(tester.results.get(model_name), covariates, predictor)
    for resp, table in tukey_tables.items():
        figs.plot_tukey(table, resp)

    animals = conn.execute("SELECT * FROM animals").df()
    figs.plot_den_map(fb.centroids, fb.visits, animals)

    print("\n" + "=" * 80)
    print("  ANALYSIS COMPLETE")
    print("  All outputs saved to: outputs/")
    print("=" * 80)

    db_mgr.close()

if __name__ == "__main__":
    main()
