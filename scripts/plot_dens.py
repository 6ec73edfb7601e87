"""Re-plots one animal's den map from the outputs of a previous run."""
import os
import sys
import duckdb
import pandas as pd
from reintro.config import Config
from reintro.utils.db import DatabaseManager
from reintro.exploration.figures import FigureMaker

def main(animal_id):
    feature_dir = Config.OUTPUT_DIR_FEATURES
    try:
        centroids = pd.read_csv(feature_dir / "den_centroids.csv", dtype={"animal_id": str})
        visits = pd.read_csv(feature_dir / "den_visits.csv", dtype={"animal_id": str})
    except FileNotFoundError as e:
        print(f"Missing feature output ({e}). Run run_analysis.py first.")
        sys.exit(1)

    db_mgr = DatabaseManager(Config.DB_PATH, memory_limit=Config.DUCKDB_MEMORY_LIMIT)
    try:
        animals = db_mgr.connect().execute("SELECT * FROM animals").df()
    except duckdb.CatalogException:
        print("Table 'animals' not found. Please run ingest first.")
        sys.exit(1)
    finally:
        db_mgr.close()

    figs = FigureMaker()
    path = figs.plot_den_map(centroids, visits, animals, animal_id=animal_id)
    if path is None:
        sys.exit(1)

if __name__ == "__main__":
    if len(sys.argv) != 2:
        print(f"Usage: python {os.path.basename(__file__)} <animal_id>")
        sys.exit(2)
    main(sys.argv[1])
