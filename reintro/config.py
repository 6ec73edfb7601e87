import os
from dotenv import load_dotenv
from pathlib import Path

root_dir = Path(__file__).resolve().parent.parent
env_path = root_dir / ".env"

load_dotenv(env_path)

class Config:
    DB_PATH = os.getenv("REINTRO_DB_PATH", "reintro.duckdb")
    # Unset leaves DuckDB at its own default
    DUCKDB_MEMORY_LIMIT = os.getenv("DUCKDB_MEMORY_LIMIT")

    LOCATIONS_CSV = os.getenv("LOCATIONS_CSV", "data/den_locations.csv")
    ANIMALS_CSV = os.getenv("ANIMALS_CSV", "data/animals.csv")

    # Tree-cut height for den clustering, in metres
    DEN_CLUSTER_HEIGHT_M = float(os.getenv("DEN_CLUSTER_HEIGHT_M", "100"))
    DEN_CLUSTER_LINKAGE = os.getenv("DEN_CLUSTER_LINKAGE", "complete")

    TUKEY_ALPHA = float(os.getenv("TUKEY_ALPHA", "0.05"))

    OUTPUT_DIR_FEATURES = Path(os.getenv("OUTPUT_DIR_FEATURES", "./outputs/features"))
    OUTPUT_DIR_MODELS = Path(os.getenv("OUTPUT_DIR_MODELS", "./outputs/models"))
    OUTPUT_DIR_FIGURES = Path(os.getenv("OUTPUT_DIR_FIGURES", "./outputs/figures"))

    @classmethod
    def initialize_folders(cls):
        cls.OUTPUT_DIR_FEATURES.mkdir(parents=True, exist_ok=True)
        cls.OUTPUT_DIR_MODELS.mkdir(parents=True, exist_ok=True)
        cls.OUTPUT_DIR_FIGURES.mkdir(parents=True, exist_ok=True)

# Initialize when the module is imported
Config.initialize_folders()
