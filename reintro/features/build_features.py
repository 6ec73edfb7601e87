"""
MISSION: The Feature Layer.
Turns raw relocations and the roster into one covariate row per animal:
den clusters, distance traveled, distance from release and movement percentage.
"""
import os
import duckdb
import numpy as np
import pandas as pd

from reintro.config import Config
from reintro.features.den_clusters import DenClusterer
from reintro.features.distances import distance_traveled, distance_from_release, movement_percentage

COVARIATE_COLUMNS = [
    "animal_id", "sex", "trial", "survived",
    "n_locations", "first_date", "last_date", "days_tracked",
    "n_den_clusters", "distance_traveled_m", "dist_from_release_m",
    "max_dist_from_release_m", "movement_pct",
]


class FeatureBuilder:
    def __init__(self, clusterer=None, output_dir=None):
        """Initialize the Feature Builder for animal-level aggregation."""
        self.clusterer = clusterer or DenClusterer()
        self.output_dir = output_dir or Config.OUTPUT_DIR_FEATURES
        self.clustered = None
        self.centroids = None
        self.visits = None
        os.makedirs(self.output_dir, exist_ok=True)

    def build_tracking_summary(self, con):
        """Relocation counts and monitoring window per animal (SQL aggregation)."""
        return con.execute("""
            SELECT
                animal_id,
                COUNT(*) as n_locations,
                MIN(date) as first_date,
                MAX(date) as last_date,
                date_diff('day', MIN(date), MAX(date)) as days_tracked
            FROM locations
            GROUP BY 1
            ORDER BY 1
        """).df()

    def _movement_metrics(self, clustered, visits, animals):
        release = animals.set_index("animal_id")[["release_lat", "release_lon"]]
        rows = []
        for animal_id, pts in clustered.groupby("animal_id"):
            v = visits[visits["animal_id"] == animal_id]
            dens = v.drop_duplicates("den_cluster")

            rel_lat, rel_lon = (release.loc[animal_id] if animal_id in release.index
                                else (np.nan, np.nan))
            den_dist = distance_from_release(dens["centroid_lat"], dens["centroid_lon"], rel_lat, rel_lon)
            final = v.iloc[-1]
            final_dist = distance_from_release(final["centroid_lat"], final["centroid_lon"], rel_lat, rel_lon)

            rows.append({
                "animal_id": animal_id,
                "n_den_clusters": int(pts["den_cluster"].nunique()),
                "distance_traveled_m": distance_traveled(v),
                "dist_from_release_m": float(final_dist),
                "max_dist_from_release_m": float(np.nanmax(den_dist)) if np.isfinite(den_dist).any() else np.nan,
                "movement_pct": movement_percentage(pts["den_cluster"]),
            })
        return pd.DataFrame(rows, columns=[
            "animal_id", "n_den_clusters", "distance_traveled_m", "dist_from_release_m",
            "max_dist_from_release_m", "movement_pct",
        ])

    def build_animal_covariates(self, con):
        """
        Creates the 'animal_covariates' table in DuckDB.
        Every roster animal gets a row; animals never relocated keep NaN movement covariates.
        """
        print("    Building Animal Covariates (den clustering + distances)...")
        try:
            locations = con.execute("SELECT animal_id, date, latitude, longitude FROM locations").df()
            animals = con.execute("SELECT * FROM animals").df()
        except duckdb.CatalogException:
            print("Tables 'locations'/'animals' not found. Please run ingest first.")
            return None

        locations["date"] = pd.to_datetime(locations["date"])
        clustered = self.clusterer.assign_clusters(locations)
        centroids = self.clusterer.cluster_centroids(clustered)
        visits = self.clusterer.visit_sequence(clustered)
        self.clustered, self.centroids, self.visits = clustered, centroids, visits

        summary = self.build_tracking_summary(con)
        metrics = self._movement_metrics(clustered, visits, animals)

        orphans = set(summary["animal_id"]) - set(animals["animal_id"])
        if orphans:
            print(f"    ⚠️ {len(orphans)} tracked animals missing from roster, excluded: {sorted(orphans)}")

        covariates = (
            animals[["animal_id", "sex", "trial", "survived"]]
            .merge(summary, on="animal_id", how="left")
            .merge(metrics, on="animal_id", how="left")
        )[COVARIATE_COLUMNS]
        covariates["n_locations"] = covariates["n_locations"].fillna(0).astype(int)

        con.register("covariates_view", covariates)
        con.execute("CREATE OR REPLACE TABLE animal_covariates AS SELECT * FROM covariates_view")
        con.unregister("covariates_view")

        covariates.to_csv(os.path.join(self.output_dir, "animal_covariates.csv"), index=False)
        clustered.to_csv(os.path.join(self.output_dir, "den_clusters.csv"), index=False)
        centroids.to_csv(os.path.join(self.output_dir, "den_centroids.csv"), index=False)
        visits.to_csv(os.path.join(self.output_dir, "den_visits.csv"), index=False)

        print(f"Animal Covariates created for {len(covariates)} animals.")
        return covariates
