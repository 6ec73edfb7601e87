"""
Groups each animal's relocations into den sites.
Hierarchical clustering on great-circle distances, cut at a fixed height.
"""
import numpy as np
import pandas as pd
from sklearn.cluster import AgglomerativeClustering

from reintro.config import Config
from reintro.features.distances import pairwise_haversine_m

SUPPORTED_LINKAGES = ("complete", "average", "single")


class DenClusterer:
    def __init__(self, height_m=None, linkage=None):
        self.height_m = float(height_m if height_m is not None else Config.DEN_CLUSTER_HEIGHT_M)
        self.linkage = linkage or Config.DEN_CLUSTER_LINKAGE

        if self.height_m <= 0:
            raise ValueError("height_m must be > 0")
        # ward needs raw coordinates, not a distance matrix
        if self.linkage not in SUPPORTED_LINKAGES:
            raise ValueError(f"linkage must be one of {SUPPORTED_LINKAGES}, got '{self.linkage}'")

    def cluster_animal(self, points: pd.DataFrame) -> np.ndarray:
        """
        Labels one animal's relocations (already in date order) with den ids.

        Ids run 1..k in order of first use, so den 1 is the first den the
        animal was found at.
        """
        n = len(points)
        if n == 0:
            return np.array([], dtype=int)
        if n == 1:
            return np.array([1])

        dist = pairwise_haversine_m(points["latitude"], points["longitude"])
        model = AgglomerativeClustering(
            n_clusters=None,
            distance_threshold=self.height_m,
            metric="precomputed",
            linkage=self.linkage,
        )
        raw = model.fit_predict(dist)

        order = {}
        for label in raw:
            if label not in order:
                order[label] = len(order) + 1
        return np.array([order[label] for label in raw])

    def assign_clusters(self, locations: pd.DataFrame) -> pd.DataFrame:
        """Adds a per-animal `den_cluster` column to the relocations."""
        df = locations.sort_values(["animal_id", "date"]).reset_index(drop=True)
        df["den_cluster"] = 0

        for _, grp in df.groupby("animal_id", sort=False):
            df.loc[grp.index, "den_cluster"] = self.cluster_animal(grp)

        df["den_cluster"] = df["den_cluster"].astype(int)
        print(f"    Clustered {len(df)} relocations into "
              f"{df.groupby('animal_id')['den_cluster'].nunique().sum()} dens "
              f"(cut height {self.height_m:g} m, {self.linkage} linkage).")
        return df

    @staticmethod
    def cluster_centroids(clustered: pd.DataFrame) -> pd.DataFrame:
        return (
            clustered.groupby(["animal_id", "den_cluster"])
            .agg(
                centroid_lat=("latitude", "mean"),
                centroid_lon=("longitude", "mean"),
                n_relocations=("date", "size"),
                first_date=("date", "min"),
                last_date=("date", "max"),
            )
            .reset_index()
        )

    @staticmethod
    def visit_sequence(clustered: pd.DataFrame) -> pd.DataFrame:
        """Collapses consecutive relocations at the same den into visits."""
        df = clustered.sort_values(["animal_id", "date"]).copy()
        new_visit = (df["den_cluster"] != df.groupby("animal_id")["den_cluster"].shift())
        df["visit"] = new_visit.astype(int).groupby(df["animal_id"]).cumsum()

        visits = (
            df.groupby(["animal_id", "visit"])
            .agg(
                den_cluster=("den_cluster", "first"),
                start_date=("date", "min"),
                end_date=("date", "max"),
                n_relocations=("date", "size"),
            )
            .reset_index()
        )
        centroids = DenClusterer.cluster_centroids(clustered)[["animal_id", "den_cluster", "centroid_lat", "centroid_lon"]]
        visits = visits.merge(centroids, on=["animal_id", "den_cluster"], how="left")
        return visits.sort_values(["animal_id", "visit"]).reset_index(drop=True)
