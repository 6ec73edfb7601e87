"""Great-circle distances and the movement metrics built on them."""
import numpy as np
import pandas as pd

EARTH_RADIUS_M = 6371008.8


def haversine_m(lat1, lon1, lat2, lon2) -> np.ndarray:
    lat1 = np.radians(np.asarray(lat1, dtype=float))
    lon1 = np.radians(np.asarray(lon1, dtype=float))
    lat2 = np.radians(np.asarray(lat2, dtype=float))
    lon2 = np.radians(np.asarray(lon2, dtype=float))
    dlat = lat2 - lat1
    dlon = lon2 - lon1
    a = np.sin(dlat / 2.0) ** 2 + np.cos(lat1) * np.cos(lat2) * np.sin(dlon / 2.0) ** 2
    return 2.0 * EARTH_RADIUS_M * np.arcsin(np.sqrt(np.clip(a, 0.0, 1.0)))


def pairwise_haversine_m(lat, lon) -> np.ndarray:
    """Symmetric n x n matrix of distances between all points, in metres."""
    lat = np.asarray(lat, dtype=float)
    lon = np.asarray(lon, dtype=float)
    dist = haversine_m(lat[:, None], lon[:, None], lat[None, :], lon[None, :])
    np.fill_diagonal(dist, 0.0)
    return dist


def distance_traveled(visits: pd.DataFrame) -> float:
    """
    Total distance between consecutive den visits.

    `visits` holds one row per visit in time order with the visited cluster's
    centroid in `centroid_lat` / `centroid_lon`. Moves are measured centroid to
    centroid, so relocations within a den contribute nothing.
    """
    if len(visits) < 2:
        return 0.0 if len(visits) == 1 else np.nan

    lat = visits["centroid_lat"].to_numpy(float)
    lon = visits["centroid_lon"].to_numpy(float)
    return float(np.sum(haversine_m(lat[:-1], lon[:-1], lat[1:], lon[1:])))


def distance_from_release(centroid_lat, centroid_lon, release_lat, release_lon) -> np.ndarray:
    if release_lat is None or release_lon is None or pd.isna(release_lat) or pd.isna(release_lon):
        return np.full(np.shape(np.asarray(centroid_lat, dtype=float)), np.nan)
    return haversine_m(centroid_lat, centroid_lon, release_lat, release_lon)


def movement_percentage(cluster_sequence) -> float:
    """Percent of consecutive relocation pairs where the den cluster changed."""
    seq = np.asarray(cluster_sequence)
    if seq.size < 2:
        return np.nan
    changes = np.sum(seq[1:] != seq[:-1])
    return float(changes) * 100.0 / (seq.size - 1)
