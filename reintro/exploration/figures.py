import os
import numpy as np
import pandas as pd
import matplotlib.pyplot as plt
import seaborn as sns
import geopandas as gpd
from shapely.geometry import LineString
import contextily as ctx

from reintro.config import Config

METRIC_LABELS = {
    "distance_traveled_m": "Distance Traveled (m)",
    "dist_from_release_m": "Final Den Distance from Release (m)",
    "max_dist_from_release_m": "Max Den Distance from Release (m)",
    "movement_pct": "Den Changes (% of relocations)",
    "n_den_clusters": "Number of Dens",
    "days_tracked": "Days Tracked",
}


class FigureMaker:
    def __init__(self, output_dir=None):
        self.output_dir = output_dir or Config.OUTPUT_DIR_FIGURES
        os.makedirs(self.output_dir, exist_ok=True)

    def _save_plot(self, filename: str):
        """Internal helper to standardize how plots are saved."""
        if not filename.endswith(('.png', '.jpg', '.pdf')):
            filename += '.png'

        save_path = os.path.join(self.output_dir, filename)
        plt.tight_layout()
        plt.savefig(save_path, dpi=300, bbox_inches='tight')
        plt.close()
        print(f"Plot saved to {save_path}")
        return save_path

    def plot_survival_by_trial(self, covariates, filename="plot_survival_by_trial"):
        print("Plotting survival by trial...")
        df = covariates.dropna(subset=["trial", "survived"])
        if df.empty:
            print("    ⚠️ No animals with known trial and fate.")
            return None

        hue = "sex" if df["sex"].notna().any() else None
        counts = df.groupby("trial")["animal_id"].count()

        plt.figure(figsize=(9, 6))
        sns.set_style("whitegrid")
        ax = sns.barplot(data=df, x="trial", y="survived", hue=hue, order=list(counts.index),
                         errorbar=None, palette="Set2" if hue else None)

        ax.set_xticks(range(len(counts)))
        ax.set_xticklabels([f"{t}\n(n={n})" for t, n in counts.items()])
        plt.ylim(0, 1)
        plt.title("Survival by Release Trial", fontsize=15, fontweight='bold')
        plt.xlabel("Release Trial")
        plt.ylabel("Proportion Surviving")
        return self._save_plot(filename)

    def plot_metric_by_group(self, covariates, metric, group="trial", filename=None):
        df = covariates.dropna(subset=[metric, group])
        if df.empty:
            print(f"    ⚠️ No data for {metric} by {group}.")
            return None

        order = sorted(df[group].unique())
        plt.figure(figsize=(9, 6))
        sns.set_style("whitegrid")
        sns.boxplot(data=df, x=group, y=metric, order=order, color="lightgrey", showfliers=False)
        hue = "sex" if "sex" in df and df["sex"].notna().any() else None
        sns.stripplot(data=df, x=group, y=metric, order=order, hue=hue,
                      dodge=False, alpha=0.8, size=6, palette="Set1" if hue else None)

        label = METRIC_LABELS.get(metric, metric)
        plt.title(f"{label} by {group.title()}", fontsize=15, fontweight='bold')
        plt.xlabel(group.title())
        plt.ylabel(label)
        return self._save_plot(filename or f"plot_{metric}_by_{group}")

    def plot_den_map(self, centroids, visits, animals, animal_id=None, filename=None):
        """
        Den centroids, movement between consecutive visits and release points.
        Passing `animal_id` restricts the map to one animal.
        """
        if animal_id is not None:
            centroids = centroids[centroids["animal_id"] == animal_id]
            visits = visits[visits["animal_id"] == animal_id]
            animals = animals[animals["animal_id"] == animal_id]
        if centroids.empty:
            print(f"    ⚠️ No dens to map{f' for {animal_id}' if animal_id else ''}.")
            return None

        print(f"Mapping {len(centroids)} dens...")
        dens = gpd.GeoDataFrame(
            centroids,
            geometry=gpd.points_from_xy(centroids["centroid_lon"], centroids["centroid_lat"]),
            crs="EPSG:4326",
        ).to_crs(epsg=3857)

        paths = []
        for aid, v in visits.groupby("animal_id"):
            if len(v) > 1:
                paths.append({"animal_id": aid,
                              "geometry": LineString(zip(v["centroid_lon"], v["centroid_lat"]))})

        releases = animals.dropna(subset=["release_lat", "release_lon"])
        releases = gpd.GeoDataFrame(
            releases,
            geometry=gpd.points_from_xy(releases["release_lon"], releases["release_lat"]),
            crs="EPSG:4326",
        ).to_crs(epsg=3857)

        fig, ax = plt.subplots(figsize=(12, 12))
        if paths:
            gpd.GeoDataFrame(paths, crs="EPSG:4326").to_crs(epsg=3857).plot(
                ax=ax, color="grey", linewidth=0.8, alpha=0.6)
        dens.plot(ax=ax, column="animal_id", categorical=True, cmap="tab20",
                  markersize=dens["n_relocations"] * 12, alpha=0.8, edgecolor="black", linewidth=0.3,
                  legend=animal_id is None and dens["animal_id"].nunique() <= 20)
        if not releases.empty:
            releases.plot(ax=ax, marker="*", color="red", markersize=250, edgecolor="black", zorder=4)

        ax.set_axis_off()
        title = f"Den Sites: {animal_id}" if animal_id is not None else "Den Sites and Release Points"
        plt.title(title, fontsize=16, fontweight='bold')

        try:
            ctx.add_basemap(ax, source=ctx.providers.CartoDB.Positron, alpha=0.8)
        except Exception as e:
            print(f"    ⚠️ Could not add basemap: {e}")

        return self._save_plot(filename or (f"den_map_{animal_id}" if animal_id is not None else "den_map_all"))

    def plot_survival_curve(self, results, covariates, predictor, filename=None):
        """Fitted survival probability over the range of one continuous predictor."""
        df = covariates.dropna(subset=[predictor, "survived"])
        if results is None or df.empty:
            print(f"    ⚠️ No fitted survival model for {predictor}.")
            return None

        grid = pd.DataFrame({predictor: np.linspace(df[predictor].min(), df[predictor].max(), 200)})
        pred = results.get_prediction(grid).summary_frame(alpha=0.05)

        plt.figure(figsize=(9, 6))
        sns.set_style("whitegrid")
        plt.fill_between(grid[predictor], pred["mean_ci_lower"], pred["mean_ci_upper"], color="steelblue", alpha=0.2)
        plt.plot(grid[predictor], pred["mean"], color="steelblue", linewidth=3)
        jitter = np.random.default_rng(0).uniform(-0.02, 0.02, len(df))
        plt.scatter(df[predictor], df["survived"] + jitter, color="black", alpha=0.6, s=25)

        label = METRIC_LABELS.get(predictor, predictor)
        plt.title(f"Survival Probability vs {label}", fontsize=15, fontweight='bold')
        plt.xlabel(label)
        plt.ylabel("P(Survival)")
        plt.ylim(-0.05, 1.05)
        return self._save_plot(filename or f"plot_survival_vs_{predictor}")

    def plot_tukey(self, tukey_df, response, filename=None):
        if tukey_df is None or tukey_df.empty:
            return None

        df = tukey_df.copy()
        df["pair"] = df["group1"].astype(str) + " - " + df["group2"].astype(str)
        y = np.arange(len(df))
        colors = ["firebrick" if r else "grey" for r in df["reject"]]

        plt.figure(figsize=(9, max(3, len(df) * 0.6)))
        plt.hlines(y, df["lower"], df["upper"], colors=colors, linewidth=3)
        plt.scatter(df["meandiff"], y, color=colors, zorder=3)
        plt.axvline(0, color="black", linestyle="--", linewidth=1)
        plt.yticks(y, df["pair"])

        label = METRIC_LABELS.get(response, response)
        plt.title(f"Tukey HSD: {label}", fontsize=14, fontweight='bold')
        plt.xlabel("Mean Difference (family-wise CI)")
        return self._save_plot(filename or f"plot_tukey_{response}")
