"""
MISSION: The Model Layer.
Fits the fixed series of hypothesis GLMs on the animal covariates, ranks them
by AIC within each response, and runs Tukey HSD between release trials.
"""
import os
import re
import numpy as np
import pandas as pd
import statsmodels.api as sm
import statsmodels.formula.api as smf
from statsmodels.stats.multicomp import pairwise_tukeyhsd
from scipy import stats

from reintro.config import Config

FAMILIES = {
    "binomial": sm.families.Binomial,
    "gaussian": sm.families.Gaussian,
    "poisson": sm.families.Poisson,
}

HYPOTHESES = [
    # Survival
    {"name": "surv_null", "formula": "survived ~ 1", "family": "binomial",
     "description": "Constant survival"},
    {"name": "surv_trial", "formula": "survived ~ C(trial)", "family": "binomial",
     "description": "Survival differs between release trials"},
    {"name": "surv_sex", "formula": "survived ~ C(sex)", "family": "binomial",
     "description": "Survival differs between sexes"},
    {"name": "surv_trial_sex", "formula": "survived ~ C(trial) + C(sex)", "family": "binomial",
     "description": "Additive trial and sex effects on survival"},
    {"name": "surv_distance", "formula": "survived ~ distance_traveled_m", "family": "binomial",
     "description": "Animals that travel farther survive less"},
    {"name": "surv_release_dist", "formula": "survived ~ dist_from_release_m", "family": "binomial",
     "description": "Dispersal away from the release site affects survival"},
    {"name": "surv_movement", "formula": "survived ~ movement_pct", "family": "binomial",
     "description": "Frequent den switching affects survival"},
    {"name": "surv_dens", "formula": "survived ~ n_den_clusters", "family": "binomial",
     "description": "Number of dens used affects survival"},
    # Distance traveled
    {"name": "dist_null", "formula": "distance_traveled_m ~ 1", "family": "gaussian",
     "description": "Constant distance traveled"},
    {"name": "dist_trial", "formula": "distance_traveled_m ~ C(trial)", "family": "gaussian",
     "description": "Distance traveled differs between trials"},
    {"name": "dist_sex", "formula": "distance_traveled_m ~ C(sex)", "family": "gaussian",
     "description": "Distance traveled differs between sexes"},
    {"name": "dist_trial_sex", "formula": "distance_traveled_m ~ C(trial) + C(sex)", "family": "gaussian",
     "description": "Additive trial and sex effects on distance traveled"},
    # Den use
    {"name": "dens_null", "formula": "n_den_clusters ~ 1", "family": "poisson",
     "description": "Constant number of dens"},
    {"name": "dens_trial", "formula": "n_den_clusters ~ C(trial)", "family": "poisson",
     "description": "Number of dens differs between trials"},
]

MIN_ROWS = 3


def formula_variables(formula):
    """Column names referenced by a formula, unwrapping C(...)."""
    names = re.findall(r"[A-Za-z_][A-Za-z0-9_]*", formula.replace("C(", "("))
    return list(dict.fromkeys(names))


def akaike_weights(aic):
    delta = aic - aic.min()
    rel = np.exp(-0.5 * delta)
    return delta, rel / rel.sum()


class HypothesisTester:
    """
    Runs the hypothesis GLM series on one covariate table.
    Fitted results are kept in `self.results` keyed by model name.
    """
    def __init__(self, covariates, output_dir=None, alpha=None):
        self.df = covariates.copy()
        self.output_dir = output_dir or Config.OUTPUT_DIR_MODELS
        self.alpha = alpha if alpha is not None else Config.TUKEY_ALPHA
        self.results = {}
        os.makedirs(self.output_dir, exist_ok=True)

    def _model_frame(self, hypothesis):
        cols = formula_variables(hypothesis["formula"])
        missing = [c for c in cols if c not in self.df.columns]
        if missing:
            return None, f"missing columns {missing}"

        data = self.df[cols].dropna()
        if len(data) < MIN_ROWS:
            return None, f"only {len(data)} complete rows"

        for factor in re.findall(r"C\((\w+)\)", hypothesis["formula"]):
            if data[factor].nunique() < 2:
                return None, f"'{factor}' has a single level"

        response = cols[0]
        if hypothesis["family"] == "binomial" and data[response].nunique() < 2:
            return None, f"'{response}' has no variation"
        return data, None

    def fit_model(self, hypothesis):
        """Fits one GLM; returns None when the data cannot support it."""
        data, reason = self._model_frame(hypothesis)
        if data is None:
            print(f"    ⚠️ Skipping {hypothesis['name']}: {reason}")
            return None

        try:
            results = smf.glm(
                formula=hypothesis["formula"],
                data=data,
                family=FAMILIES[hypothesis["family"]](),
            ).fit()
        except Exception as e:
            print(f"    ⚠️ {hypothesis['name']} failed to fit: {e}")
            return None

        with open(os.path.join(self.output_dir, f"{hypothesis['name']}_summary.txt"), "w") as f:
            f.write(f"{hypothesis['description']}\n\n")
            f.write(results.summary().as_text())

        self.results[hypothesis["name"]] = results
        return results

    def fit_all(self, hypotheses=None):
        """Fits every hypothesis and ranks them by AIC within each response."""
        hypotheses = HYPOTHESES if hypotheses is None else hypotheses
        print(f"Fitting {len(hypotheses)} hypothesis GLMs...")

        rows = []
        for hypothesis in hypotheses:
            res = self.fit_model(hypothesis)
            if res is None:
                continue
            rows.append({
                "response": formula_variables(hypothesis["formula"])[0],
                "model": hypothesis["name"],
                "formula": hypothesis["formula"],
                "family": hypothesis["family"],
                "n": int(res.nobs),
                "k": len(res.params),
                "aic": res.aic,
                "deviance": res.deviance,
                "null_deviance": res.null_deviance,
                "pseudo_r2": 1 - res.deviance / res.null_deviance if res.null_deviance > 0 else np.nan,
            })

        table = pd.DataFrame(rows, columns=[
            "response", "model", "formula", "family", "n", "k", "aic",
            "deviance", "null_deviance", "pseudo_r2",
        ])
        if table.empty:
            print("No models could be fitted.")
            return table

        parts = []
        for _, grp in table.groupby("response", sort=False):
            grp = grp.copy()
            grp["delta_aic"], grp["akaike_weight"] = akaike_weights(grp["aic"])
            parts.append(grp.sort_values("aic"))
        table = pd.concat(parts, ignore_index=True)
        table = table[["response", "model", "formula", "family", "n", "k", "aic",
                       "delta_aic", "akaike_weight", "deviance", "null_deviance", "pseudo_r2"]]

        out_path = os.path.join(self.output_dir, "model_comparison.csv")
        table.to_csv(out_path, index=False)
        print(f"Model comparison saved to {out_path}")
        return table

    def coefficient_table(self):
        """Per-term estimates for every fitted model; odds ratios for binomial fits."""
        frames = []
        for name, res in self.results.items():
            conf = res.conf_int()
            coef = pd.DataFrame({
                "model": name,
                "term": res.params.index,
                "estimate": res.params.values,
                "std_err": res.bse.values,
                "z": res.tvalues.values,
                "p_value": res.pvalues.values,
                "ci_low": conf[0].values,
                "ci_high": conf[1].values,
            })
            if isinstance(res.model.family, sm.families.Binomial):
                coef["odds_ratio"] = np.exp(coef["estimate"])
            else:
                coef["odds_ratio"] = np.nan
            frames.append(coef)

        if not frames:
            return pd.DataFrame()
        table = pd.concat(frames, ignore_index=True)
        table.to_csv(os.path.join(self.output_dir, "model_coefficients.csv"), index=False)
        return table

    def run_tukey(self, response, group="trial"):
        """Tukey HSD on `response` between levels of `group`."""
        data = self.df[[response, group]].dropna()
        if data[group].nunique() < 2:
            print(f"    ⚠️ Tukey HSD on {response}: fewer than two '{group}' levels.")
            return None

        res = pairwise_tukeyhsd(endog=data[response].astype(float),
                                groups=data[group].astype(str), alpha=self.alpha)
        # raw attributes, the printed summary is rounded to 4 decimals
        first, second = np.triu_indices(len(res.groupsunique), 1)
        table = pd.DataFrame({
            "group1": res.groupsunique[first],
            "group2": res.groupsunique[second],
            "meandiff": res.meandiffs,
            "p-adj": res.pvalues,
            "lower": res.confint[:, 0],
            "upper": res.confint[:, 1],
            "reject": res.reject,
        })
        table.insert(0, "response", response)

        out_path = os.path.join(self.output_dir, f"tukey_{response}_by_{group}.csv")
        table.to_csv(out_path, index=False)
        print(f"\nTukey HSD: {response} by {group}")
        print(table.to_string(index=False))
        return table

    def survival_contingency(self, group="trial"):
        """
        Chi-square test of survival against a grouping factor.
        A table with a single group or a single outcome gets NaN statistics.
        """
        data = self.df[["survived", group]].dropna()
        counts = pd.crosstab(data[group], data["survived"])
        if counts.shape[0] < 2 or counts.shape[1] < 2:
            print(f"    ⚠️ Survival contingency by {group}: table is degenerate.")
            return {"chi2": np.nan, "p_value": np.nan, "dof": 0,
                    "observed": counts, "expected": None}

        chi2, p_val, dof, expected = stats.chi2_contingency(counts)
        print(f"Survival x {group}: chi2={chi2:.3f}, dof={dof}, p={p_val:.4f}")
        return {"chi2": chi2, "p_value": p_val, "dof": dof,
                "observed": counts, "expected": pd.DataFrame(expected, index=counts.index, columns=counts.columns)}

    def trial_summary(self):
        summary = (
            self.df.groupby("trial")
            .agg(
                n_animals=("animal_id", "count"),
                survival_rate=("survived", "mean"),
                mean_n_dens=("n_den_clusters", "mean"),
                mean_distance_traveled_m=("distance_traveled_m", "mean"),
                mean_dist_from_release_m=("dist_from_release_m", "mean"),
                mean_movement_pct=("movement_pct", "mean"),
            )
            .reset_index()
        )
        summary.to_csv(os.path.join(self.output_dir, "trial_summary.csv"), index=False)
        return summary
