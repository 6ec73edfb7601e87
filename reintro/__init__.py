"""
Den-Site Reintroduction Analysis
--------------------------------
This package implements the analysis workflow for a wildlife reintroduction
study: from raw den relocations to per-animal movement covariates, the
hypothesis GLM series and the publication figures.

Module Hierarchy:
- `ingest`: Loads the relocation and roster CSVs into DuckDB and normalises
  their headers.
- `features`: Den clustering, great-circle distances and the per-animal
  covariate table.
- `models`: The fixed series of GLMs, AIC comparison and Tukey HSD.
- `exploration`: Summary plots and den maps.
- `utils`: Database connectivity.

Pipeline (4 Layers):
1. Ingest Layer (Relocations & Roster)
2. Feature Layer (Den Clusters & Movement Covariates)
3. Model Layer (Hypothesis GLMs & Post-hoc Tests)
4. Figure Layer (Survival & Movement Plots)
"""
