#!/usr/bin/env python
"""
Walkthrough of the experiment container on a small influenza-infection dataset.

This demonstrates:
1. Building a container from a count matrix and two annotation tables
2. Subsetting genes and samples together
3. Filtering on sample annotations and adding derived fields
4. Reshaping to a long table for plotting libraries
"""

import logging

import numpy as np
import pandas as pd

from sumexp import AssayContainer, ColumnFilter, Pipeline, RowFilter

# Set seed for reproducibility
np.random.seed(42)


def build_experiment() -> AssayContainer:
    n_genes, n_samples = 8, 6
    counts = np.random.negative_binomial(5, 0.01, size=(n_genes, n_samples))

    genes = pd.DataFrame({
        "gene": ["Asl", "Apod", "Cyp2d22", "Klk6", "Fcrls", "Slc2a4", "Exd2", "Gjc2"],
        "chromosome": ["5", "16", "15", "7", "3", "11", "12", "11"],
    })
    samples = pd.DataFrame({
        "sample": [f"GSM25453{i}" for i in range(36, 36 + n_samples)],
        "infection": ["NonInfected", "InfluenzaA", "InfluenzaA"] * 2,
        "time": [0, 4, 8] * 2,
        "sex": ["Female"] * 3 + ["Male"] * 3,
    })
    return AssayContainer.create(
        assays={"counts": counts},
        row_meta=genes,
        col_meta=samples,
    )


def main():
    logging.basicConfig(level=logging.INFO, format="%(name)s: %(message)s")

    se = build_experiment()
    print(se)

    # First 3 genes in samples at time 0 and 8
    times = se.col_metadata.column("time")
    sub = se.subset(rows=range(3), cols=np.flatnonzero(times.isin([0, 8])))
    print("\nFirst 3 genes at t0/t8:")
    print(sub.assay().values)

    # Subset by name
    wanted = se.positions("rows", "gene", ["Klk6", "Asl"])
    print("\nKlk6, Asl:", se.subset_rows(wanted).row_metadata.column("gene").tolist())

    # Derived annotation plus a filtering pipeline
    se = se.add_metadata_column("cols", "day", se.col_metadata.column("time") / 4 * 2)
    prep = Pipeline([
        ColumnFilter(lambda rec: rec["infection"] == "InfluenzaA", label="infected"),
        RowFilter(lambda rec: rec["chromosome"] != "11", label="not chr11"),
    ])
    infected = prep.apply(se)
    print(f"\nAfter {prep}: {infected.shape}")

    # Long format, one row per gene × sample
    print(infected.to_long_frame().head())


if __name__ == "__main__":
    main()
