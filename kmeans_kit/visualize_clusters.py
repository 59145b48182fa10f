# -*- coding: utf-8 -*-
# Visualize 2D PCA of training vectors colored by their nearest centroid.
# Centroids are projected with the same PCA and drawn as black crosses.
#
# Usage:
#   kmeans-kit plot data/training.csv data/centroids.csv out/clusters_pca.png

from pathlib import Path
from typing import List

import numpy as np
import matplotlib.pyplot as plt
import matplotlib.patches as mpatches
from matplotlib.colors import to_hex
from sklearn.decomposition import PCA

from .clustering import nearest
from .csv_store import load_vectors, read_centroids, ensure_parent_dir
from .errors import ArgumentError, NoInputError


# ---------- Fixed, high-contrast palette for the first clusters ----------
CLUSTER_COLOR_MAP = {
    0: "#1f77b4",  # blue
    1: "#d62728",  # red
    2: "#2ca02c",  # green
    3: "#9467bd",  # purple
}


def color_for_cluster(c: int) -> str:
    if c in CLUSTER_COLOR_MAP:
        return CLUSTER_COLOR_MAP[c]
    return to_hex(plt.get_cmap("tab20")(c % 20))


def colors_for_labels(labels) -> List[str]:
    """Map each label to a hex color."""
    return [color_for_cluster(int(l)) for l in np.asarray(labels).astype(int)]


def plot_clusters(training_csv: Path, centroids_csv: Path, out_png: Path) -> Path:
    X = load_vectors(training_csv)
    C = read_centroids(centroids_csv)
    if len(X) < 2:
        raise NoInputError(f"need at least 2 training rows to plot, {training_csv} has {len(X)}")
    if X.shape[1] < 2 or X.shape[1] != C.shape[1]:
        raise ArgumentError(
            f"cannot plot vectors of length {X.shape[1]} against centroids of length {C.shape[1]}"
        )
    labels = np.array([nearest(C, x) for x in X], dtype=int)

    pca = PCA(n_components=2, random_state=0)
    X2 = pca.fit_transform(X)
    C2 = pca.transform(C)

    plt.figure(figsize=(9, 6))
    plt.scatter(X2[:, 0], X2[:, 1], s=18, c=colors_for_labels(labels))
    plt.scatter(C2[:, 0], C2[:, 1], s=120, c="black", marker="x")
    plt.xlabel("PC1")
    plt.ylabel("PC2")
    plt.title(f"PCA of training vectors, K={len(C)}")

    handles = [
        mpatches.Patch(color=color_for_cluster(lab), label=f"cluster {lab} ({int((labels == lab).sum())})")
        for lab in range(len(C))
    ]
    plt.legend(handles=handles, loc="upper right", frameon=False)

    out_png = Path(out_png)
    ensure_parent_dir(out_png)
    plt.tight_layout()
    plt.savefig(out_png, dpi=150)
    plt.close()
    return out_png
