"""
Command line entry point.

Modes (the numeric ids of the original tool are accepted as aliases):
  0 train-now      K CENTROIDS_CSV IMAGES_DIR [CLUSTER_DIR]
  1 collect        IMAGES_DIR TRAINING_CSV
  2 train          K TRAINING_CSV CENTROIDS_CSV
  3 predict        CENTROIDS_CSV IMAGE
  4 batch-predict  CENTROIDS_CSV IMAGES_DIR OUTPUT_DIR
    verify         [--training CSV] [--centroids CSV]
    plot           TRAINING_CSV CENTROIDS_CSV OUT_PNG
    gallery        CLUSTER_DIR [--out HTML]

Usage:
  kmeans-kit train-now 4 model/centroids.csv thumbs/ clusters/ --types jpeg --move-types jpeg,png
  kmeans-kit batch-predict model/centroids.csv inbox/ sorted/ --move-types jpeg,png,ims_rgb
"""
import argparse
import logging
import sys
from pathlib import Path

from . import pipeline
from .config import (
    DEFAULT_AFFIX,
    DEFAULT_CHANNELS,
    DEFAULT_HEIGHT,
    DEFAULT_IMAGE_TYPES,
    DEFAULT_WIDTH,
    FeatureConfig,
    parse_extensions,
)
from .errors import EXIT_UNKNOWN, ArgumentError, KmeansKitError, ModeError, StoreFormatError
from .make_gallery import make_gallery
from .routing import AffixStripNaming, RouteConfig, SameStemNaming
from .verify_data import print_report, verify
from .visualize_clusters import plot_clusters

logger = logging.getLogger("kmeans_kit")

LOG_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"

# mode name -> numeric id used by the original tool
MODE_IDS = {
    "train-now": "0",
    "collect": "1",
    "train": "2",
    "predict": "3",
    "batch-predict": "4",
}
OTHER_COMMANDS = ("verify", "plot", "gallery")


class _Parser(argparse.ArgumentParser):
    def error(self, message):
        raise ArgumentError(message)


def feature_config(args) -> FeatureConfig:
    return FeatureConfig(
        width=args.width,
        height=args.height,
        channels=args.channels,
        normalize=not args.no_normalize,
    )


def route_config(args) -> RouteConfig:
    move_types = parse_extensions(args.move_types) if args.move_types else args.types
    naming = AffixStripNaming(args.affix) if args.affix else SameStemNaming()
    return RouteConfig(sibling_extensions=move_types, naming=naming)


def cmd_train_now(args) -> int:
    result = pipeline.train_now(
        feature_config(args),
        args.k,
        args.centroids,
        args.images_dir,
        args.types,
        cluster_dir=args.cluster_dir,
        route=route_config(args),
        assignments_path=args.assignments,
    )
    print(f"Saved {result.k} centroids for {len(result.records)} images to {args.centroids}")
    return 0


def cmd_collect(args) -> int:
    n = pipeline.collect(feature_config(args), args.images_dir, args.training_csv, args.types)
    print(f"Appended {n} rows to {args.training_csv}")
    return 0


def cmd_train(args) -> int:
    centroids = pipeline.train(args.k, args.training_csv, args.centroids, feature_config(args))
    print(f"Saved {len(centroids)} centroids to {args.centroids}")
    return 0


def cmd_predict(args) -> int:
    print(pipeline.predict(feature_config(args), args.image, args.centroids))
    return 0


def cmd_batch_predict(args) -> int:
    records = pipeline.batch_predict(
        feature_config(args),
        args.centroids,
        args.images_dir,
        args.output_dir,
        args.types,
        route=route_config(args),
        assignments_path=args.assignments,
    )
    print(f"Assigned {len(records)} images into {args.output_dir}")
    return 0


def cmd_verify(args) -> int:
    if args.training is None and args.centroids is None:
        raise ArgumentError("verify needs --training and/or --centroids")
    rep = verify(args.training, args.centroids, feature_config(args))
    print_report(rep)
    return 0 if rep.ok else StoreFormatError.exit_code


def cmd_plot(args) -> int:
    out = plot_clusters(args.training_csv, args.centroids, args.out_png)
    print("Saved cluster plot to", out)
    return 0


def cmd_gallery(args) -> int:
    out = make_gallery(args.cluster_dir, args.out)
    print("Gallery saved to", out)
    return 0


def _positive_int(value: str) -> int:
    try:
        k = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid K: {value!r}")
    if k < 1:
        raise argparse.ArgumentTypeError(f"K must be at least 1, got {k}")
    return k


def _extensions(value: str):
    try:
        return parse_extensions(value)
    except ArgumentError as e:
        raise argparse.ArgumentTypeError(str(e))


def build_parser() -> argparse.ArgumentParser:
    feat = _Parser(add_help=False)
    feat.add_argument("--width", type=int, default=DEFAULT_WIDTH, help="Resampled image width")
    feat.add_argument("--height", type=int, default=DEFAULT_HEIGHT, help="Resampled image height")
    feat.add_argument(
        "--channels", type=int, default=DEFAULT_CHANNELS, help="1=grey, 2=grey+alpha, 3=RGB, 4=RGBA"
    )
    feat.add_argument("--no-normalize", action="store_true", help="Keep pixel values in 0-255")

    types = _Parser(add_help=False)
    types.add_argument(
        "--types",
        type=_extensions,
        default=DEFAULT_IMAGE_TYPES,
        help="Comma-separated extensions of the images to decode (default: jpeg)",
    )

    route = _Parser(add_help=False)
    route.add_argument(
        "--move-types",
        default=None,
        help="Comma-separated extensions routed together per image (default: --types)",
    )
    route.add_argument(
        "--affix",
        default=DEFAULT_AFFIX,
        help="Name affix of the decoded variant, stripped for its siblings ('' to disable)",
    )
    route.add_argument("--assignments", type=Path, default=None, help="Also write filename,cluster CSV")

    ap = _Parser(prog="kmeans-kit", description="Cluster images with k-means and sort them by cluster.")
    ap.add_argument("-v", "--verbose", action="store_true")
    sub = ap.add_subparsers(dest="mode", metavar="mode")
    sub.required = True

    p = sub.add_parser(
        "train-now", aliases=[MODE_IDS["train-now"]], parents=[feat, types, route], help="Cluster a directory now"
    )
    p.add_argument("k", type=_positive_int)
    p.add_argument("centroids", type=Path)
    p.add_argument("images_dir", type=Path)
    p.add_argument("cluster_dir", type=Path, nargs="?", default=None, help="Copy images into <dir>/<cluster>/")
    p.set_defaults(func=cmd_train_now)

    p = sub.add_parser(
        "collect", aliases=[MODE_IDS["collect"]], parents=[feat, types], help="Append image vectors to a training CSV"
    )
    p.add_argument("images_dir", type=Path)
    p.add_argument("training_csv", type=Path)
    p.set_defaults(func=cmd_collect)

    p = sub.add_parser("train", aliases=[MODE_IDS["train"]], parents=[feat], help="Cluster a training CSV")
    p.add_argument("k", type=_positive_int)
    p.add_argument("training_csv", type=Path)
    p.add_argument("centroids", type=Path)
    p.set_defaults(func=cmd_train)

    p = sub.add_parser(
        "predict", aliases=[MODE_IDS["predict"]], parents=[feat], help="Print the cluster id of one image"
    )
    p.add_argument("centroids", type=Path)
    p.add_argument("image", type=Path)
    p.set_defaults(func=cmd_predict)

    p = sub.add_parser(
        "batch-predict",
        aliases=[MODE_IDS["batch-predict"]],
        parents=[feat, types, route],
        help="Move a directory of images into clusters",
    )
    p.add_argument("centroids", type=Path)
    p.add_argument("images_dir", type=Path)
    p.add_argument("output_dir", type=Path)
    p.set_defaults(func=cmd_batch_predict)

    p = sub.add_parser("verify", parents=[feat], help="Sanity-check training/centroid CSV files")
    p.add_argument("--training", type=Path, default=None)
    p.add_argument("--centroids", type=Path, default=None)
    p.set_defaults(func=cmd_verify)

    p = sub.add_parser("plot", help="PCA scatter plot of training vectors by cluster")
    p.add_argument("training_csv", type=Path)
    p.add_argument("centroids", type=Path)
    p.add_argument("out_png", type=Path)
    p.set_defaults(func=cmd_plot)

    p = sub.add_parser("gallery", help="HTML page of a routed cluster directory")
    p.add_argument("cluster_dir", type=Path)
    p.add_argument("--out", type=Path, default=None)
    p.set_defaults(func=cmd_gallery)
    return ap


def _check_mode(argv) -> None:
    modes = set(MODE_IDS) | set(MODE_IDS.values()) | set(OTHER_COMMANDS)
    for token in argv:
        if token.startswith("-"):
            continue
        if token not in modes:
            raise ModeError(f"invalid mode: {token!r}")
        return


def main(argv=None) -> int:
    argv = sys.argv[1:] if argv is None else list(argv)
    logging.basicConfig(level=logging.INFO, format=LOG_FORMAT, stream=sys.stderr)
    ap = build_parser()
    try:
        _check_mode(argv)
        args = ap.parse_args(argv)
        if args.verbose:
            logger.setLevel(logging.DEBUG)
        return args.func(args)
    except KmeansKitError as e:
        print(f"Error: {e}", file=sys.stderr)
        return e.exit_code
    except Exception as e:
        logger.exception("Unhandled error")
        print(f"Error: an unknown error occurred: {e}", file=sys.stderr)
        return EXIT_UNKNOWN


if __name__ == "__main__":
    sys.exit(main())
