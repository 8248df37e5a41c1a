from __future__ import annotations

import argparse
import json
import sys

from central_pixel.cste import BenchmarkConfig, DataPath, GeneralConfig
from central_pixel.errors import CentralPixelError
from central_pixel.logger import get_logger
from central_pixel.pipeline import run_central_pixel_benchmark, run_holdout_benchmark

log = get_logger("main")


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser("central_pixel")
    sub = p.add_subparsers(dest="cmd", required=True)

    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--train_dir", default=DataPath.IMG_TRAIN, help="Training images directory")
    common.add_argument("--solutions", default=DataPath.SOLUTIONS_TRAIN, help="Training solutions CSV")
    common.add_argument("--hash_factor", type=int, default=BenchmarkConfig.HASH_FACTOR, help="Cluster key multiplier")
    common.add_argument("--workers", type=int, default=GeneralConfig.NB_JOBS, help="Parallel patch sampling workers")

    pp = sub.add_parser("predict", parents=[common], help="Run the benchmark and write test predictions.")
    pp.add_argument("--test_dir", default=DataPath.IMG_TEST, help="Test images directory")
    pp.add_argument("--output", default=DataPath.PREDICTION_CSV, help="Prediction CSV path")
    pp.add_argument("--model_dir", default=None, help="Save the fitted cluster table here")
    pp.add_argument("--report_dir", default=None, help="Write cluster summary and plot here")

    pe = sub.add_parser("evaluate", parents=[common], help="Holdout RMSE on the training set.")
    pe.add_argument("--val_fraction", type=float, default=BenchmarkConfig.VAL_FRACTION, help="Holdout fraction")
    pe.add_argument("--seed", type=int, default=GeneralConfig.RANDOM_SEED, help="Split seed")
    return p


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)

    try:
        if args.cmd == "predict":
            run_central_pixel_benchmark(
                train_dir=args.train_dir,
                test_dir=args.test_dir,
                solutions_csv=args.solutions,
                output_csv=args.output,
                hash_factor=args.hash_factor,
                num_workers=args.workers,
                model_dir=args.model_dir,
                report_dir=args.report_dir,
            )
            print(args.output)
        elif args.cmd == "evaluate":
            metrics = run_holdout_benchmark(
                train_dir=args.train_dir,
                solutions_csv=args.solutions,
                hash_factor=args.hash_factor,
                num_workers=args.workers,
                val_fraction=args.val_fraction,
                seed=args.seed,
            )
            print(json.dumps(metrics, indent=2))
    except CentralPixelError as e:
        log.error(f"{type(e).__name__}: {e}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
