"""sparsa_video.cli.main

Entry point for `sparsa-video` CLI.

Commands:
- sparsa-video simulate --spec spec.yaml --out-dir data/
- sparsa-video run --spec spec.yaml [--measurements data/measurements.npz] [--out-dir runs/]
"""

from __future__ import annotations

import argparse
import json
import logging
import sys

from sparsa_video.api import endpoints
from sparsa_video.api.errors import SparsaVideoError
from sparsa_video.api.schema import read_spec_dict, parse_spec
from sparsa_video.io.measurements import summarize_result

logger = logging.getLogger(__name__)


def _load_spec(args):
    data = read_spec_dict(args.spec)
    if getattr(args, "measurements", None):
        data["measurements"] = args.measurements
    return parse_spec(data)


def cmd_simulate(args):
    spec = _load_spec(args)
    res = endpoints.simulate(spec, out_dir=args.out_dir)
    print(json.dumps({"path": res.path, "y_shape": list(res.y.shape)}, indent=2))


def cmd_run(args):
    spec = _load_spec(args)
    result = endpoints.reconstruct(spec, out_dir=args.out_dir)
    print(json.dumps(summarize_result(result), indent=2, default=str))


def build_parser():
    p = argparse.ArgumentParser(
        prog="sparsa-video",
        description="Frame-by-frame compressive video reconstruction with SpaRSA.",
    )
    p.add_argument("--log-level", default="INFO", help="Logging level (DEBUG, INFO, WARNING)")
    sub = p.add_subparsers(dest="cmd", required=True)

    p_sim = sub.add_parser("simulate", help="Synthesize a video and its measurements")
    p_sim.add_argument("--spec", required=True, help="Path to spec YAML/JSON file")
    p_sim.add_argument("--out-dir", type=str, default="data", help="Output directory")
    p_sim.set_defaults(func=cmd_simulate)

    p_run = sub.add_parser("run", help="Reconstruct a measured video")
    p_run.add_argument("--spec", required=True, help="Path to spec YAML/JSON file")
    p_run.add_argument("--measurements", type=str, default=None,
                       help="Override the spec's measurement file (.npz)")
    p_run.add_argument("--out-dir", type=str, default=None, help="Output directory")
    p_run.set_defaults(func=cmd_run)

    return p


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, str(args.log_level).upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    try:
        args.func(args)
    except SparsaVideoError as e:
        logger.error("%s: %s", type(e).__name__, e)
        details = getattr(e, "details", None)
        if details:
            logger.error("details: %s", details)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
