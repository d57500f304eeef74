#!/usr/bin/env python3
"""Pre-download the insightface model pack so the first launch works offline."""
import argparse
import os
import sys
from pathlib import Path

from insightface.utils.storage import ensure_available

from agemirror.pipelines.face import AgeEstimator, ModelLoadError


def main():
    ap = argparse.ArgumentParser(description=__doc__)
    ap.add_argument("--model", default="buffalo_l")
    ap.add_argument("--root", default="~/.insightface")
    ap.add_argument("--check", action="store_true",
                    help="also build the onnxruntime sessions to validate the pack")
    args = ap.parse_args()

    root = os.path.expanduser(args.root)
    try:
        model_dir = ensure_available("models", args.model, root=root)
    except Exception as e:
        raise SystemExit(f"Download failed: {e}")
    onnx = sorted(p.name for p in Path(model_dir).glob("*.onnx"))
    print(f"Model pack '{args.model}' in {model_dir}")
    for name in onnx:
        print(f"  {name}")

    if args.check:
        est = AgeEstimator(model_name=args.model, model_root=root)
        try:
            est.load()
        except ModelLoadError as e:
            print(f"Check failed: {e}")
            sys.exit(1)
        print("Check OK.")
    print("Done.")


if __name__ == "__main__":
    main()
