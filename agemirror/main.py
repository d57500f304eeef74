# agemirror/main.py
from __future__ import annotations
import argparse
import pathlib
import sys

# ---- macOS/Qt stability & DPI (must be set before importing PySide6) ----
import os
# layer-backed views; avoids Cocoa flush crashes
os.environ.setdefault("QT_MAC_WANTS_LAYER", "1")
os.environ.setdefault("QT_ENABLE_HIGHDPI_SCALING", "1")   # crisp UI on Retina
# prevent mixing system Qt plugins
os.environ.pop("QT_PLUGIN_PATH", None)

from PySide6.QtGui import QIcon
from PySide6.QtWidgets import QApplication

from agemirror.state import AppState


def parse_args(argv=None) -> argparse.Namespace:
    ap = argparse.ArgumentParser(
        prog="agemirror", description="Guess your age from the webcam.")
    ap.add_argument("--camera", type=int, default=None,
                    help="OpenCV camera index (default: 0)")
    ap.add_argument("--model", default=None,
                    help="insightface model pack name (default: buffalo_l)")
    ap.add_argument("--model-root", default=None,
                    help="directory holding insightface model packs")
    ap.add_argument("--providers", default=None,
                    help="comma-separated onnxruntime execution providers")
    return ap.parse_args(argv)


def build_state(args: argparse.Namespace, environ=None) -> AppState:
    """Defaults < AGEMIRROR_* environment < command line."""
    state = AppState.from_env(environ)
    if args.camera is not None:
        state.camera_index = args.camera
    if args.model:
        state.model_name = args.model
    if args.model_root:
        state.model_root = args.model_root
    if args.providers:
        state.providers = [p.strip() for p in args.providers.split(",") if p.strip()]
    state.validate()
    return state


def main(argv=None) -> None:
    args = parse_args(argv)
    try:
        state = build_state(args)
    except ValueError as e:
        raise SystemExit(f"agemirror: {e}")

    from agemirror.ui_mainwindow import AgeMirrorWindow

    app = QApplication(sys.argv[:1])
    app.setApplicationName("AgeMirror")

    # Optional: set an app/window icon if you place an `icon.png` in agemirror/
    icon_path = pathlib.Path(__file__).with_name("icon.png")
    if icon_path.exists():
        app.setWindowIcon(QIcon(str(icon_path)))

    win = AgeMirrorWindow(state)
    win.show()
    sys.exit(app.exec())


if __name__ == "__main__":
    main()
