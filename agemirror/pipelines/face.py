# agemirror/pipelines/face.py
from __future__ import annotations
from typing import Optional, Sequence

import numpy as np

# sub-models of the insightface pack needed for localization + age
REQUIRED_MODULES = ("detection", "landmark_2d_106", "recognition", "genderage")


class ModelLoadError(RuntimeError):
    """Any failure while preparing the face-analysis models."""


def _create_face_analysis(name: str, root: Optional[str], providers: Sequence[str],
                          allowed_modules: Sequence[str]):
    # lazy import so the UI can come up (and show its loading screen) first
    from insightface.app import FaceAnalysis
    kwargs = dict(name=name, providers=list(providers),
                  allowed_modules=list(allowed_modules))
    if root:
        kwargs["root"] = root
    return FaceAnalysis(**kwargs)


def _pick_face(faces):
    """Highest-scoring detection, like a single-face detector would return."""
    if not faces:
        return None
    return max(faces, key=lambda f: float(getattr(f, "det_score", 0.0)))


class AgeEstimator:
    """
    Thin wrapper around insightface.FaceAnalysis.
    load() must succeed before estimate() is called.
    """

    def __init__(self, model_name: str = "buffalo_l", model_root: Optional[str] = None,
                 providers: Sequence[str] = ("CPUExecutionProvider",), det_size: int = 640,
                 factory=_create_face_analysis):
        self.model_name = model_name
        self.model_root = model_root
        self.providers = list(providers)
        self.det_size = det_size
        self._factory = factory
        self._app = None

    @classmethod
    def from_state(cls, state) -> "AgeEstimator":
        return cls(model_name=state.model_name, model_root=state.model_root,
                   providers=state.providers, det_size=state.det_size)

    def load(self) -> None:
        """Download (if needed) and prepare every required sub-model.

        Raises ModelLoadError on any failure; no partially loaded state is kept.
        """
        try:
            app = self._factory(self.model_name, self.model_root,
                                self.providers, REQUIRED_MODULES)
            missing = [m for m in REQUIRED_MODULES if m not in getattr(app, "models", {})]
            if missing:
                raise ModelLoadError(
                    f"model pack '{self.model_name}' lacks: {', '.join(missing)}")
            app.prepare(ctx_id=0, det_size=(self.det_size, self.det_size))
        except ModelLoadError:
            self._app = None
            raise
        except Exception as e:
            self._app = None
            raise ModelLoadError(f"{type(e).__name__}: {e}") from e
        self._app = app

    def estimate(self, frame: np.ndarray) -> Optional[float]:
        """Apparent age of the most confident face in a BGR frame, or None."""
        if self._app is None:
            raise RuntimeError("AgeEstimator.estimate() called before load()")
        face = _pick_face(self._app.get(frame))
        if face is None:
            return None
        age = getattr(face, "age", None)
        if age is None:
            return None
        return float(age)
