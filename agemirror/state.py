from __future__ import annotations
import os
from dataclasses import dataclass, field, fields
from typing import List, Optional


def _default_providers() -> List[str]:
    return ["CPUExecutionProvider"]


@dataclass
class AppState:
    camera_index: int = 0
    model_name: str = "buffalo_l"           # insightface model pack
    model_root: Optional[str] = None        # None -> insightface default (~/.insightface)
    providers: List[str] = field(default_factory=_default_providers)
    det_size: int = 640
    tick_interval_ms: int = 1000            # sampling + countdown cadence
    scan_ticks: int = 5                     # countdown start value
    chat_reply_delay_ms: int = 1000
    preview_interval_ms: int = 33           # ~30 fps camera preview

    @classmethod
    def from_env(cls, environ=None) -> "AppState":
        """Build a state, overriding defaults with AGEMIRROR_<FIELD> variables.

        Providers are comma-separated, e.g.
        AGEMIRROR_PROVIDERS=CUDAExecutionProvider,CPUExecutionProvider
        """
        env = os.environ if environ is None else environ
        state = cls()
        for f in fields(cls):
            raw = env.get(f"AGEMIRROR_{f.name.upper()}")
            if raw is None or raw == "":
                continue
            current = getattr(state, f.name)
            if f.name == "providers":
                value = [p.strip() for p in raw.split(",") if p.strip()]
            elif isinstance(current, int):
                try:
                    value = int(raw)
                except ValueError:
                    raise ValueError(
                        f"AGEMIRROR_{f.name.upper()} must be an integer, got {raw!r}")
            else:
                value = raw
            setattr(state, f.name, value)
        state.validate()
        return state

    def validate(self) -> None:
        """Reject settings the scan loop or the UI cannot run with."""
        minimums = {
            "camera_index": 0,
            "det_size": 1,
            "tick_interval_ms": 1,
            "scan_ticks": 1,
            "chat_reply_delay_ms": 0,
            "preview_interval_ms": 1,
        }
        for name, low in minimums.items():
            value = getattr(self, name)
            if value < low:
                raise ValueError(
                    f"AGEMIRROR_{name.upper()} must be >= {low}, got {value}")
        if not self.providers:
            raise ValueError("AGEMIRROR_PROVIDERS must name at least one provider")
