from dataclasses import dataclass, asdict, fields, replace
from enum import IntEnum
from typing import Any, Dict, Mapping, Tuple
from luptonpy.core.validation import validate_bool, validate_float


class ClippingMode(IntEnum):
    """
    How stretched values above 1.0 are brought back into range.
    Integer values match the clipping combo box order.
    """

    PRESERVE_COLOR = 0
    HARD_CLIP = 1
    RESCALE = 2

    @classmethod
    def parse(cls, value: Any) -> "ClippingMode":
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            key = value.strip().upper().replace(" ", "_").replace("-", "_")
            aliases = {"PRESERVE": "PRESERVE_COLOR", "CLIP": "HARD_CLIP"}
            return cls[aliases.get(key, key)]
        return cls(int(value))


@dataclass(frozen=True)
class EngineParameters:
    """
    Arcsinh stretch parameters.

    Instances are immutable; UI code derives new ones with ``dataclasses.replace``.
    ``black_point`` is used for all channels when ``linked`` is set, otherwise
    ``black_r``/``black_g``/``black_b`` apply per channel.
    """

    alpha: float = 5.0
    q: float = 8.0
    black_point: float = 0.0
    black_r: float = 0.0
    black_g: float = 0.0
    black_b: float = 0.0
    linked: bool = True
    saturation: float = 1.0
    clipping_mode: ClippingMode = ClippingMode.PRESERVE_COLOR

    def channel_minimums(self) -> Tuple[float, float, float]:
        if self.linked:
            return (self.black_point, self.black_point, self.black_point)
        return (self.black_r, self.black_g, self.black_b)

    def clamped(self, ranges: Mapping[str, Tuple[float, float]]) -> "EngineParameters":
        """
        Returns a copy with every ranged field clamped into ``ranges``.
        """
        changes: Dict[str, float] = {}
        for f in fields(self):
            if f.name in ranges:
                lo, hi = ranges[f.name]
                changes[f.name] = min(hi, max(lo, float(getattr(self, f.name))))
        return replace(self, **changes)

    def to_dict(self) -> Dict[str, Any]:
        """
        Flattens for serialization.
        """
        res = asdict(self)
        res["clipping_mode"] = self.clipping_mode.name.lower()
        return res

    @classmethod
    def from_flat_dict(cls, data: Mapping[str, Any]) -> "EngineParameters":
        """
        from JSON / CLI settings. Unknown keys and None values are ignored.
        """
        valid_keys = cls.__dataclass_fields__.keys()
        kwargs: Dict[str, Any] = {}
        for key, value in data.items():
            if key not in valid_keys or value is None:
                continue
            if key == "clipping_mode":
                kwargs[key] = ClippingMode.parse(value)
            elif key == "linked":
                kwargs[key] = validate_bool(value, True)
            else:
                kwargs[key] = validate_float(value, getattr(cls, key))
        return cls(**kwargs)
