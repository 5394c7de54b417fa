"""Ordered effect chains and presets

Responsibilities:
- Apply effects strictly in insertion order
- Track the chain's output size through the closed-form size rules,
  never by dry-running pixel transforms
- Offer a fluent builder and a handful of named looks
"""

from typing import Callable, Dict, Iterable, Iterator, List, Optional

from ..exceptions import EffectError
from ..frame import Frame
from .base import Effect, Size
from .color import Brightness, Contrast, Noise, Saturation, Sepia, Vignette
from .convolution import Blur, Sharpen
from .geometry import Crop, Resize, Rotate

class EffectChain:
    """Ordered list of effects applied as one transform.

    ``size_for`` keeps, per input size seen so far, the size after every
    member and extends it by one step on each append. ``output_size`` folds
    all rules from scratch; both always agree.
    """

    def __init__(self, effects: Iterable[Effect] = ()):
        self._effects: List[Effect] = []
        self._size_cache: Dict[Size, List[Size]] = {}
        self.extend(effects)

    def append(self, effect: Effect) -> "EffectChain":
        if not isinstance(effect, Effect):
            raise TypeError(f"Expected an Effect, got {type(effect).__name__}")
        for sizes in self._size_cache.values():
            sizes.append(effect.output_size(*sizes[-1]))
        self._effects.append(effect)
        return self

    def extend(self, effects: Iterable[Effect]) -> "EffectChain":
        """Append each effect; nested chains are flattened"""
        for effect in effects:
            if isinstance(effect, EffectChain):
                self.extend(effect.effects)
            else:
                self.append(effect)
        return self

    def clear(self) -> None:
        self._effects.clear()
        self._size_cache.clear()

    def copy(self) -> "EffectChain":
        return EffectChain(self._effects)

    @property
    def effects(self) -> List[Effect]:
        return list(self._effects)

    def __iter__(self) -> Iterator[Effect]:
        return iter(list(self._effects))

    def __len__(self) -> int:
        return len(self._effects)

    def output_size(self, width: int, height: int) -> Size:
        """Fold every member's size rule over ``width`` x ``height``"""
        size = (width, height)
        for effect in self._effects:
            size = effect.output_size(*size)
        return size

    def size_for(self, width: int, height: int) -> Size:
        """Cached equivalent of ``output_size``"""
        key = (width, height)
        if key not in self._size_cache:
            sizes = [key]
            for effect in self._effects:
                sizes.append(effect.output_size(*sizes[-1]))
            self._size_cache[key] = sizes
        return self._size_cache[key][-1]

    def apply(self, frame: Frame) -> Frame:
        result = frame
        for index, effect in enumerate(self._effects):
            try:
                result = effect.apply(result)
            except EffectError as e:
                raise EffectError(f"Effect {index} ({effect.name}) failed: {e.message}", module="effects") from e
        return result

    def __call__(self, frame: Frame) -> Frame:
        return self.apply(frame)

    def __repr__(self) -> str:
        return f"EffectChain([{', '.join(e.name for e in self._effects)}])"

    # Fluent builder

    def resize(self, width: int, height: int) -> "EffectChain":
        return self.append(Resize(width, height))

    def rotate(self, angle: float) -> "EffectChain":
        return self.append(Rotate(angle))

    def crop(self, x: int, y: int, width: int, height: int) -> "EffectChain":
        return self.append(Crop(x, y, width, height))

    def brightness(self, factor: float) -> "EffectChain":
        return self.append(Brightness(factor))

    def contrast(self, factor: float) -> "EffectChain":
        return self.append(Contrast(factor))

    def saturation(self, factor: float) -> "EffectChain":
        return self.append(Saturation(factor))

    def blur(self, radius: int) -> "EffectChain":
        return self.append(Blur(radius))

    def sharpen(self, strength: float) -> "EffectChain":
        return self.append(Sharpen(strength))

    def sepia(self, strength: float = 1.0) -> "EffectChain":
        return self.append(Sepia(strength))

    def vignette(self, strength: float, radius: float = 1.0) -> "EffectChain":
        return self.append(Vignette(strength, radius))

    def noise(self, intensity: float, seed: Optional[int] = None) -> "EffectChain":
        return self.append(Noise(intensity, seed))

def vintage() -> EffectChain:
    return EffectChain().sepia(0.8).vignette(0.3, 0.8).noise(0.1)

def cinematic() -> EffectChain:
    return EffectChain().contrast(1.2).saturation(0.8).vignette(0.4, 0.7)

def warm() -> EffectChain:
    return EffectChain().brightness(1.1).saturation(1.2)

def cool() -> EffectChain:
    return EffectChain().brightness(0.9).saturation(0.8)

def dramatic() -> EffectChain:
    return EffectChain().contrast(1.5).brightness(0.8).vignette(0.6, 0.6)

PRESETS: Dict[str, Callable[[], EffectChain]] = {
    "vintage": vintage,
    "cinematic": cinematic,
    "warm": warm,
    "cool": cool,
    "dramatic": dramatic,
}

def get_preset(name: str) -> EffectChain:
    """Fresh chain for a named preset"""
    try:
        return PRESETS[name]()
    except KeyError:
        raise EffectError(
            f"Unknown preset {name!r}; choose from {', '.join(sorted(PRESETS))}",
            module="effects",
        ) from None
