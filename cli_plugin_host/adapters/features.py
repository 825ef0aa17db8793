"""Feature vocabulary shared by apps and adapters, plus built-in feature tables."""

from enum import Enum
from typing import Dict, FrozenSet, Iterable, Union


class CLIFeature(str, Enum):
    """Capabilities a rendering library version may provide."""

    USE_INPUT = "useInput"
    USE_STDIN = "useStdin"
    USE_STDOUT = "useStdout"
    USE_FOCUS = "useFocus"
    USE_FOCUS_MANAGER = "useFocusManager"
    MEASURE_ELEMENT = "measureElement"
    STATIC_OUTPUT = "staticOutput"
    FLEXBOX = "flexbox"
    COLORS_16 = "colors16"
    COLORS_256 = "colors256"
    TRUE_COLOR = "trueColor"
    UNICODE = "unicode"
    MOUSE = "mouse"
    HYPERLINKS = "hyperlinks"
    IMAGES = "images"
    BOX_DRAWING = "boxDrawing"


FeatureLike = Union[CLIFeature, str]
FeatureTable = Dict[str, FrozenSet[CLIFeature]]


def coerce_feature(feature: FeatureLike) -> CLIFeature:
    """Accept either an enum member or its wire name (``"useInput"``)."""
    if isinstance(feature, CLIFeature):
        return feature
    if feature in CLIFeature.__members__:
        return CLIFeature[feature]
    return CLIFeature(feature)


def coerce_features(features: Iterable[FeatureLike]) -> FrozenSet[CLIFeature]:
    return frozenset(coerce_feature(f) for f in features)


_INK_BASE = frozenset(
    {
        CLIFeature.USE_INPUT,
        CLIFeature.USE_STDIN,
        CLIFeature.USE_STDOUT,
        CLIFeature.USE_FOCUS,
        CLIFeature.FLEXBOX,
        CLIFeature.COLORS_16,
        CLIFeature.COLORS_256,
        CLIFeature.UNICODE,
        CLIFeature.BOX_DRAWING,
    }
)
_INK_FOCUS = _INK_BASE | {
    CLIFeature.USE_FOCUS_MANAGER,
    CLIFeature.MEASURE_ELEMENT,
    CLIFeature.TRUE_COLOR,
}

INK_FEATURES: FeatureTable = {
    "6.6.0": _INK_BASE,
    "6.7.0": _INK_FOCUS,
    "6.8.0": _INK_FOCUS | {CLIFeature.STATIC_OUTPUT, CLIFeature.MOUSE},
}

_PASTEL_BASE = frozenset(
    {
        CLIFeature.USE_INPUT,
        CLIFeature.FLEXBOX,
        CLIFeature.COLORS_16,
        CLIFeature.COLORS_256,
        CLIFeature.TRUE_COLOR,
        CLIFeature.UNICODE,
        CLIFeature.BOX_DRAWING,
    }
)

PASTEL_FEATURES: FeatureTable = {
    "4.0.0": _PASTEL_BASE,
    "4.1.0": _PASTEL_BASE | {CLIFeature.USE_FOCUS, CLIFeature.HYPERLINKS},
}
