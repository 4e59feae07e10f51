"""Configuration constants for figma-ui-import."""

# Largest edge, in pixels, of a generated image.
DEFAULT_TEXTURE_SIZE: int = 1024

# Samples per pixel used when rasterizing. Rendered at sqrt(n) supersampling.
DEFAULT_SAMPLE_COUNT: int = 4

DEFAULT_PIXELS_PER_UNIT: float = 100.0

# Width of the lookup table gradients are baked into.
DEFAULT_GRADIENT_RESOLUTION: int = 128

# Tessellation: max distance between two points along a curve, and max
# distance between a curve and the chord replacing it.
DEFAULT_STEP_DISTANCE: float = 2.0
DEFAULT_MAX_CORD_DEVIATION: float = 0.5

WRAP_MODES: tuple[str, ...] = ("clamp", "repeat", "mirror")
FILTER_MODES: tuple[str, ...] = ("point", "bilinear", "trilinear")

DEFAULT_WRAP_MODE: str = "clamp"
DEFAULT_FILTER_MODE: str = "bilinear"

# 9-slice insets never get thinner than this, scaled with the stroke width.
STROKE_PADDING_FACTOR: float = 2.0
STROKE_PADDING_MIN: float = 4.0

# Plugin data namespace holding per-node binding keys.
PLUGIN_DATA_NAMESPACE: str = "figma_ui"
