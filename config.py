"""Constants shared by the codec, the sampler and the CLI."""

# PPM
CREATOR = "imgresample"
PPM_MAGIC = b"P6"
RGB_COMPONENT_COLOR = 255

# Scale requests
FAST_PATH_TOKEN = "2x"

# Method suffixes resolved against sampler.<base>_<suffix>
DEFAULT_RESIZE_METHOD = "vectorized"
DEFAULT_DOWNSAMPLE_METHOD = "baseline"

# Exit codes
EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_USAGE = 99
