"""Constants for the extraction pipeline."""

# Fewer blocks than this is "thin content" and triggers the fallback ladder
THIN_CONTENT_THRESHOLD = 3

# Below this many blocks an ungoverned HTML extraction is low confidence
LOW_SIGNAL_BLOCK_COUNT = 5

CONFIDENCE_GOVERNED = 1.0
CONFIDENCE_HEURISTIC = 0.7
CONFIDENCE_LOW_SIGNAL = 0.4
LOW_SIGNAL_WARNING = "Structure unreliable: Low content signal and no pattern match."

# Kind inference: "mixed" needs more text blocks than this next to a thread
MIXED_TEXT_BLOCK_COUNT = 5

BLOCK_HEADING_TAGS = ("h1", "h2", "h3", "h4", "h5", "h6")

# Content root heuristics, in preference order (document root is the last resort)
CONTENT_ROOT_CANDIDATES = ("main", "article", "body")

# Containers considered by the generic thread detector
GENERIC_CONTAINER_SELECTOR = "div, section, li, article"
GENERIC_MIN_REPEAT = 3
GENERIC_MIN_REPEAT_WITH_DEPTH = 2
GENERIC_DEFAULT_AUTHOR = "Anonymous"

ELLIPSIS = "..."
