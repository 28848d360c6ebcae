DEFAULT_TEMPLATE_ID = "classic"
DEFAULT_CATEGORY_TEXT = "CATEGORY"

OUTPUT_PREFIX = "featured-image"
OUTPUT_FORMATS = {"webp": "WEBP", "png": "PNG", "jpeg": "JPEG", "jpg": "JPEG"}
DEFAULT_OUTPUT_FORMAT = "webp"
DEFAULT_QUALITY = 80

DEFAULT_DECORATION_COLOR = "rgba(255, 255, 255, 0.1)"
DEFAULT_BANNER_COLOR = "#ffffff"
DEFAULT_BANNER_OPACITY = 0.85
FALLBACK_GRADIENT_STOPS = ((0.0, "#7dd3fc"), (1.0, "#f9a8d4"))

TITLE_MAX_LINES = 4
TITLE_SIZE_STEP = 4
TITLE_MIN_SIZE = 30
TITLE_MIN_SIZE_RATIO = 0.5
TITLE_BANNER_HEIGHT_RATIO = 0.8
TITLE_CANVAS_HEIGHT_RATIO = 0.5
TITLE_DEFAULT_MARGIN = 200
TEXT_BANNER_INSET = 40
BADGE_BASE_HEIGHT = 30

BROWSER_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/124.0.0.0 Safari/537.36"
)
FETCH_TIMEOUT_S = 15.0
FETCH_MAX_REDIRECTS = 5
FETCH_MAX_BYTES = 15 * 1024 * 1024

ALIGN_OPTIONS = ("left", "center", "right")
