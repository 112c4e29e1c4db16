"""All magic values live here — no inline literals anywhere else."""

# MCP server identity
SERVER_NAME = "image-analysis-server"
SERVER_VERSION = "1.0.0"

# analyze_image tool
TOOL_ANALYZE_IMAGE = "analyze_image"
TOOL_ANALYZE_IMAGE_DESCRIPTION = (
    "Fetches an image from a URL and describes its content in detail "
    "using a vision-capable language model."
)
ARG_IMAGE_URL = "imageUrl"
ARG_IMAGE_URL_DESCRIPTION = "URL of the image to analyze"

# Image fetching
FETCH_TIMEOUT: float = 60.0
SLOW_DOMAIN_TIMEOUT: float = 120.0
DEFAULT_SLOW_DOMAINS = "gyazo.com"
FETCH_MAX_ATTEMPTS = 3
# Fixed, not exponential: worst-case call latency depends on it.
FETCH_RETRY_DELAY: float = 2.0
FETCH_MAX_BYTES = 10 * 1024 * 1024
FETCH_CHUNK_SIZE = 64 * 1024
FETCH_ALLOWED_SCHEMES = ("http", "https")
IMAGE_CONTENT_TYPE_PREFIX = "image/"
# Some image hosts reject bare requests without these.
FETCH_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/91.0.4472.124 Safari/537.36"
)
FETCH_REFERER = "https://www.google.com/"

# Image transformation
RESIZE_MAX_SIZE = (512, 512)
RESIZE_JPEG_QUALITY = 60
RESIZE_OUTPUT_FORMAT = "JPEG"
RESIZE_OUTPUT_CONTENT_TYPE = "image/jpeg"

# Temporary artifacts
TEMP_FILE_PREFIX = "image-analysis-"
TEMP_FILE_DEFAULT_SUFFIX = ".img"

# Vision inference
VISION_PROVIDER_OPENAI = "openai"
VISION_PROVIDER_CLAUDE = "claude"
OPENAI_VISION_MODEL = "gpt-4-turbo"
CLAUDE_VISION_MODEL = "claude-opus-4-6"
INFERENCE_TIMEOUT: float = 120.0
INFERENCE_MAX_TOKENS = 1000
DEFAULT_ANALYSIS_LANGUAGE = "Japanese"
VISION_SYSTEM_PROMPT = "Analyze the content of the image in detail and respond in %s."
VISION_USER_PROMPT = "Analyze the following image and describe its content in detail."
MSG_NO_ANALYSIS = "Could not retrieve an analysis result."

# Log messages
MSG_SERVER_STARTING = "Starting image analysis MCP server…"
MSG_SERVER_RUNNING = "Image analysis MCP server running on stdio"
MSG_SERVER_INTERRUPTED = "Interrupt received, shutting down"
MSG_SERVER_STOPPED = "Image analysis MCP server stopped"
MSG_FETCH_ATTEMPT = "Fetching image: attempt %d/%d - %s"
MSG_FETCH_RETRY = "Image fetch failed (retrying in %.1fs): %s"
MSG_STAGE = "analyze_image %s: %s"
MSG_ANALYSIS_FAILED = "Image analysis failed during %s"
MSG_CLEANUP_FAILED = "Could not delete temp artifact %s: %s"
MSG_PROVIDER_ERROR = "%s API error: %s"

# User-facing error messages
MSG_ERR_ANALYSIS = "Image analysis error: %s"
MSG_ERR_UNKNOWN_TOOL = "Unknown tool: %s"
MSG_ERR_INVALID_ARGUMENTS = "Invalid arguments: imageUrl is required and must be a string"
MSG_ERR_INVALID_URL = "Invalid image URL: %s"
MSG_ERR_FETCH_TIMEOUT = (
    "Request to image URL timed out (%gs). "
    "Try another image URL or try again later."
)
MSG_ERR_FETCH_HTTP = "Cannot access image URL: HTTP status %d"
MSG_ERR_FETCH_NETWORK = "Cannot access image URL: %s"
MSG_ERR_FETCH_TOO_LARGE = "Cannot access image URL: response exceeds %d bytes"
MSG_ERR_NOT_AN_IMAGE = "URL is not an image: %s"
MSG_ERR_TRANSFORM = "Could not decode image: %s"
MSG_ERR_INFERENCE_TIMEOUT = "%s API request timed out. Please try again later."
MSG_ERR_INFERENCE_PROVIDER = "%s API error: %s"
