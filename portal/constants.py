EVENT_STATUSES = ["upcoming", "ongoing", "completed"]
CERTIFIABLE_EVENT_STATUS = "completed"

# Template uploads are stored inline (base64) in the configuration row
DEFAULT_TEMPLATE_MAX_BYTES = 5 * 1024 * 1024
TEMPLATE_MEDIA_TYPES = {
    "image/png": "PNG",
    "image/jpeg": "JPEG",
    "image/jpg": "JPEG",
}

PNG_SIGNATURE = b"\x89PNG\r\n\x1a\n"
JPEG_SIGNATURE = b"\xff\xd8"

# Name placement on the rendered certificate, in page units (1 unit = 1 px)
NAME_FONT = "Times-Bold"
NAME_START_SIZE = 120
NAME_MIN_SIZE = 72
NAME_WIDTH_RATIO = 0.75
NAME_COLOR = (0.12, 0.12, 0.12)
