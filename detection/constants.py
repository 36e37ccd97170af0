import os


def _env_int(name: str, default: int) -> int:
    return int(os.getenv(name, str(default)))


def _env_float(name: str, default: float) -> float:
    return float(os.getenv(name, str(default)))


# Anchor detection
MAX_TITLE_LENGTH = _env_int("MAX_TITLE_LENGTH", 64)
LABEL_SUFFIXES = (":", "：")  # ASCII colon, full-width colon

# Header band: at least HEADER_MIN_ROWS, else HEADER_ROW_RATIO of the sheet
HEADER_MIN_ROWS = _env_int("HEADER_MIN_ROWS", 3)
HEADER_ROW_RATIO = _env_float("HEADER_ROW_RATIO", 0.08)

# Equipment band sits under the header, in the left-hand columns
EQUIPMENT_MAX_ROWS = _env_int("EQUIPMENT_MAX_ROWS", 8)
EQUIPMENT_MIN_COLUMNS = _env_int("EQUIPMENT_MIN_COLUMNS", 2)
EQUIPMENT_COLUMN_RATIO = _env_float("EQUIPMENT_COLUMN_RATIO", 0.5)

# Fingerprint caps and logical page size
MAX_ANCHORS = _env_int("MAX_ANCHORS", 12)
MAX_LABELS = _env_int("MAX_LABELS", 40)
PAGE_WIDTH = _env_int("PAGE_WIDTH", 1000)
PAGE_HEIGHT = _env_int("PAGE_HEIGHT", 1400)

# Scan bounds for the used range
MAX_SCAN_ROWS = _env_int("MAX_SCAN_ROWS", 5000)
MAX_SCAN_COLUMNS = _env_int("MAX_SCAN_COLUMNS", 500)

# Minimum fingerprint similarity for a stored template to be a candidate
MATCH_THRESHOLD = _env_float("MATCH_THRESHOLD", 0.5)
