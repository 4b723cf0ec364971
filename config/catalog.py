"""
Catalog ingestion and search constants.

Lookup tables for column-role detection and the limits shared by the
price parser, row projector and search engine.
"""

# =============================================================================
# COLUMN ROLE MATCHERS
# =============================================================================
# Evaluated in this order: name, description, price.

# Name column: first header token (in column order) containing any keyword
NAME_KEYWORDS = (
    "product",
    "model",
    "name",
    "sku",
    "code",
    "title",
    "type",
    "part",
    "number",
)

# Description column: first header with a whole word in this set
DESCRIPTION_KEYWORDS = frozenset({
    "desc",
    "description",
    "keterangan",
    "note",
    "notes",
})

# Price column: keywords in priority order, each scanned across all columns.
# Distributor sheets often carry several price columns; DPP wins over MSRP.
PRICE_KEYWORDS = (
    "dpp",
    "msrp",
    "price",
    "harga",
)

# Cells at least this long stand in for a missing description column
DESCRIPTION_MIN_LENGTH = 100

# Header rows need this many named columns to be treated as a table
TABLE_MIN_HEADERS = 2
TABLE_MIN_ROWS = 2

# Model used when a row has no name and placeholders are allowed
PLACEHOLDER_MODEL = "Unknown"

# Detail keys for positional columns in simple mode (1-based position)
SIMPLE_DETAIL_KEY = "col_{position}"


# =============================================================================
# PRICE PARSING
# =============================================================================

# Digit strings longer than this are corrupted cells (phone numbers, joined
# columns); only the leading digits are kept
PRICE_MAX_DIGITS = 12


# =============================================================================
# SEARCH
# =============================================================================

SEARCH_MAX_TOKEN_LENGTH = 128

# Detail keys searched alongside model and description (exact key match)
SEARCH_DETAIL_KEYS = ("TITLE", "NAME", "MODEL")

# Score weights per matching token
SCORE_MODEL = 3
SCORE_DESCRIPTION = 1
SCORE_DETAILS = 1

DEFAULT_PER_PAGE = 20
MAX_PER_PAGE = 100
