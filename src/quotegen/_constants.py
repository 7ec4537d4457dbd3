"""Internal constants shared across the library."""

BASE_URL = "https://jsonplaceholder.typicode.com"
POSTS_PATH = "/posts"
USER_AGENT = "quotegen/1"

# ------------------------------------------------------------------
# Storage keys
# ------------------------------------------------------------------

QUOTES_KEY = "quotes"
SELECTED_CATEGORY_KEY = "selectedCategory"
LAST_VIEWED_KEY = "lastViewedQuote"

#: Filter value meaning "every category".
ALL_CATEGORIES = "all"

#: Category assigned to every quote learned from the remote endpoint.
REMOTE_CATEGORY = "Server"

# Ids longer than this many decimal digits are millisecond clock readings,
# i.e. created locally. Only used for records stored without an origin tag.
LOCAL_ID_MIN_DIGITS = 11

DEFAULT_QUOTES: tuple[tuple[str, str], ...] = (
    ("Success is no accident.", "Motivation"),
    ("Do what you can, with what you have.", "Inspiration"),
    ("Believe you can and you're halfway there.", "Motivation"),
)
