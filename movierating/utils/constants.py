"""Default column names and model-chain constants."""

# Rating dataset columns
DEFAULT_USER_COL = "userId"
DEFAULT_ITEM_COL = "movieId"
DEFAULT_RATING_COL = "rating"
DEFAULT_TIMESTAMP_COL = "timestamp"
DEFAULT_TITLE_COL = "title"
DEFAULT_GENRES_COL = "genres"

# Derived by datasets.processor.clean_ratings
DEFAULT_RELEASE_YEAR_COL = "release_year"
DEFAULT_REVIEW_DATE_COL = "review_date"
DEFAULT_REVIEW_DELAY_COL = "review_delay"

# Order in which effects are estimated; each effect is fit on the residual
# left by all effects before it.
DEFAULT_CHAIN = (
    DEFAULT_ITEM_COL,
    DEFAULT_USER_COL,
    DEFAULT_GENRES_COL,
    DEFAULT_RELEASE_YEAR_COL,
    DEFAULT_REVIEW_DELAY_COL,
)

EFFECT_LABELS = {
    DEFAULT_ITEM_COL: "Movie",
    DEFAULT_USER_COL: "User",
    DEFAULT_GENRES_COL: "Genre",
    DEFAULT_RELEASE_YEAR_COL: "Release Year",
    DEFAULT_REVIEW_DELAY_COL: "Review Delay",
}

NAIVE_MODEL_LABEL = "Just the average"

# Group label for missing key values
UNKNOWN_KEY = "unknown"

SUPPORTED_DATE_UNITS = {
    "day": "1d",
    "week": "1w",
}
