"""
Store access helpers

Identifier-list filters ("column IN (...)") are only ever issued in small
chunks and the results merged, so rounds with many questions never build an
unbounded filter.
"""

from flask import current_app, has_app_context

DEFAULT_IN_FILTER_LIMIT = 10


def in_filter_limit():
    """Configured maximum number of identifiers per IN filter"""
    if has_app_context():
        return int(
            current_app.config.get("STORE_IN_FILTER_LIMIT", DEFAULT_IN_FILTER_LIMIT)
        )
    return DEFAULT_IN_FILTER_LIMIT


def chunked(values, size=None):
    """
    Split values into lists of at most `size` items

    Duplicates are dropped and first-seen order is kept.
    """
    if size is None:
        size = in_filter_limit()
    if size < 1:
        raise ValueError("chunk size must be at least 1")

    unique = list(dict.fromkeys(values))
    return [unique[i : i + size] for i in range(0, len(unique), size)]


def fetch_in_chunks(query, column, values, size=None):
    """
    Run `query` filtered by `column IN chunk` for every chunk of values

    Args:
        query: SQLAlchemy query to filter (not executed as-is)
        column: Model column the identifiers are matched against
        values: Identifiers to look up
        size: Optional chunk size override

    Returns:
        list: Merged results of all chunked queries
    """
    results = []
    for chunk in chunked(values, size):
        results.extend(query.filter(column.in_(chunk)).all())
    return results
