"""Reading every row of a Protean query, page by page.

QuerySets carry the aggregate's default limit, so a bare ``.all()`` silently
stops after the first page.
"""

PAGE_SIZE = 100


def fetch_all(queryset, page_size: int = PAGE_SIZE) -> list:
    """All items matching ``queryset``, in its ordering."""
    items = []
    offset = 0
    while True:
        page = queryset.offset(offset).limit(page_size).all().items
        items.extend(page)
        if len(page) < page_size:
            return items
        offset += page_size
