import math

from django.db.models import QuerySet

from rest_framework.pagination import BasePagination


def _positive_int(raw, default, maximum=None):
    try:
        value = int(raw)
    except (TypeError, ValueError):
        return default
    if value < 1:
        return default
    if maximum is not None:
        value = min(value, maximum)
    return value


class EnvelopePagination(BasePagination):
    """
    ``page``/``limit`` pagination reporting
    ``{page, limit, total, totalPages}`` for the response envelope.

    Malformed or out-of-range values never raise: they fall back to the
    defaults, and a page past the end is simply empty.
    """
    page_size = 12
    max_page_size = 100
    page_query_param = 'page'
    page_size_query_param = 'limit'

    def paginate_queryset(self, queryset, request, view=None):
        self.page = _positive_int(request.query_params.get(self.page_query_param), 1)
        self.limit = _positive_int(
            request.query_params.get(self.page_size_query_param),
            self.page_size,
            self.max_page_size,
        )
        self.total = queryset.count() if isinstance(queryset, QuerySet) else len(queryset)
        offset = (self.page - 1) * self.limit
        return list(queryset[offset:offset + self.limit])

    def get_pagination(self):
        return {
            'page': self.page,
            'limit': self.limit,
            'total': self.total,
            'totalPages': math.ceil(self.total / self.limit) if self.limit else 0,
        }
