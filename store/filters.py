from decimal import Decimal, InvalidOperation

import django_filters
from django.db.models import Q

from .models import Product

SORT_ORDERING = {
    'price-asc': ('price', '-created_at'),
    'price-desc': ('-price', '-created_at'),
    'rating': ('-rating', '-created_at'),
    'popular': ('-review_count', '-created_at'),
    'newest': ('-created_at', '-id'),
}


def _to_decimal(value):
    try:
        amount = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        return None
    return amount if amount.is_finite() else None


def _is_true(value):
    return str(value).strip().lower() == 'true'


class ProductFilter(django_filters.FilterSet):
    """
    Catalog query parameters. Text filters are case-insensitive substring
    matches; numeric filters that do not parse are ignored rather than
    rejected.
    """
    category = django_filters.CharFilter(method='filter_category')
    search = django_filters.CharFilter(method='filter_search')
    brand = django_filters.CharFilter(field_name='brand', lookup_expr='icontains')
    minPrice = django_filters.CharFilter(method='filter_min_price')
    maxPrice = django_filters.CharFilter(method='filter_max_price')
    rating = django_filters.CharFilter(method='filter_rating')
    inStock = django_filters.CharFilter(method='filter_in_stock')
    featured = django_filters.CharFilter(method='filter_featured')
    mine = django_filters.CharFilter(method='filter_mine')
    sort = django_filters.CharFilter(method='filter_sort')

    class Meta:
        model = Product
        fields = []

    def filter_category(self, queryset, name, value):
        return queryset.filter(Q(category__name__icontains=value) | Q(category__slug__icontains=value))

    def filter_search(self, queryset, name, value):
        return queryset.filter(
            Q(name__icontains=value) | Q(description__icontains=value) | Q(brand__icontains=value)
        )

    def filter_min_price(self, queryset, name, value):
        amount = _to_decimal(value)
        return queryset if amount is None else queryset.filter(price__gte=amount)

    def filter_max_price(self, queryset, name, value):
        amount = _to_decimal(value)
        return queryset if amount is None else queryset.filter(price__lte=amount)

    def filter_rating(self, queryset, name, value):
        minimum = _to_decimal(value)
        return queryset if minimum is None else queryset.filter(rating__gte=minimum)

    def filter_in_stock(self, queryset, name, value):
        return queryset.filter(stock__gt=0) if _is_true(value) else queryset

    def filter_featured(self, queryset, name, value):
        return queryset.filter(is_featured=True) if _is_true(value) else queryset

    def filter_mine(self, queryset, name, value):
        user = getattr(self.request, 'user', None)
        if _is_true(value) and user is not None and user.is_authenticated and user.is_merchant:
            return queryset.filter(merchant=user)
        return queryset

    def filter_sort(self, queryset, name, value):
        return queryset.order_by(*SORT_ORDERING.get(value, SORT_ORDERING['newest']))
