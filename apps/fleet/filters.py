"""FilterSet definitions for the bike roster."""

from __future__ import annotations

import django_filters  # type: ignore

from .models import Bike, SizeClassChoices


class BikeFilterSet(django_filters.FilterSet):
    size_class = django_filters.ChoiceFilter(choices=SizeClassChoices.choices)
    status = django_filters.ChoiceFilter(choices=Bike.Status.choices)
    bookable = django_filters.BooleanFilter(method="filter_bookable")

    class Meta:
        model = Bike
        fields = ["size_class", "status"]

    def filter_bookable(self, queryset, name, value):  # type: ignore
        if value:
            return queryset.bookable()
        return queryset.exclude(pk__in=queryset.bookable().values("pk"))
