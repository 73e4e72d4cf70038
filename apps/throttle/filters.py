"""FilterSet for the attempt log."""

from __future__ import annotations

import django_filters  # type: ignore

from .models import AttemptRecord


class AttemptRecordFilterSet(django_filters.FilterSet):
    category = django_filters.ChoiceFilter(choices=AttemptRecord.Category.choices)
    outcome = django_filters.ChoiceFilter(choices=AttemptRecord.Outcome.choices)
    client = django_filters.CharFilter(field_name="client_identifier")
    since = django_filters.IsoDateTimeFilter(field_name="attempted_at", lookup_expr="gte")
    until = django_filters.IsoDateTimeFilter(field_name="attempted_at", lookup_expr="lt")

    class Meta:
        model = AttemptRecord
        fields = ["category", "outcome"]
