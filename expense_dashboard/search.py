"""Typed autocomplete suggestions for the quick-search panel.

A query is matched against category names, vendors, existing expense
descriptions and, when the whole query is a number, an exact amount.
Choosing a suggestion sets exactly one filter field and closes the panel.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Sequence

from .filtering import FilterCriteria, parse_amount
from .formatting import format_currency
from .models import Expense, Vendor

SUGGESTION_KINDS = ("category", "vendor", "amount", "description")


@dataclass(frozen=True)
class SearchSuggestion:
    kind: str
    value: object
    label: str
    search_value: str


def generate_suggestions(
    query: str,
    categories: Sequence[str],
    vendors: Iterable[Vendor],
    expenses: Iterable[Expense],
) -> List[SearchSuggestion]:
    """Build suggestions for ``query``; a blank query yields none."""
    if query is None or not query.strip():
        return []
    needle = query.lower()
    suggestions: List[SearchSuggestion] = []

    for category in categories:
        if needle in category.lower():
            suggestions.append(
                SearchSuggestion("category", category, f"Category: {category}", category)
            )

    for vendor in vendors:
        if needle in vendor.name.lower() or needle in vendor.type.lower():
            suggestions.append(
                SearchSuggestion(
                    "vendor",
                    vendor.id,
                    f"Person: {vendor.label()}",
                    f"{vendor.name} {vendor.type}",
                )
            )

    amount = parse_amount(query)
    if amount is not None:
        suggestions.append(
            SearchSuggestion("amount", amount, f"Amount: {format_currency(amount)}", query.strip())
        )

    seen = set()
    for expense in expenses:
        description = expense.description
        if not description or description in seen:
            continue
        seen.add(description)
        if needle in description.lower():
            suggestions.append(
                SearchSuggestion("description", description, f"Description: {description}", description)
            )

    return suggestions


def apply_suggestion(criteria: FilterCriteria, suggestion: SearchSuggestion) -> FilterCriteria:
    """Return ``criteria`` with the one field the suggestion controls set."""
    if suggestion.kind == "category":
        return criteria.with_changes(category=str(suggestion.value))
    if suggestion.kind == "vendor":
        return criteria.with_changes(vendor_id=str(suggestion.value))
    if suggestion.kind == "amount":
        amount = float(suggestion.value)
        return criteria.with_changes(min_amount=amount, max_amount=amount)
    if suggestion.kind == "description":
        return criteria.with_changes(search=str(suggestion.value))
    raise ValueError(f"Unknown suggestion kind '{suggestion.kind}'")


@dataclass
class SearchPanel:
    """Open/closed state of the quick-search panel and its current query."""

    is_open: bool = False
    query: str = ""
    suggestions: List[SearchSuggestion] = field(default_factory=list)

    def open(self) -> None:
        self.is_open = True

    def close(self) -> None:
        self.is_open = False
        self.query = ""
        self.suggestions = []

    def toggle(self) -> None:
        if self.is_open:
            self.close()
        else:
            self.open()

    def update(
        self,
        query: str,
        categories: Sequence[str],
        vendors: Iterable[Vendor],
        expenses: Iterable[Expense],
    ) -> List[SearchSuggestion]:
        self.query = query
        self.suggestions = generate_suggestions(query, categories, vendors, expenses)
        return self.suggestions

    def select(self, criteria: FilterCriteria, suggestion: SearchSuggestion) -> FilterCriteria:
        updated = apply_suggestion(criteria, suggestion)
        self.close()
        return updated


def find_suggestion(suggestions: Sequence[SearchSuggestion], label: str) -> Optional[SearchSuggestion]:
    for suggestion in suggestions:
        if suggestion.label == label:
            return suggestion
    return None
