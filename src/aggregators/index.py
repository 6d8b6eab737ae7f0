"""
Result Indexing Module.

Groups aggregated entities by a domain attribute, such as label name or
milestone title, keeping the order in which keys were first seen.
"""

from typing import Callable, Dict, Hashable, Iterable, List, Mapping, TypeVar

from clients.models import GroupedResult, Issue, SettledResult

T = TypeVar("T")
K = TypeVar("K", bound=Hashable)

NO_MILESTONE = "(no milestone)"


def group_by(items: Iterable[T], key_fn: Callable[[T], K]) -> Dict[K, List[T]]:
    """
    Group items by key.

    Keys keep first-seen order and repeated keys append in input order.

    Args:
        items (Iterable[T]): Items to group
        key_fn (Callable[[T], K]): Extracts the grouping key of an item

    Returns:
        Dict[K, List[T]]: Items per key
    """
    groups: Dict[K, List[T]] = {}
    for item in items:
        groups.setdefault(key_fn(item), []).append(item)
    return groups


def merge_settled(
    settled: Mapping[str, SettledResult], key_fn: Callable[[T], str]
) -> GroupedResult:
    """
    Merge per-repository sequences into one org-wide index.

    Fulfilled results contribute every item they hold; rejected results are
    recorded under ``failures`` by repository name.

    Args:
        settled (Mapping[str, SettledResult]): Fan-out results whose values are
            sequences of entities
        key_fn (Callable[[T], str]): Extracts the grouping key of an entity

    Returns:
        GroupedResult: Grouped entities and failures
    """
    merged = GroupedResult()
    for repository, result in settled.items():
        if result.rejected:
            merged.failures[repository] = result.error
            continue
        for item in result.value or []:
            merged.groups.setdefault(key_fn(item), []).append(item)
    return merged


def group_issues_by_milestone(issues: Iterable[Issue]) -> Dict[str, List[Issue]]:
    """Group issues by milestone title, using ``NO_MILESTONE`` for the rest."""
    return group_by(
        issues,
        lambda issue: issue.milestone.title if issue.milestone else NO_MILESTONE,
    )
