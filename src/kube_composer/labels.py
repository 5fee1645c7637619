"""Label merging for project-wide and resource-specific labels."""
from __future__ import annotations

from typing import Dict, Mapping, Optional

from .constants import APP_NAME_LABEL, PROJECT_LABEL
from .models import ProjectSettings


def merge_labels(
    resource_labels: Mapping[str, str],
    old_global_labels: Optional[Mapping[str, str]],
    new_global_labels: Optional[Mapping[str, str]],
    project_name: str,
) -> Dict[str, str]:
    """
    Re-apply project-wide labels to a resource's stored labels.

    Keys from ``old_global_labels`` are treated as stale and removed before
    the new global labels are laid underneath the resource's own labels.
    The ``project`` key is always rewritten last.

    Args:
        resource_labels: Labels currently stored on the resource
        old_global_labels: Global labels that were applied previously
        new_global_labels: Global labels to apply now
        project_name: Value for the ``project`` label

    Returns:
        A new label mapping; the inputs are not modified
    """
    cleaned = dict(resource_labels)
    for key in old_global_labels or {}:
        cleaned.pop(key, None)
    cleaned.pop(PROJECT_LABEL, None)

    merged: Dict[str, str] = dict(new_global_labels or {})
    merged.update(cleaned)
    merged[PROJECT_LABEL] = project_name
    return merged


def project_labels(labels: Mapping[str, str], settings: Optional[ProjectSettings]) -> Dict[str, str]:
    """Labels as rendered on a resource, with global and project labels applied."""
    if settings is None:
        return dict(labels)
    merged: Dict[str, str] = dict(settings.global_labels)
    merged.update(labels)
    merged[PROJECT_LABEL] = settings.name
    return merged


def workload_labels(app_name: str, labels: Mapping[str, str], settings: Optional[ProjectSettings]) -> Dict[str, str]:
    """Full label set for a workload and the resources generated alongside it."""
    merged: Dict[str, str] = {APP_NAME_LABEL: app_name}
    merged.update(project_labels(labels, settings))
    return merged


def selector_labels(app_name: str, settings: Optional[ProjectSettings]) -> Dict[str, str]:
    """
    Reduced label set used for pod selectors.

    Only the app name and project are included so that global labels added
    later do not change a workload's immutable selector.
    """
    selector: Dict[str, str] = {APP_NAME_LABEL: app_name}
    if settings is not None:
        selector[PROJECT_LABEL] = settings.name
    return selector
