"""
Capture of live document state into storable snapshots.
"""
import copy
from typing import Any, Dict

from app.models.document import Document


class SnapshotBuilder:
    """Turns a loaded document into a version snapshot payload."""

    @staticmethod
    def capture(document: Document) -> Dict[str, Any]:
        """
        Capture a document's sections and metadata.

        The document must have its sections loaded. Nothing in the returned
        payload shares mutable state with the live objects, so later edits to
        the document cannot alter a stored snapshot.

        Returns:
            dict: ``{"sections": [...], "metadata": {...}}`` with sections
            sorted by order
        """
        sections = sorted(document.sections, key=lambda s: (s.order, str(s.id)))
        return {
            "sections": [
                {
                    "id": str(section.id),
                    "section_type": section.section_type,
                    "content": section.content,
                    "order": section.order,
                    "is_generated": bool(section.is_generated),
                    "metadata": copy.deepcopy(section.custom_metadata or {}),
                }
                for section in sections
            ],
            "metadata": copy.deepcopy(document.custom_metadata or {}),
        }
