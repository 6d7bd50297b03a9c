"""
Gallery view state for a school detail page.

Category filtering and lightbox navigation over an already-loaded list of
images. Purely synchronous; it never touches the database or storage.
"""
from typing import Any, Dict, List, Optional, Sequence, Tuple

ALL_CATEGORIES = "all"

CATEGORY_LABELS = {
    "infrastructure": "Infrastructure",
    "events": "Events",
    "general": "General",
}


def label_for(image_type: str) -> str:
    """Human label for a category; unknown values are shown as-is."""
    return CATEGORY_LABELS.get(image_type, image_type)


class GalleryPresenter:
    """
    Filterable gallery with a cyclic lightbox.

    The lightbox index always points into filtered_images(). Changing the
    category closes the lightbox and resets the index to 0.
    """

    def __init__(self, images: Sequence[Any], placeholder_url: Optional[str] = None):
        self.images = list(images)
        self.placeholder_url = placeholder_url
        self.selected_category = ALL_CATEGORIES
        self.selected_index = 0
        self.is_open = False

    @property
    def is_empty(self) -> bool:
        return not self.images

    def filtered_images(self) -> List[Any]:
        if self.selected_category == ALL_CATEGORIES:
            return list(self.images)
        return [img for img in self.images if _image_type(img) == self.selected_category]

    def categories(self) -> List[str]:
        """Distinct image types in first-seen order."""
        seen = []
        for img in self.images:
            image_type = _image_type(img)
            if image_type not in seen:
                seen.append(image_type)
        return seen

    @property
    def show_category_filter(self) -> bool:
        return len(self.categories()) > 1

    def category_counts(self) -> Dict[str, int]:
        counts = {ALL_CATEGORIES: len(self.images)}
        for category in self.categories():
            counts[category] = sum(1 for img in self.images if _image_type(img) == category)
        return counts

    def select_category(self, category: str) -> None:
        self.selected_category = category or ALL_CATEGORIES
        self.selected_index = 0
        self.is_open = False

    def open(self, index: int) -> int:
        """
        Enter lightbox mode at index into the filtered list.
        Out-of-range indices are clamped; an empty list clamps to 0.
        """
        last = len(self.filtered_images()) - 1
        self.selected_index = max(0, min(index, last)) if last >= 0 else 0
        self.is_open = True
        return self.selected_index

    def close(self) -> None:
        self.is_open = False

    def next(self) -> int:
        count = len(self.filtered_images())
        if count <= 1:
            return self.selected_index
        self.selected_index = 0 if self.selected_index >= count - 1 else self.selected_index + 1
        return self.selected_index

    def prev(self) -> int:
        count = len(self.filtered_images())
        if count <= 1:
            return self.selected_index
        self.selected_index = count - 1 if self.selected_index <= 0 else self.selected_index - 1
        return self.selected_index

    def neighbors(self) -> Tuple[int, int]:
        """(prev, next) indices that prev() and next() would move to."""
        count = len(self.filtered_images())
        index = self.selected_index
        if count <= 1:
            return index, index
        return (count - 1 if index <= 0 else index - 1), (0 if index >= count - 1 else index + 1)

    def current(self) -> Optional[Any]:
        filtered = self.filtered_images()
        if 0 <= self.selected_index < len(filtered):
            return filtered[self.selected_index]
        return None

    def counter(self) -> str:
        total = len(self.filtered_images())
        position = self.selected_index + 1 if total else 0
        return f"{position} / {total}"

    def display_url(self, image: Any) -> Optional[str]:
        # Broken or missing URLs degrade to the placeholder
        return getattr(image, "image_url", None) or self.placeholder_url

    def alt_text(self, image: Any, school_name: str) -> str:
        title = getattr(image, "title", None)
        if title:
            return title
        return f"{school_name} - {label_for(_image_type(image))}"


def _image_type(image: Any) -> str:
    value = getattr(image, "image_type", None) or "general"
    # Accept both plain strings and str-valued enums
    return getattr(value, "value", value)
