"""Name inflection for table and field names.

Derives singular/plural forms, display labels, slugs and class names from
snake_case table names such as ``blog_posts``. Only the last word of a
compound name is inflected.
"""

import re
import unicodedata

import inflect

_engine = inflect.engine()


class NameInflector:
    """Inflect snake_case names.

    Examples:
        >>> NameInflector.singular("blog_posts")
        'blog_post'
        >>> NameInflector.title(NameInflector.plural("category"))
        'Categories'
        >>> NameInflector.studly("blog_post")
        'BlogPost'
    """

    @staticmethod
    def _split_last(name: str) -> tuple[str, str]:
        head, sep, last = name.rpartition("_")
        return head + sep, last

    @classmethod
    def singular(cls, name: str) -> str:
        head, last = cls._split_last(name)
        if not last:
            return name
        singular = _engine.singular_noun(last)
        return head + (singular if singular else last)

    @classmethod
    def plural(cls, name: str) -> str:
        head, last = cls._split_last(name)
        if not last:
            return name
        if _engine.singular_noun(last):
            # Already plural
            return name
        return head + _engine.plural_noun(last)

    @staticmethod
    def title(name: str) -> str:
        """``blog_posts`` -> ``Blog Posts``."""
        words = re.split(r"[_\-\s]+", name.strip("_- "))
        return " ".join(word[:1].upper() + word[1:] for word in words if word)

    @staticmethod
    def studly(name: str) -> str:
        """``blog_post`` -> ``BlogPost``."""
        words = re.split(r"[_\-\s]+", name)
        return "".join(word[:1].upper() + word[1:] for word in words if word)

    @staticmethod
    def slug(text: str) -> str:
        """URL slug, e.g. ``Blog_Posts`` -> ``blog-posts``."""
        normalized = unicodedata.normalize("NFKD", text)
        ascii_text = normalized.encode("ascii", "ignore").decode("ascii")
        slug = re.sub(r"[^a-z0-9]+", "-", ascii_text.lower())
        return re.sub(r"-+", "-", slug).strip("-")
