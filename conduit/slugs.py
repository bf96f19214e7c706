import re
import unicodedata

_SLUG_STRIP_RE = re.compile(r"[^a-z0-9\s_-]")
_SLUG_SPACE_RE = re.compile(r"[\s_]+")
_SLUG_DASH_RE = re.compile(r"-+")

# Path segments under /api/articles that are routes, not articles.
RESERVED_SLUGS = frozenset({"feed"})


def slugify(text: str) -> str:
    """
    Return a lowercase, ASCII, hyphen-separated slug derived from *text*.

    Accented letters are folded to their ASCII base ("Crème" -> "creme");
    anything else outside ``[a-z0-9]`` is dropped.  The result may be empty
    for titles made only of symbols.
    """
    text = unicodedata.normalize("NFKD", text).encode("ascii", "ignore").decode("ascii")
    text = _SLUG_STRIP_RE.sub("", text.lower().strip())
    text = _SLUG_SPACE_RE.sub("-", text)
    return _SLUG_DASH_RE.sub("-", text).strip("-")
