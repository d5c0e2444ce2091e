"""Fixed tree entries seeded before the first revision.

The layout template and the root redirect are bundled as package
resources under wikireplay/templates.
"""

from importlib.resources import files
from string import Template

from wikireplay.core.slugs import display, slugify

LAYOUT_PATH = "_layouts/default.html"
INDEX_PATH = "index.html"
DEFAULT_MAIN_PAGE = "Main Page"


def _read_template(name: str) -> str:
    resource = files("wikireplay").joinpath("templates", name)
    if not resource.is_file():
        raise FileNotFoundError(f"Bundled template not found: {name}")
    return resource.read_text(encoding="utf-8")


def scaffold_entries(main_page: str = DEFAULT_MAIN_PAGE, link_suffix: str = ".html") -> dict[str, bytes]:
    """Build the scaffold files.

    Args:
        main_page: Title of the page the site root redirects to
        link_suffix: Extension rendered pages are published under

    Returns:
        Mapping of tree path to file content
    """
    index = Template(_read_template("index.html")).substitute(
        target=f"{slugify(main_page)}{link_suffix}",
        title=display(main_page),
    )
    return {
        LAYOUT_PATH: _read_template("default.html").encode("utf-8"),
        INDEX_PATH: index.encode("utf-8"),
    }
