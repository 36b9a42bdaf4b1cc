"""Markdown reference extraction and rendering with wiki link support."""

import re
from typing import Callable
from urllib.parse import unquote
from xml.etree.ElementTree import Element

from markdown import Markdown
from markdown.extensions import Extension
from markdown.inlinepatterns import InlineProcessor, SimpleTagInlineProcessor

from linkweaver.core.models import NoteReferences, ReferenceOccurrence


# Pattern for wiki links: [[PageName]] or [[PageName|Display Text]]
WIKI_LINK_PATTERN = r"\[\[([^\]|]+)(?:\|([^\]]+))?\]\]"

# Wiki links and embeds (![[...]]) with the embed marker captured
REFERENCE_PATTERN = re.compile(r"(!?)\[\[([^\]|]+)(?:\|([^\]]+))?\]\]")

# Markdown links to local notes: [Display](Target.md)
MARKDOWN_LINK_PATTERN = re.compile(r"(!?)\[([^\]]*)\]\(([^)\s]+)\)")

# Pattern for strikethrough: ~~text~~
# Group 2 must contain the text (SimpleTagInlineProcessor expectation)
STRIKETHROUGH_PATTERN = r"(~~)(.*?)~~"

FRONTMATTER_PATTERN = re.compile(r"^---\s*\n(.*?)\n---\s*\n", re.DOTALL)
FENCE_PATTERN = re.compile(r"^\s*(```|~~~)")
URL_SCHEME_PATTERN = re.compile(r"^[a-zA-Z][a-zA-Z0-9+.-]*:")


def clean_link(link: str) -> str:
    """Strip a trailing heading/block anchor and display-text separator."""
    return link.split("#", 1)[0].split("|", 1)[0].strip()


class StrikethroughExtension(Extension):
    """Markdown extension for ~~strikethrough~~ text."""

    def extendMarkdown(self, md: Markdown) -> None:
        """Add strikethrough pattern to markdown parser."""
        md.inlinePatterns.register(
            SimpleTagInlineProcessor(STRIKETHROUGH_PATTERN, "del"),
            "strikethrough",
            50,
        )


class WikiLinkInlineProcessor(InlineProcessor):
    """Inline processor for wiki links."""

    def __init__(self, pattern: str, md: Markdown, note_exists: Callable[[str], bool]):
        super().__init__(pattern, md)
        self.note_exists = note_exists

    def handleMatch(self, m: re.Match, data: str) -> tuple[Element | None, int, int]:
        """Convert wiki link match to an internal-link anchor element."""
        target = m.group(1).strip()
        display_text = m.group(2)
        if display_text:
            display_text = display_text.strip()
        else:
            display_text = target

        el = Element("a")
        el.text = display_text
        el.set("href", target)
        el.set("data-href", target)

        if self.note_exists(clean_link(target)):
            el.set("class", "internal-link")
        else:
            el.set("class", "internal-link is-unresolved")

        return el, m.start(0), m.end(0)


class WikiLinkExtension(Extension):
    """Markdown extension for wiki links."""

    def __init__(self, note_exists: Callable[[str], bool] | None = None, **kwargs):
        self.note_exists = note_exists or (lambda x: True)
        super().__init__(**kwargs)

    def extendMarkdown(self, md: Markdown) -> None:
        """Add wiki link pattern to markdown parser."""
        wiki_link_processor = WikiLinkInlineProcessor(
            WIKI_LINK_PATTERN,
            md,
            self.note_exists,
        )
        md.inlinePatterns.register(wiki_link_processor, "wiki_link", 75)


def create_parser(note_exists: Callable[[str], bool] | None = None) -> Markdown:
    """Create a Markdown parser with wiki link support.

    Args:
        note_exists: Callback to check if a link target exists.
                    Used to style unresolved links differently.

    Returns:
        Configured Markdown parser instance.
    """
    return Markdown(
        extensions=[
            "extra",  # Includes: abbreviations, attr_list, def_list, fenced_code, footnotes, md_in_html, tables
            "sane_lists",
            "pymdownx.tasklist",  # Task lists with checkboxes
            StrikethroughExtension(),  # ~~strikethrough~~
            WikiLinkExtension(note_exists=note_exists),  # [[WikiLinks]]
        ]
    )


def render_markdown(
    content: str,
    note_exists: Callable[[str], bool] | None = None,
) -> str:
    """Render note content (Markdown + wiki links) to HTML."""
    parser = create_parser(note_exists)
    return parser.convert(content)


def _is_local_target(target: str) -> bool:
    return not URL_SCHEME_PATTERN.match(target) and not target.startswith("#")


def extract_references(content: str) -> NoteReferences:
    """Extract link and embed occurrences from Markdown content.

    Line numbers are zero-based and count from the top of the file,
    frontmatter included. Links inside the frontmatter block and inside
    fenced code blocks are ignored.

    Args:
        content: Raw note content.

    Returns:
        NoteReferences with links and embeds in document order.
    """
    refs = NoteReferences()
    lines = content.split("\n")

    start = 0
    fm = FRONTMATTER_PATTERN.match(content)
    if fm:
        start = content[: fm.end()].count("\n")

    in_fence = False
    for line_no in range(start, len(lines)):
        line = lines[line_no]
        if FENCE_PATTERN.match(line):
            in_fence = not in_fence
            continue
        if in_fence:
            continue

        for m in REFERENCE_PATTERN.finditer(line):
            occurrence = ReferenceOccurrence(
                link=m.group(2).strip(),
                display_text=m.group(3).strip() if m.group(3) else None,
                line=line_no,
            )
            (refs.embeds if m.group(1) else refs.links).append(occurrence)

        for m in MARKDOWN_LINK_PATTERN.finditer(line):
            target = unquote(m.group(3))
            if not _is_local_target(target):
                continue
            occurrence = ReferenceOccurrence(
                link=target,
                display_text=m.group(2) or None,
                line=line_no,
            )
            (refs.embeds if m.group(1) else refs.links).append(occurrence)

    return refs


def extract_wiki_links(content: str) -> list[str]:
    """Extract the targets of all links and embeds in content."""
    return [ref.link for ref in extract_references(content).all()]
