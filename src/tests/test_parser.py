"""Unit tests for reference extraction and Markdown rendering."""

from linkweaver.core.parser import (
    clean_link,
    extract_references,
    extract_wiki_links,
    render_markdown,
)


# ============================================================
# Wiki links
# ============================================================


class TestRenderWikiLinks:
    def test_existing_note_link(self):
        html = render_markdown("See [[HomePage]]", note_exists=lambda x: True)
        assert 'class="internal-link"' in html
        assert 'href="HomePage"' in html
        assert ">HomePage</a>" in html

    def test_unresolved_note_link(self):
        html = render_markdown("See [[Missing]]", note_exists=lambda x: False)
        assert "is-unresolved" in html

    def test_display_text(self):
        html = render_markdown("[[Page|Click Here]]", note_exists=lambda x: True)
        assert ">Click Here</a>" in html

    def test_anchor_stripped_for_existence_check(self):
        seen = []
        render_markdown("[[Page#Intro]]", note_exists=lambda x: seen.append(x) or True)
        assert seen == ["Page"]

    def test_strikethrough(self):
        assert "<del>gone</del>" in render_markdown("~~gone~~")


# ============================================================
# Reference extraction
# ============================================================


class TestExtractReferences:
    def test_links_and_embeds(self):
        refs = extract_references("See [[A]] and ![[diagram.png]]\n[[B|Bee]]")
        assert [r.link for r in refs.links] == ["A", "B"]
        assert [r.link for r in refs.embeds] == ["diagram.png"]
        assert refs.links[1].display_text == "Bee"
        assert refs.links[1].line == 1

    def test_markdown_links(self):
        refs = extract_references("[Guide](Docs/Guide.md) and [site](https://example.com)")
        assert [r.link for r in refs.links] == ["Docs/Guide.md"]
        assert refs.links[0].display_text == "Guide"

    def test_url_encoded_markdown_link(self):
        refs = extract_references("[x](My%20Note.md)")
        assert refs.links[0].link == "My Note.md"

    def test_frontmatter_skipped_but_counted(self):
        content = "---\nup: \"[[Parent]]\"\n---\nBody [[Child]]"
        refs = extract_references(content)
        assert [r.link for r in refs.links] == ["Child"]
        assert refs.links[0].line == 3

    def test_fenced_code_ignored(self):
        content = "```\n[[NotALink]]\n```\n[[Real]]"
        assert extract_wiki_links(content) == ["Real"]

    def test_empty(self):
        assert extract_references("").all() == []


class TestCleanLink:
    def test_heading(self):
        assert clean_link("Note#Section") == "Note"

    def test_block(self):
        assert clean_link("Note#^abc123") == "Note"

    def test_display_separator(self):
        assert clean_link("Note|Shown") == "Note"
