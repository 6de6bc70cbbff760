from markdown_renderer import (
    BulletList,
    Heading,
    Paragraph,
    Span,
    message_html,
    parse_inline,
    render_markdown,
    to_html,
)


def spans(text):
    return (Span(text),)


def test_heading_list_paragraph():
    nodes = render_markdown("# Title\n* a\n* b\nplain")
    assert nodes == [
        Heading(1, spans("Title")),
        BulletList((spans("a"), spans("b"))),
        Paragraph(spans("plain")),
    ]


def test_trailing_list_is_flushed():
    assert render_markdown("intro\n* x") == [
        Paragraph(spans("intro")),
        BulletList((spans("x"),)),
    ]


def test_heading_levels_longest_prefix_first():
    nodes = render_markdown("### three\n## two\n# one")
    assert [n.level for n in nodes] == [3, 2, 1]
    assert nodes[0].spans == spans("three")


def test_bullet_markers_and_indentation():
    nodes = render_markdown("  - dash\n• dot\n* star")
    assert nodes == [BulletList((spans("dash"), spans("dot"), spans("star")))]


def test_blank_lines_make_no_nodes_but_split_lists():
    nodes = render_markdown("* a\n\n* b")
    assert nodes == [BulletList((spans("a"),)), BulletList((spans("b"),))]


def test_bold_spans():
    assert parse_inline("I use **Python** and **SQL**.") == (
        Span("I use "),
        Span("Python", bold=True),
        Span(" and "),
        Span("SQL", bold=True),
        Span("."),
    )


def test_bold_inside_headings_and_items():
    nodes = render_markdown("## **Project** X\n- built **fast**")
    assert nodes[0] == Heading(2, (Span("Project", bold=True), Span(" X")))
    assert nodes[1] == BulletList(((Span("built "), Span("fast", bold=True)),))


def test_hash_without_space_is_a_paragraph():
    assert render_markdown("#hashtag") == [Paragraph(spans("#hashtag"))]


def test_html_is_escaped():
    html = to_html(render_markdown("# <b>hi</b>\n* **x** & y"))
    assert "<h1>&lt;b&gt;hi&lt;/b&gt;</h1>" in html
    assert "<ul><li><strong>x</strong> &amp; y</li></ul>" in html


def test_thinking_marker_only_while_streaming():
    assert "thinking" in message_html("", pending=True)
    assert "thinking" not in message_html("", pending=False)
    assert message_html("**hi**") == '<p class="pre-wrap"><strong>hi</strong></p>'
