"""Tests for the individual shorthand rewrite rules."""

from __future__ import annotations

import pytest

from docshim.transform.rules import (
    escape_bare_variables,
    escape_embedded_templates,
    expand_columns,
    expand_content_refs,
    expand_formatted_code,
    expand_steppers,
    expand_tabs,
    format_text,
    link_text_for,
    rewrite_embeds,
    unwrap_escaped_variables,
)


class TestRewriteEmbeds:
    """Tests for rewrite_embeds."""

    @pytest.mark.parametrize(
        "source",
        [
            '{% embed url="https://example.com/video" %}',
            "{% embed url='https://example.com/video' %}",
            "{% embed url=https://example.com/video %}",
            '{% embed "https://example.com/video" %}',
            '{%embed url="https://example.com/video"%}',
        ],
    )
    def test_http_urls_become_urlembed(self, source: str) -> None:
        """Quote and url= variants all produce an urlembed block."""
        result = rewrite_embeds(source)
        assert result == "{% urlembed %}\nhttps://example.com/video\n{% endurlembed %}"

    def test_plain_http_url(self) -> None:
        """http:// is accepted as well as https://."""
        result = rewrite_embeds('{% embed url="http://example.com" %}')
        assert "\nhttp://example.com\n" in result

    def test_trailing_attributes_are_tolerated(self) -> None:
        """Extra attributes after the URL do not prevent the rewrite."""
        result = rewrite_embeds('{% embed url="https://x.io/a" caption="Demo" %}')
        assert result == "{% urlembed %}\nhttps://x.io/a\n{% endurlembed %}"

    @pytest.mark.parametrize(
        "source",
        [
            '{% embed url="files/diagram.png" %}',
            '{% embed url="ftp://example.com/file" %}',
            "{% embed %}",
        ],
    )
    def test_non_web_urls_pass_through(self, source: str) -> None:
        """Anything that is not http(s) is returned byte-identical."""
        assert rewrite_embeds(source) == source

    @pytest.mark.parametrize(
        "source",
        [
            '{% embed url="https://example.com/a%20b" %}',
            "{% embed url=https://example.com/a%20b %}",
        ],
    )
    def test_percent_encoded_url(self, source: str) -> None:
        """Percent-encoded URLs are rewritten, quoted or not."""
        result = rewrite_embeds(source)
        assert result == "{% urlembed %}\nhttps://example.com/a%20b\n{% endurlembed %}"

    def test_surrounding_text_untouched(self) -> None:
        """Only the embed token is replaced."""
        source = 'Intro\n\n{% embed url="https://a.b/c" %}\n\nOutro'
        result = rewrite_embeds(source)
        assert result.startswith("Intro\n\n{% urlembed %}")
        assert result.endswith("{% endurlembed %}\n\nOutro")


class TestBraces:
    """Tests for escape_bare_variables and unwrap_escaped_variables."""

    def test_escape_word_variable(self) -> None:
        """{{name}} is escaped on both sides."""
        assert escape_bare_variables("Hi {{name}}!") == "Hi \\{{name\\}}!"

    def test_escape_ignores_non_word_content(self) -> None:
        """Expressions with spaces or dots are left for the host."""
        source = "{{ page.title }} and {{a.b}}"
        assert escape_bare_variables(source) == source

    def test_unwrap_both_sides_escaped(self) -> None:
        """Escaped variables become inline code spans."""
        assert unwrap_escaped_variables("\\{{name\\}}") == "`{{name}}`"

    def test_unwrap_trims_inner_whitespace(self) -> None:
        """Inner whitespace is trimmed."""
        assert unwrap_escaped_variables("\\{{  user.email  \\}}") == "`{{user.email}}`"

    def test_unwrap_single_side_escape(self) -> None:
        """An escape on either side is enough."""
        assert unwrap_escaped_variables("\\{{ x }}") == "`{{x}}`"
        assert unwrap_escaped_variables("{{ y \\}}") == "`{{y}}`"

    def test_unwrap_leaves_unescaped_expressions(self) -> None:
        """Unescaped template expressions are not touched."""
        source = "{{ page.title }}"
        assert unwrap_escaped_variables(source) == source

    def test_escape_then_unwrap(self) -> None:
        """The two rules together surface a visible literal."""
        result = unwrap_escaped_variables(escape_bare_variables("Dear {{customer}},"))
        assert result == "Dear `{{customer}}`,"
        assert "\\" not in result


class TestContentRefs:
    """Tests for expand_content_refs."""

    def test_body_is_kept_verbatim(self) -> None:
        """A non-empty body replaces the whole block."""
        source = (
            '{% content-ref url="setup/install.md" %}\n'
            "[Install](setup/install.md)\n"
            "{% endcontent-ref %}"
        )
        assert expand_content_refs(source) == "[Install](setup/install.md)"

    def test_empty_body_synthesizes_link(self) -> None:
        """An empty body yields a link named after the last path segment."""
        source = '{% content-ref url="guides/getting-started.md" %}\n\n{% endcontent-ref %}'
        assert expand_content_refs(source) == "[getting-started](guides/getting-started.md)"

    def test_link_text_for(self) -> None:
        """Only a trailing .md suffix is removed."""
        assert link_text_for("a/b/c.md") == "c"
        assert link_text_for("a/b/c.mdx") == "c.mdx"
        assert link_text_for("https://x.io/docs/") == "docs"

    def test_multiple_blocks(self) -> None:
        """Each block is expanded independently."""
        source = (
            '{% content-ref url="a.md" %}{% endcontent-ref %} and '
            '{% content-ref url="b.md" %}[B](b.md){% endcontent-ref %}'
        )
        assert expand_content_refs(source) == "[a](a.md) and [B](b.md)"


class TestSteppers:
    """Tests for expand_steppers."""

    def test_titles_and_numbering(self) -> None:
        """Steps are numbered from 1 and titled from their h4 heading."""
        source = (
            "{% stepper %}\n"
            "{% step %}\n#### Install\nRun the installer.\n{% endstep %}\n"
            "{% step %}\n#### Configure\nEdit the file.\n{% endstep %}\n"
            "{% endstepper %}"
        )
        result = expand_steppers(source)
        assert "## Step 1: Install\nRun the installer." in result
        assert "## Step 2: Configure\nEdit the file." in result
        assert result.index("Step 1") < result.index("Step 2")
        assert "####" not in result
        assert "{% step" not in result

    def test_default_title(self) -> None:
        """A step without an h4 heading is titled after its number."""
        source = "{% stepper %}{% step %}Just do it.{% endstep %}{% endstepper %}"
        assert expand_steppers(source) == "\n## Step 1: Step 1\nJust do it.\n"

    def test_exactly_n_headings(self) -> None:
        """N steps produce N headings in order."""
        steps = "".join(f"{{% step %}}\n#### T{i}\nbody {i}\n{{% endstep %}}" for i in range(1, 6))
        result = expand_steppers("{% stepper %}" + steps + "{% endstepper %}")
        headings = [line for line in result.splitlines() if line.startswith("## Step ")]
        assert headings == [f"## Step {i}: T{i}" for i in range(1, 6)]

    def test_blank_runs_collapsed(self) -> None:
        """No run of three or more newlines survives."""
        source = (
            "{% stepper %}\n\n\n\n{% step %}\n\n\n\nA\n\n\n\nB\n\n\n{% endstep %}\n\n\n\n"
            "{% step %}\nC\n{% endstep %}\n\n\n{% endstepper %}"
        )
        assert "\n\n\n" not in expand_steppers(source)

    def test_numbering_restarts_per_stepper(self) -> None:
        """Each stepper block counts from 1."""
        block = "{% stepper %}{% step %}x{% endstep %}{% endstepper %}"
        result = expand_steppers(block + "\n\n" + block)
        assert result.count("## Step 1: Step 1") == 2

    def test_no_blank_run_with_surrounding_text(self) -> None:
        """Newlines before and after the block do not stack up."""
        source = (
            "Intro\n\n{% stepper %}\n{% step %}\n#### A\nbody\n{% endstep %}\n"
            "{% endstepper %}\n\nOutro"
        )
        result = expand_steppers(source)
        assert result == "Intro\n\n## Step 1: A\nbody\n\nOutro"

    def test_heading_kept_on_own_line(self) -> None:
        """Text directly before the block still leaves the heading on a new line."""
        result = expand_steppers("Intro{% stepper %}{% step %}x{% endstep %}{% endstepper %}")
        assert result.startswith("Intro\n## Step 1: Step 1")

    def test_level5_heading_is_not_a_title(self) -> None:
        """Only level-4 headings are used as titles."""
        source = "{% stepper %}{% step %}\n##### Deep\ntext\n{% endstep %}{% endstepper %}"
        result = expand_steppers(source)
        assert "## Step 1: Step 1" in result
        assert "##### Deep" in result


class TestTabs:
    """Tests for expand_tabs."""

    def test_two_tabs(self) -> None:
        """Each tab becomes a details section in order."""
        source = (
            '{% tabs %}{% tab title="A" %}x{% endtab %}'
            '{% tab title="B" %}y{% endtab %}{% endtabs %}'
        )
        assert expand_tabs(source) == (
            "<details>\n<summary>A</summary>\n\nx\n\n</details>\n\n"
            "<details>\n<summary>B</summary>\n\ny\n\n</details>"
        )

    def test_bodies_are_trimmed(self) -> None:
        """Whitespace around a tab body is removed."""
        source = "{% tabs %}\n{% tab title='Py' %}\n\n  print(1)\n\n{% endtab %}\n{% endtabs %}"
        assert expand_tabs(source) == "<details>\n<summary>Py</summary>\n\nprint(1)\n\n</details>"

    def test_no_trailing_blank_lines(self) -> None:
        """The expansion ends with the closing tag."""
        source = '{% tabs %}{% tab title="A" %}x{% endtab %}{% endtabs %}\nNext'
        assert expand_tabs(source).endswith("</details>\nNext")

    def test_title_with_other_quote(self) -> None:
        """A title may contain the quote character it is not wrapped in."""
        source = (
            '{% tabs %}{% tab title="A" %}x{% endtab %}'
            "{% tab title=\"Bob's\" %}keep me{% endtab %}"
            "{% tab title='Say \"hi\"' %}z{% endtab %}{% endtabs %}"
        )
        result = expand_tabs(source)
        assert "<summary>Bob's</summary>\n\nkeep me" in result
        assert '<summary>Say "hi"</summary>\n\nz' in result
        assert result.count("<details>") == 3

    def test_title_is_html_escaped(self) -> None:
        """Markup in a title is shown literally."""
        source = '{% tabs %}{% tab title="<b>A & B</b>" %}x{% endtab %}{% endtabs %}'
        assert "<summary>&lt;b&gt;A &amp; B&lt;/b&gt;</summary>" in expand_tabs(source)

    def test_tabs_without_children_unchanged(self) -> None:
        """A tabs block with no tab children is left alone."""
        source = "{% tabs %}nothing here{% endtabs %}"
        assert expand_tabs(source) == source


class TestColumns:
    """Tests for expand_columns."""

    def test_three_columns(self) -> None:
        """Three columns yield a 3-cell header, separator and body row."""
        source = (
            "{% columns %}"
            "{% column %}\n### One\nfirst\n{% endcolumn %}"
            "{% column %}\n#### Two\nsecond\n{% endcolumn %}"
            "{% column %}\nthird\n{% endcolumn %}"
            "{% endcolumns %}"
        )
        lines = expand_columns(source).split("\n")
        assert lines == [
            "| One | Two |  |",
            "|---|---|---|",
            "| first | second | third |",
        ]

    def test_newlines_become_breaks(self) -> None:
        """Paragraph newlines are converted to <br> inside a cell."""
        source = "{% columns %}{% column %}line1\nline2\n\n\n\nline3{% endcolumn %}{% endcolumns %}"
        body = expand_columns(source).split("\n")[2]
        assert body == "| line1<br>line2<br><br>line3 |"

    def test_list_items_keep_newlines(self) -> None:
        """Newlines starting list items are preserved."""
        source = "{% columns %}{% column %}Items:\n- a\n- b\n1. c{% endcolumn %}{% endcolumns %}"
        result = expand_columns(source)
        assert "Items:\n- a\n- b\n1. c" in result

    def test_zero_columns_unchanged(self) -> None:
        """No column children returns the input untouched."""
        source = "{% columns %}\nloose text\n{% endcolumns %}"
        assert expand_columns(source) == source


class TestEscapeEmbeddedTemplates:
    """Tests for escape_embedded_templates."""

    def test_script_body_escaped(self) -> None:
        """Delimiters inside a script body become character references."""
        source = "<script>var a = '{{ x }}'; {% if y %}1{% endif %}</script>"
        result = escape_embedded_templates(source)
        assert result == (
            "<script>var a = '&#123;&#123; x &#125;&#125;'; "
            "&#123;% if y %&#125;1&#123;% endif %&#125;</script>"
        )

    def test_outside_script_untouched(self) -> None:
        """Delimiters outside the protected regions are kept."""
        source = "{{ title }}\n<script>{{ a }}</script>\n{% tab %}"
        result = escape_embedded_templates(source)
        assert result.startswith("{{ title }}\n")
        assert result.endswith("\n{% tab %}")

    def test_product_form_tag(self) -> None:
        """Only the opening product-form tag is escaped."""
        source = '<product-form data-id="{{ product.id }}">{{ inner }}</product-form>'
        result = escape_embedded_templates(source)
        assert result == (
            '<product-form data-id="&#123;&#123; product.id &#125;&#125;">'
            "{{ inner }}</product-form>"
        )

    def test_dashed_tags(self) -> None:
        """Whitespace-control tags get their dashed delimiters escaped."""
        source = "{%- form 'product' -%}"
        assert escape_embedded_templates(source) == "&#123;%- form 'product' -%&#125;"

    def test_dashed_tags_inside_script_once(self) -> None:
        """Script bodies are not escaped twice."""
        source = "<script>{%- x -%}</script>"
        assert escape_embedded_templates(source) == "<script>&#123;%- x -%&#125;</script>"


class TestSmallBlocks:
    """Tests for formatted-code blocks and the format-text filter."""

    def test_formatted_code(self) -> None:
        """formatted-code bodies are wrapped in a div."""
        source = "{% formatted-code %}a = 1{% endformatted-code %}"
        assert expand_formatted_code(source) == '<div class="custom-formatted-code">a = 1</div>'

    def test_format_text(self) -> None:
        """Upper-casing is opt-in."""
        assert format_text("abc") == "abc"
        assert format_text("abc", uppercase=True) == "ABC"
