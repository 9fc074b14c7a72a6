"""Tests for markup text helpers: whitespace protection and rendering."""

from __future__ import annotations

from sw_mc.codec.markup import (
    XML_DECLARATION,
    ProtectedText,
    render_document,
)
from sw_mc.models.types import XmlNode


def protect(source: str) -> str:
    return ProtectedText(source).text


def render_body(node: XmlNode) -> str:
    text = render_document(node)
    return text[len(XML_DECLARATION) + 1 : -2]


class TestProtectAttributeWhitespace:
    def test_quoted_whitespace_becomes_references(self):
        source = '<a s="x\n\ty">\n</a>'
        assert protect(source) == '<a s="x&#10;&#9;y">\n</a>'

    def test_single_quotes(self):
        assert protect("<a s='1\n2'/>") == "<a s='1&#10;2'/>"

    def test_whitespace_between_attributes_untouched(self):
        source = '<a\n\tx="1"\n\ty="2"/>'
        assert protect(source) == source

    def test_text_content_untouched(self):
        source = "<a>\n\tline\n</a>"
        assert protect(source) == source

    def test_comments_and_declaration_untouched(self):
        source = '<?xml version="1.0"?>\n<!-- a "b\nc" -->\n<a/>'
        assert protect(source) == source

    def test_carriage_return(self):
        assert protect('<a s="x\r\ny"/>') == '<a s="x&#13;&#10;y"/>'

    def test_tab_without_newline(self):
        assert protect('<o e="x=1\t-- c"/>') == '<o e="x=1&#9;-- c"/>'

    def test_lone_carriage_return(self):
        assert protect('<o v="a\rb"/>') == '<o v="a&#13;b"/>'


class TestOriginalLine:
    def test_no_protection_is_identity(self):
        protected = ProtectedText("<a>\n<b/>\n</a>")
        assert protected.original_line(1) == 1
        assert protected.original_line(3) == 3

    def test_lines_after_multiline_attribute_are_shifted(self):
        source = '<a>\n<b s="1\n2\n3"/>\n<c/>\n</a>'
        protected = ProtectedText(source)
        # <c/> sits on line 5 of the source and line 3 of the protected text
        assert protected.text.split("\n")[2] == "<c/>"
        assert protected.original_line(3) == 5
        assert protected.original_line(2) == 2
        assert protected.original_line(1) == 1

    def test_tabs_do_not_shift_lines(self):
        source = '<a s="1\t2"/>\n<b/>\n<c/>'
        protected = ProtectedText(source)
        assert protected.text.split("\n")[2] == "<c/>"
        assert protected.original_line(3) == 3

    def test_shifts_accumulate(self):
        source = '<a s="1\n2"/>\n<b s="3\n4"/>\n<c/>'
        protected = ProtectedText(source)
        assert protected.text.split("\n")[2] == "<c/>"
        assert protected.original_line(2) == 3
        assert protected.original_line(3) == 5


class TestRender:
    def test_self_closing(self):
        assert render_body(XmlNode(tag="out1")) == "<out1/>"

    def test_attributes_in_insertion_order(self):
        node = XmlNode(tag="pos", attributes={"y": "2", "x": "1"})
        assert render_body(node) == '<pos y="2" x="1"/>'

    def test_attribute_escaping(self):
        node = XmlNode(tag="o", attributes={"e": 'a<b & "c"\nnext'})
        assert render_body(node) == '<o e="a&lt;b &amp; &quot;c&quot;\nnext"/>'

    def test_nested_tab_indentation(self):
        node = XmlNode(tag="a", children=[XmlNode(tag="b", children=[XmlNode(tag="c")])])
        assert render_body(node) == "<a>\n\t<b>\n\t\t<c/>\n\t</b>\n</a>"

    def test_text_only_element_on_one_line(self):
        assert render_body(XmlNode(tag="t", text="x < y")) == "<t>x &lt; y</t>"


class TestRenderDocument:
    def test_declaration_and_trailing_blank_line(self):
        text = render_document(XmlNode(tag="microprocessor"))
        assert text == f"{XML_DECLARATION}\n<microprocessor/>\n\n"
