"""Tests for format encoders, escaping helpers and language tags."""

from __future__ import annotations

import unittest

from contextbuilder.aggregate import (
    ENCODERS,
    OUTPUT_FORMATS,
    FileBlock,
    escape_xml,
    file_extension,
    get_encoder,
    language_for_path,
    relative_display_path,
)
from contextbuilder.aggregate.formats import cdata, code_fence, escape_heading, inline_code, wrap_prompt


def _block(**overrides) -> FileBlock:
    values = dict(
        path="src/a.py",
        name="a.py",
        file_id=3,
        language="python",
        extension="py",
        content="print(1)",
        depth=1,
    )
    values.update(overrides)
    return FileBlock(**values)


class EscapingTests(unittest.TestCase):
    def test_escape_xml_covers_five_entities(self) -> None:
        self.assertEqual(escape_xml("<a href=\"x\">'&'</a>"), "&lt;a href=&quot;x&quot;&gt;&apos;&amp;&apos;&lt;/a&gt;")

    def test_cdata_splits_terminator(self) -> None:
        self.assertEqual(cdata("a]]>b"), "<![CDATA[a]]]]><![CDATA[>b]]>")

    def test_heading_is_single_line(self) -> None:
        self.assertEqual(escape_heading("a\nb#c"), "a b&#35;c")

    def test_relative_display_path(self) -> None:
        self.assertEqual(relative_display_path("/proj", "/proj/sub/b.py"), "sub/b.py")
        self.assertEqual(relative_display_path("/proj/", "/proj/a.ts"), "a.ts")
        self.assertEqual(relative_display_path("/proj", "/proj"), ".")
        self.assertEqual(relative_display_path("C:\\proj", "C:\\proj\\src\\m.rs"), "src/m.rs")
        self.assertEqual(relative_display_path("/proj", "/other/x.py"), "other/x.py")
        self.assertEqual(relative_display_path("/proj", "/project/x.py"), "project/x.py")


class LanguageTagTests(unittest.TestCase):
    def test_file_extension(self) -> None:
        self.assertEqual(file_extension("a.TS"), "ts")
        self.assertEqual(file_extension("dir/archive.tar.gz"), "gz")
        self.assertEqual(file_extension(".gitignore"), "")
        self.assertEqual(file_extension("Makefile"), "")

    def test_table_lookup(self) -> None:
        self.assertEqual(language_for_path("a.tsx"), "typescript")
        self.assertEqual(language_for_path("lib.rs"), "rust")
        self.assertEqual(language_for_path("x/y/z.py"), "python")

    def test_unknown_names_fall_back_to_lexer_registry_or_empty(self) -> None:
        self.assertEqual(language_for_path("Makefile"), "make")
        self.assertEqual(language_for_path("notes.unknownext123"), "")


class EncoderTests(unittest.TestCase):
    def test_registry_covers_all_formats(self) -> None:
        self.assertEqual(set(ENCODERS), set(OUTPUT_FORMATS))
        with self.assertRaises(ValueError):
            get_encoder("html")

    def test_markdown_block(self) -> None:
        self.assertEqual(
            get_encoder("markdown").file_block(_block()),
            "## File: src/a.py\n"
            "- Path: `src/a.py`\n"
            "- ID: 3\n"
            "- Language: python\n"
            "\n"
            "````python\n"
            "print(1)\n"
            "````\n"
            "\n"
            "---\n"
            "\n",
        )

    def test_markdown_unknown_language_uses_bare_fence(self) -> None:
        text = get_encoder("markdown").file_block(_block(language="", extension="zzz", content="x\n"))
        self.assertIn("- Language: text\n", text)
        self.assertIn("````\nx\n````\n", text)

    def test_markdown_finalize_drops_dangling_separator(self) -> None:
        encoder = get_encoder("markdown")
        self.assertEqual(encoder.finalize("body\n\n---\n\n"), "body\n")
        self.assertEqual(encoder.finalize(""), "")

    def test_xml_block_indents_by_depth_and_falls_back_to_extension(self) -> None:
        text = get_encoder("xml").file_block(_block(language="", extension="zzz", depth=2, name="a&b.zzz"))
        self.assertEqual(
            text,
            '  <file name="a&amp;b.zzz" path="src/a.py" format="zzz">\n'
            "    <content><![CDATA[print(1)]]></content>\n"
            "  </file>\n",
        )

    def test_xml_folder_and_tree_wrapper(self) -> None:
        encoder = get_encoder("xml")
        self.assertEqual(encoder.folder_header("sub", "sub", 1), '<folder name="sub" path="sub">\n')
        self.assertEqual(encoder.folder_footer(2), "  </folder>\n")
        self.assertEqual(encoder.wrap_tree("r/\n"), "<File_Tree><![CDATA[\nr/\n]]></File_Tree>\n")
        self.assertEqual(encoder.finalize("<x/>"), "<x/>\n")

    def test_sentinel_block_uses_text_fallback(self) -> None:
        text = get_encoder("sentinel").file_block(_block(language="", extension="", content="abc"))
        self.assertEqual(
            text,
            "-----BEGIN FILE path=src/a.py id=3 format=text-----\nabc\n-----END FILE-----\n\n",
        )

    def test_raw_block_and_tree(self) -> None:
        encoder = get_encoder("raw")
        self.assertEqual(encoder.file_block(_block()), "--- src/a.py ---\n```python\nprint(1)\n```\n\n")
        self.assertEqual(encoder.wrap_tree("r/"), "File tree:\nr/\n")

    def test_non_xml_formats_have_no_folder_framing(self) -> None:
        for name in ("markdown", "sentinel", "raw"):
            encoder = get_encoder(name)
            self.assertEqual(encoder.folder_header("sub", "sub", 1), "")
            self.assertEqual(encoder.folder_footer(1), "")


class FenceTests(unittest.TestCase):
    def test_code_fence_outgrows_backtick_runs(self) -> None:
        self.assertEqual(code_fence("plain", 3), "```")
        self.assertEqual(code_fence("a ``` b", 3), "````")
        self.assertEqual(code_fence("`````", 4), "``````")

    def test_raw_fence_is_longer_than_embedded_fence(self) -> None:
        content = "Example:\n```python\nx = 1\n```"
        text = get_encoder("raw").file_block(_block(language="markdown", content=content))
        self.assertEqual(text, "--- src/a.py ---\n````markdown\n" + content + "\n````\n\n")

    def test_markdown_fence_is_longer_than_embedded_fence(self) -> None:
        content = "````\nnested\n````"
        text = get_encoder("markdown").file_block(_block(language="", content=content))
        self.assertIn("`````\n" + content + "\n`````\n", text)

    def test_inline_code_survives_backticks(self) -> None:
        self.assertEqual(inline_code("src/a.py"), "`src/a.py`")
        self.assertEqual(inline_code("we`ird.py"), "``we`ird.py``")
        self.assertEqual(inline_code("`edge"), "`` `edge ``")

    def test_markdown_path_line_uses_inline_code(self) -> None:
        text = get_encoder("markdown").file_block(_block(path="odd`name.py"))
        self.assertIn("- Path: ``odd`name.py``\n", text)


class PromptWrappingTests(unittest.TestCase):
    def test_blank_preamble_and_query_leave_text_alone(self) -> None:
        self.assertEqual(wrap_prompt("body\n"), "body\n")
        self.assertEqual(wrap_prompt("body\n", preamble="  \n", query=""), "body\n")

    def test_preamble_before_and_query_after(self) -> None:
        self.assertEqual(
            wrap_prompt("body\n", preamble="Context follows.", query="What does it do?\n"),
            "<preamble>\nContext follows.\n</preamble>\n\nbody\n\n<query>\nWhat does it do?\n</query>\n",
        )

    def test_custom_and_blank_tags(self) -> None:
        self.assertEqual(
            wrap_prompt("", preamble="p", query="q", preamble_tag="system", query_tag=" "),
            "<system>\np\n</system>\n\n<query>\nq\n</query>\n",
        )


if __name__ == "__main__":
    unittest.main()
