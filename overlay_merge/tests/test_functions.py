import ast
from textwrap import dedent

from overlay_merge.config import MergeConfig
from overlay_merge.merger import MergeOutcome, PythonOverlayMerger, merge_module_declarations


def merge(custom: str, generated: str, **options):
    return PythonOverlayMerger(MergeConfig(**options)).merge(dedent(custom), dedent(generated))


def function_names(code: str) -> list[str]:
    return [node.name for node in ast.parse(code).body if isinstance(node, ast.FunctionDef)]


GENERATED = """\
import requests


def fetch(url: str) -> bytes:
    \"\"\"Download a document.\"\"\"
    return requests.get(url).content


def ping() -> bool:
    return True
"""


class TestAddAndKeep:
    """Overlay-only and baseline-only functions"""

    def test_overlay_only_function_is_added(self):
        result = merge(
            """\
            def fetch_text(url: str) -> str:
                return fetch(url).decode()
            """,
            GENERATED,
        )
        assert result.outcome_of("fetch_text") is MergeOutcome.ADD
        assert function_names(result.code) == ["fetch", "ping", "fetch_text"]

    def test_baseline_only_function_is_kept(self):
        result = merge("", GENERATED)
        assert result.code == GENERATED
        assert result.outcome_of("fetch") is MergeOutcome.KEEP
        assert result.outcome_of("ping") is MergeOutcome.KEEP

    def test_add_is_idempotent(self):
        custom = """\
        def fetch_text(url: str) -> str:
            return fetch(url).decode()
        """
        once = merge(custom, GENERATED).code
        twice = merge(custom, once).code
        assert once == twice

    def test_overlay_only_file(self):
        result = merge(
            """\
            from __future__ import annotations

            import json


            def load(text: str) -> dict:
                return json.loads(text)
            """,
            "",
        )
        assert result.outcome_of("load") is MergeOutcome.ADD
        assert result.code.startswith("from __future__ import annotations\n")
        assert "import json\n" in result.code
        ast.parse(result.code)


class TestReplace:
    """Overlay functions that do not call through"""

    def test_replace_supersedes_baseline(self):
        result = merge(
            """\
            def ping() -> bool:
                return False
            """,
            GENERATED,
        )
        assert result.outcome_of("ping") is MergeOutcome.REPLACE
        assert "return True" not in result.code
        assert function_names(result.code) == ["fetch", "ping"]

    def test_baseline_docstring_kept_when_overlay_has_none(self):
        result = merge(
            """\
            def fetch(url: str) -> bytes:
                return b""
            """,
            GENERATED,
        )
        assert '"""Download a document."""' in result.code
        assert "requests.get(url)" not in result.code

    def test_overlay_comments_win(self):
        generated = """\
        import os


        # generated helper
        def ping() -> bool:
            return True
        """
        result = merge(
            """\
            import os


            # customized helper
            def ping() -> bool:
                return os.path.exists("/")
            """,
            generated,
        )
        assert "# customized helper" in result.code
        assert "# generated helper" not in result.code

    def test_baseline_comments_kept_when_overlay_has_none(self):
        generated = """\
        import os

        # generated helper
        def ping() -> bool:
            return True
        """
        result = merge(
            """\
            def ping() -> bool:
                return False
            """,
            generated,
        )
        assert "# generated helper\ndef ping() -> bool:\n    return False" in result.code

    def test_async_function(self):
        result = merge(
            """\
            async def ping() -> bool:
                return False
            """,
            GENERATED,
        )
        assert result.outcome_of("ping") is MergeOutcome.REPLACE
        assert "async def ping() -> bool:\n    return False" in result.code


class TestAugment:
    """Overlay functions calling through to the hidden original"""

    CUSTOM = """\
    from generated.client import fetch as _fetch


    def fetch(url: str) -> bytes:
        return _fetch(url.strip())
    """

    def test_baseline_is_hidden_and_overlay_appended(self):
        result = merge(self.CUSTOM, GENERATED)
        assert result.outcome_of("fetch") is MergeOutcome.AUGMENT
        assert function_names(result.code) == ["ping", "fetch", "_fetch"]
        assert "return requests.get(url).content" in result.code
        assert "return _fetch(url.strip())" in result.code

    def test_import_of_original_is_not_carried(self):
        result = merge(self.CUSTOM, GENERATED)
        assert "generated.client" not in result.code
        assert result.added_imports == []

    def test_overload_group_is_hidden_as_a_whole(self):
        generated = """\
        from typing import overload


        @overload
        def parse(value: int) -> int: ...


        @overload
        def parse(value: str) -> str: ...


        def parse(value):
            return value
        """
        custom = """\
        from typing import overload

        from generated.parsing import parse as _parse


        @overload
        def parse(value: int) -> int: ...


        @overload
        def parse(value: str) -> str: ...


        def parse(value):
            return _parse(value)
        """
        result = merge(custom, generated)
        assert function_names(result.code) == ["parse"] * 3 + ["_parse"] * 3

    def test_without_reorder_overlay_follows_baseline(self):
        result = merge(self.CUSTOM, GENERATED, reorder=False)
        assert function_names(result.code) == ["_fetch", "ping", "fetch"]


def test_merge_module_declarations():
    code = merge_module_declarations("def ping() -> bool:\n    return False\n", dedent(GENERATED))
    assert "return False" in code
