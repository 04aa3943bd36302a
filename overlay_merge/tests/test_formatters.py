import logging
from pathlib import PurePosixPath

import pytest

from overlay_merge.config import FormatterConfig
from overlay_merge.formatters import BlackFormatter, RuffFormatter, get_formatter
from overlay_merge.merger import AtomicWriter, CodeMergeError


class TestFormatters:
    """Post-processing formatter selection"""

    def test_get_formatter(self):
        assert isinstance(get_formatter("black"), BlackFormatter)
        assert isinstance(get_formatter("ruff"), RuffFormatter)

    def test_unknown_formatter(self):
        with pytest.raises(ValueError, match="yapf"):
            get_formatter("yapf")

    def test_black_formatting(self):
        pytest.importorskip("black")
        assert BlackFormatter().format("x=[1,2]\n", FormatterConfig(enabled=True)) == "x = [1, 2]\n"

    def test_black_keeps_invalid_code(self):
        pytest.importorskip("black")
        assert BlackFormatter().format("def (:\n", FormatterConfig(enabled=True)) == "def (:\n"

    def test_missing_tool_leaves_code_unformatted(self, caplog):
        formatter = RuffFormatter()
        formatter._available = False
        with caplog.at_level(logging.WARNING):
            assert formatter.format("x=1\n", FormatterConfig(enabled=True), PurePosixPath("api/models.py")) == "x=1\n"
        assert "ruff is not installed, leaving api/models.py unformatted" in caplog.text

    def test_black_formats_stub_modules(self):
        pytest.importorskip("black")
        code = "class Pet:\n\n    name: str\n\n\n\ndef adopt() -> Pet: ...\n"
        formatted = BlackFormatter().format(code, FormatterConfig(enabled=True), PurePosixPath("api/models.pyi"))
        assert "\n\n\n" not in formatted
        assert "\ndef adopt() -> Pet: ...\n" in formatted


class TestAtomicWriter:
    """Validated writes of merged files"""

    def test_write(self, tmp_path):
        target = tmp_path / "pkg" / "module.py"
        AtomicWriter().write(target, "x = 1\n")
        assert target.read_text() == "x = 1\n"
        assert [p.name for p in target.parent.iterdir()] == ["module.py"]

    def test_invalid_code_is_not_written(self, tmp_path):
        target = tmp_path / "module.py"
        target.write_text("x = 1\n")
        with pytest.raises(CodeMergeError):
            AtomicWriter().write(target, "def (:\n")
        assert target.read_text() == "x = 1\n"
        assert [p.name for p in tmp_path.iterdir()] == ["module.py"]

    def test_validation_can_be_skipped(self, tmp_path):
        target = tmp_path / "module.py"
        AtomicWriter(atomic=False).write(target, "def (:\n", validate=False)
        assert target.read_text() == "def (:\n"
