"""Tests for the segment dispatch table in the code generator."""

import typing

import pytest

from kiln import CodeGenerator, compile_template
from kiln.nodes import Segment


class TestDispatchTableStructure:
    """Verify dispatch table structure and completeness."""

    def test_every_segment_type_has_a_handler(self):
        """Each Segment member should dispatch by class name."""
        names = {cls.__name__ for cls in typing.get_args(Segment)}
        assert set(CodeGenerator()._dispatch) == names

    def test_handlers_are_generate_methods(self):
        for name, handler in CodeGenerator()._dispatch.items():
            assert callable(handler), f"Handler for {name} should be callable"
            assert handler.__name__.startswith("_generate_")


class TestDispatchBehavior:
    @pytest.mark.parametrize(
        ("source", "statements"),
        [
            ("text", 1),
            ("{$a}", 1),
            ("<?py a = 1\nb = 2 ?>", 2),
            ("x{$a}y<?py pass ?>", 4),
        ],
    )
    def test_statement_counts(self, source, statements):
        assert len(compile_template(source)) == statements

    def test_generator_is_reusable(self):
        from kiln import scan

        generator = CodeGenerator()
        first = generator.generate(scan("a"))
        second = generator.generate(scan("b{$c}"))
        assert len(first) == 1
        assert len(second) == 2
