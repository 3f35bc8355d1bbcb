"""Tests for script execution: namespaces, output sinks and error routing."""

import io
import logging

import pytest

from kiln import (
    ErrorCode,
    ExecutionConfig,
    ExecutionError,
    PythonExecutor,
    compile_template,
    run,
)
from kiln.runtime import NAMESPACE_PREFIX, new_namespace


class TestOutput:
    def test_captured_by_default(self):
        script = compile_template("Hello {$name}!")
        assert run(script, context={"name": "Tom & Jerry"}) == "Hello Tom &#38; Jerry!"

    def test_document_order(self):
        script = compile_template("a<?py echo('b') ?>c<?py write('d') ?>{$e}")
        assert run(script, context={"e": "e"}) == "abcde"

    def test_print_goes_to_output(self):
        script = compile_template("<?py print('x', 1) ?>y")
        assert run(script) == "x 1\ny"

    def test_echo_helpers(self):
        script = compile_template("<?py echo(1, None, 'z') ?>|<?py echo('a', 'b', sep='-') ?>")
        assert run(script) == "1z|a-b"

    def test_loops_and_functions(self):
        source = (
            "<?py\n"
            "def item(n):\n"
            "    echo('<', n, '>')\n"
            "for i in range(3):\n"
            "    item(i)\n"
            "?>"
        )
        assert run(compile_template(source)) == "<0><1><2>"

    def test_code_continuing_after_opener_line(self):
        script = compile_template("<?py import math\nr = math.floor(2.5) ?>{$r}")
        assert run(script) == "2"

    def test_suite_opened_on_opener_line(self):
        assert run(compile_template("<?py for i in range(2):\n    echo(i) ?>")) == "01"

    def test_code_bindings_visible_to_interpolation(self):
        script = compile_template("<?py total = 2 * 21 ?>{$total}")
        assert run(script) == "42"

    def test_file_sink(self, tmp_path):
        target = tmp_path / "out.txt"
        script = compile_template("café {$n}")
        assert run(script, ExecutionConfig(output_file=target), {"n": 1}) is None
        assert target.read_text(encoding="utf-8") == "café 1"

    def test_stream_sink_is_left_open(self):
        stream = io.StringIO()
        stream.write(">")
        assert run(compile_template("x"), ExecutionConfig(output_file=stream)) is None
        assert stream.getvalue() == ">x"
        assert not stream.closed

    def test_output_before_failure_reaches_stream(self):
        stream = io.StringIO()
        config = ExecutionConfig(output_file=stream, errors_to=lambda e: None)
        run(compile_template("before<?py 1 / 0 ?>after"), config)
        assert stream.getvalue() == "before"


class TestNamespaces:
    def test_namespace_name(self):
        config = ExecutionConfig(namespace_id="abc")
        assert run(compile_template("{$__name__}"), config) == f"{NAMESPACE_PREFIX}abc"

    def test_fresh_ids(self):
        assert ExecutionConfig().namespace_id != ExecutionConfig().namespace_id

    def test_runs_do_not_share_state(self):
        define = compile_template("<?py secret = 1 ?>")
        use = compile_template("{$secret}")
        run(define)
        with pytest.raises(ExecutionError) as exc_info:
            run(use)
        assert exc_info.value.error_type == "NameError"

    def test_same_script_runs_repeatedly(self):
        script = compile_template("<?py n = start + 1 ?>{$n}")
        assert run(script, context={"start": 1}) == "2"
        assert run(script, context={"start": 10}) == "11"

    def test_context_is_not_mutated(self):
        context = {"x": 1}
        run(compile_template("<?py x = 2 ?>"), context=context)
        assert context == {"x": 1}

    def test_new_namespace_contents(self):
        namespace = new_namespace(ExecutionConfig(namespace_id="n1"), {"a": 1})
        assert namespace["__name__"] == "kiln.ns_n1"
        assert namespace["a"] == 1
        assert callable(namespace["_escape"])


class TestErrorRouting:
    def test_propagates_by_default(self):
        script = compile_template("ok\n<?py 1 / 0 ?>", reported_name="page.txt")
        with pytest.raises(ExecutionError) as exc_info:
            run(script)
        error = exc_info.value
        assert isinstance(error.__cause__, ZeroDivisionError)
        assert error.original is error.__cause__
        assert (error.template_name, error.lineno) == ("page.txt", 2)
        assert error.code is ErrorCode.EXECUTION_FAILED
        assert "Location: page.txt:2" in str(error)

    def test_callback(self):
        seen = []
        config = ExecutionConfig(errors_to=seen.append, namespace_id="cb")
        result = run(compile_template("<?py raise KeyError('k') ?>"), config)
        assert result is None
        (error,) = seen
        assert error.error_type == "KeyError"
        assert error.namespace_id == "cb"

    def test_stream(self):
        stream = io.StringIO()
        script = compile_template("\n\n<?py undefined_name ?>", reported_name="page.txt")
        assert run(script, ExecutionConfig(errors_to=stream)) is None
        text = stream.getvalue()
        assert "KLN-RUN-001" in text
        assert "NameError" in text
        assert "page.txt:3" in text

    def test_undefined_interpolation(self):
        with pytest.raises(ExecutionError) as exc_info:
            run(compile_template("a\nb {$missing}"))
        assert exc_info.value.lineno == 2
        assert "missing" in exc_info.value.message

    def test_empty_message_described(self):
        with pytest.raises(ExecutionError) as exc_info:
            run(compile_template("<?py raise ValueError() ?>"))
        assert exc_info.value.message == "(no details available)"

    def test_reported_filename_overrides_name(self):
        config = ExecutionConfig(reported_filename="shown.txt")
        with pytest.raises(ExecutionError) as exc_info:
            run(compile_template("<?py 1 / 0 ?>"), config)
        assert exc_info.value.template_name == "shown.txt"

    def test_base_exceptions_are_not_wrapped(self):
        with pytest.raises(SystemExit):
            run(compile_template("<?py raise SystemExit(3) ?>"))

    def test_logged_at_debug(self, caplog):
        with caplog.at_level(logging.DEBUG, logger="kiln.runtime"):
            run(compile_template("x"), ExecutionConfig(namespace_id="dbg"))
        assert "namespace dbg" in caplog.text


class TestConfig:
    def test_sink_kinds(self, tmp_path):
        from kiln import ErrorSink, OutputSink

        assert ExecutionConfig().output_sink is OutputSink.CAPTURED
        assert ExecutionConfig(output_file=tmp_path / "f").output_sink is OutputSink.FILE
        assert ExecutionConfig(output_file=io.StringIO()).output_sink is OutputSink.STREAM
        assert ExecutionConfig().error_sink is ErrorSink.PROPAGATE
        assert ExecutionConfig(errors_to=print).error_sink is ErrorSink.CALLBACK
        assert ExecutionConfig(errors_to=io.StringIO()).error_sink is ErrorSink.STREAM

    def test_invalid_sinks(self):
        with pytest.raises(TypeError, match="output_file"):
            ExecutionConfig(output_file=42)  # type: ignore[arg-type]
        with pytest.raises(TypeError, match="errors_to"):
            ExecutionConfig(errors_to="stderr")  # type: ignore[arg-type]

    def test_include_path_normalized(self):
        assert ExecutionConfig(include_path="inc").include_path == ("inc",)
        assert ExecutionConfig.build(include_path=["a", "b"]).include_path == ("a", "b")

    def test_build_allocates_namespace(self):
        assert ExecutionConfig.build(namespace_id="x").namespace_id == "x"
        assert ExecutionConfig.build().namespace_id


class TestExecutor:
    def test_custom_executor(self):
        calls = []

        class Recording(PythonExecutor):
            __slots__ = ()

            def execute(self, script, namespace, output):
                calls.append(namespace["__name__"])
                super().execute(script, namespace, output)

        out = run(compile_template("hi"), ExecutionConfig(namespace_id="r"), executor=Recording())
        assert out == "hi"
        assert calls == ["kiln.ns_r"]
