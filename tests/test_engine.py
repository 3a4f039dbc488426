"""
End-to-end tests for Engine.process and session handling.
"""

import pytest
import textwrap

import fncalc
from fncalc import Engine, EngineConfig


@pytest.fixture
def engine():
    return Engine()


def run(engine, source):
    return engine.process(textwrap.dedent(source))


# --- Arithmetic ---

class TestArithmetic:
    """Operator precedence and decimal results."""

    @pytest.mark.parametrize("source,expected", [
        ("(1 / 3) * 3", "1"),
        ("5+(2.0-3)*4.9", "0.1"),
        ("5+2.0-3*4.9", "-7.7"),
        ("2 + -2 ^ 8", "258"),
        ("2^-(1)*3", "1.5"),
        ("456-41-675*2^3-15", "-5000"),
        ("(456-41-675)*2^3-15", "-2095"),
        ("3+4*50/5^2%5-1", "5"),
        ("(1+-4/2.5)*16-(7%2)^3/5", "-9.8"),
        ("((1+-4)/2.5)*16-(7%2)^3/5", "-19.4"),
        ("2^4*(10%4+17.5-5)/2.5", "92.8"),
    ])
    def test_precedence(self, engine, source, expected):
        """Mixed operators follow the precedence table."""
        assert engine.process(source) == expected

    def test_division_by_zero(self, engine):
        """Division by zero points at the operator."""
        assert engine.process("1 / 0") == "1 / 0\n  ^\nError: Division by zero"

    def test_division_by_computed_zero(self, engine):
        """A divisor that evaluates to zero is also rejected."""
        assert engine.process("5/(10 - 2 * 5)") == (
            "5/(10 - 2 * 5)\n ^\nError: Division by zero"
        )

    def test_modulo_with_wide_quotient(self, engine):
        """The integer quotient may exceed the working precision."""
        assert engine.process("1000000000000000000000000000 % 0.0001") == "0"
        assert engine.process("1000000000000000000000000001 % 0.0003") == "0.0002"

    def test_modulo_by_zero(self, engine):
        assert engine.process("5 % 0") == "5 % 0\n  ^\nError: Division by zero"

    def test_modulo_sign_follows_dividend(self, engine):
        assert engine.process("-7 % 3") == "-1"
        assert engine.process("7 % -3") == "1"

    def test_negative_zero_prints_as_zero(self, engine):
        assert engine.process("-0") == "0"
        assert engine.process("0 * -1") == "0"

    def test_rounding_to_six_places(self, engine):
        assert engine.process("2 / 3") == "0.666667"
        assert engine.process("0.0000004") == "0"

    def test_large_results_use_plain_notation(self, engine):
        assert engine.process("10 ^ 20") == "100000000000000000000"

    def test_power_zero_zero(self, engine):
        assert engine.process("0 ^ 0") == "1"

    def test_invalid_exponents(self, engine):
        """Negative base with fractional exponent and zero to a negative power."""
        assert engine.process("(-8) ^ 0.5") == "(-8) ^ 0.5\n     ^\nError: Invalid exponent"
        assert engine.process("0 ^ -1") == "0 ^ -1\n  ^\nError: Invalid exponent"

    def test_power_overflow(self, engine):
        assert engine.process("10 ^ 100").endswith("Error: Invalid exponent")

    def test_negative_base_integer_exponent(self, engine):
        assert engine.process("(-2) ^ 3") == "-8"

    def test_addition_overflow_is_math_error(self, engine):
        result = engine.process("9000000000000000000000000000 * 90 + 1")
        assert result.endswith("Error: Math error")

    def test_number_literal_out_of_range(self, engine):
        result = engine.process("1" + "0" * 40)
        assert result.endswith("Error: Invalid number")


# --- Math functions ---

class TestMathFunctions:
    """Built-in trigonometric, logarithmic and absolute value functions."""

    @pytest.mark.parametrize("source,expected", [
        ("sin pi", "0"),
        ("cos (pi/2)", "0"),
        ("tan (pi/4)", "1"),
        ("asin 1", "1.570796"),
        ("acos 0", "1.570796"),
        ("atan pi", "1.262627"),
        ("sind 90", "1"),
        ("cosd 90", "0"),
        ("tand 45", "1"),
        ("asind 1", "90"),
        ("acosd 1", "0"),
        ("atand 1", "45"),
        ("ln 2", "0.693147"),
        ("log 100", "2"),
        ("sind90^2", "1"),
        ("sin cos 0", "0.841471"),
        ("abs -5.25", "5.25"),
        ("tan 0", "0"),
        ("tan pi", "0"),
    ])
    def test_values(self, engine, source, expected):
        assert engine.process(source) == expected

    @pytest.mark.parametrize("source", [
        "tan(pi/2)",
        "tan(5 * pi/2)",
        "tand(90)",
        "tand(5 * 90)",
        "tand(90 + 180 * 3)",
        "tan(3*pi/2)",
        "tan(7*pi/2)",
        "asin 2",
        "acos -2",
        "asind -2",
        "acosd 2",
        "ln 0",
        "log -1",
    ])
    def test_domain_errors(self, engine, source):
        """Out-of-domain inputs fail with a math error at the function."""
        assert engine.process(source) == f"{source}\n^\nError: Math error"


# --- Logic ---

class TestLogic:
    """Boolean operators and comparisons yield 1 or 0."""

    @pytest.mark.parametrize("source,expected", [
        ("2 and 2", "1"), ("2 and 0", "0"), ("0 and 1", "0"), ("0 and 0", "0"),
        ("2 or 2", "1"), ("2 or 0", "1"), ("0 or 1", "1"), ("0 or 0", "0"),
        ("not 0", "1"), ("not 3", "0"),
        ("1 < 2", "1"), ("2 < 1", "0"), ("1 > 2", "0"), ("2 > 1", "1"),
        ("1 == 1", "1"), ("1 == 2", "0"), ("2 == 1", "0"),
        ("1 != 1", "0"), ("1 != 2", "1"), ("2 != 1", "1"),
    ])
    def test_truth_table(self, engine, source, expected):
        assert engine.process(source) == expected

    def test_comparison_binds_looser_than_logic(self, engine):
        """`5 == 3 or 0` compares 5 with (3 or 0)."""
        assert engine.process("5 == 3 or 0") == "0"
        assert engine.process("1 == 3 or 0") == "1"


# --- Variables ---

class TestVariables:
    """Assignment and session persistence."""

    def test_undefined_identifier(self, engine):
        assert engine.process("x") == "x\n^\nError: Identifier not found"

    def test_assignment_value(self, engine):
        assert engine.process("x = 3") == "3"

    def test_assignment_persists_across_calls(self, engine):
        engine.process("x = 3")
        assert engine.process("x + 1") == "4"

    def test_multiline_input(self, engine):
        assert engine.process("x = 3\nx + 1") == "4"

    def test_chained_assignment(self, engine):
        assert engine.process("x = y = 1\nx + y") == "2"

    def test_reassignment(self, engine):
        assert engine.process("x = 1\n x = x + 10") == "11"

    def test_assignment_of_expression(self, engine):
        assert engine.process("x = (5 + 2) ^ 3\nx + 1") == "344"

    def test_invalid_assignment(self, engine):
        assert engine.process("3 = 4") == "3 = 4\n  ^\nError: Invalid assignment"

    def test_reset_clears_variables(self, engine):
        engine.process("x = 5")
        engine.reset()
        assert engine.process("x") == "x\n^\nError: Identifier not found"

    def test_reset_then_redefine_matches_fresh_session(self, engine):
        """After reset the same inputs give the same results again."""
        inputs = ["fn sq(v) { v * v }", "x = 4", "y = sq(x) + 1", "sq(y) - x", "print y"]
        first = [engine.process(text) for text in inputs]
        engine.reset()
        assert engine.process("y") == "y\n^\nError: Identifier not found"
        assert [engine.process(text) for text in inputs] == first
        assert first == ["", "4", "17", "285", "17"]

    def test_error_keeps_earlier_assignments(self, engine):
        """State changes made before a failure remain."""
        assert engine.process("x = 7\ny = 1 / 0").endswith("Error: Division by zero")
        assert engine.process("x") == "7"

    def test_pi_is_constant(self, engine):
        assert engine.process("pi") == "3.141593"
        assert engine.process("pi = 3").startswith("pi = 3\n")


# --- Control flow ---

class TestControlFlow:
    """Branches, loops, print and break."""

    def test_while_with_print(self, engine):
        result = engine.process("x = 0; while x < 5 { x = x + 1; print x; }")
        assert result == "1\n2\n3\n4\n5"

    def test_while_with_break(self, engine):
        result = engine.process(
            "x = 0; while x < 5 { x = x + 1; print x; if x == 3 { break }}"
        )
        assert result == "1\n2\n3"

    def test_nested_loops(self, engine):
        result = run(engine, """
            x = y = z = 0
            while x < 12 {
              while y < 4 {
                y = y + 1
              }
              x = x + 1
              if x + y > 9 {
                z = z + 1
                if x == 8 {
                  if 1 and 1 and not 0 {
                    break
                  }
                }
              }
            }
            x + y + z
        """)
        assert result == "15"

    def test_branching(self, engine):
        result = run(engine, """
            x = 0
            if not 0 > 0 {
              if 5 == 3 or not 1 { x = x + 1 }
              if 0 < 11 - (2 * 5) and 5 / 5 { x = x + 5 }
            }
            x
        """)
        assert result == "5"

    def test_if_else(self, engine):
        result = engine.process("x = 3; if x > 10 {x = x + 10} else { x = x - 1 } x")
        assert result == "2"

    def test_else_if_chain(self, engine):
        source = "x = {}\nif x < 0 {{ -1 }} else if x == 0 {{ 0 }} else {{ 1 }}"
        assert engine.process(source.format(-5)) == "-1"
        assert engine.process(source.format(0)) == "0"
        assert engine.process(source.format(5)) == "1"

    def test_branch_without_value(self, engine):
        """A false branch without else produces no output."""
        assert engine.process("if 0 { 1 }") == ""

    def test_print_then_value_shows_only_output(self, engine):
        assert engine.process("print 1\n2") == "1"

    def test_print_then_error_shows_only_diagnostic(self, engine):
        """Output printed before a failure is dropped."""
        assert engine.process("print 1\n5/(10-2*5)") == "5/(10-2*5)\n ^\nError: Division by zero"

    def test_inner_break_ends_only_inner_loop(self, engine):
        result = run(engine, """
            x = 0; y = 0; c = 0
            while x < 3 { x = x + 1; y = 0; while 1 { y = y + 1; if y == 2 {break} } c = c + y }
            c
        """)
        assert result == "6"

    def test_top_level_return_discards_output(self, engine):
        assert engine.process("print 1\nreturn 42\nprint 2") == "42"

    def test_top_level_break_appends_last_value(self, engine):
        assert engine.process("print 1\n5\nif 1 { break }\nprint 2") == "1\n5"

    def test_comments(self, engine):
        assert engine.process("x = 2  # two\n# nothing here\nx * 3") == "6"

    def test_syntax_error(self, engine):
        assert engine.process("1 +") == "1 +\n   ^\nError: Syntax error"

    def test_syntax_error_applies_nothing(self, engine):
        """A syntax error anywhere means no statement of the input runs."""
        engine.process("x = 1\ny = (")
        assert engine.process("x") == "x\n^\nError: Identifier not found"


# --- Functions ---

class TestFunctions:
    """User-defined functions, recursion and call errors."""

    def test_undefined_function(self, engine):
        assert engine.process("pow(2, 6)") == "pow(2, 6)\n^\nError: Identifier not found"

    def test_recursive_power(self, engine):
        result = run(engine, """
            fn power(base, exponent) {
                if exponent == 0 {
                    return 1
                }
                return base * power(base, exponent - 1)
            }

            print power(2, 8)
        """)
        assert result == "256"

    def test_functions_calling_later_definitions(self, engine):
        result = run(engine, """
            fn count_up () {
                x = 0
                while 1 {
                    if x == 5 {
                        break
                    }
                    else {
                        x = x + 1
                        print x
                    }
                }
                if x == 5 {
                    return add_one(x)
                }
                x = x + 10
            }

            fn add_one(lhs) {
                lhs + 1
            }

            print add_one(count_up())
        """)
        assert result == "1\n2\n3\n4\n5\n7"

    def test_missing_return_value(self, engine):
        result = engine.process("fn none() {}\n5 + none()")
        assert result == "5 + none()\n    ^\nError: Function did not return a value"

    def test_valueless_call_as_statement(self, engine):
        """A call without a value is fine in statement position."""
        assert engine.process("fn none() {}\nnone()") == ""

    def test_too_few_arguments(self, engine):
        result = engine.process("fn f(x) {x}\nf()")
        assert result == "f()\n^\nError: Invalid number of arguments passed to function"

    def test_too_many_arguments(self, engine):
        result = engine.process("fn f(x) {x}\nf(1, 2)")
        assert result == (
            "f(1, 2)\n^\nError: Invalid number of arguments passed to function"
        )

    def test_definitions_persist(self, engine):
        engine.process("fn sq(x) { x * x }")
        assert engine.process("sq(1.5)") == "2.25"

    def test_redefinition_replaces(self, engine):
        engine.process("fn f() { 1 }")
        engine.process("fn f() { 2 }")
        assert engine.process("f()") == "2"

    def test_locals_do_not_leak(self, engine):
        engine.process("fn f(a) { b = a * 2\nb }")
        assert engine.process("f(4)") == "8"
        assert engine.process("b") == "b\n^\nError: Identifier not found"

    def test_function_cannot_see_globals(self, engine):
        """Scoping is non-lexical: only the current frame is visible."""
        engine.process("g = 10\nfn f() { g }")
        assert engine.process("f()") == "g\n^\nError: Identifier not found"

    def test_arguments_evaluated_in_caller_scope(self, engine):
        engine.process("a = 3\nfn f(a) { a + 1 }")
        assert engine.process("f(a * 2)") == "7"
        assert engine.process("a") == "3"

    def test_reset_clears_functions(self, engine):
        engine.process("fn f() { 1 }")
        engine.reset()
        assert engine.process("f()") == "f()\n^\nError: Identifier not found"

    def test_builtins_cannot_be_redefined(self, engine):
        assert engine.process("fn sin(x) { x }").endswith("Error: Syntax error")


# --- Guards ---

class TestGuards:
    """Loop and recursion limits."""

    def test_infinite_loop(self, engine):
        assert engine.process("while 1 {}") == "Error: Maximum iteration count reached"

    def test_infinite_recursion(self, engine):
        result = engine.process("fn inf_rec() { inf_rec() }\ninf_rec()")
        assert result == "Error: Maximum iteration count reached"

    def test_loop_limit_is_exact(self):
        engine = Engine(EngineConfig(loop_limit=10))
        assert engine.process("x = 0\nwhile x < 10 { x = x + 1 }\nx") == "10"
        assert engine.process("x = 0\nwhile x < 11 { x = x + 1 }") == (
            "Error: Maximum iteration count reached"
        )

    def test_loop_counter_is_per_invocation(self):
        engine = Engine(EngineConfig(loop_limit=5))
        source = "x = 0\nwhile x < 5 { x = x + 1 }\ny = 0\nwhile y < 5 { y = y + 1 }\nx + y"
        assert engine.process(source) == "10"

    def test_call_limit(self):
        engine = Engine(EngineConfig(call_limit=10))
        engine.process("fn down(n) { if n == 0 { return 0 }\nreturn down(n - 1) }")
        assert engine.process("down(9)") == "0"
        assert engine.process("down(10)") == "Error: Maximum iteration count reached"

    def test_call_depth_recovers_after_failure(self, engine):
        engine.process("fn inf_rec() { inf_rec() }\ninf_rec()")
        assert engine.environment.call_depth == 0
        assert engine.environment.frames == []
        assert engine.process("1 + 1") == "2"


# --- Configuration and module-level session ---

class TestEngineConfiguration:

    def test_display_places(self):
        engine = Engine(EngineConfig(display_places=2))
        assert engine.process("2 / 3") == "0.67"
        assert engine.process("print 1 / 8") == "0.12"

    def test_module_level_session(self):
        fncalc.reset()
        fncalc.process("module_level = 12")
        assert fncalc.process("module_level / 4") == "3"
        fncalc.reset()
        assert fncalc.process("module_level").endswith("Error: Identifier not found")
