"""
Unit tests for the Monkey parser.
"""

import pytest
from monkey import (
    parse, Lexer, Parser, Precedence, TokenType,
    Identifier, Literal, PrefixOp, InfixOp, IfExpr, FunctionLiteral, CallExpr,
    LetStatement, ReturnStatement, ExpressionStatement, Block, Program,
    LexerError, ParserError, DiagnosticCollector, ErrorSeverity,
    AstVisitor, format_ast,
)


def parse_ok(source: str) -> Program:
    """Parse source that must not contain errors."""
    program = parse(source)
    assert not program.has_errors, [str(e) for e in program.errors]
    return program


def parse_expr(source: str):
    """Parse a single expression statement and return its expression."""
    program = parse_ok(source)
    assert len(program.statements) == 1
    stmt = program.statements[0]
    assert isinstance(stmt, ExpressionStatement)
    return stmt.expression


class TestStatementParsing:
    """Test let, return and expression statements."""

    def test_let_statements(self):
        program = parse_ok("""
            let x = 5;
            let y = 10;
            let foobar = 89;
        """)
        assert len(program.statements) == 3
        assert [s.name.name for s in program.statements] == ["x", "y", "foobar"]
        assert all(isinstance(s, LetStatement) for s in program.statements)

    def test_let_value(self):
        stmt = parse_ok("let my_var = another_var;").statements[0]
        assert isinstance(stmt.value, Identifier)
        assert stmt.value.name == "another_var"

    def test_return_statements(self):
        program = parse_ok("""
            return 5;
            return 10;
            return add(15);
        """)
        assert len(program.statements) == 3
        assert all(isinstance(s, ReturnStatement) for s in program.statements)
        assert isinstance(program.statements[2].value, CallExpr)

    def test_identifier_expression(self):
        expr = parse_expr("foobar;")
        assert isinstance(expr, Identifier)
        assert expr.name == "foobar"

    def test_semicolons_are_optional(self):
        program = parse_ok("let x = 5 let y = 6 x + y")
        assert len(program.statements) == 3

    def test_empty_program(self):
        program = parse_ok("")
        assert program.results == []

    def test_statement_span(self):
        stmt = parse_ok("let x = 5;").statements[0]
        assert stmt.span.start.column == 1
        assert stmt.span.end.column == 11


class TestLiteralParsing:
    """Test literal expressions."""

    def test_integer_literal(self):
        expr = parse_expr("5;")
        assert isinstance(expr, Literal)
        assert expr.value == 5
        assert expr.literal_type == TokenType.INT_LITERAL

    def test_boolean_literals(self):
        assert parse_expr("true").value is True
        assert parse_expr("false").value is False
        assert parse_expr("true").literal_type == TokenType.BOOL_LITERAL

    def test_string_literal(self):
        expr = parse_expr('"hello world";')
        assert expr.value == "hello world"
        assert expr.literal_type == TokenType.STRING_LITERAL


class TestExpressionParsing:
    """Test operator precedence and expression forms."""

    @pytest.mark.parametrize("source,expected", [
        ("-a * b", "((-a) * b)"),
        ("!-a", "(!(-a))"),
        ("a + b + c", "((a + b) + c)"),
        ("a + b - c", "((a + b) - c)"),
        ("a * b * c", "((a * b) * c)"),
        ("a * b / c", "((a * b) / c)"),
        ("a + b / c", "(a + (b / c))"),
        ("a + b * c + d / e - f", "(((a + (b * c)) + (d / e)) - f)"),
        ("5 > 4 == 3 < 4", "((5 > 4) == (3 < 4))"),
        ("5 < 4 != 3 > 4", "((5 < 4) != (3 > 4))"),
        ("3 + 4 * 5 == 3 * 1 + 4 * 5", "((3 + (4 * 5)) == ((3 * 1) + (4 * 5)))"),
        ("3 > 5 == false", "((3 > 5) == false)"),
        ("1 + (2 + 3) + 4", "((1 + (2 + 3)) + 4)"),
        ("(5 + 5) * 2", "((5 + 5) * 2)"),
        ("2 / (5 + 5)", "(2 / (5 + 5))"),
        ("-(5 + 5)", "(-(5 + 5))"),
        ("!(true == true)", "(!(true == true))"),
        ("a + add(b * c) + d", "((a + add((b * c))) + d)"),
        ("add(a, b, 1, 2 * 3, 4 + 5, add(6, 7 * 8))",
         "add(a, b, 1, (2 * 3), (4 + 5), add(6, (7 * 8)))"),
        ("5++++5", "(5 + (+(+(+5))))"),
    ])
    def test_operator_precedence(self, source, expected):
        assert str(parse_expr(source)) == expected

    def test_prefix_operators(self):
        for source, op in [("!5", "!"), ("-15", "-"), ("+15", "+")]:
            expr = parse_expr(source)
            assert isinstance(expr, PrefixOp)
            assert expr.operator == op
            assert isinstance(expr.operand, Literal)

    def test_infix_operators(self):
        for op in ["+", "-", "*", "/", ">", "<", "==", "!="]:
            expr = parse_expr(f"5 {op} 5")
            assert isinstance(expr, InfixOp)
            assert expr.operator == op
            assert expr.left.value == 5
            assert expr.right.value == 5

    def test_if_expression(self):
        expr = parse_expr("if (x < y) { x }")
        assert isinstance(expr, IfExpr)
        assert str(expr.condition) == "(x < y)"
        assert len(expr.consequence.statements) == 1
        # A missing else is an empty block
        assert isinstance(expr.alternative, Block)
        assert expr.alternative.statements == []

    def test_if_else_expression(self):
        expr = parse_expr("if (x < y) { x } else { y }")
        assert isinstance(expr.alternative, Block)
        assert str(expr.alternative.statements[0]) == "y"

    def test_function_literal(self):
        expr = parse_expr("fn(x, y) { x + y; }")
        assert isinstance(expr, FunctionLiteral)
        assert [p.name for p in expr.parameters] == ["x", "y"]
        assert str(expr.body.statements[0]) == "(x + y)"

    @pytest.mark.parametrize("source,params", [
        ("fn() {};", []),
        ("fn(x) {};", ["x"]),
        ("fn(x, y, z) {};", ["x", "y", "z"]),
    ])
    def test_function_parameters(self, source, params):
        assert [p.name for p in parse_expr(source).parameters] == params

    def test_call_expression(self):
        expr = parse_expr("add(1, 2 * 3, 4 + 5);")
        assert isinstance(expr, CallExpr)
        assert str(expr.callee) == "add"
        assert [str(a) for a in expr.arguments] == ["1", "(2 * 3)", "(4 + 5)"]

    def test_call_without_arguments(self):
        expr = parse_expr("f()")
        assert isinstance(expr, CallExpr)
        assert expr.arguments == []

    def test_immediate_call_of_function_literal(self):
        expr = parse_expr("fn(x) { x }(5)")
        assert isinstance(expr, CallExpr)
        assert isinstance(expr.callee, FunctionLiteral)

    def test_chained_calls(self):
        expr = parse_expr("newAdder(2)(3)")
        assert isinstance(expr, CallExpr)
        assert isinstance(expr.callee, CallExpr)

    def test_precedence_ordering(self):
        assert Precedence.LOWEST < Precedence.EQUALS < Precedence.LESSGREATER
        assert Precedence.SUM < Precedence.PRODUCT < Precedence.PREFIX < Precedence.CALL

    def test_nesting_within_limit(self):
        source = "(" * 100 + "1" + ")" * 100
        assert str(parse_expr(source)) == "1"


class TestParserErrors:
    """Test parse error reporting."""

    def first_error(self, source: str):
        program = parse(source)
        assert program.has_errors
        return program.errors[0]

    def test_missing_let_identifier(self):
        error = self.first_error("let = 5;")
        assert isinstance(error, ParserError)
        assert error.code == "E101"

    def test_missing_assign(self):
        error = self.first_error("let x 5;")
        assert error.code == "E101"
        assert "'='" in error.message
        assert "'5'" in error.message

    def test_missing_expression(self):
        error = self.first_error("let x = ;")
        assert error.code == "E103"

    def test_unclosed_group(self):
        error = self.first_error("(1 + 2")
        assert error.code == "E102"

    def test_unclosed_block(self):
        error = self.first_error("fn(x) { x")
        assert error.code == "E102"
        assert "'}'" in error.message

    def test_unexpected_token_in_group(self):
        error = self.first_error("(1 2)")
        assert error.code == "E104"

    def test_missing_comma_in_arguments(self):
        error = self.first_error("add(1 2)")
        assert error.code == "E104"

    def test_bad_parameter(self):
        error = self.first_error("fn(1) { 1 }")
        assert error.code == "E101"
        assert "parameter name" in error.message

    def test_if_requires_parentheses(self):
        error = self.first_error("if x { 1 }")
        assert error.code == "E101"

    def test_nesting_too_deep(self):
        source = "(" * 600 + "1" + ")" * 600
        error = self.first_error(source)
        assert error.code == "E105"

    def test_custom_nesting_limit(self):
        program = Parser(Lexer("-(-(-(-1)))"), max_depth=3).parse_program()
        assert program.errors[0].code == "E105"

    def test_lexer_error_becomes_statement_error(self):
        program = parse("let x = @; let y = 2;")
        assert isinstance(program.results[0], LexerError)
        assert program.results[0].code == "E001"
        assert isinstance(program.results[1], LetStatement)
        assert program.results[1].name.name == "y"

    def test_illegal_token_after_expression(self):
        program = parse("5 @")
        assert len(program.results) == 1
        assert isinstance(program.results[0], LexerError)

    def test_illegal_token_fails_the_statement_it_follows(self):
        program = parse("let x = 5 @ ; let y = 2;")
        assert [type(r).__name__ for r in program.results] == ["LexerError", "LetStatement"]
        assert program.results[0].code == "E001"
        assert program.results[1].name.name == "y"

    def test_illegal_token_after_return_in_block(self):
        program = parse("fn() { return 1 @ }; 7")
        assert isinstance(program.results[0], LexerError)
        assert isinstance(program.results[-1], ExpressionStatement)

    def test_stack_exhaustion_becomes_nesting_error(self):
        source = "(" * 6000 + "1" + ")" * 6000
        program = parse(source + "; 2", max_depth=100000)
        assert program.results[0].code == "E105"
        assert str(program.results[-1]) == "2"

    def test_error_message_has_location(self):
        error = self.first_error("let x = 1;\nlet = 2;")
        assert error.diagnostic.span.start.line == 2
        assert "let = 2;" in str(error)


class TestErrorRecovery:
    """Test that parsing continues after a failed statement."""

    def test_recovers_at_semicolon(self):
        program = parse("let x = ; let y = 5; y")
        assert len(program.results) == 3
        assert isinstance(program.results[0], ParserError)
        assert isinstance(program.results[1], LetStatement)
        assert isinstance(program.results[2], ExpressionStatement)

    def test_recovers_at_let(self):
        program = parse("let x 5\nlet y = 1")
        assert isinstance(program.results[0], ParserError)
        assert isinstance(program.results[-1], LetStatement)
        assert program.results[-1].name.name == "y"

    def test_semicolon_inside_failed_block_is_skipped(self):
        program = parse("let f = fn() { 1 + ; 2 }; let z = 3;")
        assert len(program.results) == 2
        assert isinstance(program.results[0], ParserError)
        assert isinstance(program.results[1], LetStatement)
        assert program.results[1].name.name == "z"

    def test_reports_every_error(self):
        program = parse("let = 1; let y = 2; let z 3; z")
        assert len(program.errors) == 2
        assert len(program.statements) == 2

    def test_max_errors(self):
        program = parse("); ); ); );", max_errors=2)
        assert len(program.errors) == 2

    def test_statements_keep_source_order(self):
        program = parse("1; ); 2;")
        kinds = [type(r).__name__ for r in program.results]
        assert kinds == ["ExpressionStatement", "ParserError", "ExpressionStatement"]


class TestWarnings:
    """Test non-fatal diagnostics."""

    def test_unreachable_statement_in_block(self):
        program = parse_ok("fn() { return 1; 2 }")
        assert len(program.warnings) == 1
        warning = program.warnings[0]
        assert warning.code == "W001"
        assert warning.severity == ErrorSeverity.WARNING

    def test_unreachable_top_level_statement(self):
        program = parse_ok("return 10; 9;")
        assert [w.code for w in program.warnings] == ["W001"]

    def test_no_warning_for_return_last(self):
        program = parse_ok("fn() { 1; return 2 }")
        assert program.warnings == []


class TestDiagnostics:
    """Test diagnostic formatting and collection."""

    def test_format_with_caret(self):
        error = parse("let x = ;").errors[0]
        text = error.diagnostic.format()
        assert text.startswith("1:9: error[E103]:")
        assert "let x = ;" in text
        assert "^" in text

    def test_format_without_source(self):
        error = parse("let x = ;").errors[0]
        text = error.diagnostic.format(show_source=False)
        assert "\n" not in text

    def test_to_json(self):
        error = parse("let x = ;").errors[0]
        data = error.diagnostic.to_json()
        assert data["code"] == "E103"
        assert data["severity"] == "error"
        assert data["range"]["start"] == {"line": 1, "column": 9, "offset": 8}

    def test_collector_counts(self):
        program = parse("let = 1; return 1; 2")
        collector = DiagnosticCollector(max_errors=1)
        for error in program.errors:
            collector.add_error(error)
        for warning in program.warnings:
            collector.add(warning)
        assert collector.error_count == 1
        assert collector.warning_count == 1
        assert collector.should_stop
        assert "1 error(s), 1 warning(s)" in collector.format_all()
        assert collector.to_json()["error_count"] == 1


class TestAstDump:
    """Test AST debugging output."""

    def test_format_ast(self):
        text = format_ast(parse("let x = 1 + 2;"))
        assert text.splitlines()[0] == "Program"
        assert "LetStatement" in text
        assert "InfixOp" in text
        assert "operator: '+'" in text

    def test_format_ast_shows_errors(self):
        text = format_ast(parse("let = 1;"))
        assert "<ParserError E101:" in text

    def test_program_str(self):
        assert str(parse("let x = 1; x")) == "let x = 1; x"

    def test_accept_dispatches_by_node_type(self):
        class IdentifierCounter(AstVisitor):
            def __init__(self):
                self.names = []

            def visit_Identifier(self, node):
                self.names.append(node.name)

        stmt = parse_ok("let y = x;").statements[0]
        counter = IdentifierCounter()
        stmt.value.accept(counter)
        stmt.name.accept(counter)
        assert counter.names == ["x", "y"]
        with pytest.raises(NotImplementedError):
            stmt.accept(counter)
