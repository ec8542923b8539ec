"""Tests for the registration block mutator."""

import pytest

from yocode.config import MarkerConfig
from yocode.exceptions import ActivationAnchorNotFound
from yocode.models import CollectorState, CommandDescriptor, LanguageVariant
from yocode.registration import register_command, registration_statement
from yocode.source import scan_call_arguments

COLLECTOR = "context.subscriptions.push("


def collector_arguments(text: str) -> list[str]:
    """Arguments of the only collector call in ``text``."""
    assert text.count(COLLECTOR) == 1
    open_paren = text.index(COLLECTOR) + len(COLLECTOR) - 1
    span = scan_call_arguments(text, open_paren)
    assert span is not None
    return span.arguments


@pytest.fixture
def lint() -> CommandDescriptor:
    return CommandDescriptor(
        command_name="lint",
        language_variant=LanguageVariant.TYPED,
        command_prefix="demo",
    )


class TestRegistrationStatement:
    """Test the registration declaration text."""

    def test_statement(self, lint: CommandDescriptor) -> None:
        assert registration_statement(lint) == (
            "const lintCommand = vscode.commands.registerCommand('demo.lint', executeLint);"
        )


class TestExistingCollector:
    """Test extending an existing consolidated collector call."""

    def test_empty_collector(self, lint: CommandDescriptor) -> None:
        """Test an empty collector receives the new handle."""
        source = (
            "export function activate(context: vscode.ExtensionContext) {\n"
            "    context.subscriptions.push();\n"
            "}\n"
        )

        result = register_command(source, lint)

        assert result.state == CollectorState.EXTENDED
        assert result.text == (
            "export function activate(context: vscode.ExtensionContext) {\n"
            "    const lintCommand = vscode.commands.registerCommand('demo.lint', executeLint);\n"
            "    context.subscriptions.push( lintCommand );\n\n\n"
            "}\n"
        )

    @pytest.mark.parametrize("existing", [[], ["a"], ["a", "b"], ["a", "b", "c"]])
    def test_argument_list_grows_by_one(
        self,
        lint: CommandDescriptor,
        existing: list[str],
    ) -> None:
        """Test k arguments become k+1 with the new handle last."""
        source = (
            "function activate(context) {\n"
            f"    context.subscriptions.push({', '.join(existing)});\n"
            "}\n"
        )

        result = register_command(source, lint)

        arguments = collector_arguments(result.text)
        assert len(arguments) == len(existing) + 1
        assert arguments[-1] == "lintCommand"
        assert arguments[:-1] == existing

    def test_nested_arguments_are_preserved(self, lint: CommandDescriptor) -> None:
        source = (
            "function activate(context) {\n"
            "    context.subscriptions.push(a, wrap(b, c));\n"
            "}\n"
        )

        result = register_command(source, lint)

        assert "context.subscriptions.push( a, wrap(b, c), lintCommand );" in result.text

    def test_declaration_precedes_collector(self, lint: CommandDescriptor) -> None:
        source = (
            "function activate(context) {\n"
            "  const other = 1;\n"
            "  context.subscriptions.push(other);\n"
            "}\n"
        )

        result = register_command(source, lint)

        lines = result.text.splitlines()
        collector_line = next(i for i, line in enumerate(lines) if COLLECTOR in line)
        assert lines[collector_line - 1] == (
            "  const lintCommand = vscode.commands.registerCommand('demo.lint', executeLint);"
        )

    def test_unclosed_collector_fails(self, lint: CommandDescriptor) -> None:
        source = "function activate(context) {\n    context.subscriptions.push(a, b\n"

        with pytest.raises(ActivationAnchorNotFound, match="not closed"):
            register_command(source, lint)

    def test_repeat_registration_is_not_deduplicated(self, lint: CommandDescriptor) -> None:
        """Test re-running with the same command appends it again."""
        source = "function activate(context) {\n    context.subscriptions.push();\n}\n"

        once = register_command(source, lint)
        twice = register_command(once.text, lint)

        assert collector_arguments(twice.text) == ["lintCommand", "lintCommand"]
        assert twice.text.count("const lintCommand =") == 2


class TestCollectorLayout:
    """Test the collector call keeps its surroundings when extended."""

    def test_collector_without_semicolon(self, lint: CommandDescriptor) -> None:
        """Test no blank lines are pushed into code after an unterminated call."""
        source = (
            "function activate(context) {\n"
            "    context.subscriptions.push(a)\n"
            "}\n"
            "function deactivate() { console.log('bye; now') }\n"
        )

        result = register_command(source, lint)

        assert result.text == (
            "function activate(context) {\n"
            "    const lintCommand = vscode.commands.registerCommand('demo.lint', executeLint);\n"
            "    context.subscriptions.push( a, lintCommand )\n"
            "}\n"
            "function deactivate() { console.log('bye; now') }\n"
        )

    def test_semicolon_after_spaces(self, lint: CommandDescriptor) -> None:
        source = "function activate(context) {\n    context.subscriptions.push(a) ;\n}\n"

        result = register_command(source, lint)

        assert "context.subscriptions.push( a, lintCommand ) ;\n\n\n}" in result.text

    def test_single_line_trailing_comma(self, lint: CommandDescriptor) -> None:
        source = "function activate(context) {\n    context.subscriptions.push(a, );\n}\n"

        result = register_command(source, lint)

        assert "    context.subscriptions.push( a, lintCommand );\n\n\n}\n" in result.text
        assert collector_arguments(result.text) == ["a", "lintCommand"]

    def test_trailing_line_comment(self, lint: CommandDescriptor) -> None:
        """Test a comment after the last argument stays after the new handle."""
        source = (
            "function activate(context) {\n"
            "    context.subscriptions.push(a // keep\n"
            "    );\n"
            "}\n"
        )

        result = register_command(source, lint)

        assert "context.subscriptions.push(a, lintCommand // keep\n    );\n\n\n}" in result.text
        assert collector_arguments(result.text) == ["a", "lintCommand"]

    def test_block_comment_only(self, lint: CommandDescriptor) -> None:
        source = "function activate(context) {\n    context.subscriptions.push(/* none */);\n}\n"

        result = register_command(source, lint)

        assert "context.subscriptions.push( lintCommand/* none */);" in result.text
        assert collector_arguments(result.text) == ["lintCommand"]

    def test_multiline_arguments(self, lint: CommandDescriptor) -> None:
        """Test one-argument-per-line collectors get the handle on its own line."""
        source = (
            "function activate(context) {\n"
            "    context.subscriptions.push(\n"
            "        a,\n"
            "        b\n"
            "    );\n"
            "}\n"
        )

        result = register_command(source, lint)

        assert result.text == (
            "function activate(context) {\n"
            "    const lintCommand = vscode.commands.registerCommand('demo.lint', executeLint);\n"
            "    context.subscriptions.push(\n"
            "        a,\n"
            "        b,\n"
            "        lintCommand\n"
            "    );\n\n\n"
            "}\n"
        )

    def test_multiline_trailing_comma(self, lint: CommandDescriptor) -> None:
        source = (
            "function activate(context) {\n"
            "    context.subscriptions.push(\n"
            "        a,\n"
            "        b,\n"
            "    );\n"
            "}\n"
        )

        result = register_command(source, lint)

        assert (
            "    context.subscriptions.push(\n"
            "        a,\n"
            "        b,\n"
            "        lintCommand,\n"
            "    );\n"
        ) in result.text
        assert collector_arguments(result.text) == ["a", "b", "lintCommand"]


class TestMissingCollector:
    """Test creating a collector call inside the activation routine."""

    def test_creates_single_collector(self, lint: CommandDescriptor) -> None:
        """Test a fresh source ends up with one single-argument collector."""
        source = (
            "export function activate(context: vscode.ExtensionContext) {\n"
            "    console.log('active');\n"
            "}\n"
        )

        result = register_command(source, lint)

        assert result.state == CollectorState.CREATED
        assert collector_arguments(result.text) == ["lintCommand"]
        assert result.text == (
            "export function activate(context: vscode.ExtensionContext) {\n"
            "    const lintCommand = vscode.commands.registerCommand('demo.lint', executeLint);\n"
            "    context.subscriptions.push(lintCommand);\n\n"
            "\n"
            "    console.log('active');\n"
            "}\n"
        )

    def test_then_extends_created_collector(self, lint: CommandDescriptor) -> None:
        """Test a second command re-enters through the existing collector."""
        build = CommandDescriptor(
            command_name="build",
            language_variant=LanguageVariant.TYPED,
            command_prefix="demo",
        )
        source = "export function activate(context: vscode.ExtensionContext) {\n}\n"

        first = register_command(source, lint)
        second = register_command(first.text, build)

        assert second.state == CollectorState.EXTENDED
        assert collector_arguments(second.text) == ["lintCommand", "buildCommand"]

    def test_missing_activation_routine(self, lint: CommandDescriptor) -> None:
        source = "export function deactivate() {}\n"

        with pytest.raises(ActivationAnchorNotFound, match="Activation routine"):
            register_command(source, lint)

    def test_activation_without_body(self, lint: CommandDescriptor) -> None:
        source = "export function activate(context: vscode.ExtensionContext)"

        with pytest.raises(ActivationAnchorNotFound, match="no body"):
            register_command(source, lint)

    def test_custom_markers(self, lint: CommandDescriptor) -> None:
        markers = MarkerConfig(activation="def_activate(ctx", collector="ctx.track(")
        source = "def_activate(ctx) {\n}\n"

        result = register_command(source, lint, markers)

        assert "ctx.track(lintCommand);" in result.text
