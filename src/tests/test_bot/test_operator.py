"""
Tests for the human-in-the-loop operators
"""

import io

import pytest

from bot.operator import AutoOperator, ConsoleOperator, OperatorCommand


def scripted_input(*answers):
    """input() replacement returning answers in order, then EOF"""
    remaining = list(answers)
    prompts = []

    def _input(prompt):
        prompts.append(prompt)
        if not remaining:
            raise EOFError
        return remaining.pop(0)

    _input.prompts = prompts
    return _input


class TestConsoleOperator:
    """Tests for ConsoleOperator"""

    @pytest.mark.asyncio
    async def test_present_prints(self):
        output = io.StringIO()
        await ConsoleOperator(scripted_input(), output).present("ADVICE: CALL")
        assert output.getvalue() == "ADVICE: CALL\n"

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "answer,expected",
        [
            ("", OperatorCommand.CONTINUE),
            ("e", OperatorCommand.CONTINUE),
            ("different", OperatorCommand.CONTINUE),
            ("s", OperatorCommand.CONTINUE),
            ("P", OperatorCommand.PAUSE),
            ("quit", OperatorCommand.QUIT),
        ],
    )
    async def test_active_menu(self, answer, expected):
        operator = ConsoleOperator(scripted_input(answer), io.StringIO())
        assert await operator.next_command(paused=False) == expected

    @pytest.mark.asyncio
    async def test_unrecognized_choice_asks_again(self):
        output = io.StringIO()
        operator = ConsoleOperator(scripted_input("x", "q"), output)

        assert await operator.next_command(paused=False) == OperatorCommand.QUIT
        assert "Unrecognized choice: 'x'" in output.getvalue()

    @pytest.mark.asyncio
    async def test_paused_menu_only_resumes_or_quits(self):
        input_fn = scripted_input("", "p", "r")
        operator = ConsoleOperator(input_fn, io.StringIO())

        assert await operator.next_command(paused=True) == OperatorCommand.RESUME
        assert len(input_fn.prompts) == 3
        assert "paused" in input_fn.prompts[0]

    @pytest.mark.asyncio
    async def test_eof_means_quit(self):
        operator = ConsoleOperator(scripted_input(), io.StringIO())
        assert await operator.next_command(paused=False) == OperatorCommand.QUIT

    @pytest.mark.asyncio
    async def test_relay_collects_reply_lines(self):
        output = io.StringIO()
        operator = ConsoleOperator(scripted_input("Action: call", "  good odds  ", ""), output)

        reply = await operator.relay("[USER]\nspot")

        assert reply == "Action: call\ngood odds"
        assert "[USER]\nspot" in output.getvalue()
        assert "Paste this into the chat model" in output.getvalue()

    @pytest.mark.asyncio
    async def test_relay_stops_at_eof(self):
        operator = ConsoleOperator(scripted_input("fold"), io.StringIO())
        assert await operator.relay("spot") == "fold"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("answer,expected", [("y", True), ("YES", True), ("", False), ("n", False)])
    async def test_confirm(self, answer, expected):
        operator = ConsoleOperator(scripted_input(answer), io.StringIO())
        assert await operator.confirm("Execute call?") is expected


class TestAutoOperator:
    """Tests for the unattended operator"""

    @pytest.mark.asyncio
    async def test_never_pauses(self):
        operator = AutoOperator()
        assert await operator.next_command(paused=False) == OperatorCommand.CONTINUE
        assert await operator.next_command(paused=True) == OperatorCommand.RESUME
        assert await operator.confirm("Execute fold?") is True

    @pytest.mark.asyncio
    async def test_cannot_relay(self):
        with pytest.raises(RuntimeError):
            await AutoOperator().relay("spot")
