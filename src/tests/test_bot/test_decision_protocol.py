"""
Tests for response parsing, action validation and the retry protocol
"""

from decimal import Decimal
from unittest.mock import AsyncMock

import pytest

from bot.decision import DecisionQueryProtocol, fallback_action, parse_response, validate_action
from core.errors import ActionValidationError, DecisionUnavailable
from models import ActionKind, BotAction, OracleResponse, Role


class TestParseResponse:
    """Tests for parse_response()"""

    def test_bet_with_size(self):
        action = parse_response("bet 4")
        assert action.action_kind == ActionKind.BET
        assert action.size_in_big_blinds == Decimal("4")

    def test_action_line_preferred(self):
        action = parse_response("I would not call here.\nAction: raise 6.5\nStrong hand")
        assert action.action_kind == ActionKind.RAISE
        assert action.size_in_big_blinds == Decimal("6.5")
        assert "Strong hand" in action.rationale

    def test_markdown_action_line(self):
        action = parse_response("**Action:** fold\nDominated")
        assert action.action_kind == ActionKind.FOLD

    def test_free_text(self):
        action = parse_response("I think you should call here, the price is right.")
        assert action.action_kind == ActionKind.CALL
        assert action.rationale == "here, the price is right"

    def test_free_text_reads_first_line_only(self):
        action = parse_response("Fold.\nA call would only work if they never raise.")
        assert action.action_kind == ActionKind.FOLD
        assert action.rationale == "A call would only work if they never raise"

    @pytest.mark.parametrize(
        "text", ["Don't fold here. Raise to 6 BB.", "I'd never check; bet 3", "Action: call or fold"]
    )
    def test_conflicting_actions_rejected(self, text):
        with pytest.raises(ActionValidationError, match="Ambiguous"):
            parse_response(text)

    def test_repeated_kind_is_not_ambiguous(self):
        action = parse_response("Raise 6, raise big here")
        assert action.action_kind == ActionKind.RAISE
        assert action.size_in_big_blinds == Decimal("6")

    def test_action_only_on_later_line(self):
        with pytest.raises(ActionValidationError):
            parse_response("Tough spot with this board.\ncall")

    def test_raise_to(self):
        action = parse_response("Raise to 9")
        assert action.action_kind == ActionKind.RAISE
        assert action.size_in_big_blinds == Decimal("9")

    @pytest.mark.parametrize("text", ["ALL-IN", "all in", "allin"])
    def test_all_in_spellings(self, text):
        assert parse_response(text).action_kind == ActionKind.ALL_IN

    def test_size_ignored_for_unsized_action(self):
        action = parse_response("call 3")
        assert action.action_kind == ActionKind.CALL
        assert action.size_in_big_blinds == Decimal("0")

    @pytest.mark.parametrize("text", ["", "   ", "banana"])
    def test_unrecognized(self, text):
        with pytest.raises(ActionValidationError):
            parse_response(text)


class TestValidateAction:
    """Tests for validate_action()"""

    def test_valid_raise_unchanged(self):
        action = BotAction(action_kind=ActionKind.RAISE, size_in_big_blinds=Decimal("3"))
        assert validate_action(action, Decimal("49")) == action

    @pytest.mark.parametrize("kind", [ActionKind.BET, ActionKind.RAISE])
    def test_sized_action_needs_size(self, kind):
        with pytest.raises(ActionValidationError):
            validate_action(BotAction(action_kind=kind), Decimal("49"))

    def test_raise_covering_stack_becomes_all_in(self):
        action = BotAction(action_kind=ActionKind.RAISE, size_in_big_blinds=Decimal("60"))
        result = validate_action(action, Decimal("49"))
        assert result.action_kind == ActionKind.ALL_IN
        assert result.size_in_big_blinds == Decimal("49")

    def test_all_in_sized_to_stack(self):
        action = BotAction(action_kind=ActionKind.ALL_IN, size_in_big_blinds=Decimal("5"))
        assert validate_action(action, Decimal("49")).size_in_big_blinds == Decimal("49")

    def test_all_in_with_unknown_stack_left_unsized(self):
        action = validate_action(BotAction(action_kind=ActionKind.ALL_IN), Decimal("0"))
        assert action.action_kind == ActionKind.ALL_IN
        assert action.size_in_big_blinds == Decimal("0")

    def test_raise_kept_when_stack_unknown(self):
        action = BotAction(action_kind=ActionKind.RAISE, size_in_big_blinds=Decimal("60"))
        assert validate_action(action, Decimal("0")) == action

    def test_unsized_action_loses_size(self):
        action = BotAction(action_kind=ActionKind.CALL, size_in_big_blinds=Decimal("3"))
        assert validate_action(action, Decimal("49")).size_in_big_blinds == Decimal("0")


class TestFallbackAction:
    """Tests for the conservative default"""

    def test_check_when_available(self):
        assert fallback_action(["Check", "bet", "fold"]).action_kind == ActionKind.CHECK

    def test_fold_when_facing_bet(self):
        assert fallback_action(["call", "raise", "fold"]).action_kind == ActionKind.FOLD

    def test_fold_when_unknown(self):
        assert fallback_action(None).action_kind == ActionKind.FOLD


class TestDecisionQueryProtocol:
    """Tests for the bounded retry loop and the hand conversation"""

    @pytest.mark.asyncio
    async def test_first_attempt_succeeds(self, scripted_oracle):
        oracle = scripted_oracle(["Action: call\nGood price"])
        protocol = DecisionQueryProtocol(oracle, retry_delay=0)

        action = await protocol.query_bot_action("prompt", retries=2, hero_stack_bb=Decimal("49"))

        assert action.action_kind == ActionKind.CALL
        assert protocol.failed_attempts == 0
        assert len(oracle.prompts) == 1

    @pytest.mark.asyncio
    async def test_retries_exhausted(self, scripted_oracle):
        oracle = scripted_oracle([ConnectionError("down")] * 3)
        sleep = AsyncMock()
        protocol = DecisionQueryProtocol(oracle, retry_delay=1.5, sleep=sleep)

        with pytest.raises(DecisionUnavailable) as exc_info:
            await protocol.query_bot_action("prompt", retries=2)

        assert exc_info.value.attempts == 3
        assert len(oracle.prompts) == 3
        assert sleep.await_count == 2
        sleep.assert_awaited_with(1.5)

    @pytest.mark.asyncio
    async def test_zero_retries_single_attempt(self, scripted_oracle):
        oracle = scripted_oracle([ConnectionError("down"), "call"])
        protocol = DecisionQueryProtocol(oracle, retry_delay=0, sleep=AsyncMock())

        with pytest.raises(DecisionUnavailable) as exc_info:
            await protocol.query_bot_action("prompt", retries=0)

        assert exc_info.value.attempts == 1
        assert len(oracle.prompts) == 1

    @pytest.mark.asyncio
    async def test_unparseable_reply_counts_as_failure(self, scripted_oracle):
        oracle = scripted_oracle(["no idea", "bet 0", "check"])
        protocol = DecisionQueryProtocol(oracle, retry_delay=0, sleep=AsyncMock())

        action = await protocol.query_bot_action("prompt", retries=2, hero_stack_bb=Decimal("49"))

        assert action.action_kind == ActionKind.CHECK
        assert protocol.failed_attempts == 2

    @pytest.mark.asyncio
    async def test_structured_action_used(self):
        oracle = AsyncMock()
        oracle.query.return_value = OracleResponse(
            text="ignored", parsed_action=BotAction(action_kind=ActionKind.ALL_IN)
        )
        protocol = DecisionQueryProtocol(oracle)

        action = await protocol.query_bot_action("prompt", retries=0, hero_stack_bb=Decimal("12"))

        assert action.action_kind == ActionKind.ALL_IN
        assert action.size_in_big_blinds == Decimal("12")

    @pytest.mark.asyncio
    async def test_all_in_with_unknown_stack_not_retried(self, scripted_oracle):
        oracle = scripted_oracle(["all-in", "fold", "fold"])
        protocol = DecisionQueryProtocol(oracle, retry_delay=0, sleep=AsyncMock())

        action = await protocol.query_bot_action("prompt", retries=2, hero_stack_bb=Decimal("0"))

        assert action.action_kind == ActionKind.ALL_IN
        assert len(oracle.prompts) == 1
        assert protocol.failed_attempts == 0

    @pytest.mark.asyncio
    async def test_negative_retries_rejected(self, scripted_oracle):
        protocol = DecisionQueryProtocol(scripted_oracle([]))
        with pytest.raises(ValueError):
            await protocol.query_bot_action("prompt", retries=-1)

    @pytest.mark.asyncio
    async def test_history_grows_and_resets(self, scripted_oracle):
        oracle = scripted_oracle(["call", "check"])
        protocol = DecisionQueryProtocol(oracle, playstyle="tag")

        await protocol.query_bot_action("first", retries=0)
        await protocol.query_bot_action("second", retries=0)

        assert [m.role for m in oracle.histories[0]] == [Role.SYSTEM]
        assert [m.role for m in oracle.histories[1]] == [Role.SYSTEM, Role.USER, Role.ASSISTANT]
        assert "tight-aggressive" in oracle.histories[0][0].text
        assert len(protocol.history) == 5

        protocol.reset_history()
        assert [m.role for m in protocol.history] == [Role.SYSTEM]

    @pytest.mark.asyncio
    async def test_history_is_capped(self, scripted_oracle):
        oracle = scripted_oracle(["call", "check", "fold"])
        protocol = DecisionQueryProtocol(oracle, max_history_messages=2)

        for prompt in ("one", "two", "three"):
            await protocol.query_bot_action(prompt, retries=0)

        history = protocol.history
        assert len(history) == 3
        assert history[1].text == "three"
        assert history[2].text == "fold"

    def test_negative_history_cap_rejected(self, scripted_oracle):
        with pytest.raises(ValueError):
            DecisionQueryProtocol(scripted_oracle([]), max_history_messages=-1)

    def test_unknown_playstyle_rejected(self, scripted_oracle):
        with pytest.raises(ValueError):
            DecisionQueryProtocol(scripted_oracle([]), playstyle="maniac")
